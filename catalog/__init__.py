"""
Amazon Catalog - product import/export pipeline and storefront ranking.
"""

__version__ = "1.0.0"
__author__ = "Engineering Team"

# Export main components for easy import
from catalog.config import config
from catalog.logger import logger
from catalog.errors import (
    CatalogError,
    ConfigError,
    AmazonImportError,
    DataValidationError,
    AmazonExportError,
    ExportPathError,
    PersistenceError
)

__all__ = [
    'config',
    'logger',
    'CatalogError',
    'ConfigError',
    'AmazonImportError',
    'DataValidationError',
    'AmazonExportError',
    'ExportPathError',
    'PersistenceError'
]
