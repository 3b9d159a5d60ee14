"""
Services package initialization.
Centralizes service imports.
"""

from catalog.services.importer import AmazonProductImporter
from catalog.services.exporter import AmazonProductExporter
from catalog.services.editor import ProductCollectionEditor

__all__ = [
    'AmazonProductImporter',
    'AmazonProductExporter',
    'ProductCollectionEditor'
]
