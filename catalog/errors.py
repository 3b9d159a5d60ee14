"""
Domain exceptions for the catalog pipeline.
Structural errors are fatal, validation errors are per item.
"""
from typing import Optional


class CatalogError(Exception):
    """Base class for all catalog errors."""
    pass


class ConfigError(CatalogError):
    """Raised when required configuration is missing or invalid."""
    pass


class AmazonImportError(CatalogError):
    """Raised when an import document cannot be processed as a whole."""

    def __init__(self, message: str):
        super().__init__(f"Amazon Import Error: {message}")


class DataValidationError(AmazonImportError):
    """Raised when a single item fails validation or extraction."""

    def __init__(self, message: str, asin: Optional[str] = None, path: Optional[str] = None):
        self.asin = asin or "unknown"
        self.path = path
        self.detail = message
        super().__init__(f"Validation Error: {message}")


class AmazonExportError(CatalogError):
    """Raised when an export cannot be completed."""

    def __init__(self, message: str, file_path: Optional[str] = None):
        self.file_path = file_path
        super().__init__(f"Amazon Export Error: {message}")


class ExportPathError(AmazonExportError):
    """Raised when the export destination is not writable."""
    pass


class PersistenceError(CatalogError):
    """Raised when the storage layer fails to read or write."""
    pass
