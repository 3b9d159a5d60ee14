"""
Operation results.
Immutable accumulators: every update returns a new instance.
"""
from dataclasses import dataclass, field, replace
from typing import Optional, Tuple, Dict, Any, Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class ItemError:
    """A failure tied to one item of a batch."""
    identifier: str
    message: str
    index: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {"asin": self.identifier, "error": self.message}
        if self.index is not None:
            data["index"] = self.index
        return data


@dataclass(frozen=True)
class BatchResult(Generic[T]):
    """Successful items of a batch paired with the per-item errors."""
    items: Tuple[T, ...] = ()
    errors: Tuple[ItemError, ...] = ()

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)


@dataclass(frozen=True)
class ImportResult:
    total_processed: int = 0
    successfully_imported: int = 0
    updated: int = 0
    skipped: int = 0
    failed: int = 0
    errors: Tuple[ItemError, ...] = ()

    def add_error(self, asin: str, message: str) -> "ImportResult":
        return replace(
            self,
            failed=self.failed + 1,
            errors=self.errors + (ItemError(asin, message),)
        )

    def increment_processed(self) -> "ImportResult":
        return replace(self, total_processed=self.total_processed + 1)

    def increment_imported(self) -> "ImportResult":
        return replace(self, successfully_imported=self.successfully_imported + 1)

    def increment_updated(self) -> "ImportResult":
        return replace(self, updated=self.updated + 1)

    def increment_skipped(self) -> "ImportResult":
        return replace(self, skipped=self.skipped + 1)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_processed": self.total_processed,
            "successfully_imported": self.successfully_imported,
            "updated": self.updated,
            "skipped": self.skipped,
            "failed": self.failed,
            "errors": [error.to_dict() for error in self.errors]
        }


@dataclass(frozen=True)
class ExportResult:
    total_processed: int = 0
    total_exported: int = 0
    skipped: int = 0
    failed: int = 0
    errors: Tuple[ItemError, ...] = ()
    with_images: Optional[int] = None
    with_prices: Optional[int] = None
    with_rankings: Optional[int] = None
    file_path: Optional[str] = None

    def add_error(self, asin: str, message: str) -> "ExportResult":
        return replace(
            self,
            failed=self.failed + 1,
            errors=self.errors + (ItemError(asin, message),)
        )

    def increment_processed(self) -> "ExportResult":
        return replace(self, total_processed=self.total_processed + 1)

    def increment_exported(self) -> "ExportResult":
        return replace(self, total_exported=self.total_exported + 1)

    def increment_skipped(self) -> "ExportResult":
        return replace(self, skipped=self.skipped + 1)

    def with_statistics(self, with_images: int, with_prices: int, with_rankings: int) -> "ExportResult":
        return replace(
            self,
            with_images=with_images,
            with_prices=with_prices,
            with_rankings=with_rankings
        )

    def with_file_path(self, file_path: str) -> "ExportResult":
        return replace(self, file_path=file_path)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_processed": self.total_processed,
            "total_exported": self.total_exported,
            "skipped": self.skipped,
            "failed": self.failed,
            "errors": [error.to_dict() for error in self.errors],
            "with_images": self.with_images,
            "with_prices": self.with_prices,
            "with_rankings": self.with_rankings,
            "file_path": self.file_path
        }
