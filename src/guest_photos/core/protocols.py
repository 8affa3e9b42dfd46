"""Protocol definitions for dependency injection and testability."""

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional, Protocol

from .models import (
    BucketConfig,
    Cafe,
    GuestPhoto,
    OptimizationConfig,
    OptimizedAsset,
    PhotoMetadata,
    SourceImage,
    ThumbnailAsset,
    UploadProgress,
    ValidationOptions,
    ValidationResult,
)

ProgressCallback = Callable[[UploadProgress], None]


class S3ClientProtocol(Protocol):
    """Protocol for the S3 client operations the storage service uses."""

    def list_buckets(self) -> Dict[str, Any]:
        """List buckets owned by the caller."""
        ...

    def create_bucket(self, **kwargs: Any) -> Dict[str, Any]:
        """Create a bucket."""
        ...

    def put_bucket_policy(self, Bucket: str, Policy: str) -> Dict[str, Any]:
        """Attach a bucket policy."""
        ...

    def put_object(self, **kwargs: Any) -> Dict[str, Any]:
        """Put object to S3."""
        ...


class LoggerProtocol(Protocol):
    """Protocol for logging operations."""

    def debug(self, message: str, context: Any = None, **kwargs: Any) -> None:
        """Log debug message."""
        ...

    def info(self, message: str, context: Any = None, **kwargs: Any) -> None:
        """Log info message."""
        ...

    def warning(self, message: str, context: Any = None, **kwargs: Any) -> None:
        """Log warning message."""
        ...

    def error(self, message: str, context: Any = None, **kwargs: Any) -> None:
        """Log error message."""
        ...


class PhotoRecordWriter(Protocol):
    """Persistence operation the upload orchestrator depends on."""

    def create_guest_photo(
        self, image_url: str, cafe_id: str, metadata: PhotoMetadata
    ) -> GuestPhoto:
        """Create a photo record pointing at an uploaded image."""
        ...


class CafeDirectory(Protocol):
    """Read access to the venues photos can be uploaded for."""

    def list_cafes(self) -> List[Cafe]:
        """Return all cafes ordered by name."""
        ...


class ImageTransformer(ABC):
    """Abstract per-file image transformation."""

    @abstractmethod
    def optimize(self, source: SourceImage, config: OptimizationConfig) -> OptimizedAsset:
        """Resize and re-encode an image."""
        ...

    @abstractmethod
    def generate_thumbnail(self, asset: OptimizedAsset, size: int) -> ThumbnailAsset:
        """Produce a center-cropped square thumbnail."""
        ...

    @abstractmethod
    def remove_exif(self, source: SourceImage) -> SourceImage:
        """Re-encode an image so no original metadata survives."""
        ...

    @abstractmethod
    def validate(
        self, source: SourceImage, options: ValidationOptions
    ) -> ValidationResult:
        """Check an image against size, type and dimension rules."""
        ...


class StorageService(ABC):
    """Abstract object storage primitives."""

    @abstractmethod
    def bucket_exists(self, name: str) -> bool:
        """Check whether a bucket exists; never raises."""
        ...

    @abstractmethod
    def create_bucket(self, name: str, config: BucketConfig) -> bool:
        """Create a bucket; failures are logged, not raised."""
        ...

    @abstractmethod
    def ensure_bucket(self, name: str, config: Optional[BucketConfig] = None) -> None:
        """Create the bucket if it is missing."""
        ...

    @abstractmethod
    def upload_object(self, bucket: str, key: str, data: bytes, content_type: str) -> str:
        """Store an object and return its public URL."""
        ...

    @abstractmethod
    def get_public_url(self, bucket: str, key: str) -> str:
        """Resolve the public URL of an object."""
        ...
