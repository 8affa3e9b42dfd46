"""Shared data models for the guest photos pipeline."""

import mimetypes
import os
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from .exceptions import ValidationError

MEGABYTE = 1024 * 1024
DEFAULT_MAX_FILE_SIZE = 10 * MEGABYTE
DEFAULT_MAX_FILES = 10
DEFAULT_ALLOWED_TYPES = ["image/jpeg", "image/png", "image/webp"]
DEFAULT_BUCKET = "guest-photos"

# Python < 3.11 has no built-in mapping for .webp
mimetypes.add_type("image/webp", ".webp")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class OutputFormat(str, Enum):
    """Encodings the transformer can produce."""

    WEBP = "webp"
    JPEG = "jpeg"
    PNG = "png"

    @property
    def pil_format(self) -> str:
        return self.value.upper()

    @property
    def content_type(self) -> str:
        return f"image/{self.value}"


class OptimizationConfig(BaseModel):
    """Target bounds and encoding for one optimization pass."""

    model_config = ConfigDict(frozen=True)

    max_width: int = Field(default=1920, gt=0)
    max_height: int = Field(default=1920, gt=0)
    quality: float = Field(default=0.8, ge=0.0, le=1.0)
    format: OutputFormat = OutputFormat.WEBP


DEFAULT_OPTIMIZATION_CONFIG = OptimizationConfig()


class Dimensions(BaseModel):
    """Pixel dimensions of an image."""

    width: int
    height: int


class SourceImage(BaseModel):
    """A client-supplied image blob with its declared media type."""

    name: str
    data: bytes
    content_type: str = "application/octet-stream"

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def stem(self) -> str:
        return os.path.splitext(self.name)[0]

    @classmethod
    def from_path(cls, path: Union[str, Path]) -> "SourceImage":
        """Read a file from disk, guessing its media type from the name."""
        path = Path(path)
        content_type, _ = mimetypes.guess_type(path.name)
        return cls(
            name=path.name,
            data=path.read_bytes(),
            content_type=content_type or "application/octet-stream",
        )


class OptimizedAsset(BaseModel):
    """Result of resizing and re-encoding a source image."""

    file_name: str
    data: bytes
    content_type: str
    format: OutputFormat
    dimensions: Dimensions
    size_reduction: float = 0.0

    @property
    def size(self) -> int:
        return len(self.data)

    def as_source(self) -> SourceImage:
        """View this asset as input for another transformation."""
        return SourceImage(
            name=self.file_name, data=self.data, content_type=self.content_type
        )


class ThumbnailAsset(BaseModel):
    """Center-cropped square derivative of an optimized asset."""

    file_name: str
    data: bytes
    content_type: str
    dimensions: Dimensions

    @property
    def size(self) -> int:
        return len(self.data)


class ValidationOptions(BaseModel):
    """Rules for the pre-flight validation gate."""

    max_size: int = DEFAULT_MAX_FILE_SIZE
    allowed_types: List[str] = Field(default_factory=lambda: list(DEFAULT_ALLOWED_TYPES))
    min_width: int = 100
    min_height: int = 100


class ValidationResult(BaseModel):
    """Verdict of validating one source image."""

    valid: bool
    error: Optional[str] = None
    reason: Optional[str] = None
    dimensions: Optional[Dimensions] = None

    def raise_for_error(self, file_name: Optional[str] = None) -> None:
        """Raise ValidationError if the file was rejected."""
        if not self.valid:
            raise ValidationError(
                self.error or "Invalid image", reason=self.reason or "", file_name=file_name
            )


class UploadLimits(BaseModel):
    """Caller-configurable limits applied to a file selection."""

    max_files: int = Field(default=DEFAULT_MAX_FILES, gt=0)
    max_file_size: int = Field(default=DEFAULT_MAX_FILE_SIZE, gt=0)
    allowed_types: List[str] = Field(default_factory=lambda: list(DEFAULT_ALLOWED_TYPES))


class UploadStage(str, Enum):
    """Lifecycle stage of an upload batch."""

    UPLOADING = "uploading"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"


class UploadProgress(BaseModel):
    """Complete snapshot of a batch, handed to the progress callback."""

    stage: UploadStage = UploadStage.PROCESSING
    progress: float = Field(default=0.0, ge=0.0, le=100.0)
    current_file: Optional[str] = None
    completed: int = 0
    total: int = 0
    errors: List[str] = Field(default_factory=list)


class UploadSummary(BaseModel):
    """What the orchestrator returns once a batch has run."""

    success: bool
    uploaded_count: int
    errors: List[str] = Field(default_factory=list)


class BucketConfig(BaseModel):
    """Settings used when a bucket has to be created."""

    public: bool = True
    allowed_media_types: List[str] = Field(
        default_factory=lambda: list(DEFAULT_ALLOWED_TYPES)
    )
    max_object_size: int = DEFAULT_MAX_FILE_SIZE
    cache_control: str = "max-age=3600"


class StorageConfig(BaseModel):
    """Where photos are stored and how public URLs are built."""

    bucket: str = DEFAULT_BUCKET
    endpoint_url: Optional[str] = None
    public_base_url: Optional[str] = None
    region: Optional[str] = None

    @classmethod
    def from_env(cls) -> "StorageConfig":
        """
        Build a configuration from environment variables.

        Environment Variables:
            GUEST_PHOTOS_BUCKET: Bucket name (defaults to "guest-photos")
            S3_ENDPOINT_URL: Endpoint of an S3-compatible store
            PUBLIC_BASE_URL: Base URL objects are publicly served from
            AWS_REGION: Region used by the client
        """
        return cls(
            bucket=os.getenv("GUEST_PHOTOS_BUCKET", DEFAULT_BUCKET),
            endpoint_url=os.getenv("S3_ENDPOINT_URL") or None,
            public_base_url=os.getenv("PUBLIC_BASE_URL") or None,
            region=os.getenv("AWS_REGION") or None,
        )


class PhotoMetadata(BaseModel):
    """Derived details recorded alongside a guest photo."""

    thumbnail_url: str
    original_file_name: str
    file_size: int
    dimensions: Dimensions
    size_reduction: float
    uploaded_at: datetime = Field(default_factory=_utcnow)


class Cafe(BaseModel):
    """A venue guests upload photos for."""

    id: str
    name: str
    address: str = ""
    value: Optional[int] = None
    created_at: datetime = Field(default_factory=_utcnow)


class GuestPhoto(BaseModel):
    """A persisted photo record; hidden until an admin approves it."""

    id: str
    image_url: str
    cafe_id: str
    approved: bool = False
    metadata: Optional[PhotoMetadata] = None
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)
