"""Core utilities and shared components for the guest photos pipeline."""

from .exceptions import (
    ConfigurationError,
    DecodeError,
    EncodeError,
    GuestPhotosError,
    ImageProcessingError,
    PersistenceError,
    StartupTimeoutError,
    StorageError,
    UploadError,
    ValidationError,
)
from .logging_config import configure_logging, get_logger
from .models import (
    BucketConfig,
    Cafe,
    GuestPhoto,
    OptimizationConfig,
    OptimizedAsset,
    OutputFormat,
    PhotoMetadata,
    SourceImage,
    StorageConfig,
    ThumbnailAsset,
    UploadLimits,
    UploadProgress,
    UploadStage,
    UploadSummary,
    ValidationOptions,
    ValidationResult,
)

__all__ = [
    "BucketConfig",
    "Cafe",
    "GuestPhoto",
    "OptimizationConfig",
    "OptimizedAsset",
    "OutputFormat",
    "PhotoMetadata",
    "SourceImage",
    "StorageConfig",
    "ThumbnailAsset",
    "UploadLimits",
    "UploadProgress",
    "UploadStage",
    "UploadSummary",
    "ValidationOptions",
    "ValidationResult",
    "configure_logging",
    "get_logger",
    "GuestPhotosError",
    "ConfigurationError",
    "ImageProcessingError",
    "DecodeError",
    "EncodeError",
    "ValidationError",
    "StorageError",
    "UploadError",
    "PersistenceError",
    "StartupTimeoutError",
]
