"""Custom exceptions for the guest photos pipeline."""

from __future__ import annotations

from typing import Optional


class GuestPhotosError(Exception):
    """Base exception for all guest photos errors."""


class ConfigurationError(GuestPhotosError):
    """Error raised for invalid configuration options."""


class ImageProcessingError(GuestPhotosError):
    """Error raised when transforming a single image fails."""


class DecodeError(ImageProcessingError):
    """The source bytes could not be decoded as an image."""


class EncodeError(ImageProcessingError):
    """The codec produced no output for a transformed image."""


class ValidationError(GuestPhotosError):
    """A file was rejected by a pre-flight check."""

    def __init__(
        self,
        message: str,
        reason: str = "",
        file_name: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.reason = reason
        self.file_name = file_name


class StorageError(GuestPhotosError):
    """Error raised for object storage failures."""


class UploadError(StorageError):
    """An object could not be written to the bucket."""


class PersistenceError(GuestPhotosError):
    """A photo or venue record could not be read or written."""


class StartupTimeoutError(GuestPhotosError):
    """Loading venues and confirming the bucket took too long."""
