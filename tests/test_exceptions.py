import pytest

from guest_photos.core.exceptions import (
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


@pytest.mark.parametrize(
    "error_cls,parent",
    [
        (DecodeError, ImageProcessingError),
        (EncodeError, ImageProcessingError),
        (UploadError, StorageError),
        (ImageProcessingError, GuestPhotosError),
        (StorageError, GuestPhotosError),
        (ValidationError, GuestPhotosError),
        (PersistenceError, GuestPhotosError),
        (ConfigurationError, GuestPhotosError),
        (StartupTimeoutError, GuestPhotosError),
    ],
)
def test_exception_hierarchy(error_cls, parent) -> None:
    assert issubclass(error_cls, parent)


def test_validation_error_carries_reason() -> None:
    error = ValidationError("too small", reason="dimensions", file_name="a.jpg")
    assert str(error) == "too small"
    assert error.reason == "dimensions"
    assert error.file_name == "a.jpg"
