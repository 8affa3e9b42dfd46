"""Testing utilities and fakes for the guest photos pipeline."""

from .fakes import (
    FakeLogger,
    FakePhotoRepository,
    FakeS3Client,
    S3Bucket,
    S3Object,
    create_corrupt_source_image,
    create_source_image,
    create_test_image,
    setup_test_s3_environment,
)

__all__ = [
    "FakeS3Client",
    "FakeLogger",
    "FakePhotoRepository",
    "S3Object",
    "S3Bucket",
    "create_test_image",
    "create_source_image",
    "create_corrupt_source_image",
    "setup_test_s3_environment",
]
