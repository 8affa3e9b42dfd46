"""Fake implementations for testing purposes."""

import io
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from botocore.exceptions import ClientError
from PIL import Image

from ..core.exceptions import PersistenceError
from ..core.models import Cafe, GuestPhoto, PhotoMetadata, SourceImage


def _client_error(code: str, message: str, operation: str) -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": message}}, operation)


@dataclass
class S3Object:
    """Fake S3 object for testing."""

    key: str
    body: bytes
    content_type: str = "image/webp"
    cache_control: Optional[str] = None
    size: int = 0

    def __post_init__(self):
        if self.size == 0:
            self.size = len(self.body)


@dataclass
class S3Bucket:
    """Fake S3 bucket for testing."""

    name: str
    objects: Dict[str, S3Object] = field(default_factory=dict)
    policy: Optional[str] = None

    def add_object(
        self,
        key: str,
        body: bytes,
        content_type: str = "image/webp",
        cache_control: Optional[str] = None,
    ) -> None:
        """Add object to bucket."""
        self.objects[key] = S3Object(
            key=key, body=body, content_type=content_type, cache_control=cache_control
        )

    def get_object(self, key: str) -> Optional[S3Object]:
        """Get object from bucket."""
        return self.objects.get(key)

    def list_objects(self, prefix: str = "") -> List[S3Object]:
        """List objects with optional prefix filter."""
        return [obj for key, obj in self.objects.items() if key.startswith(prefix)]


class FakeS3Client:
    """Fake S3 client for testing."""

    def __init__(self):
        self.buckets: Dict[str, S3Bucket] = {}
        self.operation_count = 0
        self.create_bucket_calls = 0
        self.should_fail = False
        self.failure_message = "Simulated S3 failure"
        self.fail_list_buckets = False
        self.fail_create_bucket = False
        self.failing_key_prefixes: Tuple[str, ...] = ()
        self.delay_seconds = 0.0

    def get_bucket(self, name: str) -> Optional[S3Bucket]:
        """Get bucket by name."""
        return self.buckets.get(name)

    def add_bucket(self, name: str) -> S3Bucket:
        """Create a bucket directly, bypassing the client API."""
        bucket = S3Bucket(name=name)
        self.buckets[name] = bucket
        return bucket

    def set_failure_mode(
        self, should_fail: bool, message: str = "Simulated failure"
    ) -> None:
        """Configure failure mode for testing error handling."""
        self.should_fail = should_fail
        self.failure_message = message

    def fail_uploads_under(self, *prefixes: str) -> None:
        """Make put_object fail for keys starting with any of the prefixes."""
        self.failing_key_prefixes = prefixes

    def set_delay(self, seconds: float) -> None:
        """Set artificial delay for testing timeouts."""
        self.delay_seconds = seconds

    def _before_operation(self) -> None:
        self.operation_count += 1
        if self.delay_seconds > 0:
            time.sleep(self.delay_seconds)
        if self.should_fail:
            raise Exception(self.failure_message)

    def list_buckets(self) -> Dict[str, Any]:
        """List buckets."""
        self._before_operation()
        if self.fail_list_buckets:
            raise _client_error("AccessDenied", "Access Denied", "ListBuckets")
        return {"Buckets": [{"Name": name} for name in self.buckets]}

    def create_bucket(self, Bucket: str, **kwargs: Any) -> Dict[str, Any]:
        """Create a bucket; raises like S3 when it already exists."""
        self._before_operation()
        self.create_bucket_calls += 1
        if self.fail_create_bucket:
            raise _client_error("AccessDenied", "Access Denied", "CreateBucket")
        if Bucket in self.buckets:
            raise _client_error(
                "BucketAlreadyOwnedByYou",
                "Your previous request to create the named bucket succeeded",
                "CreateBucket",
            )
        self.add_bucket(Bucket)
        return {"Location": f"/{Bucket}"}

    def put_bucket_policy(self, Bucket: str, Policy: str) -> Dict[str, Any]:
        """Attach a bucket policy."""
        self._before_operation()
        bucket = self.buckets.get(Bucket)
        if not bucket:
            raise _client_error("NoSuchBucket", f"Bucket {Bucket} not found", "PutBucketPolicy")
        bucket.policy = Policy
        return {"ResponseMetadata": {"HTTPStatusCode": 204}}

    def put_object(
        self,
        Bucket: str,
        Key: str,
        Body: bytes,
        ContentType: str,
        CacheControl: Optional[str] = None,
        IfNoneMatch: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Put object to S3."""
        self._before_operation()

        if self.failing_key_prefixes and Key.startswith(self.failing_key_prefixes):
            raise _client_error("InternalError", f"Simulated failure for {Key}", "PutObject")

        bucket = self.buckets.get(Bucket)
        if not bucket:
            raise _client_error("NoSuchBucket", f"Bucket {Bucket} not found", "PutObject")

        if IfNoneMatch == "*" and Key in bucket.objects:
            raise _client_error(
                "PreconditionFailed",
                "At least one of the pre-conditions you specified did not hold",
                "PutObject",
            )

        bucket.add_object(Key, Body, ContentType, CacheControl)

        return {
            "ETag": f'"fake-etag-{Key}"',
            "ResponseMetadata": {"HTTPStatusCode": 200},
        }


class FakeLogger:
    """Fake logger for testing with support for LogContext."""

    def __init__(self, name: str = "test_logger"):
        self.name = name
        self.logs: List[Dict[str, Any]] = []

    def _log(
        self, level: str, message: str, context: Any = None, **kwargs: Any
    ) -> None:
        """Internal logging method with context support."""
        log_entry = {
            "level": level,
            "message": message,
            "timestamp": time.time(),
            **kwargs,
        }

        if context is not None:
            if hasattr(context, "correlation_id"):
                log_entry["correlation_id"] = context.correlation_id
            if hasattr(context, "operation"):
                log_entry["operation"] = context.operation
            if hasattr(context, "component"):
                log_entry["component"] = context.component
            if hasattr(context, "metadata"):
                log_entry.update(context.metadata)

        self.logs.append(log_entry)

    def debug(self, message: str, context: Any = None, **kwargs: Any) -> None:
        """Log debug message."""
        self._log("DEBUG", message, context, **kwargs)

    def info(self, message: str, context: Any = None, **kwargs: Any) -> None:
        """Log info message."""
        self._log("INFO", message, context, **kwargs)

    def warning(self, message: str, context: Any = None, **kwargs: Any) -> None:
        """Log warning message."""
        self._log("WARNING", message, context, **kwargs)

    def error(self, message: str, context: Any = None, **kwargs: Any) -> None:
        """Log error message."""
        self._log("ERROR", message, context, **kwargs)

    def get_logs(self, level: Optional[str] = None) -> List[Dict[str, Any]]:
        """Get logged messages, optionally filtered by level."""
        if level:
            return [log for log in self.logs if log["level"] == level]
        return self.logs.copy()

    def clear_logs(self) -> None:
        """Clear all logged messages."""
        self.logs.clear()


class FakePhotoRepository:
    """In-memory persistence collaborator."""

    def __init__(self, cafes: Optional[List[Cafe]] = None):
        self.cafes: List[Cafe] = list(cafes or [])
        self.photos: List[GuestPhoto] = []
        self.should_fail = False
        self.failure_message = "Simulated database failure"
        self.failing_file_names: Tuple[str, ...] = ()
        self.delay_seconds = 0.0

    def set_failure_mode(
        self, should_fail: bool, message: str = "Simulated database failure"
    ) -> None:
        self.should_fail = should_fail
        self.failure_message = message

    def list_cafes(self) -> List[Cafe]:
        if self.delay_seconds > 0:
            time.sleep(self.delay_seconds)
        if self.should_fail:
            raise Exception(self.failure_message)
        return sorted(self.cafes, key=lambda cafe: cafe.name)

    def create_guest_photo(
        self, image_url: str, cafe_id: str, metadata: PhotoMetadata
    ) -> GuestPhoto:
        if self.should_fail:
            raise Exception(self.failure_message)
        if metadata.original_file_name in self.failing_file_names:
            raise PersistenceError(f"Insert rejected for {metadata.original_file_name}")
        photo = GuestPhoto(
            id=str(uuid.uuid4()), image_url=image_url, cafe_id=cafe_id, metadata=metadata
        )
        self.photos.append(photo)
        return photo


def create_test_image(
    width: int = 100,
    height: int = 100,
    mode: str = "RGB",
    image_format: str = "JPEG",
    exif: Optional[Dict[int, Any]] = None,
) -> bytes:
    """Create a test image in memory, optionally carrying EXIF tags."""
    color = (255, 0, 0, 255) if mode == "RGBA" else "red"
    image = Image.new(mode, (width, height), color=color)

    # Add some pattern to make it more realistic
    fill = (0, 0, 255, 255) if mode == "RGBA" else (0, 0, 255)
    for x in range(0, width, 20):
        for y in range(0, height, 20):
            if (x + y) % 40 == 0:
                image.paste(fill, (x, y, min(x + 10, width), min(y + 10, height)))

    save_kwargs: Dict[str, Any] = {}
    if image_format == "JPEG":
        save_kwargs["quality"] = 95
    if exif:
        image_exif = Image.Exif()
        for tag, value in exif.items():
            image_exif[tag] = value
        save_kwargs["exif"] = image_exif.tobytes()

    img_bytes = io.BytesIO()
    image.save(img_bytes, format=image_format, **save_kwargs)
    return img_bytes.getvalue()


def create_source_image(
    name: str = "photo.jpg",
    width: int = 400,
    height: int = 300,
    image_format: str = "JPEG",
) -> SourceImage:
    """Create a SourceImage wrapping a generated picture."""
    content_type = f"image/{image_format.lower()}"
    return SourceImage(
        name=name,
        data=create_test_image(width, height, image_format=image_format),
        content_type=content_type,
    )


def create_corrupt_source_image(name: str = "broken.jpg") -> SourceImage:
    """A SourceImage whose bytes are not an image."""
    return SourceImage(name=name, data=b"This is not an image", content_type="image/jpeg")


def setup_test_s3_environment(bucket: str = "guest-photos") -> FakeS3Client:
    """Set up a test S3 environment with an empty photo bucket."""
    s3_client = FakeS3Client()
    s3_client.add_bucket(bucket)
    return s3_client
