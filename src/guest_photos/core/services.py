"""Service implementations for the guest photo upload pipeline."""

import json
import time
from typing import Dict, List, Optional, Sequence
from urllib.parse import quote

from PIL import Image

from .error_handling import (
    BatchOperationContextManager,
    client_error_code,
    translate_errors,
    with_error_handling,
)
from .exceptions import ConfigurationError, DecodeError, PersistenceError, UploadError, ValidationError
from .image_utils import (
    DEFAULT_THUMBNAIL_SIZE,
    THUMBNAIL_FORMAT,
    THUMBNAIL_QUALITY,
    asset_file_name,
    build_object_keys,
    calculate_target_size,
    center_crop_box,
    decode_image,
    encode_image,
    generate_object_name,
    size_reduction_percent,
    strip_metadata,
)
from .models import (
    DEFAULT_OPTIMIZATION_CONFIG,
    BucketConfig,
    Dimensions,
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
from .observability import LogContext, MetricsCollector
from .protocols import (
    ImageTransformer,
    LoggerProtocol,
    PhotoRecordWriter,
    ProgressCallback,
    S3ClientProtocol,
    StorageService,
)

PRIVACY_MAX_DIMENSION = 4000
PRIVACY_QUALITY = 0.9

_BUCKET_ALREADY_EXISTS_CODES = ("BucketAlreadyOwnedByYou", "BucketAlreadyExists")


def _mb(size: int) -> str:
    return f"{size / (1024 * 1024):.1f}MB"


def _type_list(types: Sequence[str]) -> str:
    return ", ".join(t.split("/")[-1] for t in types)


class ImageTransformerService(ImageTransformer):
    """Pure image transformation service with no I/O dependencies."""

    def optimize(
        self, source: SourceImage, config: OptimizationConfig = DEFAULT_OPTIMIZATION_CONFIG
    ) -> OptimizedAsset:
        """
        Resize an image to fit the configured bounds and re-encode it.

        Aspect ratio is preserved and images are never upscaled. The output
        carries none of the source metadata.

        Raises:
            DecodeError: If the source cannot be decoded
            EncodeError: If the encoder produces no output
        """
        image = decode_image(source.data)
        width, height = calculate_target_size(
            image.width, image.height, config.max_width, config.max_height
        )

        clean = strip_metadata(image)
        if clean.size != (width, height):
            clean = clean.resize((width, height), Image.Resampling.LANCZOS)

        data = encode_image(clean, config.format, config.quality)
        stem = source.stem
        if not stem.startswith("optimized_"):
            stem = f"optimized_{stem}"

        return OptimizedAsset(
            file_name=f"{stem}.{config.format.value}",
            data=data,
            content_type=config.format.content_type,
            format=config.format,
            dimensions=Dimensions(width=width, height=height),
            size_reduction=size_reduction_percent(source.size, len(data)),
        )

    def generate_thumbnail(
        self, asset: OptimizedAsset, size: int = DEFAULT_THUMBNAIL_SIZE
    ) -> ThumbnailAsset:
        """
        Center-crop the largest square from an image and scale it to size x size.

        Thumbnails are always WEBP at a fixed quality.
        """
        if size <= 0:
            raise ConfigurationError(f"Thumbnail size must be positive, got {size}")

        image = strip_metadata(decode_image(asset.data))
        thumbnail = image.resize(
            (size, size), Image.Resampling.LANCZOS, box=center_crop_box(*image.size)
        )
        data = encode_image(thumbnail, THUMBNAIL_FORMAT, THUMBNAIL_QUALITY)

        stem = asset.file_name.rsplit(".", 1)[0]
        return ThumbnailAsset(
            file_name=asset_file_name("thumb", stem, THUMBNAIL_FORMAT),
            data=data,
            content_type=THUMBNAIL_FORMAT.content_type,
            dimensions=Dimensions(width=size, height=size),
        )

    def remove_exif(self, source: SourceImage) -> SourceImage:
        """Privacy pass: decode and re-encode at generous bounds, dropping metadata."""
        output_format = OutputFormat.PNG if "png" in source.content_type else OutputFormat.WEBP
        config = OptimizationConfig(
            max_width=PRIVACY_MAX_DIMENSION,
            max_height=PRIVACY_MAX_DIMENSION,
            quality=PRIVACY_QUALITY,
            format=output_format,
        )
        cleaned = self.optimize(source, config)
        return SourceImage(
            name=source.name, data=cleaned.data, content_type=cleaned.content_type
        )

    def validate(
        self, source: SourceImage, options: Optional[ValidationOptions] = None
    ) -> ValidationResult:
        """Check size, media type and minimum dimensions, in that order."""
        options = options or ValidationOptions()

        if source.size > options.max_size:
            return ValidationResult(
                valid=False,
                reason="size",
                error=f"File size exceeds {_mb(options.max_size)}.",
            )

        if source.content_type not in options.allowed_types:
            return ValidationResult(
                valid=False,
                reason="type",
                error=(
                    "Unsupported file type. "
                    f"(only {_type_list(options.allowed_types)} files can be uploaded)"
                ),
            )

        try:
            image = decode_image(source.data)
        except DecodeError:
            return ValidationResult(
                valid=False, reason="corrupt", error="The image file is corrupted."
            )

        dimensions = Dimensions(width=image.width, height=image.height)
        if image.width < options.min_width or image.height < options.min_height:
            return ValidationResult(
                valid=False,
                reason="dimensions",
                error=(
                    "Image is too small. "
                    f"(minimum {options.min_width}x{options.min_height}px)"
                ),
                dimensions=dimensions,
            )

        return ValidationResult(valid=True, dimensions=dimensions)


def screen_selection(
    files: Sequence[SourceImage],
    limits: Optional[UploadLimits] = None,
    already_selected: int = 0,
) -> List[ValidationResult]:
    """
    Screen a file selection before a batch starts.

    Args:
        files: Newly selected files
        limits: Count, size and type limits
        already_selected: Files already accepted into the selection

    Returns:
        One result per file, in input order

    Raises:
        ValidationError: If the selection would exceed the file count limit
    """
    limits = limits or UploadLimits()
    if already_selected + len(files) > limits.max_files:
        raise ValidationError(
            f"At most {limits.max_files} images can be uploaded.", reason="count"
        )

    results = []
    for source in files:
        if source.content_type not in limits.allowed_types:
            results.append(
                ValidationResult(
                    valid=False,
                    reason="type",
                    error=(
                        "Unsupported file type. "
                        f"(only {_type_list(limits.allowed_types)} files can be uploaded)"
                    ),
                )
            )
        elif source.size > limits.max_file_size:
            results.append(
                ValidationResult(
                    valid=False,
                    reason="size",
                    error=f"File size exceeds {_mb(limits.max_file_size)}.",
                )
            )
        else:
            results.append(ValidationResult(valid=True))
    return results


class S3StorageClient(StorageService):
    """Object storage primitives on top of an S3-compatible client."""

    def __init__(
        self,
        s3_client: S3ClientProtocol,
        config: StorageConfig,
        logger: LoggerProtocol,
        bucket_config: Optional[BucketConfig] = None,
    ):
        self._s3_client = s3_client
        self._config = config
        self._logger = logger
        self._default_bucket_config = bucket_config or BucketConfig()
        self._bucket_configs: Dict[str, BucketConfig] = {}

    def _list_bucket_names(self) -> Optional[List[str]]:
        """Bucket names, or None when the listing failed."""
        try:
            response = self._s3_client.list_buckets()
        except Exception as e:  # noqa: BLE001
            self._logger.warning(f"Could not list buckets: {e}")
            return None
        return [bucket["Name"] for bucket in response.get("Buckets", [])]

    def bucket_exists(self, name: str) -> bool:
        names = self._list_bucket_names()
        return names is not None and name in names

    def create_bucket(self, name: str, config: Optional[BucketConfig] = None) -> bool:
        """Create a bucket and, when public, attach a public-read policy."""
        config = config or self._default_bucket_config
        kwargs = {"Bucket": name}
        if self._config.region and self._config.region != "us-east-1":
            kwargs["CreateBucketConfiguration"] = {
                "LocationConstraint": self._config.region
            }

        try:
            self._s3_client.create_bucket(**kwargs)
        except Exception as e:  # noqa: BLE001
            if client_error_code(e) not in _BUCKET_ALREADY_EXISTS_CODES:
                self._logger.error(f"Failed to create storage bucket {name}: {e}")
                return False
            self._logger.info(f"Bucket {name} already exists")

        self._bucket_configs[name] = config

        if config.public:
            policy = {
                "Version": "2012-10-17",
                "Statement": [
                    {
                        "Sid": "PublicRead",
                        "Effect": "Allow",
                        "Principal": "*",
                        "Action": ["s3:GetObject"],
                        "Resource": [f"arn:aws:s3:::{name}/*"],
                    }
                ],
            }
            try:
                self._s3_client.put_bucket_policy(Bucket=name, Policy=json.dumps(policy))
            except Exception as e:  # noqa: BLE001
                self._logger.error(f"Failed to make bucket {name} public: {e}")

        self._logger.info(f"Created storage bucket {name}")
        return True

    def ensure_bucket(self, name: Optional[str] = None, config: Optional[BucketConfig] = None) -> None:
        """
        Best-effort bucket provisioning.

        Skipped when buckets cannot be listed; creation failures are logged.
        Safe to call repeatedly.
        """
        name = name or self._config.bucket
        config = config or self._default_bucket_config
        self._bucket_configs.setdefault(name, config)

        names = self._list_bucket_names()
        if names is None:
            return
        if name in names:
            self._logger.debug(f"Bucket {name} already exists")
            return
        self.create_bucket(name, config)

    def upload_object(self, bucket: str, key: str, data: bytes, content_type: str) -> str:
        """
        Upload an object without overwriting and return its public URL.

        Raises:
            UploadError: If the bucket rules reject the object or the store fails
        """
        bucket_config = self._bucket_configs.get(bucket)
        if bucket_config is not None:
            if content_type not in bucket_config.allowed_media_types:
                raise UploadError(f"Media type {content_type} is not allowed in {bucket}")
            if len(data) > bucket_config.max_object_size:
                raise UploadError(
                    f"Object exceeds the {_mb(bucket_config.max_object_size)} limit of {bucket}"
                )
            cache_control = bucket_config.cache_control
        else:
            cache_control = self._default_bucket_config.cache_control

        self._logger.debug(f"Uploading to s3://{bucket}/{key}")
        with translate_errors(UploadError, f"Upload of {key} failed"):
            self._put_object(bucket, key, data, content_type, cache_control)
        return self.get_public_url(bucket, key)

    @with_error_handling
    def _put_object(
        self, bucket: str, key: str, data: bytes, content_type: str, cache_control: str
    ) -> None:
        self._s3_client.put_object(
            Bucket=bucket,
            Key=key,
            Body=data,
            ContentType=content_type,
            CacheControl=cache_control,
            IfNoneMatch="*",
        )

    def get_public_url(self, bucket: str, key: str) -> str:
        quoted_key = quote(key)
        if self._config.public_base_url:
            return f"{self._config.public_base_url.rstrip('/')}/{quoted_key}"
        if self._config.endpoint_url:
            return f"{self._config.endpoint_url.rstrip('/')}/{bucket}/{quoted_key}"
        if self._config.region:
            return f"https://{bucket}.s3.{self._config.region}.amazonaws.com/{quoted_key}"
        return f"https://{bucket}.s3.amazonaws.com/{quoted_key}"


class UploadOrchestrator:
    """
    Drives a batch of files through transform, upload and record creation.

    Files are handled strictly one after another. A failing file is recorded
    as an error and never stops the batch.
    """

    def __init__(
        self,
        transformer: ImageTransformer,
        storage: StorageService,
        records: PhotoRecordWriter,
        logger: LoggerProtocol,
        bucket: str,
        optimization_config: OptimizationConfig = DEFAULT_OPTIMIZATION_CONFIG,
        thumbnail_size: int = DEFAULT_THUMBNAIL_SIZE,
        validation: Optional[ValidationOptions] = None,
        metrics_collector: Optional[MetricsCollector] = None,
    ):
        self._transformer = transformer
        self._storage = storage
        self._records = records
        self._logger = logger
        self._bucket = bucket
        self._optimization_config = optimization_config
        self._thumbnail_size = thumbnail_size
        self._validation = validation
        self._metrics_collector = metrics_collector

    def upload_images(
        self,
        files: Sequence[SourceImage],
        cafe_id: str,
        on_progress: ProgressCallback,
    ) -> UploadSummary:
        """
        Upload a batch of images for one cafe.

        on_progress receives a full snapshot at every checkpoint. Reported
        progress never decreases and always ends at 100.
        """
        total = len(files)
        state = UploadProgress(stage=UploadStage.PROCESSING, progress=0.0, total=total)

        def report(stage: UploadStage, progress: float, current_file: Optional[str] = None) -> None:
            state.stage = stage
            state.progress = min(100.0, max(state.progress, progress))
            state.current_file = current_file
            on_progress(state.model_copy(deep=True))

        report(UploadStage.PROCESSING, 0.0)

        with BatchOperationContextManager(f"Upload batch for cafe {cafe_id}") as batch:
            for index, source in enumerate(files):
                start_time = time.time()
                context = LogContext(
                    correlation_id=f"upload_{int(start_time * 1000)}_{index}",
                    operation="upload_image",
                    component="upload_orchestrator",
                ).with_metadata(file_name=source.name, cafe_id=cafe_id)

                try:
                    self._upload_one(index, total, source, cafe_id, report, context)
                except Exception as e:  # noqa: BLE001
                    message = str(e) or type(e).__name__
                    batch.add_error(message, source.name)
                    state.errors = batch.error_messages()
                    self._logger.error(
                        f"Error uploading {source.name}: {message}",
                        context.with_metadata(error_type=type(e).__name__),
                    )
                    self._record_metric(start_time, False, source, message)
                    continue

                state.completed += 1
                report(UploadStage.UPLOADING, 50 + (index + 1) / total * 40, source.name)
                self._logger.info("Uploaded image", context)
                self._record_metric(start_time, True, source)

        final_stage = (
            UploadStage.ERROR
            if state.errors and state.completed == 0
            else UploadStage.COMPLETED
        )
        report(final_stage, 100.0)

        return UploadSummary(
            success=state.completed > 0,
            uploaded_count=state.completed,
            errors=list(state.errors),
        )

    def _upload_one(
        self,
        index: int,
        total: int,
        source: SourceImage,
        cafe_id: str,
        report,
        context: LogContext,
    ) -> None:
        report(UploadStage.PROCESSING, index / total * 50, source.name)

        if self._validation is not None:
            self._transformer.validate(source, self._validation).raise_for_error(source.name)

        self._logger.debug("Removing metadata", context.with_operation("remove_exif"))
        cleaned = self._transformer.remove_exif(source)
        optimized = self._transformer.optimize(cleaned, self._optimization_config)
        thumbnail = self._transformer.generate_thumbnail(optimized, self._thumbnail_size)

        report(UploadStage.UPLOADING, 50 + index / total * 40, source.name)

        object_name = generate_object_name()
        main_key, thumbnail_key = build_object_keys(object_name, optimized.format)

        try:
            self._storage.upload_object(
                self._bucket, main_key, optimized.data, optimized.content_type
            )
        except UploadError as e:
            raise UploadError(f"Main image upload failed: {e}") from e

        try:
            self._storage.upload_object(
                self._bucket, thumbnail_key, thumbnail.data, thumbnail.content_type
            )
        except Exception as e:  # noqa: BLE001
            self._logger.warning(
                f"Thumbnail upload failed: {e}",
                context.with_operation("upload_thumbnail"),
            )

        image_url = self._storage.get_public_url(self._bucket, main_key)
        thumbnail_url = self._storage.get_public_url(self._bucket, thumbnail_key)

        metadata = PhotoMetadata(
            thumbnail_url=thumbnail_url,
            original_file_name=source.name,
            file_size=optimized.size,
            dimensions=optimized.dimensions,
            size_reduction=size_reduction_percent(source.size, optimized.size),
        )
        with translate_errors(PersistenceError, "Failed to create photo record"):
            self._records.create_guest_photo(image_url, cafe_id, metadata)

    def _record_metric(
        self,
        start_time: float,
        success: bool,
        source: SourceImage,
        error_message: Optional[str] = None,
    ) -> None:
        if self._metrics_collector is None:
            return
        self._metrics_collector.record(
            "upload_image",
            start_time,
            success,
            error_message=error_message,
            file_name=source.name,
            source_size=source.size,
        )
