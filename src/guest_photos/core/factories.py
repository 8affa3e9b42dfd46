"""Factory classes for creating configured service instances."""

from typing import Any, Optional

import boto3

from .models import (
    DEFAULT_OPTIMIZATION_CONFIG,
    BucketConfig,
    OptimizationConfig,
    StorageConfig,
    ValidationOptions,
)
from .observability import MetricsCollector, StructuredLogger
from .protocols import LoggerProtocol, PhotoRecordWriter, S3ClientProtocol, StorageService
from .services import ImageTransformerService, S3StorageClient, UploadOrchestrator


class LoggerFactory:
    """Factory for creating logger instances."""

    @staticmethod
    def create_logger(name: str, level: Optional[str] = None) -> LoggerProtocol:
        """Create a configured structured logger."""
        return StructuredLogger(name, level=level)


class S3ClientFactory:
    """Factory for creating S3 client instances."""

    @staticmethod
    def create_s3_client(config: Optional[StorageConfig] = None, **kwargs: Any) -> S3ClientProtocol:
        """Create S3 client, honouring a custom endpoint and region."""
        config = config or StorageConfig()
        if config.endpoint_url:
            kwargs.setdefault("endpoint_url", config.endpoint_url)
        if config.region:
            kwargs.setdefault("region_name", config.region)
        session = boto3.Session()
        return session.client("s3", **kwargs)  # type: ignore


class UploadPipelineFactory:
    """Factory for creating the complete upload pipeline."""

    @staticmethod
    def create_storage(
        storage_config: Optional[StorageConfig] = None,
        s3_client: Optional[S3ClientProtocol] = None,
        logger: Optional[LoggerProtocol] = None,
        bucket_config: Optional[BucketConfig] = None,
    ) -> S3StorageClient:
        """Create the storage client."""
        storage_config = storage_config or StorageConfig.from_env()
        if s3_client is None:
            s3_client = S3ClientFactory.create_s3_client(storage_config)
        if logger is None:
            logger = LoggerFactory.create_logger("guest-photos.storage")
        return S3StorageClient(s3_client, storage_config, logger, bucket_config)

    @staticmethod
    def create_pipeline(
        records: PhotoRecordWriter,
        storage_config: Optional[StorageConfig] = None,
        storage: Optional[StorageService] = None,
        s3_client: Optional[S3ClientProtocol] = None,
        logger: Optional[LoggerProtocol] = None,
        optimization_config: OptimizationConfig = DEFAULT_OPTIMIZATION_CONFIG,
        validation: Optional[ValidationOptions] = None,
        metrics_collector: Optional[MetricsCollector] = None,
    ) -> UploadOrchestrator:
        """Create a fully configured upload orchestrator."""
        storage_config = storage_config or StorageConfig.from_env()

        if logger is None:
            logger = LoggerFactory.create_logger("guest-photos")

        if storage is None:
            storage = UploadPipelineFactory.create_storage(
                storage_config, s3_client=s3_client, logger=logger
            )

        return UploadOrchestrator(
            transformer=ImageTransformerService(),
            storage=storage,
            records=records,
            logger=logger,
            bucket=storage_config.bucket,
            optimization_config=optimization_config,
            validation=validation,
            metrics_collector=metrics_collector,
        )
