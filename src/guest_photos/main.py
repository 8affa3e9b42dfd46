"""Main module for the guest photos CLI."""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from . import __version__
from .core import (
    GuestPhoto,
    GuestPhotosError,
    OptimizationConfig,
    OutputFormat,
    SourceImage,
    StorageConfig,
    UploadLimits,
    UploadProgress,
    ValidationError,
    ValidationOptions,
    configure_logging,
    get_logger,
)
from .core.factories import UploadPipelineFactory
from .core.models import MEGABYTE
from .core.observability import MetricsCollector
from .core.repository import CatalogRepository
from .core.services import ImageTransformerService, screen_selection
from .core.startup import DEFAULT_STARTUP_TIMEOUT, load_upload_context


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for all subcommands."""
    parser = argparse.ArgumentParser(
        prog="guest-photos",
        description="Guest Photos - optimize and publish cafe guest photos",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Check files before uploading
  guest-photos validate photo1.jpg photo2.png

  # Optimize locally and write the result plus a thumbnail
  guest-photos optimize photo1.jpg --output-dir out/

  # Register a cafe, then upload a batch for it
  guest-photos cafes add "Moonlight" --address "3 Side St" --catalog catalog.json
  guest-photos upload photo1.jpg photo2.jpg --cafe-id <id> --catalog catalog.json

  # Moderate: list the queue, publish or remove a photo
  guest-photos photos list --pending --catalog catalog.json
  guest-photos photos approve <photo-id> --catalog catalog.json
        """,
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    validate_parser = subparsers.add_parser(
        "validate", help="Check files against size, type and dimension rules"
    )
    validate_parser.add_argument("files", nargs="+", type=Path)
    validate_parser.add_argument("--max-size-mb", type=float, default=10.0)
    validate_parser.add_argument("--min-width", type=int, default=100)
    validate_parser.add_argument("--min-height", type=int, default=100)

    optimize_parser = subparsers.add_parser(
        "optimize", help="Strip metadata, resize and write a thumbnail locally"
    )
    optimize_parser.add_argument("file", type=Path)
    optimize_parser.add_argument("--output-dir", type=Path, default=Path("."))
    optimize_parser.add_argument("--max-width", type=int, default=1920)
    optimize_parser.add_argument("--max-height", type=int, default=1920)
    optimize_parser.add_argument("--quality", type=float, default=0.8)
    optimize_parser.add_argument(
        "--format",
        default=OutputFormat.WEBP.value,
        choices=[f.value for f in OutputFormat],
    )
    optimize_parser.add_argument("--thumbnail-size", type=int, default=300)

    bucket_parser = subparsers.add_parser(
        "ensure-bucket", help="Create the photo bucket if it does not exist"
    )
    bucket_parser.add_argument("--bucket", default=None, help="Bucket name override")

    upload_parser = subparsers.add_parser(
        "upload", help="Upload a batch of photos for a cafe"
    )
    upload_parser.add_argument("files", nargs="+", type=Path)
    upload_parser.add_argument("--cafe-id", required=True, help="Target cafe id")
    upload_parser.add_argument(
        "--catalog", type=Path, required=True, help="JSON catalog of cafes and photos"
    )
    upload_parser.add_argument("--bucket", default=None, help="Bucket name override")
    upload_parser.add_argument("--max-files", type=int, default=10)
    upload_parser.add_argument("--max-size-mb", type=float, default=10.0)
    upload_parser.add_argument(
        "--validate", action="store_true", help="Run the full pre-flight validation per file"
    )
    upload_parser.add_argument(
        "--timeout", type=float, default=DEFAULT_STARTUP_TIMEOUT,
        help="Startup timeout in seconds",
    )

    cafes_parser = subparsers.add_parser("cafes", help="Register and list cafes")
    cafes_sub = cafes_parser.add_subparsers(dest="cafes_command")
    cafes_add = cafes_sub.add_parser("add", help="Register a cafe")
    cafes_add.add_argument("name")
    cafes_add.add_argument("--address", default="")
    cafes_add.add_argument("--value", type=int, default=None)
    cafes_list = cafes_sub.add_parser("list", help="List cafes by name")
    for sub in (cafes_add, cafes_list):
        sub.add_argument("--catalog", type=Path, required=True)

    photos_parser = subparsers.add_parser("photos", help="Review and moderate guest photos")
    photos_sub = photos_parser.add_subparsers(dest="photos_command")
    photos_list = photos_sub.add_parser("list", help="List photos, newest first")
    photos_list.add_argument("--cafe", dest="cafe_id", default=None, help="Only this cafe")
    state = photos_list.add_mutually_exclusive_group()
    state.add_argument("--pending", action="store_true", help="Only photos awaiting approval")
    state.add_argument("--approved", action="store_true", help="Only published photos")
    photos_list.add_argument("--page", type=int, default=0)
    photos_list.add_argument("--limit", type=int, default=20)
    photos_approve = photos_sub.add_parser("approve", help="Publish a photo")
    photos_approve.add_argument("photo_id")
    photos_delete = photos_sub.add_parser("delete", help="Remove a photo record")
    photos_delete.add_argument("photo_id")
    for sub in (photos_list, photos_approve, photos_delete):
        sub.add_argument("--catalog", type=Path, required=True)

    subparsers.add_parser("version", help="Show version information")
    return parser


def _storage_config(bucket: Optional[str]) -> StorageConfig:
    config = StorageConfig.from_env()
    if bucket:
        config = config.model_copy(update={"bucket": bucket})
    return config


def run_validate(args: argparse.Namespace) -> int:
    logger = get_logger("cli")
    transformer = ImageTransformerService()
    options = ValidationOptions(
        max_size=int(args.max_size_mb * MEGABYTE),
        min_width=args.min_width,
        min_height=args.min_height,
    )

    failures = 0
    for path in args.files:
        result = transformer.validate(SourceImage.from_path(path), options)
        if result.valid:
            logger.info(
                f"{path.name}: OK ({result.dimensions.width}x{result.dimensions.height})"
            )
        else:
            failures += 1
            logger.warning(f"{path.name}: {result.error}")
    return 1 if failures else 0


def run_optimize(args: argparse.Namespace) -> int:
    logger = get_logger("cli")
    transformer = ImageTransformerService()
    config = OptimizationConfig(
        max_width=args.max_width,
        max_height=args.max_height,
        quality=args.quality,
        format=OutputFormat(args.format),
    )

    source = SourceImage.from_path(args.file)
    cleaned = transformer.remove_exif(source)
    optimized = transformer.optimize(cleaned, config)
    thumbnail = transformer.generate_thumbnail(optimized, args.thumbnail_size)

    args.output_dir.mkdir(parents=True, exist_ok=True)
    (args.output_dir / optimized.file_name).write_bytes(optimized.data)
    (args.output_dir / thumbnail.file_name).write_bytes(thumbnail.data)

    logger.info(
        f"{source.name}: {source.size} -> {optimized.size} bytes, "
        f"{optimized.dimensions.width}x{optimized.dimensions.height}, "
        f"thumbnail {thumbnail.file_name}"
    )
    return 0


def run_ensure_bucket(args: argparse.Namespace) -> int:
    storage_config = _storage_config(args.bucket)
    storage = UploadPipelineFactory.create_storage(storage_config)
    storage.ensure_bucket(storage_config.bucket)
    return 0


def _print_progress(progress: UploadProgress) -> None:
    current = f" {progress.current_file}" if progress.current_file else ""
    print(
        f"[{progress.stage.value:<10}] {progress.progress:5.1f}% "
        f"{progress.completed}/{progress.total}{current}"
    )


def run_upload(args: argparse.Namespace) -> int:
    logger = get_logger("cli")
    storage_config = _storage_config(args.bucket)
    repository = CatalogRepository(args.catalog)
    storage = UploadPipelineFactory.create_storage(storage_config)

    cafes = load_upload_context(
        repository, storage, storage_config.bucket, timeout=args.timeout
    )
    if not any(cafe.id == args.cafe_id for cafe in cafes):
        logger.error(f"Unknown cafe: {args.cafe_id}")
        return 1

    limits = UploadLimits(
        max_files=args.max_files, max_file_size=int(args.max_size_mb * MEGABYTE)
    )
    files = [SourceImage.from_path(path) for path in args.files]
    screened = screen_selection(files, limits)

    accepted: List[SourceImage] = []
    for source, result in zip(files, screened):
        if result.valid:
            accepted.append(source)
        else:
            logger.warning(f"Skipping {source.name}: {result.error}")
    if not accepted:
        logger.error("No valid files to upload")
        return 1

    metrics = MetricsCollector()
    orchestrator = UploadPipelineFactory.create_pipeline(
        repository,
        storage_config=storage_config,
        storage=storage,
        validation=ValidationOptions() if args.validate else None,
        metrics_collector=metrics,
    )
    summary = orchestrator.upload_images(accepted, args.cafe_id, _print_progress)

    for error in summary.errors:
        logger.error(error)
    stats = metrics.get_summary("upload_image")
    if stats:
        logger.info(
            f"Uploaded {summary.uploaded_count}/{len(accepted)} photos "
            f"in {stats['total_duration']:.1f}s"
        )
    return 0 if summary.success else 1


def run_cafes(args: argparse.Namespace) -> int:
    if args.cafes_command is None:
        get_logger("cli").error("Choose a cafes command: add or list")
        return 1

    repository = CatalogRepository(args.catalog)
    if args.cafes_command == "add":
        cafe = repository.create_cafe(args.name, args.address, args.value)
        print(cafe.id)
        return 0

    for cafe in repository.list_cafes():
        print(f"{cafe.id}\t{cafe.name}\t{cafe.address}")
    return 0


def _photo_line(photo: GuestPhoto) -> str:
    status = "approved" if photo.approved else "pending"
    return (
        f"{photo.id}\t{photo.cafe_id}\t{status}\t"
        f"{photo.created_at.isoformat(timespec='seconds')}\t{photo.image_url}"
    )


def run_photos(args: argparse.Namespace) -> int:
    logger = get_logger("cli")
    if args.photos_command is None:
        logger.error("Choose a photos command: list, approve or delete")
        return 1

    repository = CatalogRepository(args.catalog)
    if args.photos_command == "list":
        approved: Optional[bool] = None
        if args.pending:
            approved = False
        elif args.approved:
            approved = True
        photos = repository.list_guest_photos(
            page=args.page, cafe_id=args.cafe_id, limit=args.limit, approved=approved
        )
        for photo in photos:
            print(_photo_line(photo))
        return 0

    if args.photos_command == "approve":
        photo = repository.approve_guest_photo(args.photo_id)
        print(_photo_line(photo))
        return 0

    if not repository.delete_guest_photo(args.photo_id):
        logger.error(f"Unknown photo: {args.photo_id}")
        return 1
    logger.info(f"Deleted photo {args.photo_id}")
    return 0


COMMANDS = {
    "validate": run_validate,
    "optimize": run_optimize,
    "ensure-bucket": run_ensure_bucket,
    "upload": run_upload,
    "cafes": run_cafes,
    "photos": run_photos,
}


def main(argv: Optional[List[str]] = None) -> None:
    """
    Entry point for the guest photos command-line interface.

    Dispatches to the selected subcommand and exits with its status code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "version":
        print("Guest Photos CLI")
        print(f"Version {__version__}")
        sys.exit(0)

    handler = COMMANDS.get(args.command)
    if handler is None:
        parser.print_help()
        sys.exit(1)

    configure_logging(level="DEBUG" if args.debug else None)
    logger = get_logger("cli")

    try:
        sys.exit(handler(args))
    except KeyboardInterrupt:
        logger.warning("Interrupted by user.")
        sys.exit(130)
    except ValidationError as e:
        logger.error(f"Invalid selection: {e}")
        sys.exit(1)
    except GuestPhotosError as e:
        logger.error(f"{type(e).__name__}: {e}")
        sys.exit(1)
    except OSError as e:
        logger.error(f"File error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
