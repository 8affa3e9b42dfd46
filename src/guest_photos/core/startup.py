"""Bounded startup for the upload page: load cafes and confirm the bucket."""

import threading
from typing import Any, Dict, List, Optional

from .error_handling import translate_errors
from .exceptions import PersistenceError, StartupTimeoutError
from .models import BucketConfig, Cafe
from .protocols import CafeDirectory, StorageService

DEFAULT_STARTUP_TIMEOUT = 10.0
STARTUP_THREAD_NAME = "upload-startup"


def load_upload_context(
    cafes: CafeDirectory,
    storage: StorageService,
    bucket: str,
    bucket_config: Optional[BucketConfig] = None,
    timeout: float = DEFAULT_STARTUP_TIMEOUT,
) -> List[Cafe]:
    """
    Load the cafe list and make sure the storage bucket exists.

    Both steps share one wall-clock budget. Bucket provisioning never fails
    the startup; a failed cafe listing does. The work runs on a daemon
    thread, so a collaborator that never returns cannot keep the process
    alive after the deadline.

    Raises:
        StartupTimeoutError: If the budget is exceeded
        PersistenceError: If the cafes cannot be loaded
    """
    outcome: Dict[str, Any] = {}

    def _load() -> None:
        try:
            with translate_errors(PersistenceError, "Failed to load cafes"):
                cafe_list = cafes.list_cafes()
            storage.ensure_bucket(bucket, bucket_config)
            outcome["cafes"] = cafe_list
        except BaseException as exc:  # noqa: BLE001
            outcome["error"] = exc

    worker = threading.Thread(target=_load, name=STARTUP_THREAD_NAME, daemon=True)
    worker.start()
    worker.join(timeout)

    if worker.is_alive():
        raise StartupTimeoutError(
            f"Request timed out after {timeout:g}s. Please reload the page."
        )
    if "error" in outcome:
        raise outcome["error"]
    return outcome["cafes"]
