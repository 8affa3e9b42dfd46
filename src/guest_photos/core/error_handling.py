# src/guest_photos/core/error_handling.py

import functools
from contextlib import contextmanager
from typing import Iterator, List, Type

from botocore.exceptions import ClientError as BotocoreClientError

from .exceptions import GuestPhotosError, UploadError
from .logging_config import get_logger


def client_error_code(error: Exception) -> str:
    """Return the S3 error code of a botocore ClientError, or an empty string."""
    if isinstance(error, BotocoreClientError):
        return error.response.get("Error", {}).get("Code", "")
    return ""


def with_error_handling(func):
    """
    A decorator to translate storage client errors into pipeline errors.

    botocore ClientError becomes UploadError. Pipeline errors and anything
    else propagate unchanged.
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        logger = get_logger(func.__qualname__)
        try:
            return func(*args, **kwargs)
        except GuestPhotosError:
            raise
        except BotocoreClientError as e:
            logger.error(f"Storage operation failed in '{func.__name__}': {e}")
            raise UploadError(f"Storage operation failed: {e}") from e
    return wrapper


@contextmanager
def translate_errors(error_cls: Type[GuestPhotosError], message: str) -> Iterator[None]:
    """Re-raise any non-pipeline exception from the block as error_cls."""
    try:
        yield
    except GuestPhotosError:
        raise
    except Exception as exc:  # noqa: BLE001
        raise error_cls(f"{message}: {exc}") from exc


class BatchOperationContextManager:
    """
    Context manager for batch operations to collect and summarize errors.
    """
    def __init__(self, operation_name="Batch Operation"):
        self.operation_name = operation_name
        self.errors = []
        self.logger = get_logger(self.__class__.__name__)

    def __enter__(self):
        self.logger.info(f"Starting {self.operation_name}.")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.errors:
            self.logger.warning(
                f"{self.operation_name} completed with {len(self.errors)} error(s)."
            )
            for i, error_detail in enumerate(self.errors):
                self.logger.error(
                    f"  Error {i+1}/{len(self.errors)} for item "
                    f"'{error_detail['item']}': {error_detail['error']}"
                )
        elif exc_type:
            self.logger.error(
                f"{self.operation_name} failed due to an unhandled exception: {exc_val}",
                exc_info=(exc_type, exc_val, exc_tb)
            )
        else:
            self.logger.info(f"{self.operation_name} completed successfully.")

        # Never suppress exceptions that escaped the block.
        return False

    def add_error(self, error_message: str, item_identifier: str = "Unknown item"):
        """
        Call this method within the 'with' block to report an error for a specific item.

        Args:
            error_message (str): The error message or exception string.
            item_identifier (str): A string identifying the item that failed (e.g., file name).
        """
        self.errors.append({"item": item_identifier, "error": str(error_message)})
        self.logger.debug(f"Error added for item '{item_identifier}' in {self.operation_name}: {error_message}")

    def error_messages(self) -> List[str]:
        """Collected errors as "<item>: <error>" strings, in insertion order."""
        return [f"{detail['item']}: {detail['error']}" for detail in self.errors]
