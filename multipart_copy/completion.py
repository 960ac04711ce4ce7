"""Finalizing or rolling back a multipart upload.

A transaction ends with exactly one of two actions:

- finalize: assemble the copied parts, in part-number order, into the
  destination object
- abort: discard the upload, then list its parts to verify the backend
  actually removed them

An abort never ends in success. Even a clean abort is reported as
``AbortedTransfer`` carrying the error that caused it.
"""

import logging
from typing import Any, NoReturn, Optional, Sequence

from multipart_copy.backend import StorageBackend
from multipart_copy.errors import (
    AbortedTransfer,
    AbortError,
    AbortVerificationError,
    FinalizeError,
)
from multipart_copy.models import CopiedPart, Location

logger = logging.getLogger(__name__)


def build_completion_parts(manifest: Sequence[CopiedPart]) -> list[dict[str, Any]]:
    """Build the ordered PartNumber/ETag list for completion.

    Args:
        manifest: Copied parts, in any order.

    Returns:
        Entries sorted by part number.

    Raises:
        ValueError: If part numbers are not exactly 1..N.
    """
    ordered = sorted(manifest, key=lambda part: part.part_number)
    numbers = [part.part_number for part in ordered]
    if numbers != list(range(1, len(ordered) + 1)):
        raise ValueError(f"Part numbers must form 1..{len(ordered)}, got {numbers}")
    return [part.to_completion_entry() for part in ordered]


class CompletionController:
    """Issues the terminal action of a multipart upload.

    Args:
        backend: Storage backend owning the upload
        log: Logger receiving lifecycle events (defaults to the module logger)
    """

    def __init__(self, backend: StorageBackend, log: Optional[logging.Logger] = None):
        self.backend = backend
        self.log = log or logger

    def finalize(
        self,
        destination: Location,
        upload_id: str,
        manifest: Sequence[CopiedPart],
        context: Any = None,
    ) -> dict[str, Any]:
        """Complete the upload from the copied parts.

        Returns:
            The backend's completion response.

        Raises:
            FinalizeError: If the manifest is malformed or the backend
                rejected the completion. The caller must abort.
        """
        try:
            parts = build_completion_parts(manifest)
            response = self.backend.complete(destination, upload_id, parts)
        except Exception as e:
            self.log.error(
                "Multipart copy failed to complete: %s",
                e,
                extra={"context": context, "event": "finalize_failed", "upload_id": upload_id},
            )
            raise FinalizeError(
                f"Failed to complete multipart copy to {destination}: {e}",
                upload_id=upload_id,
                cause=e,
            ) from e

        self.log.info(
            "Multipart copy completed successfully",
            extra={"context": context, "event": "finalized", "upload_id": upload_id},
        )
        return response

    def abort(
        self,
        destination: Location,
        upload_id: str,
        error: BaseException,
        context: Any = None,
    ) -> NoReturn:
        """Abort the upload and verify no parts were left behind.

        Args:
            destination: Object the upload was assembling
            upload_id: Upload to abort
            error: The failure that triggered the abort
            context: Correlation token attached to log records

        Raises:
            AbortError: If the abort or the verification listing failed.
            AbortVerificationError: If parts remain after the abort.
            AbortedTransfer: If the upload was aborted and verified clean.
        """
        extra = {"context": context, "upload_id": upload_id}

        try:
            self.backend.abort(destination, upload_id)
        except Exception as e:
            self.log.error(
                "Abort multipart copy failed: %s",
                e,
                extra={**extra, "event": "abort_failed"},
            )
            raise AbortError(
                f"Failed to abort multipart copy to {destination}: {e}",
                upload_id=upload_id,
                cause=e,
                original_error=error,
            ) from e

        try:
            remaining = self.backend.list_remaining_parts(destination, upload_id)
        except Exception as e:
            self.log.error(
                "Abort multipart copy could not be verified: %s",
                e,
                extra={**extra, "event": "abort_unverified"},
            )
            raise AbortError(
                f"Aborted multipart copy to {destination} but could not list "
                f"remaining parts: {e}",
                upload_id=upload_id,
                cause=e,
                original_error=error,
            ) from e

        if remaining:
            self.log.error(
                "Abort multipart copy failed, %d copied parts were not removed",
                len(remaining),
                extra={
                    **extra,
                    "event": "abort_incomplete",
                    "part_numbers": [p.get("PartNumber") for p in remaining],
                },
            )
            raise AbortVerificationError(
                remaining,
                upload_id=upload_id,
                original_error=error,
            )

        self.log.info(
            "Multipart copy aborted successfully",
            extra={**extra, "event": "aborted"},
        )
        raise AbortedTransfer(error, upload_id=upload_id) from error
