"""Errors raised by a multipart copy.

Every failure of ``TransferOrchestrator.transfer`` is one of these. Errors on
the abort path carry the error that triggered the abort, so the caller always
sees both why the copy failed and whether cleanup succeeded.

Terminal outcomes:
- InvalidArgument: the request was rejected before anything was created
- InitiationError: no upload was opened, nothing to clean up
- AbortedTransfer: the upload was aborted and verified empty
- AbortError: the abort (or its verification query) failed
- AbortVerificationError: the abort was accepted but parts remain
"""

from typing import Any, Optional

from multipart_copy.models import TransferState


class MultipartCopyError(Exception):
    """Base class for multipart copy failures."""

    state: Optional[TransferState] = TransferState.FAILED

    def __init__(
        self,
        message: str,
        upload_id: Optional[str] = None,
        cause: Optional[BaseException] = None,
    ):
        super().__init__(message)
        self.message = message
        self.upload_id = upload_id
        self.cause = cause

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        data: dict[str, Any] = {
            "error": type(self).__name__,
            "message": self.message,
            "state": self.state.value if self.state else None,
            "upload_id": self.upload_id,
        }
        if self.cause is not None:
            data["cause"] = _describe(self.cause)
        return data


class InvalidArgument(MultipartCopyError, ValueError):
    """Raised when a transfer request is malformed."""


class InitiationError(MultipartCopyError):
    """Raised when the multipart upload could not be opened."""


class PartCopyError(MultipartCopyError):
    """Raised when a byte range failed to copy. Triggers an abort."""

    state = None

    def __init__(
        self,
        part_number: int,
        cause: BaseException,
        upload_id: Optional[str] = None,
    ):
        super().__init__(
            f"Part {part_number} failed to copy: {cause}",
            upload_id=upload_id,
            cause=cause,
        )
        self.part_number = part_number

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["part_number"] = self.part_number
        return data


class FinalizeError(MultipartCopyError):
    """Raised when completing the upload failed. Triggers an abort."""

    state = None


class TransferInterrupted(MultipartCopyError):
    """Raised for any other failure while the upload is open. Triggers an abort."""

    state = None


class AbortError(MultipartCopyError):
    """Raised when the abort request or its verification query failed."""

    state = TransferState.ABORT_FAILED

    def __init__(
        self,
        message: str,
        upload_id: Optional[str] = None,
        cause: Optional[BaseException] = None,
        original_error: Optional[BaseException] = None,
    ):
        super().__init__(message, upload_id=upload_id, cause=cause)
        self.original_error = original_error

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        if self.original_error is not None:
            data["original_error"] = _describe(self.original_error)
        return data


class AbortVerificationError(MultipartCopyError):
    """Raised when the upload was aborted but parts are still listed.

    The transaction needs manual remediation.
    """

    state = TransferState.ABORT_FAILED

    def __init__(
        self,
        remaining_parts: list[dict],
        upload_id: Optional[str] = None,
        original_error: Optional[BaseException] = None,
    ):
        super().__init__(
            f"Abort procedure passed but {len(remaining_parts)} copied part(s) "
            "were not removed",
            upload_id=upload_id,
            cause=original_error,
        )
        self.remaining_parts = remaining_parts
        self.original_error = original_error

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["remaining_parts"] = [
            {"part_number": p.get("PartNumber"), "etag": p.get("ETag")}
            for p in self.remaining_parts
        ]
        return data


class AbortedTransfer(MultipartCopyError):
    """Raised when a failed transfer was aborted and verified clean."""

    state = TransferState.ABORTED

    def __init__(
        self,
        original_error: BaseException,
        upload_id: Optional[str] = None,
    ):
        super().__init__(
            f"Multipart copy aborted: {original_error}",
            upload_id=upload_id,
            cause=original_error,
        )
        self.original_error = original_error


def _describe(error: BaseException) -> dict[str, Any]:
    if isinstance(error, MultipartCopyError):
        return error.to_dict()
    return {"error": type(error).__name__, "message": str(error)}
