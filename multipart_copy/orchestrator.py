"""Transfer orchestration.

Sequences one multipart copy through its lifecycle:

    IDLE -> INITIATING -> PARTITIONING -> COPYING_PARTS
         -> FINALIZING -> COMPLETED
         -> ABORTING -> ABORTED | ABORT_FAILED

A failed initiation ends in FAILED with nothing to clean up. Once the upload
is open, every failure leads to a single abort attempt.
"""

import logging
import time
from typing import Any, NoReturn, Optional

from multipart_copy.backend import S3StorageBackend, StorageBackend
from multipart_copy.completion import CompletionController
from multipart_copy.coordinator import PartCopyCoordinator
from multipart_copy.errors import (
    AbortedTransfer,
    AbortError,
    AbortVerificationError,
    FinalizeError,
    InitiationError,
    InvalidArgument,
    MultipartCopyError,
    PartCopyError,
    TransferInterrupted,
)
from multipart_copy.models import CopiedPart, Location, TransferRequest, TransferResult, TransferState
from multipart_copy.partition import (
    DEFAULT_PART_SIZE,
    MAX_PART_COUNT,
    MAX_PART_SIZE,
    MIN_PART_SIZE,
    count_partitions,
    is_int,
    plan_partitions,
)

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS = {
    TransferState.IDLE: {TransferState.INITIATING, TransferState.FAILED},
    TransferState.INITIATING: {TransferState.PARTITIONING, TransferState.FAILED, TransferState.ABORTING},
    TransferState.PARTITIONING: {TransferState.COPYING_PARTS, TransferState.ABORTING},
    TransferState.COPYING_PARTS: {TransferState.FINALIZING, TransferState.ABORTING},
    TransferState.FINALIZING: {TransferState.COMPLETED, TransferState.ABORTING},
    TransferState.ABORTING: {TransferState.ABORTED, TransferState.ABORT_FAILED},
}


class TransferOrchestrator:
    """Runs multipart copies against a storage backend.

    One transfer runs at a time per instance; each call to ``transfer``
    starts again from IDLE. Reporter callbacks are observers only: an
    exception raised by one is logged and otherwise ignored.

    Args:
        backend: Storage backend owning the uploads
        log: Logger receiving lifecycle events (defaults to the module logger)
        reporter: Optional reporter for progress callbacks
        max_concurrency: Upper bound on parallel part copies
        default_part_size: Part size used when a request has none

    Raises:
        InvalidArgument: If max_concurrency is not a positive integer.
    """

    def __init__(
        self,
        backend: StorageBackend,
        log: Optional[logging.Logger] = None,
        reporter: Optional[Any] = None,
        max_concurrency: Optional[int] = None,
        default_part_size: int = DEFAULT_PART_SIZE,
    ):
        self.backend = backend
        self.log = log or logger
        self.reporter = reporter
        self.default_part_size = default_part_size
        self.coordinator = PartCopyCoordinator(
            backend,
            log=self.log,
            max_concurrency=max_concurrency,
            on_part_complete=self._part_copied if reporter else None,
        )
        self.completion = CompletionController(backend, log=self.log)
        self.state = TransferState.IDLE
        self.history: list[TransferState] = [TransferState.IDLE]
        self.upload_id: Optional[str] = None

    def transfer(self, request: TransferRequest, context: Any = None) -> TransferResult:
        """Copy ``request.source`` to ``request.destination`` in parts.

        Args:
            request: What to copy and how
            context: Correlation token attached to log records only

        Returns:
            TransferResult holding the completion response.

        Raises:
            InvalidArgument: The request was rejected; nothing was created.
            InitiationError: The upload could not be opened.
            AbortedTransfer: The copy failed and the upload was cleaned up.
            AbortError: The copy failed and the abort failed.
            AbortVerificationError: The copy failed and parts remain.
        """
        self.state = TransferState.IDLE
        self.history = [TransferState.IDLE]
        self.upload_id = None

        self._notify("on_transfer_start", request, context=context)
        try:
            result = self._run(request, context)
        except MultipartCopyError as e:
            self._notify("on_transfer_failed", e, context=context)
            raise

        self._notify("on_transfer_complete", result, context=context)
        return result

    def _run(self, request: TransferRequest, context: Any) -> TransferResult:
        start_time = time.time()
        destination = request.destination

        try:
            part_size = self._validate(request)
        except InvalidArgument as e:
            self.log.error(
                "Rejected multipart copy request: %s",
                e,
                extra={"context": context, "event": "request_rejected"},
            )
            self._transition(TransferState.FAILED, context)
            raise

        self._transition(TransferState.INITIATING, context)
        try:
            upload_id = self.backend.initiate(destination, request.options)
        except Exception as e:
            self.log.error(
                "Multipart copy failed to initiate: %s",
                e,
                extra={"context": context, "event": "initiate_failed"},
            )
            self._transition(TransferState.FAILED, context)
            raise InitiationError(
                f"Failed to initiate multipart copy to {destination}: {e}",
                cause=e,
            ) from e

        self.upload_id = upload_id
        self.log.info(
            "Multipart copy initiated successfully",
            extra={"context": context, "event": "initiated", "upload_id": upload_id},
        )

        # From here on the upload exists, so every failure ends in one abort
        try:
            return self._copy_and_finalize(request, upload_id, part_size, context, start_time)
        except (PartCopyError, FinalizeError) as e:
            error = e
        except Exception as e:
            self.log.error(
                "Multipart copy interrupted in %s: %s",
                self.state.value,
                e,
                exc_info=True,
                extra={"context": context, "event": "transfer_interrupted", "upload_id": upload_id},
            )
            error = TransferInterrupted(
                f"Multipart copy interrupted in {self.state.value}: {e}",
                upload_id=upload_id,
                cause=e,
            )
            error.__cause__ = e
        self._abort(destination, upload_id, error, context)

    def _copy_and_finalize(
        self,
        request: TransferRequest,
        upload_id: str,
        part_size: int,
        context: Any,
        start_time: float,
    ) -> TransferResult:
        destination = request.destination

        self._transition(TransferState.PARTITIONING, context)
        ranges = plan_partitions(request.object_size, part_size)

        self._transition(TransferState.COPYING_PARTS, context)
        manifest = self.coordinator.copy_parts(
            ranges,
            request.source,
            destination,
            upload_id,
            context=context,
        )

        self._transition(TransferState.FINALIZING, context)
        response = self.completion.finalize(destination, upload_id, manifest, context=context)

        result = TransferResult(
            destination=destination,
            upload_id=upload_id,
            response=response,
            parts=manifest,
            duration_seconds=time.time() - start_time,
        )
        self._transition(TransferState.COMPLETED, context)
        return result

    def _abort(
        self,
        destination: Location,
        upload_id: str,
        error: MultipartCopyError,
        context: Any,
    ) -> NoReturn:
        self._transition(TransferState.ABORTING, context)
        try:
            self.completion.abort(destination, upload_id, error, context=context)
        except AbortedTransfer:
            self._transition(TransferState.ABORTED, context)
            raise
        except (AbortError, AbortVerificationError):
            self._transition(TransferState.ABORT_FAILED, context)
            raise

    def _validate(self, request: TransferRequest) -> int:
        """Check the request and return the effective part size."""
        part_size = request.part_size if request.part_size is not None else self.default_part_size

        if not is_int(part_size) or not MIN_PART_SIZE <= part_size <= MAX_PART_SIZE:
            raise InvalidArgument(
                f"part_size must be between {MIN_PART_SIZE} and {MAX_PART_SIZE} bytes, "
                f"got {part_size!r}"
            )
        if not is_int(request.object_size) or request.object_size < 0:
            raise InvalidArgument(
                f"object_size must be a non-negative integer, got {request.object_size!r}"
            )
        if request.object_size == 0:
            raise InvalidArgument("Cannot multipart copy an empty object")

        part_count = count_partitions(request.object_size, part_size)
        if part_count > MAX_PART_COUNT:
            raise InvalidArgument(
                f"Copy would need {part_count} parts, more than the limit of "
                f"{MAX_PART_COUNT}; use a larger part_size"
            )

        # A short tail is folded into the last part, which must still fit
        full_parts, remainder = divmod(request.object_size, part_size)
        if full_parts and 0 < remainder < MIN_PART_SIZE and part_size + remainder > MAX_PART_SIZE:
            raise InvalidArgument(
                f"Last part would be {part_size + remainder} bytes, more than the limit of "
                f"{MAX_PART_SIZE}; use a smaller part_size"
            )
        return part_size

    def _transition(self, state: TransferState, context: Any) -> None:
        if state not in ALLOWED_TRANSITIONS.get(self.state, set()):
            raise RuntimeError(f"Illegal transfer transition {self.state.value} -> {state.value}")

        previous = self.state
        self.state = state
        self.history.append(state)

        log_level = logging.ERROR if state in (TransferState.FAILED, TransferState.ABORT_FAILED) else logging.INFO
        self.log.log(
            log_level,
            "Transfer %s -> %s",
            previous.value,
            state.value,
            extra={
                "context": context,
                "event": "state_change",
                "state": state.value,
                "upload_id": self.upload_id,
            },
        )
        self._notify("on_state_change", state, context=context)

    def _part_copied(self, part: CopiedPart) -> None:
        self._notify("on_part_complete", part)

    def _notify(self, callback: str, *args: Any, context: Any = None) -> None:
        if not self.reporter:
            return
        try:
            getattr(self.reporter, callback)(*args)
        except Exception as e:
            self.log.warning(
                "Reporter %s failed: %s",
                callback,
                e,
                exc_info=True,
                extra={"context": context, "event": "reporter_failed", "upload_id": self.upload_id},
            )


def copy_object_multipart(
    s3_client: Any,
    request: TransferRequest,
    context: Any = None,
    log: Optional[logging.Logger] = None,
    reporter: Optional[Any] = None,
    max_concurrency: Optional[int] = None,
) -> TransferResult:
    """Copy an S3 object in parts using a boto3 client.

    Args:
        s3_client: boto3 S3 client
        request: What to copy and how
        context: Correlation token attached to log records only
        log: Logger receiving lifecycle events
        reporter: Optional reporter for progress callbacks
        max_concurrency: Upper bound on parallel part copies

    Returns:
        TransferResult holding the completion response.
    """
    orchestrator = TransferOrchestrator(
        S3StorageBackend(s3_client),
        log=log,
        reporter=reporter,
        max_concurrency=max_concurrency,
    )
    return orchestrator.transfer(request, context=context)
