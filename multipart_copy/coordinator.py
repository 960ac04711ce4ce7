"""Concurrent part copies for one multipart upload.

Every range is submitted to a thread pool at once. The first failure is
raised as soon as it happens; parts still in flight keep running in the
background and their outcomes are only logged.
"""

import logging
from concurrent.futures import FIRST_EXCEPTION, Future, ThreadPoolExecutor, wait
from typing import Any, Callable, Optional, Sequence

from multipart_copy.backend import StorageBackend
from multipart_copy.errors import InvalidArgument, PartCopyError
from multipart_copy.models import CopiedPart, Location, PartitionRange
from multipart_copy.partition import is_int

logger = logging.getLogger(__name__)


class PartCopyCoordinator:
    """Copies the byte ranges of one transfer concurrently.

    Args:
        backend: Storage backend performing the copies
        log: Logger receiving part events (defaults to the module logger)
        max_concurrency: Upper bound on parallel copies; None copies every
            part at once
        on_part_complete: Optional callback invoked with each CopiedPart,
            from the worker thread that copied it

    Raises:
        InvalidArgument: If max_concurrency is not a positive integer.
    """

    def __init__(
        self,
        backend: StorageBackend,
        log: Optional[logging.Logger] = None,
        max_concurrency: Optional[int] = None,
        on_part_complete: Optional[Callable[[CopiedPart], Any]] = None,
    ):
        if max_concurrency is not None and (not is_int(max_concurrency) or max_concurrency < 1):
            raise InvalidArgument(
                f"max_concurrency must be a positive integer, got {max_concurrency!r}"
            )

        self.backend = backend
        self.log = log or logger
        self.max_concurrency = max_concurrency
        self.on_part_complete = on_part_complete

    def copy_parts(
        self,
        ranges: Sequence[PartitionRange],
        source: Location,
        destination: Location,
        upload_id: str,
        context: Any = None,
    ) -> list[CopiedPart]:
        """Copy every range into the upload.

        Args:
            ranges: Partition ranges, one per part
            source: Object being copied
            destination: Object being assembled
            upload_id: Upload the parts belong to
            context: Correlation token attached to log records

        Returns:
            Copied parts ordered by part number.

        Raises:
            PartCopyError: For the first part that failed to copy.
        """
        if not ranges:
            return []

        workers = len(ranges)
        if self.max_concurrency is not None:
            workers = min(workers, self.max_concurrency)

        # Appended from worker threads in the order failures happen
        failures: list[PartCopyError] = []

        executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="part-copy")
        try:
            futures: dict[Future, int] = {
                executor.submit(
                    self._copy_part,
                    partition,
                    source,
                    destination,
                    upload_id,
                    context,
                    failures,
                ): partition.part_number
                for partition in ranges
            }
            done, pending = wait(futures, return_when=FIRST_EXCEPTION)
        finally:
            executor.shutdown(wait=False)

        if failures:
            if pending:
                self.log.warning(
                    "Stopped waiting on %d in-flight part copies after part %d failed",
                    len(pending),
                    failures[0].part_number,
                    extra={
                        "context": context,
                        "event": "parts_detached",
                        "upload_id": upload_id,
                        "part_numbers": sorted(futures[f] for f in pending),
                    },
                )
            raise failures[0]

        copied = {futures[f]: f.result() for f in done}
        manifest = [copied[number] for number in sorted(copied)]

        self.log.info(
            "Copied all %d parts successfully",
            len(manifest),
            extra={"context": context, "event": "parts_copied", "upload_id": upload_id},
        )
        return manifest

    def _copy_part(
        self,
        partition: PartitionRange,
        source: Location,
        destination: Location,
        upload_id: str,
        context: Any,
        failures: list[PartCopyError],
    ) -> CopiedPart:
        part_number = partition.part_number
        try:
            part = self.backend.copy_range(
                destination,
                upload_id,
                part_number,
                source,
                partition,
            )
            if self.on_part_complete:
                self.on_part_complete(part)
        except Exception as e:
            error = PartCopyError(part_number, e, upload_id=upload_id)
            failures.append(error)
            self.log.error(
                "CopyPart %d failed: %s",
                part_number,
                e,
                extra={
                    "context": context,
                    "event": "part_failed",
                    "upload_id": upload_id,
                    "part_number": part_number,
                },
            )
            raise error from e

        self.log.info(
            "CopyPart %d succeeded (%s, etag %s)",
            part_number,
            partition.content_range,
            part.etag,
            extra={
                "context": context,
                "event": "part_copied",
                "upload_id": upload_id,
                "part_number": part_number,
            },
        )
        return part
