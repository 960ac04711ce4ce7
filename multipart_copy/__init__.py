"""
Multipart copy for S3-compatible object storage.

Copies a large object by splitting it into byte-range parts, copying the
parts in parallel with UploadPartCopy, and completing the upload, or
aborting it and verifying the cleanup when anything fails.
"""

__version__ = "1.0.0"

from multipart_copy.backend import S3StorageBackend, StorageBackend
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
from multipart_copy.models import (
    CopiedPart,
    Location,
    PartitionRange,
    TransferOptions,
    TransferRequest,
    TransferResult,
    TransferState,
)
from multipart_copy.orchestrator import TransferOrchestrator, copy_object_multipart
from multipart_copy.partition import plan_partitions

__all__ = [
    "AbortedTransfer",
    "AbortError",
    "AbortVerificationError",
    "CopiedPart",
    "FinalizeError",
    "InitiationError",
    "InvalidArgument",
    "Location",
    "MultipartCopyError",
    "PartCopyError",
    "PartitionRange",
    "S3StorageBackend",
    "StorageBackend",
    "TransferInterrupted",
    "TransferOptions",
    "TransferOrchestrator",
    "TransferRequest",
    "TransferResult",
    "TransferState",
    "copy_object_multipart",
    "plan_partitions",
    "__version__",
]
