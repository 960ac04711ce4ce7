"""Data models for the multipart copy tool."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional


class TransferState(Enum):
    """Lifecycle state of a single transfer."""

    IDLE = "idle"
    INITIATING = "initiating"
    PARTITIONING = "partitioning"
    COPYING_PARTS = "copying_parts"
    FINALIZING = "finalizing"
    COMPLETED = "completed"
    ABORTING = "aborting"
    ABORTED = "aborted"
    ABORT_FAILED = "abort_failed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATES


TERMINAL_STATES = frozenset({
    TransferState.COMPLETED,
    TransferState.ABORTED,
    TransferState.ABORT_FAILED,
    TransferState.FAILED,
})


@dataclass(frozen=True)
class Location:
    """A bucket/key pair."""

    bucket: str
    key: str

    def __str__(self) -> str:
        return f"{self.bucket}/{self.key}"


@dataclass(frozen=True)
class TransferOptions:
    """Object settings applied to the copied object when the upload is opened."""

    acl: Optional[str] = None
    expires: Optional[datetime] = None
    content_type: Optional[str] = None
    content_disposition: Optional[str] = None
    content_encoding: Optional[str] = None
    content_language: Optional[str] = None
    cache_control: Optional[str] = None
    server_side_encryption: Optional[str] = None
    metadata: Optional[dict[str, str]] = None


@dataclass(frozen=True)
class TransferRequest:
    """A request to copy one object into another location."""

    source: Location
    destination: Location
    object_size: int
    part_size: Optional[int] = None
    options: TransferOptions = field(default_factory=TransferOptions)


@dataclass(frozen=True)
class PartitionRange:
    """An inclusive byte range of the source object, copied as one part."""

    part_number: int
    start: int
    end: int

    @property
    def length(self) -> int:
        return self.end - self.start + 1

    @property
    def content_range(self) -> str:
        """Range header value, e.g. ``bytes=0-49999999``."""
        return f"bytes={self.start}-{self.end}"


@dataclass(frozen=True)
class CopiedPart:
    """A part that was copied successfully."""

    part_number: int
    etag: str

    def to_completion_entry(self) -> dict[str, Any]:
        return {"PartNumber": self.part_number, "ETag": self.etag}


@dataclass
class TransferResult:
    """Result of a completed transfer."""

    destination: Location
    upload_id: str
    response: dict[str, Any]
    parts: list[CopiedPart] = field(default_factory=list)
    duration_seconds: float = 0.0
    state: TransferState = TransferState.COMPLETED

    @property
    def succeeded(self) -> bool:
        return self.state == TransferState.COMPLETED

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        response = {
            k: v for k, v in self.response.items() if k != "ResponseMetadata"
        }
        return {
            "state": self.state.value,
            "destination": str(self.destination),
            "upload_id": self.upload_id,
            "part_count": len(self.parts),
            "parts": [
                {"part_number": p.part_number, "etag": p.etag} for p in self.parts
            ],
            "response": response,
            "duration_seconds": self.duration_seconds,
        }


@dataclass
class CopySettings:
    """Connection and tuning settings for the copy tool."""

    endpoint_url: Optional[str] = None
    aws_access_key_id: Optional[str] = None
    aws_secret_access_key: Optional[str] = None
    region_name: Optional[str] = None
    addressing_style: str = "auto"
    part_size: Optional[int] = None
    max_concurrency: Optional[int] = None
    retry_attempts: int = 3
