"""Base reporter interface."""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from multipart_copy.errors import MultipartCopyError
    from multipart_copy.models import CopiedPart, TransferRequest, TransferResult, TransferState


class Reporter(ABC):
    """Abstract base class for transfer progress reporters."""

    @abstractmethod
    def on_transfer_start(self, request: "TransferRequest") -> None:
        """Called when a transfer is submitted."""
        pass

    @abstractmethod
    def on_state_change(self, state: "TransferState") -> None:
        """Called on every lifecycle transition."""
        pass

    @abstractmethod
    def on_part_complete(self, part: "CopiedPart") -> None:
        """Called from a worker thread when a part has been copied."""
        pass

    @abstractmethod
    def on_transfer_complete(self, result: "TransferResult") -> Optional[dict]:
        """Called when the transfer completed.

        Reporters that build a record of the transfer may return it.
        """
        pass

    @abstractmethod
    def on_transfer_failed(self, error: "MultipartCopyError") -> Optional[dict]:
        """Called when the transfer ended in failure."""
        pass
