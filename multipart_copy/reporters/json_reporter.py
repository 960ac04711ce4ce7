"""JSON reporter for structured output and GitHub Actions integration.

Generates JSON output suitable for:
- Audit records of copies
- GitHub Actions workflow outputs
"""

import json
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from multipart_copy.errors import MultipartCopyError
from multipart_copy.models import CopiedPart, TransferRequest, TransferResult, TransferState
from multipart_copy.reporters.base import Reporter


class JsonReporter(Reporter):
    """JSON reporter for structured output.

    Args:
        output_path: Optional file path to write JSON output
        github_output: If True, write to GITHUB_OUTPUT for Actions
    """

    def __init__(
        self,
        output_path: Optional[str] = None,
        github_output: bool = False,
    ):
        self.output_path = output_path
        self.github_output = github_output
        self._request: Optional[TransferRequest] = None
        self._states: list[str] = []

    def on_transfer_start(self, request: TransferRequest) -> None:
        """Stores the request for the final output."""
        self._request = request
        self._states = []

    def on_state_change(self, state: TransferState) -> None:
        self._states.append(state.value)

    def on_part_complete(self, part: CopiedPart) -> None:
        """No-op - parts come from the result."""
        pass

    def on_transfer_complete(self, result: TransferResult) -> dict:
        """Generates and outputs JSON data for a completed copy."""
        return self._emit(succeeded=True, outcome=result.to_dict())

    def on_transfer_failed(self, error: MultipartCopyError) -> dict:
        """Generates and outputs JSON data for a failed copy."""
        return self._emit(succeeded=False, outcome=error.to_dict())

    def _emit(self, succeeded: bool, outcome: dict[str, Any]) -> dict:
        output = self._generate_output(succeeded, outcome)

        if self.output_path:
            self._write_to_file(output)

        if self.github_output:
            self._write_github_output(output)

        return output

    def _generate_output(self, succeeded: bool, outcome: dict[str, Any]) -> dict:
        """Generate the JSON output structure."""
        request = None
        if self._request is not None:
            request = {
                "source": str(self._request.source),
                "destination": str(self._request.destination),
                "object_size": self._request.object_size,
                "part_size": self._request.part_size,
            }

        return {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "succeeded": succeeded,
            "request": request,
            "states": list(self._states),
            "result" if succeeded else "error": outcome,
        }

    def _write_to_file(self, output: dict) -> None:
        """Write JSON output to file, creating parent directories."""
        path = Path(self.output_path)
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(self.output_path, "w") as f:
            json.dump(output, f, indent=2, default=str)

    def _write_github_output(self, output: dict) -> None:
        """Write to the GitHub Actions output file."""
        github_output_file = os.environ.get("GITHUB_OUTPUT")
        if not github_output_file:
            return

        outcome = output.get("result") or output.get("error") or {}
        with open(github_output_file, "a") as f:
            f.write(f"succeeded={str(output['succeeded']).lower()}\n")
            f.write(f"state={outcome.get('state')}\n")
            f.write(f"upload_id={outcome.get('upload_id') or ''}\n")

            f.write("results<<EOF\n")
            f.write(json.dumps(output, default=str))
            f.write("\nEOF\n")
