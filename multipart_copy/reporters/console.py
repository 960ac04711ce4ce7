"""Console reporter using Rich library for formatted CLI output.

Provides colorful, formatted output during a copy including:
- A header naming source, destination and size
- Lifecycle transitions and per-part progress
- A final summary panel, with remaining parts listed when cleanup failed
"""

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.rule import Rule
from rich.table import Table

from multipart_copy.errors import AbortedTransfer, AbortVerificationError, MultipartCopyError
from multipart_copy.models import CopiedPart, TransferRequest, TransferResult, TransferState
from multipart_copy.reporters.base import Reporter


def format_size(size: int) -> str:
    """Format a byte count for display, e.g. ``95.4 MiB``."""
    value = float(size)
    for unit in ("B", "KiB", "MiB", "GiB"):
        if value < 1024:
            return f"{value:.0f} {unit}" if unit == "B" else f"{value:.1f} {unit}"
        value /= 1024
    return f"{value:.1f} TiB"


class ConsoleReporter(Reporter):
    """Rich-based console reporter for CLI output.

    Args:
        quiet: If True, suppress per-part and per-state output (only show
            the final summary)
    """

    def __init__(self, quiet: bool = False):
        # Use legacy_windows=True for ASCII-safe output on Windows consoles
        self.console = Console(legacy_windows=True)
        self.quiet = quiet

    def on_transfer_start(self, request: TransferRequest) -> None:
        """Displays a header naming the copy."""
        self.console.print()
        self.console.print(
            Rule(
                f"[bold cyan]Copying {request.source} -> {request.destination}[/bold cyan]",
                style="cyan",
                characters="-",
            )
        )
        self.console.print(f"  Size: {format_size(request.object_size)}")

    def on_state_change(self, state: TransferState) -> None:
        if self.quiet:
            return
        style = "red" if state in (TransferState.FAILED, TransferState.ABORT_FAILED) else "dim"
        self.console.print(f"  [{style}]-> {state.value}[/{style}]")

    def on_part_complete(self, part: CopiedPart) -> None:
        if self.quiet:
            return
        self.console.print(f"  [green][OK][/green] part {part.part_number} [dim]{part.etag}[/dim]")

    def on_transfer_complete(self, result: TransferResult) -> None:
        """Displays a success panel."""
        lines = [
            f"Destination: {result.destination}",
            f"Parts: {len(result.parts)}",
            f"Upload id: {result.upload_id}",
        ]
        etag = result.response.get("ETag")
        if etag:
            lines.append(f"ETag: {etag}")
        if result.duration_seconds > 0:
            lines.append(f"Duration: {result.duration_seconds:.1f}s")

        self.console.print()
        self.console.print(
            Panel(
                "\n".join(lines),
                title="[bold green]COMPLETED[/bold green]",
                border_style="green",
                box=box.ASCII,
            )
        )

    def on_transfer_failed(self, error: MultipartCopyError) -> None:
        """Displays a failure panel and, if any, the parts left behind."""
        state = error.state.value.upper() if error.state else "FAILED"
        lines = [f"{type(error).__name__}: {error.message}"]
        if error.upload_id:
            lines.append(f"Upload id: {error.upload_id}")

        original = getattr(error, "original_error", None)
        if original is not None and not isinstance(error, AbortedTransfer):
            lines.append(f"Original error: {original}")

        border = "red"
        if isinstance(error, AbortedTransfer):
            lines.append("Cleanup: upload aborted, no parts remain")
            border = "yellow"
        elif error.state == TransferState.FAILED:
            lines.append("Cleanup: nothing to clean up")
        else:
            lines.append("Cleanup: [bold]manual remediation may be needed[/bold]")

        self.console.print()
        self.console.print(
            Panel(
                "\n".join(lines),
                title=f"[bold {border}]{state}[/bold {border}]",
                border_style=border,
                box=box.ASCII,
            )
        )

        if isinstance(error, AbortVerificationError) and error.remaining_parts:
            table = Table(
                title="Parts remaining after abort",
                show_header=True,
                header_style="bold magenta",
                border_style="dim",
                box=box.ASCII,
            )
            table.add_column("Part", justify="right", no_wrap=True)
            table.add_column("ETag", no_wrap=True)
            table.add_column("Size", justify="right", no_wrap=True)
            for part in error.remaining_parts:
                size = part.get("Size")
                table.add_row(
                    str(part.get("PartNumber", "?")),
                    str(part.get("ETag", "")),
                    format_size(size) if size is not None else "-",
                )
            self.console.print(table)
        self.console.print()
