"""Per-resource status lines printed while pushing."""

from rich.console import Console
from rich.markup import escape

_STATUS_STYLES = {
    "Deployed": "green",
    "Pushed": "green",
    "Created": "green",
    "Updated": "green",
    "Deploying": "yellow",
}


class StatusRow:
    """Status of one resource: Getting, Updating, Pushing, Deployed, ..."""

    def __init__(self, console: Console, resource: str, resource_id: str) -> None:
        self._console = console
        self.resource = resource
        self.resource_id = resource_id
        self.status = ""
        self.failed = False

    def update(self, status: str, end: str = "") -> "StatusRow":
        self.status = status
        style = _STATUS_STYLES.get(status, "cyan")
        line = f"[{style}]{status:<12}[/{style}] {escape(self.resource)} ({escape(self.resource_id)})"
        if end:
            line += f" [dim]{escape(end)}[/dim]"
        self._console.print(line)
        return self

    def fail(self, message: str) -> "StatusRow":
        self.status = "Error"
        self.failed = True
        self._console.print(
            f"[red]{'Error':<12}[/red] {escape(self.resource)} ({escape(self.resource_id)}) "
            f"[red]{escape(message)}[/red]"
        )
        return self


class Reporter:
    """User-facing output: status rows and summary lines."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def row(self, resource: str, resource_id: str) -> StatusRow:
        return StatusRow(self.console, resource, resource_id)

    def log(self, message: str) -> None:
        """Print a line; message may carry rich markup."""
        self.console.print(message)

    def success(self, message: str) -> None:
        self.console.print(f"[green]✓ Success:[/green] {escape(message)}")

    def warn(self, message: str) -> None:
        self.console.print(f"[yellow]! Warning:[/yellow] {escape(message)}")

    def error(self, message: str) -> None:
        self.console.print(f"[red]✗ Error:[/red] {escape(message)}")
