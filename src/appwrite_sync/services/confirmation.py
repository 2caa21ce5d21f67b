"""Interactive confirmation of pending changes."""

from collections.abc import Callable, Iterable, Mapping, Sequence
from typing import Any

import click
from loguru import logger
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from appwrite_sync.models.changes import ChangeAction, ChangeRecord, ChangeSet

CONFIRM_QUESTION = "Are you sure you want to apply these changes? (YES/NO)"
CONFIRM_RETRY = "Please type 'YES' or 'NO':"
PENDING_TITLE = "There are pending changes in your collection deployment"
FORCED_TITLE = "List of applied changes"

_ACTION_STYLES = {
    ChangeAction.ADDING: "green",
    ChangeAction.DELETING: "red",
    ChangeAction.CHANGING: "cyan",
    ChangeAction.RECREATING: "cyan",
}

Prompt = Callable[[str], str]


def _click_prompt(text: str) -> str:
    return str(click.prompt(text, type=str, prompt_suffix=" "))


def _warning_box(console: Console, message: str) -> None:
    border = "-" * (len(message) + 4)
    console.print(f"[red]{border}[/red]")
    console.print(f"[red]| {escape(message)} |[/red]")
    console.print(f"[red]{border}[/red]")
    console.print()


class Confirmer:
    """
    Gate destructive operations on explicit consent.

    With force set every question is answered yes and tables are only
    shown for information.
    """

    def __init__(
        self,
        force: bool = False,
        console: Console | None = None,
        prompt: Prompt | None = None,
    ) -> None:
        self.force = force
        self.console = console or Console()
        self._prompt = prompt or _click_prompt

    def confirm(self, question: str = CONFIRM_QUESTION) -> bool:
        """Ask for YES or NO (any case); keep asking until one is given."""
        if self.force:
            return True

        answer = self._prompt(question).strip().upper()
        while answer not in ("YES", "NO"):
            answer = self._prompt(CONFIRM_RETRY).strip().upper()

        if answer == "YES":
            return True
        self.console.print("[yellow]Skipping push action. Changes were not applied.[/yellow]")
        logger.info("User declined pending changes")
        return False

    def show_changes(self, changes: ChangeSet, attribute_title: str = "Attribute", is_index: bool = False) -> None:
        """Render the change table plus data-loss warnings."""
        self.console.print(FORCED_TITLE if self.force else PENDING_TITLE)
        self.show_records(changes.records)

        if self.force or is_index:
            return
        if changes.deleting:
            _warning_box(self.console, f"WARNING: {attribute_title} deletion may cause loss of data")
        if changes.conflicts:
            _warning_box(self.console, f"WARNING: {attribute_title} recreation may cause loss of data")

    def show_records(self, records: Iterable[ChangeRecord]) -> None:
        table = Table(show_header=True, header_style="bold")
        table.add_column("Key", style="yellow")
        table.add_column("Action")
        table.add_column("Reason")
        for record in records:
            style = _ACTION_STYLES[record.action]
            table.add_row(escape(record.key), f"[{style}]{record.action.value}[/{style}]", escape(record.reason))
        self.console.print(table)

    def show_table(self, rows: Sequence[Mapping[str, Any]]) -> None:
        """Render arbitrary rows; columns come from the first row's keys."""
        if not rows:
            return
        table = Table(show_header=True, header_style="bold")
        for column in rows[0]:
            table.add_column(str(column).capitalize())
        for row in rows:
            table.add_row(*("" if v is None else escape(str(v)) for v in row.values()))
        self.console.print(table)

    def ask_entrypoint(self, function_name: str) -> str:
        """Ask for a missing function entrypoint."""
        entrypoint = ""
        while not entrypoint.strip():
            entrypoint = self._prompt(f"Enter the entrypoint for {function_name}")
        return entrypoint.strip()
