"""User interaction boundary.

This module provides:
- Prompter: Protocol the engine uses for decisions and progress
- ClickPrompter: Terminal implementation built on click
- progress_reporter: Adapts batch progress to Prompter.report_progress
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Protocol, TypeVar

import click

if TYPE_CHECKING:
    from codesync.client.sync.types import ProgressCallback

T = TypeVar("T")


class Prompter(Protocol):
    """Decisions and notifications the sync engine needs from its host.

    The engine never renders anything itself; it only asks for a choice
    and reports progress.
    """

    def confirm(self, message: str, options: Sequence[str]) -> str | None:
        """Ask the user to pick one of several options; None if dismissed."""
        ...

    def pick_one(self, items: Sequence[T], title: str) -> T | None:
        """Pick a single item; None if dismissed."""
        ...

    def pick_many(self, items: Sequence[T], title: str) -> list[T] | None:
        """Pick any number of items; None if dismissed."""
        ...

    def report_progress(self, fraction: float, label: str) -> None:
        """Report batch progress (0.0 to 1.0)."""
        ...

    def info(self, message: str) -> None: ...

    def warn(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...

    def status(self, message: str) -> None:
        """Show a transient status message."""
        ...


def progress_reporter(ui: Prompter) -> ProgressCallback:
    """Create a batch progress callback that forwards to a Prompter."""

    def _report(index: int, total: int, name: str) -> None:
        fraction = index / total if total else 1.0
        ui.report_progress(fraction, f"{index}/{total}: {name}")

    return _report


class ClickPrompter:
    """Prompter that talks to the terminal through click."""

    def __init__(self, quiet: bool = False) -> None:
        """Initialize the prompter.

        Args:
            quiet: Suppress progress lines.
        """
        self._quiet = quiet

    def _choose_index(self, count: int) -> int | None:
        index = click.prompt(
            "Choice (0 to cancel)",
            type=click.IntRange(0, count),
            default=0,
            show_default=False,
        )
        return None if index == 0 else index - 1

    def confirm(self, message: str, options: Sequence[str]) -> str | None:
        click.echo(message)
        for i, option in enumerate(options, start=1):
            click.echo(f"  {i}. {option}")
        index = self._choose_index(len(options))
        return None if index is None else options[index]

    def pick_one(self, items: Sequence[T], title: str) -> T | None:
        if not items:
            return None
        click.echo(title)
        for i, item in enumerate(items, start=1):
            click.echo(f"  {i}. {item}")
        index = self._choose_index(len(items))
        return None if index is None else items[index]

    def pick_many(self, items: Sequence[T], title: str) -> list[T] | None:
        if not items:
            return None
        click.echo(title)
        for i, item in enumerate(items, start=1):
            label = getattr(item, "relative_path", item)
            click.echo(f"  {i}. {label}")
        raw = click.prompt(
            "Numbers separated by commas, or 'all' (empty to cancel)",
            default="",
            show_default=False,
        ).strip()
        if not raw:
            return None
        if raw.lower() == "all":
            return list(items)

        picked: list[T] = []
        for part in raw.split(","):
            part = part.strip()
            if not part.isdigit() or not 1 <= int(part) <= len(items):
                click.echo(f"Ignoring invalid choice: {part}", err=True)
                continue
            item = items[int(part) - 1]
            if item not in picked:
                picked.append(item)
        return picked or None

    def report_progress(self, fraction: float, label: str) -> None:
        if not self._quiet:
            click.echo(f"  [{fraction * 100:3.0f}%] {label}")

    def info(self, message: str) -> None:
        click.echo(message)

    def warn(self, message: str) -> None:
        click.secho(message, fg="yellow", err=True)

    def error(self, message: str) -> None:
        click.secho(message, fg="red", err=True)

    def status(self, message: str) -> None:
        if not self._quiet:
            click.secho(message, dim=True)
