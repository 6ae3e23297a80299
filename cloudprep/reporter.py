"""Reporter implementations for logs, the terminal and the control plane."""

import logging
from typing import Optional

from rich.console import Console
from rich.markup import escape

from cloudprep.api import Reporter

STARTED = "started"
SUCCEEDED = "succeeded"
FAILED = "failed"
WARNING = "warning"


def _format(message: str, args: tuple) -> str:
    return message % args if args else message


def _join_errors(errors: tuple) -> str:
    return "; ".join(str(e) for e in errors if e is not None)


class LoggingReporter(Reporter):
    """Write progress events to a logger."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger("cloudprep")

    def started(self, message: str, *args) -> None:
        self.logger.info(message, *args)

    def succeeded(self, message: str, *args) -> None:
        self.logger.info(message, *args)

    def failed(self, *errors: BaseException) -> None:
        self.logger.error("Failed: %s", _join_errors(errors))

    def warning(self, message: str, *args) -> None:
        self.logger.warning(message, *args)


class ConsoleReporter(Reporter):
    """Render progress events on a rich console, one line per event."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console(stderr=True)

    def started(self, message: str, *args) -> None:
        self.console.print(f"[cyan]•[/cyan] {escape(_format(message, args))}...", markup=True, highlight=False)

    def succeeded(self, message: str, *args) -> None:
        self.console.print(f"[green]✓[/green] {escape(_format(message, args))}", markup=True, highlight=False)

    def failed(self, *errors: BaseException) -> None:
        self.console.print(f"[red]✗[/red] {escape(_join_errors(errors))}", markup=True, highlight=False)

    def warning(self, message: str, *args) -> None:
        self.console.print(f"[yellow]![/yellow] {escape(_format(message, args))}", markup=True, highlight=False)


class RecordingReporter(Reporter):
    """Keep every event in memory as (kind, message) tuples.

    An optional delegate receives the same events, so a run can be both
    recorded and logged. Subclasses persist events by overriding _record.
    """

    def __init__(self, delegate: Optional[Reporter] = None):
        self.events: list[tuple[str, str]] = []
        self.delegate = delegate

    @property
    def last_message(self) -> Optional[str]:
        return self.events[-1][1] if self.events else None

    def _record(self, kind: str, message: str) -> None:
        self.events.append((kind, message))

    def started(self, message: str, *args) -> None:
        self._record(STARTED, _format(message, args))
        if self.delegate:
            self.delegate.started(message, *args)

    def succeeded(self, message: str, *args) -> None:
        self._record(SUCCEEDED, _format(message, args))
        if self.delegate:
            self.delegate.succeeded(message, *args)

    def failed(self, *errors: BaseException) -> None:
        self._record(FAILED, _join_errors(errors))
        if self.delegate:
            self.delegate.failed(*errors)

    def warning(self, message: str, *args) -> None:
        self._record(WARNING, _format(message, args))
        if self.delegate:
            self.delegate.warning(message, *args)
