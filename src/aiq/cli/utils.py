"""Shared utility functions for CLI commands."""

import re
import sys
import threading
import time
from typing import Any

import click

DEFAULT_THEME = {
    "info": {"fg": "green"},
    "warn": {"fg": "yellow"},
    "error": {"fg": "red"},
    "help": {"fg": "cyan"},
    "input": {"fg": "bright_black"},
}


class Printer:
    """Console output with a colour theme.

    Messages are rendered as ``>>> TYPE:`` followed by the indented text,
    the way every command reports its result.

    Args:
        theme: Mapping of message type to ``click.style`` keyword arguments.
        color: Force colours on or off; None lets click decide.
    """

    def __init__(self, theme: dict[str, dict[str, Any]] | None = None, color: bool | None = None):
        self.theme = {**DEFAULT_THEME, **(theme or {})}
        self.color = color

    def style(self, kind: str, text: str) -> str:
        return click.style(text, **self.theme.get(kind, {}))

    def _message(self, kind: str, msg: str, args: tuple) -> str:
        if args:
            msg = msg % args
        prefix = self.style(kind, f">>> {kind.upper()}:")
        return f"{prefix}\n\t" + msg.replace("\r\n", "\n").replace("\n", "\n\t")

    def info(self, msg: str, *args: Any) -> None:
        click.echo(self._message("info", msg, args), color=self.color)

    def warn(self, msg: str, *args: Any) -> None:
        click.echo(self._message("warn", msg, args), err=True, color=self.color)

    def error(self, msg: str, *args: Any) -> None:
        click.echo(self._message("error", msg, args), err=True, color=self.color)

    def raw(self, msg: str = "", *args: Any) -> None:
        click.echo(msg % args if args else msg, color=self.color)

    def stream(self, chunk: bytes) -> None:
        """Write a chunk of remote output as is."""
        click.echo(chunk.decode("utf-8", errors="replace"), nl=False, color=self.color)


class NotedCommand(click.Command):
    """Command whose help carries a long description and a closing note.

    Args:
        long_description: Paragraph printed above the usage line.
        note: Paragraph printed in a ``Note:`` section after the options.
    """

    def __init__(
        self,
        *args: Any,
        long_description: str | None = None,
        note: str | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(*args, **kwargs)
        self.long_description = long_description
        self.note = note

    def format_help(self, ctx: click.Context, formatter: click.HelpFormatter) -> None:
        if self.long_description:
            formatter.write_paragraph()
            with formatter.indentation():
                formatter.write_text(self.long_description)
            formatter.write_paragraph()
        super().format_help(ctx, formatter)
        if self.note:
            with formatter.section("Note"):
                formatter.write_text(self.note)


def format_elapsed(seconds: float) -> str:
    """Format elapsed seconds as human-readable duration.

    Args:
        seconds: Elapsed time in seconds.

    Returns:
        Human-readable duration string (e.g., "45s", "2m 30s").
    """
    secs = int(seconds)
    if secs < 60:
        return f"{secs}s"
    return f"{secs // 60}m {secs % 60}s"


# Regex pattern to match ANSI escape sequences
# This covers CSI sequences (most common), OSC sequences, and other control sequences
_ANSI_ESCAPE_PATTERN = re.compile(
    r"""
    \x1b          # ESC character
    (?:
        \[        # CSI (Control Sequence Introducer)
        [0-?]*    # Parameter bytes
        [ -/]*    # Intermediate bytes
        [@-~]     # Final byte
        |
        \]        # OSC (Operating System Command)
        .*?       # Content
        (?:\x07|\x1b\\)  # String terminator (BEL or ESC \)
        |
        [PX^_]    # DCS, SOS, PM, APC
        .*?       # Content
        \x1b\\    # String terminator
        |
        [NO]      # SS2, SS3
        .         # Single character
        |
        [()*/+]   # Designate character set
        .         # Charset selector
        |
        [=>]      # Application/Normal keypad mode
        |
        c         # RIS (Reset to Initial State)
    )
    """,
    re.VERBOSE,
)


class Spinner:
    """Animated terminal spinner for long-running operations.

    Displays a Braille-character spinner on stderr with a status message.
    Thread-based so the blocking upload keeps running underneath.

    Args:
        show_elapsed: If True, show elapsed time next to the status text.
        indent: Number of leading spaces before the spinner character.
    """

    _FRAMES = "⠋⠙⠹⠸⠼⠴⠦⠧⠇⠏"
    _INTERVAL = 0.08  # seconds between frames

    def __init__(self, show_elapsed: bool = False, indent: int = 0):
        self._text = ""
        self._running = False
        self._thread: threading.Thread | None = None
        self._lock = threading.Lock()
        self._start_time = 0.0
        self._show_elapsed = show_elapsed
        self._prefix = " " * indent

    def start(self, text: str = "") -> None:
        """Start the spinner with the given status text."""
        with self._lock:
            self._text = text
            if self._running:
                return
            self._running = True
            self._start_time = time.monotonic()
        self._thread = threading.Thread(target=self._animate, daemon=True)
        self._thread.start()

    def _stop_thread(self) -> None:
        """Stop the animation thread."""
        with self._lock:
            if not self._running:
                return
            self._running = False
        if self._thread:
            self._thread.join(timeout=0.2)
            self._thread = None

    def done(self, symbol: str = "✓", suffix: str = "") -> None:
        """Stop the spinner and persist the line with a symbol."""
        self._stop_thread()
        text = f"\r\033[K{self._prefix}{symbol} {self._text}"
        if suffix:
            text += f" {suffix}"
        sys.stderr.write(text + "\n")
        sys.stderr.flush()

    def fail(self, suffix: str = "") -> None:
        """Stop the spinner and persist the line with a failure symbol."""
        self.done(symbol="✗", suffix=suffix)

    def _animate(self) -> None:
        idx = 0
        while True:
            with self._lock:
                if not self._running:
                    break
                text = self._text
                elapsed = time.monotonic() - self._start_time
            frame = self._FRAMES[idx % len(self._FRAMES)]
            line = f"\r\033[K{self._prefix}{frame} {text}"
            if self._show_elapsed:
                line += f" \033[2m{format_elapsed(elapsed)}\033[0m"
            sys.stderr.write(line)
            sys.stderr.flush()
            idx += 1
            time.sleep(self._INTERVAL)


def sanitize_terminal_output(text: str) -> str:
    """Remove ANSI escape sequences from text to prevent terminal injection.

    Names coming back from the platform are user-controlled and may carry
    escape sequences that manipulate the terminal display.

    Args:
        text: Text that may contain ANSI escape sequences.

    Returns:
        Text with all ANSI escape sequences removed.
    """
    return _ANSI_ESCAPE_PATTERN.sub("", text)
