"""
Logging and output utilities for dockship.

Every record is written as a timestamped line to the console (colored with
rich) and, once a run log is opened, appended as plain text to the
run-scoped log file.
"""

from datetime import datetime
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.markup import escape

# Initialize console for colored output
console = Console()
err_console = Console(stderr=True)

# Global verbose mode flag
_verbose_mode = False

# JSON mode: stdout carries only the JSON document
_json_mode = False

# Run-scoped log file, opened by start_run_log()
_log_file: Optional[Path] = None

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
LOGFILE_TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"


class Colors:
    RED = "red"
    GREEN = "green"
    YELLOW = "yellow"
    BLUE = "blue"
    PURPLE = "purple"
    CYAN = "cyan"


def set_verbose(enabled: bool) -> None:
    """Set verbose mode (streams remote command output)."""
    global _verbose_mode
    _verbose_mode = enabled


def is_verbose() -> bool:
    """Check if verbose mode is enabled."""
    return _verbose_mode


def set_json_mode(enabled: bool) -> None:
    """Set JSON mode - when enabled, log records go to stderr."""
    global _json_mode
    _json_mode = enabled


def is_json_mode() -> bool:
    return _json_mode


def _record_console() -> Console:
    return err_console if _json_mode else console


def start_run_log(directory: Optional[Path] = None, started: Optional[datetime] = None) -> Path:
    """Open the run-scoped log file named after the start time.

    Args:
        directory: Directory to create the log in (defaults to cwd)
        started: Start time used in the file name (defaults to now)

    Returns:
        Path to the log file
    """
    global _log_file
    directory = Path(directory) if directory else Path.cwd()
    directory.mkdir(parents=True, exist_ok=True)
    started = started or datetime.now()
    _log_file = directory / f"deploy_{started.strftime(LOGFILE_TIMESTAMP_FORMAT)}.log"
    _log_file.touch()
    return _log_file


def stop_run_log() -> None:
    """Stop duplicating records to the run log."""
    global _log_file
    _log_file = None


def get_run_log() -> Optional[Path]:
    return _log_file


def format_record(level: str, message: str, now: Optional[datetime] = None) -> str:
    """Format a log record as ``[YYYY-MM-DD HH:MM:SS] LEVEL: message``."""
    now = now or datetime.now()
    return f"[{now.strftime(TIMESTAMP_FORMAT)}] {level}: {message}"


def _emit(level: str, color: str, message: str) -> None:
    now = datetime.now()
    stamp = escape(f"[{now.strftime(TIMESTAMP_FORMAT)}]")
    _record_console().print(f"{stamp} [{color}]{level}:[/{color}] {escape(message)}", highlight=False)
    if _log_file is not None:
        with open(_log_file, "a", encoding="utf-8") as f:
            f.write(format_record(level, message, now) + "\n")


def log_info(message: str) -> None:
    """Log an info message."""
    _emit("INFO", Colors.BLUE, message)


def log_success(message: str) -> None:
    """Log a success message."""
    _emit("SUCCESS", Colors.GREEN, message)


def log_warning(message: str) -> None:
    """Log a warning message."""
    _emit("WARNING", Colors.YELLOW, message)


def log_error(message: str) -> None:
    """Log an error message."""
    _emit("ERROR", Colors.RED, message)


def log_phase(message: str) -> None:
    """Log a phase (pipeline stage) header."""
    _emit("PHASE", Colors.PURPLE, message)


def log_remote(line: str) -> None:
    """Echo one line of remote output (only shown in verbose mode)."""
    if _verbose_mode:
        _record_console().print(f"  [{Colors.CYAN}]|[/{Colors.CYAN}] {escape(line)}")
    if _log_file is not None:
        with open(_log_file, "a", encoding="utf-8") as f:
            f.write(f"  | {line}\n")


def print_plain(message: str) -> None:
    """Print plain text without any prefix."""
    _record_console().print(message, markup=False, highlight=False, soft_wrap=True)


def error_exit(message: str, exit_code: int = 1) -> None:
    """Log an error and exit."""
    log_error(message)
    raise SystemExit(exit_code)
