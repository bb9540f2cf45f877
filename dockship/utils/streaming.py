"""
Streaming utilities for SSH output in dockship.

Remote commands can run for minutes (package installs, image builds), so
their output is read line by line and echoed as it arrives.
"""

import subprocess
import threading
import time
from contextlib import contextmanager
from typing import List, Optional

from .logging import log_error, log_info, log_remote, is_verbose


@contextmanager
def stream_ssh_output(process: subprocess.Popen,
                      timeout: Optional[int] = None,
                      progress_interval: int = 30):
    """Context manager for streaming SSH command output.

    Args:
        process: Subprocess Popen object
        timeout: Maximum execution time in seconds (None waits forever)
        progress_interval: Seconds between progress updates (non-verbose mode)

    Yields:
        Tuple of (stdout_lines, stderr_lines, return_code)
    """
    stdout_lines: List[str] = []
    stderr_lines: List[str] = []
    stdout_done = threading.Event()
    stderr_done = threading.Event()
    output_lock = threading.Lock()

    def read_stream(stream, lines: List[str], done: threading.Event):
        try:
            for line in iter(stream.readline, ''):
                if line:
                    line = line.rstrip()
                    with output_lock:
                        lines.append(line)
                        log_remote(line)
        finally:
            done.set()

    stdout_thread = threading.Thread(
        target=read_stream, args=(process.stdout, stdout_lines, stdout_done), daemon=True
    )
    stderr_thread = threading.Thread(
        target=read_stream, args=(process.stderr, stderr_lines, stderr_done), daemon=True
    )
    stdout_thread.start()
    stderr_thread.start()

    start_time = time.time()
    last_progress_time = start_time

    try:
        while process.poll() is None:
            elapsed = time.time() - start_time

            if timeout and elapsed > timeout:
                log_error(f"Process timed out after {timeout}s")
                process.kill()
                process.wait()
                break

            if not is_verbose() and time.time() - last_progress_time > progress_interval:
                log_info(f"Still running... ({int(elapsed / 60)}m {int(elapsed % 60)}s elapsed)")
                last_progress_time = time.time()

            time.sleep(0.2)

        stdout_done.wait(timeout=10)
        stderr_done.wait(timeout=10)

        yield stdout_lines, stderr_lines, process.returncode
    finally:
        # never leave the child running after an abort
        if process.poll() is None:
            process.kill()
            process.wait()
        stdout_done.wait(timeout=5)
        stderr_done.wait(timeout=5)


def execute_with_streaming(cmd: List[str], script: Optional[str] = None,
                           timeout: Optional[int] = None,
                           progress_interval: int = 30) -> tuple:
    """Execute a command with streaming output.

    Args:
        cmd: Command as list
        script: Content to send via stdin (optional)
        timeout: Maximum execution time in seconds
        progress_interval: Seconds between progress updates

    Returns:
        Tuple of (returncode: int, stdout_lines: List[str], stderr_lines: List[str])

    Raises:
        FileNotFoundError: If the executable does not exist
    """
    process = subprocess.Popen(
        cmd,
        stdin=subprocess.PIPE if script else subprocess.DEVNULL,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        text=True,
        bufsize=1,
    )

    if script:
        try:
            process.stdin.write(script)
            process.stdin.close()
        except BaseException:
            process.kill()
            process.wait()
            raise

    with stream_ssh_output(process, timeout, progress_interval) as (stdout_lines, stderr_lines, returncode):
        return returncode, stdout_lines, stderr_lines
