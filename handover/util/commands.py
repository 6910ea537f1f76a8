"""External command execution."""

import subprocess
import sys
from typing import List

from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from ..errors import CommandError
from ..util.logging import get_logger

logger = get_logger(__name__)

POWERSHELL = "powershell.exe"


class TransientCommandError(CommandError):
    """A command timed out and may succeed when retried."""
    pass


def _startupinfo():
    """Hide console windows spawned from a windowed parent."""
    if sys.platform != "win32":
        return None
    startupinfo = subprocess.STARTUPINFO()
    startupinfo.dwFlags |= subprocess.STARTF_USESHOWWINDOW
    startupinfo.wShowWindow = subprocess.SW_HIDE
    return startupinfo


@retry(
    retry=retry_if_exception_type(TransientCommandError),
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    reraise=True,
)
def run_command(command: List[str], timeout: int = 60, check: bool = True) -> str:
    """Run an external command and return its stripped stdout.

    Timeouts are retried; a non-zero exit raises ``CommandError`` straight away.
    """
    try:
        logger.debug(f"Running command: {' '.join(command)}")
        result = subprocess.run(
            command,
            capture_output=True,
            text=True,
            timeout=timeout,
            check=check,
            startupinfo=_startupinfo(),
        )
        return result.stdout.strip()
    except subprocess.CalledProcessError as e:
        error_msg = f"Command failed: {' '.join(command)}\nError: {(e.stderr or e.stdout or '').strip()}"
        logger.debug(error_msg)
        raise CommandError(error_msg) from e
    except subprocess.TimeoutExpired as e:
        error_msg = f"Command timed out: {' '.join(command)}"
        logger.debug(error_msg)
        raise TransientCommandError(error_msg) from e
    except FileNotFoundError as e:
        raise CommandError(f"Command not found: {command[0]}") from e


def run_powershell(script: str, timeout: int = 60) -> str:
    """Run a PowerShell snippet non-interactively."""
    return run_command(
        [POWERSHELL, "-NoProfile", "-NonInteractive", "-ExecutionPolicy", "Bypass", "-Command", script],
        timeout=timeout,
    )
