"""
Guarded execution of automation shell commands.

The allow-list / deny-list check is a heuristic filter for commands typed
into rules, not a sandbox.
"""

import logging
import subprocess
from typing import Iterable, Optional

logger = logging.getLogger(__name__)
security_logger = logging.getLogger('zerostat.security')

DEFAULT_ALLOWED_COMMANDS = (
    'docker stop $(docker ps -q)',
    'sync; echo 1 > /proc/sys/vm/drop_caches',
    'systemctl restart my-app',
)

DANGEROUS_CHARACTERS = (';', '&', '|', '$', '>', '<', '`', '\n')

DEFAULT_TIMEOUT_SECONDS = 30


class ShellResult:
    """Outcome of a shell command attempt"""
    EXECUTED = 'executed'
    FAILED = 'failed'
    TIMED_OUT = 'timed_out'
    BLOCKED = 'blocked'


class ShellExecutor:
    """Runs allow-listed or metacharacter-free commands through sh -c"""

    def __init__(self, allowed_commands: Optional[Iterable[str]] = None,
                 timeout: float = DEFAULT_TIMEOUT_SECONDS):
        """
        Initialize shell executor.

        Args:
            allowed_commands: Exact command strings permitted even when they
                contain shell metacharacters
            timeout: Wall clock limit in seconds
        """
        if allowed_commands is None:
            allowed_commands = DEFAULT_ALLOWED_COMMANDS

        self.allowed_commands = frozenset(c.strip() for c in allowed_commands)
        self.timeout = timeout

    def is_allowed(self, command: str) -> bool:
        """
        Check a command against the allow-list, then the deny-list.

        Args:
            command: Command string as configured on the rule

        Returns:
            True if the command may run
        """
        if command.strip() in self.allowed_commands:
            return True

        return not any(char in command for char in DANGEROUS_CHARACTERS)

    def execute(self, command: str) -> str:
        """
        Run a command if it passes the guard.

        Never raises; every outcome is logged.

        Returns:
            One of the ShellResult values
        """
        if not self.is_allowed(command):
            security_logger.warning(f"Blocked potentially unsafe shell command: {command!r}")
            return ShellResult.BLOCKED

        logger.info(f"Executing shell command: {command}")
        try:
            completed = subprocess.run(
                ['sh', '-c', command],
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                timeout=self.timeout,
                text=True,
                errors='replace',
            )
        except subprocess.TimeoutExpired as e:
            # subprocess.run kills the child before re-raising
            output = _decode(e.output)
            logger.error(f"Command timed out after {self.timeout}s: {command} | Output: {output}")
            return ShellResult.TIMED_OUT
        except OSError as e:
            logger.error(f"Execution failed to start: {command}: {e}")
            return ShellResult.FAILED

        if completed.returncode != 0:
            logger.error(
                f"Execution failed (exit {completed.returncode}): {command} | Output: {completed.stdout}"
            )
            return ShellResult.FAILED

        logger.info(f"Execution succeeded: {command} | Output: {completed.stdout}")
        return ShellResult.EXECUTED


def _decode(output) -> str:
    if output is None:
        return ''
    if isinstance(output, bytes):
        return output.decode(errors='replace')
    return output
