"""Shell execution utilities.

Provides safe subprocess execution with timeout enforcement and
classification of failed commands.
"""

import asyncio
import contextlib
import logging
import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

# Default wall-clock limit for a toolchain invocation
DEFAULT_TIMEOUT: float = 30.0

# OS phrasing that marks a failure as a permission problem
_PERMISSION_PATTERN = re.compile(
    r"permission denied|operation not permitted|access is denied|\beacces\b|\beperm\b",
    re.IGNORECASE,
)


@dataclass(frozen=True, slots=True)
class CommandResult:
    """Result of a shell command execution.

    Attributes:
        stdout: Standard output from the command.
        stderr: Standard error from the command.
        returncode: Exit code of the command.
        command: Executable that was invoked.
        args: Arguments passed to the executable.
    """

    stdout: str
    stderr: str
    returncode: int
    command: str = ""
    args: tuple[str, ...] = field(default=())

    @property
    def success(self) -> bool:
        """Check if command executed successfully."""
        return self.returncode == 0

    @property
    def full_command(self) -> str:
        """Return the command line as a single string."""
        return " ".join([self.command, *self.args]).strip()


class CommandError(Exception):
    """Base exception for command execution errors."""


class ToolNotFoundError(CommandError):
    """Raised when the executable cannot be found."""

    def __init__(self, command: str) -> None:
        self.command = command
        super().__init__(f"Command not found: {command}")


class CommandTimeoutError(CommandError):
    """Raised when a command does not exit before its timeout."""

    def __init__(self, command: str, timeout: float) -> None:
        self.command = command
        self.timeout = timeout
        super().__init__(f"Command timed out after {timeout:g}s: {command}")


class CommandFailedError(CommandError):
    """Raised when a command exits with a non-zero status."""

    def __init__(self, result: CommandResult) -> None:
        self.result = result
        detail = result.stderr.strip() or result.stdout.strip() or "no output"
        super().__init__(
            f"Command failed (exit {result.returncode}): {result.full_command}\n{detail}"
        )


class CommandPermissionError(CommandFailedError):
    """Raised when a command fails because the OS denied access."""


def is_permission_denial(text: str) -> bool:
    """Check whether command output reads like an OS permission denial.

    Args:
        text: Captured stderr (or any message) to inspect.

    Returns:
        True if the text matches known permission-denial phrasing.
    """
    return bool(_PERMISSION_PATTERN.search(text))


class ProcessRunner:
    """Runs external commands with a bounded wall-clock timeout.

    Each call to :meth:`execute` spawns exactly one child process and
    never retries. The wait for the child to exit and the timeout
    countdown run as two tasks; whichever finishes first cancels the
    other, so a call never blocks much past ``timeout``.

    Example:
        >>> runner = ProcessRunner()
        >>> result = await runner.execute("go", ["env", "GOMODCACHE"])
        >>> print(result.stdout.strip())
    """

    def __init__(self, default_timeout: float = DEFAULT_TIMEOUT) -> None:
        self._default_timeout = default_timeout

    @property
    def default_timeout(self) -> float:
        """Timeout applied when a call does not pass one."""
        return self._default_timeout

    async def execute(
        self,
        command: str,
        args: Sequence[str] = (),
        *,
        cwd: str | None = None,
        env: Mapping[str, str] | None = None,
        timeout: float | None = None,
    ) -> CommandResult:
        """Execute a command and return its captured output.

        Args:
            command: Executable name or absolute path.
            args: Arguments passed to the executable.
            cwd: Working directory for the command. If None, uses current directory.
            env: Complete environment for the child. If None, inherits ours.
            timeout: Maximum time in seconds to wait for the command.

        Returns:
            CommandResult for a command that exited with status 0.

        Raises:
            ToolNotFoundError: If the executable cannot be found.
            CommandTimeoutError: If the command exceeds the timeout.
            CommandPermissionError: If the OS denied the command access.
            CommandFailedError: If the command exits with a non-zero status.
        """
        limit = self._default_timeout if timeout is None else timeout
        arguments = tuple(args)

        logger.debug("Executing %s %s (cwd=%s, timeout=%ss)", command, arguments, cwd, limit)

        try:
            proc = await asyncio.create_subprocess_exec(
                command,
                *arguments,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=cwd,
                env=dict(env) if env is not None else None,
            )
        except FileNotFoundError as e:
            # Also raised for a missing cwd; only blame the tool when it is absent
            if cwd is not None and e.filename == cwd:
                raise CommandFailedError(
                    CommandResult(
                        stdout="",
                        stderr=f"Working directory not found: {cwd}",
                        returncode=-1,
                        command=command,
                        args=arguments,
                    )
                ) from e
            raise ToolNotFoundError(command) from e
        except PermissionError as e:
            raise CommandPermissionError(
                CommandResult(
                    stdout="",
                    stderr=str(e),
                    returncode=-1,
                    command=command,
                    args=arguments,
                )
            ) from e
        except OSError as e:
            # Exec format errors, a cwd that is not a directory, resource limits
            raise CommandFailedError(
                CommandResult(
                    stdout="",
                    stderr=str(e),
                    returncode=-1,
                    command=command,
                    args=arguments,
                )
            ) from e

        communicate = asyncio.ensure_future(proc.communicate())
        countdown = asyncio.ensure_future(asyncio.sleep(limit))

        try:
            done, _ = await asyncio.wait(
                {communicate, countdown},
                return_when=asyncio.FIRST_COMPLETED,
            )
        except asyncio.CancelledError:
            communicate.cancel()
            countdown.cancel()
            await _kill(proc)
            raise

        if communicate not in done:
            communicate.cancel()
            await _kill(proc)
            logger.warning("Timed out after %ss: %s %s", limit, command, " ".join(arguments))
            raise CommandTimeoutError(" ".join([command, *arguments]), limit)

        countdown.cancel()
        stdout_bytes, stderr_bytes = communicate.result()

        result = CommandResult(
            stdout=stdout_bytes.decode("utf-8", errors="replace"),
            stderr=stderr_bytes.decode("utf-8", errors="replace"),
            returncode=proc.returncode if proc.returncode is not None else -1,
            command=command,
            args=arguments,
        )

        if not result.success:
            logger.debug("Command exited %d: %s", result.returncode, result.full_command)
            if is_permission_denial(result.stderr):
                raise CommandPermissionError(result)
            raise CommandFailedError(result)

        return result


async def _kill(proc: asyncio.subprocess.Process) -> None:
    """Forcibly terminate a child process and reap it."""
    with contextlib.suppress(ProcessLookupError):
        proc.kill()
    await proc.wait()

