"""Asynchronous executor for external management commands.

The bridge owns process spawning, the timeout, and raw-text capture. It
never parses output and never answers interactive prompts: stdin is
/dev/null, so a tool that wants a secret fails or hangs, and a hang is
ended by the timeout.

Secrets never travel in argv, where any local user can read them from
/proc. A command that needs one carries it as secret_file content; the
bridge writes it to a private file, puts that path in place of the
SECRET_FILE placeholder, and removes the file once the command exits.

Security Note:
    All commands are validated against an allowlist in
    ALLOWED_SUBPROCESS_COMMANDS. Shell=False is always used to prevent
    shell injection.

Usage:
    from monitor.command_bridge import CommandBridge, CommandSpec

    bridge = CommandBridge()

    # Blocking, on a worker thread you own
    output = bridge.invoke(CommandSpec(("nmcli", "-t", "device")))

    # Non-blocking, completion via the returned future
    future = bridge.submit(CommandSpec(("nmcli", "-t", "device")))
    future.add_done_callback(on_done)
"""

# nosec B404 - subprocess usage is required and validated via allowlist
import os
import signal
import subprocess
import tempfile
import threading
import time
from contextlib import contextmanager
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, FrozenSet, Iterator, Optional, Sequence, Set, Tuple

from config import (
    ALLOWED_SUBPROCESS_COMMANDS,
    INTERVALS,
    THRESHOLDS,
    BridgeError,
    BridgeTimeoutError,
    NonZeroExitError,
    SpawnFailedError,
    get_logger,
)
from config.logging_config import log_subprocess_call

logger = get_logger(__name__)

# Stands in for the path of the secret file in argv
SECRET_FILE = "{secret-file}"


@dataclass(frozen=True)
class CommandSpec:
    """An external command to run.

    Attributes:
        argv: Command and arguments.
        mutating: True for commands that change system state (connect/disconnect).
        target: Entity key the command acts on, for mutating commands.
        timeout: Per-command timeout; the bridge default is used when None.
        secret_file: Content of the private file passed where argv holds
            SECRET_FILE. Never logged.
    """

    argv: Tuple[str, ...]
    mutating: bool = False
    target: Optional[str] = None
    timeout: Optional[float] = None
    secret_file: Optional[str] = field(default=None, repr=False, compare=False)

    @property
    def program(self) -> str:
        return Path(self.argv[0]).name if self.argv else ""

    def display(self) -> list:
        """argv as logged; the secret file shows as its placeholder."""
        return list(self.argv)

    def __str__(self) -> str:
        return " ".join(self.display())

    def __repr__(self) -> str:
        return (f"CommandSpec(argv={tuple(self.display())!r}, mutating={self.mutating!r}, "
                f"target={self.target!r}, timeout={self.timeout!r})")


@dataclass(frozen=True)
class RawOutput:
    """Captured result of a command that exited with status 0."""

    stdout: str
    stderr: str
    returncode: int
    duration_ms: float


def _tool_env() -> Dict[str, str]:
    """Environment for child processes: inherited, with a fixed locale."""
    env = dict(os.environ)
    env["LC_ALL"] = "C"
    env["LANG"] = "C"
    return env


class CommandBridge:
    """Runs external commands with a hard timeout, off the caller's thread.

    Attributes:
        default_timeout: Timeout in seconds when a spec does not carry one.

    Example:
        >>> bridge = CommandBridge(default_timeout=5.0)
        >>> future = bridge.submit(CommandSpec(("nmcli", "-t", "general")))
        >>> future.result().stdout
        'connected:full...'
    """

    def __init__(
        self,
        default_timeout: float = INTERVALS.SUBPROCESS_TIMEOUT_SECONDS,
        max_workers: int = 4,
        allowed: Optional[FrozenSet[str]] = ALLOWED_SUBPROCESS_COMMANDS,
    ):
        """Initialize the bridge.

        Args:
            default_timeout: Timeout for specs without their own.
            max_workers: Size of the worker pool used by submit().
            allowed: Allowed program names; None disables the check.
        """
        self.default_timeout = default_timeout
        self._allowed = allowed
        self._executor = ThreadPoolExecutor(max_workers=max_workers,
                                            thread_name_prefix="bridge")
        self._running: Set[subprocess.Popen] = set()
        self._lock = threading.Lock()
        self._closed = False
        self._env = _tool_env()
        logger.debug(f"CommandBridge initialized, timeout={default_timeout}s, workers={max_workers}")

    def _check_allowed(self, spec: CommandSpec) -> None:
        if not spec.argv:
            raise SpawnFailedError("empty command", command=[])
        if self._allowed is not None and spec.program not in self._allowed:
            raise SpawnFailedError(f"command not in allowlist: {spec.program}",
                                   command=spec.display())

    def _kill(self, proc: subprocess.Popen) -> None:
        """Hard-kill a child and everything in its session."""
        try:
            os.killpg(proc.pid, signal.SIGKILL)
        except (ProcessLookupError, PermissionError):
            pass
        try:
            proc.kill()
        except ProcessLookupError:
            pass

    @contextmanager
    def _argv_for(self, spec: CommandSpec) -> Iterator[list]:
        """Yield the argv to spawn, with the secret file in place while it runs."""
        if spec.secret_file is None:
            yield list(spec.argv)
            return

        # mkstemp creates the file readable by the owner only
        try:
            fd, path = tempfile.mkstemp(prefix="netdash-",
                                        dir=os.environ.get("XDG_RUNTIME_DIR"))
        except OSError as e:
            raise SpawnFailedError(f"cannot create secret file: {e}",
                                   command=spec.display()) from e
        try:
            with os.fdopen(fd, "w") as f:
                f.write(spec.secret_file)
            yield [path if arg == SECRET_FILE else arg for arg in spec.argv]
        finally:
            try:
                os.unlink(path)
            except FileNotFoundError:
                pass

    def invoke(self, spec: CommandSpec, timeout: Optional[float] = None) -> RawOutput:
        """Run a command and wait for it, on the calling thread.

        Never call this from the thread that services input or draws frames;
        use submit() there.

        Args:
            spec: The command to run.
            timeout: Overrides the spec and bridge timeout.

        Returns:
            RawOutput with the full standard output.

        Raises:
            SpawnFailedError: Not allowed, not installed, or bridge shut down.
            BridgeTimeoutError: Timed out; the process was killed.
            NonZeroExitError: Exited with a non-zero status.
        """
        self._check_allowed(spec)
        if timeout is None:
            timeout = spec.timeout if spec.timeout is not None else self.default_timeout
        with self._argv_for(spec) as argv:
            return self._run(spec, argv, timeout)

    def _run(self, spec: CommandSpec, argv: list, timeout: float) -> RawOutput:
        shown = spec.display()
        start_time = time.monotonic()
        with self._lock:
            if self._closed:
                raise SpawnFailedError("bridge is shut down", command=shown)
            try:
                proc = subprocess.Popen(  # nosec B603 - Commands validated via allowlist
                    argv,
                    stdin=subprocess.DEVNULL,
                    stdout=subprocess.PIPE,
                    stderr=subprocess.PIPE,
                    text=True,
                    errors="replace",
                    env=self._env,
                    start_new_session=True,
                )
            except OSError as e:
                logger.warning(f"Could not start {spec.program}: {e}")
                raise SpawnFailedError(e.strerror or str(e), command=shown) from e
            self._running.add(proc)

        try:
            try:
                stdout, stderr = proc.communicate(timeout=timeout)
            except subprocess.TimeoutExpired as e:
                self._kill(proc)
                try:
                    proc.communicate(timeout=1.0)
                except subprocess.TimeoutExpired:
                    logger.debug(f"Pipes still open after killing {spec.program}")
                duration_ms = (time.monotonic() - start_time) * 1000
                log_subprocess_call(logger, shown, None, duration_ms, success=False)
                raise BridgeTimeoutError(command=shown, timeout=timeout) from e
        finally:
            with self._lock:
                self._running.discard(proc)

        duration_ms = (time.monotonic() - start_time) * 1000
        success = proc.returncode == 0
        log_subprocess_call(logger, shown, proc.returncode, duration_ms, success=success)

        if not success:
            raise NonZeroExitError(
                proc.returncode,
                (stderr or "")[:THRESHOLDS.STDERR_EXCERPT_CHARS],
                command=shown,
            )

        return RawOutput(stdout=stdout or "", stderr=stderr or "",
                         returncode=proc.returncode, duration_ms=duration_ms)

    def submit(self, spec: CommandSpec, timeout: Optional[float] = None) -> "Future[RawOutput]":
        """Run a command on the worker pool.

        Returns:
            A future resolving to RawOutput or raising a BridgeError.
        """
        try:
            return self._executor.submit(self.invoke, spec, timeout)
        except RuntimeError as e:
            # executor already shut down
            future: Future = Future()
            future.set_exception(SpawnFailedError(str(e), command=spec.display()))
            return future

    def invoke_all(self, specs: Sequence[CommandSpec]) -> RawOutput:
        """Run commands in order, stopping at the first failure.

        Returns:
            RawOutput of the last command.

        Raises:
            BridgeError: From the first command that failed.
        """
        if not specs:
            raise SpawnFailedError("empty command sequence", command=[])
        output = None
        for spec in specs:
            output = self.invoke(spec)
        return output

    def submit_all(self, specs: Sequence[CommandSpec]) -> "Future[RawOutput]":
        """Run a command sequence on one worker; see invoke_all()."""
        try:
            return self._executor.submit(self.invoke_all, tuple(specs))
        except RuntimeError as e:
            future: Future = Future()
            future.set_exception(SpawnFailedError(str(e), command=[]))
            return future

    def launch_detached(self, spec: CommandSpec) -> bool:
        """Start a program without capturing output or tracking its lifecycle.

        Returns:
            True if the process was started.
        """
        try:
            self._check_allowed(spec)
            proc = subprocess.Popen(  # nosec B603 - Commands validated via allowlist
                list(spec.argv),
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                env=self._env,
                start_new_session=True,
            )
        except (OSError, BridgeError) as e:
            logger.warning(f"Could not launch {spec.program}: {e}")
            return False

        # reap it whenever it exits
        threading.Thread(target=proc.wait, daemon=True,
                         name=f"reap-{spec.program}").start()
        logger.info(f"Launched {spec.program} (pid {proc.pid})")
        return True

    def in_flight(self) -> int:
        """Number of child processes currently running."""
        with self._lock:
            return len(self._running)

    def shutdown(self) -> None:
        """Abandon in-flight commands and stop accepting new ones.

        Running children are killed so no worker is left waiting on a hung tool.
        """
        with self._lock:
            self._closed = True
            running = list(self._running)
        for proc in running:
            logger.debug(f"Killing in-flight command pid {proc.pid}")
            self._kill(proc)
        self._executor.shutdown(wait=False, cancel_futures=True)
        logger.debug("CommandBridge shut down")


__all__ = ["CommandBridge", "CommandSpec", "RawOutput", "SECRET_FILE"]
