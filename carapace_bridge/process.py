"""Provider process lifecycle and output draining.

ManagedProcess:
    Manages a subprocess with proper lifecycle (SIGTERM -> wait -> SIGKILL).

RunSlot:
    The process-wide slot holding the running provider, at most one at a time.

ProviderCoordinator:
    Runs the provider, drains its output line by line without blocking the
    event loop and enforces an idle timeout.
"""

from __future__ import annotations

__all__ = ["ManagedProcess", "ProviderCoordinator", "RunSlot", "kill_by_name", "run_slot"]

import asyncio
import contextlib
import ntpath
import sys
from typing import TYPE_CHECKING, Any

from .constants import POLL_INTERVAL
from .logging_setup import get_logger
from .models import FailureReason, ProcessStartError, ProviderInvocation, RunResult

if TYPE_CHECKING:
    import logging
    from collections.abc import Sequence

# The provider prints its whole document on a single line
OUTPUT_LINE_LIMIT = 2**24


class ManagedProcess:
    """Manages a subprocess with proper lifecycle handling.

    Provides consistent start/stop behavior with graceful shutdown:
    1. SIGTERM first (graceful)
    2. Wait with timeout
    3. SIGKILL if still alive
    4. Always wait() to reap zombie

    Usage:
        proc = ManagedProcess()
        await proc.start(["carapace", "git", "export", ".", "ch"], stdout=asyncio.subprocess.PIPE)

        if proc.process and proc.process.stdout:
            line = await proc.process.stdout.readline()

        await proc.stop()
    """

    def __init__(self, graceful_timeout: float = 1.0) -> None:
        """Initialize.

        Args:
            graceful_timeout: Seconds to wait after SIGTERM before SIGKILL
        """
        self._proc: asyncio.subprocess.Process | None = None
        self._argv: list[str] = []
        self._graceful_timeout = graceful_timeout

    @property
    def pid(self) -> int | None:
        """Return PID if process exists, else None."""
        return self._proc.pid if self._proc else None

    @property
    def returncode(self) -> int | None:
        """Return exit code if process exited, else None."""
        return self._proc.returncode if self._proc else None

    @property
    def is_alive(self) -> bool:
        """Check if process is currently running."""
        return self._proc is not None and self._proc.returncode is None

    @property
    def process(self) -> asyncio.subprocess.Process | None:
        """Access underlying process for advanced use (e.g., stdin/stdout)."""
        return self._proc

    @property
    def argv(self) -> list[str]:
        """Return the argument vector of the last start()."""
        return self._argv

    async def start(self, argv: Sequence[str], **subprocess_kwargs: Any) -> None:  # noqa: ANN401
        """Start the process. Stops existing process first if running.

        Args:
            argv: Executable and arguments, no shell is involved
            **subprocess_kwargs: Passed to create_subprocess_exec (e.g., stdout=PIPE)

        Raises:
            ProcessStartError: the executable can't be started
        """
        if self.is_alive:
            await self.stop()

        self._argv = list(argv)
        try:
            self._proc = await asyncio.create_subprocess_exec(*self._argv, **subprocess_kwargs)
        except OSError as e:
            self._proc = None
            msg = f"Cannot start {self._argv[0]}: {e}"
            raise ProcessStartError(msg) from e

    async def _reap(self) -> int | None:
        """Wait for the exit status, without hanging on pipes kept open by children."""
        assert self._proc is not None
        with contextlib.suppress(TimeoutError):
            await asyncio.wait_for(self._proc.wait(), timeout=self._graceful_timeout)
        return self._proc.returncode

    async def stop(self) -> int | None:
        """Stop the process gracefully.

        Shutdown sequence:
        1. SIGTERM (graceful)
        2. Wait up to graceful_timeout
        3. SIGKILL if still alive
        4. wait() to reap

        Returns:
            The process return code, or None if not running
        """
        if self._proc is None:
            return None

        if self._proc.returncode is not None:
            return self._proc.returncode

        with contextlib.suppress(ProcessLookupError):
            self._proc.terminate()

        try:
            await asyncio.wait_for(self._proc.wait(), timeout=self._graceful_timeout)
        except TimeoutError:
            return await self.kill()

        return self._proc.returncode

    async def kill(self) -> int | None:
        """Kill the process right away (SIGKILL) and reap it.

        Returns:
            The process return code, or None if never started
        """
        if self._proc is None:
            return None
        if self._proc.returncode is None:
            with contextlib.suppress(ProcessLookupError):
                self._proc.kill()
        return await self._reap()

    async def wait(self) -> int:
        """Wait for process to exit and return exit code.

        Raises:
            RuntimeError: If no process is running
        """
        if self._proc is None:
            msg = "No process running"
            raise RuntimeError(msg)
        return await self._proc.wait()


async def kill_by_name(executable: str, log: logging.Logger | None = None) -> None:
    """Forcefully kill every process running `executable`.

    Uses `taskkill /f /im` on Windows and `pkill -KILL -x` elsewhere.
    Failing to run the kill command is logged and otherwise ignored.
    """
    name = ntpath.basename(executable)
    if sys.platform == "win32":
        argv = ["taskkill", "/f", "/im", name if name.lower().endswith(".exe") else f"{name}.exe"]
    else:
        argv = ["pkill", "-KILL", "-x", name]
    try:
        killer = await asyncio.create_subprocess_exec(
            *argv,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.DEVNULL,
            stderr=asyncio.subprocess.DEVNULL,
        )
    except OSError as e:
        if log:
            log.warning("Can't run %s: %s", argv[0], e)
        return
    await killer.wait()


class RunSlot:
    """Holds the provider process currently running, if any.

    Lifecycle is Idle <-> Running: a run claims the slot when its process
    starts and releases it when it concludes, whatever the outcome.
    """

    def __init__(self) -> None:
        self._occupant: ManagedProcess | None = None

    @property
    def busy(self) -> bool:
        """Return True while a run occupies the slot."""
        return self._occupant is not None

    @property
    def occupant(self) -> ManagedProcess | None:
        """Return the process of the active run."""
        return self._occupant

    def claim(self, process: ManagedProcess) -> None:
        """Occupy the slot.

        Raises:
            RuntimeError: another run is active
        """
        if self._occupant is not None and self._occupant is not process:
            msg = "A provider run is already active"
            raise RuntimeError(msg)
        self._occupant = process

    def release(self, process: ManagedProcess) -> None:
        """Free the slot if `process` still holds it."""
        if self._occupant is process:
            self._occupant = None

    async def force_free(self) -> ManagedProcess | None:
        """Kill the occupant and free the slot.

        Returns:
            The killed process, if any
        """
        occupant, self._occupant = self._occupant, None
        if occupant is not None:
            await occupant.kill()
        return occupant


run_slot = RunSlot()
"""Process-wide slot: at most one provider runs at any time."""


class ProviderCoordinator:
    """Runs the provider and collects its output within a bounded idle time."""

    def __init__(
        self,
        slot: RunSlot | None = None,
        poll_interval: float = POLL_INTERVAL,
        kill_by_name: bool = True,
        log: logging.Logger | None = None,
    ) -> None:
        """Initialize.

        Args:
            slot: The run slot to occupy, defaults to the process-wide one
            poll_interval: Seconds to yield to the event loop between output polls
            kill_by_name: On timeout, also kill stray processes by executable name
            log: Logger to use
        """
        self.slot = run_slot if slot is None else slot
        self.poll_interval = poll_interval
        self.kill_by_name = kill_by_name
        self.log = log or get_logger("coordinator")

    @property
    def busy(self) -> bool:
        """Return True if a provider run is active."""
        return self.slot.busy

    async def run(self, invocation: ProviderInvocation, timeout: float | None = None) -> RunResult:
        """Run the provider and return its output.

        Args:
            invocation: The provider command line
            timeout: Maximum seconds without output, defaults to invocation.timeout

        Returns:
            The run result: the output on success, TERMINATED if the process
            couldn't start or its output couldn't be read, TIMEOUT if it stayed
            silent for too long
        """
        if timeout is None:
            timeout = invocation.timeout
        proc = ManagedProcess()
        self.log.debug("Running %s (timeout: %ss)", invocation.command_line, timeout)
        # claimed before the first await so concurrent requests see the slot busy
        self.slot.claim(proc)
        try:
            try:
                await proc.start(
                    invocation.argv,
                    stdin=asyncio.subprocess.DEVNULL,
                    stdout=asyncio.subprocess.PIPE,
                    stderr=asyncio.subprocess.DEVNULL,
                    limit=OUTPUT_LINE_LIMIT,
                )
            except ProcessStartError as e:
                self.log.info("%s", e)
                return RunResult.failed(FailureReason.TERMINATED)
            if self.slot.occupant is not proc:
                # force-freed while starting
                await proc.kill()
                return RunResult.failed(FailureReason.TERMINATED)
            return await self._drain(proc, invocation.executable, timeout)
        except asyncio.CancelledError:
            await proc.kill()
            raise
        finally:
            self.slot.release(proc)

    async def _drain(self, proc: ManagedProcess, executable: str, timeout: float) -> RunResult:
        """Read lines until end of output or idle timeout."""
        assert proc.process is not None
        assert proc.process.stdout is not None
        stdout = proc.process.stdout
        loop = asyncio.get_running_loop()
        lines: list[str] = []
        last_output = loop.time()
        pending = asyncio.ensure_future(stdout.readline())
        try:
            while True:
                done, _ = await asyncio.wait({pending}, timeout=self.poll_interval)
                if pending in done:
                    try:
                        raw = pending.result()
                    except ValueError:
                        self.log.warning("Provider output line exceeds %d bytes", OUTPUT_LINE_LIMIT)
                        await self.terminate(proc, executable)
                        return RunResult.failed(FailureReason.TERMINATED)
                    if not raw:
                        break
                    last_output = loop.time()
                    line = raw.decode("utf-8", errors="replace").rstrip("\r\n")
                    if line:
                        lines.append(line)
                    pending = asyncio.ensure_future(stdout.readline())
                elif loop.time() - last_output > timeout:
                    self.log.warning("Provider silent for more than %ss, terminating it", timeout)
                    await self.terminate(proc, executable)
                    return RunResult.failed(FailureReason.TIMEOUT)
        finally:
            if not pending.done():
                pending.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await pending

        # End of output, which includes a provider killed by a newer request
        if proc.is_alive:
            try:
                await asyncio.wait_for(proc.wait(), timeout=timeout)
            except TimeoutError:
                await proc.stop()
        self.log.debug("Provider exited with code %s", proc.returncode)
        return RunResult.ok("\n".join(lines))

    async def terminate(self, proc: ManagedProcess, executable: str) -> None:
        """Kill a provider process, and its namesakes when configured to."""
        await proc.kill()
        if self.kill_by_name:
            await kill_by_name(executable, self.log)

    async def cancel_active(self, executable: str) -> bool:
        """Force-terminate the active run, if any.

        The draining loop of that run sees the end of the output and concludes normally.

        Returns:
            True if a run was active
        """
        occupant = await self.slot.force_free()
        if occupant is None:
            return False
        self.log.warning("Terminated a provider run still in progress (pid %s)", occupant.pid)
        if self.kill_by_name:
            await kill_by_name(executable, self.log)
        return True
