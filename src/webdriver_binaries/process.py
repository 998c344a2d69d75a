"""Standalone server process supervision."""
import asyncio
import copy
import shutil
from pathlib import Path
from typing import IO, Optional

import psutil

from webdriver_binaries.binaries.binary import Binary
from webdriver_binaries.binaries.constants import (
    DEFAULT_PORT,
    READY_POLL_INTERVAL,
    SERVER_RUNTIME,
    STOP_TIMEOUT,
)
from webdriver_binaries.errors import ProcessStartError, RuntimeUnavailable
from webdriver_binaries.logging import get_logger
from webdriver_binaries.types import ProcessState, ServerCommand

logger = get_logger(__name__)


class ProcessHandle:
    """A supervised server process.

    The handle reports state and can stop the process, but the supervisor
    that created it remains the owner.
    """

    def __init__(self, name: str, command: ServerCommand, port: int):
        self.name = name
        self.command = command
        self.port = port
        self.state = ProcessState.NOT_STARTED
        self.process: Optional[asyncio.subprocess.Process] = None

    def __repr__(self) -> str:
        return f"ProcessHandle(name={self.name!r}, pid={self.pid}, port={self.port}, state={self.state.value})"

    @property
    def pid(self) -> Optional[int]:
        return self.process.pid if self.process else None

    @property
    def args(self) -> list[str]:
        return self.command.args

    @property
    def command_line(self) -> list[str]:
        return self.command.to_list()

    @property
    def returncode(self) -> Optional[int]:
        return self.process.returncode if self.process else None

    def attach(self, process: asyncio.subprocess.Process) -> None:
        self.process = process

    def is_running(self) -> bool:
        """Refresh and report whether the process is alive."""
        if self.state in (ProcessState.STARTING, ProcessState.RUNNING) and self._has_exited():
            self.state = ProcessState.STOPPED
            logger.info("process_exited", name=self.name, pid=self.pid, returncode=self.returncode)
        return self.state in (ProcessState.STARTING, ProcessState.RUNNING)

    def _has_exited(self) -> bool:
        if self.process is None or self.process.returncode is not None:
            return True
        try:
            return psutil.Process(self.pid).status() == psutil.STATUS_ZOMBIE
        except psutil.NoSuchProcess:
            return True

    async def wait(self) -> Optional[int]:
        """Wait for the process to exit and return its exit code."""
        if self.process is None:
            return None
        returncode = await self.process.wait()
        self.state = ProcessState.STOPPED
        return returncode

    async def stop(self, timeout: float = STOP_TIMEOUT) -> None:
        """Terminate the process and its children, killing after ``timeout``."""
        if self.process is None or not self.is_running():
            self.state = ProcessState.STOPPED
            return

        children = []
        try:
            children = psutil.Process(self.pid).children(recursive=True)
        except psutil.Error:
            pass

        for child in children:
            try:
                child.terminate()
            except psutil.NoSuchProcess:
                continue

        try:
            self.process.terminate()
        except ProcessLookupError:
            pass

        try:
            await asyncio.wait_for(self.process.wait(), timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning("process_kill", name=self.name, pid=self.pid, timeout=timeout)
            self.process.kill()
            await self.process.wait()

        _, alive = psutil.wait_procs(children, timeout=timeout)
        for child in alive:
            try:
                child.kill()
            except psutil.NoSuchProcess:
                continue

        self.state = ProcessState.STOPPED
        logger.info("process_stopped", name=self.name, pid=self.pid, returncode=self.returncode)


class SeleniumProcess:
    """Builds and launches the standalone server command line."""

    def __init__(self, runtime: str = SERVER_RUNTIME, name: str = "selenium"):
        self.runtime = runtime
        self.name = name
        self.command = ServerCommand(runtime=runtime)
        self.handle: Optional[ProcessHandle] = None

    def is_available(self) -> bool:
        """Whether the runtime executable is on PATH."""
        return shutil.which(self.runtime) is not None

    def add_binary(self, binary: Binary, install_dir: Path) -> None:
        """Add the server jar, or a driver's JVM property, to the command."""
        path = str(binary.path(install_dir))
        if binary.is_server:
            self.command.binary_path = path
        elif binary.is_driver and binary.spec.jvm_property:
            option = f"-D{binary.spec.jvm_property}={path}"
            if option not in self.command.jvm_options:
                self.command.jvm_options.append(option)

    def add_arg(self, flag: str, value: Optional[str] = None) -> None:
        self.command.extra_args.append(flag)
        if value is not None:
            self.command.extra_args.append(str(value))

    def set_port(self, port: int) -> None:
        self.command.port_args = [] if port == DEFAULT_PORT else ["-port", str(port)]

    async def start(
        self,
        port: int = DEFAULT_PORT,
        wait_ready: bool = True,
        timeout: Optional[float] = None,
        output: Optional[IO] = None,
    ) -> ProcessHandle:
        """Spawn the server and return its handle.

        With ``wait_ready`` the call returns once the port accepts TCP
        connections. ``timeout`` bounds that wait; None waits indefinitely.
        """
        if self.handle is not None and self.handle.is_running():
            raise ProcessStartError(self.name, f"already running with pid {self.handle.pid}")

        self.set_port(port)
        handle = ProcessHandle(self.name, copy.deepcopy(self.command), port)

        executable = shutil.which(self.runtime)
        if executable is None:
            raise RuntimeUnavailable(self.name, self.runtime)

        if await port_in_use(port):
            raise ProcessStartError(self.name, f"port {port} is already in use")

        cmd = [executable, *handle.command_line[1:]]
        handle.state = ProcessState.STARTING
        logger.info("process_starting", name=self.name, cmd=cmd, port=port)

        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=output or asyncio.subprocess.DEVNULL,
                stderr=output or asyncio.subprocess.DEVNULL,
            )
        except OSError as e:
            handle.state = ProcessState.STOPPED
            raise ProcessStartError(self.name, str(e)) from e

        handle.attach(process)
        self.handle = handle

        if wait_ready:
            try:
                await asyncio.wait_for(wait_until_ready(handle), timeout=timeout)
            except asyncio.TimeoutError:
                await handle.stop()
                raise ProcessStartError(
                    self.name, f"port {port} not accepting connections after {timeout}s"
                ) from None
        else:
            handle.state = ProcessState.RUNNING

        logger.info("process_started", name=self.name, pid=handle.pid, port=port)
        return handle

    async def stop(self, timeout: float = STOP_TIMEOUT) -> None:
        if self.handle is not None:
            await self.handle.stop(timeout)


async def wait_until_ready(handle: ProcessHandle, host: str = "127.0.0.1") -> None:
    """Poll ``handle.port`` until it accepts a connection."""
    while True:
        if not handle.is_running():
            returncode = await handle.wait()
            raise ProcessStartError(
                handle.name,
                f"process exited with code {returncode} before accepting connections",
                returncode,
            )
        if await port_in_use(handle.port, host):
            handle.state = ProcessState.RUNNING
            return
        await asyncio.sleep(READY_POLL_INTERVAL)


async def port_in_use(port: int, host: str = "127.0.0.1") -> bool:
    """Whether something accepts TCP connections on ``host:port``."""
    try:
        _, writer = await asyncio.open_connection(host, port)
    except OSError:
        return False

    writer.close()
    await writer.wait_closed()
    return True
