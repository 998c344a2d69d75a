"""Registry of managed binaries and entry point for update/start/clean."""
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional

from webdriver_binaries.binaries.binary import Binary
from webdriver_binaries.binaries.binary_info import BINARY_CONFIGS
from webdriver_binaries.binaries.constants import DEFAULT_PORT
from webdriver_binaries.binaries.resolver import BinaryResolver
from webdriver_binaries.config import Settings, load_settings
from webdriver_binaries.errors import (
    BinaryNotInstalled,
    FilesystemError,
    RuntimeUnavailable,
    UnknownBinary,
    WebDriverManagerError,
    log_error,
)
from webdriver_binaries.events import DOWNLOAD_EVENTS, EventEmitter
from webdriver_binaries.logging import configure_logging, get_logger
from webdriver_binaries.process import ProcessHandle, SeleniumProcess
from webdriver_binaries.types import BinarySpec, PlatformId

logger = get_logger(__name__)


class Manager(EventEmitter):
    """Fetches the managed binaries and starts the standalone server.

    Download events from the resolver are re-emitted on the manager, so a
    listener registered with ``manager.on("progress", ...)`` sees every fetch.
    """

    def __init__(
        self,
        install_dir: "str | Path | None" = None,
        resolver: Optional[BinaryResolver] = None,
        process: Optional[SeleniumProcess] = None,
        versions: Optional[Mapping[str, str]] = None,
        platform: "str | PlatformId | None" = None,
        specs: Optional[Iterable[BinarySpec]] = None,
        settings: Optional[Settings] = None,
    ):
        super().__init__()
        settings = settings or load_settings()
        pins = {**settings.versions, **(versions or {})}

        self.install_path = Path(install_dir) if install_dir else settings.install_dir
        self.resolver = resolver or BinaryResolver(platform)
        self.process = process or SeleniumProcess()

        # Server first, then drivers
        specs = list(specs) if specs is not None else list(BINARY_CONFIGS.values())
        self.binaries: Dict[str, Binary] = {
            spec.name: Binary(spec, self.resolver, pins.get(spec.name))
            for spec in specs
        }

        self.forward(self.resolver, DOWNLOAD_EVENTS)

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None, **kwargs) -> "Manager":
        """Build a manager from environment settings and configure logging."""
        settings = settings or load_settings()
        configure_logging(settings.log_level)
        return cls(settings=settings, **kwargs)

    def get_binaries(self) -> Dict[str, Binary]:
        return self.binaries

    def get_drivers(self) -> List[Binary]:
        return [binary for binary in self.binaries.values() if binary.is_driver]

    def get_server(self) -> Binary:
        for binary in self.binaries.values():
            if binary.is_server:
                return binary
        raise UnknownBinary("server")

    async def update(self, binary_name: Optional[str] = None) -> None:
        """Fetch and save binaries.

        Without a name every binary is fetched in registration order and the
        first failure propagates, leaving later binaries untouched.
        """
        try:
            if binary_name:
                await self.update_single(binary_name)
                return

            for binary in self.binaries.values():
                await binary.fetch_and_save(self.install_path)
        except WebDriverManagerError as e:
            log_error(e, {"operation": "update", "requested": binary_name}, logger)
            raise

        logger.info("update_complete", binaries=list(self.binaries), install_path=str(self.install_path))

    async def update_single(self, binary_name: str) -> Path:
        if binary_name not in self.binaries:
            raise UnknownBinary(binary_name)

        return await self.binaries[binary_name].fetch_and_save(self.install_path)

    async def start(
        self,
        port: int = DEFAULT_PORT,
        wait_ready: bool = True,
        timeout: Optional[float] = None,
    ) -> ProcessHandle:
        """Start the standalone server.

        Installed drivers are passed to the server as JVM properties.
        """
        server = self.get_server()
        self.assert_start_conditions(server)

        self.process.add_binary(server, self.install_path)
        for driver in self.get_drivers():
            if driver.exists(self.install_path):
                self.process.add_binary(driver, self.install_path)

        return await self.process.start(port, wait_ready=wait_ready, timeout=timeout)

    async def stop(self) -> None:
        await self.process.stop()

    def clean(self) -> None:
        """Remove every file directly under the install path.

        Directories are left alone. Removal continues past failures, so a
        FilesystemError may follow a partial cleanup.
        """
        if not self.install_path.is_dir():
            return

        failures = []
        for entry in self.install_path.iterdir():
            if entry.is_dir() and not entry.is_symlink():
                continue
            try:
                entry.unlink()
            except OSError as e:
                failures.append(f"{entry.name}: {e}")

        if failures:
            raise FilesystemError(
                f"Failed to remove {len(failures)} entries from {self.install_path}: "
                + "; ".join(failures),
                step="clean",
                path=str(self.install_path),
            )

        logger.info("install_path_cleaned", install_path=str(self.install_path))

    def status(self) -> Dict[str, bool]:
        """Whether each binary is installed."""
        return {name: binary.exists(self.install_path) for name, binary in self.binaries.items()}

    def assert_start_conditions(self, server: Binary) -> None:
        if not server.exists(self.install_path):
            raise BinaryNotInstalled(server.name, str(server.path(self.install_path)))

        if not self.process.is_available():
            raise RuntimeUnavailable(server.name, self.process.runtime)
