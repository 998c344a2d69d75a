"""Managed binary entries."""
from pathlib import Path
from typing import Optional

from webdriver_binaries.binaries import fetcher
from webdriver_binaries.binaries.resolver import BinaryResolver
from webdriver_binaries.types import BinarySpec, Capability


class Binary:
    """A named, independently fetchable artifact in the install directory."""

    def __init__(self, spec: BinarySpec, resolver: BinaryResolver, version: Optional[str] = None):
        self.spec = spec
        self.resolver = resolver
        self.version = version

    def __repr__(self) -> str:
        return f"Binary(name={self.name!r}, capabilities={sorted(c.value for c in self.capabilities)})"

    @property
    def name(self) -> str:
        return self.spec.name

    @property
    def capabilities(self) -> frozenset:
        return self.spec.capabilities

    @property
    def is_driver(self) -> bool:
        return Capability.DRIVER in self.capabilities

    @property
    def is_server(self) -> bool:
        return Capability.SERVER in self.capabilities

    @property
    def filename(self) -> str:
        return self.resolver.filename(self.spec)

    def path(self, install_dir: Path) -> Path:
        return Path(install_dir) / self.filename

    def exists(self, install_dir: Path) -> bool:
        return fetcher.exists(self.path(install_dir), self.spec.executable)

    async def fetch_and_save(self, install_dir: Path) -> Path:
        """Resolve the pinned (or latest) version and install it."""
        resolved = await self.resolver.resolve(self.spec, self.version)
        return await self.resolver.fetch_and_save(resolved, install_dir, self.spec.executable)
