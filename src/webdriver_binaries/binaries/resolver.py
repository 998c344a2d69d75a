"""Resolve and fetch binaries for one host platform."""
from pathlib import Path
from typing import Optional

from webdriver_binaries.binaries import binary_info, fetcher
from webdriver_binaries.binaries.platforms import detect, to_platform_id
from webdriver_binaries.events import EventEmitter
from webdriver_binaries.types import BinarySpec, PlatformId, ResolvedVersion


class BinaryResolver(EventEmitter):
    """Pairs version/URL resolution with fetching for a fixed platform.

    Download events (``request.start``, ``progress``, ``complete``) are
    emitted on the resolver itself.
    """

    def __init__(self, platform: "str | PlatformId | None" = None):
        super().__init__()
        self.platform = to_platform_id(platform) if platform is not None else detect()

    async def resolve(self, spec: BinarySpec, version: Optional[str] = None) -> ResolvedVersion:
        return await binary_info.resolve(spec, self.platform, version)

    async def fetch_and_save(self, resolved: ResolvedVersion, install_dir: Path, executable: bool = False) -> Path:
        return await fetcher.fetch_and_save(resolved, install_dir, self, executable)

    def filename(self, spec: BinarySpec) -> str:
        return spec.filename_for(self.platform)
