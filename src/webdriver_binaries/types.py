"""Core type definitions"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, Optional


class Capability(Enum):
    SERVER = "server"
    DRIVER = "driver"


class PlatformId(str, Enum):
    LINUX_32 = "linux-32"
    LINUX_64 = "linux-64"
    LINUX_ARM64 = "linux-arm64"
    MAC_32 = "mac-32"
    MAC_64 = "mac-64"
    MAC_ARM64 = "mac-arm64"
    WIN_32 = "win-32"
    WIN_64 = "win-64"

    @property
    def is_windows(self) -> bool:
        return self.value.startswith("win")


class ProcessState(Enum):
    NOT_STARTED = "not_started"
    STARTING = "starting"
    RUNNING = "running"
    STOPPED = "stopped"


@dataclass(frozen=True)
class BinarySpec:
    """Static description of a downloadable binary.

    ``artifacts`` maps each supported platform to the artifact name that is
    substituted into ``url_template``. A platform missing from the mapping has
    no download for this binary.
    """
    name: str
    filename: str
    capabilities: FrozenSet[Capability]
    url_template: str
    index_url: str
    index_kind: str
    artifacts: Dict[PlatformId, str]
    archive_member: Optional[str] = None
    executable: bool = False
    windows_suffix: str = ""
    jvm_property: Optional[str] = None

    def filename_for(self, platform: PlatformId) -> str:
        if platform.is_windows and self.windows_suffix:
            return f"{self.filename}{self.windows_suffix}"
        return self.filename

    def member_for(self, platform: PlatformId) -> Optional[str]:
        if self.archive_member and platform.is_windows and self.windows_suffix:
            return f"{self.archive_member}{self.windows_suffix}"
        return self.archive_member


@dataclass(frozen=True)
class ResolvedVersion:
    """Concrete version, platform and download location for a binary"""
    binary: str
    version: str
    platform: PlatformId
    url: str
    filename: str
    checksum: Optional[str] = None
    archive_member: Optional[str] = None


@dataclass
class ServerCommand:
    """Command line of the standalone server, in launch order"""
    runtime: str
    jvm_options: list[str] = field(default_factory=list)
    binary_path: Optional[str] = None
    port_args: list[str] = field(default_factory=list)
    extra_args: list[str] = field(default_factory=list)

    @property
    def args(self) -> list[str]:
        """Binary path, then ``-port`` if any, then extra args."""
        head = [self.binary_path] if self.binary_path else []
        return [*head, *self.port_args, *self.extra_args]

    def to_list(self) -> list[str]:
        jar = ["-jar"] if self.binary_path else []
        return [self.runtime, *self.jvm_options, *jar, *self.args]
