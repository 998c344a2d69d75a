"""Download and supervise the Selenium standalone server and browser drivers."""
from webdriver_binaries.errors import (
    ArchiveError,
    BinaryNotInstalled,
    ChecksumError,
    FilesystemError,
    NetworkError,
    ProcessStartError,
    RuntimeUnavailable,
    UnknownBinary,
    UnsupportedPlatform,
    VersionResolutionError,
    WebDriverManagerError,
)
from webdriver_binaries.manager import Manager
from webdriver_binaries.process import ProcessHandle, SeleniumProcess
from webdriver_binaries.types import Capability, PlatformId, ProcessState, ResolvedVersion

__version__ = "0.1.0"

__all__ = [
    "Manager",
    "SeleniumProcess",
    "ProcessHandle",
    "Capability",
    "PlatformId",
    "ProcessState",
    "ResolvedVersion",
    "WebDriverManagerError",
    "UnsupportedPlatform",
    "VersionResolutionError",
    "NetworkError",
    "ChecksumError",
    "FilesystemError",
    "ArchiveError",
    "UnknownBinary",
    "BinaryNotInstalled",
    "RuntimeUnavailable",
    "ProcessStartError",
]
