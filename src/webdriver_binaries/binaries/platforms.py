"""Platform detection and mapping."""
import platform
import sys
from typing import Optional

from webdriver_binaries.errors import UnsupportedPlatform
from webdriver_binaries.types import PlatformId

OS_MAPPINGS = {
    "Linux": "linux",
    "Darwin": "mac",
    "Windows": "win",
}

# Machine names that report a 32-bit word size regardless of interpreter
ARCH_32 = {"i386", "i486", "i586", "i686", "x86", "armv6l", "armv7l"}
ARCH_ARM64 = {"arm64", "aarch64"}


def get_word_size(machine: str) -> str:
    """Map a machine name to a platform suffix."""
    machine = machine.lower()
    if machine in ARCH_ARM64:
        return "arm64"
    if machine in ARCH_32:
        return "32"
    if machine:
        return "64"
    # Unknown machine, fall back to the interpreter's pointer size
    return "64" if sys.maxsize > 2**32 else "32"


def detect(system: Optional[str] = None, machine: Optional[str] = None) -> PlatformId:
    """Get the platform identifier for the current (or given) host."""
    if system is None:
        system = platform.system()
    if machine is None:
        machine = platform.machine()

    if system not in OS_MAPPINGS:
        raise UnsupportedPlatform(system or "unknown")

    os_name = OS_MAPPINGS[system]
    suffix = get_word_size(machine)

    # Windows on ARM runs x64 drivers through emulation
    if os_name == "win" and suffix == "arm64":
        suffix = "64"

    return PlatformId(f"{os_name}-{suffix}")


def to_platform_id(value: "str | PlatformId") -> PlatformId:
    """Coerce a platform string to a known identifier."""
    try:
        return PlatformId(value)
    except ValueError:
        raise UnsupportedPlatform(str(value)) from None


def is_platform_supported() -> bool:
    """Check if current platform is supported."""
    try:
        detect()
        return True
    except UnsupportedPlatform:
        return False
