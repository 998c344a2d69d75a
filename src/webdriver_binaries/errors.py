"""Error types for binary resolution, installation and process supervision."""
from typing import Any, Dict, Optional

from webdriver_binaries.logging import get_logger


def log_error(
    error: Exception,
    context: Optional[Dict[str, Any]] = None,
    logger: Optional[Any] = None
) -> None:
    """Log an error with context."""
    logger = logger or get_logger(__name__)

    error_info = {
        "error_type": error.__class__.__name__,
        "error_message": str(error)
    }
    if context:
        error_info["context"] = context
    if isinstance(error, WebDriverManagerError):
        error_info["details"] = error.details

    logger.error("webdriver_binaries_error", **error_info)


class WebDriverManagerError(Exception):
    """Base error class for the binary manager."""
    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    @property
    def binary(self) -> Optional[str]:
        return self.details.get("binary")

    @property
    def step(self) -> Optional[str]:
        return self.details.get("step")


class UnsupportedPlatform(WebDriverManagerError):
    """Host platform, or a binary's artifact for it, is not known."""
    def __init__(self, platform: str, binary: Optional[str] = None):
        if binary:
            message = f"No {binary} artifact available for platform {platform}"
        else:
            message = f"Unsupported platform: {platform}"
        super().__init__(
            message,
            details={"binary": binary, "platform": platform, "step": "platform"}
        )


class VersionResolutionError(WebDriverManagerError):
    """Upstream version index unreachable or without a matching release."""
    def __init__(self, binary: str, reason: str, url: Optional[str] = None):
        super().__init__(
            f"Could not resolve {binary} version: {reason}",
            details={"binary": binary, "url": url, "step": "resolve"}
        )


class NetworkError(WebDriverManagerError):
    """Transport failure while downloading an artifact."""
    def __init__(self, binary: str, url: str, reason: str):
        super().__init__(
            f"Failed to download {binary} from {url}: {reason}",
            details={"binary": binary, "url": url, "step": "download"}
        )


class ChecksumError(WebDriverManagerError):
    """Downloaded artifact does not match its published digest."""
    def __init__(self, binary: str, expected: str, actual: str):
        super().__init__(
            f"Checksum mismatch for {binary}: expected {expected}, got {actual}",
            details={
                "binary": binary,
                "expected": expected,
                "actual": actual,
                "step": "verify"
            }
        )


class FilesystemError(WebDriverManagerError):
    """Write, rename, permission or delete failure in the install directory."""
    def __init__(
        self,
        message: str,
        binary: Optional[str] = None,
        step: str = "write",
        path: Optional[str] = None
    ):
        super().__init__(
            message,
            details={"binary": binary, "path": path, "step": step}
        )


class ArchiveError(WebDriverManagerError):
    """Archive unreadable or without the expected executable."""
    def __init__(self, binary: str, archive: str, reason: str):
        super().__init__(
            f"Failed to extract {binary} from {archive}: {reason}",
            details={"binary": binary, "archive": archive, "step": "extract"}
        )


class UnknownBinary(WebDriverManagerError):
    """Binary name not registered with the manager."""
    def __init__(self, binary: str):
        super().__init__(
            f"Binary named {binary} does not exist",
            details={"binary": binary, "step": "lookup"}
        )


class BinaryNotInstalled(WebDriverManagerError):
    """Binary artifact missing from the install directory."""
    def __init__(self, binary: str, path: str):
        super().__init__(
            f"{binary} binary not installed at {path}",
            details={"binary": binary, "path": path, "step": "start"}
        )


class RuntimeUnavailable(WebDriverManagerError):
    """Runtime needed to execute a binary is not on PATH."""
    def __init__(self, binary: str, runtime: str):
        super().__init__(
            f"{runtime} is not available on PATH, cannot start {binary}",
            details={"binary": binary, "runtime": runtime, "step": "start"}
        )


class ProcessStartError(WebDriverManagerError):
    """Process failed to spawn or exited before accepting connections."""
    def __init__(self, binary: str, reason: str, returncode: Optional[int] = None):
        super().__init__(
            f"Failed to start {binary}: {reason}",
            details={"binary": binary, "returncode": returncode, "step": "spawn"}
        )
