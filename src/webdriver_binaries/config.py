"""Environment driven settings."""
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Mapping, Optional

import appdirs

from webdriver_binaries.logging import LOG_LEVELS, get_logger

logger = get_logger(__name__)

APP_NAME = "webdriver-binaries"
ENV_PREFIX = "WEBDRIVER_BINARIES_"
INSTALL_DIR_ENV = f"{ENV_PREFIX}DIR"
LOG_LEVEL_ENV = f"{ENV_PREFIX}LOG_LEVEL"


@dataclass(frozen=True)
class Settings:
    install_dir: Path
    versions: Dict[str, str] = field(default_factory=dict)
    log_level: str = "INFO"

    def __post_init__(self):
        if self.log_level not in LOG_LEVELS:
            raise ValueError(f"Unknown log level {self.log_level!r}, expected one of {', '.join(LOG_LEVELS)}")


def default_install_dir() -> Path:
    return Path(appdirs.user_data_dir(APP_NAME)) / "binaries"


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Build settings from the environment.

    ``WEBDRIVER_BINARIES_<NAME>_VERSION`` pins the version of the binary
    registered as ``<name>``, e.g. ``WEBDRIVER_BINARIES_CHROME_VERSION``.
    """
    environ = os.environ if environ is None else environ

    install_dir = environ.get(INSTALL_DIR_ENV)
    versions = {
        key[len(ENV_PREFIX):-len("_VERSION")].lower(): value
        for key, value in environ.items()
        if key.startswith(ENV_PREFIX) and key.endswith("_VERSION") and value
    }

    log_level = environ.get(LOG_LEVEL_ENV, "INFO").upper()
    if log_level not in LOG_LEVELS:
        logger.warning("invalid_log_level", variable=LOG_LEVEL_ENV, value=log_level, fallback="INFO")
        log_level = "INFO"

    return Settings(
        install_dir=Path(install_dir).expanduser() if install_dir else default_install_dir(),
        versions=versions,
        log_level=log_level,
    )
