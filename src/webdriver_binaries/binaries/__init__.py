"""Binary resolution and installation."""
from webdriver_binaries.binaries.binary import Binary
from webdriver_binaries.binaries.binary_info import (
    BINARY_CONFIGS,
    CHROMEDRIVER,
    SELENIUM,
    resolve,
)
from webdriver_binaries.binaries.fetcher import exists, fetch_and_save
from webdriver_binaries.binaries.platforms import detect, is_platform_supported
from webdriver_binaries.binaries.resolver import BinaryResolver

__all__ = [
    "Binary",
    "BinaryResolver",
    "BINARY_CONFIGS",
    "CHROMEDRIVER",
    "SELENIUM",
    "resolve",
    "exists",
    "fetch_and_save",
    "detect",
    "is_platform_supported",
]
