"""Latest release lookup for managed binaries."""
import asyncio
import json
import re
import xml.etree.ElementTree as ET
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Tuple

import aiohttp

from webdriver_binaries.binaries.constants import CHROME_CHANNEL, MAX_INDEX_PAGES
from webdriver_binaries.errors import VersionResolutionError
from webdriver_binaries.logging import get_logger

logger = get_logger(__name__)

# (version, checksum or None)
Release = Tuple[str, Optional[str]]

# 3.141/selenium-server-standalone-3.141.59.jar; betas do not match
RELEASE_KEY = re.compile(r"^(?P<release>\d+\.\d+)/(?P<artifact>.+)-(?P<version>\d+(?:\.\d+)+)\.jar$")
MD5_ETAG = re.compile(r"^[0-9a-f]{32}$")


async def fetch_text(binary: str, url: str, params: Optional[Mapping[str, str]] = None) -> str:
    """GET a version index document."""
    try:
        async with aiohttp.ClientSession() as session:
            async with session.get(url, params=params) as response:
                response.raise_for_status()
                return await response.text()
    except (aiohttp.ClientError, asyncio.TimeoutError) as e:
        logger.error("version_index_unreachable", binary=binary, url=url, error=str(e))
        raise VersionResolutionError(binary, f"index unreachable ({e})", url) from e


async def fetch_json(binary: str, url: str) -> Any:
    text = await fetch_text(binary, url)
    try:
        return json.loads(text)
    except ValueError as e:
        raise VersionResolutionError(binary, "index returned invalid JSON", url) from e


def release_line(version: str) -> str:
    """``3.141.59`` -> ``3.141``, the bucket directory of a version."""
    return ".".join(version.split(".")[:2])


def parse_version(version: str) -> Tuple[int, ...]:
    return tuple(int(part) for part in version.split("."))


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _child_text(element: ET.Element, name: str) -> Optional[str]:
    for child in element:
        if _local_name(child.tag) == name:
            return child.text
    return None


def parse_bucket_listing(binary: str, url: str, text: str) -> Tuple[List[Dict[str, str]], Optional[str]]:
    """Objects of one listing page and the marker of the next page, if any."""
    try:
        root = ET.fromstring(text)
    except ET.ParseError as e:
        raise VersionResolutionError(binary, "index returned invalid XML", url) from e

    objects = []
    for element in root:
        if _local_name(element.tag) != "Contents":
            continue
        objects.append({
            "key": _child_text(element, "Key") or "",
            "etag": (_child_text(element, "ETag") or "").strip('"'),
        })

    next_marker = None
    if (_child_text(root, "IsTruncated") or "").lower() == "true" and objects:
        next_marker = _child_text(root, "NextMarker") or objects[-1]["key"]
    return objects, next_marker


async def get_bucket_latest_release(binary: str, url: str, artifact: str) -> Release:
    """Newest ``<artifact>-<version>.jar`` in the Selenium release bucket.

    The listing is paged with ``marker``. An object ETag that is a plain MD5
    digest is returned as the checksum.
    """
    latest: Optional[Release] = None
    marker = None

    for _ in range(MAX_INDEX_PAGES):
        text = await fetch_text(binary, url, {"marker": marker} if marker else None)
        objects, marker = parse_bucket_listing(binary, url, text)

        for obj in objects:
            match = RELEASE_KEY.match(obj["key"])
            if not match or match["artifact"] != artifact:
                continue
            version = match["version"]
            if match["release"] != release_line(version):
                continue
            if latest is None or parse_version(version) > parse_version(latest[0]):
                checksum = f"md5:{obj['etag']}" if MD5_ETAG.match(obj["etag"]) else None
                latest = (version, checksum)

        if marker is None:
            break

    if latest is None:
        raise VersionResolutionError(binary, f"no {artifact} jar in index", url)

    logger.debug("release_resolved", binary=binary, version=latest[0], checksum=latest[1])
    return latest


async def get_chrome_for_testing_release(binary: str, url: str, artifact: str) -> Release:
    """Latest stable Chrome for Testing version."""
    data = await fetch_json(binary, url)
    try:
        version = data["channels"][CHROME_CHANNEL]["version"]
    except (KeyError, TypeError):
        raise VersionResolutionError(binary, f"no {CHROME_CHANNEL} channel in index", url) from None

    logger.debug("release_resolved", binary=binary, version=version)
    return version, None


RELEASE_STRATEGIES: Dict[str, Callable[[str, str, str], Awaitable[Release]]] = {
    "selenium-release": get_bucket_latest_release,
    "chrome-for-testing": get_chrome_for_testing_release,
}
