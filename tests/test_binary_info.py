"""Tests for version and download URL resolution."""
import json
from dataclasses import replace

import pytest
from unittest.mock import patch

from webdriver_binaries.binaries.binary_info import (
    BINARY_CONFIGS,
    CHROMEDRIVER,
    SELENIUM,
    format_url,
    get_artifact,
    resolve,
)
from webdriver_binaries.errors import UnsupportedPlatform, VersionResolutionError
from webdriver_binaries.types import PlatformId

from conftest import make_bucket_listing, make_driver_spec, make_server_spec


@pytest.mark.asyncio
@pytest.mark.parametrize("spec", list(BINARY_CONFIGS.values()), ids=list(BINARY_CONFIGS))
async def test_resolve_pinned_url_per_platform(spec):
    """Test every supported platform yields a well-formed URL"""
    for platform in spec.artifacts:
        resolved = await resolve(spec, platform, "3.141.59")

        assert resolved.url.startswith("https://")
        assert spec.name in resolved.url
        assert "3.141.59" in resolved.url
        assert resolved.version == "3.141.59"
        assert resolved.platform is platform
        assert resolved.checksum is None


@pytest.mark.asyncio
async def test_resolve_selenium_url():
    """Test the server comes from the standalone line that accepts -port"""
    resolved = await resolve(SELENIUM, "linux-64", "3.141.59")
    assert resolved.url == (
        "https://selenium-release.storage.googleapis.com/"
        "3.141/selenium-server-standalone-3.141.59.jar"
    )
    assert resolved.filename == "selenium-server-standalone.jar"
    assert resolved.archive_member is None


@pytest.mark.asyncio
async def test_resolve_chromedriver_windows():
    resolved = await resolve(CHROMEDRIVER, PlatformId.WIN_64, "130.0.6723.58")
    assert resolved.url == (
        "https://storage.googleapis.com/chrome-for-testing-public/"
        "130.0.6723.58/win64/chromedriver-win64.zip"
    )
    assert resolved.filename == "chromedriver.exe"
    assert resolved.archive_member == "chromedriver.exe"


@pytest.mark.asyncio
async def test_resolve_is_idempotent():
    first = await resolve(CHROMEDRIVER, "mac-arm64", "130.0.6723.58")
    second = await resolve(CHROMEDRIVER, "mac-arm64", "130.0.6723.58")
    assert first == second


@pytest.mark.asyncio
@pytest.mark.parametrize("platform", ["linux-32", "mac-32", "linux-arm64", "beos-64"])
async def test_unsupported_platform_makes_no_network_call(platform):
    """Test unsupported platform fails before the version index is queried"""
    with patch("aiohttp.ClientSession") as session:
        with pytest.raises(UnsupportedPlatform) as exc_info:
            await resolve(CHROMEDRIVER, platform)

    session.assert_not_called()
    assert platform in str(exc_info.value)


def test_get_artifact():
    assert get_artifact(CHROMEDRIVER, "linux-64") == "linux64"
    assert get_artifact(SELENIUM, "win-32") == "selenium-server-standalone"
    with pytest.raises(UnsupportedPlatform, match="No chrome artifact"):
        get_artifact(CHROMEDRIVER, "linux-32")


def test_format_url():
    assert format_url(SELENIUM, "3.9.1", "selenium-server-standalone").endswith(
        "/3.9/selenium-server-standalone-3.9.1.jar"
    )


@pytest.mark.asyncio
async def test_resolve_latest_standalone_release(artifact_server):
    """Test the newest standalone jar wins over 4.x server jars and betas"""
    spec = make_server_spec(artifact_server)
    artifact_server.add_page("/selenium/", make_bucket_listing({
        "2.53/selenium-server-standalone-2.53.1.jar": "0" * 32,
        "3.141/selenium-server-standalone-3.141.59.jar": "a" * 32,
        "3.9/selenium-server-standalone-3.9.1.jar": "b" * 32,
        "3.0-beta4/selenium-server-standalone-3.0.0-beta4.jar": "c" * 32,
        "4.0/selenium-server-4.0.0.jar": "d" * 32,
        "3.141/selenium-java-3.141.59.zip": "e" * 32,
    }))

    resolved = await resolve(spec, "linux-64")

    assert resolved.version == "3.141.59"
    assert resolved.checksum == "md5:" + "a" * 32
    assert resolved.url.endswith("/download/3.141/selenium-server-standalone-3.141.59.jar")


@pytest.mark.asyncio
async def test_resolve_latest_release_across_pages(artifact_server):
    """Test every page of a truncated listing is read"""
    spec = make_server_spec(artifact_server)
    artifact_server.add_page("/selenium/", make_bucket_listing(
        {"3.14/selenium-server-standalone-3.14.0.jar": "not-an-md5-etag"},
        truncated=True,
    ))
    artifact_server.add_page("/selenium/", make_bucket_listing(
        {"3.141/selenium-server-standalone-3.141.59.jar": "multipart-etag-2"},
    ), marker="3.14/selenium-server-standalone-3.14.0.jar")

    resolved = await resolve(spec, "linux-64")

    assert resolved.version == "3.141.59"
    assert resolved.checksum is None
    assert artifact_server.requests == ["/selenium/", "/selenium/"]


@pytest.mark.asyncio
async def test_resolve_latest_chrome_release(artifact_server):
    spec = make_driver_spec(artifact_server)
    artifact_server.add_json("/chrome/last-known-good-versions.json", json.dumps({
        "channels": {"Stable": {"channel": "Stable", "version": "130.0.6723.58"}},
    }))

    resolved = await resolve(spec, "linux-64")

    assert resolved.version == "130.0.6723.58"
    assert resolved.url.endswith("/cft/130.0.6723.58/linux64/chromedriver-linux64.zip")


@pytest.mark.asyncio
async def test_resolve_pinned_skips_index(artifact_server):
    spec = make_server_spec(artifact_server)
    await resolve(spec, "linux-64", "4.0.0")
    assert artifact_server.requests == []


@pytest.mark.asyncio
async def test_resolve_index_not_found(artifact_server):
    spec = make_server_spec(artifact_server)
    with pytest.raises(VersionResolutionError, match="index unreachable") as exc_info:
        await resolve(spec, "linux-64")
    assert exc_info.value.binary == "selenium"
    assert exc_info.value.step == "resolve"


@pytest.mark.asyncio
async def test_resolve_index_without_matching_jar(artifact_server):
    spec = make_server_spec(artifact_server)
    artifact_server.add_page("/selenium/", make_bucket_listing({"4.0/selenium-server-4.0.0.jar": "d" * 32}))
    with pytest.raises(VersionResolutionError, match="no selenium-server-standalone jar in index"):
        await resolve(spec, "linux-64")


@pytest.mark.asyncio
async def test_resolve_index_invalid_xml(artifact_server):
    spec = make_server_spec(artifact_server)
    artifact_server.add_page("/selenium/", "<ListBucketResult>")
    with pytest.raises(VersionResolutionError, match="invalid XML"):
        await resolve(spec, "linux-64")



@pytest.mark.asyncio
async def test_resolve_index_missing_channel(artifact_server):
    spec = make_driver_spec(artifact_server)
    artifact_server.add_json("/chrome/last-known-good-versions.json", json.dumps({"channels": {}}))
    with pytest.raises(VersionResolutionError, match="no Stable channel"):
        await resolve(spec, "linux-64")


@pytest.mark.asyncio
async def test_resolve_index_invalid_json(artifact_server):
    spec = make_driver_spec(artifact_server)
    artifact_server.add("/chrome/last-known-good-versions.json", b"<html>")
    with pytest.raises(VersionResolutionError, match="invalid JSON"):
        await resolve(spec, "linux-64")


@pytest.mark.asyncio
async def test_resolve_index_unreachable():
    spec = replace(SELENIUM, index_url="http://127.0.0.1:1/latest")
    with pytest.raises(VersionResolutionError):
        await resolve(spec, "linux-64")
