"""Binary-specific information and version/URL resolution."""

from typing import Dict, Optional

from webdriver_binaries.binaries.constants import (
    CHROME_INDEX_URL,
    CHROMEDRIVER_URL_TEMPLATE,
    SELENIUM_ARTIFACT,
    SELENIUM_INDEX_URL,
    SELENIUM_URL_TEMPLATE,
)
from webdriver_binaries.binaries.platforms import to_platform_id
from webdriver_binaries.binaries.releases import RELEASE_STRATEGIES, release_line
from webdriver_binaries.errors import UnsupportedPlatform, VersionResolutionError
from webdriver_binaries.types import BinarySpec, Capability, PlatformId, ResolvedVersion


SELENIUM = BinarySpec(
    name="selenium",
    filename="selenium-server-standalone.jar",
    capabilities=frozenset({Capability.SERVER}),
    url_template=SELENIUM_URL_TEMPLATE,
    index_url=SELENIUM_INDEX_URL,
    index_kind="selenium-release",
    # Platform independent, run by the JVM
    artifacts={platform: SELENIUM_ARTIFACT for platform in PlatformId},
)

CHROMEDRIVER = BinarySpec(
    name="chrome",
    filename="chromedriver",
    capabilities=frozenset({Capability.DRIVER}),
    url_template=CHROMEDRIVER_URL_TEMPLATE,
    index_url=CHROME_INDEX_URL,
    index_kind="chrome-for-testing",
    artifacts={
        PlatformId.LINUX_64: "linux64",
        PlatformId.MAC_64: "mac-x64",
        PlatformId.MAC_ARM64: "mac-arm64",
        PlatformId.WIN_32: "win32",
        PlatformId.WIN_64: "win64",
    },
    archive_member="chromedriver",
    executable=True,
    windows_suffix=".exe",
    jvm_property="webdriver.chrome.driver",
)

BINARY_CONFIGS: Dict[str, BinarySpec] = {
    SELENIUM.name: SELENIUM,
    CHROMEDRIVER.name: CHROMEDRIVER,
}


def get_artifact(spec: BinarySpec, platform: "str | PlatformId") -> str:
    """Artifact name of ``spec`` for ``platform``."""
    platform_id = to_platform_id(platform)
    artifact = spec.artifacts.get(platform_id)
    if artifact is None:
        raise UnsupportedPlatform(platform_id.value, spec.name)
    return artifact


def format_url(spec: BinarySpec, version: str, artifact: str) -> str:
    """Format the download URL for a version and artifact.

    Templates may also use ``{release}``, the major.minor line of the version.
    """
    return spec.url_template.format(version=version, artifact=artifact, release=release_line(version))


async def resolve(
    spec: BinarySpec,
    platform: "str | PlatformId",
    version: Optional[str] = None,
) -> ResolvedVersion:
    """Resolve version, download URL and local filename for a binary.

    The platform is validated before the version index is queried, so an
    unsupported platform never costs a network round trip. A pinned
    ``version`` skips the index entirely.
    """
    platform_id = to_platform_id(platform)
    artifact = get_artifact(spec, platform_id)

    checksum = None
    if version is None:
        strategy = RELEASE_STRATEGIES.get(spec.index_kind)
        if strategy is None:
            raise VersionResolutionError(
                spec.name, f"no release strategy for index kind {spec.index_kind}"
            )
        version, checksum = await strategy(spec.name, spec.index_url, artifact)

    return ResolvedVersion(
        binary=spec.name,
        version=version,
        platform=platform_id,
        url=format_url(spec, version, artifact),
        filename=spec.filename_for(platform_id),
        checksum=checksum,
        archive_member=spec.member_for(platform_id),
    )
