import io
import zipfile
from pathlib import Path
from typing import Dict, List, Tuple

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

from webdriver_binaries.config import Settings
from webdriver_binaries.types import BinarySpec, Capability, PlatformId


class ArtifactServer:
    """Local HTTP server standing in for release indexes and download hosts."""

    def __init__(self):
        self.routes: Dict[str, Tuple[int, bytes, Dict[str, str]]] = {}
        self.truncated: Dict[str, Tuple[bytes, int]] = {}
        self.pages: Dict[str, Dict[str, str]] = {}
        self.requests: List[str] = []
        self.server: TestServer = None

    def add(self, path: str, body: bytes, status: int = 200, headers: Dict[str, str] = None):
        self.routes[path] = (status, body, headers or {})

    def add_json(self, path: str, text: str):
        self.add(path, text.encode(), headers={"Content-Type": "application/json"})

    def add_page(self, path: str, text: str, marker: str = None):
        """Serve ``text`` for ``path`` when requested with this ``marker`` query"""
        self.pages.setdefault(path, {})[marker] = text

    def add_truncated(self, path: str, body: bytes, declared: int):
        self.truncated[path] = (body, declared)

    def url(self, path: str) -> str:
        # Plain concatenation keeps template braces unencoded
        return f"http://{self.server.host}:{self.server.port}{path}"

    async def handle(self, request: web.Request) -> web.StreamResponse:
        self.requests.append(request.path)

        if request.path in self.truncated:
            body, declared = self.truncated[request.path]
            response = web.StreamResponse()
            response.content_length = declared
            response.force_close()
            await response.prepare(request)
            await response.write(body)
            return response

        if request.path in self.pages:
            pages = self.pages[request.path]
            marker = request.query.get("marker")
            if marker not in pages:
                return web.Response(status=404, text="no such page")
            return web.Response(text=pages[marker], content_type="application/xml")

        if request.path not in self.routes:
            return web.Response(status=404, text="not found")

        status, body, headers = self.routes[request.path]
        return web.Response(status=status, body=body, headers=headers)


@pytest_asyncio.fixture
async def artifact_server():
    """Start a real local HTTP server for download tests"""
    artifacts = ArtifactServer()
    app = web.Application()
    app.router.add_route("GET", "/{tail:.*}", artifacts.handle)

    artifacts.server = TestServer(app)
    await artifacts.server.start_server()
    try:
        yield artifacts
    finally:
        await artifacts.server.close()


@pytest.fixture
def install_dir(tmp_path: Path) -> Path:
    return tmp_path / "binaries"


@pytest.fixture
def settings(install_dir: Path) -> Settings:
    """Settings isolated from the caller's environment"""
    return Settings(install_dir=install_dir)


def make_zip(members: Dict[str, bytes]) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as zf:
        for name, content in members.items():
            zf.writestr(name, content)
    return buffer.getvalue()


def make_server_spec(artifact_server: ArtifactServer, name: str = "selenium") -> BinarySpec:
    return BinarySpec(
        name=name,
        filename=f"{name}-server.jar",
        capabilities=frozenset({Capability.SERVER}),
        url_template=artifact_server.url("/download/{release}/{artifact}-{version}.jar"),
        index_url=artifact_server.url(f"/{name}/"),
        index_kind="selenium-release",
        artifacts={platform: f"{name}-server-standalone" for platform in PlatformId},
    )


def make_driver_spec(artifact_server: ArtifactServer, name: str = "chrome") -> BinarySpec:
    return BinarySpec(
        name=name,
        filename=f"{name}driver",
        capabilities=frozenset({Capability.DRIVER}),
        url_template=artifact_server.url("/cft/{version}/{artifact}/" + name + "driver-{artifact}.zip"),
        index_url=artifact_server.url(f"/{name}/last-known-good-versions.json"),
        index_kind="chrome-for-testing",
        artifacts={PlatformId.LINUX_64: "linux64", PlatformId.WIN_64: "win64"},
        archive_member=f"{name}driver",
        executable=True,
        windows_suffix=".exe",
        jvm_property=f"webdriver.{name}.driver",
    )


def make_bucket_listing(etags: Dict[str, str], truncated: bool = False, next_marker: str = None) -> str:
    """XML page of a release bucket listing, keyed object name -> ETag"""
    contents = "".join(
        f"<Contents><Key>{key}</Key><ETag>&quot;{etag}&quot;</ETag><Size>1</Size></Contents>"
        for key, etag in etags.items()
    )
    marker = f"<NextMarker>{next_marker}</NextMarker>" if next_marker else ""
    return (
        "<?xml version='1.0' encoding='UTF-8'?>"
        "<ListBucketResult xmlns='http://doc.s3.amazonaws.com/2006-03-01'>"
        f"<Name>selenium-release</Name><IsTruncated>{str(truncated).lower()}</IsTruncated>"
        f"{marker}{contents}</ListBucketResult>"
    )
