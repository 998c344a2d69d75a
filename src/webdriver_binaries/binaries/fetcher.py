"""Binary downloading, verification and installation."""
import asyncio
import hashlib
import os
import shutil
import tarfile
import tempfile
import zipfile
from pathlib import Path, PurePosixPath
from typing import Optional
from urllib.parse import urlparse

import aiohttp

from webdriver_binaries.binaries.constants import (
    CHUNK_SIZE,
    DOWNLOAD_CONNECT_TIMEOUT,
    DOWNLOAD_READ_TIMEOUT,
    EXECUTABLE_MODE,
    PROGRESS_BYTES_STEP,
    PROGRESS_STEP,
    TEMP_SUFFIX,
)
from webdriver_binaries.errors import (
    ArchiveError,
    ChecksumError,
    FilesystemError,
    NetworkError,
)
from webdriver_binaries.events import COMPLETE, PROGRESS, REQUEST_START, EventEmitter
from webdriver_binaries.logging import get_logger
from webdriver_binaries.types import ResolvedVersion

logger = get_logger(__name__)

ARCHIVE_FORMATS = (".tar.gz", ".tgz", ".zip")
DOWNLOAD_TIMEOUT = aiohttp.ClientTimeout(
    total=None, sock_connect=DOWNLOAD_CONNECT_TIMEOUT, sock_read=DOWNLOAD_READ_TIMEOUT
)


class ProgressReporter:
    """Emit ``progress`` events at a bounded cadence."""

    def __init__(self, emitter: EventEmitter, binary: str, total: Optional[int]):
        self.emitter = emitter
        self.binary = binary
        self.total = total or None
        self.received = 0
        self._last = 0

    def advance(self, size: int) -> None:
        self.received += size
        if self.total:
            fraction = min(self.received / self.total, 1.0)
            if fraction - self._last >= PROGRESS_STEP:
                self._last = fraction
                self._emit(fraction)
        elif self.received - self._last >= PROGRESS_BYTES_STEP:
            self._last = self.received
            self._emit(None)

    def finish(self) -> None:
        fraction = 1.0 if self.total else None
        if fraction is None or self._last < 1.0:
            self._emit(fraction)

    def _emit(self, fraction: Optional[float]) -> None:
        self.emitter.emit(PROGRESS, {
            "binary": self.binary,
            "received": self.received,
            "total": self.total,
            "fraction": fraction,
        })


def get_archive_format(url: str) -> Optional[str]:
    """Archive suffix of a download URL, or None for a plain file."""
    name = PurePosixPath(urlparse(url).path).name
    for suffix in ARCHIVE_FORMATS:
        if name.endswith(suffix):
            return suffix
    return None


def ensure_install_dir(install_dir: Path, binary: Optional[str] = None) -> Path:
    """Create the install directory and check it is writable."""
    try:
        install_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise FilesystemError(
            f"Cannot create install directory {install_dir}: {e}",
            binary=binary, step="prepare", path=str(install_dir)
        ) from e

    if not os.access(install_dir, os.W_OK):
        raise FilesystemError(
            f"Install directory {install_dir} is not writable",
            binary=binary, step="prepare", path=str(install_dir)
        )
    return install_dir


def make_temp_file(install_dir: Path, filename: str, binary: str) -> Path:
    """Reserve a hidden temporary file beside the final artifact."""
    try:
        fd, name = tempfile.mkstemp(
            dir=install_dir, prefix=f".{filename}.", suffix=TEMP_SUFFIX
        )
    except OSError as e:
        raise FilesystemError(
            f"Cannot create temporary file in {install_dir}: {e}",
            binary=binary, step="prepare", path=str(install_dir)
        ) from e
    os.close(fd)
    return Path(name)


def remove_temp_file(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError as e:
        logger.warning("temp_file_not_removed", path=str(path), error=str(e))


async def download_file(
    binary: str,
    url: str,
    dest: Path,
    emitter: EventEmitter,
) -> int:
    """Stream ``url`` into ``dest``, returning the number of bytes written."""
    try:
        async with aiohttp.ClientSession(timeout=DOWNLOAD_TIMEOUT) as session:
            async with session.get(url) as response:
                if response.status != 200:
                    logger.error(
                        "download_request_failed",
                        binary=binary, url=url,
                        status=response.status, reason=response.reason
                    )
                    raise NetworkError(binary, url, f"HTTP {response.status} {response.reason}")

                size = response.content_length
                emitter.emit(REQUEST_START, {"binary": binary, "url": url, "size": size})
                logger.info("binary_download_started", binary=binary, url=url, size=size)

                progress = ProgressReporter(emitter, binary, size)
                with open(dest, "wb") as f:
                    async for chunk in response.content.iter_chunked(CHUNK_SIZE):
                        f.write(chunk)
                        progress.advance(len(chunk))

                if size is not None and progress.received < size:
                    raise NetworkError(
                        binary, url,
                        f"transfer truncated at {progress.received} of {size} bytes"
                    )
                progress.finish()

                logger.info(
                    "binary_download_complete",
                    binary=binary, url=url, size=progress.received
                )
                return progress.received

    except (aiohttp.ClientError, asyncio.TimeoutError) as e:
        logger.error("binary_download_failed", binary=binary, url=url, error=str(e))
        raise NetworkError(binary, url, str(e) or e.__class__.__name__) from e
    except OSError as e:
        raise FilesystemError(
            f"Failed to write {binary} download to {dest}: {e}",
            binary=binary, step="write", path=str(dest)
        ) from e


def compute_file_hash(path: Path, algorithm: str = "sha256") -> str:
    """Compute the hex digest of a file."""
    file_hash = hashlib.new(algorithm)
    with open(path, "rb") as f:
        for byte_block in iter(lambda: f.read(4096), b""):
            file_hash.update(byte_block)
    return file_hash.hexdigest()


def verify_checksum(binary: str, path: Path, checksum: str) -> None:
    """Check ``path`` against an ``<algorithm>:<hex>`` digest."""
    algorithm, _, expected = checksum.partition(":")
    if not expected:
        algorithm, expected = "sha256", checksum

    try:
        actual = compute_file_hash(path, algorithm.lower())
    except ValueError:
        raise ChecksumError(binary, checksum, f"unsupported algorithm {algorithm}") from None
    except OSError as e:
        raise FilesystemError(
            f"Cannot read {path} for checksum: {e}",
            binary=binary, step="verify", path=str(path)
        ) from e

    if actual.lower() != expected.lower():
        logger.error(
            "checksum_verification_failed",
            binary=binary, expected=expected, computed=actual
        )
        raise ChecksumError(binary, expected, actual)


def extract_binary(
    binary: str,
    archive_path: Path,
    member_name: str,
    dest: Path,
    format: str,
) -> Path:
    """Copy the member named ``member_name`` out of an archive into ``dest``.

    The member is matched on its basename, wherever it sits in the archive.
    """
    try:
        if format == ".zip":
            with zipfile.ZipFile(archive_path) as archive:
                matches = [
                    name for name in archive.namelist()
                    if PurePosixPath(name).name == member_name and not name.endswith("/")
                ]
                if not matches:
                    raise ArchiveError(binary, archive_path.name, f"{member_name} not found in archive")
                with archive.open(matches[0]) as src, open(dest, "wb") as out:
                    shutil.copyfileobj(src, out)
        else:
            with tarfile.open(archive_path) as archive:
                members = [
                    member for member in archive.getmembers()
                    if member.isfile() and PurePosixPath(member.name).name == member_name
                ]
                if not members:
                    raise ArchiveError(binary, archive_path.name, f"{member_name} not found in archive")
                src = archive.extractfile(members[0])
                with src, open(dest, "wb") as out:
                    shutil.copyfileobj(src, out)
    except (zipfile.BadZipFile, tarfile.TarError, EOFError) as e:
        raise ArchiveError(binary, archive_path.name, str(e)) from e
    except OSError as e:
        raise FilesystemError(
            f"Failed to extract {binary} to {dest}: {e}",
            binary=binary, step="extract", path=str(dest)
        ) from e

    logger.info(
        "binary_extracted",
        binary=binary, archive=archive_path.name, member=member_name
    )
    return dest


async def fetch_and_save(
    resolved: ResolvedVersion,
    install_dir: Path,
    emitter: EventEmitter,
    executable: bool = False,
) -> Path:
    """Download, verify and install a resolved binary.

    Everything is staged in temporary files inside ``install_dir`` and moved
    onto the final name only after the whole pipeline succeeded, so a failed
    fetch leaves any previously installed artifact untouched.
    """
    binary = resolved.binary
    install_dir = ensure_install_dir(Path(install_dir), binary)
    target = install_dir / resolved.filename
    archive_format = get_archive_format(resolved.url) if resolved.archive_member else None

    logger.info(
        "fetching_binary",
        binary=binary, version=resolved.version,
        platform=resolved.platform.value, url=resolved.url
    )

    temp_files = [make_temp_file(install_dir, resolved.filename, binary)]
    try:
        await download_file(binary, resolved.url, temp_files[0], emitter)

        if resolved.checksum:
            verify_checksum(binary, temp_files[0], resolved.checksum)

        staged = temp_files[0]
        if archive_format:
            staged = make_temp_file(install_dir, resolved.filename, binary)
            temp_files.append(staged)
            extract_binary(binary, temp_files[0], resolved.archive_member, staged, archive_format)

        try:
            if executable and os.name != "nt":
                staged.chmod(EXECUTABLE_MODE)
            os.replace(staged, target)
        except OSError as e:
            raise FilesystemError(
                f"Failed to install {binary} at {target}: {e}",
                binary=binary, step="rename", path=str(target)
            ) from e
    finally:
        for temp_file in temp_files:
            remove_temp_file(temp_file)

    emitter.emit(COMPLETE, {"binary": binary, "version": resolved.version, "path": str(target)})
    logger.info("binary_installed", binary=binary, version=resolved.version, path=str(target))

    return target


def exists(path: Path, executable: bool = False) -> bool:
    """Whether a correctly named, usable artifact is installed at ``path``."""
    path = Path(path)
    if not path.is_file():
        return False
    if executable and os.name != "nt":
        return os.access(path, os.X_OK)
    return True
