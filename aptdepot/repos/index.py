"""Rendering of APT index files.

Turns cataloged packages into ``Packages`` content and describes generated
files in ``Release`` content. Everything here is a pure function of its
input: identical input always renders identical bytes.
"""

import gzip
import lzma
from datetime import datetime, timezone
from email.utils import format_datetime
from typing import Iterable, List, Sequence

from ..common.config import ReleaseConfig
from ..db.models.package import Package
from ..formats.base import LAYOUT_FIELDS, ControlField
from ..formats.control import parse_control
from .checksums import FileMeta


def packages_path(component: str, architecture: str, suffix: str = "") -> str:
    """Path of a Packages index relative to the suite directory."""
    return f"{component}/binary-{architecture}/Packages{suffix}"


def arch_release_path(component: str, architecture: str) -> str:
    """Path of a per-architecture Release file relative to the suite directory."""
    return f"{component}/binary-{architecture}/Release"


def render_package_stanza(package: Package) -> str:
    """Render one Packages stanza from a cataloged package.

    Layout fields present in the stored control text are dropped and the
    values derived from the catalog row are appended instead.

    Args:
        package: Cataloged package

    Returns:
        Stanza text without a trailing newline

    Raises:
        ParseError: If the stored control text no longer parses
    """
    stanza = parse_control(package.control).without(LAYOUT_FIELDS)
    layout = [
        ControlField("Filename", package.filepath),
        ControlField("Size", str(package.size)),
        ControlField("Description-md5", bytes(package.description_md5).hex()),
        ControlField("MD5sum", bytes(package.md5).hex()),
        ControlField("SHA1", bytes(package.sha1).hex()),
        ControlField("SHA256", bytes(package.sha256).hex()),
    ]
    return "\n".join(f.render() for f in list(stanza) + layout)


def render_packages(packages: Iterable[Package]) -> str:
    """Render a complete Packages file.

    Each stanza is followed by one blank line, so stanzas are separated by
    exactly one blank line and the file ends with a blank line.
    """
    return "".join(f"{render_package_stanza(p)}\n\n" for p in packages)


def compress_gzip(data: bytes) -> bytes:
    """Gzip with a fixed mtime so output depends only on ``data``."""
    return gzip.compress(data, compresslevel=9, mtime=0)


def compress_xz(data: bytes) -> bytes:
    """XZ-compress ``data``."""
    return lzma.compress(data, format=lzma.FORMAT_XZ, check=lzma.CHECK_CRC64)


def format_release_date(moment: datetime) -> str:
    """Format a timestamp the way Release files carry it (RFC 2822, UTC)."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return format_datetime(moment.astimezone(timezone.utc).replace(microsecond=0), usegmt=True)


def render_arch_release(release: ReleaseConfig, architecture: str) -> str:
    """Render the per-architecture Release file."""
    lines = [
        f"Archive: {release.suite}",
        f"Origin: {release.origin}",
        f"Label: {release.label}",
        f"Version: {release.version}",
        f"Component: {release.component}",
        f"Architecture: {architecture}",
    ]
    return "".join(f"{line}\n" for line in lines)


def render_release(
    release: ReleaseConfig,
    date: datetime,
    architectures: Sequence[str],
    files: Iterable[FileMeta],
) -> str:
    """Render the top-level Release file.

    Args:
        release: Release metadata
        date: Generation timestamp
        architectures: Architectures covered by this generation
        files: Every generated index file (path relative to the suite)

    Returns:
        Release file content
    """
    ordered: List[FileMeta] = sorted(files, key=lambda f: f.path)

    lines = [
        f"Origin: {release.origin}",
        f"Label: {release.label}",
        f"Suite: {release.suite}",
        f"Version: {release.version}",
        f"Codename: {release.codename}",
        f"Date: {format_release_date(date)}",
        f"Architectures: {' '.join(architectures)}",
        f"Components: {release.component}",
    ]
    if release.description:
        lines.append(f"Description: {release.description}")
    lines.append("Acquire-By-Hash: no")
    lines.append("Changelogs: no")
    lines.append("Snapshots: no")

    for section, attr in (("MD5Sum", "md5_hex"), ("SHA1", "sha1_hex"), ("SHA256", "sha256_hex")):
        lines.append(f"{section}:")
        for f in ordered:
            lines.append(f" {getattr(f.sums, attr)} {f.size} {f.path}")

    return "".join(f"{line}\n" for line in lines)
