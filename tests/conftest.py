"""Pytest configuration and shared fixtures."""

import io
import tarfile
from datetime import datetime, timezone
from typing import Dict, Optional

import pytest

from aptdepot.common.config import PublishConfig, ReleaseConfig
from aptdepot.db.catalog import Catalog
from aptdepot.repos.generator import IndexGenerator
from aptdepot.repos.pool import ContentStore
from aptdepot.services.ingestion import IngestionService


FIXED_DATE = datetime(2026, 10, 16, 12, 0, 0, tzinfo=timezone.utc)


def create_ar_member(name: str, content: bytes) -> bytes:
    """Create an ar archive member."""
    name_padded = name.ljust(16)
    timestamp = "0".ljust(12)
    owner = "0".ljust(6)
    group = "0".ljust(6)
    mode = "100644".ljust(8)
    size_str = str(len(content)).ljust(10)
    header = f"{name_padded}{timestamp}{owner}{group}{mode}{size_str}`\n".encode()
    result = header + content
    if len(content) % 2:
        result += b"\n"  # Padding for even alignment
    return result


def create_ar(members: Dict[str, bytes]) -> bytes:
    """Create an ar archive from name -> content, in insertion order."""
    result = b"!<arch>\n"
    for name, content in members.items():
        result += create_ar_member(name, content)
    return result


def create_tar(files: Dict[str, bytes], compression: str = "gz") -> bytes:
    """Create a tar archive, compressed with ``gz``, ``xz``, ``bz2`` or nothing."""
    buffer = io.BytesIO()
    mode = f"w:{compression}" if compression else "w"
    with tarfile.open(fileobj=buffer, mode=mode) as tf:
        for name, content in files.items():
            info = tarfile.TarInfo(name=name)
            info.size = len(content)
            tf.addfile(info, io.BytesIO(content))
    return buffer.getvalue()


def control_text(
    name: str = "mytool",
    version: str = "1.0.0",
    architecture: str = "amd64",
    description: str = "A tool\n for testing",
    extra: Optional[Dict[str, str]] = None,
) -> str:
    """Render a control file with the required fields."""
    lines = [
        f"Package: {name}",
        f"Version: {version}",
        f"Architecture: {architecture}",
        "Maintainer: Test <test@example.com>",
    ]
    for key, value in (extra or {}).items():
        lines.append(f"{key}: {value}")
    lines.append(f"Description: {description}")
    return "\n".join(lines) + "\n"


def build_deb(
    name: str = "mytool",
    version: str = "1.0.0",
    architecture: str = "amd64",
    description: str = "A tool\n for testing",
    extra: Optional[Dict[str, str]] = None,
    control: Optional[str] = None,
    compression: str = "gz",
    payload: bytes = b"Test file\n",
    control_member: str = "./control",
) -> bytes:
    """Create a minimal valid .deb package."""
    if control is None:
        control = control_text(name, version, architecture, description, extra)

    suffix = f".{compression}" if compression else ""
    return create_ar(
        {
            "debian-binary": b"2.0\n",
            f"control.tar{suffix}": create_tar({control_member: control.encode()}, compression),
            f"data.tar{suffix}": create_tar({"./usr/share/doc/test/README": payload}, compression),
        }
    )


@pytest.fixture
def deb_factory():
    """Factory building .deb bytes; see ``build_deb`` for arguments."""
    return build_deb


@pytest.fixture
def ar_factory():
    """Factory building raw ar archives from name -> content."""
    return create_ar


@pytest.fixture
def tar_factory():
    """Factory building tar archives from path -> content."""
    return create_tar


@pytest.fixture
def database_url(tmp_path):
    """SQLite catalog database private to the test."""
    return f"sqlite:///{tmp_path / 'catalog.db'}"


@pytest.fixture
def catalog(database_url):
    """Empty catalog with schema created."""
    catalog = Catalog.from_url(database_url)
    catalog.create_schema()
    yield catalog
    catalog.engine.dispose()


@pytest.fixture
def repo_root(tmp_path):
    root = tmp_path / "repo"
    root.mkdir()
    return root


@pytest.fixture
def store(repo_root):
    return ContentStore(repo_root, max_retries=2, retry_delay=0)


@pytest.fixture
def ingestion(catalog, store):
    return IngestionService(catalog, store)


@pytest.fixture
def release_config():
    return ReleaseConfig(
        origin="Test",
        label="Test Repo",
        suite="stable",
        codename="stable",
        version="1.0",
        description="Test repository",
        architectures=["amd64"],
    )


@pytest.fixture
def fixed_date():
    return FIXED_DATE


@pytest.fixture
def generator(catalog, repo_root, release_config, fixed_date):
    """Generator with a fixed Release date."""
    return IndexGenerator(
        catalog,
        repo_root,
        release_config,
        publish=PublishConfig(retain_snapshots=2),
        clock=lambda: fixed_date,
    )
