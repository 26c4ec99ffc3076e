"""Atomic publishing primitives.

Published paths are never written in place. Single files go through a
temporary sibling that is renamed over the destination; a whole suite
is staged in a private directory that becomes visible through an atomic
symlink swap, so readers see either the old or the new generation.
"""

import fcntl
import os
import shutil
import tempfile
import time
import uuid
from contextlib import contextmanager
from pathlib import Path
from typing import BinaryIO, Dict, Iterator, List, Optional

from ..common.logger import get_logger

logger = get_logger("publish")

SNAPSHOT_MARKER = ".snapshot-"
STAGING_MARKER = ".staging-"
LOCK_SUFFIX = ".lock"
LOCK_TIMEOUT = 60.0


@contextmanager
def atomic_write(path: Path) -> Iterator[BinaryIO]:
    """Write a file through a temporary sibling and rename it into place.

    The temporary file is removed on every failure path; the destination
    is only replaced after the block completes and the data is flushed.

    Args:
        path: Final destination path

    Yields:
        Binary file object for the temporary file
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "wb") as f:
            yield f
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, path)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise


@contextmanager
def staging_directory(parent: Path, name: str) -> Iterator[Path]:
    """Create a private staging directory, removed if the block fails.

    Args:
        parent: Directory to create the staging directory in
        name: Published name the staging directory belongs to

    Yields:
        Path of the staging directory
    """
    parent = Path(parent)
    parent.mkdir(parents=True, exist_ok=True)
    staging = Path(tempfile.mkdtemp(prefix=f".{name}{STAGING_MARKER}", dir=parent))
    try:
        yield staging
    except BaseException:
        shutil.rmtree(staging, ignore_errors=True)
        raise


def write_tree(root: Path, files: Dict[str, bytes]) -> None:
    """Write relative-path -> bytes entries below ``root``."""
    for rel_path, data in sorted(files.items()):
        target = root / rel_path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)


def swap_symlink(link: Path, target: str) -> None:
    """Atomically point ``link`` at ``target``.

    Args:
        link: Published path (a symlink, or absent)
        target: Link target, relative to the link's directory

    Raises:
        OSError: If the link cannot be replaced (e.g. a real directory
            occupies the published path)
    """
    link = Path(link)
    tmp_link = link.with_name(f".{link.name}.{uuid.uuid4().hex}.lnk")
    os.symlink(target, tmp_link)
    try:
        os.replace(tmp_link, link)
    except OSError:
        tmp_link.unlink(missing_ok=True)
        raise


@contextmanager
def publish_lock(parent: Path, name: str, timeout: float = LOCK_TIMEOUT) -> Iterator[None]:
    """Hold an exclusive lock on ``parent/.<name>.lock`` for the block.

    Serializes the rename, swap and prune steps of concurrent publishers
    of the same name. Staging happens outside the lock. Readers never
    take it.

    Raises:
        OSError: If the lock is not acquired within ``timeout`` seconds
    """
    parent = Path(parent)
    parent.mkdir(parents=True, exist_ok=True)
    deadline = time.monotonic() + timeout
    delay = 0.01

    with open(parent / f".{name}{LOCK_SUFFIX}", "a+b") as handle:
        while True:
            try:
                fcntl.flock(handle.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
                break
            except BlockingIOError:
                if time.monotonic() >= deadline:
                    raise OSError(f"Timed out waiting for publish lock on {name}") from None
                time.sleep(delay)
                delay = min(delay * 2, 0.5)
        try:
            yield
        finally:
            fcntl.flock(handle.fileno(), fcntl.LOCK_UN)


def publish_directory(
    parent: Path,
    name: str,
    files: Dict[str, bytes],
    retain: int = 3,
) -> Path:
    """Publish a set of files as ``parent/name`` in one atomic step.

    Args:
        parent: Directory holding the published name and its snapshots
        name: Published name (e.g. the suite)
        files: Relative path -> file contents
        retain: Number of snapshots to keep, the current one included

    Returns:
        Path of the snapshot directory now published

    Raises:
        OSError: If staging or the swap fails; nothing is published then
    """
    parent = Path(parent)
    link = parent / name

    if link.exists() and not link.is_symlink():
        raise OSError(f"Published path is not a symlink: {link}")

    with staging_directory(parent, name) as staging:
        write_tree(staging, files)

        with publish_lock(parent, name):
            snapshot = parent / f".{name}{SNAPSHOT_MARKER}{time.time_ns():020d}-{uuid.uuid4().hex[:8]}"
            os.rename(staging, snapshot)

            try:
                swap_symlink(link, snapshot.name)
                if not (parent / os.readlink(link)).is_dir():
                    raise OSError(f"Published snapshot vanished: {snapshot}")
            except OSError:
                shutil.rmtree(snapshot, ignore_errors=True)
                raise

            logger.info(f"Published {len(files)} files to {link} -> {snapshot.name}")
            prune_snapshots(parent, name, retain=retain)

    return snapshot


def list_snapshots(parent: Path, name: str) -> List[Path]:
    """Return published snapshots of ``name``, oldest first."""
    prefix = f".{name}{SNAPSHOT_MARKER}"
    return sorted(p for p in Path(parent).iterdir() if p.name.startswith(prefix) and p.is_dir())


def current_snapshot(parent: Path, name: str) -> Optional[Path]:
    """Return the snapshot the published symlink points at, if any."""
    link = Path(parent) / name
    if not link.is_symlink():
        return None
    return Path(parent) / os.readlink(link)


def prune_snapshots(parent: Path, name: str, retain: int = 3) -> List[Path]:
    """Delete the oldest snapshots beyond ``retain``.

    The snapshot currently published is never removed.

    Returns:
        Snapshots that were removed
    """
    retain = max(retain, 1)
    current = current_snapshot(parent, name)
    snapshots = list_snapshots(parent, name)
    removed = []

    for snapshot in snapshots[: max(len(snapshots) - retain, 0)]:
        if current is not None and snapshot.name == current.name:
            continue
        shutil.rmtree(snapshot, ignore_errors=True)
        removed.append(snapshot)

    if removed:
        logger.debug(f"Pruned {len(removed)} old snapshots of {name}")
    return removed
