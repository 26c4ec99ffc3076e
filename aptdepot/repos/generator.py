"""Repository index generator.

Rebuilds ``dists/<suite>`` from a catalog snapshot:

    dists/<suite>/Release
    dists/<suite>/InRelease, Release.gpg        (when signing is configured)
    dists/<suite>/deriv-archive-keyring.pgp     (when signing is configured)
    dists/<suite>/<component>/binary-<arch>/Packages[.gz|.xz]
    dists/<suite>/<component>/binary-<arch>/Release

Generation only reads the catalog. All files are built in memory, staged,
and published with one atomic swap.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence

from ..common.config import PublishConfig, ReleaseConfig
from ..common.errors import GenerationError, ParseError, StorageError
from ..common.logger import get_logger
from ..db.catalog import Catalog
from ..db.models import Package
from .checksums import file_meta
from .index import (
    arch_release_path,
    compress_gzip,
    compress_xz,
    packages_path,
    render_arch_release,
    render_packages,
    render_release,
)
from .publish import publish_directory
from .signing import ReleaseSigner

logger = get_logger("generator")

KEYRING_NAME = "deriv-archive-keyring.pgp"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class GenerationResult:
    """Outcome of a regeneration run."""

    suite_path: Path
    snapshot_path: Path
    architectures: List[str]
    package_count: int
    files: Dict[str, bytes] = field(repr=False, default_factory=dict)

    @property
    def release(self) -> bytes:
        return self.files["Release"]


class IndexGenerator:
    """Builds and publishes Packages and Release files from the catalog."""

    def __init__(
        self,
        catalog: Catalog,
        repo_root: Path,
        release: ReleaseConfig,
        publish: Optional[PublishConfig] = None,
        signer: Optional[ReleaseSigner] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """Initialize generator.

        Args:
            catalog: Catalog to read packages from
            repo_root: Repository root (holds ``pool/`` and ``dists/``)
            release: Release metadata
            publish: Publishing options
            signer: Optional Release signer
            clock: Source of the Release ``Date``; defaults to the current UTC time
        """
        self.catalog = catalog
        self.repo_root = Path(repo_root)
        self.release = release
        self.publish = publish or PublishConfig()
        self.signer = signer
        self.clock = clock or utc_now

    @property
    def dists_dir(self) -> Path:
        return self.repo_root / "dists"

    @property
    def suite_path(self) -> Path:
        return self.dists_dir / self.release.suite

    def _read_snapshot(self, architectures: Optional[Sequence[str]]) -> Dict[str, List[Package]]:
        """Read the catalog once for every architecture the suite publishes.

        The suite always covers every cataloged and configured architecture;
        ``architectures`` only adds names that may have no packages yet.
        """
        snapshot = self.catalog.snapshot()
        for arch in [*self.release.architectures, *(architectures or [])]:
            snapshot.setdefault(arch, [])
        return snapshot

    def _verify_artifacts(self, packages: Sequence[Package]) -> None:
        """Check every referenced artifact exists with its cataloged size."""
        for package in packages:
            path = self.repo_root / package.filepath
            try:
                actual = path.stat().st_size
            except OSError as e:
                raise GenerationError(f"Artifact missing for {package.key}: {package.filepath}") from e
            if actual != package.size:
                raise GenerationError(
                    f"Artifact size mismatch for {package.key}: "
                    f"cataloged {package.size}, stored {actual}"
                )

    def build(self, architectures: Optional[Sequence[str]] = None) -> Dict[str, bytes]:
        """Render every index file for the suite in memory.

        Args:
            architectures: Extra architectures to publish even when empty; the
                suite always covers every cataloged and configured one

        Returns:
            Mapping of path relative to the suite directory to file bytes

        Raises:
            GenerationError: If the catalog cannot be read or rendered
        """
        return self._render(self._snapshot(architectures))

    def _snapshot(self, architectures: Optional[Sequence[str]]) -> Dict[str, List[Package]]:
        try:
            snapshot = self._read_snapshot(architectures)
        except StorageError as e:
            raise GenerationError(f"Failed to read catalog: {e}") from e

        if not snapshot:
            raise GenerationError("No architectures to generate")
        return snapshot

    def _render(self, snapshot: Dict[str, List[Package]]) -> Dict[str, bytes]:
        component = self.release.component
        files: Dict[str, bytes] = {}

        for arch in sorted(snapshot):
            packages = snapshot[arch]
            if self.publish.verify_artifacts:
                self._verify_artifacts(packages)

            try:
                content = render_packages(packages).encode("utf-8")
            except ParseError as e:
                raise GenerationError(f"Stored control text is invalid for {arch}: {e}") from e

            files[packages_path(component, arch)] = content
            files[packages_path(component, arch, ".gz")] = compress_gzip(content)
            files[packages_path(component, arch, ".xz")] = compress_xz(content)
            files[arch_release_path(component, arch)] = render_arch_release(
                self.release, arch
            ).encode("utf-8")

            logger.debug(f"Rendered {len(packages)} packages for {arch}")

        try:
            metas = [file_meta(path, data) for path, data in files.items()]
        except StorageError as e:
            raise GenerationError(f"Failed to hash index files: {e}") from e

        release = render_release(self.release, self.clock(), sorted(snapshot), metas)
        files["Release"] = release.encode("utf-8")

        if self.signer is not None:
            files["InRelease"] = self.signer.clearsign(files["Release"])
            files["Release.gpg"] = self.signer.detach_sign(files["Release"])
            files[KEYRING_NAME] = self.signer.export_public_key()

        return files

    def regenerate(self, architectures: Optional[Sequence[str]] = None) -> GenerationResult:
        """Rebuild and atomically publish the suite.

        Args:
            architectures: Extra architectures to publish even when empty; the
                suite always covers every cataloged and configured one

        Returns:
            GenerationResult describing the published generation

        Raises:
            GenerationError: If building or publishing fails; the previous
                generation stays published
        """
        snapshot = self._snapshot(architectures)
        files = self._render(snapshot)

        try:
            snapshot_path = publish_directory(
                self.dists_dir,
                self.release.suite,
                files,
                retain=self.publish.retain_snapshots,
            )
        except OSError as e:
            raise GenerationError(f"Failed to publish {self.suite_path}: {e}") from e

        archs = sorted(snapshot)
        package_count = sum(len(packages) for packages in snapshot.values())

        logger.info(
            f"Regenerated {self.release.suite} for {', '.join(archs)} "
            f"({package_count} packages)"
        )
        return GenerationResult(
            suite_path=self.suite_path,
            snapshot_path=snapshot_path,
            architectures=archs,
            package_count=package_count,
            files=files,
        )
