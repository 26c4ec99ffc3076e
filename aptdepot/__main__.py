"""CLI interface for aptdepot.

Usage:
    python -m aptdepot [-c config.yaml] [--database-url URL] COMMAND ...

Commands:
    init-db                         create the catalog schema
    upload FILE... [--ignore-exists]
    import-dir DIR                  ingest every .deb below DIR
    regenerate [--arch ARCH ...]    rebuild dists/ for all known architectures
    repogen --deb FILE --arch ARCH [--output-dir DIR]
"""

import argparse
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from .common.config import AptDepotConfig, load_typed_config
from .common.errors import (
    AptDepotError,
    DuplicatePackage,
    GenerationError,
    ParseError,
    StorageError,
)
from .common.logger import get_logger, setup_logger
from .common.settings import get_settings
from .db.catalog import Catalog
from .repos.generator import IndexGenerator
from .repos.pool import ContentStore
from .repos.publish import atomic_write
from .repos.signing import ReleaseSigner
from .services.ingestion import IngestionService, UploadStatus, handle_upload

logger = get_logger("cli")

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_DUPLICATE = 3
EXIT_PARSE = 4
EXIT_STORAGE = 5
EXIT_GENERATION = 6


@dataclass
class Context:
    """Objects shared by all commands."""

    config: AptDepotConfig
    catalog: Catalog
    store: ContentStore
    service: IngestionService

    @property
    def repo_root(self) -> Path:
        return Path(self.config.storage.repo_root)

    def generator(self, repo_root: Optional[Path] = None) -> IndexGenerator:
        signer = ReleaseSigner(self.config.signing) if self.config.signing.enabled else None
        return IndexGenerator(
            self.catalog,
            repo_root or self.repo_root,
            self.config.release,
            publish=self.config.publish,
            signer=signer,
        )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="aptdepot",
        description="Host an APT repository of uploaded .deb packages",
    )
    parser.add_argument("-c", "--config", help="YAML configuration file")
    parser.add_argument("--database-url", help="SQLAlchemy URL of the catalog database")

    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("init-db", help="Create the catalog schema")

    upload = sub.add_parser("upload", help="Ingest .deb files")
    upload.add_argument("files", nargs="+", type=Path)
    upload.add_argument(
        "--ignore-exists",
        action="store_true",
        help="Treat already-cataloged packages as success",
    )

    import_dir = sub.add_parser("import-dir", help="Ingest every .deb below a directory")
    import_dir.add_argument("directory", type=Path)

    regenerate = sub.add_parser("regenerate", help="Rebuild Packages and Release files")
    regenerate.add_argument(
        "--arch",
        action="append",
        dest="architectures",
        help="Also publish this architecture when it has no packages (repeatable)",
    )

    repogen = sub.add_parser(
        "repogen", help="Ingest one artifact and regenerate the suite"
    )
    repogen.add_argument("--deb", required=True, type=Path)
    repogen.add_argument("--arch", required=True)
    repogen.add_argument("--output-dir", type=Path, help="Write the repository here instead")

    return parser


def build_context(args: argparse.Namespace) -> Context:
    """Load configuration and wire the catalog, store and service."""
    settings = get_settings()

    config_path = args.config or settings.config_path
    try:
        config = load_typed_config(config_path)
    except FileNotFoundError:
        if args.config:
            raise
        # Use defaults if config not found
        config = AptDepotConfig()

    if settings.repo_root:
        config.storage.repo_root = settings.repo_root
    if settings.log_level:
        config.logging.level = settings.log_level

    setup_logger("aptdepot", log_dir=config.logging.log_dir, level=config.logging.level)

    catalog = Catalog.from_url(args.database_url or settings.database_url)
    store = ContentStore(
        Path(config.storage.repo_root),
        component=config.release.component,
        max_retries=config.storage.max_retries,
        retry_delay=config.storage.retry_delay,
    )
    return Context(
        config=config,
        catalog=catalog,
        store=store,
        service=IngestionService(catalog, store),
    )


def cmd_init_db(ctx: Context, args: argparse.Namespace) -> int:
    ctx.catalog.create_schema()
    print("Catalog schema ready")
    return EXIT_OK


def cmd_upload(ctx: Context, args: argparse.Namespace) -> int:
    for path in args.files:
        result = handle_upload(ctx.service, path.read_bytes(), ignore_exists=args.ignore_exists)
        print(f"{result.status.value}: {result.key}")
    return EXIT_OK


def cmd_import_dir(ctx: Context, args: argparse.Namespace) -> int:
    results = ctx.service.ingest_directory(args.directory)
    created = sum(1 for r in results if r.status == UploadStatus.CREATED)
    print(f"Imported {created} new packages ({len(results) - created} already present)")
    return EXIT_OK


def cmd_regenerate(ctx: Context, args: argparse.Namespace) -> int:
    result = ctx.generator().regenerate(args.architectures)
    print(
        f"Published {result.suite_path} for {' '.join(result.architectures)} "
        f"({result.package_count} packages)"
    )
    return EXIT_OK


def cmd_repogen(ctx: Context, args: argparse.Namespace) -> int:
    data = args.deb.read_bytes()
    artifact = ctx.service.extractor.extract(data)
    if artifact.control.architecture != args.arch:
        raise ParseError(
            f"{args.deb.name} is built for {artifact.control.architecture}, not {args.arch}"
        )

    result = handle_upload(ctx.service, data, ignore_exists=True)
    print(f"{result.status.value}: {result.key}")

    output_root = args.output_dir or ctx.repo_root
    if args.output_dir and args.output_dir.resolve() != ctx.repo_root.resolve():
        _copy_pool(ctx, args.output_dir)

    generation = ctx.generator(output_root).regenerate([args.arch])
    print(f"Published {generation.suite_path} ({generation.package_count} packages)")
    return EXIT_OK


def _copy_pool(ctx: Context, output_root: Path) -> None:
    """Copy every cataloged artifact into another repository root."""
    packages = [p for arch_packages in ctx.catalog.snapshot().values() for p in arch_packages]
    for package in packages:
        target = output_root / package.filepath
        if target.is_file() and target.stat().st_size == package.size:
            continue
        source = ctx.repo_root / package.filepath
        try:
            with atomic_write(target) as f:
                f.write(source.read_bytes())
        except OSError as e:
            raise StorageError(f"Could not copy {source} to {target}: {e}") from e


COMMANDS = {
    "init-db": cmd_init_db,
    "upload": cmd_upload,
    "import-dir": cmd_import_dir,
    "regenerate": cmd_regenerate,
    "repogen": cmd_repogen,
}


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the aptdepot CLI."""
    args = build_parser().parse_args(argv)

    try:
        ctx = build_context(args)
        return COMMANDS[args.command](ctx, args)
    except DuplicatePackage as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_DUPLICATE
    except ParseError as e:
        print(f"Error: invalid package: {e}", file=sys.stderr)
        return EXIT_PARSE
    except StorageError as e:
        print(f"Error: storage failure: {e}", file=sys.stderr)
        return EXIT_STORAGE
    except GenerationError as e:
        print(f"Error: generation failed: {e}", file=sys.stderr)
        return EXIT_GENERATION
    except (AptDepotError, OSError, ValueError, TypeError) as e:
        logger.error(f"{args.command} failed: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_FAILURE


if __name__ == "__main__":
    sys.exit(main())
