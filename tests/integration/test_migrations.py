"""Test Alembic migrations: upgrade, downgrade, and structural checks.

Runs against a throwaway SQLite database, so no server is required.
"""

from pathlib import Path

import pytest
from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, inspect

from aptdepot.db.catalog import Catalog
from aptdepot.repos.pool import ContentStore
from aptdepot.services.ingestion import IngestionService


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

MIGRATIONS_DIR = Path(__file__).resolve().parents[2] / "aptdepot" / "migrations"


def _alembic_cfg(database_url: str) -> Config:
    cfg = Config()
    cfg.set_main_option("script_location", str(MIGRATIONS_DIR))
    cfg.set_main_option("sqlalchemy.url", database_url)
    return cfg


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------


@pytest.mark.integration
@pytest.mark.db
class TestMigrations:
    """Upgrade/downgrade round-trip and schema checks."""

    def test_upgrade_creates_schema(self, database_url):
        """Test upgrade head creates the packages table and indexes."""
        command.upgrade(_alembic_cfg(database_url), "head")

        engine = create_engine(database_url)
        try:
            inspector = inspect(engine)
            assert "packages" in inspector.get_table_names()
            indexes = {i["name"]: i for i in inspector.get_indexes("packages")}
            assert indexes["avoid_dupes"]["unique"]
            assert indexes["avoid_dupes"]["column_names"] == ["version", "name", "architecture"]
            assert indexes["by_arch"]["column_names"] == ["architecture"]
        finally:
            engine.dispose()

    def test_downgrade_drops_schema(self, database_url):
        """Test downgrade base removes the packages table."""
        cfg = _alembic_cfg(database_url)
        command.upgrade(cfg, "head")
        command.downgrade(cfg, "base")

        engine = create_engine(database_url)
        try:
            assert "packages" not in inspect(engine).get_table_names()
        finally:
            engine.dispose()

    def test_migrated_schema_matches_models(self, database_url, deb_factory, tmp_path):
        """Test the catalog works on a migrated database."""
        command.upgrade(_alembic_cfg(database_url), "head")
        catalog = Catalog.from_url(database_url)
        try:
            service = IngestionService(catalog, ContentStore(tmp_path / "repo"))
            service.ingest(deb_factory())

            assert [p.name for p in catalog.list("amd64")] == ["mytool"]
        finally:
            catalog.engine.dispose()
