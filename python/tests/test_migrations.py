"""Tests for the per-domain Alembic migrations.

Each test points CHATSYNC_DATA_DIR at a fresh temporary directory, so the
migrations run against their own database files and never touch the
databases used by other tests.
"""

import os
import subprocess
import sys
from pathlib import Path

import pytest
from sqlalchemy import create_engine, inspect

from chatsync.config import Domain
from chatsync.db.models import DOMAIN_METADATA


def get_migrations_dir() -> str:
    """Get the path to the migrations directory."""
    # From python/tests/, go up to repo root, then into migrations/
    return str(Path(__file__).resolve().parent.parent.parent / "migrations")


def run_alembic_command(command: str, data_dir: Path) -> subprocess.CompletedProcess:
    """Run an alembic command against the databases under data_dir."""
    return subprocess.run(
        [sys.executable, "-m", "alembic", *command.split()],
        capture_output=True,
        text=True,
        env={**os.environ, "CHATSYNC_ENV": "test", "CHATSYNC_DATA_DIR": str(data_dir)},
        cwd=get_migrations_dir(),
    )


def _tables(data_dir: Path, domain: Domain) -> set[str]:
    engine = create_engine(f"sqlite:///{data_dir / f'{domain.value}.db'}")
    try:
        return set(inspect(engine).get_table_names())
    finally:
        engine.dispose()


def _columns(data_dir: Path, domain: Domain, table: str) -> set[str]:
    engine = create_engine(f"sqlite:///{data_dir / f'{domain.value}.db'}")
    try:
        return {column["name"] for column in inspect(engine).get_columns(table)}
    finally:
        engine.dispose()


@pytest.fixture
def migrated_dir(tmp_path: Path) -> Path:
    """Data directory with every domain upgraded to head."""
    result = run_alembic_command("upgrade head", tmp_path)
    if result.returncode != 0:
        pytest.fail(f"Migration upgrade failed: {result.stderr}")
    return tmp_path


class TestUpgrade:
    @pytest.mark.parametrize("domain", list(Domain))
    def test_upgrade_creates_domain_tables(self, migrated_dir: Path, domain: Domain):
        """Each database holds exactly its own domain's tables."""
        expected = set(DOMAIN_METADATA[domain].tables)

        assert _tables(migrated_dir, domain) == expected | {"alembic_version"}

    @pytest.mark.parametrize("domain", list(Domain))
    def test_columns_match_models(self, migrated_dir: Path, domain: Domain):
        """Migrated columns equal the ORM model columns, table by table."""
        for name, table in DOMAIN_METADATA[domain].tables.items():
            expected = {column.name for column in table.columns}
            assert _columns(migrated_dir, domain, name) == expected, name

    def test_upgrade_is_idempotent(self, migrated_dir: Path):
        result = run_alembic_command("upgrade head", migrated_dir)

        assert result.returncode == 0, result.stderr

    def test_domain_selection(self, tmp_path: Path):
        """-x domains=... migrates only the named databases."""
        result = run_alembic_command("-x domains=chats upgrade head", tmp_path)

        assert result.returncode == 0, result.stderr
        assert (tmp_path / "chats.db").exists()
        assert not (tmp_path / "metrics.db").exists()


class TestDowngrade:
    @pytest.mark.parametrize("domain", list(Domain))
    def test_downgrade_removes_tables(self, migrated_dir: Path, domain: Domain):
        result = run_alembic_command("downgrade base", migrated_dir)

        assert result.returncode == 0, result.stderr
        assert _tables(migrated_dir, domain) == {"alembic_version"}
