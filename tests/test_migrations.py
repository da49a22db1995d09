"""Tests for the Alembic migration history."""

from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import inspect

from ocsp_responder.models.status import CertificateStatus, RevocationRecord
from ocsp_responder.services.revocation_store import RevocationStore

from conftest import REVOKED_AT

ALEMBIC_DIR = Path(__file__).resolve().parents[1] / "alembic"


def alembic_config(url):
    config = Config()
    config.set_main_option("script_location", str(ALEMBIC_DIR))
    config.set_main_option("sqlalchemy.url", url)
    return config


def test_upgrade_creates_revoked_table(tmp_path):
    url = f"sqlite:///{tmp_path / 'migrated.sqlite'}"
    command.upgrade(alembic_config(url), "head")

    store = RevocationStore(database_url=url)
    store.init()
    try:
        columns = {c["name"] for c in inspect(store.engine).get_columns("revoked")}
        assert columns == {"serial", "revoked_at"}

        store.upsert(RevocationRecord.revoked_on(3, REVOKED_AT))
        assert store.lookup(3).status == CertificateStatus.REVOKED
        assert store.lookup(3).revoked_at == REVOKED_AT
    finally:
        store.teardown()


def test_downgrade_drops_revoked_table(tmp_path):
    url = f"sqlite:///{tmp_path / 'migrated.sqlite'}"
    config = alembic_config(url)
    command.upgrade(config, "head")
    command.downgrade(config, "base")

    store = RevocationStore(database_url=url)
    store.init()
    try:
        # init() recreates the schema on an empty database
        assert store.snapshot() == []
    finally:
        store.teardown()
