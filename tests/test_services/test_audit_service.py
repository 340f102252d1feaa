"""
Tests for the background audit writer.

These run against a file-backed SQLite database so the worker thread and
the test share the same data through separate connections.
"""

import logging
import threading

import pytest

from assettrack import create_app
from assettrack.config import TestingConfig
from assettrack.extensions import db
from assettrack.models.audit import AuditLog
from assettrack.services import audit_service
from assettrack.services.audit_service import AuditEntry


@pytest.fixture
def async_app(tmp_path, monkeypatch):
    """Testing app with ``AUDIT_ASYNC`` enabled on an on-disk database."""
    monkeypatch.setattr(
        TestingConfig, "SQLALCHEMY_DATABASE_URI", f"sqlite:///{tmp_path / 'audit.db'}"
    )
    monkeypatch.setattr(TestingConfig, "AUDIT_ASYNC", True)
    app = create_app("testing")

    with app.app_context():
        db.create_all()
        yield app
        audit_service.shutdown(wait=True)
        db.session.remove()
        db.drop_all()


class TestBackgroundWrites:
    """dispatch() hands entries to the executor; shutdown() drains it."""

    def test_entry_written_by_worker(self, async_app, monkeypatch):  # pylint: disable=unused-argument
        threads = []
        original_record = audit_service.record

        def tracking_record(entry):
            threads.append(threading.current_thread().name)
            return original_record(entry)

        monkeypatch.setattr(audit_service, "record", tracking_record)

        audit_service.dispatch(
            AuditEntry(action="CREATE", entity_type="Asset", entity_id=5, new_values={"id": 5})
        )
        audit_service.shutdown(wait=True)

        row = AuditLog.query.one()
        assert row.action == "CREATE"
        assert row.entity_id == 5
        assert row.new_values == {"id": 5}
        assert len(threads) == 1
        assert threads[0].startswith("audit-writer")
        assert threads[0] != threading.current_thread().name

    def test_worker_failure_is_logged_and_swallowed(self, async_app, monkeypatch, caplog):  # pylint: disable=unused-argument
        def broken_row(**_kwargs):
            raise RuntimeError("audit table is gone")

        monkeypatch.setattr(audit_service, "AuditLog", broken_row)
        caplog.set_level(logging.ERROR, logger="assettrack.services.audit_service")

        audit_service.dispatch(AuditEntry(action="UPDATE", entity_type="Asset", entity_id=1))
        audit_service.shutdown(wait=True)

        monkeypatch.undo()
        assert AuditLog.query.count() == 0
        assert any("Audit write failed" in r.getMessage() for r in caplog.records)

    def test_executor_restarts_after_shutdown(self, async_app):  # pylint: disable=unused-argument
        audit_service.dispatch(AuditEntry(action="CREATE", entity_type="Site", entity_id=1))
        audit_service.shutdown(wait=True)
        audit_service.dispatch(AuditEntry(action="DELETE", entity_type="Site", entity_id=1))
        audit_service.shutdown(wait=True)

        actions = sorted(row.action for row in AuditLog.query.all())
        assert actions == ["CREATE", "DELETE"]
