"""
Tests for the transaction wrapper and the foreign key suspension scope.
"""

import pytest
from sqlalchemy.exc import OperationalError

from case_manager.exceptions import (
    ConstraintToggleError,
    ResourceNotFoundError,
    TransactionError,
)
from case_manager.models import Case, Folder
from case_manager.services import constraints
from case_manager.services.constraints import foreign_keys_suspended
from case_manager.services.transaction import transaction

from conftest import make_case, make_folder, test_engine


def _foreign_keys_enabled() -> bool:
    with test_engine.connect() as conn:
        return conn.exec_driver_sql("PRAGMA foreign_keys").scalar() == 1


class TestTransaction:
    def test_commits_on_success(self, db, session_factory):
        with transaction(db):
            db.add(Folder(name="Committed", project_id=1))

        with session_factory() as other:
            assert other.query(Folder).filter(Folder.name == "Committed").count() == 1

    def test_database_error_rolls_back_and_is_wrapped(self, db):
        with pytest.raises(TransactionError) as excinfo:
            with transaction(db):
                db.add(Folder(name="Lost", project_id=1))
                db.flush()
                raise OperationalError("INSERT", {}, Exception("disk full"))

        assert isinstance(excinfo.value.__cause__, OperationalError)
        assert excinfo.value.status_code == 500
        assert db.query(Folder).count() == 0

    def test_constraint_violation_is_wrapped(self, db):
        with pytest.raises(TransactionError):
            with transaction(db):
                db.add(Case(title="Nowhere", folder_id=4242))
                db.flush()

        assert db.query(Case).count() == 0

    def test_api_errors_pass_through_after_rollback(self, db):
        with pytest.raises(ResourceNotFoundError):
            with transaction(db):
                db.add(Folder(name="Lost", project_id=1))
                db.flush()
                raise ResourceNotFoundError("Folder", 1)

        assert db.query(Folder).count() == 0


class TestForeignKeysSuspended:
    def test_disabled_inside_and_restored_after(self, db):
        with foreign_keys_suspended(db) as scoped:
            assert scoped.connection().exec_driver_sql("PRAGMA foreign_keys").scalar() == 0

        assert _foreign_keys_enabled()

    def test_restored_when_block_raises(self, db):
        with pytest.raises(RuntimeError):
            with foreign_keys_suspended(db):
                raise RuntimeError("boom")

        assert _foreign_keys_enabled()

    def test_cascade_suspended_inside_scope(self, db):
        folder = make_folder(db, "F")
        case = make_case(db, folder.id)

        with foreign_keys_suspended(db) as scoped:
            with transaction(scoped):
                scoped.query(Folder).filter(Folder.id == folder.id).delete(synchronize_session=False)

        db.expire_all()
        assert db.query(Folder).count() == 0
        assert db.query(Case).filter(Case.id == case.id).count() == 1

    def test_failed_restore_raises_and_discards_connection(self, db, monkeypatch):
        real = constraints._set_foreign_keys
        calls = []

        def flaky(connection, enabled):
            calls.append(enabled)
            if enabled:
                raise ConstraintToggleError()
            real(connection, enabled)

        monkeypatch.setattr(constraints, "_set_foreign_keys", flaky)

        with pytest.raises(ConstraintToggleError):
            with foreign_keys_suspended(db):
                pass

        assert calls == [False, True]
        assert _foreign_keys_enabled()
