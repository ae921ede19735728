"""
Local SQLAlchemy backend, end to end through the workflows (in-memory SQLite)
"""
from datetime import datetime, timezone

import pytest

from app.core.errors import BackendError, WorkflowError
from app.db.base import create_all
from app.db.session import make_engine, make_session_factory
from app.models.registration import RegistrationRequest
from app.services.registrations import SortState, approve_registration, load_registrations, reject_registration
from app.services.sql_backend import SqlBackend

from conftest import COMPANIES, REG


@pytest.fixture
def sql_settings(settings):
    return settings.model_copy(update={"BACKEND": "sql", "DATABASE_URL": "sqlite://"})


@pytest.fixture
def sql(sql_settings):
    engine = make_engine("sqlite://")
    create_all(engine)
    factory = make_session_factory(engine)
    with factory() as db:
        db.add_all([
            RegistrationRequest(
                id="r1", company_name="Acme", ico="123", psc="11000", email="a@x.com",
                created_at=datetime(2024, 2, 1, tzinfo=timezone.utc),
            ),
            RegistrationRequest(
                id="r2", company_name="Zeta", email="z@x.com",
                created_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
            ),
        ])
        db.commit()
    yield SqlBackend(factory, settings=sql_settings)
    engine.dispose()


def test_list_orders_by_requested_column(sql, sql_settings):
    by_date = load_registrations(sql, SortState("created_at", "asc"), sql_settings)
    by_name = load_registrations(sql, SortState("company_name", "desc"), sql_settings)
    assert [r.id for r in by_date] == ["r2", "r1"]
    assert [r.id for r in by_name] == ["r2", "r1"]
    assert by_date[0].status == "pending"


def test_conditional_update_only_matches_expected_status(sql):
    assert sql.update_rows(REG, "r1", {"status": "approved"}, match={"status": "rejected"}) == []
    updated = sql.update_rows(REG, "r1", {"status": "approved"}, match={"status": "pending"})
    assert updated[0]["status"] == "approved"


def test_unknown_column_is_a_backend_error(sql):
    with pytest.raises(BackendError):
        sql.list_rows(REG, "nope", True)
    with pytest.raises(BackendError):
        sql.list_rows("users", "id", True)


def test_approve_against_sql(sql, sql_settings, guard):
    result = approve_registration("r1", backend=sql, settings=sql_settings, guard=guard)

    company = sql.get_row(COMPANIES, result.company_id)
    assert company["company_name"] == "Acme"
    assert company["postal_code"] == "11000"
    assert company["wallet_balance"] == 0
    assert sql.get_row(REG, "r1")["status"] == "approved"

    account = sql.get_account("a@x.com")
    assert account["email_confirmed"] is False
    assert account["user_metadata"] == {"company_id": result.company_id}
    assert sql.outbox == [{"email": "a@x.com", "redirect_to": "https://admin.example.com/reset-password"}]


def test_duplicate_account_rolls_back_company_and_status(sql, sql_settings, guard):
    sql.create_account("z@x.com", "x", {}, False)

    with pytest.raises(WorkflowError) as exc:
        approve_registration("r2", backend=sql, settings=sql_settings, guard=guard)

    assert exc.value.message == "Failed to create user"
    assert sql.get_row(REG, "r2")["status"] == "pending"
    assert sql.list_rows(COMPANIES, "id", True) == []


def test_reject_against_sql(sql, sql_settings, guard):
    reject_registration("r2", backend=sql, settings=sql_settings, guard=guard)
    assert sql.get_row(REG, "r2")["status"] == "rejected"


def test_missing_sort_values_go_last_ascending_first_descending(sql, sql_settings):
    sql.insert_row(REG, {"id": "r3", "company_name": None, "email": "n@x.com"})

    up = load_registrations(sql, SortState("company_name", "asc"), sql_settings)
    down = load_registrations(sql, SortState("company_name", "desc"), sql_settings)
    assert [r.id for r in up] == ["r1", "r2", "r3"]
    assert [r.id for r in down] == ["r3", "r2", "r1"]


def test_retry_reuses_account_left_by_rolled_back_approval(sql, sql_settings, guard):
    sql.create_account("a@x.com", "x", {"company_id": "rolled-back"}, False)

    result = approve_registration("r1", backend=sql, settings=sql_settings, guard=guard)

    account = sql.get_account("a@x.com")
    assert result.account_id == account["id"]
    assert account["user_metadata"] == {"company_id": result.company_id}
    assert sql.get_row(REG, "r1")["status"] == "approved"


def test_update_unknown_account_is_a_backend_error(sql):
    with pytest.raises(BackendError):
        sql.update_account("nope", {"company_id": "c1"})
