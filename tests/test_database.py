from __future__ import annotations

import re
import sqlite3
import time
from pathlib import Path

import pytest

from app.database import Database, resolve_database_path
from app.errors import EmptyUpdateError, NotFoundError, StorageError
from app.models import UserCreationRequest, UserUpdatePatch


@pytest.fixture()
def database(tmp_path: Path) -> Database:
    db_path = tmp_path / "users.sqlite3"
    db = Database(db_path)
    db.initialize()
    return db


def _create(database: Database, email: str = "a@x.com", name: str = "A", visible: bool = False):
    return database.create_user(UserCreationRequest(email=email, email_visibility=visible, name=name))


def test_list_users_on_empty_table(database: Database) -> None:
    assert database.list_users() == []


def test_initialize_is_idempotent(database: Database) -> None:
    _create(database)
    database.initialize()

    assert len(database.list_users()) == 1


def test_create_and_fetch_by_email(database: Database) -> None:
    created = _create(database, email="a@x.com", name="A")
    fetched = database.get_user_by_email("a@x.com")

    assert fetched == created
    assert fetched.email == "a@x.com"
    assert fetched.name == "A"
    assert re.fullmatch(r"[0-9a-f]{15}", fetched.id)
    assert fetched.verified is False
    assert fetched.avatar == ""
    assert re.fullmatch(r"\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}\.\d{3}Z", fetched.created)
    assert fetched.updated == fetched.created


def test_create_uses_defaults_for_optional_fields(database: Database) -> None:
    user = database.create_user(UserCreationRequest(email="defaults@example.com"))

    assert user.name == ""
    assert user.email_visibility is False


def test_duplicate_email_is_a_storage_error(database: Database) -> None:
    _create(database, email="dup@example.com")

    with pytest.raises(StorageError) as excinfo:
        _create(database, email="dup@example.com", name="Other")

    assert excinfo.value.operation == "error creating new user"
    assert isinstance(excinfo.value.__cause__, sqlite3.IntegrityError)
    assert len(database.list_users()) == 1


def test_get_user_by_id(database: Database) -> None:
    created = _create(database)

    assert database.get_user_by_id(created.id) == created


def test_get_unknown_user_raises_not_found(database: Database) -> None:
    with pytest.raises(NotFoundError):
        database.get_user_by_id("missing")
    with pytest.raises(NotFoundError):
        database.get_user_by_email("missing@example.com")


def test_update_changes_only_supplied_fields(database: Database) -> None:
    created = _create(database, email="a@x.com", name="A", visible=True)

    updated = database.update_user_by_id(created.id, UserUpdatePatch(name="B"))

    assert updated.name == "B"
    assert updated.email == "a@x.com"
    assert updated.email_visibility is True
    assert updated.id == created.id
    assert updated.created == created.created


def test_update_accepts_zero_values(database: Database) -> None:
    created = _create(database, name="A", visible=True)

    updated = database.update_user_by_id(
        created.id,
        UserUpdatePatch(email_visibility=False, name=""),
    )

    assert updated.email_visibility is False
    assert updated.name == ""


def test_empty_patch_leaves_row_unchanged(database: Database) -> None:
    created = _create(database)

    with pytest.raises(EmptyUpdateError):
        database.update_user_by_id(created.id, UserUpdatePatch())

    assert database.get_user_by_id(created.id) == created


def test_update_unknown_user_raises_not_found(database: Database) -> None:
    with pytest.raises(NotFoundError):
        database.update_user_by_id("missing", UserUpdatePatch(name="B"))


def test_update_to_taken_email_is_a_storage_error(database: Database) -> None:
    _create(database, email="first@example.com")
    second = _create(database, email="second@example.com")

    with pytest.raises(StorageError):
        database.update_user_by_id(second.id, UserUpdatePatch(email="first@example.com"))

    assert database.get_user_by_id(second.id).email == "second@example.com"


def test_update_value_is_stored_verbatim(database: Database) -> None:
    created = _create(database)
    hostile = "Robert'); DROP TABLE users;--"

    updated = database.update_user_by_id(created.id, UserUpdatePatch(name=hostile))

    assert updated.name == hostile
    assert len(database.list_users()) == 1


def test_delete_then_get_raises_not_found(database: Database) -> None:
    created = _create(database)

    assert database.delete_user_by_id(created.id) == 1
    with pytest.raises(NotFoundError):
        database.get_user_by_id(created.id)


def test_delete_unknown_id_is_not_an_error(database: Database) -> None:
    assert database.delete_user_by_id("missing") == 0


def test_list_users_returns_every_row(database: Database) -> None:
    _create(database, email="one@example.com")
    _create(database, email="two@example.com")

    emails = sorted(user.email for user in database.list_users())
    assert emails == ["one@example.com", "two@example.com"]


def test_resolve_database_path_prefers_explicit_value(tmp_path: Path) -> None:
    explicit = tmp_path / "custom.sqlite3"

    assert resolve_database_path(str(explicit)) == explicit.resolve()
    assert resolve_database_path(None).name == "users.sqlite3"


def test_update_refreshes_updated_timestamp(database: Database) -> None:
    created = _create(database)
    time.sleep(0.01)

    updated = database.update_user_by_id(created.id, UserUpdatePatch(name="B"))

    assert updated.created == created.created
    assert updated.updated != created.updated
    assert updated.updated > created.updated


def test_create_reports_row_deleted_before_read_back(
    database: Database, monkeypatch: pytest.MonkeyPatch
) -> None:
    original_get_by_email = database.get_user_by_email

    def delete_then_fetch(email: str):
        user = original_get_by_email(email)
        database.delete_user_by_id(user.id)
        return original_get_by_email(email)

    monkeypatch.setattr(database, "get_user_by_email", delete_then_fetch)

    with pytest.raises(NotFoundError):
        _create(database, email="raced@example.com")

    assert database.list_users() == []
