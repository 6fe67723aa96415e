from __future__ import annotations

from pathlib import Path

import pytest

from usercrud.database import Database, resolve_database_path
from usercrud.errors import DuplicateEmailError
from usercrud.models import UserDraft


@pytest.fixture()
def database(tmp_path: Path) -> Database:
    db_path = tmp_path / "usercrud.sqlite3"
    db = Database(db_path)
    db.initialize()
    return db


def _seed(database: Database) -> None:
    database.save(UserDraft("John Doe", "john.doe@example.com", "+1555ABC", "1 Main St"))
    database.save(UserDraft("Jane Smith", "Jane.Smith@Example.com", "+1555abc", None))
    database.save(UserDraft("Bob 100% Real", "bob@example.org", None, None))


def test_insert_assigns_id_and_timestamps(database: Database) -> None:
    user = database.save(UserDraft("Test User", "test@example.com", "+1234567890", "123 Test St"))

    assert user.id > 0
    assert user.created_at == user.updated_at
    assert user.created_at.tzinfo is not None

    stored = database.find_by_id(user.id)
    assert stored == user


def test_initialize_is_idempotent(database: Database) -> None:
    database.save(UserDraft("Test User", "test@example.com"))
    database.initialize()
    assert database.count() == 1


def test_unique_email_is_enforced_by_storage(database: Database) -> None:
    database.save(UserDraft("First", "dup@example.com"))

    with pytest.raises(DuplicateEmailError) as excinfo:
        database.save(UserDraft("Second", "dup@example.com"))

    assert "dup@example.com" in str(excinfo.value)
    assert database.count() == 1


def test_email_lookup_is_exact(database: Database) -> None:
    _seed(database)

    assert database.find_by_email("Jane.Smith@Example.com") is not None
    assert database.find_by_email("jane.smith@example.com") is None
    assert database.exists_by_email("bob@example.org")
    assert not database.exists_by_email("bob@example")


def test_name_search_ignores_case(database: Database) -> None:
    _seed(database)

    names = [user.name for user in database.find_by_name_containing("JOHN")]
    assert names == ["John Doe"]

    assert len(database.find_by_name_containing("")) == 3


def test_search_treats_wildcards_literally(database: Database) -> None:
    _seed(database)

    assert [user.name for user in database.search_by_criteria(name="100%")] == ["Bob 100% Real"]
    assert database.search_by_criteria(name="_") == []


def test_search_by_criteria_combines_supplied_filters(database: Database) -> None:
    _seed(database)

    assert len(database.search_by_criteria()) == 3
    assert [u.name for u in database.search_by_criteria(email="EXAMPLE.COM")] == ["John Doe", "Jane Smith"]
    assert [u.name for u in database.search_by_criteria(name="j", email="smith")] == ["Jane Smith"]
    assert database.search_by_criteria(name="john", email="smith") == []


def test_phone_search_is_case_sensitive_and_skips_missing_phones(database: Database) -> None:
    _seed(database)

    assert [u.name for u in database.search_by_criteria(phone="ABC")] == ["John Doe"]
    assert [u.name for u in database.search_by_criteria(phone="abc")] == ["Jane Smith"]
    assert [u.name for u in database.search_by_criteria(phone="+1555")] == ["John Doe", "Jane Smith"]


def test_save_with_id_replaces_fields(database: Database) -> None:
    created = database.save(UserDraft("Test User", "test@example.com", "+1234567890", "123 Test St"))

    updated = database.save(UserDraft("Renamed", "renamed@example.com", None, None, id=created.id))

    assert updated.id == created.id
    assert updated.name == "Renamed"
    assert updated.email == "renamed@example.com"
    assert updated.phone is None
    assert updated.address is None
    assert updated.created_at == created.created_at
    assert updated.updated_at >= created.updated_at
    assert database.count() == 1


def test_save_with_unknown_id_fails(database: Database) -> None:
    with pytest.raises(KeyError):
        database.save(UserDraft("Ghost", "ghost@example.com", id=999))


def test_update_into_taken_email_is_rejected(database: Database) -> None:
    first = database.save(UserDraft("First", "first@example.com"))
    database.save(UserDraft("Second", "second@example.com"))

    with pytest.raises(DuplicateEmailError):
        database.save(UserDraft("First", "second@example.com", id=first.id))


def test_delete_by_id_and_ids_are_not_reused(database: Database) -> None:
    first = database.save(UserDraft("First", "first@example.com"))

    assert database.delete_by_id(first.id) is True
    assert database.delete_by_id(first.id) is False
    assert not database.exists_by_id(first.id)

    second = database.save(UserDraft("Second", "second@example.com"))
    assert second.id > first.id


def test_delete_all_empties_the_table(database: Database) -> None:
    _seed(database)
    database.delete_all()
    assert database.count() == 0
    assert database.find_all() == []


def test_resolve_database_path_prefers_explicit_value(tmp_path: Path) -> None:
    explicit = tmp_path / "custom.sqlite3"
    assert resolve_database_path(str(explicit)) == explicit.resolve()
    assert resolve_database_path(None).name == "usercrud.sqlite3"


def test_name_and_email_search_fold_non_ascii_case(database: Database) -> None:
    database.save(UserDraft("Émile Zola", "Émile@example.com"))
    database.save(UserDraft("Ada", "ada@example.com"))

    assert [u.name for u in database.find_by_name_containing("émile")] == ["Émile Zola"]
    assert [u.name for u in database.search_by_criteria(email="émile@")] == ["Émile Zola"]
