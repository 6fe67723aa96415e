"""Behavioural tests for the user domain service over both store implementations."""

from __future__ import annotations

import threading
from pathlib import Path

import pytest

from usercrud.database import Database
from usercrud.errors import DuplicateEmailError, UserNotFoundError, ValidationError
from usercrud.models import UserInput
from usercrud.service import UserService
from usercrud.storage import InMemoryUserStore, UserStore


@pytest.fixture(params=["sqlite", "memory"])
def store(request: pytest.FixtureRequest, tmp_path: Path) -> UserStore:
    if request.param == "sqlite":
        database = Database(tmp_path / "service.sqlite3")
        database.initialize()
        return database
    return InMemoryUserStore()


@pytest.fixture()
def service(store: UserStore) -> UserService:
    return UserService(store)


def _input(name: str = "Test User", email: str = "test@example.com", **extra: str) -> UserInput:
    return UserInput(name=name, email=email, phone=extra.get("phone"), address=extra.get("address"))


def test_create_then_get_returns_identical_fields(service: UserService) -> None:
    created = service.create(_input(phone="+1234567890", address="123 Test St"))

    fetched = service.get_by_id(created.id)

    assert fetched.name == "Test User"
    assert fetched.email == "test@example.com"
    assert fetched.phone == "+1234567890"
    assert fetched.address == "123 Test St"
    assert fetched == created


def test_get_by_id_for_missing_user(service: UserService) -> None:
    with pytest.raises(UserNotFoundError) as excinfo:
        service.get_by_id(9999)
    assert "User not found" in str(excinfo.value)
    assert "9999" in str(excinfo.value)


def test_get_by_email_returns_none_when_absent(service: UserService) -> None:
    assert service.get_by_email("nobody@example.com") is None
    created = service.create(_input())
    assert service.get_by_email("test@example.com") == created


def test_duplicate_email_is_rejected_and_count_grows_once(service: UserService) -> None:
    service.create(_input())

    with pytest.raises(DuplicateEmailError) as excinfo:
        service.create(_input(name="Other User"))

    assert "Email already exists" in str(excinfo.value)
    assert "test@example.com" in str(excinfo.value)
    assert service.count() == 1


def test_validation_reports_every_violation(service: UserService) -> None:
    payload = UserInput(name="X", email="not-an-email", phone="1" * 16, address="a" * 501)

    with pytest.raises(ValidationError) as excinfo:
        service.create(payload)

    assert excinfo.value.messages == [
        "Name must be between 2 and 100 characters",
        "Email must be valid",
        "Phone number cannot exceed 15 characters",
        "Address cannot exceed 500 characters",
    ]
    assert service.count() == 0


def test_validation_requires_name_and_email(service: UserService) -> None:
    with pytest.raises(ValidationError) as excinfo:
        service.create(UserInput())

    assert excinfo.value.messages == ["Name is required", "Email is required"]


def test_email_exists_follows_lifecycle(service: UserService) -> None:
    created = service.create(_input())
    assert service.email_exists(created.email)
    assert service.exists(created.id)

    service.delete(created.id)

    assert not service.email_exists(created.email)
    assert not service.exists(created.id)


def test_delete_twice_reports_not_found(service: UserService) -> None:
    created = service.create(_input())

    assert service.delete(created.id) is True
    with pytest.raises(UserNotFoundError):
        service.delete(created.id)


def test_delete_missing_user(service: UserService) -> None:
    with pytest.raises(UserNotFoundError):
        service.delete(12345)


def test_update_with_unchanged_email_never_conflicts(service: UserService) -> None:
    created = service.create(_input())
    service.create(_input(name="Other", email="other@example.com"))

    updated = service.update(created.id, _input(name="Renamed"))

    assert updated.id == created.id
    assert updated.name == "Renamed"
    assert updated.email == "test@example.com"


def test_update_to_taken_email_is_rejected(service: UserService) -> None:
    created = service.create(_input())
    service.create(_input(name="Other", email="other@example.com"))

    with pytest.raises(DuplicateEmailError):
        service.update(created.id, _input(email="other@example.com"))

    assert service.get_by_id(created.id).email == "test@example.com"


def test_update_replaces_all_fields(service: UserService) -> None:
    created = service.create(_input(phone="+1234567890", address="123 Test St"))

    updated = service.update(created.id, _input(name="Updated User", email="updated@example.com"))

    assert updated.phone is None
    assert updated.address is None
    assert service.get_by_id(created.id) == updated
    assert not service.email_exists("test@example.com")


def test_update_missing_user(service: UserService) -> None:
    with pytest.raises(UserNotFoundError):
        service.update(404, _input())


def test_update_validates_before_lookup(service: UserService) -> None:
    with pytest.raises(ValidationError):
        service.update(404, UserInput(name="Valid Name", email=None))


def test_search_by_name_is_case_insensitive(service: UserService) -> None:
    service.create(_input(name="John Doe", email="john@example.com"))
    service.create(_input(name="Jane", email="jane@example.com"))

    assert [user.name for user in service.search_by_name("john")] == ["John Doe"]
    assert len(service.search_by_name("")) == 2


def test_search_folds_case_beyond_ascii(service: UserService) -> None:
    service.create(_input(name="Émile Zola", email="emile@example.com"))
    service.create(_input(name="Jürgen Groß", email="JURGEN@example.com"))

    assert [u.name for u in service.search(name="émile")] == ["Émile Zola"]
    assert [u.name for u in service.search_by_name("ÉMILE")] == ["Émile Zola"]
    assert [u.name for u in service.search(name="JÜRGEN")] == ["Jürgen Groß"]
    assert [u.name for u in service.search(email="jurgen")] == ["Jürgen Groß"]


def test_search_applies_only_supplied_criteria(service: UserService) -> None:
    service.create(_input(name="John Doe", email="john@example.com", phone="+1555ABC"))
    service.create(_input(name="Jane", email="jane@corp.example.com", phone="+1555abc"))
    service.create(_input(name="Johnny", email="johnny@corp.example.com"))

    assert [u.name for u in service.search(name="john")] == ["John Doe", "Johnny"]
    assert [u.name for u in service.search(name="john", email="CORP")] == ["Johnny"]
    assert [u.name for u in service.search(phone="abc")] == ["Jane"]
    assert len(service.search()) == 3


def test_count_tracks_creates_minus_deletes(service: UserService) -> None:
    ids = [service.create(_input(email=f"user{i}@example.com")).id for i in range(4)]
    service.delete(ids[0])
    service.delete(ids[2])

    assert service.count() == 2
    assert [user.id for user in service.list_all()] == [ids[1], ids[3]]


def test_store_rejects_racing_duplicate_creates(service: UserService) -> None:
    barrier = threading.Barrier(4)
    outcomes: list[str] = []
    lock = threading.Lock()

    def worker(index: int) -> None:
        barrier.wait()
        try:
            service.create(_input(name=f"Racer {index}", email="race@example.com"))
            result = "created"
        except DuplicateEmailError:
            result = "duplicate"
        with lock:
            outcomes.append(result)

    threads = [threading.Thread(target=worker, args=(index,)) for index in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert outcomes.count("created") == 1
    assert outcomes.count("duplicate") == 3
    assert service.count() == 1


def test_invalid_payload_also_reports_taken_email(service: UserService) -> None:
    service.create(_input())

    with pytest.raises(ValidationError) as excinfo:
        service.create(_input(name="X"))

    assert excinfo.value.messages == [
        "Name must be between 2 and 100 characters",
        "Email already exists: test@example.com",
    ]
    assert "Email already exists" in str(excinfo.value)
    assert service.count() == 1
