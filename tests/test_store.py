"""Unit tests for auth/store.py -- UserStore queries, writes and bootstrap state.

Covers:
- create_user() defaults, email uniqueness, NULL emails
- get_by_email_or_name() precedence and the earliest-created name tie-break
- count_users() and system_state() transitions
- create_user_with_bootstrap() grants the bootstrap role only on an empty users table
- the role CHECK constraint rejects values outside the Role enum
"""

import pytest
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError

from auth.models import Role, SystemState
from auth.store import UserStore


class TestCreateUser:
    def test_defaults_to_user_role(self, store: UserStore) -> None:
        user = store.create_user("alice", email="alice@example.com")
        assert user.id is not None
        assert user.role == Role.USER
        assert user.created_at

    def test_round_trips_through_get_by_id(self, store: UserStore) -> None:
        created = store.create_user("bob", email="bob@example.com", role=Role.ADMIN)
        fetched = store.get_by_id(created.id)
        assert fetched == created

    def test_duplicate_email_raises_integrity_error(self, store: UserStore) -> None:
        store.create_user("carol", email="carol@example.com")
        with pytest.raises(IntegrityError):
            store.create_user("carol-2", email="carol@example.com")
        assert store.count_users() == 1

    def test_multiple_users_without_email(self, store: UserStore) -> None:
        store.create_user("dave")
        store.create_user("erin")
        assert store.count_users() == 2

    def test_invalid_role_rejected_by_schema(self, store: UserStore) -> None:
        with pytest.raises(IntegrityError):
            with store.engine.begin() as conn:
                conn.execute(
                    text("INSERT INTO users (name, role, created_at) VALUES (:n, :r, :c)"),
                    {"n": "mallory", "r": "ROOT", "c": "2026-01-01T00:00:00+00:00"},
                )


class TestLookups:
    def test_get_by_id_unknown_returns_none(self, store: UserStore) -> None:
        assert store.get_by_id(999) is None

    def test_email_preferred_over_name(self, store: UserStore) -> None:
        by_email = store.create_user("frank", email="frank@example.com")
        store.create_user("grace", email="grace@example.com")
        found = store.get_by_email_or_name(email="frank@example.com", name="grace")
        assert found is not None
        assert found.id == by_email.id

    def test_unknown_email_does_not_fall_back_to_name(self, store: UserStore) -> None:
        store.create_user("heidi", email="heidi@example.com")
        assert store.get_by_email_or_name(email="nobody@example.com", name="heidi") is None

    def test_name_lookup_returns_earliest_created(self, store: UserStore) -> None:
        first = store.create_user("ivan", email="ivan1@example.com")
        store.create_user("ivan", email="ivan2@example.com")
        store.create_user("ivan")
        found = store.get_by_email_or_name(name="ivan")
        assert found is not None
        assert found.id == first.id

    def test_name_lookup_is_exact(self, store: UserStore) -> None:
        store.create_user("Judy")
        assert store.get_by_email_or_name(name="judy") is None

    def test_neither_identifier_returns_none(self, store: UserStore) -> None:
        store.create_user("ken")
        assert store.get_by_email_or_name() is None
        assert store.get_by_email_or_name(email="", name="") is None

    def test_list_users_in_creation_order(self, store: UserStore) -> None:
        store.create_user("b")
        store.create_user("a")
        assert [u.name for u in store.list_users()] == ["b", "a"]


class TestBootstrapState:
    def test_new_store_is_empty(self, store: UserStore) -> None:
        assert store.count_users() == 0
        assert store.system_state() == SystemState.EMPTY

    def test_create_user_marks_populated(self, store: UserStore) -> None:
        store.create_user("leo")
        assert store.system_state() == SystemState.POPULATED

    def test_bootstrap_role_granted_to_first_user_only(self, store: UserStore) -> None:
        first = store.create_user_with_bootstrap("mia", None, Role.ADMIN)
        second = store.create_user_with_bootstrap("ned", None, Role.ADMIN)
        assert first.role == Role.ADMIN
        assert second.role == Role.USER
        assert store.system_state() == SystemState.POPULATED

    def test_bootstrap_role_not_granted_after_plain_create(self, store: UserStore) -> None:
        store.create_user("olga")
        user = store.create_user_with_bootstrap("pam", None, Role.ADMIN)
        assert user.role == Role.USER

    def test_bootstrap_may_be_user(self, store: UserStore) -> None:
        user = store.create_user_with_bootstrap("quinn", None, Role.USER)
        assert user.role == Role.USER
        assert store.system_state() == SystemState.POPULATED

    def test_rows_written_outside_the_store_block_bootstrap(self, store: UserStore) -> None:
        """Another client of the users table inserted a row: the next signup is a USER."""
        with store.engine.begin() as conn:
            conn.execute(
                text("INSERT INTO users (name, role, created_at) VALUES (:n, :r, :c)"),
                {"n": "external", "r": "USER", "c": "2026-01-01T00:00:00+00:00"},
            )
        assert store.count_users() == 1
        assert store.system_state() == SystemState.POPULATED
        assert store.create_user_with_bootstrap("late", None, Role.ADMIN).role == Role.USER

    def test_emptied_table_bootstraps_again(self, store: UserStore) -> None:
        store.create_user_with_bootstrap("first", None, Role.ADMIN)
        with store.engine.begin() as conn:
            conn.execute(text("DELETE FROM users"))
        assert store.system_state() == SystemState.EMPTY
        assert store.create_user_with_bootstrap("again", None, Role.ADMIN).role == Role.ADMIN

    def test_bootstrap_grant_is_stamped(self, store: UserStore) -> None:
        user = store.create_user_with_bootstrap("stamp", None, Role.ADMIN)
        with store.engine.connect() as conn:
            stamped = conn.execute(text("SELECT bootstrapped_at FROM system_state WHERE id = 1")).scalar()
        assert stamped == user.created_at

    def test_failed_insert_leaves_no_bootstrap_stamp(self, store: UserStore) -> None:
        """A rolled-back bootstrap insert leaves the table empty and the stamp unset."""
        with store.engine.begin() as conn:
            conn.execute(text("CREATE TRIGGER reject_all BEFORE INSERT ON users BEGIN SELECT RAISE(ABORT, 'no'); END"))
        with pytest.raises(IntegrityError):
            store.create_user_with_bootstrap("doomed", None, Role.ADMIN)
        with store.engine.connect() as conn:
            stamped = conn.execute(text("SELECT bootstrapped_at FROM system_state WHERE id = 1")).scalar()
        assert stamped is None
        assert store.system_state() == SystemState.EMPTY
