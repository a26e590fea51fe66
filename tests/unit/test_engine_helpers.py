"""Tests for the database engine helpers (hr_kernel/db/engine.py)."""

import pytest

from hr_kernel.db.engine import database_url_from_env, session_scope
from hr_kernel.domain.clock import DeterministicClock
from hr_kernel.domain.values import Role
from hr_kernel.selectors.org_selector import OrgSelector
from hr_services.org_hierarchy_service import OrgHierarchyService
from tests.conftest import FIXED_NOW, TEST_ACTOR_ID


class TestDatabaseUrlFromEnv:
    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "postgresql://hr@localhost/hr")
        assert database_url_from_env() == "postgresql://hr@localhost/hr"

    def test_default_when_unset(self, monkeypatch):
        monkeypatch.delenv("DATABASE_URL", raising=False)
        assert database_url_from_env("sqlite://") == "sqlite://"

    def test_missing_raises(self, monkeypatch):
        monkeypatch.delenv("DATABASE_URL", raising=False)
        with pytest.raises(RuntimeError, match="DATABASE_URL"):
            database_url_from_env()


class TestSessionScope:
    def test_commits_on_success(self, session_factory):
        with session_scope() as sess:
            user = OrgHierarchyService(sess, DeterministicClock(FIXED_NOW)).create_user(
                "Scoped User", "scoped@example.com", Role.EMPLOYEE, TEST_ACTOR_ID,
            )

        check = session_factory()
        assert OrgSelector(check).user(user.user_id).email == "scoped@example.com"

    def test_rolls_back_and_reraises(self, session_factory):
        created = []
        with pytest.raises(ValueError, match="abort"):
            with session_scope() as sess:
                created.append(
                    OrgHierarchyService(sess, DeterministicClock(FIXED_NOW)).create_user(
                        "Lost User", "lost@example.com", Role.EMPLOYEE, TEST_ACTOR_ID,
                    )
                )
                raise ValueError("abort")

        check = session_factory()
        assert OrgSelector(check).user(created[0].user_id) is None
