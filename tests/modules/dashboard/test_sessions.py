"""Tests for in-memory view sessions."""

import pytest

from src.core.exceptions import NotFoundError, ValidationError
from src.modules.dashboard.sessions import ViewSessionStore


class TestViewSessionStore:
    def test_create_starts_collapsed(self):
        store = ViewSessionStore()
        session = store.create("packages")
        assert session.expansion.snapshot() == {"package_name": [], "student": [], "package": []}
        assert store.get(session.id) is session
        assert len(store) == 1

    def test_sessions_are_independent(self):
        """Two mounts of the same view do not share expansion state."""
        store = ViewSessionStore()
        first = store.create("financial")
        second = store.create("financial")
        first.toggle("month", "2024-01")
        assert first.id != second.id
        assert second.expansion.snapshot() == {"month": []}

    def test_view_without_levels(self):
        session = ViewSessionStore().create("overview")
        assert session.expansion.levels == []
        with pytest.raises(ValidationError) as exc_info:
            session.toggle("month", "2024-01")
        assert exc_info.value.details == {"field": "level"}

    def test_get_unknown(self):
        with pytest.raises(NotFoundError):
            ViewSessionStore().get("nope")

    def test_discard(self):
        store = ViewSessionStore()
        session = store.create("lessons")
        store.discard(session.id)
        assert len(store) == 0
        with pytest.raises(NotFoundError):
            store.discard(session.id)

    def test_get_for_view(self):
        store = ViewSessionStore()
        session = store.create("teachers")
        assert store.get_for_view(None, "teachers") is None
        assert store.get_for_view(session.id, "teachers") is session
        with pytest.raises(ValidationError):
            store.get_for_view(session.id, "students")

    def test_toggle_through_store(self):
        store = ViewSessionStore()
        session = store.create("students")
        toggled, is_expanded = store.toggle(session.id, "student", "s1")
        assert toggled is session
        assert is_expanded is True
        assert store.toggle(session.id, "student", "s1")[1] is False
        with pytest.raises(NotFoundError):
            store.toggle("missing", "student", "s1")
