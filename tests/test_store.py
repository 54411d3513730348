"""
Tests for adaptive context persistence.
"""

import pytest

from interview_coach.adaptive.context import AdaptiveContext, update_after_session
from interview_coach.adaptive.store import InMemoryContextStore, JsonContextStore

from fixtures import make_analytics


@pytest.fixture
def populated_context():
    context = AdaptiveContext.fresh("alice@example.com")
    update_after_session(context, make_analytics(9.0, {"Technical": 9.0, "Behavioral": 5.0}))
    update_after_session(context, make_analytics(8.0, {"Technical": 7.0}, day=1))
    return context


class TestJsonContextStore:
    """Test the file-backed store."""

    def test_round_trip(self, tmp_path, populated_context):
        """Test saving and loading a context."""
        store = JsonContextStore(tmp_path)
        store.save(populated_context)

        loaded = store.load("alice@example.com")

        assert loaded == populated_context
        assert loaded.last_session_date == populated_context.last_session_date
        assert loaded.historical_analytics[0].subscores == {"Technical": 9.0, "Behavioral": 5.0}

    def test_file_location(self, tmp_path):
        """Ids that are already safe file names are used as-is."""
        store = JsonContextStore(tmp_path)
        store.save(AdaptiveContext(user_id="alice"))

        assert (tmp_path / "contexts" / "alice_context.json").exists()

    def test_sanitized_ids_get_distinct_files(self, tmp_path):
        """Ids that sanitize to the same name still map to different files."""
        store = JsonContextStore(tmp_path)

        first = store.path_for("alice@x")
        second = store.path_for("alice#x")

        assert first != second
        assert first.name.startswith("alice_x_")
        assert store.path_for("alice@x") == first

    def test_colliding_ids_keep_separate_profiles(self, tmp_path):
        """A user never inherits the profile of an id that sanitizes the same way."""
        store = JsonContextStore(tmp_path)
        store.save(AdaptiveContext(user_id="alice@x", difficulty_level=5))

        assert store.load("alice#x") is None
        assert store.load("alice@x").difficulty_level == 5

    def test_document_for_other_user_ignored(self, tmp_path):
        """A stored document whose user_id differs from the requested id is not returned."""
        store = JsonContextStore(tmp_path)
        store.path_for("bob").write_text('{"user_id": "mallory", "difficulty_level": 5}', encoding="utf-8")

        assert store.load("bob") is None

    def test_missing_user(self, tmp_path):
        """Test loading an unknown user gives None."""
        assert JsonContextStore(tmp_path).load("nobody") is None

    def test_corrupt_file_ignored(self, tmp_path):
        """Test a corrupt file loads as None."""
        store = JsonContextStore(tmp_path)
        store.path_for("bob").write_text("{truncated", encoding="utf-8")

        assert store.load("bob") is None

    def test_invalid_document_ignored(self, tmp_path):
        """Test an invalid document loads as None."""
        store = JsonContextStore(tmp_path)
        store.path_for("bob").write_text('{"user_id": "bob", "difficulty_level": 42}', encoding="utf-8")

        assert store.load("bob") is None

    def test_save_overwrites(self, tmp_path, populated_context):
        """Test saving again replaces the stored context."""
        store = JsonContextStore(tmp_path)
        store.save(populated_context)
        update_after_session(populated_context, make_analytics(3.0, day=2))
        store.save(populated_context)

        assert store.load("alice@example.com").session_count == 3


class TestInMemoryContextStore:
    """Test the in-process store."""

    def test_round_trip(self, populated_context):
        """Test saving and loading a context."""
        store = InMemoryContextStore()
        store.save(populated_context)

        assert store.load("alice@example.com") == populated_context
        assert "alice@example.com" in store

    def test_missing_user(self):
        """Test loading an unknown user gives None."""
        store = InMemoryContextStore()
        assert store.load("nobody") is None
        assert "nobody" not in store

    def test_saved_copy_isolated(self, populated_context):
        """Test later changes do not leak into the stored copy."""
        store = InMemoryContextStore()
        store.save(populated_context)

        populated_context.focus_areas.append("Leadership")
        loaded = store.load("alice@example.com")
        loaded.difficulty_level = 1

        assert "Leadership" not in store.load("alice@example.com").focus_areas
        assert store.load("alice@example.com").difficulty_level == populated_context.difficulty_level
