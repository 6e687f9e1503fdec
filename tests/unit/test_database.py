"""
Unit tests for DatabaseInterface.
"""

from instantly_chef.data.database import DatabaseInterface
from instantly_chef.data.models import GenerationResult


class TestProfiles:

    def test_missing_profile(self, db):
        assert db.get_profile("nobody") is None

    def test_upsert_merges_fields(self, db):
        db.upsert_profile("user-1", {"first_name": "Jane", "adults": 2, "email": "jane@example.com"})
        merged = db.upsert_profile("user-1", {"adults": 3, "equipment": "oven"})

        assert merged == {"first_name": "Jane", "adults": 3, "equipment": "oven", "email": "jane@example.com"}
        assert db.get_profile("user-1") == merged

    def test_profiles_are_per_user(self, db):
        db.upsert_profile("user-1", {"first_name": "Jane"})
        db.upsert_profile("user-2", {"first_name": "Sam"})
        assert db.get_profile("user-1")["first_name"] == "Jane"
        assert db.get_profile("user-2")["first_name"] == "Sam"

    def test_persists_across_instances(self, temp_db_dir):
        DatabaseInterface(db_dir=temp_db_dir).upsert_profile("user-1", {"first_name": "Jane"})
        assert DatabaseInterface(db_dir=temp_db_dir).get_profile("user-1") == {"first_name": "Jane"}


class TestDashboardState:

    def test_save_and_get(self, db):
        db.save_state("user-1", {"weekly": {"dinners": 4}})
        assert db.get_state("user-1") == {"weekly": {"dinners": 4}}

    def test_last_write_wins(self, db):
        db.save_state("user-1", {"v": 1})
        db.save_state("user-1", {"v": 2})
        assert db.get_state("user-1") == {"v": 2}

    def test_clear(self, db):
        db.save_state("user-1", {"v": 1})
        db.clear_state("user-1")
        assert db.get_state("user-1") is None


class TestGenerationResults:

    def test_pending_request_has_no_result(self, db):
        db.record_generation_request("cid-1", "user-1")
        assert db.get_generation_result("cid-1") is None
        assert db.get_generation_owner("cid-1") == "user-1"

    def test_save_result(self, db):
        db.record_generation_request("cid-1", "user-1")
        assert db.save_generation_result("cid-1", "done", [{"id": "m"}]) is True

        result = db.get_generation_result("cid-1")
        assert isinstance(result, GenerationResult)
        assert result.menus == [{"id": "m"}]
        assert result.status == "done"
        assert result.received_at

    def test_result_is_immutable(self, db):
        db.record_generation_request("cid-1")
        db.save_generation_result("cid-1", "done", [{"id": "first"}])
        assert db.save_generation_result("cid-1", "done", [{"id": "second"}]) is False
        assert db.get_generation_result("cid-1").menus == [{"id": "first"}]

    def test_unknown_id_ignored(self, db):
        assert db.save_generation_result("stranger", "done", []) is False
        assert db.get_generation_result("stranger") is None
        assert db.get_generation_owner("stranger") is None

    def test_recording_twice_keeps_result(self, db):
        db.record_generation_request("cid-1", "user-1")
        db.save_generation_result("cid-1", "done", [])
        db.record_generation_request("cid-1", "user-2")
        assert db.get_generation_result("cid-1") is not None
        assert db.get_generation_owner("cid-1") == "user-1"
