"""Unit tests for the data layer (repository, models, level catalog)."""

import sqlite3
import pytest
from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from maamulat.config import DEFAULT_CONFIG, load_config, save_config
from maamulat.data import catalog
from maamulat.data.database import SCHEMA_SQL, SCHEMA_VERSION, Database
from maamulat.data.models import (
    Achievement, DayRecord, MaamulatState, UserProgress, WorkingCategory,
    WorkingItem,
)
from maamulat.data.repository import (
    ACHIEVEMENT_STORAGE, MAAMULAT_STORAGE, USER_STORAGE, Repository,
)


@pytest.fixture
def repo():
    conn = sqlite3.connect(":memory:")
    conn.row_factory = sqlite3.Row
    conn.executescript(SCHEMA_SQL)
    conn.commit()
    return Repository(conn)


class FlakyConnection:
    """Wraps a real connection; raises on execute while ``failing`` is set."""

    def __init__(self, conn):
        self._conn = conn
        self.failing = False

    def execute(self, *args):
        if self.failing:
            raise sqlite3.OperationalError("database is locked")
        return self._conn.execute(*args)

    def commit(self):
        self._conn.commit()


class TestRepository:
    def test_missing_document_is_none(self, repo):
        assert repo.load_document(USER_STORAGE) is None

    def test_save_and_load(self, repo):
        assert repo.save_document(USER_STORAGE, {"name": "Aisha", "totalHasanat": 54})
        assert repo.load_document(USER_STORAGE) == {"name": "Aisha", "totalHasanat": 54}

    def test_save_overwrites(self, repo):
        repo.save_document(USER_STORAGE, {"v": 1})
        repo.save_document(USER_STORAGE, {"v": 2})
        assert repo.load_document(USER_STORAGE) == {"v": 2}
        assert len(repo.list_documents()) == 1

    def test_unicode_payload_round_trips(self, repo):
        repo.save_document(ACHIEVEMENT_STORAGE, {"nameUr": "چلہ مکمل"})
        assert repo.load_document(ACHIEVEMENT_STORAGE)["nameUr"] == "چلہ مکمل"

    def test_corrupt_payload_is_ignored(self, repo):
        repo.conn.execute(
            "INSERT INTO documents (key, payload, updated_at) VALUES (?, ?, ?)",
            (MAAMULAT_STORAGE, "{not json", "2024-03-13T10:00:00"),
        )
        assert repo.load_document(MAAMULAT_STORAGE) is None

    def test_non_object_payload_is_ignored(self, repo):
        repo.save_document(MAAMULAT_STORAGE, {"x": 1})
        repo.conn.execute("UPDATE documents SET payload = '[1, 2]'")
        assert repo.load_document(MAAMULAT_STORAGE) is None

    def test_list_documents_parses_timestamps(self, repo):
        repo.save_document(USER_STORAGE, {})
        repo.save_document(MAAMULAT_STORAGE, {})
        docs = repo.list_documents()
        assert [d["key"] for d in docs] == [MAAMULAT_STORAGE, USER_STORAGE]
        assert all(d["updated_at"] is not None for d in docs)

    def test_delete_document(self, repo):
        repo.save_document(USER_STORAGE, {"v": 1})
        repo.delete_document(USER_STORAGE)
        assert repo.load_document(USER_STORAGE) is None

    def test_reset_all_data(self, repo):
        repo.save_document(USER_STORAGE, {})
        repo.save_document(ACHIEVEMENT_STORAGE, {})
        repo.reset_all_data()
        assert repo.list_documents() == []

    def test_failed_write_stays_pending_and_retries(self, repo):
        flaky = FlakyConnection(repo.conn)
        repo.conn = flaky

        flaky.failing = True
        assert repo.save_document(USER_STORAGE, {"v": 1}) is False
        assert repo.has_pending_writes()
        # reads see the unsaved snapshot
        assert repo.load_document(USER_STORAGE) == {"v": 1}

        flaky.failing = False
        assert repo.save_document(MAAMULAT_STORAGE, {"w": 2})
        assert not repo.has_pending_writes()
        assert repo.load_document(USER_STORAGE) == {"v": 1}


class TestDatabase:
    def test_connect_creates_schema(self):
        db = Database(Path(":memory:"))
        conn = db.connect()
        assert db.connect() is conn
        tables = {r["name"] for r in conn.execute(
            "SELECT name FROM sqlite_master WHERE type='table'")}
        assert "documents" in tables
        assert db.schema_version() == SCHEMA_VERSION
        db.close()

    def test_file_database(self, tmp_path):
        path = tmp_path / "nested" / "m.db"
        with Database(path) as conn:
            Repository(conn).save_document(USER_STORAGE, {"v": 1})

        db = Database(path)
        assert Repository(db.connect()).load_document(USER_STORAGE) == {"v": 1}
        db.close()
        assert db.conn is None


class TestModels:
    def test_working_item_time_value_only_when_set(self):
        item = WorkingItem(id="fajr", name="فجر")
        assert "timeValue" not in item.to_dict()
        item.time_value = "05:10"
        assert WorkingItem.from_dict(item.to_dict()).time_value == "05:10"

    def test_reset_clears_completion(self):
        item = WorkingItem(id="wake-time", name="w", is_time=True,
                           completed=True, time_value="05:00")
        item.reset()
        assert not item.completed and item.time_value is None

    def test_state_round_trip(self):
        state = MaamulatState(
            current_date="2024-03-13",
            current_level="beginner",
            categories=[WorkingCategory(id="faraiz", name="فرائض",
                                        items=[WorkingItem(id="fajr", name="فجر", completed=True)])],
            week_start="2024-03-11",
            day_records=[DayRecord("2024-03-12", 9, 14, 64)],
            task_day_counts={"task:fajr": 3},
        )
        data = state.to_dict()
        assert data["currentDate"] == "2024-03-13"
        assert data["dayRecords"][0]["completionPercent"] == 64
        assert MaamulatState.from_dict(data) == state

    def test_state_pads_weekly_progress(self):
        state = MaamulatState.from_dict({"currentDate": "2024-03-13",
                                         "weeklyProgress": [True, True]})
        assert state.weekly_progress == [True, True, False, False, False, False, False]

    def test_state_requires_current_date(self):
        with pytest.raises(KeyError):
            MaamulatState.from_dict({"currentLevel": "beginner"})

    def test_user_progress_defaults(self):
        p = UserProgress.from_dict({})
        assert p.name == "Your Name"
        assert p.chillah_day == 1
        assert p.last_completed_date is None
        assert UserProgress.from_dict(p.to_dict()) == p

    def test_achievement_round_trip(self):
        a = Achievement(id="streak-7", name="7 Day Streak", target=7,
                        unlocked=True, unlocked_date="2024-03-13")
        assert Achievement.from_dict(a.to_dict()) == a


class TestCatalog:
    @pytest.mark.parametrize("level,count", [
        ("beginner", 14), ("intermediate", 23), ("advanced", 25),
    ])
    def test_task_counts(self, level, count):
        assert catalog.total_tasks(level) == count

    def test_unknown_level_falls_back(self):
        assert catalog.normalize_level("expert") == catalog.BEGINNER
        assert catalog.total_tasks("expert") == 14

    def test_sections_are_ordered(self):
        sections = catalog.load_level("intermediate")
        assert [s.id for s in sections] == ["ibadat", "quran-azkar", "daily-routine"]

    def test_time_fields(self):
        routine = [c for c in catalog.all_categories("beginner") if c.id == "routine"][0]
        assert [t.id for t in routine.items] == ["wake-time", "sleep-time"]
        assert all(t.is_time for t in routine.items)

    def test_every_level_has_a_summary(self):
        assert set(catalog.LEVEL_SUMMARIES) == set(catalog.LEVELS)
        for summary in catalog.LEVEL_SUMMARIES.values():
            assert {"title", "title_ur", "description", "color", "est_time"} <= set(summary)

    def test_versions(self):
        for level in catalog.LEVELS:
            assert catalog.level_version(level) >= 1

    def test_advanced_extends_intermediate(self):
        ids = lambda lvl: {t.id for c in catalog.all_categories(lvl) for t in c.items}
        assert ids("beginner") < ids("intermediate") < ids("advanced")
        assert {"awabeen", "manzil"} <= ids("advanced") - ids("intermediate")


class TestConfig:
    def test_missing_file_gives_defaults(self, tmp_path):
        assert load_config(tmp_path / "nope.json") == DEFAULT_CONFIG

    def test_known_keys_merge_over_defaults(self, tmp_path):
        path = tmp_path / "cfg" / "maamulat.json"
        save_config({"default_level": "advanced", "unknown": 1}, path)
        cfg = load_config(path)
        assert cfg["default_level"] == "advanced"
        assert cfg["log_level"] == DEFAULT_CONFIG["log_level"]
        assert "unknown" not in cfg

    def test_malformed_file_gives_defaults(self, tmp_path):
        path = tmp_path / "maamulat.json"
        path.write_text("{oops", encoding="utf-8")
        assert load_config(path) == DEFAULT_CONFIG
        path.write_text("[1, 2]", encoding="utf-8")
        assert load_config(path) == DEFAULT_CONFIG
