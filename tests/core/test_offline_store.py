"""Tests for the device-side offline store."""

import pytest

from examprep.core import challenge, users
from examprep.core.errors import ValidationError
from examprep.core.offline_store import OfflineStore


@pytest.fixture
def store(tmp_path):
    return OfflineStore(tmp_path / "device" / "offline.db")


@pytest.fixture
def downloaded(store, exam, exam_questions):
    store.download_exam(exam, exam_questions)
    return exam


class TestExams:
    def test_download_and_read_back(self, store, downloaded, exam_questions):
        stored = store.get_exam(downloaded.id)

        assert stored["exam"]["name"] == "Admission 2023"
        assert [q["id"] for q in stored["questions"]] == [q.id for q in exam_questions]
        assert len(store.downloaded_exams()) == 1

    def test_missing_exam(self, store):
        assert store.get_exam("nope") is None

    def test_remove_updates_stats(self, store, downloaded):
        assert store.storage_stats().exam_count == 1

        assert store.remove_exam(downloaded.id) is True
        assert store.remove_exam(downloaded.id) is False
        assert store.storage_stats().exam_count == 0

    def test_stats_of_empty_store(self, store):
        stats = store.storage_stats()

        assert stats.exam_count == 0
        assert stats.last_sync is None

    def test_clear(self, store, downloaded, user):
        store.save_progress(downloaded.id, user.uid, {})
        store.clear()

        assert store.downloaded_exams() == []
        assert store.get_progress(downloaded.id) is None


class TestProgress:
    def test_save_replaces_earlier_answers(self, store, user, downloaded):
        store.save_progress(downloaded.id, user.uid, {"q1": 0})
        store.save_progress(downloaded.id, user.uid, {"q1": 2}, elapsed_seconds=90)

        progress = store.get_progress(downloaded.id)
        assert progress.answers == {"q1": 2}
        assert progress.elapsed_seconds == 90
        assert progress.synced is False

    def test_unknown_mode(self, store, user, downloaded):
        with pytest.raises(ValidationError):
            store.save_progress(downloaded.id, user.uid, {}, mode="exam")

    def test_unsynced_filtered_by_user(self, store, make_user, downloaded):
        first, second = make_user(), make_user()
        store.save_progress(downloaded.id, first.uid, {})

        assert len(store.unsynced_progress(first.uid)) == 1
        assert store.unsynced_progress(second.uid) == []


class TestSyncPending:
    def test_challenge_replayed(self, store, user, downloaded, answer_key):
        challenge.start_challenge(user.uid, downloaded.id)
        store.save_progress(downloaded.id, user.uid, answer_key, elapsed_seconds=120)

        report = store.sync_pending(user.uid)

        assert report.synced == [downloaded.id]
        assert report.failed == {}
        assert store.get_progress(downloaded.id).synced is True
        assert store.storage_stats().last_sync is not None
        assert users.get_user(user.uid).challenges_completed == 1

    def test_challenge_never_started_online(self, store, user, downloaded, answer_key):
        store.save_progress(downloaded.id, user.uid, answer_key)

        report = store.sync_pending(user.uid)

        assert "Start it first" in report.failed[downloaded.id]
        assert users.get_user(user.uid).challenges_completed == 0

    def test_rejected_items_stay_pending(self, store, user, downloaded, answer_key):
        store.save_progress(downloaded.id, user.uid, answer_key, mode="study")

        report = store.sync_pending(user.uid)

        assert report.synced == []
        assert "premium" in report.failed[downloaded.id]
        assert len(store.unsynced_progress(user.uid)) == 1

    def test_study_counts_correct_answers(self, store, premium_user, downloaded, exam_questions):
        answers = {q.id: q.correct_option for q in exam_questions[:3]}
        store.save_progress(downloaded.id, premium_user.uid, answers, mode="study", elapsed_seconds=600)

        report = store.sync_pending(premium_user.uid)

        assert report.synced == [downloaded.id]
        user = users.get_user(premium_user.uid)
        assert user.exams_completed == 1
        assert user.average_grade == 75

    def test_study_needs_downloaded_exam(self, store, premium_user, make_exam):
        other = make_exam(name="Not downloaded")
        store.save_progress(other.id, premium_user.uid, {}, mode="study")

        report = store.sync_pending(premium_user.uid)

        assert "not downloaded" in report.failed[other.id]
        assert store.get_progress(other.id).synced is False
