"""Tests for user profiles, XP, scores and badges."""

import pytest

from examprep.core import badges, users
from examprep.core.errors import ConflictError, NotFoundError, ValidationError
from examprep.db import users_repository


class TestRegisterUser:
    def test_defaults(self, user):
        """New profiles start with zeroed counters at level 1."""
        assert user.role == "user"
        assert user.level == 1
        assert user.xp == 0
        assert user.score == 0
        assert user.badges == []
        assert user.discipline_scores == {}
        assert user.is_premium is False

    def test_duplicate_display_name(self, make_user):
        make_user(display_name="Ana")
        with pytest.raises(ConflictError):
            make_user(display_name="Ana")

    def test_get_missing_user(self):
        with pytest.raises(NotFoundError):
            users.get_user("nobody")


class TestUpdateUser:
    def test_rename(self, user):
        updated = users.update_user(user.uid, display_name="Renamed")
        assert updated.display_name == "Renamed"

    def test_rename_to_taken_name(self, make_user):
        make_user(display_name="Taken")
        other = make_user()
        with pytest.raises(ConflictError):
            users.update_user(other.uid, display_name="Taken")

    def test_unknown_column_rejected(self, user):
        with pytest.raises(ValueError):
            users.update_user(user.uid, password="x")

    def test_set_premium_and_back(self, user):
        promoted = users.set_premium(user.uid, True, "2030-01-01")
        assert promoted.is_premium is True
        assert promoted.has_premium_access is True
        assert promoted.premium_until == "2030-01-01"

        demoted = users.set_premium(user.uid, False, "2030-01-01")
        assert demoted.is_premium is False
        assert demoted.premium_until is None


class TestXpAndLevels:
    @pytest.mark.parametrize("xp,level", [(0, 1), (99, 1), (100, 2), (450, 5)])
    def test_level_for_xp(self, xp, level):
        assert users.level_for_xp(xp) == level

    def test_add_xp_levels_up(self, user):
        updated = users.add_xp(user.uid, 250)
        assert updated.xp == 250
        assert updated.level == 3

    def test_add_xp_awards_badges(self, user):
        updated = users.add_xp(user.uid, 1000)
        assert "xp_hunter" in updated.badges
        assert "dedicated_learner" in updated.badges

    def test_discipline_score_accumulates(self, user):
        users.update_user_discipline_score(user.uid, "math", 3)
        updated = users.update_user_discipline_score(user.uid, "math", 2)
        assert updated.discipline_scores == {"math": 5}

    def test_update_user_score(self, user):
        users_repository.update_user(user.uid, challenges_completed=4)
        updated = users.update_user_score(user.uid)
        assert updated.score == 12
        assert updated.last_active is not None


class TestActivity:
    def test_recent_activity_newest_first(self, user):
        users.add_user_activity(user.uid, "exam", "First")
        users.add_user_activity(user.uid, "challenge", "Second")

        titles = [a.title for a in users.recent_activity(user.uid)]
        assert titles == ["Second", "First"]

    def test_unknown_activity_type(self, user):
        with pytest.raises(ValidationError):
            users.add_user_activity(user.uid, "party", "Nope")

    def test_limit(self, user):
        for i in range(5):
            users.add_user_activity(user.uid, "exam", f"Exam {i}")
        assert len(users.recent_activity(user.uid, limit=3)) == 3


class TestBadges:
    def test_awarded_once(self, user):
        users_repository.update_user(user.uid, challenges_completed=1)

        assert badges.check_and_award_badges(user.uid) == ["first_win"]
        assert badges.check_and_award_badges(user.uid) == []
        assert users.get_user(user.uid).badges == ["first_win"]

    def test_never_revoked(self, user):
        users_repository.update_user(user.uid, streak=7)
        badges.check_and_award_badges(user.uid)
        users_repository.update_user(user.uid, streak=0)
        badges.check_and_award_badges(user.uid)

        assert "streak_master" in users.get_user(user.uid).badges

    def test_get_badge(self):
        assert badges.get_badge("exam_ready").name == "Exam Ready"
        assert badges.get_badge("missing") is None

    def test_overview_lists_owned_first(self, user):
        users_repository.update_user(user.uid, streak=7)
        badges.check_and_award_badges(user.uid)

        overview = badges.badge_overview(users.get_user(user.uid))

        assert overview[0]["id"] == "streak_master"
        assert overview[0]["earned"] is True
        assert len(overview) == len(badges.BADGES)
        assert [b["earned"] for b in overview[1:]] == [False] * (len(badges.BADGES) - 1)
