"""
Tests for classifying log lines into notifications.
"""

from datetime import datetime, timezone

import pytest

from partywatch.parser.tokenizer import EMPTY_LOG_LINE, LogLine
from partywatch.parser.categorizer import (
    PARTY_MEMBER_CODE,
    PARTY_STATUS_CODE,
    Notification,
    NotificationToggles,
    add_space_after_capitals,
    build_notification,
)

NOW = datetime(2024, 1, 1, tzinfo=timezone.utc)


def status_line(text):
    return LogLine(time=NOW, code=PARTY_STATUS_CODE, name="", line=text)


def member_line(text):
    return LogLine(time=NOW, code=PARTY_MEMBER_CODE, name="", line=text)


class TestPartyStatus:
    """Code 57: party filled and disbanded."""

    def test_filled(self, all_toggles):
        notification = build_notification(
            status_line("Your alliance have been filled."), all_toggles
        )
        assert notification == Notification(
            title="Your Party Has Filled",
            message="Your alliance have been filled.",
            sound="gamelan",
        )

    def test_disbanded(self):
        toggles = NotificationToggles(fill=False, disband=True)
        notification = build_notification(status_line("The party has been disbanded."), toggles)

        assert notification.title == "Your Party Has Disbanded"
        assert notification.message == "The party has been disbanded."
        assert notification.sound == "none"

    def test_status_messages_are_not_respaced(self, all_toggles):
        notification = build_notification(
            status_line("PartyFinder: YourParty have been filled."), all_toggles
        )
        assert notification.message == "PartyFinder: YourParty have been filled."

    def test_fill_toggle_off(self):
        toggles = NotificationToggles(fill=False)
        assert build_notification(status_line("Your party have been filled."), toggles) is None

    def test_disband_toggle_off_by_default(self):
        assert (
            build_notification(status_line("The party has been disbanded."), NotificationToggles())
            is None
        )

    def test_unrelated_status_message(self, all_toggles):
        assert build_notification(status_line("You join the party."), all_toggles) is None


class TestPartyMembers:
    """Code 8761: members joining and leaving."""

    def test_joined_message_is_respaced(self, all_toggles):
        notification = build_notification(member_line("PlayerNameJoins the party."), all_toggles)

        assert notification == Notification(
            title="Player Joined Your Party",
            message="PlayerName Joins the party.",
            sound="none",
        )

    def test_joined(self):
        toggles = NotificationToggles(fill=False, join=True)
        notification = build_notification(member_line("Someone joins the party."), toggles)
        assert notification.title == "Player Joined Your Party"

    def test_left(self):
        toggles = NotificationToggles(leave=True)
        notification = build_notification(member_line("Firstname Lastname'sLeft... left the party."), toggles)

        assert notification.title == "Player Left Your Party"
        assert notification.message == "Firstname Lastname's Left... left the party."
        assert notification.sound == "none"

    def test_join_takes_precedence_over_leave(self, all_toggles):
        notification = build_notification(
            member_line("Someone joins the party. Someone left the party."), all_toggles
        )
        assert notification.title == "Player Joined Your Party"

    def test_toggles_off_by_default(self):
        toggles = NotificationToggles()
        assert build_notification(member_line("Someone joins the party."), toggles) is None
        assert build_notification(member_line("Someone left the party."), toggles) is None

    def test_member_text_under_status_code(self, all_toggles):
        assert build_notification(status_line("Someone joins the party."), all_toggles) is None


class TestOtherLines:

    def test_empty_log_line(self, all_toggles):
        assert build_notification(EMPTY_LOG_LINE, all_toggles) is None

    @pytest.mark.parametrize("code", [0, 56, 0x39 + 1, 0x2239 + 1, 8762, -57])
    def test_other_codes(self, all_toggles, code):
        log_line = LogLine(time=NOW, code=code, line="Your party have been filled. joins the party")
        assert build_notification(log_line, all_toggles) is None

    def test_pure_function(self, all_toggles):
        log_line = member_line("PlayerNameJoins the party.")
        assert build_notification(log_line, all_toggles) == build_notification(
            log_line, all_toggles
        )


class TestAddSpaceAfterCapitals:

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("PlayerNameJoins the party.", "PlayerName Joins the party."),
            ("aBcDeF", "a Bc De F"),
            ("O'Brien'sCat", "O' Brien's Cat"),
            ("already spaced", "already spaced"),
            ("ALLCAPS", "ALLCAPS"),
            ("", ""),
        ],
    )
    def test_spacing(self, text, expected):
        assert add_space_after_capitals(text) == expected
