"""Engagement rule table: ordered, first match wins."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from innersense.engagement import (
    ENGAGEMENT_RULES,
    EngagementRule,
    get_engagement_hint,
    select_engagement_rule,
)
from innersense.session_manager import ASSISTANT, USER, Message

LONG = "This is a fairly long message that easily passes fifty characters."


def _msg(role, content):
    return Message(id="m", role=role, content=content, timestamp=datetime.now(timezone.utc))


def _rule(history, message):
    return select_engagement_rule(history, message).name


class TestRuleOrder:

    def test_table_order(self):
        assert [r.name for r in ENGAGEMENT_RULES] == [
            "start", "emotional", "personal", "re-engage", "default"
        ]

    def test_empty_history_wins_over_emotional_content(self):
        assert _rule([], "I feel tired") == "start"

    @pytest.mark.parametrize("message", [
        "I feel tired",
        "Today I was so HAPPY",
        "I'm worried about tomorrow",
        "That made me angry",
        "my feelings are mixed",
        "Honestly I have been unhappy with how the week went overall",
        "She seemed lovestruck all evening",
    ])
    def test_emotional_content(self, message):
        history = [_msg(USER, LONG), _msg(ASSISTANT, LONG)]
        assert _rule(history, message) == "emotional"

    @pytest.mark.parametrize("message", [
        "I am a teacher",
        "I'm from Lisbon",
        "MY brother visited",
        "tell me about it",
        "I did it myself",
    ])
    def test_personal_content(self, message):
        history = [_msg(USER, LONG), _msg(ASSISTANT, LONG)]
        assert _rule(history, message) == "personal"

    def test_short_user_messages_trigger_reengagement(self):
        history = [_msg(USER, "ok"), _msg(ASSISTANT, LONG), _msg(USER, LONG), _msg(ASSISTANT, LONG)]
        assert _rule(history, "What do you think about the weather today?") == "re-engage"

    def test_only_last_three_user_messages_count(self):
        history = [
            _msg(USER, "ok"),
            _msg(USER, LONG),
            _msg(USER, LONG),
            _msg(USER, LONG),
        ]
        assert _rule(history, "What do you think about the weather today?") == "default"

    def test_short_user_message_outside_last_three_entries_still_counts(self):
        # The short reply is the most recent user message even though the
        # last three history entries are all from the assistant
        history = [
            _msg(USER, LONG),
            _msg(USER, "fine"),
            _msg(ASSISTANT, LONG),
            _msg(ASSISTANT, LONG),
            _msg(ASSISTANT, LONG),
        ]
        assert _rule(history, "What do you think about the weather today?") == "re-engage"

    @pytest.mark.parametrize("message", [
        "Something happened at home yesterday",
        "It rained all the time",
    ])
    def test_personal_keywords_are_whole_words(self, message):
        history = [_msg(USER, LONG), _msg(ASSISTANT, LONG)]
        assert _rule(history, message) == "default"

    def test_short_assistant_messages_do_not_count(self):
        history = [_msg(USER, LONG), _msg(ASSISTANT, "Sure."), _msg(USER, LONG)]
        assert _rule(history, "What do you think about the weather today?") == "default"

    def test_default(self):
        history = [_msg(USER, LONG), _msg(ASSISTANT, LONG)]
        assert _rule(history, "What do you think about the weather today?") == "default"


class TestHints:

    def test_start_hint_text(self):
        hint = get_engagement_hint([], "hello")
        assert "start of our conversation" in hint
        assert "open-ended question" in hint

    def test_every_rule_has_a_hint(self):
        assert all(r.hint for r in ENGAGEMENT_RULES)

    def test_custom_table_without_catch_all(self):
        rules = (EngagementRule("never", lambda h, m: False, "unused"),)
        with pytest.raises(LookupError):
            select_engagement_rule([], "hi", rules=rules)
