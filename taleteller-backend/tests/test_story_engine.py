"""Tests for story_engine with the chat-completions client mocked out."""

import json
from types import SimpleNamespace

import pytest

import story_engine
from errors import UpstreamError, ValidationError


class FakeCompletions:
    def __init__(self):
        self.replies = []
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        message = SimpleNamespace(content=reply)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


@pytest.fixture
def llm(monkeypatch):
    completions = FakeCompletions()
    fake_client = SimpleNamespace(chat=SimpleNamespace(completions=completions))
    monkeypatch.setattr(story_engine, "_get_client", lambda: fake_client)
    return completions


def test_clean_json_string_strips_chatter():
    assert story_engine.clean_json_string('Sure! {"a": 1} Hope that helps') == '{"a": 1}'
    assert story_engine.clean_json_string("no json here") == "no json here"


class TestGrammarCheck:
    def test_parses_suggestions(self, llm):
        llm.replies.append(json.dumps({
            "hasIssues": True,
            "improvedVersion": "The door creaked.",
            "suggestions": [{"original": "creeked", "suggested": "creaked", "reason": "Spelling"}],
        }))
        result = story_engine.grammar_check("The door creeked.", "horror")

        assert result.has_issues
        assert result.improved_version == "The door creaked."
        assert result.suggestions[0].suggested == "creaked"
        assert llm.calls[0]["response_format"] == {"type": "json_object"}
        assert "horror" in llm.calls[0]["messages"][0]["content"]

    def test_blank_text_makes_no_call(self, llm):
        with pytest.raises(ValidationError):
            story_engine.grammar_check("  ", "horror")
        assert llm.calls == []

    def test_issues_without_improved_version(self, llm):
        llm.replies.append('{"hasIssues": true, "suggestions": []}')
        result = story_engine.grammar_check("Fine text.", "horror")
        assert not result.has_issues
        assert result.improved_version is None

    def test_client_failure_is_upstream_error(self, llm):
        llm.replies.append(RuntimeError("401 invalid api key"))
        with pytest.raises(UpstreamError) as excinfo:
            story_engine.grammar_check("The door creeked.", "horror")
        assert "api key" not in excinfo.value.message

    def test_non_json_reply(self, llm):
        llm.replies.append("I cannot do that.")
        with pytest.raises(UpstreamError):
            story_engine.grammar_check("The door creeked.", "horror")


class TestGenerateChoices:
    def test_renumbers_choices(self, llm):
        llm.replies.append(json.dumps({"choices": [
            {"id": 7, "title": "Hide", "description": "Under the bed."},
            {"id": 7, "title": "Fight", "description": "Grab the poker."},
        ]}))
        choices = story_engine.generate_choices("The door creaked.", "horror", "The door creaked.")

        assert [(c.id, c.title) for c in choices] == [(1, "Hide"), (2, "Fight")]

    def test_skips_unusable_entries(self, llm):
        llm.replies.append(json.dumps({"choices": [
            "not an object",
            {"title": "", "description": ""},
            {"title": "Hide", "description": "Under the bed."},
        ]}))
        choices = story_engine.generate_choices("ctx", "horror", "ctx")
        assert [c.title for c in choices] == ["Hide"]
        assert choices[0].id == 1

    @pytest.mark.parametrize("reply", ['{"choices": []}', '{"options": []}', '[]'])
    def test_no_choices_is_upstream_error(self, llm, reply):
        llm.replies.append(reply)
        with pytest.raises(UpstreamError):
            story_engine.generate_choices("ctx", "horror", "ctx")

    def test_empty_context_makes_no_call(self, llm):
        with pytest.raises(ValidationError):
            story_engine.generate_choices("", "horror", "")
        assert llm.calls == []


class TestContinueScene:
    def test_returns_continuation(self, llm):
        llm.replies.append('{"continuation": "  The stairs gave way.  "}')
        assert story_engine.continue_scene("ctx", "horror", "She runs.") == "The stairs gave way."
        assert "She runs." in llm.calls[0]["messages"][1]["content"]

    @pytest.mark.parametrize("reply", ['{"continuation": "   "}', '{"text": "x"}'])
    def test_unusable_reply(self, llm, reply):
        llm.replies.append(reply)
        with pytest.raises(UpstreamError):
            story_engine.continue_scene("ctx", "horror", "She runs.")

    def test_missing_choice_makes_no_call(self, llm):
        with pytest.raises(ValidationError):
            story_engine.continue_scene("ctx", "horror", "")
        assert llm.calls == []
