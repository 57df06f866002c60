import pytest

from chatlog_rounds.cleaning import (
    ASSISTANT_CLOSE,
    USER_OPEN,
    TurnMarkers,
    assess_cleaning,
    normalize,
)

SAMPLES = [
    "",
    "\n\n\n",
    "just some text",
    "You said:\nHello\nChatGPT said:\nHi there",
    "You said: inline question\nChatGPT said: inline answer\n\n\n\n\nmore",
    "  <user>\nalready tagged\n</user>\n<dungeon_master>\nok\n</dungeon_master>\n\n",
    "You said:\r\nwindows\r\n\r\n\r\n\r\nChatGPT said:\r\nline endings\r\n",
    "ChatGPT said:\nassistant first\nYou said:\nthen user",
    "prefix You said: not at line start",
]


def test_normalize_end_to_end_example() -> None:
    raw = "You said:\nHello\nChatGPT said:\nHi there"
    assert normalize(raw) == "<user>\nHello\n</user>\n<dungeon_master>\nHi there\n</dungeon_master>"


def test_normalize_keeps_rest_of_marker_line() -> None:
    out = normalize("You said: hi\nChatGPT said: hello")
    assert out == "<user> hi\n</user>\n<dungeon_master> hello\n</dungeon_master>"


def test_normalize_only_replaces_markers_at_line_start() -> None:
    out = normalize("prefix You said: x")
    assert "You said:" in out
    assert out.startswith(USER_OPEN + "\n")


@pytest.mark.parametrize("raw", SAMPLES)
def test_normalize_is_idempotent(raw: str) -> None:
    once = normalize(raw)
    assert normalize(once) == once


@pytest.mark.parametrize("raw", SAMPLES)
def test_normalize_wraps_and_bounds_blank_lines(raw: str) -> None:
    out = normalize(raw)
    assert out.startswith(USER_OPEN)
    assert out.endswith(ASSISTANT_CLOSE)
    assert "\n\n\n" not in out


def test_normalize_does_not_double_wrap() -> None:
    canonical = "<user>\nq\n</user>\n<dungeon_master>\na\n</dungeon_master>"
    assert normalize(canonical) == canonical


def test_normalize_empty_input() -> None:
    assert normalize("") == "<user>\n\n</dungeon_master>"


def test_normalize_custom_markers() -> None:
    markers = TurnMarkers(user="Human:", assistant="Assistant:")
    out = normalize("Human: hi\nAssistant: yo", markers=markers)
    assert out == "<user> hi\n</user>\n<dungeon_master> yo\n</dungeon_master>"


def test_assess_cleaning_reports_reduction() -> None:
    original = "line\n\n\n\n\nline"
    report = assess_cleaning(original, normalize(original, markers=TurnMarkers(user="", assistant="")))
    assert report.original_lines == 6
    assert report.original_size == len(original)
    assert report.cleaned_size > 0


def test_assess_cleaning_empty_original() -> None:
    report = assess_cleaning("", "<user>\n\n</dungeon_master>")
    assert report.reduction_percent == 0
    assert report.original_size == 0


def test_assess_cleaning_shrinking_text() -> None:
    report = assess_cleaning("a" * 100, "a" * 75)
    assert report.reduction_percent == 25
