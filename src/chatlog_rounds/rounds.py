from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum

from chatlog_rounds.cleaning import ASSISTANT_CLOSE, ASSISTANT_OPEN, USER_CLOSE, USER_OPEN

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TextRound:
    round_number: int
    start_line: int
    end_line: int
    line_count: int
    character_count: int
    text: str


class _State(Enum):
    IDLE = "idle"
    IN_USER = "in_user"
    IN_ASSISTANT = "in_assistant"


# Tag events in scan order. The closing user and opening assistant tags only
# hand off when one line carries both of them.
_EVENT_RE = re.compile(
    rf"(?P<user_open>{re.escape(USER_OPEN)})"
    rf"|(?P<user_close>{re.escape(USER_CLOSE)})"
    rf"|(?P<assistant_open>{re.escape(ASSISTANT_OPEN)})"
    rf"|(?P<assistant_close>{re.escape(ASSISTANT_CLOSE)})"
)


def _has_handoff(line: str) -> bool:
    return USER_CLOSE in line and ASSISTANT_OPEN in line


def _logical_lines(canonical: str) -> list[str]:
    """
    Split on newlines, folding a line that ends with the closing user tag into
    the following line when that one starts with the opening assistant tag.

    The normalizer turns one assistant marker line into that pair, so the fold
    keeps line indices aligned with the turn lines of the source document.
    """
    physical = canonical.split("\n")
    lines: list[str] = []
    i = 0
    while i < len(physical):
        line = physical[i]
        if (
            i + 1 < len(physical)
            and line.rstrip().endswith(USER_CLOSE)
            and physical[i + 1].lstrip().startswith(ASSISTANT_OPEN)
        ):
            lines.append(f"{line}\n{physical[i + 1]}")
            i += 2
            continue
        lines.append(line)
        i += 1
    return lines


def _make_round(lines: list[str], *, number: int, start: int, end: int) -> TextRound:
    span = lines[start : end + 1]
    text = "\n".join(span)
    return TextRound(
        round_number=number,
        start_line=start,
        end_line=end,
        line_count=end - start + 1,
        character_count=len(text) - text.count("\n"),
        text=text,
    )


def scan_tagged_rounds(canonical: str) -> list[TextRound]:
    """
    Tag-paired scan over canonical text.

    A round opens on the user tag, switches to the assistant turn on a line
    holding both the closing user tag and the opening assistant tag (either
    order, anything in between) and is emitted on the closing assistant tag.
    Malformed structure never raises:
    - a second user tag inside an open user turn restarts the round there
    - tags that do not fit the current state are ignored
    - a round still open at end of input is dropped
    """
    if not canonical:
        return []

    lines = _logical_lines(canonical)
    rounds: list[TextRound] = []
    state = _State.IDLE
    start = -1

    for index, line in enumerate(lines):
        handoff = _has_handoff(line)
        for match in _EVENT_RE.finditer(line):
            event = match.lastgroup
            if event == "user_open":
                if state is _State.IN_USER:
                    logger.debug(
                        "Nested user tag at line %d; discarding round started at line %d",
                        index,
                        start,
                    )
                    state = _State.IDLE
                if state is _State.IDLE:
                    state = _State.IN_USER
                    start = index
            elif event in ("user_close", "assistant_open"):
                # first of the pair switches turns; the second is inert
                if handoff and state is _State.IN_USER:
                    state = _State.IN_ASSISTANT
            elif event == "assistant_close":
                if state is _State.IN_ASSISTANT:
                    rounds.append(_make_round(lines, number=len(rounds) + 1, start=start, end=index))
                    state = _State.IDLE
                    start = -1

    if state is not _State.IDLE:
        logger.debug("Unterminated round starting at line %d dropped", start)
    return rounds


_LEGACY_PATTERNS = (
    re.compile(r"Round \d+:", re.IGNORECASE),
    re.compile(r"Round \d+\b(?!:)", re.IGNORECASE),
    re.compile(r"#\s*\d+\b"),
    re.compile(r"Q:", re.IGNORECASE),
    re.compile(r"Human:|Assistant:", re.IGNORECASE),
)
_PARAGRAPH_BREAK_RE = re.compile(r"\n\n+")


def _split_before(text: str, pattern: re.Pattern[str]) -> list[tuple[int, int]]:
    cuts = sorted({0, len(text), *(m.start() for m in pattern.finditer(text))})
    return [(a, b) for a, b in zip(cuts, cuts[1:]) if text[a:b].strip()]


def _split_paragraphs(text: str) -> list[tuple[int, int]]:
    spans: list[tuple[int, int]] = []
    pos = 0
    for m in _PARAGRAPH_BREAK_RE.finditer(text):
        spans.append((pos, m.start()))
        pos = m.end()
    spans.append((pos, len(text)))
    return [(a, b) for a, b in spans if text[a:b].strip()]


def _span_round(text: str, *, number: int, begin: int, end: int) -> TextRound:
    chunk = text[begin:end]
    begin += len(chunk) - len(chunk.lstrip())
    end -= len(chunk) - len(chunk.rstrip())
    body = text[begin:end]
    start_line = text.count("\n", 0, begin)
    end_line = text.count("\n", 0, end - 1)
    return TextRound(
        round_number=number,
        start_line=start_line,
        end_line=end_line,
        line_count=end_line - start_line + 1,
        character_count=len(body) - body.count("\n"),
        text=body,
    )


def split_rounds_legacy(text: str) -> list[TextRound]:
    """
    Best-effort splitter for text without tag pairs.

    Tries each header pattern and keeps the one producing the most non-empty
    chunks; falls back to blank-line paragraphs, then to a single round.
    """
    if not (text or "").strip():
        return []

    best: list[tuple[int, int]] = []
    for pattern in _LEGACY_PATTERNS:
        spans = _split_before(text, pattern)
        if len(spans) > len(best):
            best = spans

    if len(best) <= 1:
        paragraphs = _split_paragraphs(text)
        best = paragraphs if len(paragraphs) > 1 else [(0, len(text))]

    return [
        _span_round(text, number=n, begin=begin, end=end)
        for n, (begin, end) in enumerate(best, start=1)
    ]


def parse_rounds(canonical: str, *, legacy_fallback: bool = False) -> list[TextRound]:
    rounds = scan_tagged_rounds(canonical)
    if not rounds and legacy_fallback:
        rounds = split_rounds_legacy(canonical)
        if rounds:
            logger.info("No tag pairs found; legacy splitter produced %d rounds", len(rounds))
    return rounds
