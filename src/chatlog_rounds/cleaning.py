from __future__ import annotations

import re
from dataclasses import dataclass

USER_OPEN = "<user>"
USER_CLOSE = "</user>"
ASSISTANT_OPEN = "<dungeon_master>"
ASSISTANT_CLOSE = "</dungeon_master>"

_BLANK_RUN_RE = re.compile(r"\n{3,}")


@dataclass(frozen=True)
class TurnMarkers:
    """Line prefixes that introduce a turn in a raw chat export."""

    user: str = "You said:"
    assistant: str = "ChatGPT said:"


DEFAULT_MARKERS = TurnMarkers()


def _line_start_re(marker: str) -> re.Pattern[str]:
    return re.compile(rf"^{re.escape(marker)}", re.MULTILINE)


def normalize(raw: str, *, markers: TurnMarkers = DEFAULT_MARKERS) -> str:
    """
    Convert a raw chat export into canonical tagged text.

    Turn markers at the start of a line become tags, the document is wrapped in
    an opening user tag and a closing assistant tag, and blank-line runs are
    collapsed to a single blank line. Any input is accepted and the result is a
    fixed point: normalize(normalize(x)) == normalize(x).
    """
    text = (raw or "").replace("\r\n", "\n").replace("\r", "\n")

    if markers.user:
        text = _line_start_re(markers.user).sub(USER_OPEN, text)
    if markers.assistant:
        text = _line_start_re(markers.assistant).sub(f"{USER_CLOSE}\n{ASSISTANT_OPEN}", text)

    if not text.strip().startswith(USER_OPEN):
        text = f"{USER_OPEN}\n{text}"
    if not text.strip().endswith(ASSISTANT_CLOSE):
        text = f"{text}\n{ASSISTANT_CLOSE}"

    text = _BLANK_RUN_RE.sub("\n\n", text)
    return text.strip()


@dataclass(frozen=True)
class CleaningReport:
    original_lines: int
    cleaned_lines: int
    original_size: int
    cleaned_size: int
    reduction_percent: int


def assess_cleaning(original: str, cleaned: str) -> CleaningReport:
    original_size = len(original.encode("utf-8"))
    cleaned_size = len(cleaned.encode("utf-8"))
    if original_size:
        reduction = round((original_size - cleaned_size) / original_size * 100)
    else:
        reduction = 0
    return CleaningReport(
        original_lines=len(original.split("\n")),
        cleaned_lines=len(cleaned.split("\n")),
        original_size=original_size,
        cleaned_size=cleaned_size,
        reduction_percent=reduction,
    )
