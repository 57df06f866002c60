from __future__ import annotations

from uuid import uuid4

import pytest

from chatlog_rounds.errors import ChatLogNotFoundError, RoundNotFoundError
from chatlog_rounds.models import Chapter, ChatLog, WorkflowStep
from chatlog_rounds.repositories.chat_logs import ChatLogRepository
from chatlog_rounds.repositories.rounds import RoundRepository
from chatlog_rounds.rounds import parse_rounds
from chatlog_rounds.schemas import ChatLogUpload
from chatlog_rounds.workflow import ChatLogWorkflow

TWO_ROUNDS = "<user>\nq1\n</user>\n<dungeon_master>\na1\n</dungeon_master>\n<user>\nq2\n</user>\n<dungeon_master>\na2\n</dungeon_master>"


def _add(conn, chat_log_id: str) -> ChatLog:  # noqa: ANN001
    return ChatLogRepository(conn).add_chat_log(
        ChatLog(
            chat_log_id=chat_log_id,
            filename=f"{chat_log_id}.txt",
            content="You said:\nhi",
            content_hash=f"hash-{chat_log_id}",
            size_bytes=12,
        )
    )


def test_chat_log_crud_and_dedup(conn) -> None:  # noqa: ANN001
    logs = ChatLogRepository(conn)
    stored = _add(conn, "log-crud")
    assert stored.created_at is not None
    assert stored.last_step is WorkflowStep.UPLOAD

    again = logs.add_chat_log(
        ChatLog(chat_log_id="log-crud-copy", filename="copy.txt", content="You said:\nhi", content_hash="hash-log-crud")
    )
    assert again.chat_log_id == "log-crud"
    assert logs.find_by_hash("hash-log-crud").chat_log_id == "log-crud"

    cleaned = logs.save_cleaned_content("log-crud", "<user>\nhi\n</dungeon_master>")
    assert cleaned.last_step is WorkflowStep.CLEAN
    assert logs.get_chat_log("log-crud").cleaned_content == "<user>\nhi\n</dungeon_master>"

    with pytest.raises(ChatLogNotFoundError):
        logs.set_workflow_step("missing", WorkflowStep.ROUNDS)


def test_replace_rounds_has_replace_all_semantics(conn) -> None:  # noqa: ANN001
    _add(conn, "log-replace")
    rounds = RoundRepository(conn)

    first = rounds.replace_rounds(chat_log_id="log-replace", rounds=parse_rounds(TWO_ROUNDS))
    assert [r.round_number for r in first] == [1, 2]

    second = rounds.replace_rounds(
        chat_log_id="log-replace",
        rounds=parse_rounds("<user>\nonly\n</user>\n<dungeon_master>\none\n</dungeon_master>"),
    )
    listed = rounds.list_rounds("log-replace")
    assert [r.round_id for r in listed] == [r.round_id for r in second]
    assert [(r.round_number, r.start_line, r.end_line) for r in listed] == [(1, 0, 4)]
    assert "only" in listed[0].content


def test_replace_rounds_for_unknown_chat_log_raises(conn) -> None:  # noqa: ANN001
    rounds = RoundRepository(conn)
    with pytest.raises(ChatLogNotFoundError):
        rounds.replace_rounds(chat_log_id="log-unknown", rounds=parse_rounds(TWO_ROUNDS))
    with pytest.raises(ChatLogNotFoundError):
        rounds.replace_rounds(chat_log_id="log-unknown", rounds=[])
    assert rounds.list_rounds("log-unknown") == []


def test_update_round_and_missing_round(conn) -> None:  # noqa: ANN001
    _add(conn, "log-update")
    rounds = RoundRepository(conn)
    first, second = rounds.replace_rounds(chat_log_id="log-update", rounds=parse_rounds(TWO_ROUNDS))

    updated = rounds.update_round(round_id=first.round_id, round_number=5, content="edited")
    assert (updated.round_number, updated.content) == (5, "edited")
    assert [r.round_id for r in rounds.list_rounds("log-update")] == [second.round_id, first.round_id]

    with pytest.raises(RoundNotFoundError):
        rounds.update_round(round_id=uuid4(), round_number=1, content="x")


def test_rounds_and_chapters_cascade(conn) -> None:  # noqa: ANN001
    _add(conn, "log-cascade")
    rounds = RoundRepository(conn)
    first, _ = rounds.replace_rounds(chat_log_id="log-cascade", rounds=parse_rounds(TWO_ROUNDS))
    rounds.add_chapter(Chapter(chapter_id=uuid4(), round_id=first.round_id, chapter_number=1, title="One"))
    assert [c.title for c in rounds.list_chapters("log-cascade")] == ["One"]

    rounds.replace_rounds(chat_log_id="log-cascade", rounds=parse_rounds(TWO_ROUNDS))
    assert rounds.list_chapters("log-cascade") == []

    first, _ = rounds.list_rounds("log-cascade")
    rounds.add_chapter(Chapter(chapter_id=uuid4(), round_id=first.round_id, chapter_number=1, title="Two"))
    assert ChatLogRepository(conn).delete_chat_log("log-cascade") is True
    assert rounds.list_rounds("log-cascade") == []
    row = conn.execute("select count(*) from chapters where round_id=%s::uuid", (str(first.round_id),)).fetchone()
    assert row == (0,)


def test_workflow_over_postgres(conn) -> None:  # noqa: ANN001
    wf = ChatLogWorkflow(ChatLogRepository(conn), RoundRepository(conn))
    chat_log = wf.upload(ChatLogUpload(filename="pg.txt", content="You said:\nHello\nChatGPT said:\nHi there"))
    wf.clean(chat_log.chat_log_id)
    result = wf.parse(chat_log.chat_log_id)

    assert [(r.round_number, r.start_line, r.end_line) for r in result.rounds] == [(1, 0, 4)]
    assert wf.get_chat_log(chat_log.chat_log_id).last_step is WorkflowStep.ROUNDS
