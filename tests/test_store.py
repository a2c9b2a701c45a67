import pytest

from scribe.errors import Conflict, DuplicateChunk, NotFound
from scribe.models import Profile, SessionStatus

from conftest import run


def test_create_and_get_session_defaults(store) -> None:
    session = run(store.create_session("user-1", "Standup", Profile.MEETING))
    fetched = run(store.get_session(session.id))

    assert fetched == session
    assert session.status == SessionStatus.ACTIVE
    assert session.final_summary is None
    assert session.owner_id == "user-1"
    assert session.created_at == session.updated_at


def test_get_missing_session_returns_none(store) -> None:
    assert run(store.get_session("nope")) is None
    with pytest.raises(NotFound):
        run(store.require_session("nope"))


def test_list_sessions_by_owner_newest_first(store) -> None:
    first = run(store.create_session("user-1", "first"))
    second = run(store.create_session("user-1", "second"))
    run(store.create_session("user-2", "other"))

    listed = run(store.list_sessions("user-1"))
    assert [s.id for s in listed] == [second.id, first.id]


def test_update_session_touches_updated_at(store) -> None:
    session = run(store.create_session("user-1", "before", Profile.LECTURE))
    updated = run(store.update_session(session.id, name="after"))

    assert updated.name == "after"
    assert updated.profile == Profile.LECTURE
    assert updated.owner_id == "user-1"
    assert updated.updated_at >= session.updated_at


def test_update_missing_session_raises_not_found(store) -> None:
    with pytest.raises(NotFound):
        run(store.update_session("missing", name="x"))


def test_chunks_read_back_in_sequence_order(store) -> None:
    session = run(store.create_session("user-1", "s"))
    run(store.create_chunk(session.id, 0, "zero", 20))
    run(store.create_chunk(session.id, 2, "two", 20))
    run(store.create_chunk(session.id, 1, "one", 20))

    chunks = run(store.list_chunks(session.id))
    assert [c.seq for c in chunks] == [0, 1, 2]
    assert [c.transcript for c in chunks] == ["zero", "one", "two"]
    # reading again gives the same answer
    assert run(store.list_chunks(session.id)) == chunks


def test_duplicate_sequence_number_is_rejected(store) -> None:
    session = run(store.create_session("user-1", "s"))
    run(store.create_chunk(session.id, 0, "first"))
    with pytest.raises(DuplicateChunk):
        run(store.create_chunk(session.id, 0, "again"))
    assert [c.transcript for c in run(store.list_chunks(session.id))] == ["first"]


def test_notes_in_creation_order_with_optional_chunk(store) -> None:
    session = run(store.create_session("user-1", "s"))
    chunk = run(store.create_chunk(session.id, 0, "text"))
    a = run(store.create_note(session.id, "• a", "sum a", chunk_id=chunk.id))
    b = run(store.create_note(session.id, "• b", "sum b"))

    notes = run(store.list_notes(session.id))
    assert [n.id for n in notes] == [a.id, b.id]
    assert notes[0].chunk_id == chunk.id
    assert notes[1].chunk_id is None


def test_mark_failed_only_from_active(store) -> None:
    session = run(store.create_session("user-1", "s"))
    assert run(store.mark_failed(session.id)) is True
    assert run(store.get_session(session.id)).status == SessionStatus.FAILED
    assert run(store.mark_failed(session.id)) is False

    done = run(store.create_session("user-1", "done"))
    run(store.update_session(done.id, status=SessionStatus.COMPLETED, final_summary=""))
    assert run(store.mark_failed(done.id)) is False
    assert run(store.get_session(done.id)).status == SessionStatus.COMPLETED


def test_session_detail_includes_chunks_and_notes(store) -> None:
    session = run(store.create_session("user-1", "s", Profile.INTERVIEW))
    chunk = run(store.create_chunk(session.id, 0, "hello"))
    run(store.create_note(session.id, "• hi", "greeting", chunk_id=chunk.id))

    detail = run(store.get_session_detail(session.id))
    assert detail["profile"] == "interview"
    assert detail["status"] == "active"
    assert [c["transcript"] for c in detail["chunks"]] == ["hello"]
    assert [n["rolling_summary"] for n in detail["notes"]] == ["greeting"]


def test_complete_session_never_revives_failed(store) -> None:
    session = run(store.create_session("user-1", "s"))
    done = run(store.complete_session(session.id, "summary"))
    assert done.status == SessionStatus.COMPLETED
    assert run(store.complete_session(session.id, "again")).final_summary == "again"

    failed = run(store.create_session("user-1", "f"))
    run(store.mark_failed(failed.id))
    with pytest.raises(Conflict):
        run(store.complete_session(failed.id, "summary"))
    assert run(store.get_session(failed.id)).status == SessionStatus.FAILED

    with pytest.raises(NotFound):
        run(store.complete_session("missing", ""))
