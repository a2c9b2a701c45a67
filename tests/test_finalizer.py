import pytest

from scribe.errors import Conflict, NotFound, SummarizationFailed
from scribe.models import Profile, SessionStatus
from scribe.services.finalizer import SessionFinalizer
from scribe.services.notes import NotesService

from conftest import FakeGroq, run


def _finalizer(store, groq) -> SessionFinalizer:
    return SessionFinalizer(store, NotesService(groq=groq))


def test_final_summary_skips_empty_chunks_in_seq_order(store) -> None:
    groq = FakeGroq(final_summary="  All done  ")
    session = run(store.create_session("user-1", "s", Profile.INTERVIEW))
    run(store.create_chunk(session.id, 2, "b"))
    run(store.create_chunk(session.id, 0, "a"))
    run(store.create_chunk(session.id, 1, ""))

    done = run(_finalizer(store, groq).finalize(session.id))

    assert done.status == SessionStatus.COMPLETED
    assert done.final_summary == "All done"
    assert len(groq.chat_calls) == 1
    system, user = groq.chat_calls[0]
    assert "interview summary" in system["content"]
    assert user["content"] == "a\n\nb"


def test_no_chunks_completes_with_empty_summary(store) -> None:
    groq = FakeGroq()
    session = run(store.create_session("user-1", "s"))

    done = run(_finalizer(store, groq).finalize(session.id))

    assert done.status == SessionStatus.COMPLETED
    assert done.final_summary == ""
    assert groq.chat_calls == []


def test_only_empty_chunks_completes_with_empty_summary(store) -> None:
    groq = FakeGroq()
    session = run(store.create_session("user-1", "s"))
    run(store.create_chunk(session.id, 0, "   "))

    done = run(_finalizer(store, groq).finalize(session.id))

    assert done.final_summary == ""
    assert groq.chat_calls == []


def test_finalizing_twice_overwrites_summary(store) -> None:
    groq = FakeGroq(final_summary="first")
    finalizer = _finalizer(store, groq)
    session = run(store.create_session("user-1", "s"))
    run(store.create_chunk(session.id, 0, "hello"))

    assert run(finalizer.finalize(session.id)).final_summary == "first"

    run(store.create_chunk(session.id, 1, "late piece"))
    groq.final_summary = "second"
    again = run(finalizer.finalize(session.id))

    assert again.status == SessionStatus.COMPLETED
    assert again.final_summary == "second"
    assert groq.chat_calls[-1][1]["content"] == "hello\n\nlate piece"


def test_failed_session_cannot_be_finalized(store) -> None:
    session = run(store.create_session("user-1", "s"))
    run(store.mark_failed(session.id))

    with pytest.raises(Conflict):
        run(_finalizer(store, FakeGroq()).finalize(session.id))
    assert run(store.get_session(session.id)).status == SessionStatus.FAILED


def test_fail_leaves_completed_session_alone(store) -> None:
    finalizer = _finalizer(store, FakeGroq())
    session = run(store.create_session("user-1", "s"))
    run(finalizer.finalize(session.id))

    run(finalizer.fail(session.id))

    assert run(store.get_session(session.id)).status == SessionStatus.COMPLETED


def test_summary_failure_leaves_session_active(store) -> None:
    class BrokenGroq(FakeGroq):
        async def chat(self, messages, **kwargs):
            raise RuntimeError("timeout")

    session = run(store.create_session("user-1", "s"))
    run(store.create_chunk(session.id, 0, "hello"))

    with pytest.raises(SummarizationFailed):
        run(_finalizer(store, BrokenGroq()).finalize(session.id))
    assert run(store.get_session(session.id)).status == SessionStatus.ACTIVE


def test_finalize_missing_session(store) -> None:
    with pytest.raises(NotFound):
        run(_finalizer(store, FakeGroq()).finalize("missing"))


def test_session_failed_during_summary_stays_failed(store) -> None:
    session = run(store.create_session("user-1", "s"))
    run(store.create_chunk(session.id, 0, "hello"))

    class FailingMidway(FakeGroq):
        async def chat(self, messages, **kwargs):
            # the upload pipeline gives up on the session while the summary is in flight
            await store.mark_failed(session.id)
            return "too late"

    with pytest.raises(Conflict):
        run(_finalizer(store, FailingMidway()).finalize(session.id))

    after = run(store.get_session(session.id))
    assert after.status == SessionStatus.FAILED
    assert after.final_summary is None
