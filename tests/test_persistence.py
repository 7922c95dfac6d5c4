"""Tests for repositories and the fire-and-forget persistence sink."""

from unittest.mock import AsyncMock

import pytest

from writing_coach.adapters.store import InMemoryRecordStore, NullRecordStore
from writing_coach.core.errors import StoreUnavailableError
from writing_coach.schemas.coach import CoachRequest, CoachResult, PhraseEntry
from writing_coach.schemas.records import PhraseRecord, PhraseStatus, phrase_record_id
from writing_coach.services.persistence import PersistenceSink
from writing_coach.services.repositories import (
    PHRASES_CONTAINER,
    PhraseRepository,
    SessionRepository,
)
from tests.helpers import SAMPLE_TEXT

USER = "user:u-1"


def _result(*phrases: str) -> CoachResult:
    return CoachResult(
        original_text=SAMPLE_TEXT,
        minimal_fix="fixed",
        upgraded_text="upgraded",
        phrase_bank=tuple(PhraseEntry(phrase=p) for p in phrases),
        model_used="gpt-4o-mini",
    )


def _phrases(request: CoachRequest, *texts: str) -> list[PhraseRecord]:
    return [
        PhraseRecord.from_entry(PhraseEntry(phrase=t), user_key=USER, session_id="s-1", request=request)
        for t in texts
    ]


@pytest.mark.asyncio
async def test_batch_writes_all_when_nothing_conflicts(store, coach_request) -> None:
    outcome = await PhraseRepository(store).save_batch(_phrases(coach_request, "a b", "c d"))

    assert len(outcome.written) == 2
    assert outcome.used_fallback is False


@pytest.mark.asyncio
async def test_one_conflict_out_of_five_writes_other_four(store, coach_request) -> None:
    repo = PhraseRepository(store)
    existing = _phrases(coach_request, "phrase three")
    await repo.save_batch(existing)

    outcome = await repo.save_batch(
        _phrases(coach_request, "phrase one", "phrase two", "Phrase  Three", "phrase four", "phrase five")
    )

    assert outcome.used_fallback is True
    assert len(outcome.written) == 4
    assert outcome.skipped_conflicts == [existing[0].id]
    assert outcome.failed == []
    assert len(await repo.list_by_user(USER)) == 5


@pytest.mark.asyncio
async def test_fallback_keeps_going_after_unexpected_write_error(coach_request) -> None:
    store = InMemoryRecordStore()
    store.create_batch = AsyncMock(side_effect=StoreUnavailableError(code="store_unavailable", message="x"))
    real_create = store.create
    calls = {"n": 0}

    async def flaky_create(container, partition_key, record):
        calls["n"] += 1
        if calls["n"] == 1:
            raise StoreUnavailableError(code="store_unavailable", message="blip")
        return await real_create(container, partition_key, record)

    store.create = flaky_create
    phrases = _phrases(coach_request, "one", "two", "three")

    outcome = await PhraseRepository(store).save_batch(phrases)

    assert outcome.failed == [phrases[0].id]
    assert outcome.written == [phrases[1].id, phrases[2].id]


def test_phrase_ids_are_deterministic_per_user_and_language() -> None:
    assert phrase_record_id(USER, "de", "Guten Tag") == phrase_record_id(USER, "de", "guten  tag")
    assert phrase_record_id(USER, "de", "Guten Tag") != phrase_record_id(USER, "es", "Guten Tag")
    assert phrase_record_id(USER, "de", "Guten Tag") != phrase_record_id("user:other", "de", "Guten Tag")


@pytest.mark.asyncio
async def test_status_update_sets_learned_at(store, coach_request) -> None:
    repo = PhraseRepository(store)
    (phrase,) = _phrases(coach_request, "sich bewerben um")
    await repo.save_batch([phrase])

    learned = await repo.update_status(phrase.id, USER, PhraseStatus.LEARNED)
    assert learned.status is PhraseStatus.LEARNED
    assert learned.learned_at is not None

    back = await repo.update_status(phrase.id, USER, PhraseStatus.LEARNING)
    assert back.learned_at is None

    assert await repo.update_status("missing", USER, PhraseStatus.LEARNED) is None


@pytest.mark.asyncio
async def test_toggle_favorite_round_trip(store, coach_request) -> None:
    repo = PhraseRepository(store)
    (phrase,) = _phrases(coach_request, "in Bezug auf")
    await repo.save_batch([phrase])

    assert (await repo.toggle_favorite(phrase.id, USER)).is_favorite is True
    assert (await repo.toggle_favorite(phrase.id, USER)).is_favorite is False


@pytest.mark.asyncio
async def test_sink_persists_session_and_phrases(sink, store, coach_request) -> None:
    sink.record(USER, coach_request, _result("nach Berlin fahren", "es war schön"))
    await sink.drain()

    sessions = await SessionRepository(store).list_by_user(USER)
    assert len(sessions) == 1
    assert sessions[0].result.minimal_fix == "fixed"

    phrases = await PhraseRepository(store).list_by_user(USER)
    assert {p.source_session_id for p in phrases} == {sessions[0].id}
    assert sink.pending == 0


@pytest.mark.asyncio
async def test_duplicate_phrase_skipped_and_session_still_saved(sink, store, coach_request) -> None:
    sink.record(USER, coach_request, _result("erste Phrase"))
    await sink.drain()

    sink.record(USER, coach_request, _result("zweite Phrase", "erste Phrase", "dritte Phrase"))
    await sink.drain()

    phrases = await PhraseRepository(store).list_by_user(USER)
    sessions = await SessionRepository(store).list_by_user(USER)
    assert sorted(p.phrase for p in phrases) == ["dritte Phrase", "erste Phrase", "zweite Phrase"]
    assert len(sessions) == 2


@pytest.mark.asyncio
async def test_session_failure_does_not_block_phrases(store, coach_request) -> None:
    sessions = SessionRepository(store)
    sessions.save = AsyncMock(side_effect=StoreUnavailableError(code="store_unavailable", message="down"))
    sink = PersistenceSink(sessions, PhraseRepository(store))

    sink.record(USER, coach_request, _result("eine Phrase"))
    await sink.drain()

    assert len(await store.query(PHRASES_CONTAINER, USER)) == 1


@pytest.mark.asyncio
async def test_sink_skips_unavailable_store(coach_request) -> None:
    null = NullRecordStore()
    sessions = SessionRepository(null)
    sessions.save = AsyncMock()
    sink = PersistenceSink(sessions, PhraseRepository(null))

    sink.record(USER, coach_request, _result("x y"))
    await sink.drain()

    sessions.save.assert_not_called()


@pytest.mark.asyncio
async def test_sink_errors_never_escape(coach_request) -> None:
    sessions = SessionRepository(InMemoryRecordStore())
    phrases = PhraseRepository(InMemoryRecordStore())
    phrases.save_batch = AsyncMock(side_effect=RuntimeError("unexpected"))
    sink = PersistenceSink(sessions, phrases)

    sink.record(USER, coach_request, _result("x y"))
    await sink.drain()

    assert sink.pending == 0
