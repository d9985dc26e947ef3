import asyncio

import pytest

from app.features.songboard.domain import ChangeEvent, NewSong, StorageError
from app.features.songboard.services import PollingChangeSource, RankingRefresher, RankingService


async def _add_song(song_catalog, user, title="Hallelujah"):
    return await song_catalog.insert(
        NewSong(title=title, artist="Artist", notes=None, video=None, suggested_by_id=user.id)
    )


@pytest.fixture
def rankings(song_catalog, vote_ledger):
    return RankingService(song_catalog, vote_ledger)


@pytest.fixture
def refresher(rankings):
    return RankingRefresher(rankings, debounce_seconds=0.01)


class FailingRankings:
    async def load_rankings(self):
        raise StorageError("database unavailable", retryable=True)


class CrashingRankings:
    def __init__(self):
        self.calls = 0

    async def load_rankings(self):
        self.calls += 1
        raise RuntimeError("Database pool is closed")


class CrashingFingerprints:
    def __init__(self):
        self.calls = 0

    async def fingerprint(self):
        self.calls += 1
        raise RuntimeError("Database pool is closed")


@pytest.mark.asyncio
async def test_burst_of_events_is_coalesced(refresher, song_catalog, alice):
    await _add_song(song_catalog, alice)

    for _ in range(5):
        assert refresher.notify(ChangeEvent(table="votes", event="insert")) is True
    await refresher.wait_idle()

    assert refresher.refresh_count == 1
    assert len(refresher.latest) == 1


@pytest.mark.asyncio
async def test_unrelated_tables_are_ignored(refresher):
    assert refresher.notify(ChangeEvent(table="users", event="insert")) is False
    await refresher.wait_idle()

    assert refresher.refresh_count == 0
    assert refresher.latest is None


@pytest.mark.asyncio
async def test_listeners_receive_each_ranking(refresher, song_catalog, vote_ledger, alice):
    song = await _add_song(song_catalog, alice)
    await vote_ledger.insert_if_absent(song.id, alice.id)
    received = []

    async def listener(ranking):
        received.append(ranking)

    refresher.add_listener(listener)
    await refresher.refresh()

    assert len(received) == 1
    assert received[0][0].vote_count == 1


@pytest.mark.asyncio
async def test_failing_listener_does_not_stop_others(refresher):
    received = []

    async def broken(ranking):
        raise RuntimeError("socket closed")

    async def listener(ranking):
        received.append(ranking)

    refresher.add_listener(broken)
    refresher.add_listener(listener)

    await refresher.refresh()

    assert received == [[]]
    assert refresher.refresh_count == 1


@pytest.mark.asyncio
async def test_event_during_refresh_schedules_another_pass(refresher):
    calls = []

    async def listener(ranking):
        calls.append(ranking)
        if len(calls) == 1:
            refresher.notify(ChangeEvent(table="songs", event="insert"))

    refresher.add_listener(listener)
    refresher.notify(ChangeEvent(table="votes", event="insert"))
    await refresher.wait_idle()

    assert refresher.refresh_count == 2


@pytest.mark.asyncio
async def test_refresh_failure_is_logged_and_survived():
    refresher = RankingRefresher(FailingRankings(), debounce_seconds=0.01)

    refresher.notify(ChangeEvent(table="votes", event="insert"))
    await refresher.wait_idle()

    assert refresher.refresh_count == 0
    assert refresher.latest is None


@pytest.mark.asyncio
async def test_close_cancels_pending_refresh(rankings):
    refresher = RankingRefresher(rankings, debounce_seconds=10)

    refresher.notify(ChangeEvent(table="votes", event="insert"))
    await refresher.close()

    assert refresher.refresh_count == 0


@pytest.mark.asyncio
async def test_first_poll_is_a_baseline(song_catalog, vote_ledger, alice):
    events = []
    source = PollingChangeSource(song_catalog, vote_ledger, events.append, interval_seconds=0.01)
    await _add_song(song_catalog, alice)

    assert await source.poll_once() == []
    assert events == []


@pytest.mark.asyncio
async def test_poll_reports_changed_tables(song_catalog, vote_ledger, alice):
    events = []
    source = PollingChangeSource(song_catalog, vote_ledger, events.append, interval_seconds=0.01)
    await source.poll_once()

    song = await _add_song(song_catalog, alice)
    assert await source.poll_once() == [ChangeEvent(table="songs", event="insert")]

    await vote_ledger.insert_if_absent(song.id, alice.id)
    assert await source.poll_once() == [ChangeEvent(table="votes", event="insert")]

    assert await source.poll_once() == []
    assert [e.table for e in events] == ["songs", "votes"]


@pytest.mark.asyncio
async def test_polling_drives_refresher(song_catalog, vote_ledger, refresher, alice):
    source = PollingChangeSource(song_catalog, vote_ledger, refresher.notify, interval_seconds=0.01)
    await source.poll_once()

    song = await _add_song(song_catalog, alice)
    await vote_ledger.insert_if_absent(song.id, alice.id)
    await source.poll_once()
    await refresher.wait_idle()

    assert refresher.refresh_count == 1
    assert refresher.latest[0].song.id == song.id
    assert refresher.latest[0].vote_count == 1


@pytest.mark.asyncio
async def test_start_and_stop_polling(song_catalog, vote_ledger):
    source = PollingChangeSource(song_catalog, vote_ledger, lambda event: None, interval_seconds=0.01)

    source.start()
    await source.stop()
    await source.stop()


@pytest.mark.asyncio
async def test_unexpected_refresh_error_keeps_refresher_usable():
    rankings = CrashingRankings()
    refresher = RankingRefresher(rankings, debounce_seconds=0.01)

    refresher.notify(ChangeEvent(table="votes", event="insert"))
    await refresher.wait_idle()
    refresher.notify(ChangeEvent(table="votes", event="insert"))
    await refresher.wait_idle()

    assert rankings.calls == 2
    assert refresher.refresh_count == 0


@pytest.mark.asyncio
async def test_polling_survives_unexpected_errors(vote_ledger):
    songs = CrashingFingerprints()
    source = PollingChangeSource(songs, vote_ledger, lambda event: None, interval_seconds=0.01)

    source.start()
    await asyncio.sleep(0.1)

    assert songs.calls >= 2
    assert not source._task.done()
    await source.stop()
