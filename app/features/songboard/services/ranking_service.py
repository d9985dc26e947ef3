"""
Ranking reads and change-driven refresh.

`RankingService` snapshots both stores and hands them to `compute_rankings`.
`RankingRefresher` turns a stream of change events into debounced
recomputes, and `PollingChangeSource` produces those events without any
realtime transport by watching cheap store fingerprints.
"""

import asyncio
from collections.abc import Awaitable, Callable

from app.config import settings
from app.features.songboard.domain import (
    AuthRequiredError,
    ChangeEvent,
    RankedSong,
    Song,
    SongboardError,
    User,
)
from app.features.songboard.repository import Fingerprint, SongCatalog, VoteLedger
from app.features.songboard.services.ranking import compute_rankings
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

RankingListener = Callable[[list[RankedSong]], Awaitable[None]]

WATCHED_TABLES = frozenset({"songs", "votes"})


class RankingService:
    def __init__(self, songs: SongCatalog, votes: VoteLedger):
        self.songs = songs
        self.votes = votes

    async def load_rankings(self) -> list[RankedSong]:
        """Recompute the full ranking from fresh store reads."""
        songs = await self.songs.list_all()
        votes = await self.votes.list_all()
        ranking = compute_rankings(songs, votes)
        logger.debug("Rankings computed", songs=len(songs), votes=len(votes))
        return ranking

    async def list_unvoted_songs(self, acting_user: User | None) -> list[Song]:
        """Songs the member has not voted on yet, newest first."""
        if acting_user is None:
            raise AuthRequiredError("You must identify yourself to vote")

        voted = await self.votes.list_song_ids_for_user(acting_user.id)
        return [song for song in await self.songs.list_all() if song.id not in voted]


class RankingRefresher:
    """
    Debounced ranking recompute driven by change notifications.

    Events that arrive while a recompute is waiting are folded into it; an
    event that arrives while a recompute is already reading the stores
    schedules one more pass so no mutation is missed.
    """

    def __init__(self, rankings: RankingService, *, debounce_seconds: float | None = None):
        self.rankings = rankings
        self.debounce_seconds = (
            settings.RANKINGS_DEBOUNCE_SECONDS if debounce_seconds is None else debounce_seconds
        )
        self.latest: list[RankedSong] | None = None
        self.refresh_count = 0
        self._listeners: list[RankingListener] = []
        self._dirty = False
        self._task: asyncio.Task | None = None

    def add_listener(self, listener: RankingListener) -> None:
        self._listeners.append(listener)

    def notify(self, event: ChangeEvent) -> bool:
        """Record a change; returns False for tables the ranking does not depend on."""
        if event.table not in WATCHED_TABLES:
            logger.debug("Ignoring change event", table=event.table, change=event.event)
            return False

        self._dirty = True
        if self._task is None or self._task.done():
            self._task = asyncio.get_running_loop().create_task(self._run())
        return True

    async def _run(self) -> None:
        while self._dirty:
            await asyncio.sleep(self.debounce_seconds)
            self._dirty = False
            try:
                await self.refresh()
            except SongboardError as e:
                # The next change event triggers another attempt
                logger.error("Ranking refresh failed", error=str(e), kind=e.kind)
            except Exception:
                logger.exception("Ranking refresh crashed")

    async def refresh(self) -> list[RankedSong]:
        """Recompute now and publish to listeners."""
        ranking = await self.rankings.load_rankings()
        self.latest = ranking
        self.refresh_count += 1

        for listener in list(self._listeners):
            try:
                await listener(ranking)
            except Exception:
                logger.exception("Ranking listener failed")

        return ranking

    async def wait_idle(self) -> None:
        """Wait for any scheduled recompute to finish."""
        while self._task is not None and not self._task.done():
            await asyncio.shield(self._task)

    async def close(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None
        self._dirty = False


def _classify(previous: Fingerprint, current: Fingerprint) -> str:
    if current[0] > previous[0]:
        return "insert"
    if current[0] < previous[0]:
        return "delete"
    return "update"


class PollingChangeSource:
    """Emit ChangeEvents by comparing store fingerprints on an interval."""

    def __init__(
        self,
        songs: SongCatalog,
        votes: VoteLedger,
        on_change: Callable[[ChangeEvent], object],
        *,
        interval_seconds: float | None = None,
    ):
        self.songs = songs
        self.votes = votes
        self.on_change = on_change
        self.interval_seconds = (
            settings.RANKINGS_POLL_INTERVAL_SECONDS if interval_seconds is None else interval_seconds
        )
        self._last: dict[str, Fingerprint] = {}
        self._task: asyncio.Task | None = None

    async def poll_once(self) -> list[ChangeEvent]:
        """Read fingerprints and emit an event per changed table. The first poll only sets a baseline."""
        current = {
            "songs": await self.songs.fingerprint(),
            "votes": await self.votes.fingerprint(),
        }

        events = [
            ChangeEvent(table=table, event=_classify(self._last[table], fingerprint))
            for table, fingerprint in current.items()
            if table in self._last and self._last[table] != fingerprint
        ]
        self._last = current

        for event in events:
            self.on_change(event)
        return events

    async def _run(self) -> None:
        while True:
            try:
                await self.poll_once()
            except SongboardError as e:
                logger.warning("Change poll failed", error=str(e), kind=e.kind)
            except Exception:
                logger.exception("Change poll crashed")
            await asyncio.sleep(self.interval_seconds)

    def start(self) -> None:
        if self._task is None or self._task.done():
            self._task = asyncio.get_running_loop().create_task(self._run())
            logger.info("Change polling started", interval_seconds=self.interval_seconds)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Change polling stopped")
