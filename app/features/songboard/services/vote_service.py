"""
Vote Submission Coordinator.

A vote is an atomic insert-if-absent against the ledger. A pair that already
exists is a successful outcome (ALREADY_VOTED), which makes `cast_vote`
safe to repeat after a timeout. Transient storage faults are retried with a
fixed delay; anything else surfaces immediately.
"""

import asyncio
from collections.abc import Awaitable, Callable

from app.config import settings
from app.features.songboard.domain import (
    AuthRequiredError,
    StorageError,
    User,
    ValidationError,
    VoteOutcome,
    VoteResult,
)
from app.features.songboard.repository import VoteLedger
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)


def _require_identifier(value: str | None, field: str) -> str:
    if not isinstance(value, str) or not value.strip() or value != value.strip():
        raise ValidationError(f"A valid {field} is required", field=field)
    return value


class VoteSubmissionService:
    def __init__(
        self,
        votes: VoteLedger,
        *,
        max_attempts: int | None = None,
        retry_delay: float | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.votes = votes
        self.max_attempts = settings.VOTE_MAX_ATTEMPTS if max_attempts is None else max_attempts
        self.retry_delay = (
            settings.VOTE_RETRY_DELAY_SECONDS if retry_delay is None else retry_delay
        )
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self._sleep = sleep

    async def cast_vote(self, song_id: str | None, acting_user: User | None) -> VoteResult:
        """
        Record the member's vote for a song exactly once.

        Returns:
            VoteResult with outcome RECORDED or ALREADY_VOTED

        Raises:
            AuthRequiredError: No member identity
            ValidationError: Blank or malformed identifiers
            NotFoundError: The song does not exist
            StorageError: Transient faults outlasted the retry budget, or a
                non-transient storage failure
        """
        if acting_user is None:
            raise AuthRequiredError("You must identify yourself to vote")

        song_id = _require_identifier(song_id, "song_id")
        user_id = _require_identifier(acting_user.id, "user_id")

        for attempt in range(1, self.max_attempts + 1):
            try:
                result = await self.votes.insert_if_absent(song_id, user_id)
            except StorageError as e:
                if not e.retryable:
                    raise
                if attempt >= self.max_attempts:
                    logger.error(
                        "Vote insert failed after all attempts",
                        song_id=song_id,
                        user_id=user_id,
                        attempts=attempt,
                        error=str(e),
                    )
                    raise StorageError(
                        f"Could not record vote after {attempt} attempts: {e.message}",
                        retryable=True,
                        operation="cast_vote",
                    ) from e

                logger.warning(
                    "Vote insert failed, retrying",
                    song_id=song_id,
                    user_id=user_id,
                    attempt=attempt,
                    max_attempts=self.max_attempts,
                    delay=self.retry_delay,
                    error=str(e),
                )
                await self._sleep(self.retry_delay)
                continue

            if result.inserted:
                logger.info("Vote recorded", song_id=song_id, user_id=user_id, attempt=attempt)
                return VoteResult(song_id=song_id, user_id=user_id, outcome=VoteOutcome.RECORDED)

            logger.info("Vote already recorded", song_id=song_id, user_id=user_id, attempt=attempt)
            return VoteResult(song_id=song_id, user_id=user_id, outcome=VoteOutcome.ALREADY_VOTED)

        # range() above always returns or raises
        raise StorageError("Vote retry loop exhausted", operation="cast_vote")

