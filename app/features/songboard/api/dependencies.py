"""
FastAPI dependency providers.

Each request gets services wired to explicit store instances; tests swap
any of these through `app.dependency_overrides`.
"""

from fastapi import Depends, Header, Request

from app.features.songboard.domain import User, ValidationError
from app.features.songboard.repository import (
    SongCatalog,
    SongRepository,
    UserDirectory,
    UserRepository,
    VoteLedger,
    VoteRepository,
)
from app.features.songboard.services import (
    IdentityService,
    RankingRefresher,
    RankingService,
    SongSubmissionService,
    VoteSubmissionService,
    YouTubeSearchClient,
)
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)


def get_song_catalog() -> SongCatalog:
    return SongRepository()


def get_vote_ledger() -> VoteLedger:
    return VoteRepository()


def get_user_directory() -> UserDirectory:
    return UserRepository()


def get_identity_service(users: UserDirectory = Depends(get_user_directory)) -> IdentityService:
    return IdentityService(users)


def get_song_service(songs: SongCatalog = Depends(get_song_catalog)) -> SongSubmissionService:
    return SongSubmissionService(songs)


def get_vote_service(votes: VoteLedger = Depends(get_vote_ledger)) -> VoteSubmissionService:
    return VoteSubmissionService(votes)


def get_ranking_service(
    songs: SongCatalog = Depends(get_song_catalog),
    votes: VoteLedger = Depends(get_vote_ledger),
) -> RankingService:
    return RankingService(songs, votes)


def get_ranking_refresher(request: Request) -> RankingRefresher | None:
    return getattr(request.app.state, "ranking_refresher", None)


def get_video_search(request: Request) -> YouTubeSearchClient:
    client = getattr(request.app.state, "video_search", None)
    if client is None:
        client = YouTubeSearchClient()
        request.app.state.video_search = client
    return client


async def get_acting_user(
    x_user_id: str | None = Header(default=None),
    identity: IdentityService = Depends(get_identity_service),
) -> User | None:
    """
    Resolve the X-User-Id header to a member.

    Returns None when the header is missing, malformed or unknown; the
    services turn that into AuthRequiredError.
    """
    try:
        return await identity.get_user(x_user_id)
    except ValidationError:
        logger.info("Malformed member id header", user_id=x_user_id)
        return None
