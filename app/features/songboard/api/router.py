"""
Song board routes.

Architecture:
    - API layer: HTTP concerns, header identification, response models
    - Service layer: validation, vote idempotency, ranking
    - Errors: SongboardError subclasses, mapped to status codes in api/errors.py

Usage:
    1. POST /users/identify              - Resolve name (+ phone) to a member
    2. GET  /songs                       - All suggestions, newest first
    3. POST /songs                       - Suggest a song
    4. GET  /songs/suggestion-allowance  - Remaining suggestions this window
    5. GET  /songs/unvoted               - Songs the member has not voted on
    6. POST /songs/{song_id}/votes       - Vote (idempotent)
    7. GET  /rankings                    - Ranking recomputed now
    8. GET  /rankings/latest             - Last ranking published by the refresher
    9. GET  /videos/search?q=            - YouTube candidates

Member identity travels in the X-User-Id header.
"""

from fastapi import APIRouter, Depends, Query, status

from app.features.songboard.api.dependencies import (
    get_acting_user,
    get_identity_service,
    get_ranking_refresher,
    get_ranking_service,
    get_song_service,
    get_video_search,
    get_vote_service,
)
from app.features.songboard.api.schemas import (
    IdentifyRequest,
    RankingsResponse,
    SongResponse,
    SongSubmitRequest,
    SuggestionAllowanceResponse,
    UserResponse,
    VideoCandidateResponse,
    VoteResponse,
)
from app.features.songboard.domain import ChangeEvent, SongInput, User, VideoRef, VoteOutcome
from app.features.songboard.services import (
    IdentityService,
    RankingRefresher,
    RankingService,
    SongSubmissionService,
    VoteSubmissionService,
    YouTubeSearchClient,
)
from app.infrastructure.observability.logging import get_logger

router = APIRouter(tags=["songboard"])
logger = get_logger(__name__)


@router.post("/users/identify", response_model=UserResponse)
async def identify(
    request: IdentifyRequest,
    identity: IdentityService = Depends(get_identity_service),
):
    user = await identity.resolve_or_create_user(request.display_name, request.phone_number)
    return UserResponse.from_domain(user)


@router.get("/songs", response_model=list[SongResponse])
async def list_songs(songs: SongSubmissionService = Depends(get_song_service)):
    return [SongResponse.from_domain(song) for song in await songs.list_songs()]


@router.post("/songs", response_model=SongResponse, status_code=status.HTTP_201_CREATED)
async def submit_song(
    request: SongSubmitRequest,
    acting_user: User | None = Depends(get_acting_user),
    songs: SongSubmissionService = Depends(get_song_service),
    refresher: RankingRefresher | None = Depends(get_ranking_refresher),
):
    song_input = SongInput(
        title=request.title,
        artist=request.artist,
        notes=request.notes,
        video=VideoRef(video_id=request.video.video_id, title=request.video.title)
        if request.video
        else None,
    )
    song = await songs.submit_song(song_input, acting_user)

    if refresher is not None:
        refresher.notify(ChangeEvent(table="songs", event="insert"))
    return SongResponse.from_domain(song)


@router.get("/songs/suggestion-allowance", response_model=SuggestionAllowanceResponse)
async def suggestion_allowance(
    acting_user: User | None = Depends(get_acting_user),
    songs: SongSubmissionService = Depends(get_song_service),
):
    allowance = await songs.get_allowance(acting_user)
    return SuggestionAllowanceResponse.from_domain(allowance)


@router.get("/songs/unvoted", response_model=list[SongResponse])
async def list_unvoted_songs(
    acting_user: User | None = Depends(get_acting_user),
    rankings: RankingService = Depends(get_ranking_service),
):
    return [SongResponse.from_domain(s) for s in await rankings.list_unvoted_songs(acting_user)]


@router.post("/songs/{song_id}/votes", response_model=VoteResponse)
async def cast_vote(
    song_id: str,
    acting_user: User | None = Depends(get_acting_user),
    votes: VoteSubmissionService = Depends(get_vote_service),
    refresher: RankingRefresher | None = Depends(get_ranking_refresher),
):
    result = await votes.cast_vote(song_id, acting_user)

    if refresher is not None and result.outcome is VoteOutcome.RECORDED:
        refresher.notify(ChangeEvent(table="votes", event="insert"))
    return VoteResponse.from_domain(result)


@router.get("/rankings", response_model=RankingsResponse)
async def get_rankings(rankings: RankingService = Depends(get_ranking_service)):
    return RankingsResponse.from_domain(await rankings.load_rankings())


@router.get("/rankings/latest", response_model=RankingsResponse)
async def get_latest_rankings(
    rankings: RankingService = Depends(get_ranking_service),
    refresher: RankingRefresher | None = Depends(get_ranking_refresher),
):
    if refresher is None:
        return RankingsResponse.from_domain(await rankings.load_rankings())
    if refresher.latest is None:
        await refresher.refresh()
    return RankingsResponse.from_domain(refresher.latest)


@router.get("/videos/search", response_model=list[VideoCandidateResponse])
async def search_videos(
    q: str = Query("", max_length=200),
    search: YouTubeSearchClient = Depends(get_video_search),
):
    return [VideoCandidateResponse.from_domain(c) for c in await search.search(q)]
