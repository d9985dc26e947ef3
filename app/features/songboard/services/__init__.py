"""
Service layer for the song board feature.
"""

from .identity_service import IdentityService
from .ranking import compute_rankings
from .ranking_service import PollingChangeSource, RankingRefresher, RankingService
from .song_service import SongSubmissionService
from .video_search import YouTubeSearchClient
from .vote_service import VoteSubmissionService

__all__ = [
    "IdentityService",
    "PollingChangeSource",
    "RankingRefresher",
    "RankingService",
    "SongSubmissionService",
    "VoteSubmissionService",
    "YouTubeSearchClient",
    "compute_rankings",
]
