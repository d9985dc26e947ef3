"""
Song board feature package.

Suggestions, votes and rankings live together in this vertical slice
(domain models, repositories, services and API router) so the voting rules
can be read in one place.
"""

# Re-export the primary building blocks for easy access.
from .api.router import router as songboard_router  # noqa: F401
from .domain.models import RankedSong, Song, Vote, VoteOutcome  # noqa: F401
from .services.ranking import compute_rankings  # noqa: F401
from .services.song_service import SongSubmissionService  # noqa: F401
from .services.vote_service import VoteSubmissionService  # noqa: F401
