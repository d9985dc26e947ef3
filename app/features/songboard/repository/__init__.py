"""
Persistence layer for the song board feature.
"""

from .contracts import Fingerprint, SongCatalog, UserDirectory, VoteLedger
from .song_repository import SongRepository
from .user_repository import UserRepository
from .vote_repository import VoteRepository

__all__ = [
    "Fingerprint",
    "SongCatalog",
    "SongRepository",
    "UserDirectory",
    "UserRepository",
    "VoteLedger",
    "VoteRepository",
]
