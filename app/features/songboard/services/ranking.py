"""
Ranking Aggregator.

A pure function of a songs snapshot and a votes snapshot; holds no state and
performs no I/O.
"""

from collections import defaultdict
from collections.abc import Iterable

from app.features.songboard.domain import RankedSong, Song, Vote


def compute_rankings(songs: Iterable[Song], votes: Iterable[Vote]) -> list[RankedSong]:
    """
    Tally votes per song and order the result.

    Order: most votes first, then earliest suggestion, then song id. Songs
    without votes are included with a count of 0. Votes for songs not in the
    snapshot are ignored (a vote can land between the two reads).

    Ranks use standard competition ranking: equal counts share a rank and the
    next distinct count takes its 1-based position (1, 1, 3).
    """
    voters: dict[str, set[str]] = defaultdict(set)
    for vote in votes:
        voters[vote.song_id].add(vote.user_id)

    tallied = sorted(
        ((song, frozenset(voters.get(song.id, ()))) for song in songs),
        key=lambda item: (-len(item[1]), item[0].created_at, item[0].id),
    )

    ranked: list[RankedSong] = []
    rank = 0
    previous_count = None
    for position, (song, song_voters) in enumerate(tallied, start=1):
        count = len(song_voters)
        if count != previous_count:
            rank = position
            previous_count = count
        ranked.append(RankedSong(rank=rank, song=song, vote_count=count, voter_ids=song_voters))

    return ranked
