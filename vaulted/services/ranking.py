from typing import List

from vaulted.core.models import StreamCandidate


def rank_key(candidate: StreamCandidate):
    # Cached first (instant playback), then quality, then seeds
    return (not candidate.cached, -candidate.quality.rank, -(candidate.seeds or 0))


def rank(candidates: List[StreamCandidate]) -> List[StreamCandidate]:
    """
    Orders candidates best first. sorted() is stable, so equal candidates
    keep their input (provider-priority) order.
    """
    return sorted(candidates, key=rank_key)
