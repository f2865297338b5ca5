# focus_timer/selector.py
"""
Candidate filter & random selector
"""
import logging
import random
from typing import Iterable, List, Optional

from focus_timer.errors import NotFoundError
from focus_timer.models import Candidate

logger = logging.getLogger(__name__)


class RandomIndex:
    """Non-cryptographic index provider, seedable for reproducible runs"""

    def __init__(self, seed: Optional[int] = None):
        self._random = random.Random(seed)

    def next_index(self, upper: int) -> int:
        if upper <= 0:
            raise ValueError("upper must be positive")
        return self._random.randrange(upper)


def is_suitable(candidate: Candidate, min_minutes: float = 10, keyword: str = "ambient") -> bool:
    """Long enough and mentions the keyword in its title or description"""
    minutes = candidate.duration_minutes
    if minutes is None or minutes <= min_minutes:
        return False

    keyword = keyword.lower()
    if keyword in candidate.title.lower():
        return True
    return bool(candidate.description) and keyword in candidate.description.lower()


def filter_candidates(candidates: Iterable[Candidate], min_minutes: float = 10,
                      keyword: str = "ambient") -> List[Candidate]:
    return [c for c in candidates if is_suitable(c, min_minutes, keyword)]


def select_track(candidates: Iterable[Candidate], rng, not_found_message: str,
                 min_minutes: float = 10, keyword: str = "ambient") -> Candidate:
    """
    Filter candidates and draw one uniformly at random

    Raises:
        NotFoundError: nothing survived the filter
    """
    suitable = filter_candidates(candidates, min_minutes, keyword)
    if not suitable:
        raise NotFoundError(not_found_message)

    track = suitable[rng.next_index(len(suitable))]
    logger.info(f"🎲 Picked '{track.title}' ({track.id}) out of {len(suitable)} suitable")
    return track
