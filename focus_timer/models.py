# focus_timer/models.py
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterator, List, Optional


@dataclass(frozen=True)
class Candidate:
    """A single search result (video or track)"""
    id: str
    title: str
    url: str
    description: Optional[str] = None
    duration_seconds: Optional[float] = None
    # Playable formats, when the search already resolved them
    formats: Optional[List[Dict]] = field(default=None, compare=False, hash=False, repr=False)

    @property
    def duration_minutes(self) -> Optional[float]:
        if self.duration_seconds is None:
            return None
        return self.duration_seconds / 60


@dataclass
class AudioStream:
    """Open byte stream owned by the response that relays it"""
    chunks: Iterator[bytes]
    content_type: str = "audio/mpeg"
    on_close: Optional[Callable[[], None]] = None

    def __iter__(self):
        return self.chunks

    def close(self):
        close = getattr(self.chunks, 'close', None)
        if close is not None:
            close()
        if self.on_close is not None:
            self.on_close()
            self.on_close = None
