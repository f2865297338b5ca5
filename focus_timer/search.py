# focus_timer/search.py
"""
Media Search Adapters - find ambient candidates on YouTube / SoundCloud
"""
import logging
from typing import Dict, List, Optional
from urllib.parse import urlencode

import yt_dlp
from yt_dlp.utils import parse_duration

from focus_timer.errors import UpstreamError
from focus_timer.models import Candidate

logger = logging.getLogger(__name__)


def build_query(theme: str, suffix: str = "ambient music") -> str:
    """Combine the user's theme with the fixed search suffix"""
    return f"{theme.strip()} {suffix}".strip()


def parse_duration_seconds(value) -> Optional[float]:
    """
    Platform duration fields are not always present or numeric.
    Accepts seconds (int/float/str) or "HH:MM:SS"; anything else is None.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value) if value >= 0 else None
    if isinstance(value, str):
        return parse_duration(value.strip())
    return None


class MediaSearch:
    """Base class for yt-dlp backed searches"""

    platform = "media"
    not_found_message = "No suitable items found"
    flat = True

    def __init__(self, limit: int = 20):
        self.limit = limit

    def search_url(self, query: str) -> str:
        raise NotImplementedError

    def candidate_url(self, entry: Dict) -> str:
        return entry.get('webpage_url') or entry.get('url') or entry['id']

    def ydl_options(self) -> Dict:
        return {
            'quiet': True,
            'no_warnings': True,
            'skip_download': True,
            'extract_flat': 'in_playlist' if self.flat else False,
            'playlistend': self.limit,
            'ignoreerrors': True,
        }

    def search(self, query: str) -> List[Candidate]:
        """
        Search the platform for query

        Returns:
            Candidates in platform order (not guaranteed meaningful)
        """
        logger.info(f"🔍 Searching {self.platform}: '{query}' (max: {self.limit})")

        try:
            with yt_dlp.YoutubeDL(self.ydl_options()) as ydl:
                info = ydl.extract_info(self.search_url(query), download=False)
        except yt_dlp.utils.DownloadError as e:
            raise UpstreamError(f"{self.platform} search failed: {e}") from e

        if not info:
            raise UpstreamError(f"{self.platform} search returned nothing for '{query}'")

        candidates = []
        entries = list(info.get('entries') or [])
        for entry in entries[:self.limit]:
            candidate = self.to_candidate(entry)
            if candidate is not None:
                candidates.append(candidate)

        logger.info(f"✅ Found {len(candidates)} {self.platform} results")
        return candidates

    def to_candidate(self, entry) -> Optional[Candidate]:
        # Sometimes entries can be None
        if not isinstance(entry, dict) or not entry.get('id'):
            return None
        return Candidate(
            id=str(entry['id']),
            title=entry.get('title') or "",
            url=self.candidate_url(entry),
            description=entry.get('description') or None,
            duration_seconds=parse_duration_seconds(entry.get('duration')),
            formats=entry.get('formats') or None,
        )


class YouTubeSearch(MediaSearch):
    platform = "youtube"
    not_found_message = "No suitable videos found"

    # YouTube's "over 20 minutes" search filter
    LONG_DURATION_FILTER = "EgIYAg=="

    def search_url(self, query: str) -> str:
        params = urlencode({'search_query': query, 'sp': self.LONG_DURATION_FILTER})
        return f"https://www.youtube.com/results?{params}"

    def candidate_url(self, entry: Dict) -> str:
        return f"https://www.youtube.com/watch?v={entry['id']}"


class SoundCloudSearch(MediaSearch):
    platform = "soundcloud"
    not_found_message = "No suitable tracks found"

    # Flat SoundCloud search entries carry no duration. Full entries also
    # carry formats, which the stream proxy reuses instead of resolving again.
    flat = False

    def search_url(self, query: str) -> str:
        return f"scsearch{self.limit}:{query}"


SEARCH_ADAPTERS = {
    YouTubeSearch.platform: YouTubeSearch,
    SoundCloudSearch.platform: SoundCloudSearch,
}
