# focus_timer/handler.py
"""
Audio request handler - theme in, audio stream (or JSON error) out
"""
import logging
import time

from flask import Response, jsonify

from focus_timer.errors import NotFoundError, ValidationError
from focus_timer.search import build_query
from focus_timer.selector import select_track

logger = logging.getLogger(__name__)

CORS_ORIGIN = {'Access-Control-Allow-Origin': '*'}

CORS_PREFLIGHT = {
    **CORS_ORIGIN,
    'Access-Control-Allow-Headers': 'Content-Type',
    'Access-Control-Allow-Methods': 'GET, POST, OPTIONS',
}


def error_response(message: str, status: int) -> Response:
    response = jsonify({'error': message})
    response.status_code = status
    response.headers.update(CORS_ORIGIN)
    return response


class AudioHandler:
    """
    One handler per platform. Collaborators are injected:
        searcher: .search(query) -> [Candidate], plus .not_found_message
        proxy: .open(candidate) -> AudioStream
        rng: .next_index(upper) -> int
    """

    def __init__(self, searcher, proxy, rng, query_suffix: str = "ambient music",
                 min_duration_minutes: float = 10, keyword: str = "ambient",
                 cache_max_age: int = 3600):
        self.searcher = searcher
        self.proxy = proxy
        self.rng = rng
        self.query_suffix = query_suffix
        self.min_duration_minutes = min_duration_minutes
        self.keyword = keyword
        self.cache_max_age = cache_max_age

    @property
    def platform(self) -> str:
        return getattr(self.searcher, 'platform', 'media')

    def handle(self, method: str, theme) -> Response:
        if method == 'OPTIONS':
            return Response('', status=204, headers=CORS_PREFLIGHT)

        try:
            return self._stream_theme(theme)
        except ValidationError as e:
            return error_response(str(e), 400)
        except NotFoundError as e:
            logger.warning(f"❌ {e} for theme '{theme}'")
            return error_response(str(e), 404)
        except Exception as e:
            logger.exception(f"❌ {self.platform} request failed for theme '{theme}': {e}")
            return error_response("Failed to process request", 500)

    def _stream_theme(self, theme) -> Response:
        if not theme or not theme.strip():
            raise ValidationError("Theme parameter is required")

        query = build_query(theme, self.query_suffix)

        started = time.perf_counter()
        candidates = self.searcher.search(query)
        searched = time.perf_counter()
        logger.info(f"⏱️ Search took {searched - started:.2f}s ({len(candidates)} candidates)")

        track = select_track(
            candidates,
            self.rng,
            self.searcher.not_found_message,
            min_minutes=self.min_duration_minutes,
            keyword=self.keyword,
        )

        stream = self.proxy.open(track)
        logger.info(f"⏱️ Stream setup took {time.perf_counter() - searched:.2f}s")

        response = Response(stream, mimetype=stream.content_type)
        response.headers['Cache-Control'] = f'public, max-age={self.cache_max_age}'
        response.headers.update(CORS_ORIGIN)
        return response
