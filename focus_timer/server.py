# focus_timer/server.py
"""
Focus Timer Audio Server
Flask app serving the timer page and the ambient audio endpoints
"""
import logging

from flask import Flask, jsonify, request, send_from_directory
from flask_cors import CORS

from focus_timer.config import PLATFORMS, ServerConfig
from focus_timer.handler import AudioHandler, error_response
from focus_timer.search import SEARCH_ADAPTERS
from focus_timer.selector import RandomIndex
from focus_timer.stream_proxy import StreamProxy

logger = logging.getLogger(__name__)

AUDIO_METHODS = ['GET', 'POST', 'OPTIONS']


def build_handlers(config: ServerConfig) -> dict:
    """One AudioHandler per platform, sharing the stream proxy"""
    proxy = StreamProxy(
        chunk_size=config.chunk_size,
        timeout=config.http_timeout,
        transcode=config.transcode,
        ffmpeg_path=config.ffmpeg_path,
    )
    rng = RandomIndex()

    return {
        platform: AudioHandler(
            searcher=SEARCH_ADAPTERS[platform](limit=config.search_limit),
            proxy=proxy,
            rng=rng,
            query_suffix=config.query_suffix,
            min_duration_minutes=config.min_duration_minutes,
            keyword=config.keyword,
            cache_max_age=config.cache_max_age,
        )
        for platform in PLATFORMS
    }


def create_app(config: ServerConfig = None, handlers: dict = None) -> Flask:
    config = config or ServerConfig.from_environment()
    handlers = handlers if handlers is not None else build_handlers(config)

    app = Flask(__name__, static_folder='www', static_url_path='')
    app.config['FOCUS_TIMER'] = config
    app.extensions['audio_handlers'] = handlers

    # Audio routes set their own CORS headers
    CORS(app, resources={r"/health": {"origins": "*"}})

    @app.route('/')
    def index():
        """Serve the timer page"""
        return send_from_directory(app.static_folder, 'index.html')

    @app.route('/api/audio', methods=AUDIO_METHODS)
    def default_audio():
        """
        Stream an ambient track for the default platform
        Parameters:
            - theme: mood to search for (e.g. "medieval")
        """
        return handlers[config.default_platform].handle(request.method, request.args.get('theme'))

    @app.route('/api/<platform>/audio', methods=AUDIO_METHODS)
    def platform_audio(platform):
        """Same as /api/audio, backed by an explicit platform"""
        handler = handlers.get(platform.lower())
        if handler is None:
            return error_response("Unknown platform", 404)
        return handler.handle(request.method, request.args.get('theme'))

    @app.route('/health', methods=['GET'])
    def health_check():
        """Health check endpoint"""
        return jsonify({
            'status': 'healthy',
            'service': 'Focus Timer Audio Server',
            'platforms': sorted(handlers),
            'default_platform': config.default_platform,
        })

    return app


def main():
    config = ServerConfig.from_environment()

    logging.basicConfig(
        level=config.log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    logger.info("🚀 Starting Focus Timer Audio Server")
    logger.info("📡 Endpoints:")
    logger.info(f"   - Timer page: http://localhost:{config.port}/")
    logger.info(f"   - Audio ({config.default_platform}): /api/audio?theme=xxx")
    for platform in PLATFORMS:
        logger.info(f"   - Audio ({platform}): /api/{platform}/audio?theme=xxx")

    app = create_app(config)
    app.run(host=config.host, port=config.port, threaded=True)


if __name__ == '__main__':
    main()
