# focus_timer/stream_proxy.py
"""
Stream Proxy - resolve a selected candidate and relay its audio bytes

The relay is a generator: each chunk is read from the upstream source only
when the WSGI server pulls the next one, so at most one chunk is held in
memory per request.
"""
import logging
import math
import subprocess
from typing import Callable, Dict, Iterable, Iterator, List, Optional

import httpx
import yt_dlp

from focus_timer.errors import UpstreamError
from focus_timer.models import AudioStream, Candidate

logger = logging.getLogger(__name__)

STREAMABLE_PROTOCOLS = ("http", "https")

# ffmpeg also reads HLS playlists
TRANSCODE_PROTOCOLS = STREAMABLE_PROTOCOLS + ("m3u8", "m3u8_native")


def _bitrate(fmt: Dict) -> float:
    bitrate = fmt.get('abr') or fmt.get('tbr')
    return float(bitrate) if bitrate else math.inf


def is_audio_only(fmt: Dict) -> bool:
    return fmt.get('vcodec') == 'none' and fmt.get('acodec') not in (None, 'none')


def choose_audio_format(formats: List[Dict], protocols=STREAMABLE_PROTOCOLS) -> Dict:
    """
    Lowest-bitrate audio-only format reachable over one of protocols.
    Bandwidth matters more than quality for background ambience.
    """
    audio = [
        f for f in formats or []
        if is_audio_only(f) and f.get('url') and f.get('protocol', 'https') in protocols
    ]
    if not audio:
        raise UpstreamError("No streamable audio-only format available")
    return min(audio, key=_bitrate)


def relay(chunks: Iterable[bytes], cleanup: Callable[[], None], label: str) -> Iterator[bytes]:
    """
    Yield chunks in order, releasing the upstream source however the
    stream ends: completion, source error or client disconnect.
    """
    chunk_count = 0
    bytes_sent = 0

    try:
        for chunk in chunks:
            if not chunk:
                continue

            chunk_count += 1
            bytes_sent += len(chunk)

            if chunk_count == 1:
                logger.info(f"📤 First chunk sent for {label}: {len(chunk)} bytes")
            elif chunk_count % 100 == 0:
                logger.debug(f"📊 Progress {label}: {chunk_count} chunks, {bytes_sent / 1024:.1f} KB")

            yield chunk

        logger.info(f"✅ Stream complete {label}: {chunk_count} chunks, {bytes_sent} bytes")

    except GeneratorExit:
        logger.info(f"⚠️ Client disconnected from {label}: {chunk_count} chunks sent")
        raise
    except Exception as e:
        logger.error(f"❌ Stream error for {label} after {bytes_sent} bytes: {e}")
        raise
    finally:
        cleanup()


class StreamProxy:
    """Turn a Candidate into an open AudioStream"""

    def __init__(self, chunk_size: int = 8192, timeout: float = 30.0,
                 transcode: bool = False, ffmpeg_path: str = "ffmpeg",
                 http_client: Optional[httpx.Client] = None):
        self.chunk_size = chunk_size
        self.transcode = transcode
        self.ffmpeg_path = ffmpeg_path
        self.client = http_client or httpx.Client(timeout=timeout, follow_redirects=True)
        logger.info(
            f"🎵 Stream proxy initialized (chunk: {chunk_size} bytes, "
            f"mode: {'ffmpeg mp3' if transcode else 'direct'})"
        )

    def resolve(self, candidate: Candidate) -> Dict:
        """Full metadata for the candidate, including its playable formats"""
        ydl_opts = {
            'quiet': True,
            'no_warnings': True,
            'skip_download': True,
        }
        try:
            with yt_dlp.YoutubeDL(ydl_opts) as ydl:
                info = ydl.extract_info(candidate.url, download=False)
        except yt_dlp.utils.DownloadError as e:
            raise UpstreamError(f"Could not resolve {candidate.url}: {e}") from e

        if not info:
            raise UpstreamError(f"Could not resolve {candidate.url}")
        return info

    def formats_for(self, candidate: Candidate) -> List[Dict]:
        info = self.resolve(candidate)
        return info.get('formats') or [info]

    def open(self, candidate: Candidate) -> AudioStream:
        formats = candidate.formats or self.formats_for(candidate)
        protocols = TRANSCODE_PROTOCOLS if self.transcode else STREAMABLE_PROTOCOLS
        fmt = choose_audio_format(formats, protocols)

        logger.info(
            f"📡 Audio format for {candidate.id}: {fmt.get('format_id')} "
            f"({fmt.get('acodec')}, {fmt.get('abr') or fmt.get('tbr') or '?'} kbps)"
        )

        if self.transcode:
            return self._open_ffmpeg(candidate, fmt)
        return self._open_http(candidate, fmt)

    def _open_http(self, candidate: Candidate, fmt: Dict) -> AudioStream:
        request = self.client.build_request('GET', fmt['url'], headers=fmt.get('http_headers') or {})
        try:
            response = self.client.send(request, stream=True)
        except httpx.HTTPError as e:
            raise UpstreamError(f"Failed to open audio for {candidate.id}: {e}") from e

        if response.is_error:
            response.close()
            raise UpstreamError(
                f"Upstream returned HTTP {response.status_code} for {candidate.id}"
            )

        chunks = relay(response.iter_bytes(self.chunk_size), response.close, candidate.id)
        # on_close covers a body that is dropped before its first pull
        return AudioStream(chunks=chunks, on_close=response.close)

    def _ffmpeg_command(self, fmt: Dict) -> List[str]:
        cmd = [self.ffmpeg_path, '-loglevel', 'error']

        headers = fmt.get('http_headers') or {}
        if headers:
            cmd += ['-headers', ''.join(f"{k}: {v}\r\n" for k, v in headers.items())]

        return cmd + [
            '-i', fmt['url'],
            '-vn',                    # No video
            '-acodec', 'libmp3lame',  # MP3 codec
            '-b:a', '64k',            # 64kbps bitrate
            '-f', 'mp3',              # MP3 format
            '-'                       # Output to stdout
        ]

    def _open_ffmpeg(self, candidate: Candidate, fmt: Dict) -> AudioStream:
        logger.info(f"🎬 Starting FFmpeg process for {candidate.id}")
        try:
            process = subprocess.Popen(
                self._ffmpeg_command(fmt),
                stdout=subprocess.PIPE,
                stderr=subprocess.DEVNULL,
            )
        except OSError as e:
            raise UpstreamError(f"Could not start ffmpeg: {e}") from e

        def read_chunks():
            yield from iter(lambda: process.stdout.read(self.chunk_size), b'')
            if process.wait() != 0:
                raise UpstreamError(f"ffmpeg exited with code {process.returncode}")

        def cleanup():
            if process.stdout.closed:
                return
            if process.poll() is None:
                process.kill()
            process.wait()
            process.stdout.close()
            logger.info(f"🛑 FFmpeg process terminated for {candidate.id}")

        return AudioStream(chunks=relay(read_chunks(), cleanup, candidate.id), on_close=cleanup)

    def close(self):
        self.client.close()
