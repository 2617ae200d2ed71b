# User value: This file turns an uploaded video or a video link into a text transcript.
import asyncio
import glob
import logging
import os
import uuid
from typing import Awaitable, Callable, Optional
from urllib.parse import urlparse

import yt_dlp
from imageio_ffmpeg import get_ffmpeg_exe

from services.temp_storage import TempFileStore, sanitize_filename
from services.text_generation import GeminiTextService, TextGenerationError
from utils.stage_logging import log_stage

logger = logging.getLogger("api.transcription")

YOUTUBE_COOKIE = (os.getenv("YOUTUBE_COOKIE") or "").strip() or None
AUDIO_BITRATE = "128k"
AUDIO_MIME_TYPE = "audio/mp3"
DEFAULT_VIDEO_TITLE = "YouTube_Video"


class TranscriptionError(Exception):
    pass


async def extract_audio(video_path: str, output_dir: str) -> str:
    stem = os.path.splitext(os.path.basename(video_path))[0] or "video"
    audio_path = os.path.join(output_dir, f"{stem}_{uuid.uuid4().hex[:8]}_audio.mp3")
    cmd = [
        get_ffmpeg_exe(),
        "-y",
        "-i",
        video_path,
        "-vn",
        "-acodec",
        "libmp3lame",
        "-b:a",
        AUDIO_BITRATE,
        audio_path,
    ]
    try:
        proc = await asyncio.create_subprocess_exec(
            *cmd,
            stdout=asyncio.subprocess.DEVNULL,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as exc:
        raise TranscriptionError(f"FFmpeg failed to start: {exc}") from exc

    _, stderr = await proc.communicate()
    if proc.returncode != 0:
        tail = (stderr or b"").decode("utf-8", errors="ignore").strip().splitlines()[-1:]
        raise TranscriptionError(f"FFmpeg failed to extract audio: {' '.join(tail) or proc.returncode}")
    return audio_path


YOUTUBE_HOSTS = ("youtube.com", "youtu.be", "youtube-nocookie.com")
YOUTUBE_EXTRACTORS = ["youtube", "youtube:tab"]
YOUTUBE_COOKIE_DOMAIN = ".youtube.com"


def is_youtube_url(url: str | None) -> bool:
    parsed = urlparse(str(url or "").strip())
    if parsed.scheme not in ("http", "https"):
        return False
    host = (parsed.hostname or "").lower()
    return any(host == h or host.endswith("." + h) for h in YOUTUBE_HOSTS)


def write_youtube_cookie_file(cookie: str, output_dir: str) -> str | None:
    """Write ``name=value; ...`` as a Netscape cookie file valid only for YouTube."""
    lines = ["# Netscape HTTP Cookie File"]
    for part in cookie.split(";"):
        name, sep, value = part.strip().partition("=")
        if not sep or not name.strip():
            continue
        lines.append("\t".join([YOUTUBE_COOKIE_DOMAIN, "TRUE", "/", "TRUE", "0", name.strip(), value.strip()]))
    if len(lines) == 1:
        return None
    path = os.path.join(output_dir, "youtube_cookies.txt")
    with open(path, "w", encoding="utf-8") as handle:
        handle.write("\n".join(lines) + "\n")
    return path


def download_youtube_audio(url: str, output_dir: str, cookie: Optional[str] = None) -> tuple[str, str]:
    """Download best audio for ``url`` into ``output_dir`` as mp3; returns ``(path, title)``."""
    if not is_youtube_url(url):
        raise TranscriptionError("Only YouTube video links are supported")

    opts = {
        "format": "bestaudio/best",
        "outtmpl": os.path.join(output_dir, "youtube_%(id)s.%(ext)s"),
        "noplaylist": True,
        "quiet": True,
        "no_warnings": True,
        "allowed_extractors": YOUTUBE_EXTRACTORS,
        "ffmpeg_location": get_ffmpeg_exe(),
        "postprocessors": [
            {
                "key": "FFmpegExtractAudio",
                "preferredcodec": "mp3",
                "preferredquality": AUDIO_BITRATE.rstrip("k"),
            }
        ],
    }
    # The cookie jar sends these only to youtube.com hosts.
    cookie_file = write_youtube_cookie_file(cookie, output_dir) if cookie else None
    if cookie_file:
        opts["cookiefile"] = cookie_file

    try:
        with yt_dlp.YoutubeDL(opts) as ydl:
            info = ydl.extract_info(url, download=True)
            expected = os.path.splitext(ydl.prepare_filename(info))[0] + ".mp3"
    except yt_dlp.utils.DownloadError as exc:
        raise TranscriptionError(f"Video download failed: {exc}") from exc

    if not os.path.exists(expected):
        candidates = sorted(glob.glob(os.path.join(output_dir, "*.mp3")))
        if not candidates:
            raise TranscriptionError("Downloaded audio not found")
        expected = candidates[0]

    title = str((info or {}).get("title") or DEFAULT_VIDEO_TITLE)
    return expected, title


class TranscriptionService:
    def __init__(
        self,
        text_service: GeminiTextService,
        *,
        temp_store: Optional[TempFileStore] = None,
        youtube_cookie: Optional[str] = YOUTUBE_COOKIE,
        extractor: Optional[Callable[[str, str], Awaitable[str]]] = None,
        downloader: Optional[Callable[[str, str, Optional[str]], tuple[str, str]]] = None,
    ):
        self._text = text_service
        self._temp_store = temp_store or TempFileStore(prefix="transcribe-session-")
        self._cookie = youtube_cookie
        self._extract = extractor or extract_audio
        self._download = downloader or download_youtube_audio
        if not youtube_cookie:
            logger.warning("youtube_cookie_missing url transcription may be refused by YouTube")

    async def _transcribe_file(self, audio_path: str) -> str:
        with open(audio_path, "rb") as handle:
            audio = handle.read()
        return await self._text.transcribe_audio(audio, AUDIO_MIME_TYPE)

    async def transcribe_upload(self, payload: bytes, filename: str) -> dict:
        session_id = f"transcribe-{uuid.uuid4().hex}"
        log_stage(job_id=session_id, stage="TRANSCRIPTION", event="STARTED", tool="transcription", filename=filename)
        try:
            with self._temp_store.scoped_dir() as session_dir:
                video_path = os.path.join(session_dir, sanitize_filename(filename, default="video.bin"))
                with open(video_path, "wb") as handle:
                    handle.write(payload)
                audio_path = await self._extract(video_path, session_dir)
                transcription = await self._transcribe_file(audio_path)
        except (TranscriptionError, TextGenerationError) as exc:
            _log_failed(session_id, exc, source="file")
            raise
        log_stage(job_id=session_id, stage="TRANSCRIPTION", event="COMPLETED", chars=len(transcription))
        return {"transcription": transcription}

    async def transcribe_url(self, url: str) -> dict:
        session_id = f"transcribe-{uuid.uuid4().hex}"
        log_stage(job_id=session_id, stage="TRANSCRIPTION", event="STARTED", tool="transcription", source_url=url)
        try:
            with self._temp_store.scoped_dir() as session_dir:
                audio_path, title = await asyncio.to_thread(self._download, url, session_dir, self._cookie)
                transcription = await self._transcribe_file(audio_path)
        except (TranscriptionError, TextGenerationError) as exc:
            _log_failed(session_id, exc, source="url")
            raise
        log_stage(job_id=session_id, stage="TRANSCRIPTION", event="COMPLETED", chars=len(transcription))
        return {"transcription": transcription, "videoTitle": title}


def _log_failed(session_id: str, exc: Exception, *, source: str) -> None:
    log_stage(
        job_id=session_id,
        stage="TRANSCRIPTION",
        event="FAILED",
        tool="transcription",
        error=str(exc),
        error_type=exc.__class__.__name__,
        source=source,
    )
