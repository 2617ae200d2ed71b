import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()

REDIS_URL = os.environ.get("REDIS_URL", "redis://localhost:6379/0")
CONVERSION_LOG_KEY = os.environ.get("CONVERSION_LOG_KEY", "conversion_logs")
CONVERSION_LOG_MAX_ENTRIES = int(os.environ.get("CONVERSION_LOG_MAX_ENTRIES", "500"))

TEMP_ROOT = os.environ.get("TEMP_ROOT") or None

CLOUDCONVERT_API_URL = "https://api.cloudconvert.com"
CLOUDCONVERT_SYNC_API_URL = "https://sync.api.cloudconvert.com"
CLOUDCONVERT_SANDBOX_API_URL = "https://api.sandbox.cloudconvert.com"
CLOUDCONVERT_SANDBOX_SYNC_API_URL = "https://sync.api.sandbox.cloudconvert.com"


def _env_bool(name: str, default: bool = False) -> bool:
    raw = str(os.getenv(name, "1" if default else "0")).strip().lower()
    return raw in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class CloudConvertConfig:
    api_key: str
    api_url: str = CLOUDCONVERT_API_URL
    sync_api_url: str = CLOUDCONVERT_SYNC_API_URL
    http_timeout_sec: float = 60.0
    # <= 0 waits for as long as the remote service keeps the job open
    wait_timeout_sec: float = 900.0
    poll_interval_sec: float = 2.0
    wait_retries: int = 0
    retry_backoff_sec: float = 1.0


@dataclass(frozen=True)
class GeminiConfig:
    api_key: str
    model: str = "gemini-1.5-flash-latest"


@dataclass(frozen=True)
class CloudinaryConfig:
    cloud_name: str
    api_key: str
    api_secret: str
    folder: str = "background_removed_uploads"
    api_url: str = "https://api.cloudinary.com"
    delivery_url: str = "https://res.cloudinary.com"
    derive_attempts: int = 5
    derive_wait_sec: float = 2.0
    http_timeout_sec: float = 60.0


def cloudconvert_config_from_env() -> CloudConvertConfig:
    api_key = (os.getenv("CLOUDCONVERT_API_KEY") or "").strip()
    if not api_key:
        raise RuntimeError("CLOUDCONVERT_API_KEY not set")

    sandbox = _env_bool("CLOUDCONVERT_SANDBOX", False)
    return CloudConvertConfig(
        api_key=api_key,
        api_url=CLOUDCONVERT_SANDBOX_API_URL if sandbox else CLOUDCONVERT_API_URL,
        sync_api_url=CLOUDCONVERT_SANDBOX_SYNC_API_URL if sandbox else CLOUDCONVERT_SYNC_API_URL,
        http_timeout_sec=float(os.getenv("CLOUDCONVERT_HTTP_TIMEOUT_SEC", "60")),
        wait_timeout_sec=float(os.getenv("CLOUDCONVERT_WAIT_TIMEOUT_SEC", "900")),
        poll_interval_sec=float(os.getenv("CLOUDCONVERT_POLL_INTERVAL_SEC", "2")),
        wait_retries=int(os.getenv("CLOUDCONVERT_WAIT_RETRIES", "0")),
        retry_backoff_sec=float(os.getenv("CLOUDCONVERT_RETRY_BACKOFF_SEC", "1")),
    )


def gemini_config_from_env() -> GeminiConfig:
    api_key = (os.getenv("GEMINI_API_KEY") or "").strip()
    if not api_key:
        raise RuntimeError("GEMINI_API_KEY not set")
    model = (os.getenv("GEMINI_MODEL") or "").strip() or GeminiConfig.model
    return GeminiConfig(api_key=api_key, model=model)


def cloudinary_config_from_env() -> CloudinaryConfig:
    cloud_name = (os.getenv("CLOUDINARY_CLOUD_NAME") or "").strip()
    api_key = (os.getenv("CLOUDINARY_API_KEY") or "").strip()
    api_secret = (os.getenv("CLOUDINARY_API_SECRET") or "").strip()
    if not (cloud_name and api_key and api_secret):
        raise RuntimeError("Cloudinary credentials not set")
    return CloudinaryConfig(
        cloud_name=cloud_name,
        api_key=api_key,
        api_secret=api_secret,
        derive_attempts=int(os.getenv("CLOUDINARY_DERIVE_ATTEMPTS", "5")),
    )
