import os
import re
import unicodedata
from urllib.parse import quote


def output_filename(uploaded_name: str | None, extension: str, default_stem: str = "converted") -> str:
    base = os.path.basename(uploaded_name or default_stem)
    stem, _ = os.path.splitext(base)
    stem = stem.strip() or default_stem
    ext = str(extension or "").strip().lstrip(".").lower()
    return f"{stem}.{ext}" if ext else stem


def ascii_fallback(name: str, default: str = "download") -> str:
    normalized = unicodedata.normalize("NFKD", name or "")
    ascii_name = normalized.encode("ascii", "ignore").decode("ascii")
    ascii_name = re.sub(r'["\\\r\n]+', "", ascii_name)
    ascii_name = re.sub(r"[^A-Za-z0-9._ -]+", "_", ascii_name).strip()
    return ascii_name or default


# User value: lets browsers save downloads under the right name, including non-ASCII names.
def content_disposition(name: str) -> str:
    fallback = ascii_fallback(name)
    encoded = quote(name or fallback, safe="")
    if encoded == fallback:
        return f'attachment; filename="{fallback}"'
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{encoded}"
