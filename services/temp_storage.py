# User value: This file keeps uploaded payloads on disk only for as long as a conversion needs them.
import logging
import os
import re
import shutil
import tempfile
import unicodedata
from contextlib import contextmanager
from typing import Iterator, Optional

from config import TEMP_ROOT

logger = logging.getLogger("api.temp_storage")

_UNSAFE_CHARS_RE = re.compile(r"[^A-Za-z0-9._-]+")


def sanitize_filename(name: str | None, default: str = "upload.bin") -> str:
    base = os.path.basename(str(name or "").replace("\\", "/"))
    base = unicodedata.normalize("NFKC", base)
    base = _UNSAFE_CHARS_RE.sub("_", base).strip("._")
    return base[:200] or default


class TempFileStore:
    def __init__(self, root: Optional[str] = TEMP_ROOT, prefix: str = "cc-upload-"):
        self.root = root
        self.prefix = prefix

    @contextmanager
    def scoped_dir(self) -> Iterator[str]:
        if self.root:
            os.makedirs(self.root, exist_ok=True)
        path = tempfile.mkdtemp(prefix=self.prefix, dir=self.root)
        try:
            yield path
        finally:
            shutil.rmtree(path, ignore_errors=True)
            if os.path.exists(path):
                logger.warning("temp_cleanup_incomplete path=%s", path)

    # User value: stages one payload as a seekable file and removes it on every exit path.
    @contextmanager
    def scoped_file(self, payload: bytes, filename: str | None) -> Iterator[str]:
        with self.scoped_dir() as directory:
            path = os.path.join(directory, sanitize_filename(filename))
            with open(path, "wb") as handle:
                handle.write(payload)
            yield path
