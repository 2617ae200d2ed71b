# User value: This file removes image backgrounds through Cloudinary and hands back a transparent PNG.
import asyncio
import hashlib
import logging
import time
from typing import Optional

import httpx

from config import CloudinaryConfig

logger = logging.getLogger("api.background_removal")

DERIVATION_PENDING_STATUS = 423
DEFAULT_RESULT_MIME = "image/png"


class BackgroundRemovalError(Exception):
    def __init__(self, message: str, *, http_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.http_code = http_code

    def __str__(self) -> str:
        if self.http_code:
            return f"Cloudinary API Error ({self.http_code}): {self.message}"
        return self.message


def sign_params(params: dict, api_secret: str) -> str:
    """Cloudinary signature: sha1 of ``k=v`` pairs sorted by key, joined by ``&``, then the secret."""
    to_sign = "&".join(f"{key}={params[key]}" for key in sorted(params) if params[key] not in (None, ""))
    return hashlib.sha1(f"{to_sign}{api_secret}".encode("utf-8")).hexdigest()


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return (response.text or response.reason_phrase or "").strip()[:200]
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if body.get("message"):
            return str(body["message"])
    return response.reason_phrase or f"HTTP {response.status_code}"


class CloudinaryBackgroundRemover:
    def __init__(self, config: CloudinaryConfig, *, transport: Optional[httpx.AsyncBaseTransport] = None):
        self._config = config
        self._transport = transport

    def upload_url(self) -> str:
        return f"{self._config.api_url}/v1_1/{self._config.cloud_name}/image/upload"

    def delivery_url(self, public_id: str) -> str:
        return (
            f"{self._config.delivery_url}/{self._config.cloud_name}"
            f"/image/upload/e_background_removal,f_png/{public_id}"
        )

    async def _upload(self, http: httpx.AsyncClient, payload: bytes, filename: str) -> str:
        params = {"folder": self._config.folder, "timestamp": str(int(time.time()))}
        data = dict(params)
        data["api_key"] = self._config.api_key
        data["signature"] = sign_params(params, self._config.api_secret)

        try:
            response = await http.post(self.upload_url(), data=data, files={"file": (filename or "image", payload)})
        except httpx.HTTPError as exc:
            raise BackgroundRemovalError(f"Cloudinary upload failed: {exc.__class__.__name__}: {exc}") from exc
        if response.is_error:
            raise BackgroundRemovalError(_error_message(response), http_code=response.status_code)

        try:
            public_id = response.json().get("public_id")
        except (ValueError, AttributeError) as exc:
            raise BackgroundRemovalError("Cloudinary upload returned an unreadable body") from exc
        if not public_id:
            raise BackgroundRemovalError("Cloudinary upload failed or did not return a public_id.")
        return str(public_id)

    async def _fetch_derived(self, http: httpx.AsyncClient, public_id: str) -> tuple[bytes, str]:
        url = self.delivery_url(public_id)
        attempts = max(1, self._config.derive_attempts)
        for attempt in range(1, attempts + 1):
            try:
                response = await http.get(url, follow_redirects=True)
            except httpx.HTTPError as exc:
                raise BackgroundRemovalError(
                    f"Failed to retrieve processed image from Cloudinary: {exc.__class__.__name__}: {exc}"
                ) from exc

            if response.status_code == DERIVATION_PENDING_STATUS and attempt < attempts:
                logger.info(
                    "background_removal_pending public_id=%s attempt=%s/%s",
                    public_id,
                    attempt,
                    attempts,
                )
                await asyncio.sleep(self._config.derive_wait_sec)
                continue
            if response.is_error:
                raise BackgroundRemovalError(
                    f"Failed to retrieve processed image from Cloudinary: {_error_message(response)}",
                    http_code=response.status_code,
                )
            if not response.content:
                raise BackgroundRemovalError("Cloudinary returned an empty image")
            mime = response.headers.get("content-type", "").split(";")[0].strip() or DEFAULT_RESULT_MIME
            return response.content, mime

        raise BackgroundRemovalError(
            "Background removal is still processing; try again shortly",
            http_code=DERIVATION_PENDING_STATUS,
        )

    async def remove_background(self, payload: bytes, filename: str) -> tuple[bytes, str]:
        if not payload:
            raise BackgroundRemovalError("Received empty image file.")
        async with httpx.AsyncClient(timeout=self._config.http_timeout_sec, transport=self._transport) as http:
            public_id = await self._upload(http, payload, filename)
            logger.info("background_removal_uploaded public_id=%s", public_id)
            return await self._fetch_derived(http, public_id)
