"""
Gemini API Clients

Clients for Google's generative language REST API:
- Gemini 2.5 Flash Image for reference-guided image generation
- Veo for image-to-video generation (long-running operation, polled)

Both speak plain JSON over httpx and raise ProviderError with the HTTP status
prefixed to the API's own message.
"""

from __future__ import annotations

import asyncio
import base64
from typing import Any, Dict, Optional, Sequence

import httpx

from storycreator.core.constants import (
    AspectRatio,
    GEMINI_BASE_URL,
    DEFAULT_IMAGE_MODEL,
    DEFAULT_VIDEO_MODEL,
    DEFAULT_REQUEST_TIMEOUT,
    VIDEO_POLL_INTERVAL_SECONDS,
)
from storycreator.core.env_loader import get_google_api_key
from storycreator.core.exceptions import (
    DownloadLinkMissingError,
    MissingConfigError,
    ProviderError,
)
from storycreator.core.logging_config import get_logger
from storycreator.generation.models import ReferenceImage

logger = get_logger("providers.gemini")


def _error_message(response: httpx.Response) -> str:
    """Pull ``error.message`` out of a Google API error body."""
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict):
        status = error.get("status")
        message = error.get("message", "")
        return f"{status}: {message}" if status else message
    return response.text or response.reason_phrase


class BaseGeminiClient:
    """Shared auth, transport and error handling."""

    MODEL_DISPLAY_NAME = "Gemini"

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: str = GEMINI_BASE_URL,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        api_key = api_key or get_google_api_key()
        if not api_key:
            raise MissingConfigError(
                f"{self.__class__.__name__} requires an API key (set GEMINI_API_KEY or GOOGLE_API_KEY)"
            )
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    def _headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "x-goog-api-key": self.api_key,
        }

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.timeout,
            transport=self._transport,
            follow_redirects=True,
        )

    @staticmethod
    def _check(response: httpx.Response) -> None:
        if response.is_error:
            raise ProviderError(_error_message(response), response.status_code)

    async def _post_json(self, client: httpx.AsyncClient, url: str, body: Dict[str, Any]) -> Dict[str, Any]:
        try:
            response = await client.post(url, json=body, headers=self._headers())
        except httpx.HTTPError as e:
            raise ProviderError(f"{self.MODEL_DISPLAY_NAME} request failed: {e}")
        self._check(response)
        return response.json()


class GeminiImageClient(BaseGeminiClient):
    """Reference-guided image generation via ``generateContent``."""

    MODEL_DISPLAY_NAME = "Nano Banana"

    def __init__(self, api_key: Optional[str] = None, model: str = DEFAULT_IMAGE_MODEL, **kwargs):
        super().__init__(api_key, **kwargs)
        self.model = model

    def _build_body(self, reference_images: Sequence[ReferenceImage], prompt_text: str) -> Dict[str, Any]:
        # Reference images first, in selection order, so ordinal clauses line up
        parts = [
            {"inline_data": {"mime_type": ref.mime_type, "data": ref.to_base64()}}
            for ref in reference_images
        ]
        parts.append({"text": prompt_text})
        return {
            "contents": [{"parts": parts}],
            "generationConfig": {"responseModalities": ["IMAGE"]},
        }

    async def generate(self, reference_images: Sequence[ReferenceImage], prompt_text: str) -> bytes:
        url = f"{self.base_url}/models/{self.model}:generateContent"
        async with self._client() as client:
            result = await self._post_json(client, url, self._build_body(reference_images, prompt_text))

        candidates = result.get("candidates") or []
        if candidates:
            for part in candidates[0].get("content", {}).get("parts", []):
                inline = part.get("inlineData") or part.get("inline_data")
                if inline and inline.get("data"):
                    return base64.b64decode(inline["data"])

        block_reason = (result.get("promptFeedback") or {}).get("blockReason")
        if block_reason:
            raise ProviderError(f"Request blocked by safety filters: {block_reason}")
        raise ProviderError("No image data found in the response.")


class VeoVideoClient(BaseGeminiClient):
    """Image-to-video generation via ``predictLongRunning``.

    The operation is polled with a fixed delay until it reports ``done``, then
    the first generated sample is downloaded.
    """

    MODEL_DISPLAY_NAME = "Veo"

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = DEFAULT_VIDEO_MODEL,
        poll_interval: float = VIDEO_POLL_INTERVAL_SECONDS,
        **kwargs,
    ):
        super().__init__(api_key, **kwargs)
        self.model = model
        self.poll_interval = poll_interval

    async def generate(
        self,
        prompt_text: str,
        reference_image: ReferenceImage,
        aspect_ratio: AspectRatio,
    ) -> bytes:
        url = f"{self.base_url}/models/{self.model}:predictLongRunning"
        body = {
            "instances": [{
                "prompt": prompt_text,
                "image": {
                    "bytesBase64Encoded": reference_image.to_base64(),
                    "mimeType": reference_image.mime_type,
                },
            }],
            "parameters": {
                "aspectRatio": aspect_ratio.value,
                "numberOfVideos": 1,
            },
        }

        async with self._client() as client:
            operation = await self._post_json(client, url, body)
            operation = await self._wait_for(client, operation)
            video_uri = self._video_uri(operation)
            return await self._download(client, video_uri)

    async def _wait_for(self, client: httpx.AsyncClient, operation: Dict[str, Any]) -> Dict[str, Any]:
        name = operation.get("name")
        polls = 0
        while not operation.get("done"):
            if not name:
                raise ProviderError("Video operation returned no name to poll")
            await asyncio.sleep(self.poll_interval)
            polls += 1
            logger.debug(f"Polling video operation {name} (#{polls})")
            try:
                response = await client.get(f"{self.base_url}/{name}", headers=self._headers())
            except httpx.HTTPError as e:
                raise ProviderError(f"Polling video operation failed: {e}")
            self._check(response)
            operation = response.json()

        if operation.get("error"):
            error = operation["error"]
            raise ProviderError(error.get("message", "Video generation failed"), error.get("code"))
        return operation

    @staticmethod
    def _video_uri(operation: Dict[str, Any]) -> str:
        response = operation.get("response") or {}
        samples = (response.get("generateVideoResponse") or {}).get("generatedSamples") or []
        uri = samples[0].get("video", {}).get("uri") if samples else None
        if not uri:
            raise DownloadLinkMissingError()
        return uri

    async def _download(self, client: httpx.AsyncClient, uri: str) -> bytes:
        try:
            response = await client.get(uri, headers={"x-goog-api-key": self.api_key})
        except httpx.HTTPError as e:
            raise ProviderError(f"Video download failed: {e}")
        self._check(response)
        return response.content
