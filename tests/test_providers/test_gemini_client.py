"""
Tests for the Gemini image and Veo video clients.

HTTP is served by httpx.MockTransport; nothing leaves the process.
"""

import base64
import json

import httpx
import pytest

from storycreator.core.constants import AspectRatio
from storycreator.core.exceptions import DownloadLinkMissingError, MissingConfigError, ProviderError
from storycreator.generation.models import ReferenceImage
from storycreator.providers.gemini_client import GeminiImageClient, VeoVideoClient

BASE_URL = "https://example.test/v1beta"


def image_response(data: bytes) -> dict:
    return {
        "candidates": [{
            "content": {"parts": [
                {"text": "here you go"},
                {"inlineData": {"mimeType": "image/png", "data": base64.b64encode(data).decode()}},
            ]}
        }]
    }


class TestGeminiImageClient:
    """Tests for GeminiImageClient."""

    def test_requires_api_key(self, monkeypatch):
        for name in ("GEMINI_API_KEY", "GOOGLE_API_KEY", "API_KEY"):
            monkeypatch.delenv(name, raising=False)

        with pytest.raises(MissingConfigError):
            GeminiImageClient()

    @pytest.mark.asyncio
    async def test_generate_sends_images_before_text(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["key"] = request.headers["x-goog-api-key"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json=image_response(b"PNGDATA"))

        client = GeminiImageClient("test-key", base_url=BASE_URL, transport=httpx.MockTransport(handler))
        refs = [ReferenceImage(b"one", "image/png"), ReferenceImage(b"two", "image/jpeg")]

        data = await client.generate(refs, "draw them")

        assert data == b"PNGDATA"
        assert seen["url"] == f"{BASE_URL}/models/gemini-2.5-flash-image:generateContent"
        assert seen["key"] == "test-key"
        parts = seen["body"]["contents"][0]["parts"]
        assert parts[0]["inline_data"] == {"mime_type": "image/png", "data": base64.b64encode(b"one").decode()}
        assert parts[1]["inline_data"]["mime_type"] == "image/jpeg"
        assert parts[2] == {"text": "draw them"}
        assert seen["body"]["generationConfig"]["responseModalities"] == ["IMAGE"]

    @pytest.mark.asyncio
    async def test_http_error_carries_status(self):
        def handler(request):
            return httpx.Response(
                429, json={"error": {"code": 429, "status": "RESOURCE_EXHAUSTED", "message": "Quota exceeded"}}
            )

        client = GeminiImageClient("k", base_url=BASE_URL, transport=httpx.MockTransport(handler))

        with pytest.raises(ProviderError) as exc_info:
            await client.generate([ReferenceImage(b"x")], "p")

        assert exc_info.value.status_code == 429
        assert exc_info.value.message == "[429] RESOURCE_EXHAUSTED: Quota exceeded"

    @pytest.mark.asyncio
    async def test_blocked_prompt(self):
        def handler(request):
            return httpx.Response(200, json={"promptFeedback": {"blockReason": "SAFETY"}})

        client = GeminiImageClient("k", base_url=BASE_URL, transport=httpx.MockTransport(handler))

        with pytest.raises(ProviderError, match="safety filters"):
            await client.generate([ReferenceImage(b"x")], "p")

    @pytest.mark.asyncio
    async def test_no_image_in_response(self):
        def handler(request):
            return httpx.Response(200, json={"candidates": [{"content": {"parts": [{"text": "no"}]}}]})

        client = GeminiImageClient("k", base_url=BASE_URL, transport=httpx.MockTransport(handler))

        with pytest.raises(ProviderError, match="No image data"):
            await client.generate([ReferenceImage(b"x")], "p")


class TestVeoVideoClient:
    """Tests for VeoVideoClient."""

    @pytest.mark.asyncio
    async def test_polls_until_done_then_downloads(self):
        calls = []
        video_uri = "https://files.example.test/video.mp4"

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append((request.method, str(request.url)))
            if request.method == "POST":
                body = json.loads(request.content)
                assert body["parameters"] == {"aspectRatio": "9:16", "numberOfVideos": 1}
                assert body["instances"][0]["prompt"] == "run"
                assert body["instances"][0]["image"]["mimeType"] == "image/png"
                return httpx.Response(200, json={"name": "operations/op1", "done": False})
            if str(request.url) == video_uri:
                return httpx.Response(200, content=b"MP4DATA")
            polls = sum(1 for method, url in calls if url.endswith("operations/op1"))
            if polls < 2:
                return httpx.Response(200, json={"name": "operations/op1", "done": False})
            return httpx.Response(200, json={
                "name": "operations/op1",
                "done": True,
                "response": {"generateVideoResponse": {"generatedSamples": [{"video": {"uri": video_uri}}]}},
            })

        client = VeoVideoClient(
            "k", base_url=BASE_URL, poll_interval=0, transport=httpx.MockTransport(handler)
        )

        video = await client.generate("run", ReferenceImage(b"img"), AspectRatio.TALL)

        assert video == b"MP4DATA"
        assert calls[0] == ("POST", f"{BASE_URL}/models/veo-2.0-generate-001:predictLongRunning")
        assert calls[1:3] == [("GET", f"{BASE_URL}/operations/op1")] * 2
        assert calls[-1] == ("GET", video_uri)

    @pytest.mark.asyncio
    async def test_missing_download_link(self):
        def handler(request):
            return httpx.Response(200, json={"name": "operations/op2", "done": True, "response": {}})

        client = VeoVideoClient("k", base_url=BASE_URL, poll_interval=0, transport=httpx.MockTransport(handler))

        with pytest.raises(DownloadLinkMissingError) as exc_info:
            await client.generate("p", ReferenceImage(b"img"), AspectRatio.WIDE)

        assert exc_info.value.message == "Video generation completed, but no download link was found."

    @pytest.mark.asyncio
    async def test_operation_error(self):
        def handler(request):
            return httpx.Response(200, json={
                "name": "operations/op3",
                "done": True,
                "error": {"code": 404, "message": "Requested entity was not found."},
            })

        client = VeoVideoClient("k", base_url=BASE_URL, poll_interval=0, transport=httpx.MockTransport(handler))

        with pytest.raises(ProviderError) as exc_info:
            await client.generate("p", ReferenceImage(b"img"), AspectRatio.WIDE)

        assert exc_info.value.message == "[404] Requested entity was not found."
