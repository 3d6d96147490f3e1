# ─────────────────────────────────────────────────────────────────────────────
# Tests: Image Generator (httpx.MockTransport, no network)
# ─────────────────────────────────────────────────────────────────────────────

import json

import httpx
import pytest

from conftest import PNG_B64
from lemint.exceptions import ImageGenerationError
from lemint.services.image_generator import ImageGenerator


def _generator(handler, **kwargs) -> ImageGenerator:
    return ImageGenerator(
        api_key="sk-test",
        api_url="https://images.test/v1",
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


class TestGenerate:
    @pytest.mark.asyncio
    async def test_request_payload(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"data": [{"b64_json": PNG_B64}]})

        generator = _generator(handler, quality="medium")
        image = await generator.generate("a gold pass")
        await generator.aclose()

        assert image == PNG_B64
        request = seen[0]
        assert request.url == "https://images.test/v1/images/generations"
        assert request.headers["authorization"] == "Bearer sk-test"
        assert json.loads(request.content) == {
            "model": "gpt-image-1",
            "prompt": "a gold pass",
            "n": 1,
            "size": "1024x1024",
            "quality": "medium",
        }

    @pytest.mark.asyncio
    async def test_http_error(self):
        generator = _generator(lambda r: httpx.Response(429, text="quota exceeded"))
        with pytest.raises(ImageGenerationError) as exc_info:
            await generator.generate("x")
        await generator.aclose()
        assert exc_info.value.message == "Failed to generate image"
        assert exc_info.value.details == "HTTP 429: quota exceeded"

    @pytest.mark.asyncio
    async def test_empty_data(self):
        generator = _generator(lambda r: httpx.Response(200, json={"data": []}))
        with pytest.raises(ImageGenerationError, match="no image data"):
            await generator.generate("x")
        await generator.aclose()

    @pytest.mark.asyncio
    async def test_transport_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        generator = _generator(handler)
        with pytest.raises(ImageGenerationError, match="timed out"):
            await generator.generate("x")
        await generator.aclose()

    def test_is_configured(self):
        assert ImageGenerator(api_key="").is_configured is False
        assert ImageGenerator(api_key="sk").is_configured is True
