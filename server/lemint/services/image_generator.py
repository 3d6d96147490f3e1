# ─────────────────────────────────────────────────────────────────────────────
# Image Generator: text prompt → base64 PNG via the OpenAI Images API
# ─────────────────────────────────────────────────────────────────────────────


import time

import httpx
import structlog

from lemint.exceptions import ImageGenerationError

logger = structlog.get_logger(__name__)


class ImageGenerator:
    """Calls ``POST /images/generations`` and returns the first image.

    One request per prompt, no retry and no streaming.
    """

    def __init__(
        self,
        api_key: str,
        api_url: str = "https://api.openai.com/v1",
        model: str = "gpt-image-1",
        size: str = "1024x1024",
        quality: str = "low",
        timeout: float = 120.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._model = model
        self._size = size
        self._quality = quality
        self._client = httpx.AsyncClient(
            base_url=api_url.rstrip("/"),
            timeout=timeout,
            transport=transport,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self._api_key)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def generate(self, prompt: str) -> str:
        """Generate one image for ``prompt``.

        Returns:
            The image as base64 (no data-URL prefix).

        Raises:
            ImageGenerationError: On transport/HTTP errors or an empty result.
        """
        payload = {
            "model": self._model,
            "prompt": prompt,
            "n": 1,
            "size": self._size,
            "quality": self._quality,
        }
        t0 = time.perf_counter()
        try:
            response = await self._client.post(
                "/images/generations",
                json=payload,
                headers={"Authorization": f"Bearer {self._api_key}"},
            )
            response.raise_for_status()
            data = response.json().get("data") or []
        except httpx.HTTPStatusError as e:
            raise ImageGenerationError(
                f"HTTP {e.response.status_code}: {e.response.text}"
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            raise ImageGenerationError(str(e) or type(e).__name__) from e

        image = data[0].get("b64_json") if data else None
        if not image:
            raise ImageGenerationError("Response contained no image data")

        logger.info(
            "image_generated",
            model=self._model,
            size=self._size,
            time_ms=round((time.perf_counter() - t0) * 1000, 1),
        )
        return image
