import base64
import logging
from typing import List, Optional

import httpx
from pydantic import ValidationError as SchemaError

from config import settings
from errors import UpstreamError
from schemas import (
    Choice,
    ChoicesRequest,
    ChoicesResponse,
    ContinueRequest,
    ContinueResponse,
    GrammarCheckRequest,
    ImageRequest,
    ImageResponse,
    SuggestionSet,
)

log = logging.getLogger("taleteller")


class StoryAPIClient:
    """Async client for the backend's /api routes."""

    def __init__(self, base_url: str = None, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.base_url = base_url or settings.BACKEND_URL
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=settings.CLIENT_TIMEOUT_SECONDS,
            transport=transport,
        )

    async def aclose(self):
        await self._client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()

    async def _post(self, path: str, payload, response_model, failure: str):
        try:
            response = await self._client.post(path, json=payload.model_dump(by_alias=True))
            response.raise_for_status()
            return response_model.model_validate(response.json())
        except httpx.HTTPStatusError as e:
            log.error("%s: backend answered %s: %s", path, e.response.status_code, e.response.text[:300])
            raise UpstreamError(failure) from e
        except httpx.HTTPError as e:
            log.error("%s: request failed: %s", path, e)
            raise UpstreamError(failure) from e
        except (ValueError, SchemaError) as e:
            log.error("%s: unreadable response: %s", path, e)
            raise UpstreamError(failure) from e

    async def grammar_check(self, text: str, mode: str) -> SuggestionSet:
        return await self._post(
            "/grammar-check",
            GrammarCheckRequest(text=text, mode=mode),
            SuggestionSet,
            "Failed to check grammar",
        )

    async def generate_choices(self, story_context: str, mode: str, current_scene: str) -> List[Choice]:
        result = await self._post(
            "/generate-choices",
            ChoicesRequest(story_context=story_context, mode=mode, current_scene=current_scene),
            ChoicesResponse,
            "Failed to generate choices",
        )
        return result.choices

    async def continue_scene(self, story_context: str, mode: str, selected_choice: str) -> str:
        result = await self._post(
            "/continue-scene",
            ContinueRequest(story_context=story_context, mode=mode, selected_choice=selected_choice),
            ContinueResponse,
            "Failed to continue scene",
        )
        return result.continuation

    async def generate_image(self, prompt: str) -> bytes:
        result = await self._post(
            "/generate-image",
            ImageRequest(prompt=prompt),
            ImageResponse,
            "Image generation failed",
        )
        try:
            return base64.b64decode(result.image, validate=True)
        except ValueError as e:
            log.error("/generate-image: image is not valid base64: %s", e)
            raise UpstreamError("Image generation failed") from e
