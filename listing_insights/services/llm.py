"""
LLM completion adapter.

Wraps one OpenAI chat completion (text plus optional images) in the retry
executor. Response validation runs inside the retried unit, so an empty or
unparsable answer is retried like any other transient failure.
"""
import asyncio
import json
import logging
import re
from typing import Any, Callable, Optional, Sequence, TypeVar, Union

import httpx
from openai import APIStatusError, AsyncOpenAI

from ..config import Settings, get_settings
from ..constants import CREDIT_EXHAUSTION_MARKERS, DEFAULT_TIMEOUT_HTTPX
from ..utils.api_helpers import OnRetry, RetryPolicy, SleepFunc, with_retry
from ..utils.errors import CreditsExhaustedError, InvalidInputError, ResponseParsingError
from ..utils.images import ImageAttachment

logger = logging.getLogger(__name__)

T = TypeVar("T")

ContentBlock = Union[str, ImageAttachment]
"""A prompt is an ordered sequence of text fragments and images."""

JSON_OBJECT_PATTERN = re.compile(r"\{[\s\S]*\}")

CREDITS_EXHAUSTED_MESSAGE = (
    "No LLM credits available. Please contact the administrator to add credits to the account."
)


def extract_json_object(text: str) -> dict:
    """
    Locate and parse the JSON object embedded in a model reply.

    The reply may wrap the object in prose or code fences; everything between
    the first ``{`` and the last ``}`` is parsed.

    Raises:
        ResponseParsingError: no object found, or it does not parse
    """
    match = JSON_OBJECT_PATTERN.search(text or "")
    if not match:
        raise ResponseParsingError("No JSON found in model response")
    try:
        parsed = json.loads(match.group(0))
    except json.JSONDecodeError as e:
        raise ResponseParsingError(f"Failed to parse JSON response from model: {e}") from e
    if not isinstance(parsed, dict):
        raise ResponseParsingError("Model response JSON is not an object")
    return parsed


def mentions_exhausted_credits(text: str) -> bool:
    lowered = (text or "").lower()
    return any(marker in lowered for marker in CREDIT_EXHAUSTION_MARKERS)


def build_message_content(blocks: Sequence[ContentBlock]) -> list:
    """Translate content blocks to the chat-completions content-part format."""
    content = []
    for block in blocks:
        if isinstance(block, ImageAttachment):
            content.append({"type": "image_url", "image_url": {"url": block.data_url}})
        else:
            content.append({"type": "text", "text": block})
    return content


def _response_text(response: Any) -> str:
    choices = getattr(response, "choices", None)
    if not choices:
        raise ResponseParsingError("Unexpected response shape from model: no choices")
    message = getattr(choices[0], "message", None)
    text = getattr(message, "content", None)
    if not isinstance(text, str) or not text.strip():
        raise ResponseParsingError("Unexpected response type from model: no text content")
    return text


class LLMClient:
    """
    Adapter around ``AsyncOpenAI`` chat completions.

    The underlying client is created once by the hosting application and
    injected here; the SDK's own retries are disabled so that the retry
    executor governs every attempt.
    """

    def __init__(self, client: AsyncOpenAI, model: str):
        self._client = client
        self.model = model

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "LLMClient":
        settings = settings or get_settings()
        if not settings.openai_api_key:
            raise ValueError("OPENAI_API_KEY not configured in environment variables")
        client = AsyncOpenAI(
            api_key=settings.openai_api_key,
            max_retries=0,
            http_client=httpx.AsyncClient(timeout=DEFAULT_TIMEOUT_HTTPX),
        )
        logger.info(f"LLM client initialized (model={settings.openai_model})")
        return cls(client, settings.openai_model)

    async def close(self) -> None:
        await self._client.close()

    async def complete(
        self,
        blocks: Sequence[ContentBlock],
        *,
        policy: RetryPolicy,
        temperature: float,
        max_tokens: int,
        parse: Optional[Callable[[str], T]] = None,
        require_images: bool = False,
        on_retry: Optional[OnRetry] = None,
        cancel: Optional[asyncio.Event] = None,
        sleep: Optional[SleepFunc] = None,
    ) -> Union[str, T]:
        """
        Send one completion request, retrying transient failures.

        Args:
            blocks: Ordered text fragments and images forming the user message
            policy: Retry policy for this call class
            temperature: Sampling temperature
            max_tokens: Completion token limit
            parse: Optional validator/parser applied to the reply text inside
                the retried unit; its ``ResponseParsingError`` triggers a retry
            require_images: Fail permanently if no image survived decoding
            on_retry: Retry observer or callback
            cancel: Cancellation event
            sleep: Sleep coroutine override (tests)

        Returns:
            The reply text, or ``parse(text)`` when a parser is given

        Raises:
            InvalidInputError: ``require_images`` and no image present
            CreditsExhaustedError: the account has no credits left
        """
        content = build_message_content(blocks)
        image_count = sum(1 for block in blocks if isinstance(block, ImageAttachment))

        async def attempt():
            if require_images and image_count == 0:
                raise InvalidInputError(
                    "No valid images found for image-based request. "
                    "Please ensure all products have valid image data."
                )
            try:
                response = await self._client.chat.completions.create(
                    model=self.model,
                    temperature=temperature,
                    max_tokens=max_tokens,
                    messages=[{"role": "user", "content": content}],
                )
            except APIStatusError as e:
                if mentions_exhausted_credits(str(e)):
                    raise CreditsExhaustedError(CREDITS_EXHAUSTED_MESSAGE) from e
                raise

            text = _response_text(response)
            return parse(text) if parse else text

        logger.info(
            f"LLM request: {len(content)} content parts, {image_count} images, model={self.model}"
        )
        options = {"cancel": cancel, "label": "LLM completion"}
        if sleep is not None:
            options["sleep"] = sleep
        return await with_retry(attempt, policy, on_retry, **options)
