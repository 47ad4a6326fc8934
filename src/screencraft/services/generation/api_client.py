"""Inference Client
================

Two layers:

- ``OpenRouterBackend``: one multimodal chat-completion call over aiohttp.
  Classifies HTTP 429/503 as transient overload and everything else as a
  permanent failure.
- ``InferenceClient``: bounded retry around a backend. At most
  ``max_attempts`` attempts; only transient failures are retried, with a
  linear backoff of ``attempt * backoff_unit`` seconds.

Neither layer keeps state between calls.
"""

import aiohttp
import asyncio
import logging
import time
import uuid
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Sequence

from screencraft.config.settings import Config
from screencraft.utils.errors import InferenceError, TransientInferenceError

from .config import Prompt, VisualInput

logger = logging.getLogger(__name__)

TRANSIENT_STATUS_CODES = (429, 503)
MAX_OUTPUT_TOKENS = 32000

SleepFn = Callable[[float], Awaitable[Any]]


class OpenRouterBackend:
    """Minimal multimodal client for OpenRouter chat completions.

    Usage:
        backend = OpenRouterBackend(api_key="sk-...")
        text = await backend.complete(Prompt(text="...", visual_inputs=(image,)))
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        api_url: Optional[str] = None,
        site_url: Optional[str] = None,
        site_name: Optional[str] = None,
        timeout: Optional[int] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ):
        self.api_key = api_key if api_key is not None else Config.OPENROUTER_API_KEY
        self.model = model or Config.OPENROUTER_MODEL
        self.api_url = api_url or Config.OPENROUTER_API_URL
        self.site_url = site_url or Config.OPENROUTER_SITE_URL
        self.site_name = site_name or Config.OPENROUTER_SITE_NAME
        self.timeout = timeout or Config.INFERENCE_TIMEOUT
        self.temperature = temperature if temperature is not None else Config.INFERENCE_TEMPERATURE
        self.max_tokens = max_tokens or Config.INFERENCE_MAX_TOKENS

        if not self.api_key:
            logger.warning("OPENROUTER_API_KEY not set")

    @classmethod
    def from_settings(cls, settings: Mapping[str, Any]) -> "OpenRouterBackend":
        return cls(
            api_key=settings.get('OPENROUTER_API_KEY'),
            model=settings.get('OPENROUTER_MODEL'),
            api_url=settings.get('OPENROUTER_API_URL'),
            site_url=settings.get('OPENROUTER_SITE_URL'),
            site_name=settings.get('OPENROUTER_SITE_NAME'),
            timeout=settings.get('INFERENCE_TIMEOUT'),
            temperature=settings.get('INFERENCE_TEMPERATURE'),
            max_tokens=settings.get('INFERENCE_MAX_TOKENS'),
        )

    def _headers(self) -> Dict[str, str]:
        """Build request headers."""
        return {
            "Authorization": f"Bearer {self.api_key}",
            "HTTP-Referer": self.site_url,
            "X-Title": self.site_name,
            "Content-Type": "application/json",
            "X-Request-ID": str(uuid.uuid4()),
        }

    def _messages(self, prompt: Prompt) -> List[Dict[str, Any]]:
        """One user message: the prompt text followed by each image in order."""
        content: List[Dict[str, Any]] = [{"type": "text", "text": prompt.text}]
        for image in prompt.visual_inputs:
            content.append({"type": "image_url", "image_url": {"url": image.to_data_uri()}})
        return [{"role": "user", "content": content}]

    def _payload(self, prompt: Prompt) -> Dict[str, Any]:
        """Build request payload."""
        payload: Dict[str, Any] = {
            "model": self.model,
            "messages": self._messages(prompt),
            "temperature": self.temperature,
            "max_tokens": min(self.max_tokens, MAX_OUTPUT_TOKENS),
        }
        if prompt.expect_json:
            payload["response_format"] = {"type": "json_object"}
        return payload

    async def complete(self, prompt: Prompt) -> str:
        """Send one request and return the reply text.

        Raises:
            TransientInferenceError: Backend signalled overload (429/503)
            InferenceError: Any other failure
        """
        if not self.api_key:
            raise InferenceError("Inference backend API key not configured", http_status=500, code='backend_not_configured')

        short_model = self.model.split('/')[-1] if '/' in self.model else self.model
        start_time = time.time()
        logger.info(f"API call -> {short_model} ({len(prompt.visual_inputs)} image(s))")

        try:
            async with aiohttp.ClientSession() as session:
                async with session.post(
                    self.api_url,
                    json=self._payload(prompt),
                    headers=self._headers(),
                    timeout=aiohttp.ClientTimeout(total=self.timeout),
                ) as response:
                    status_code = response.status
                    content_type = response.headers.get('Content-Type', '')
                    if 'application/json' in content_type:
                        try:
                            data = await response.json()
                        except (aiohttp.ContentTypeError, ValueError):
                            text = await response.text()
                            data = {"error": f"Invalid JSON: {text[:200]}"}
                    else:
                        text = await response.text()
                        data = {"error": f"Non-JSON response: {text[:200]}"}
        except asyncio.TimeoutError as e:
            raise InferenceError(f"Inference request timed out after {self.timeout}s") from e
        except aiohttp.ClientError as e:
            raise InferenceError(f"Network error contacting inference backend: {e}") from e

        if status_code != 200:
            error_msg = self._error_message(data)
            logger.warning(f"API error {status_code} ({short_model}): {error_msg}")
            if status_code in TRANSIENT_STATUS_CODES:
                raise TransientInferenceError(
                    f"Inference backend overloaded ({status_code}): {error_msg}",
                    status_code=status_code,
                )
            raise InferenceError(f"Inference backend error ({status_code}): {error_msg}", status_code=status_code)

        if 'choices' not in data or not data['choices']:
            error_msg = self._error_message(data) or 'Missing choices'
            logger.error(f"Malformed 200 response: {error_msg}")
            raise InferenceError(f"Malformed inference response: {error_msg}", status_code=status_code)

        elapsed = time.time() - start_time
        usage = data.get('usage', {}) or {}
        logger.info(
            f"{short_model} in {elapsed:.1f}s "
            f"({usage.get('prompt_tokens', 0)}->{usage.get('completion_tokens', 0)} tokens)"
        )
        return self._extract_content(data)

    @staticmethod
    def _error_message(data: Dict[str, Any]) -> str:
        error_obj = data.get('error', '')
        if isinstance(error_obj, dict):
            return str(error_obj.get('message', data))
        return str(error_obj)

    @staticmethod
    def _extract_content(data: Dict[str, Any]) -> str:
        """Extract text content from a chat completion response."""
        message = data['choices'][0].get('message') or {}
        content = message.get('content') or ''
        if isinstance(content, list):
            content = ''.join(part.get('text', '') for part in content if isinstance(part, dict))
        return str(content).strip()


class InferenceClient:
    """Bounded-retry wrapper around an inference backend.

    Usage:
        client = InferenceClient(OpenRouterBackend())
        reply = await client.invoke(prompt)
    """

    def __init__(
        self,
        backend=None,
        max_attempts: Optional[int] = None,
        backoff_unit: Optional[float] = None,
        sleep: Optional[SleepFn] = None,
    ):
        self.backend = backend if backend is not None else OpenRouterBackend()
        self.max_attempts = max(1, max_attempts if max_attempts is not None else Config.INFERENCE_MAX_ATTEMPTS)
        self.backoff_unit = backoff_unit if backoff_unit is not None else Config.INFERENCE_BACKOFF_SECONDS
        self._sleep = sleep or asyncio.sleep

    def backoff_for(self, attempt: int) -> float:
        """Delay before retrying after failed attempt ``attempt`` (1-based)."""
        return attempt * self.backoff_unit

    async def invoke(self, prompt: Prompt, visual_inputs: Optional[Sequence[VisualInput]] = None) -> str:
        """Send ``prompt`` and return the raw reply text.

        ``visual_inputs`` overrides the images carried by the prompt.

        Raises:
            TransientInferenceError: Overload persisted through every attempt
            InferenceError: Permanent backend failure (never retried)
        """
        if visual_inputs is not None:
            prompt = Prompt(text=prompt.text, visual_inputs=tuple(visual_inputs), expect_json=prompt.expect_json)

        for attempt in range(1, self.max_attempts + 1):
            try:
                return await self.backend.complete(prompt)
            except TransientInferenceError as e:
                if attempt >= self.max_attempts:
                    logger.error(f"Inference failed after {attempt} attempts: {e}")
                    raise
                delay = self.backoff_for(attempt)
                logger.warning(
                    f"Attempt {attempt}/{self.max_attempts} hit transient failure: {e}. "
                    f"Retrying in {delay:.1f}s..."
                )
                await self._sleep(delay)
        # max_attempts >= 1 guarantees a return or raise above
        raise InferenceError("Inference retry loop exited without a result")


_client: Optional[InferenceClient] = None


def get_inference_client() -> InferenceClient:
    """Get shared inference client instance."""
    global _client
    if _client is None:
        _client = InferenceClient()
    return _client
