"""Response Normalizer and Structured Parser
==========================================

``normalize`` isolates the JSON object inside a chatty backend reply.
``ResponseParser`` parses it against an expected reply shape and, on
failure, spends exactly one correction round-trip before settling for a
degraded result. It never raises for bad input text.
"""

import json
import logging
import re
from typing import Any, Dict, Optional, Sequence, Tuple

from screencraft.utils.errors import SchemaError

from .config import PARSE_ERROR_KEY, RAW_TEXT_KEY, ParsedManifest, Prompt, VisualInput
from .prompt_builder import PromptBuilder, get_prompt_builder

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```[a-zA-Z0-9_+\-]*")


def normalize(text: Any) -> str:
    """Strip Markdown fences and prose around the outermost ``{...}`` block.

    Text without a ``{`` followed later by a ``}`` is returned with fence
    tokens removed and surrounding whitespace stripped. Idempotent.
    """
    if text is None:
        return ""
    if not isinstance(text, str):
        text = str(text)

    start = text.find('{')
    end = text.rfind('}')
    if start != -1 and end > start:
        return text[start:end + 1]

    cleaned = text
    while True:
        stripped = _FENCE_RE.sub('', cleaned)
        if stripped == cleaned:
            break
        cleaned = stripped
    return cleaned.strip()


def try_parse(text: Any, schema=ParsedManifest) -> Tuple[Optional[Any], Optional[str]]:
    """Parse ``normalize(text)`` and validate it against ``schema``.

    Returns:
        Tuple of (payload, None) on success or (None, error message)
    """
    candidate = normalize(text)
    try:
        # strict=False tolerates raw newlines inside string values
        payload = json.loads(candidate, strict=False)
    except ValueError as e:
        return None, f"invalid JSON: {e}"
    except RecursionError:
        return None, "invalid JSON: nesting too deep"
    try:
        schema.validate_payload(payload)
    except SchemaError as e:
        return None, f"unexpected shape: {e}"
    return payload, None


def degraded_payload(raw_text: Any, error: str) -> Dict[str, Any]:
    """Shape returned when neither the reply nor its correction parsed."""
    return {
        'files': {},
        RAW_TEXT_KEY: raw_text if isinstance(raw_text, str) else str(raw_text),
        PARSE_ERROR_KEY: error,
    }


def is_degraded(payload: Any) -> bool:
    return isinstance(payload, dict) and PARSE_ERROR_KEY in payload


class ResponseParser:
    """Parses backend replies with a single correction round."""

    def __init__(self, inference_client, prompt_builder: Optional[PromptBuilder] = None):
        self.inference_client = inference_client
        self.prompt_builder = prompt_builder or get_prompt_builder()

    async def parse_with_correction(
        self,
        text: Any,
        original_prompt: Prompt,
        visual_inputs: Optional[Sequence[VisualInput]] = None,
        schema=ParsedManifest,
    ) -> Dict[str, Any]:
        """Parse ``text``; on failure ask the backend once to repair it.

        Args:
            text: Raw backend reply
            original_prompt: Prompt that produced ``text``
            visual_inputs: Images to resend with the correction (defaults to
                the original prompt's images)
            schema: Reply shape class exposing ``validate_payload``

        Returns:
            The parsed payload, or a degraded ``{"files": {}, "_raw": ...,
            "_parse_error": ...}`` mapping. Never raises for bad replies.

        Raises:
            InferenceError: The correction request itself failed
        """
        payload, error = try_parse(text, schema)
        if error is None:
            return payload

        logger.warning(f"{schema.__name__} reply did not parse ({error}); requesting one correction")
        correction = self.prompt_builder.build_correction('' if text is None else str(text), original_prompt, error)
        images = original_prompt.visual_inputs if visual_inputs is None else tuple(visual_inputs)

        corrected = await self.inference_client.invoke(correction, images)

        payload, corrected_error = try_parse(corrected, schema)
        if corrected_error is None:
            logger.info(f"{schema.__name__} reply repaired by correction round")
            return payload

        logger.warning(f"Corrected {schema.__name__} reply still invalid ({corrected_error}); returning degraded result")
        return degraded_payload(corrected, corrected_error)

    async def parse_manifest(
        self,
        text: Any,
        original_prompt: Prompt,
        visual_inputs: Optional[Sequence[VisualInput]] = None,
    ) -> ParsedManifest:
        payload = await self.parse_with_correction(text, original_prompt, visual_inputs, schema=ParsedManifest)
        return ParsedManifest.from_payload(payload)
