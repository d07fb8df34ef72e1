# lumina/utils/image_prompt.py
"""
Fallback for image turns where the model answers with text instead of an
inline image. The text is mined for an image-generation action, e.g.

    {"action": "dalle.text2im", "action_input": "{\"prompt\": \"a red fox\"}"}

and the prompt found there (or the raw text) is turned into a URL on an
external image-synthesis service.
"""
import json
import random
import re
import logging
from typing import Any, Optional
from urllib.parse import quote, urlencode

logger = logging.getLogger("image_prompt")

RAW_PROMPT_LIMIT = 500
SEED_MAX = 1_000_000

_FENCE_RE = re.compile(r"```[a-zA-Z]*")
_DECODER = json.JSONDecoder()


def strip_code_fences(text: str) -> str:
    return _FENCE_RE.sub("", text or "")


def _string_prompt(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _prompt_from_fields(payload: dict) -> Optional[str]:
    return _string_prompt(payload.get("prompt")) or _string_prompt(payload.get("text"))


def _prompt_from_payload(payload: Any) -> Optional[str]:
    if not isinstance(payload, dict):
        return None

    action_input = payload.get("action_input")
    if isinstance(action_input, str):
        try:
            action_input = json.loads(action_input)
        except (ValueError, RecursionError):
            # plain-string action input is the prompt itself
            return _string_prompt(action_input)
    if isinstance(action_input, dict):
        found = _prompt_from_fields(action_input)
        if found:
            return found
    elif isinstance(action_input, str):
        return _string_prompt(action_input)

    return _prompt_from_fields(payload)


def extract_image_prompt(text: str) -> Optional[str]:
    """Return the prompt of an embedded image action, or None if there is none."""
    cleaned = strip_code_fences(text)
    start = cleaned.find("{")
    while start != -1:
        try:
            payload, _ = _DECODER.raw_decode(cleaned, start)
        except (ValueError, RecursionError):
            payload = None
        found = _prompt_from_payload(payload)
        if found:
            return found
        start = cleaned.find("{", start + 1)
    logger.info("No parsable image action in model output")
    return None


def raw_text_prompt(text: str) -> str:
    head = strip_code_fences(text)[:RAW_PROMPT_LIMIT]
    return head.replace("{", "").replace("}", "").strip()


def build_image_url(prompt: str, base_url: str, seed: int) -> str:
    query = urlencode({"width": 1024, "height": 1024, "seed": seed, "nologo": "true"})
    return f"{base_url.rstrip('/')}/{quote(prompt, safe='')}?{query}"


def resolve_image_reference(
    text: str,
    base_url: str,
    rng: Optional[random.Random] = None,
    fallback_prompt: str = "",
) -> str:
    """
    Turn textual model output into an image URL.

    Order: structured action prompt, then the raw text, then the user's own
    prompt when the model returned nothing usable.
    """
    prompt = extract_image_prompt(text) or raw_text_prompt(text) or fallback_prompt.strip()
    seed = (rng or random).randint(0, SEED_MAX)
    return build_image_url(prompt, base_url, seed)
