import base64
import logging
import random
from typing import Any, Callable, Optional

import google.generativeai as genai

from lumina.utils.image_prompt import resolve_image_reference

# Set up logger
logger = logging.getLogger("llm_service")
logging.basicConfig(level=logging.INFO)

MODES = ("text", "image")


def _parts_of(response: Any) -> list:
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return []
    content = getattr(candidates[0], "content", None)
    return list(getattr(content, "parts", None) or [])


def _text_of(response: Any) -> str:
    """Join the text parts of a response; image-only parts are skipped."""
    parts = _parts_of(response)
    if not parts:
        # responses without candidates (blocked prompts) still expose .text
        return getattr(response, "text", "") or ""
    return "".join(getattr(part, "text", "") or "" for part in parts)


def _inline_image_of(response: Any) -> Optional[str]:
    for part in _parts_of(response):
        inline = getattr(part, "inline_data", None)
        data = getattr(inline, "data", None) if inline is not None else None
        if not data:
            continue
        encoded = base64.b64encode(data).decode("ascii") if isinstance(data, bytes) else str(data)
        return f"data:{inline.mime_type};base64,{encoded}"
    return None


class GenerationClient:
    """Thin wrapper over the Gemini SDK, one model per turn mode."""

    def __init__(
        self,
        api_key: Optional[str],
        text_model: str,
        image_model: str,
        title_model: Optional[str] = None,
        image_service_url: str = "https://image.pollinations.ai/prompt",
        model_factory: Optional[Callable[[str], Any]] = None,
        rng: Optional[random.Random] = None,
    ):
        self.api_key = api_key
        self.text_model = text_model
        self.image_model = image_model
        self.title_model = title_model or text_model
        self.image_service_url = image_service_url
        self._model_factory = model_factory
        self._rng = rng or random.Random()

    @classmethod
    def from_settings(cls, settings) -> "GenerationClient":
        return cls(
            api_key=settings.google_api_key,
            text_model=settings.text_model,
            image_model=settings.image_model,
            title_model=settings.title_model,
            image_service_url=settings.image_service_url,
        )

    def _model(self, name: str):
        if self._model_factory is not None:
            return self._model_factory(name)
        if not self.api_key:
            raise RuntimeError("GOOGLE_API_KEY not set")
        genai.configure(api_key=self.api_key)
        return genai.GenerativeModel(name)

    def generate(self, prompt: str, mode: str = "text") -> str:
        """
        Send `prompt` to the model picked by `mode` and return a single string.

        Text mode returns the model text. Image mode returns a data URI for an
        inline image, otherwise an image-service URL derived from the text.
        """
        if mode not in MODES:
            raise ValueError(f"Unsupported generation mode: {mode}")

        model_name = self.image_model if mode == "image" else self.text_model
        response = self._model(model_name).generate_content(prompt)

        if mode == "text":
            return _text_of(response)

        inline = _inline_image_of(response)
        if inline:
            logger.info(f"Image turn answered with inline data from {model_name}")
            return inline

        text = _text_of(response)
        logger.info(f"No inline image from {model_name}; falling back to image service: {text[:100]}")
        return resolve_image_reference(
            text,
            self.image_service_url,
            rng=self._rng,
            fallback_prompt=prompt,
        )

    def complete_text(self, prompt: str) -> str:
        response = self._model(self.title_model).generate_content(prompt)
        return _text_of(response)
