"""Tests for GenerationClient against a stubbed model factory."""
import base64
import random
from types import SimpleNamespace

import pytest

from lumina.services.llm_services import GenerationClient


def _response(*parts):
    return SimpleNamespace(candidates=[SimpleNamespace(content=SimpleNamespace(parts=list(parts)))])


def _text_part(text):
    return SimpleNamespace(text=text, inline_data=None)


def _image_part(data, mime="image/png"):
    return SimpleNamespace(text="", inline_data=SimpleNamespace(data=data, mime_type=mime))


class StubModels:
    def __init__(self, response):
        self.response = response
        self.requested = []
        self.prompts = []

    def __call__(self, name):
        self.requested.append(name)
        return self

    def generate_content(self, prompt):
        self.prompts.append(prompt)
        return self.response


def _client(models):
    return GenerationClient(
        api_key="k",
        text_model="text-model",
        image_model="image-model",
        title_model="title-model",
        image_service_url="https://img.example/prompt",
        model_factory=models,
        rng=random.Random(3),
    )


def test_text_mode_returns_text_verbatim():
    models = StubModels(_response(_text_part("Hello "), _text_part("world")))
    assert _client(models).generate("hi") == "Hello world"
    assert models.requested == ["text-model"]
    assert models.prompts == ["hi"]


def test_image_mode_inline_data_becomes_data_uri():
    raw = b"\x89PNG fake"
    models = StubModels(_response(_text_part("here you go"), _image_part(raw, "image/jpeg")))
    result = _client(models).generate("a fox", mode="image")
    assert result == "data:image/jpeg;base64," + base64.b64encode(raw).decode()
    assert models.requested == ["image-model"]


def test_image_mode_string_payload_passed_through():
    models = StubModels(_response(_image_part("QUJD")))
    assert _client(models).generate("x", mode="image") == "data:image/png;base64,QUJD"


def test_image_mode_falls_back_to_parsed_action():
    text = '{"action_input": "{\\"prompt\\":\\"a red fox\\"}"}'
    models = StubModels(_response(_text_part(text)))
    result = _client(models).generate("draw a fox", mode="image")
    assert result.startswith("https://img.example/prompt/a%20red%20fox?")


def test_image_mode_falls_back_to_raw_text():
    models = StubModels(_response(_text_part("I cannot make that.")))
    result = _client(models).generate("draw", mode="image")
    assert result.startswith("https://img.example/prompt/I%20cannot%20make%20that.?")


def test_complete_text_uses_title_model():
    models = StubModels(_response(_text_part("Three Word Title")))
    assert _client(models).complete_text("title please") == "Three Word Title"
    assert models.requested == ["title-model"]


def test_unknown_mode_rejected():
    with pytest.raises(ValueError):
        _client(StubModels(_response())).generate("x", mode="video")


def test_missing_api_key_raises():
    client = GenerationClient(api_key=None, text_model="t", image_model="i")
    with pytest.raises(RuntimeError, match="GOOGLE_API_KEY"):
        client.generate("hi")
