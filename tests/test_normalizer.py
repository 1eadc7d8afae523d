"""
Response Normalizer Tests

Tests for provider-specific extraction and for the empty_result /
malformed_body classification of unusable bodies.
"""

import json

import pytest

from app.dispatcher import (
    FailureKind,
    ImageResult,
    ProviderFailure,
    RawResponse,
    SnippetResult,
    TextResult,
    normalize,
)
from app.registry import Capability, SearchMode


def _spec(registry, name):
    for spec in registry.list_providers():
        if spec.name == name:
            return spec
    raise KeyError(name)


def _raw(provider, body, content_type="application/json"):
    content = body if isinstance(body, bytes) else json.dumps(body).encode()
    return RawResponse(
        provider=provider, status_code=200, content=content, content_type=content_type
    )


class TestTextExtraction:
    """Tests for chat providers."""

    def test_groq_choices(self, registry, provider_payloads):
        """Groq content comes from choices[0].message.content."""
        result = normalize(_spec(registry, "groq"), _raw("groq", provider_payloads["groq"]))

        assert result == TextResult(content="Hi from Groq", provider="groq")

    def test_groq_output_variant(self, registry):
        """A bare output field is accepted."""
        result = normalize(_spec(registry, "groq"), _raw("groq", {"output": " Hey "}))

        assert isinstance(result, TextResult)
        assert result.content == "Hey"

    @pytest.mark.parametrize(
        "body",
        [
            [{"generated_text": "Hello"}],
            {"generated_text": "Hello"},
        ],
    )
    def test_huggingface_variants(self, registry, body):
        """Hugging Face answers as a list or an object."""
        result = normalize(_spec(registry, "huggingface"), _raw("huggingface", body))

        assert result.content == "Hello"
        assert result.provider == "huggingface"

    @pytest.mark.parametrize(
        "body",
        [
            {"choices": [{"message": {"content": None}}]},
            {"choices": [{"message": {"content": "   "}}]},
            {"choices": []},
            {},
        ],
    )
    def test_groq_empty_content(self, registry, body):
        """Missing, null or blank content is an empty result."""
        result = normalize(_spec(registry, "groq"), _raw("groq", body))

        assert isinstance(result, ProviderFailure)
        assert result.kind == FailureKind.EMPTY_RESULT

    def test_huggingface_empty_list(self, registry):
        """An empty list is an empty result."""
        result = normalize(_spec(registry, "huggingface"), _raw("huggingface", []))

        assert result.kind == FailureKind.EMPTY_RESULT


class TestSnippetExtraction:
    """Tests for search providers."""

    def test_exa_highlight(self, registry, provider_payloads):
        """Exa falls back to the first highlight."""
        result = normalize(_spec(registry, "exa"), _raw("exa", provider_payloads["exa"]))

        assert result == SnippetResult(text="Transformers use attention.", provider="exa")

    def test_exa_prefers_snippet(self, registry):
        """An explicit snippet beats highlights."""
        body = {"results": [{"snippet": "Short.", "highlights": ["Long."]}]}

        result = normalize(_spec(registry, "exa"), _raw("exa", body))

        assert result.text == "Short."

    def test_serper_answer_box(self, registry):
        """Serper's answer box beats organic results."""
        body = {
            "answerBox": {"answer": "Accra"},
            "organic": [{"snippet": "Accra is the capital."}],
        }

        result = normalize(_spec(registry, "serper"), _raw("serper", body))

        assert result.text == "Accra"

    def test_serper_organic(self, registry, provider_payloads):
        """Serper falls back to the first organic snippet."""
        result = normalize(
            _spec(registry, "serper"), _raw("serper", provider_payloads["serper"])
        )

        assert result.text == "Accra is the capital of Ghana."

    def test_google_cse_items(self, registry, provider_payloads):
        """Google CSE uses items[0].snippet."""
        result = normalize(
            _spec(registry, "google_cse"),
            _raw("google_cse", provider_payloads["google_cse"]),
        )

        assert result.text == "Capital city of Ghana."

    def test_exa_empty_results(self, registry):
        """An empty results array is an empty result."""
        result = normalize(_spec(registry, "exa"), _raw("exa", {"results": []}))

        assert result.kind == FailureKind.EMPTY_RESULT


class TestImageExtraction:
    """Tests for image providers."""

    def test_flux_b64(self, registry, provider_payloads):
        """Flux base64 becomes a data URI."""
        result = normalize(_spec(registry, "flux"), _raw("flux", provider_payloads["flux"]))

        assert isinstance(result, ImageResult)
        assert result.data_uri == "data:image/png;base64,Zmx1eA=="
        assert result.provider == "flux"

    def test_flux_top_level_url(self, registry):
        """A top-level url field is accepted."""
        result = normalize(
            _spec(registry, "flux"), _raw("flux", {"url": "https://img.example/a.png"})
        )

        assert result.url == "https://img.example/a.png"

    def test_stability_binary_body(self, registry):
        """A raw image body is base64-encoded with its mime type."""
        raw = _raw("stability", b"\x89PNG", content_type="image/jpeg")

        result = normalize(_spec(registry, "stability"), raw)

        assert result.encoded_bytes == "iVBORw=="
        assert result.mime_type == "image/jpeg"
        assert result.content == "data:image/jpeg;base64,iVBORw=="

    def test_stability_artifact_url(self, registry):
        """Stability artifacts may carry a URL instead of bytes."""
        body = {"artifacts": [{"url": "https://img.example/b.png"}]}

        result = normalize(_spec(registry, "stability"), _raw("stability", body))

        assert result.url == "https://img.example/b.png"


class TestMalformedBodies:
    """Tests for bodies that cannot be parsed per the provider schema."""

    def test_invalid_json(self, registry):
        """Non-JSON text is malformed."""
        raw = _raw("groq", b"<html>oops</html>", content_type="text/html")

        result = normalize(_spec(registry, "groq"), raw)

        assert result.kind == FailureKind.MALFORMED_BODY
        assert result.provider == "groq"

    @pytest.mark.parametrize(
        "name,body",
        [
            ("groq", {"choices": "nope"}),
            ("groq", {"choices": [{"message": {"content": 42}}]}),
            ("serper", {"organic": {"snippet": "x"}}),
            ("flux", {"data": [["b64"]]}),
            ("google_cse", ["items"]),
        ],
    )
    def test_wrong_structure(self, registry, name, body):
        """Wrong types inside the body are malformed."""
        result = normalize(_spec(registry, name), _raw(name, body))

        assert isinstance(result, ProviderFailure)
        assert result.kind == FailureKind.MALFORMED_BODY

    def test_empty_body_is_empty_result(self, registry):
        """A blank 200 body is an empty result."""
        result = normalize(_spec(registry, "exa"), _raw("exa", b""))

        assert result.kind == FailureKind.EMPTY_RESULT


def test_registry_chain_for_research_is_exa_only(registry):
    """Research and web searches use different chains."""
    research = registry.get_chain(Capability.SEARCH, SearchMode.RESEARCH)
    web = registry.get_chain(Capability.SEARCH, SearchMode.WEB)

    assert research.names() == ["exa"]
    assert web.names() == ["serper", "google_cse"]
