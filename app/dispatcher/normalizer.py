"""
Response Normalizer - extract the canonical payload from provider responses.

Every provider kind has its own response contract and its own extraction
function. Extraction never guesses through missing keys silently: a body
that is not JSON, or whose structure has the wrong type, is classified as
malformed_body; a well-formed body whose payload field is missing, null
or blank is classified as empty_result so the chain can advance.

Known shape variants:
- Groq: choices[0].message.content, or a bare "output" field
- Hugging Face: [{"generated_text": ...}] or {"generated_text": ...}
- Flux: data[0].b64_json, data[0].url, or a top-level "url"
- Stability: artifacts[0].base64 or artifacts[0].url, or a raw image body
- Exa: results[0].snippet / highlights[0] / summary / text
- Serper: answerBox.answer / answerBox.snippet, else organic[0].snippet
- Google CSE: items[0].snippet
"""

import base64
from collections.abc import Callable
from typing import Any

from app.dispatcher.results import (
    FailureKind,
    ImageResult,
    NormalizedResult,
    ProviderFailure,
    RawResponse,
    SnippetResult,
    TextResult,
)
from app.registry.providers import ProviderKind, ProviderSpec


class MalformedBodyError(ValueError):
    """Raised by extractors when the body structure has the wrong type."""


def _first(value: Any, field: str) -> Any:
    """First element of a list field; None when absent or empty."""
    if value is None:
        return None
    if not isinstance(value, list):
        raise MalformedBodyError(f"'{field}' is not a list")
    return value[0] if value else None


def _get(obj: Any, key: str) -> Any:
    """Dict lookup that treats a non-dict container as malformed."""
    if obj is None:
        return None
    if not isinstance(obj, dict):
        raise MalformedBodyError(f"expected an object around '{key}'")
    return obj.get(key)


def _text(value: Any) -> str | None:
    """Stripped non-empty string, or None."""
    if value is None:
        return None
    if not isinstance(value, str):
        raise MalformedBodyError(f"expected text, got {type(value).__name__}")
    value = value.strip()
    return value or None


def _extract_groq(body: Any) -> str | None:
    choice = _first(_get(body, "choices"), "choices")
    content = _get(_get(choice, "message"), "content")
    if content is None:
        content = _get(body, "output")
    return _text(content)


def _extract_huggingface(body: Any) -> str | None:
    if isinstance(body, list):
        body = body[0] if body else None
    return _text(_get(body, "generated_text"))


def _extract_exa(body: Any) -> str | None:
    result = _first(_get(body, "results"), "results")
    if result is None:
        return None
    for key in ("snippet", "summary", "text"):
        text = _text(_get(result, key))
        if text:
            return text
    highlight = _first(_get(result, "highlights"), "highlights")
    return _text(highlight)


def _extract_serper(body: Any) -> str | None:
    answer_box = _get(body, "answerBox")
    for key in ("answer", "snippet"):
        text = _text(_get(answer_box, key))
        if text:
            return text
    organic = _first(_get(body, "organic"), "organic")
    return _text(_get(organic, "snippet"))


def _extract_google_cse(body: Any) -> str | None:
    item = _first(_get(body, "items"), "items")
    return _text(_get(item, "snippet"))


def _extract_flux(body: Any) -> ImageResult | None:
    item = _first(_get(body, "data"), "data")
    encoded = _text(_get(item, "b64_json"))
    if encoded:
        return ImageResult(encoded_bytes=encoded)
    url = _text(_get(item, "url")) or _text(_get(body, "url"))
    if url:
        return ImageResult(url=url)
    return None


def _extract_stability(body: Any) -> ImageResult | None:
    artifact = _first(_get(body, "artifacts"), "artifacts")
    encoded = _text(_get(artifact, "base64"))
    if encoded:
        return ImageResult(encoded_bytes=encoded)
    url = _text(_get(artifact, "url"))
    if url:
        return ImageResult(url=url)
    return None


TextExtractor = Callable[[Any], str | None]
ImageExtractor = Callable[[Any], ImageResult | None]

_TEXT_EXTRACTORS: dict[ProviderKind, TextExtractor] = {
    ProviderKind.GROQ_CHAT: _extract_groq,
    ProviderKind.HUGGINGFACE_TEXT: _extract_huggingface,
}

_SNIPPET_EXTRACTORS: dict[ProviderKind, TextExtractor] = {
    ProviderKind.EXA_SEARCH: _extract_exa,
    ProviderKind.SERPER_SEARCH: _extract_serper,
    ProviderKind.GOOGLE_CSE: _extract_google_cse,
}

_IMAGE_EXTRACTORS: dict[ProviderKind, ImageExtractor] = {
    ProviderKind.FLUX_IMAGE: _extract_flux,
    ProviderKind.STABILITY_IMAGE: _extract_stability,
}


def _failure(spec: ProviderSpec, kind: FailureKind, detail: str) -> ProviderFailure:
    return ProviderFailure(kind=kind, provider=spec.name, detail=detail)


def normalize(
    spec: ProviderSpec, raw: RawResponse
) -> NormalizedResult | ProviderFailure:
    """
    Extract the canonical result from a provider response.

    Args:
        spec: Provider that produced the response (selects the extractor).
        raw: The 2xx response to normalize.

    Returns:
        TextResult, ImageResult or SnippetResult tagged with the provider
        name, or a ProviderFailure classified as malformed_body or
        empty_result.
    """
    content_type = raw.content_type.lower()

    # Binary image answer (e.g. Stability with Accept: image/png)
    if spec.kind in _IMAGE_EXTRACTORS and content_type.startswith("image/"):
        if not raw.content:
            return _failure(spec, FailureKind.EMPTY_RESULT, "empty image body")
        return ImageResult(
            encoded_bytes=base64.b64encode(raw.content).decode("ascii"),
            mime_type=content_type.split(";")[0].strip(),
            provider=spec.name,
        )

    if not raw.content.strip():
        return _failure(spec, FailureKind.EMPTY_RESULT, "empty response body")

    try:
        body = raw.json()
    except ValueError as e:
        return _failure(spec, FailureKind.MALFORMED_BODY, f"invalid JSON: {e}")

    try:
        if spec.kind in _TEXT_EXTRACTORS:
            text = _TEXT_EXTRACTORS[spec.kind](body)
            if text:
                return TextResult(content=text, provider=spec.name)
        elif spec.kind in _SNIPPET_EXTRACTORS:
            text = _SNIPPET_EXTRACTORS[spec.kind](body)
            if text:
                return SnippetResult(text=text, provider=spec.name)
        elif spec.kind in _IMAGE_EXTRACTORS:
            image = _IMAGE_EXTRACTORS[spec.kind](body)
            if image is not None:
                return ImageResult(
                    encoded_bytes=image.encoded_bytes,
                    mime_type=image.mime_type,
                    url=image.url,
                    provider=spec.name,
                )
        else:
            return _failure(
                spec, FailureKind.MALFORMED_BODY, f"no extractor for {spec.kind.value}"
            )
    except MalformedBodyError as e:
        return _failure(spec, FailureKind.MALFORMED_BODY, str(e))

    return _failure(spec, FailureKind.EMPTY_RESULT, "expected result field is empty")
