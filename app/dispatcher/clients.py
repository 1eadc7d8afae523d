"""
Provider Client - one outbound call per provider attempt.

This module builds the provider-specific HTTP request for a ProviderSpec,
issues it once with httpx, and classifies transport-level failures.

Key components:
- ProviderRequest: Fully built request (method, URL, headers, params, body)
- build_request(): Request builder dispatching on the provider kind
- ProviderClient: Issues the request and returns RawResponse or ProviderFailure

The client never retries and keeps no state between calls: each call opens
its own short-lived AsyncClient. Body-shape problems are left to the
normalizer.
"""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

import httpx

from app.config import SecretResolver
from app.dispatcher.results import FailureKind, Invocation, ProviderFailure, RawResponse
from app.registry.providers import AuthScheme, ProviderKind, ProviderSpec

logger = logging.getLogger(__name__)


@dataclass
class ProviderRequest:
    """HTTP request ready to be sent to a provider."""

    method: str
    url: str
    headers: dict[str, str] = field(default_factory=dict)
    params: dict[str, Any] = field(default_factory=dict)
    json: dict[str, Any] | None = None


def _parse_size(size: str) -> tuple[int, int]:
    """Parse WIDTHxHEIGHT, falling back to 1024x1024."""
    width, _, height = size.lower().partition("x")
    try:
        return int(width), int(height)
    except ValueError:
        return 1024, 1024


def _groq_body(spec: ProviderSpec, invocation: Invocation, system_prompt: str) -> dict:
    messages = []
    if system_prompt:
        messages.append({"role": "system", "content": system_prompt})
    messages.append({"role": "user", "content": invocation.input})
    return {
        "model": spec.model,
        "messages": messages,
        "max_tokens": spec.params.get("max_tokens", 1024),
        "temperature": spec.params.get("temperature", 0.7),
    }


def _huggingface_body(
    spec: ProviderSpec, invocation: Invocation, system_prompt: str
) -> dict:
    # Mistral Instruct prompt format
    prompt = invocation.input
    if system_prompt:
        prompt = f"{system_prompt}\n\n{prompt}"
    return {
        "inputs": f"<s>[INST] {prompt} [/INST]",
        "parameters": {
            "max_new_tokens": spec.params.get("max_new_tokens", 512),
            "return_full_text": False,
        },
    }


def _flux_body(spec: ProviderSpec, invocation: Invocation, system_prompt: str) -> dict:
    width, height = _parse_size(invocation.size or spec.params.get("size", "1024x1024"))
    return {
        "model": spec.model,
        "prompt": invocation.input,
        "width": width,
        "height": height,
        "n": 1,
        "response_format": "b64_json",
    }


def _stability_body(
    spec: ProviderSpec, invocation: Invocation, system_prompt: str
) -> dict:
    width, height = _parse_size(invocation.size or spec.params.get("size", "1024x1024"))
    return {
        "text_prompts": [{"text": invocation.input}],
        "width": width,
        "height": height,
        "samples": spec.params.get("samples", 1),
    }


def _exa_body(spec: ProviderSpec, invocation: Invocation, system_prompt: str) -> dict:
    return {
        "query": invocation.input,
        "numResults": spec.params.get("num_results", 5),
        "contents": {"highlights": True},
    }


def _serper_body(spec: ProviderSpec, invocation: Invocation, system_prompt: str) -> dict:
    return {"q": invocation.input}


BodyBuilder = Callable[[ProviderSpec, Invocation, str], dict]

# Google CSE is a GET with everything in the query string, so it has no body.
_BODY_BUILDERS: dict[ProviderKind, BodyBuilder] = {
    ProviderKind.GROQ_CHAT: _groq_body,
    ProviderKind.HUGGINGFACE_TEXT: _huggingface_body,
    ProviderKind.FLUX_IMAGE: _flux_body,
    ProviderKind.STABILITY_IMAGE: _stability_body,
    ProviderKind.EXA_SEARCH: _exa_body,
    ProviderKind.SERPER_SEARCH: _serper_body,
}


def build_request(
    spec: ProviderSpec,
    invocation: Invocation,
    secret: str,
    system_prompt: str = "",
) -> ProviderRequest:
    """
    Build the HTTP request for one provider.

    Args:
        spec: Provider to call.
        invocation: The dispatch request.
        secret: Resolved credential for the provider.
        system_prompt: Opaque system prompt, used by chat providers only.

    Returns:
        ProviderRequest with auth attached per the provider's auth scheme.
    """
    request = ProviderRequest(
        method=spec.method,
        url=spec.endpoint,
        headers={"Accept": "application/json"},
    )

    match spec.auth_scheme:
        case AuthScheme.BEARER:
            request.headers["Authorization"] = f"Bearer {secret}"
        case AuthScheme.HEADER:
            request.headers[spec.auth_name] = secret
        case AuthScheme.QUERY:
            request.params[spec.auth_name] = secret

    if spec.kind is ProviderKind.GOOGLE_CSE:
        request.params["q"] = invocation.input
        request.params.update(spec.params)
        return request

    builder = _BODY_BUILDERS[spec.kind]
    request.json = builder(spec, invocation, system_prompt)
    return request


class ProviderClient:
    """
    Issues exactly one call to a provider per attempt.

    Credentials come from the injected SecretResolver; the client never
    reads the environment. An optional httpx transport can be injected,
    which is how tests stub provider APIs.
    """

    def __init__(
        self,
        secrets: SecretResolver,
        *,
        timeout: float | None = 30.0,
        system_prompt: str = "",
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._secrets = secrets
        self._timeout = timeout
        self._system_prompt = system_prompt
        self._transport = transport

    async def call(
        self, spec: ProviderSpec, invocation: Invocation
    ) -> RawResponse | ProviderFailure:
        """
        Call a provider once.

        Args:
            spec: Provider to call.
            invocation: The dispatch request.

        Returns:
            RawResponse for any 2xx answer, otherwise a ProviderFailure
            classified as network_error or http_error.
        """
        secret = self._secrets(spec.secret_name)
        if not secret:
            return ProviderFailure(
                kind=FailureKind.NETWORK_ERROR,
                provider=spec.name,
                detail=f"credential '{spec.secret_name}' is not configured",
            )

        request = build_request(spec, invocation, secret, self._system_prompt)
        start_time = time.perf_counter()

        try:
            async with httpx.AsyncClient(
                timeout=self._timeout,
                transport=self._transport,
                follow_redirects=True,
            ) as http_client:
                response = await http_client.request(
                    request.method,
                    request.url,
                    headers=request.headers,
                    params=request.params or None,
                    json=request.json,
                )
        except httpx.TimeoutException as e:
            return ProviderFailure(
                kind=FailureKind.NETWORK_ERROR,
                provider=spec.name,
                detail=f"timed out: {e!r}",
            )
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            return ProviderFailure(
                kind=FailureKind.NETWORK_ERROR,
                provider=spec.name,
                detail=str(e) or type(e).__name__,
            )

        latency_ms = (time.perf_counter() - start_time) * 1000

        if not response.is_success:
            return ProviderFailure(
                kind=FailureKind.HTTP_ERROR,
                provider=spec.name,
                status=response.status_code,
                detail=response.text[:200],
            )

        logger.debug(
            f"Provider {spec.name} answered {response.status_code} "
            f"in {latency_ms:.0f}ms"
        )

        return RawResponse(
            provider=spec.name,
            status_code=response.status_code,
            content=response.content,
            content_type=response.headers.get("content-type", ""),
            latency_ms=latency_ms,
        )
