"""
Pydantic Schemas for the Gateway API

This module defines the request and response models for the Funmi API:
- SessionRequest / SessionResponse: Create or fetch a named session
- MessageResponse: The stored user message and the assistant's reply
- Error responses, metrics, and health check schemas

All schemas follow Pydantic v2 patterns with validation, field
descriptions, and OpenAPI documentation support.
"""

from typing import TYPE_CHECKING, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.registry.providers import Mode

if TYPE_CHECKING:
    from app.dispatcher.results import NormalizedResult
    from app.sessions.store import Session, StoredMessage


# =============================================================================
# REQUEST MODELS
# =============================================================================


class SessionRequest(BaseModel):
    """
    Request body for POST /api/session.

    Example:
        {"session_name": "Trip planning"}
    """

    session_name: str = Field(
        default="New Chat",
        min_length=1,
        max_length=200,
        description="Display name of the session to fetch or create",
    )

    @field_validator("session_name")
    @classmethod
    def validate_name_not_whitespace(cls, v: str) -> str:
        """Ensure the session name is not whitespace only."""
        stripped = v.strip()
        if not stripped:
            raise ValueError("Session name cannot be empty or whitespace only")
        return stripped


# =============================================================================
# RESPONSE MODELS
# =============================================================================


class MessageOut(BaseModel):
    """A stored chat message."""

    role: Literal["user", "funmi"] = Field(..., description="Message author")

    content: str = Field(..., description="Message text, image data URI, or URL")

    timestamp: float = Field(..., description="Unix timestamp of the message")

    mode: Mode | None = Field(
        default=None, description="Mode that produced an assistant message"
    )

    provider: str | None = Field(
        default=None, description="Provider that produced an assistant message"
    )

    degraded: bool = Field(
        default=False,
        description="Whether every provider failed and a canned reply was used",
    )


class SessionResponse(BaseModel):
    """A session with its full message history."""

    session_id: str

    user_id: str

    name: str

    messages: list[MessageOut] = Field(default_factory=list)

    created_at: float

    updated_at: float


class SessionListResponse(BaseModel):
    """Response from GET /api/sessions."""

    sessions: list[SessionResponse] = Field(default_factory=list)


class CurrentUser(BaseModel):
    """The authenticated user making the request."""

    id: str

    email: str


class MessageResponse(BaseModel):
    """
    Response from POST /api/message.

    Example:
        {
            "user_message": {"role": "user", "content": "hi", "timestamp": 1.0},
            "ai_message": {
                "role": "funmi",
                "content": "Hello!",
                "timestamp": 1.2,
                "mode": "Default",
                "provider": "groq",
                "degraded": false
            }
        }
    """

    user_message: MessageOut

    ai_message: MessageOut


# =============================================================================
# ERROR MODELS
# =============================================================================


class ErrorCodes:
    """
    Standard error codes for API responses.

    These codes enable programmatic error handling by clients
    without parsing human-readable messages.
    """

    VALIDATION_ERROR = "VALIDATION_ERROR"
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    FILE_REQUIRED = "FILE_REQUIRED"
    INTERNAL_ERROR = "INTERNAL_ERROR"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"


class ErrorDetail(BaseModel):
    """
    Detailed error information for API error responses.

    Provides machine-readable error codes, human-readable messages,
    and optional field information for validation errors.
    """

    code: str = Field(
        ...,
        description="Machine-readable error code for programmatic handling",
    )

    message: str = Field(
        ...,
        description="Human-readable error message",
    )

    field: str | None = Field(
        default=None,
        description="Field that caused the error (for validation errors)",
    )


class ErrorResponse(BaseModel):
    """
    Standard error response format for all API errors.

    Example:
        {
            "error": {
                "code": "SESSION_NOT_FOUND",
                "message": "Session not found"
            }
        }
    """

    error: ErrorDetail = Field(
        ...,
        description="Error details",
    )

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "error": {
                        "code": "SESSION_NOT_FOUND",
                        "message": "Session not found",
                        "field": None,
                    }
                }
            ]
        }
    )


# =============================================================================
# METRICS MODELS
# =============================================================================


class CapabilityMetrics(BaseModel):
    """Aggregated dispatch metrics for one capability."""

    capability: str

    request_count: int = Field(default=0, ge=0)

    degraded_count: int = Field(default=0, ge=0)

    avg_latency_ms: float = Field(default=0.0, ge=0.0)


class ProviderMetrics(BaseModel):
    """
    Aggregated outcomes for one provider.

    failures maps failure kinds (network_error, http_error,
    malformed_body, empty_result) to counts.
    """

    provider: str

    successes: int = Field(default=0, ge=0)

    failures: dict[str, int] = Field(default_factory=dict)

    @property
    def total_failures(self) -> int:
        return sum(self.failures.values())


class MetricsResponse(BaseModel):
    """
    Response from the /metrics endpoint.

    Example:
        {
            "total_requests": 12,
            "degraded_requests": 1,
            "requests_by_capability": {...},
            "requests_by_mode": {"Default": 9, "Web Search": 3},
            "providers": {...},
            "avg_latency_ms": 640.2
        }
    """

    total_requests: int = Field(default=0, ge=0)

    degraded_requests: int = Field(default=0, ge=0)

    requests_by_capability: dict[str, CapabilityMetrics] = Field(default_factory=dict)

    requests_by_mode: dict[str, int] = Field(default_factory=dict)

    providers: dict[str, ProviderMetrics] = Field(default_factory=dict)

    avg_latency_ms: float = Field(default=0.0, ge=0.0)


# =============================================================================
# HEALTH MODELS
# =============================================================================


class ComponentHealth(BaseModel):
    """Health status of an individual system component."""

    name: str = Field(
        ...,
        description="Component name (e.g., 'classifier', 'providers')",
    )

    status: Literal["healthy", "degraded", "unhealthy"] = Field(
        ...,
        description="Component health status",
    )

    latency_ms: float | None = Field(
        default=None,
        ge=0.0,
        description="Last known latency for this component",
    )

    message: str | None = Field(
        default=None,
        description="Additional status information or error details",
    )


class HealthResponse(BaseModel):
    """
    Response from the /health endpoint.

    Example:
        {
            "status": "healthy",
            "service": "funmi-gateway",
            "version": "0.1.0",
            "components": [{"name": "classifier", "status": "healthy"}],
            "uptime_seconds": 3600.5
        }
    """

    status: Literal["healthy", "degraded", "unhealthy"]

    service: str = Field(default="funmi-gateway")

    version: str

    components: list[ComponentHealth] = Field(default_factory=list)

    uptime_seconds: float | None = Field(default=None, ge=0.0)


# =============================================================================
# CONVERSION UTILITIES
# =============================================================================


def message_out(message: "StoredMessage") -> MessageOut:
    """Convert a stored message to its API model."""
    return MessageOut(
        role=message.role,
        content=message.content,
        timestamp=message.timestamp,
        mode=Mode(message.mode) if message.mode else None,
        provider=message.provider,
        degraded=message.degraded,
    )


def session_response(session: "Session") -> SessionResponse:
    """Convert a stored session to its API model."""
    return SessionResponse(
        session_id=session.session_id,
        user_id=session.user_id,
        name=session.name,
        messages=[message_out(m) for m in session.messages],
        created_at=session.created_at,
        updated_at=session.updated_at,
    )


def assistant_message(result: "NormalizedResult", mode: Mode) -> "StoredMessage":
    """Build the assistant message to store for a dispatch result."""
    from app.sessions.store import StoredMessage

    return StoredMessage(
        role="funmi",
        content=result.content,
        mode=mode.value,
        provider=result.provider,
        degraded=result.degraded,
    )
