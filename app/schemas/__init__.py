"""
Schemas module: Pydantic request/response models.

This module provides validated data models for the Funmi API:
- Session and message models for the /api endpoints
- Error response models for consistent error handling
- Metrics and health check response models

Example usage:
    from app.schemas import SessionRequest, session_response

    request = SessionRequest(session_name="Trip planning")
    response = session_response(store.get_or_create(user_id, request.session_name))
"""

from app.schemas.chat import (
    # Request models
    SessionRequest,
    # Response models
    MessageOut,
    MessageResponse,
    SessionResponse,
    SessionListResponse,
    CurrentUser,
    # Error models
    ErrorCodes,
    ErrorDetail,
    ErrorResponse,
    # Metrics models
    CapabilityMetrics,
    MetricsResponse,
    ProviderMetrics,
    # Health models
    ComponentHealth,
    HealthResponse,
    # Conversion utilities
    assistant_message,
    message_out,
    session_response,
)

# Re-export Mode from registry for convenience
from app.registry.providers import Mode

__all__ = [
    # Enums
    "Mode",
    # Request models
    "SessionRequest",
    # Response models
    "MessageOut",
    "SessionResponse",
    "SessionListResponse",
    "CurrentUser",
    "MessageResponse",
    # Error models
    "ErrorCodes",
    "ErrorDetail",
    "ErrorResponse",
    # Metrics models
    "CapabilityMetrics",
    "ProviderMetrics",
    "MetricsResponse",
    # Health models
    "ComponentHealth",
    "HealthResponse",
    # Conversion utilities
    "message_out",
    "session_response",
    "assistant_message",
]
