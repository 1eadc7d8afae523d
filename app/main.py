"""
Funmi Gateway: FastAPI Application Entry Point

This module initializes the FastAPI application and defines the endpoints:
- /health: Health check endpoint
- /config: Non-sensitive configuration values
- /providers: Provider chains per capability
- /classify: Capability inference test endpoint
- /metrics: Dispatch statistics endpoint
- /api/session, /api/sessions, /api/message: Chat sessions

The application uses a lifespan context manager to:
1. Load and validate configuration at startup
2. Configure logging based on settings
3. Build the provider registry and dispatcher once
4. Initialize the capability classifier
"""

from contextlib import asynccontextmanager
import logging
import time

from fastapi import Depends, FastAPI, File, Form, HTTPException, Query, Request, UploadFile
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError

from app import __version__
from app.config import SECRET_FIELDS, Settings, configure_logging, get_settings
from app.dispatcher import Dispatcher
from app.metrics import InvocationMetric, MetricsReporter, MetricsStore
from app.registry import Mode
from app.router import CapabilityClassifier, build_classifier
from app.schemas import (
    ComponentHealth,
    CurrentUser,
    ErrorCodes,
    ErrorResponse,
    HealthResponse,
    MessageResponse,
    MetricsResponse,
    SessionListResponse,
    SessionRequest,
    SessionResponse,
    assistant_message,
    message_out,
    session_response,
)
from app.sessions import SessionStore, StoredMessage

logger = logging.getLogger(__name__)

_start_time: float = 0.0


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler for startup/shutdown events.

    On startup:
    - Loads configuration from environment
    - Configures logging
    - Builds the dispatcher, classifier, and in-memory stores

    On shutdown:
    - Logs shutdown message
    """
    settings = get_settings()
    configure_logging(settings)

    logger.info("=" * 60)
    logger.info("Funmi Gateway starting up...")
    logger.info("=" * 60)
    logger.info(f"Classifier strategy: {settings.classifier_strategy}")
    logger.info(f"Provider timeout: {settings.provider_timeout_seconds}s")
    logger.info(f"Default image size: {settings.image_size}")
    logger.info(f"Debug mode: {'enabled' if settings.debug else 'disabled'}")

    for secret_name, field_name in SECRET_FIELDS.items():
        state = "configured" if getattr(settings, field_name) else "not configured"
        logger.info(f"{secret_name}: {state}")

    dispatcher = Dispatcher.from_settings(settings)
    for label, names in dispatcher.registry.describe().items():
        logger.info(f"  - {label}: {' -> '.join(names)}")

    logger.info("Initializing capability classifier...")
    classifier = build_classifier(settings)
    await classifier.initialize()

    app.state.dispatcher = dispatcher
    app.state.classifier = classifier
    app.state.sessions = SessionStore()
    app.state.metrics = MetricsStore()

    # Record start time for uptime tracking
    global _start_time
    _start_time = time.time()

    logger.info("=" * 60)
    logger.info("Funmi Gateway ready to accept requests")

    yield  # Application runs here

    logger.info("Funmi Gateway shutting down...")


app = FastAPI(
    title="Funmi Gateway",
    description="Multi-provider AI gateway with per-capability fallback chains",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Restrict in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# DEPENDENCIES
# =============================================================================


def get_dispatcher(request: Request) -> Dispatcher:
    return request.app.state.dispatcher


def get_classifier(request: Request) -> CapabilityClassifier:
    return request.app.state.classifier


def get_session_store(request: Request) -> SessionStore:
    return request.app.state.sessions


def get_metrics_store(request: Request) -> MetricsStore:
    return request.app.state.metrics


def get_current_user(settings: Settings = Depends(get_settings)) -> CurrentUser:
    """
    Resolve the requesting user.

    Authentication is not implemented yet; every request is served as
    the configured development user.
    """
    return CurrentUser(id=settings.dev_user_id, email=settings.dev_user_email)


# =============================================================================
# SERVICE ENDPOINTS
# =============================================================================


@app.get("/")
async def root():
    """
    Root endpoint with API information.
    """
    return {
        "name": "Funmi Gateway",
        "description": "Multi-provider AI gateway",
        "version": __version__,
        "docs": "/docs",
        "health": "/health",
        "config": "/config",
    }


@app.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Check system health and component status.",
)
async def health_check(
    request: Request,
    settings: Settings = Depends(get_settings),
):
    """
    Health check endpoint for monitoring and orchestration.

    Checks:
    - Classifier initialization status
    - Provider chains and configured credentials
    - System uptime
    """
    components = []
    overall_status = "healthy"

    classifier = getattr(request.app.state, "classifier", None)
    if classifier is not None and classifier.is_initialized:
        routes_info = classifier.get_routes_info()
        components.append(
            ComponentHealth(
                name="classifier",
                status="healthy",
                latency_ms=routes_info.get("init_latency_ms"),
                message=f"{routes_info['strategy']} classifier ready",
            )
        )
    else:
        components.append(
            ComponentHealth(
                name="classifier",
                status="unhealthy",
                message="Classifier not initialized",
            )
        )
        overall_status = "unhealthy"

    dispatcher = getattr(request.app.state, "dispatcher", None)
    configured = [name for name, field in SECRET_FIELDS.items() if getattr(settings, field)]
    if dispatcher is None:
        components.append(
            ComponentHealth(
                name="providers",
                status="unhealthy",
                message="Dispatcher not initialized",
            )
        )
        overall_status = "unhealthy"
    elif not configured:
        components.append(
            ComponentHealth(
                name="providers",
                status="degraded",
                message="No provider credentials configured; all replies are degraded",
            )
        )
        if overall_status == "healthy":
            overall_status = "degraded"
    else:
        components.append(
            ComponentHealth(
                name="providers",
                status="healthy",
                message=(
                    f"{len(dispatcher.registry.list_providers())} providers, "
                    f"{len(configured)} credentials configured"
                ),
            )
        )

    uptime = time.time() - _start_time if _start_time > 0 else 0.0

    return HealthResponse(
        status=overall_status,
        service="funmi-gateway",
        version=__version__,
        components=components,
        uptime_seconds=uptime,
    )


@app.get("/config")
async def show_config(settings: Settings = Depends(get_settings)):
    """
    Returns non-sensitive configuration values.

    API keys are SecretStr and are NOT exposed in this endpoint; only
    their presence is reported.
    """
    return {
        "dispatcher": {
            "provider_timeout_seconds": settings.provider_timeout_seconds,
            "image_size": settings.image_size,
            "file_analysis_max_chars": settings.file_analysis_max_chars,
            "max_message_length": settings.max_message_length,
        },
        "classifier": {
            "strategy": settings.classifier_strategy,
            "similarity_threshold": settings.similarity_threshold,
            "embedding_model": settings.embedding_model,
        },
        "models": {
            "groq": settings.groq_chat_model,
            "huggingface": settings.huggingface_chat_model,
            "flux": settings.flux_model,
        },
        "server": {
            "host": settings.host,
            "port": settings.port,
            "debug": settings.debug,
        },
        "logging": {
            "level": settings.log_level,
        },
        "api_keys_configured": {
            name: bool(getattr(settings, field)) for name, field in SECRET_FIELDS.items()
        },
    }


@app.get("/providers")
async def list_providers(dispatcher: Dispatcher = Depends(get_dispatcher)):
    """
    List provider chains and provider metadata.

    Chains are listed in fallback order: the first provider is tried
    first, the next only after it fails.
    """
    registry = dispatcher.registry
    return {
        "chains": registry.describe(),
        "providers": [
            {
                "name": spec.name,
                "capability": spec.capability.value,
                "kind": spec.kind.value,
                "endpoint": spec.endpoint,
                "method": spec.method,
                "model": spec.model,
            }
            for spec in registry.list_providers()
        ],
        "total_providers": len(registry.list_providers()),
    }


@app.post("/classify")
async def classify(
    content: str = Query(
        ...,
        description="The message to classify",
        min_length=1,
        max_length=10000,
        examples=["draw a cat in a hat", "who is the president of Ghana", "hello"],
    ),
    classifier: CapabilityClassifier = Depends(get_classifier),
):
    """
    Test capability inference without dispatching.

    Returns:
        - content_preview: First 100 chars of input
        - mode: Inferred request mode
        - capability: Capability the mode maps to
        - confidence: Match confidence (0.0-1.0)
        - latency_ms: Inference time
        - fallback_used: Whether the default mode was used
        - matched: Matching keyword or route name
    """
    choice = await classifier.route(content)
    return {
        "content_preview": content[:100] + "..." if len(content) > 100 else content,
        **choice.to_dict(),
    }


@app.get(
    "/metrics",
    response_model=MetricsResponse,
    summary="Get metrics",
    description="Retrieve aggregated dispatch metrics.",
)
async def get_metrics(store: MetricsStore = Depends(get_metrics_store)):
    """
    Return aggregated metrics for monitoring.

    Includes:
    - Request counts by capability and mode
    - Provider successes and failures by kind
    - Degraded reply count
    - Average chain latency
    """
    return MetricsReporter(store).generate_report()


# =============================================================================
# CHAT API
# =============================================================================


@app.post(
    "/api/session",
    response_model=SessionResponse,
    summary="Get or create a session",
)
async def create_session(
    body: SessionRequest | None = None,
    user: CurrentUser = Depends(get_current_user),
    sessions: SessionStore = Depends(get_session_store),
):
    """
    Fetch the user's session with the given name, creating it if needed.
    """
    name = body.session_name if body else SessionRequest().session_name
    session = sessions.get_or_create(user.id, name)
    logger.info(f"Session '{session.name}' ({session.session_id}) ready for {user.id}")
    return session_response(session)


@app.get(
    "/api/sessions",
    response_model=SessionListResponse,
    summary="List sessions",
)
async def list_sessions(
    user: CurrentUser = Depends(get_current_user),
    sessions: SessionStore = Depends(get_session_store),
):
    """List every session owned by the user, oldest first."""
    return SessionListResponse(
        sessions=[session_response(s) for s in sessions.list_for_user(user.id)]
    )


@app.post(
    "/api/message",
    response_model=MessageResponse,
    responses={
        404: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
    summary="Send a message",
    description="Store a message, dispatch it to the matching capability, and store the reply.",
)
async def send_message(
    session_id: str = Form(...),
    message: str = Form(default=""),
    mode: str | None = Form(default=None),
    file: UploadFile | None = File(default=None),
    user: CurrentUser = Depends(get_current_user),
    settings: Settings = Depends(get_settings),
    sessions: SessionStore = Depends(get_session_store),
    dispatcher: Dispatcher = Depends(get_dispatcher),
    classifier: CapabilityClassifier = Depends(get_classifier),
    metrics: MetricsStore = Depends(get_metrics_store),
):
    """
    Main chat endpoint.

    Flow:
    1. Check the session belongs to the user
    2. Resolve the mode (explicit, or inferred from the message)
    3. Store the user message
    4. Dispatch to the capability's provider chain
    5. Record metrics and store the reply
    """
    if sessions.get(session_id, user.id) is None:
        raise HTTPException(
            status_code=404,
            detail={"code": ErrorCodes.SESSION_NOT_FOUND, "message": "Session not found"},
        )

    message = message.strip()
    if len(message) > settings.max_message_length:
        raise HTTPException(
            status_code=422,
            detail={
                "code": ErrorCodes.VALIDATION_ERROR,
                "message": (
                    f"Message cannot exceed {settings.max_message_length} characters"
                ),
                "field": "message",
            },
        )
    if not message and file is None:
        raise HTTPException(
            status_code=422,
            detail={
                "code": ErrorCodes.VALIDATION_ERROR,
                "message": "Message cannot be empty",
                "field": "message",
            },
        )

    selected = _resolve_explicit_mode(mode)
    if selected is None:
        if file is not None:
            selected = Mode.ANALYZE_FILES
        else:
            choice = await classifier.route(message)
            selected = choice.mode
            logger.info(
                f"Inferred mode '{selected.value}' "
                f"(confidence {choice.confidence:.2f}, fallback={choice.fallback_used})"
            )

    user_message = StoredMessage(
        role="user",
        content=message or f"[file] {file.filename}",
        mode=selected.value,
    )
    sessions.append_message(session_id, user_message)

    start_time = time.perf_counter()
    if selected is Mode.ANALYZE_FILES and file is not None:
        # UTF-8 needs at most 4 bytes per character
        data = await file.read(settings.file_analysis_max_chars * 4)
        result = await dispatcher.analyze_file(data, message)
    else:
        result = await dispatcher.invoke(
            selected.capability,
            message,
            sub_mode=selected.search_mode,
        )
    latency_ms = (time.perf_counter() - start_time) * 1000

    metrics.record(
        InvocationMetric.from_result(
            result,
            capability=selected.capability.value,
            mode=selected.value,
            latency_ms=latency_ms,
        )
    )

    ai_message = assistant_message(result, selected)
    sessions.append_message(session_id, ai_message)

    return MessageResponse(
        user_message=message_out(user_message),
        ai_message=message_out(ai_message),
    )


def _resolve_explicit_mode(value: str | None) -> Mode | None:
    """
    Parse the mode form field.

    Missing, blank, and "Default" mean "infer from the message".
    """
    if value is None or not value.strip():
        return None
    try:
        mode = Mode(value.strip())
    except ValueError:
        raise HTTPException(
            status_code=422,
            detail={
                "code": ErrorCodes.VALIDATION_ERROR,
                "message": f"Unknown mode '{value}'. Expected one of: "
                + ", ".join(m.value for m in Mode),
                "field": "mode",
            },
        ) from None
    return None if mode is Mode.DEFAULT else mode


# =============================================================================
# EXCEPTION HANDLERS
# =============================================================================


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """
    Handle Pydantic validation errors.

    Returns a consistent error response format with the first validation
    error's details for client-side error handling.
    """
    errors = exc.errors()
    first_error = errors[0] if errors else {}

    return JSONResponse(
        status_code=422,
        content={
            "error": {
                "code": ErrorCodes.VALIDATION_ERROR,
                "message": first_error.get("msg", "Validation failed"),
                "field": ".".join(str(loc) for loc in first_error.get("loc", [])),
            }
        },
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(
    request: Request, exc: HTTPException
) -> JSONResponse:
    """
    Handle HTTP exceptions with consistent format.

    Ensures all HTTP errors return a consistent error response structure
    for predictable client-side error handling.
    """
    detail = exc.detail
    if isinstance(detail, dict):
        return JSONResponse(status_code=exc.status_code, content={"error": detail})
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": {"code": "HTTP_ERROR", "message": str(detail)}},
    )


@app.exception_handler(Exception)
async def general_exception_handler(
    request: Request, exc: Exception
) -> JSONResponse:
    """
    Handle unexpected exceptions.

    Logs the full exception for debugging and returns a generic error
    response to avoid leaking implementation details.
    """
    logger.exception("Unhandled exception")
    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": ErrorCodes.INTERNAL_ERROR,
                "message": "An unexpected error occurred",
            }
        },
    )


if __name__ == "__main__":
    import uvicorn

    _settings = get_settings()
    uvicorn.run("app.main:app", host=_settings.host, port=_settings.port)
