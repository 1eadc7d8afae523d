"""
API Endpoint Tests

Integration tests for REST API endpoints using FastAPI TestClient.
Provider APIs are stubbed with httpx.MockTransport; everything else
(classifier, session store, metrics) runs for real.

Test Categories:
1. TestServiceEndpoints - /, /health, /config, /providers, /classify
2. TestSessionEndpoints - /api/session and /api/sessions
3. TestMessageEndpoint - /api/message flow per mode
4. TestMetricsEndpoint - /metrics after dispatches
5. TestErrorHandling - Error envelope and validation
"""


class TestServiceEndpoints:
    """Tests for service information endpoints."""

    def test_root(self, test_client):
        """Root returns service information."""
        response = test_client.get("/")

        assert response.status_code == 200
        assert response.json()["name"] == "Funmi Gateway"

    def test_health_healthy(self, test_client):
        """Health is healthy with credentials configured."""
        response = test_client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["service"] == "funmi-gateway"
        names = {c["name"]: c["status"] for c in data["components"]}
        assert names == {"classifier": "healthy", "providers": "healthy"}
        assert data["uptime_seconds"] >= 0

    def test_health_degraded_without_credentials(self, test_client):
        """Health is degraded when no provider key is configured."""
        from app.config import Settings, get_settings
        from app.main import app

        app.dependency_overrides[get_settings] = lambda: Settings(
            groq_api_key=None,
            huggingface_api_key=None,
            flux_api_key=None,
            stability_api_key=None,
            exa_api_key=None,
            serper_api_key=None,
            google_cse_key=None,
        )

        response = test_client.get("/health")

        assert response.json()["status"] == "degraded"

    def test_config_hides_secrets(self, test_client):
        """Config reports key presence, never key values."""
        response = test_client.get("/config")

        assert response.status_code == 200
        data = response.json()
        assert data["api_keys_configured"]["groq-chat-key"] is True
        assert data["dispatcher"]["provider_timeout_seconds"] == 30.0
        assert "test-groq-key" not in response.text

    def test_providers_lists_chains(self, test_client):
        """Chains are listed in fallback order."""
        response = test_client.get("/providers")

        assert response.status_code == 200
        data = response.json()
        assert data["chains"] == {
            "chat": ["groq", "huggingface"],
            "image": ["flux", "stability"],
            "search/research": ["exa"],
            "search/web": ["serper", "google_cse"],
        }
        assert data["total_providers"] == 7

    def test_classify(self, test_client):
        """Classification returns the inferred mode and capability."""
        response = test_client.post("/classify", params={"content": "draw a cat"})

        assert response.status_code == 200
        data = response.json()
        assert data["mode"] == "Generate Image"
        assert data["capability"] == "image"
        assert data["content_preview"] == "draw a cat"

    def test_classify_empty_content(self, test_client):
        """Empty content fails validation."""
        response = test_client.post("/classify", params={"content": ""})

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"


class TestSessionEndpoints:
    """Tests for session endpoints."""

    def test_create_session(self, test_client):
        """A named session is created for the development user."""
        response = test_client.post("/api/session", json={"session_name": "Trip"})

        assert response.status_code == 200
        data = response.json()
        assert data["name"] == "Trip"
        assert data["user_id"] == "dev-user-001"
        assert data["messages"] == []

    def test_default_session_name(self, test_client):
        """Without a body the session is called New Chat."""
        response = test_client.post("/api/session")

        assert response.status_code == 200
        assert response.json()["name"] == "New Chat"

    def test_same_name_same_session(self, test_client):
        """Requesting an existing name returns the same session."""
        first = test_client.post("/api/session", json={"session_name": "Trip"}).json()
        second = test_client.post("/api/session", json={"session_name": "Trip"}).json()

        assert first["session_id"] == second["session_id"]

    def test_blank_session_name_rejected(self, test_client):
        """Whitespace-only names fail validation."""
        response = test_client.post("/api/session", json={"session_name": "   "})

        assert response.status_code == 422

    def test_list_sessions(self, test_client):
        """All of the user's sessions are listed."""
        test_client.post("/api/session", json={"session_name": "A"})
        test_client.post("/api/session", json={"session_name": "B"})

        response = test_client.get("/api/sessions")

        assert response.status_code == 200
        assert [s["name"] for s in response.json()["sessions"]] == ["A", "B"]


class TestMessageEndpoint:
    """Tests for /api/message."""

    def test_chat_message(
        self, test_client, session_id, fake_providers, provider_payloads
    ):
        """A plain message is answered by the chat chain."""
        fake_providers.respond("groq", json=provider_payloads["groq"])

        response = test_client.post(
            "/api/message", data={"session_id": session_id, "message": "hello there"}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["user_message"]["role"] == "user"
        assert data["user_message"]["content"] == "hello there"
        assert data["ai_message"]["role"] == "funmi"
        assert data["ai_message"]["content"] == "Hi from Groq"
        assert data["ai_message"]["mode"] == "Default"
        assert data["ai_message"]["provider"] == "groq"
        assert data["ai_message"]["degraded"] is False

    def test_messages_stored_in_session(
        self, test_client, session_id, fake_providers, provider_payloads
    ):
        """Both messages are appended to the session."""
        fake_providers.respond("groq", json=provider_payloads["groq"])
        test_client.post(
            "/api/message", data={"session_id": session_id, "message": "hello"}
        )

        sessions = test_client.get("/api/sessions").json()["sessions"]

        messages = sessions[0]["messages"]
        assert [m["role"] for m in messages] == ["user", "funmi"]

    def test_inferred_image_mode(
        self, test_client, session_id, fake_providers, provider_payloads
    ):
        """Image vocabulary routes to the image chain."""
        fake_providers.respond("flux", json=provider_payloads["flux"])

        response = test_client.post(
            "/api/message",
            data={"session_id": session_id, "message": "draw a red bicycle"},
        )

        data = response.json()
        assert data["ai_message"]["mode"] == "Generate Image"
        assert data["ai_message"]["content"] == "data:image/png;base64,Zmx1eA=="
        assert fake_providers.calls() == ["flux"]

    def test_explicit_research_mode(
        self, test_client, session_id, fake_providers, provider_payloads
    ):
        """An explicit mode skips inference."""
        fake_providers.respond("exa", json=provider_payloads["exa"])

        response = test_client.post(
            "/api/message",
            data={
                "session_id": session_id,
                "message": "hello",
                "mode": "Research",
            },
        )

        data = response.json()
        assert data["ai_message"]["mode"] == "Research"
        assert data["ai_message"]["content"] == "Transformers use attention."
        assert fake_providers.calls() == ["exa"]

    def test_default_mode_means_infer(
        self, test_client, session_id, fake_providers, provider_payloads
    ):
        """mode=Default still infers from the message."""
        fake_providers.respond("serper", json=provider_payloads["serper"])

        response = test_client.post(
            "/api/message",
            data={
                "session_id": session_id,
                "message": "who is the president of Ghana",
                "mode": "Default",
            },
        )

        assert response.json()["ai_message"]["mode"] == "Web Search"
        assert fake_providers.calls() == ["serper"]

    def test_analyze_file(
        self, test_client, session_id, fake_providers, provider_payloads
    ):
        """An attached file is analyzed through the chat chain."""
        fake_providers.respond("groq", json=provider_payloads["groq"])

        response = test_client.post(
            "/api/message",
            data={"session_id": session_id, "message": "summarize this"},
            files={"file": ("notes.txt", b"Meeting moved to Friday.", "text/plain")},
        )

        assert response.status_code == 200
        assert response.json()["ai_message"]["mode"] == "Analyze Files"
        body = fake_providers.last_request("groq").read().decode()
        assert "Meeting moved to Friday." in body

    def test_large_upload_read_is_bounded(
        self, test_client, session_id, fake_providers, provider_payloads, monkeypatch
    ):
        """Only enough bytes for the analysis limit are read from an upload."""
        from starlette.datastructures import UploadFile

        sizes = []
        original_read = UploadFile.read

        async def recording_read(self, size=-1):
            sizes.append(size)
            return await original_read(self, size)

        monkeypatch.setattr(UploadFile, "read", recording_read)
        fake_providers.respond("groq", json=provider_payloads["groq"])

        response = test_client.post(
            "/api/message",
            data={"session_id": session_id, "message": "summarize this"},
            files={"file": ("big.txt", b"x" * 100_000, "text/plain")},
        )

        assert response.status_code == 200
        assert 5000 * 4 in sizes

    def test_file_without_message(
        self, test_client, session_id, fake_providers, provider_payloads
    ):
        """A file alone is enough to send a message."""
        fake_providers.respond("groq", json=provider_payloads["groq"])

        response = test_client.post(
            "/api/message",
            data={"session_id": session_id},
            files={"file": ("notes.txt", b"hello", "text/plain")},
        )

        assert response.status_code == 200
        assert response.json()["user_message"]["content"] == "[file] notes.txt"

    def test_analyze_mode_without_file_uses_chat(
        self, test_client, session_id, fake_providers, provider_payloads
    ):
        """Analyze Files without a file chats about the message."""
        fake_providers.respond("groq", json=provider_payloads["groq"])

        response = test_client.post(
            "/api/message",
            data={"session_id": session_id, "message": "summarize our chat"},
        )

        assert response.json()["ai_message"]["mode"] == "Analyze Files"
        body = fake_providers.last_request("groq").read().decode()
        assert "summarize our chat" in body

    def test_degraded_reply(self, test_client, session_id, fake_providers):
        """When every provider fails the degraded default is stored."""
        fake_providers.respond("groq", status_code=503)
        fake_providers.respond("huggingface", status_code=503)

        response = test_client.post(
            "/api/message", data={"session_id": session_id, "message": "hello"}
        )

        assert response.status_code == 200
        ai = response.json()["ai_message"]
        assert ai["degraded"] is True
        assert ai["provider"] is None
        assert ai["content"] == (
            "Sorry, I couldn't generate a response to \"hello\" at the moment."
        )

    def test_unknown_session_404(self, test_client):
        """Unknown sessions are rejected with 404."""
        response = test_client.post(
            "/api/message", data={"session_id": "nope", "message": "hi"}
        )

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "SESSION_NOT_FOUND"

    def test_unknown_mode_rejected(self, test_client, session_id):
        """Modes outside the known set fail validation."""
        response = test_client.post(
            "/api/message",
            data={"session_id": session_id, "message": "hi", "mode": "Video"},
        )

        assert response.status_code == 422
        assert response.json()["error"]["field"] == "mode"

    def test_empty_message_rejected(self, test_client, session_id):
        """A blank message without a file fails validation."""
        response = test_client.post(
            "/api/message", data={"session_id": session_id, "message": "   "}
        )

        assert response.status_code == 422
        assert response.json()["error"]["field"] == "message"

    def test_message_too_long(self, test_client, session_id):
        """Messages over the configured maximum are rejected."""
        response = test_client.post(
            "/api/message",
            data={"session_id": session_id, "message": "x" * 10001},
        )

        assert response.status_code == 422

    def test_missing_session_id(self, test_client):
        """session_id is required."""
        response = test_client.post("/api/message", data={"message": "hi"})

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"


class TestMetricsEndpoint:
    """Tests for /metrics."""

    def test_metrics_empty(self, test_client):
        """A fresh app reports zero requests."""
        response = test_client.get("/metrics")

        assert response.status_code == 200
        assert response.json()["total_requests"] == 0

    def test_metrics_after_fallback(
        self, test_client, session_id, fake_providers, provider_payloads
    ):
        """Fallbacks are visible per provider."""
        fake_providers.respond("groq", status_code=503)
        fake_providers.respond("huggingface", json=provider_payloads["huggingface"])

        test_client.post(
            "/api/message", data={"session_id": session_id, "message": "hello"}
        )
        data = test_client.get("/metrics").json()

        assert data["total_requests"] == 1
        assert data["degraded_requests"] == 0
        assert data["requests_by_mode"] == {"Default": 1}
        assert data["requests_by_capability"]["chat"]["request_count"] == 1
        assert data["providers"]["groq"]["failures"] == {"http_error": 1}
        assert data["providers"]["huggingface"]["successes"] == 1


class TestErrorHandling:
    """Tests for the error envelope."""

    def test_validation_error_format(self, test_client):
        """Validation errors use the standard envelope."""
        response = test_client.post("/api/session", json={"session_name": 5})

        assert response.status_code == 422
        error = response.json()["error"]
        assert error["code"] == "VALIDATION_ERROR"
        assert "session_name" in error["field"]
