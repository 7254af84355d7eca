"""Tests for error mapping and PII redaction."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from bookly.exceptions import (
    ConflictError,
    InputValidationError,
    InvalidTimezoneError,
    NotFoundError,
    StorageError,
)
from bookly.middleware.error_handler import ErrorHandlerMiddleware, register_exception_handlers, status_for
from bookly.middleware.logging import redact_pii


def _build_app(expose_details: bool) -> FastAPI:
    app = FastAPI()
    register_exception_handlers(app, expose_details=expose_details)
    app.add_middleware(ErrorHandlerMiddleware, expose_details=expose_details)

    @app.get("/storage")
    async def storage():
        try:
            raise OperationalError("SELECT", {}, Exception("could not connect to bob@example.com"))
        except OperationalError as e:
            raise StorageError("Failed to load availability") from e

    @app.get("/raw-db")
    async def raw_db():
        raise OperationalError("SELECT", {}, Exception("connection reset"))

    @app.get("/boom")
    async def boom():
        raise RuntimeError("unexpected for carol@example.com")

    return app


class TestStatusMapping:
    @pytest.mark.parametrize(
        "exc,status",
        [
            (NotFoundError("x"), 404),
            (InputValidationError("x"), 400),
            (InvalidTimezoneError("Mars/Base"), 400),
            (ConflictError("x"), 409),
            (StorageError("x"), 503),
        ],
    )
    def test_status_for(self, exc, status):
        assert status_for(exc) == status


class TestHandlers:
    def test_storage_error_in_development_includes_redacted_cause(self):
        client = TestClient(_build_app(expose_details=True))

        response = client.get("/storage")

        assert response.status_code == 503
        body = response.json()
        assert body["error_type"] == "storage_error"
        assert "[REDACTED_EMAIL]" in body["cause"]
        assert "bob@example.com" not in body["cause"]

    def test_storage_error_in_production_hides_cause(self):
        client = TestClient(_build_app(expose_details=False))

        body = client.get("/storage").json()

        assert "cause" not in body
        assert body["detail"] == "Failed to load availability"

    def test_unclassified_sqlalchemy_error_is_503(self):
        client = TestClient(_build_app(expose_details=False))

        response = client.get("/raw-db")

        assert response.status_code == 503
        assert response.json()["error_type"] == "storage_error"

    def test_unhandled_exception_is_500_and_generic_in_production(self):
        client = TestClient(_build_app(expose_details=False), raise_server_exceptions=False)

        response = client.get("/boom")

        assert response.status_code == 500
        assert "carol@example.com" not in response.text
        assert response.json()["error_type"] == "RuntimeError"

    def test_unhandled_exception_detail_redacted_in_development(self):
        client = TestClient(_build_app(expose_details=True), raise_server_exceptions=False)

        response = client.get("/boom")

        assert response.status_code == 500
        assert "[REDACTED_EMAIL]" in response.json()["detail"]


class TestRedactPii:
    def test_redacts_emails(self):
        assert redact_pii("booked by ada@example.com today") == "booked by [REDACTED_EMAIL] today"

    def test_leaves_other_text(self):
        assert redact_pii("/api/booking/slots/30-min") == "/api/booking/slots/30-min"
