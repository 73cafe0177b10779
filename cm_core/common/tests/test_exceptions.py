# cm_core/common/tests/test_exceptions.py
import pytest
from django.core.exceptions import ValidationError as DjangoValidationError
from django.http import Http404
from rest_framework.exceptions import NotFound, PermissionDenied, ValidationError

from cm_core.common.api.exceptions import api_exception_handler, error_code, split_payload


def test_error_code_mapping():
    assert error_code(ValidationError("x"), 400) == "validation_error"
    assert error_code(NotFound(), 404) == "not_found"
    assert error_code(PermissionDenied(), 403) == "permission_denied"
    assert error_code(Http404(), 404) == "not_found"
    assert error_code(RuntimeError(), 500) == "server_error"
    assert error_code(RuntimeError(), 418) == "error"


def test_split_payload_detail_and_field_errors():
    assert split_payload({"detail": "Nope."}) == ("Nope.", None)
    assert split_payload({"detail": "Nope.", "extra": 1}) == ("Nope.", {"extra": 1})

    errors = {"file": ["Arquivo vazio."], "name": ["Obrigatorio."]}
    assert split_payload(errors) == ("Arquivo vazio.", errors)
    assert split_payload([]) == ("Request failed.", [])


def test_django_validation_error_becomes_400():
    response = api_exception_handler(DjangoValidationError({"name": ["Invalido."]}), {"request": None})

    assert response.status_code == 400
    error = response.data["error"]
    assert error["code"] == "validation_error"
    assert error["message"] == "Invalido."
    assert error["details"] == {"name": ["Invalido."]}
    assert response["X-Request-ID"] == error["request_id"]


def test_unhandled_error_is_server_error():
    response = api_exception_handler(RuntimeError("boom"), {"request": None})

    assert response.status_code == 500
    assert response.data["error"]["code"] == "server_error"
    assert response.data["error"]["details"] is None


@pytest.mark.django_db
def test_envelope_echoes_client_request_id(api_client):
    r = api_client.get("/api/v1/decision-tables/999999/", HTTP_X_REQUEST_ID="abc-123")

    assert r.status_code == 404
    assert r.data["error"] == {
        "code": "not_found",
        "message": "Decision table not found.",
        "details": None,
        "request_id": "abc-123",
    }
    assert r["X-Request-ID"] == "abc-123"


@pytest.mark.django_db
def test_envelope_generates_request_id(api_client):
    r = api_client.get("/api/v1/decision-tables/999999/")

    assert r.status_code == 404
    assert len(r.data["error"]["request_id"]) == 32
    assert r["X-Request-ID"] == r.data["error"]["request_id"]
