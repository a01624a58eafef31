import base64
from collections.abc import Callable
from types import SimpleNamespace
from typing import Any

import pytest
import requests


@pytest.fixture
def lambda_context(monkeypatch):
    context = SimpleNamespace(
        aws_request_id="test-request-id",
        function_name="test-function",
        memory_limit_in_mb=256,
        invoked_function_arn="arn:aws:lambda:us-east-1:000000000000:function:test",
        log_group_name="/aws/lambda/test-function",
        log_stream_name="2024/01/01/[$LATEST]test",
    )

    monkeypatch.setattr(
        "aws_lambda_powertools.utilities.typing.LambdaContext",
        lambda: context,
        raising=False,
    )

    return context


FilePart = tuple[str, tuple[Any, ...]]


def build_multipart(files: list[FilePart]) -> tuple[bytes, str]:
    """Encode ``files`` as a multipart/form-data body the way a browser would."""
    prepared = requests.Request(
        "POST",
        "http://localhost/images",
        files=files,
    ).prepare()

    body = prepared.body
    assert isinstance(body, bytes)
    return body, prepared.headers["Content-Type"]


@pytest.fixture
def upload_event() -> Callable[..., dict[str, Any]]:
    """
    Build an API Gateway POST /images event.

    Usage:
        event = upload_event([("Files", ("a.jpg", data, "image/jpeg"))])
    """

    def _event(files: list[FilePart]) -> dict[str, Any]:
        body, content_type = build_multipart(files)

        return {
            "httpMethod": "POST",
            "path": "/images",
            "headers": {"Content-Type": content_type},
            "body": base64.b64encode(body).decode("ascii"),
            "isBase64Encoded": True,
        }

    return _event


@pytest.fixture
def get_image_event() -> Callable[[str, str], dict[str, Any]]:
    def _event(image_id: str, size: str) -> dict[str, Any]:
        return {
            "httpMethod": "GET",
            "path": f"/images/{image_id}/{size}",
            "pathParameters": {"image_id": image_id, "size": size},
        }

    return _event


@pytest.fixture
def get_metadata_event() -> Callable[[str], dict[str, Any]]:
    def _event(image_id: str) -> dict[str, Any]:
        return {
            "httpMethod": "GET",
            "path": f"/images/{image_id}/metadata",
            "pathParameters": {"image_id": image_id},
        }

    return _event
