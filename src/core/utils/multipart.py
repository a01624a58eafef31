"""multipart/form-data parsing for API Gateway proxy events."""

import base64
import binascii
from email import policy
from email.message import EmailMessage
from email.parser import BytesParser
from typing import Any, cast

from core.models.upload import UploadedFile


def get_header(event: dict[str, Any], name: str) -> str | None:
    """Case-insensitive header lookup on an API Gateway event."""
    headers = event.get("headers") or {}
    wanted = name.lower()

    for key, value in headers.items():
        if key.lower() == wanted:
            return cast(str, value)

    return None


def decode_body(event: dict[str, Any]) -> bytes:
    """Return the raw request body, undoing API Gateway base64 encoding.

    Raises:
        ValueError: If a base64-flagged body is not valid base64
    """
    body = event.get("body") or ""

    if event.get("isBase64Encoded"):
        try:
            return base64.b64decode(body, validate=True)
        except binascii.Error as exc:
            raise ValueError("Invalid base64 encoded body") from exc

    if isinstance(body, bytes):
        return body

    return body.encode("utf-8", errors="surrogateescape")


def parse_multipart_files(
    body: bytes,
    content_type: str,
    *,
    field_name: str,
) -> list[UploadedFile]:
    """Extract file parts named ``field_name`` (case-insensitive), in body order.

    Raises:
        ValueError: If ``content_type`` is not multipart/form-data with a boundary
    """
    if not content_type or not content_type.lower().startswith("multipart/form-data"):
        raise ValueError("Request must be multipart/form-data")

    if "boundary=" not in content_type.lower():
        raise ValueError("Multipart boundary is missing")

    envelope = b"Content-Type: " + content_type.encode("latin-1") + b"\r\n\r\n" + body
    message = cast(EmailMessage, BytesParser(policy=policy.HTTP).parsebytes(envelope))

    if not message.is_multipart():
        raise ValueError("Request must be multipart/form-data")

    wanted = field_name.lower()
    files: list[UploadedFile] = []

    for part in message.iter_parts():
        name = part.get_param("name", header="content-disposition")
        file_name = part.get_filename()

        if file_name is None or not isinstance(name, str) or name.lower() != wanted:
            continue

        declared_type = part.get_content_type() if part.get("Content-Type") else ""
        data = part.get_payload(decode=True) or b""

        files.append(
            UploadedFile(
                file_name=file_name,
                content_type=declared_type,
                data=cast(bytes, data),
            )
        )

    return files
