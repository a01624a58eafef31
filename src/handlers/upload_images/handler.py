"""
Lambda handler responsible for multi-image upload and ingestion.
"""

import asyncio
from typing import Any

from aws_lambda_powertools import Logger, Metrics, Tracer
from aws_lambda_powertools.metrics import MetricUnit
from aws_lambda_powertools.utilities.typing import LambdaContext

from core.utils.constants import (
    MAX_REQUEST_BODY_SIZE,
    METRICS_NAMESPACE,
    SERVICE_NAME,
    UPLOAD_FORM_FIELD,
    format_file_size,
)
from core.utils.decorators import api_gateway_handler
from core.utils.multipart import decode_body, get_header, parse_multipart_files
from core.utils.response import ResponseBuilder

from .service import UploadService

logger = Logger(UTC=True)
tracer = Tracer(service=SERVICE_NAME)
metrics = Metrics(namespace=METRICS_NAMESPACE, service=SERVICE_NAME)


@api_gateway_handler
@tracer.capture_lambda_handler
@metrics.log_metrics()
def handler(event: dict[str, Any], context: LambdaContext) -> dict[str, Any]:
    """
    Handle image upload requests (``POST /images``).

    The handler decodes the multipart/form-data body, collects every file
    sent under the ``Files`` form field and ingests them one by one. Each
    file yields its own result, so a single bad file does not fail the
    whole request.

    Expected API Gateway event structure:
    {
        "headers": {"Content-Type": "multipart/form-data; boundary=..."},
        "body": "<base64 multipart body>",
        "isBase64Encoded": true
    }

    Args:
        event: API Gateway Lambda proxy event containing the upload payload
        context: AWS Lambda execution context

    Returns:
        API Gateway-compatible HTTP response with one result per file, in
        upload order
    """
    request_id = getattr(context, "aws_request_id", None)

    logger.info(
        "Received image upload request",
        extra={
            "http_method": event.get("httpMethod"),
            "path": event.get("path"),
            "request_id": request_id,
            "function_name": getattr(context, "function_name", None),
        },
    )

    try:
        body = decode_body(event)
    except ValueError:
        logger.exception("Invalid request body encoding")
        return ResponseBuilder.bad_request("Invalid request body", request_id=request_id)

    if len(body) > MAX_REQUEST_BODY_SIZE:
        logger.warning(
            "Request body exceeds limit",
            extra={"size": len(body), "max_size": MAX_REQUEST_BODY_SIZE},
        )
        return ResponseBuilder.payload_too_large(
            f"Request body exceeds {format_file_size(MAX_REQUEST_BODY_SIZE)} limit",
            request_id=request_id,
        )

    try:
        files = parse_multipart_files(
            body,
            get_header(event, "Content-Type") or "",
            field_name=UPLOAD_FORM_FIELD,
        )
    except ValueError as exc:
        logger.warning("Invalid multipart body", extra={"error": str(exc)})
        return ResponseBuilder.bad_request(str(exc), request_id=request_id)

    if not files:
        return ResponseBuilder.bad_request("No images provided", request_id=request_id)

    service = UploadService()
    results = asyncio.run(service.process_uploads(files))

    succeeded = sum(1 for result in results if result.success)
    metrics.add_metric(name="ImagesIngested", unit=MetricUnit.Count, value=succeeded)
    metrics.add_metric(name="ImagesRejected", unit=MetricUnit.Count, value=len(results) - succeeded)

    logger.info(
        "Image upload request completed",
        extra={"files": len(results), "succeeded": succeeded, "request_id": request_id},
    )

    return ResponseBuilder.ok([result.to_response() for result in results])
