"""
Lambda handler responsible for serving image metadata records.
"""

from typing import Any

from aws_lambda_powertools import Logger, Metrics, Tracer
from aws_lambda_powertools.utilities.typing import LambdaContext
from pydantic import ValidationError

from core.utils.constants import METRICS_NAMESPACE, SERVICE_NAME
from core.utils.decorators import api_gateway_handler
from core.utils.response import ResponseBuilder
from core.utils.validators import sanitize_validation_errors, validate_request
from handlers.get_image.service import GetService

from .models import GetMetadataRequest

logger = Logger(UTC=True)
tracer = Tracer(service=SERVICE_NAME)
metrics = Metrics(namespace=METRICS_NAMESPACE, service=SERVICE_NAME)


@api_gateway_handler
@tracer.capture_lambda_handler
@metrics.log_metrics()
def handler(event: dict[str, Any], context: LambdaContext) -> dict[str, Any]:
    """
    Handle ``GET /images/{image_id}/metadata``.

    Returns the stored camera make/model and optional geolocation as a
    camelCase JSON record, or 404 when no usable record exists.
    """
    request_id = getattr(context, "aws_request_id", None)

    logger.info(
        "Received image metadata request",
        extra={
            "http_method": event.get("httpMethod"),
            "path": event.get("path"),
            "request_id": request_id,
        },
    )

    path_params = event.get("pathParameters") or {}

    try:
        request = validate_request(
            GetMetadataRequest,
            {"image_id": path_params.get("image_id")},
        )
    except ValidationError as exc:
        logger.warning(
            "Request validation failed",
            extra={"errors": sanitize_validation_errors(exc.errors())},
        )
        return ResponseBuilder.bad_request(
            message="Invalid request params",
            details={"errors": sanitize_validation_errors(exc.errors())},
            request_id=request_id,
        )

    metadata = GetService().get_image_metadata(request.image_id)

    if metadata is None:
        return ResponseBuilder.not_found(
            f"Metadata not found: {request.image_id}",
            request_id=request_id,
        )

    return ResponseBuilder.ok(metadata.to_record())
