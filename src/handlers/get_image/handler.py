"""
Lambda handler responsible for serving resized image variants.
"""

from typing import Any

from aws_lambda_powertools import Logger, Metrics, Tracer
from aws_lambda_powertools.utilities.typing import LambdaContext
from pydantic import ValidationError

from core.models.errors import NotFoundError, StorageError
from core.utils.constants import METRICS_NAMESPACE, OUTPUT_MIME_TYPE, SERVICE_NAME
from core.utils.decorators import GENERIC_ERROR_MESSAGE, api_gateway_handler
from core.utils.response import ResponseBuilder
from core.utils.validators import sanitize_validation_errors, validate_request

from .models import GetImageRequest
from .service import GetService

logger = Logger(UTC=True)
tracer = Tracer(service=SERVICE_NAME)
metrics = Metrics(namespace=METRICS_NAMESPACE, service=SERVICE_NAME)


@api_gateway_handler
@tracer.capture_lambda_handler
@metrics.log_metrics()
def handler(event: dict[str, Any], context: LambdaContext) -> dict[str, Any]:
    """
    Handle ``GET /images/{image_id}/{size}``.

    ``size`` is phone, tablet or desktop (any case) or a numeric key. The
    variant is returned as a binary WebP response.

    Args:
        event: API Gateway event payload.
        context: AWS Lambda runtime context.

    Returns:
        API Gateway-compatible response dictionary.
    """
    request_id = getattr(context, "aws_request_id", None)

    logger.info(
        "Received resized image request",
        extra={
            "http_method": event.get("httpMethod"),
            "path": event.get("path"),
            "request_id": request_id,
            "function_name": getattr(context, "function_name", None),
        },
    )

    path_params = event.get("pathParameters") or {}

    try:
        request = validate_request(
            GetImageRequest,
            {
                "image_id": path_params.get("image_id"),
                "size": path_params.get("size"),
            },
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

    service = GetService()

    try:
        content = service.read_resized_image(request.image_id, request.size)
    except NotFoundError:
        logger.warning(
            "Resized image not found",
            extra={"image_id": request.image_id, "size": request.size},
        )
        return ResponseBuilder.not_found(
            f"Image not found: {request.image_id}/{request.size}",
            request_id=request_id,
        )
    except StorageError:
        logger.exception(
            "Reading resized image failed",
            extra={"image_id": request.image_id, "size": request.size},
        )
        return ResponseBuilder.internal_error(GENERIC_ERROR_MESSAGE, request_id=request_id)

    return ResponseBuilder.binary_response(content, content_type=OUTPUT_MIME_TYPE)
