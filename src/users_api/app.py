"""
The Lambda Adapter for the Users API service.

This module is the main entry point for the AWS Lambda function behind the
API Gateway HTTP API. It is responsible for:
1.  Initializing and configuring AWS Lambda Powertools (Logger, Tracer, Metrics).
2.  Building the DynamoDB table client once per container and injecting it
    into the service and router.
3.  Extracting the method, path and body from API Gateway proxy events
    (payload format 2.0, with a fallback for REST API 1.0 events).
4.  Serialising the router's envelope into a proxy response.
"""

import json
from typing import Any

import boto3
from aws_lambda_powertools import Logger, Metrics, Tracer
from aws_lambda_powertools.metrics import MetricUnit
from aws_lambda_powertools.utilities.typing import LambdaContext
from botocore.config import Config

from .clients import UsersTableClient
from .config import AppConfig, get_config
from .core import UsersService
from .router import (
    INVALID_REQUEST,
    Response,
    Router,
    message_response,
)

# --- Global & Reusable Components ---
CONFIG = get_config()

logger = Logger(service=CONFIG.service_name, level=CONFIG.log_level)
tracer = Tracer(service=CONFIG.service_name)
metrics = Metrics(
    namespace="UsersApi",
    service=CONFIG.service_name,
)


def build_router(config: AppConfig, dynamodb_resource: Any = None) -> Router:
    """Wires table client, service and router together for *config*."""
    if dynamodb_resource is None:
        dynamodb_resource = boto3.resource(
            "dynamodb",
            config=Config(
                connect_timeout=config.store_operation_timeout_seconds,
                read_timeout=config.store_operation_timeout_seconds,
                retries={"max_attempts": 1, "mode": "standard"},
            ),
        )
    table_client = UsersTableClient(dynamodb_resource.Table(config.table_name))
    service = UsersService(
        store=table_client,
        generate_create_fields=config.generates_create_fields,
    )
    return Router(service, strict_error_mapping=config.strict_error_mapping)


router = build_router(CONFIG)


def extract_request(
    event: dict,
) -> tuple[str | None, str | None, str | None, bool]:
    """
    Returns (method, path, body, is_base64_encoded) from an API Gateway proxy
    event. The body is passed through undecoded.

    HTTP API events carry the method and path under ``requestContext.http``;
    REST API events carry them at the top level.
    """
    http = event.get("requestContext", {}).get("http") or {}
    method = http.get("method") or event.get("httpMethod")
    path = http.get("path") or event.get("rawPath") or event.get("path")

    return method, path, event.get("body"), bool(event.get("isBase64Encoded"))


def to_proxy_response(response: Response, config: AppConfig) -> dict[str, Any]:
    return {
        "statusCode": response.status_code,
        "headers": {
            "Content-Type": "application/json",
            "Access-Control-Allow-Origin": config.cors_allow_origin,
        },
        "body": json.dumps(response.body, default=str),
    }


def _record_metrics(response: Response) -> None:
    if response.operation:
        metrics.add_metric(name=response.operation, unit=MetricUnit.Count, value=1)
    if 400 <= response.status_code < 500:
        metrics.add_metric(name="ClientErrors", unit=MetricUnit.Count, value=1)
    elif response.status_code >= 500:
        metrics.add_metric(name="ServerErrors", unit=MetricUnit.Count, value=1)


@logger.inject_lambda_context()
@tracer.capture_lambda_handler
@metrics.log_metrics(capture_cold_start_metric=True)
def handler(event: dict, context: LambdaContext) -> dict[str, Any]:
    """Main Lambda handler for API Gateway proxy events."""
    metrics.add_dimension("environment", CONFIG.environment)

    method, path, body, is_base64_encoded = extract_request(event)
    if not method or not path:
        logger.warning(
            "Event is not an API Gateway proxy request.",
            extra={"event_keys": sorted(event.keys())},
        )
        response = message_response(400, INVALID_REQUEST)
    else:
        logger.info("Routing request", extra={"method": method, "path": path})
        response = router.route(method, path, body, is_base64_encoded)

    _record_metrics(response)
    logger.info(
        "Request completed",
        extra={
            "status_code": response.status_code,
            "operation": response.operation,
        },
    )
    return to_proxy_response(response, CONFIG)
