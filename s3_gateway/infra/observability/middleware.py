import json
import logging
import re
import time
import uuid
from typing import Any

from fastapi import Request
from starlette.concurrency import iterate_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware

from s3_gateway.common.config import get_settings
from s3_gateway.infra.observability.metrics import LATENCY, REQUESTS

logger = logging.getLogger("http")

TRACE_BODY_LIMIT = 2048
REQUEST_ID_HEADER = "X-Request-Id"

SENSITIVE_KEYS = frozenset(
    {
        "password",
        "secret",
        "token",
        "access_token",
        "api_key",
        "x-api-key",
        "authorization",
        "url",
        "fileurl",
        "fileurls",
    }
)

# Presigned URLs embed credentials in the query string.
_MASK_PATTERNS = (
    re.compile(
        r"(?i)(token|secret|api_key|x-api-key|password|authorization"
        r"|x-amz-signature|x-amz-credential|x-amz-security-token)\s*[:=]\s*[^\s&\"]+"
    ),
    re.compile(r"(?i)authorization\s*:\s*bearer\s+[A-Za-z0-9\-_.]+"),
)


def _is_json(content_type: str | None) -> bool:
    return bool(content_type) and "json" in content_type.lower()


def _client_ip(request: Request) -> str | None:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None


def _route_label(request: Request) -> str:
    # templated path keeps bucket names and keys out of metric labels
    route = request.scope.get("route")
    return getattr(route, "path", None) or request.url.path


def _level_for(status_code: int) -> int:
    if status_code >= 500:
        return logging.ERROR
    if status_code >= 400:
        return logging.WARNING
    return logging.INFO


def mask_value(obj: Any) -> Any:
    if isinstance(obj, dict):
        return {
            k: "***" if isinstance(k, str) and k.lower() in SENSITIVE_KEYS else mask_value(v)
            for k, v in obj.items()
        }
    if isinstance(obj, list):
        return [mask_value(item) for item in obj]
    if isinstance(obj, str):
        return mask_text(obj)
    return obj


def mask_text(text: str) -> str:
    for pattern in _MASK_PATTERNS:
        text = pattern.sub(
            lambda m: re.split(r"[:=]", m.group(0), maxsplit=1)[0] + "=***", text
        )
    return text


def render_body(raw_body: bytes) -> str:
    decoded = raw_body.decode("utf-8", errors="replace")
    try:
        rendered = json.dumps(mask_value(json.loads(decoded)), ensure_ascii=False)
    except ValueError:
        rendered = mask_text(decoded)
    if len(rendered) > TRACE_BODY_LIMIT:
        rendered = rendered[:TRACE_BODY_LIMIT] + "...<truncated>"
    return rendered


class MetricsMiddleware(BaseHTTPMiddleware):
    """Request metrics, access logs and request-id propagation.

    With ``TRACE_HTTP`` enabled, JSON request and response bodies are logged
    after masking. Multipart uploads and binary downloads are never buffered.
    """

    async def dispatch(self, request: Request, call_next):
        start = time.perf_counter()
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        trace_http = get_settings().TRACE_HTTP
        fields: dict[str, Any] = {
            "method": request.method,
            "query": request.url.query,
            "request_id": request_id,
            "client_ip": _client_ip(request),
            "user_agent": request.headers.get("User-Agent"),
        }

        request_body: str | None = None
        if trace_http and _is_json(request.headers.get("Content-Type")):
            raw_body = await request.body()
            if raw_body:
                request_body = render_body(raw_body)

                async def receive():
                    return {"type": "http.request", "body": raw_body, "more_body": False}

                request._receive = receive

        try:
            response = await call_next(request)
        except Exception as exc:
            fields.update(
                route=request.url.path,
                status=500,
                duration_ms=round((time.perf_counter() - start) * 1000, 3),
                exception=repr(exc),
            )
            logger.exception(
                "request_error method=%s route=%s status=500 request_id=%s",
                request.method,
                request.url.path,
                request_id,
                extra={"extra": fields},
            )
            raise

        elapsed = time.perf_counter() - start
        route = _route_label(request)
        status_code = response.status_code
        REQUESTS.labels(request.method, route, str(status_code)).inc()
        LATENCY.labels(request.method, route).observe(elapsed)

        if REQUEST_ID_HEADER not in response.headers:
            response.headers[REQUEST_ID_HEADER] = request_id

        fields.update(route=route, status=status_code, duration_ms=round(elapsed * 1000, 3))
        if trace_http:
            response_body: str | None = None
            if _is_json(response.headers.get("Content-Type")):
                chunks = [chunk async for chunk in response.body_iterator]
                raw = b"".join(chunks)
                response.body_iterator = iterate_in_threadpool(iter([raw]))
                if raw:
                    response_body = render_body(raw)
            fields["request_body"] = request_body
            fields["response_body"] = response_body

        logger.log(
            _level_for(status_code),
            "request method=%s route=%s status=%s duration_ms=%.3f request_id=%s client_ip=%s",
            request.method,
            route,
            status_code,
            fields["duration_ms"],
            request_id,
            fields["client_ip"] or "-",
            extra={"extra": fields},
        )
        return response
