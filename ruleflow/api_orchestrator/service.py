"""API orchestrator - builds a request from a mapping, calls it, maps the response back."""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlencode

from pydantic import ValidationError

from ruleflow.core.errors import RuleflowError
from ruleflow.core.ontology.context import ExecutionContext
from ruleflow.core.paths import deep_copy, set_path, strip_prefix
from ruleflow.mapping.service import MappingResult, map_entries
from ruleflow.mapping.transforms import to_text
from ruleflow.observability.trace import ApiRequestTrace, ApiResponseTrace, ApiTrace
from .schemas import ApiMapping
from .transport import FetchFn, FetchInit, default_fetch

logger = logging.getLogger(__name__)

DEFAULT_HEADERS = {"content-type": "application/json"}


@dataclass
class ApiResult:
    """Data and context after the call, plus the API trace."""

    data: dict[str, Any]
    context: ExecutionContext
    trace: ApiTrace


def append_query(endpoint: str, query: dict[str, Any] | None) -> str:
    """URL-encode ``query`` onto ``endpoint``; ``None`` values are skipped."""
    if not query:
        return endpoint
    pairs = [(key, to_text(value)) for key, value in query.items() if value is not None]
    if not pairs:
        return endpoint
    separator = "&" if "?" in endpoint else "?"
    return f"{endpoint}{separator}{urlencode(pairs)}"


async def call_api(
    mapping: ApiMapping,
    context: ExecutionContext,
    data: dict[str, Any],
    fetch_fn: FetchFn | None = None,
) -> ApiResult:
    """Run one mapped API call.

    Transport, parse and HTTP status errors (status >= 400) are recorded in
    the trace and the original data and context are returned. Response
    entries that fail individually are skipped and recorded; the others are
    still applied.
    """
    started = time.perf_counter()
    fetch = fetch_fn or default_fetch
    context_doc = context.to_document()
    trace = ApiTrace(api_id=mapping.api_id, method=mapping.method, endpoint=mapping.endpoint)

    def finish(result_data: dict[str, Any], result_context: ExecutionContext) -> ApiResult:
        trace.duration_ms = round((time.perf_counter() - started) * 1000, 3)
        return ApiResult(data=result_data, context=result_context, trace=trace)

    parts: dict[str, dict[str, Any] | None] = {}
    for part in ("query", "headers", "body"):
        mapped = map_entries(getattr(mapping.request_map, part), data, context_doc)
        for message in mapped.errors:
            trace.record_error(f"request.{part}.{message}")
        parts[part] = deep_copy(mapped.values) if mapped.values else None
    trace.request = ApiRequestTrace(**parts)

    url = append_query(mapping.endpoint, parts["query"])
    trace.url = url
    init: FetchInit = {
        "method": mapping.method,
        "headers": _build_headers(parts["headers"]),
        "body": (
            json.dumps(parts["body"])
            if parts["body"] is not None and mapping.method != "GET"
            else None
        ),
    }

    try:
        response = await fetch(url, init)
    except Exception as e:
        logger.warning("API %s transport error: %s", mapping.api_id, e)
        trace.record_error(f"Transport error: {e}")
        return finish(deep_copy(data), context)

    content_type = response.headers.get("content-type", "")
    try:
        body = response.json() if "json" in content_type else response.text
    except ValueError as e:
        trace.response = ApiResponseTrace(status=response.status_code, body=response.text)
        trace.record_error(f"Invalid JSON response: {e}")
        logger.warning("API %s returned invalid JSON: %s", mapping.api_id, e)
        return finish(deep_copy(data), context)

    trace.response = ApiResponseTrace(status=response.status_code, body=body)
    if response.status_code >= 400:
        logger.warning("API %s failed with HTTP %s", mapping.api_id, response.status_code)
        trace.record_error(f"HTTP {response.status_code}")
        return finish(deep_copy(data), context)

    updated_data = deep_copy(data)
    _write_entries(
        map_entries(mapping.response_map.data, data, context_doc, response=body),
        updated_data,
        "data",
        trace,
    )

    updated_context = context
    if mapping.response_map.context:
        context_target = deep_copy(context_doc)
        written = _write_entries(
            map_entries(mapping.response_map.context, data, context_doc, response=body),
            context_target,
            "context",
            trace,
        )
        if written:
            try:
                updated_context = ExecutionContext.from_document(context_target)
            except ValidationError as e:
                logger.warning("API %s response broke the context: %s", mapping.api_id, e)
                trace.record_error(f"response.context: {e.errors()[0]['msg']}")

    logger.debug("API %s -> HTTP %s", mapping.api_id, response.status_code)
    return finish(updated_data, updated_context)


def _build_headers(mapped: dict[str, Any] | None) -> dict[str, str]:
    headers = dict(DEFAULT_HEADERS)
    for key, value in (mapped or {}).items():
        if key.lower() in headers:
            del headers[key.lower()]
        headers[key] = to_text(value)
    return headers


def _write_entries(mapped: MappingResult, target: dict[str, Any], name: str, trace: ApiTrace) -> int:
    for message in mapped.errors:
        trace.record_error(f"response.{name}.{message}")
    written = 0
    for path, value in mapped.values.items():
        try:
            set_path(target, strip_prefix(path, f"{name}."), deep_copy(value))
        except RuleflowError as e:
            trace.record_error(f"response.{name}.{path}: {e}")
            continue
        written += 1
    return written
