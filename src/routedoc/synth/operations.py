from __future__ import annotations

import copy
import logging
from dataclasses import dataclass
from typing import Any, Iterable, Optional

from routedoc.annotations.source import AnnotationCache
from routedoc.config import GeneratorOptions
from routedoc.domain.models import OperationAnnotation, Parameter, ResolvedHandler, Route
from routedoc.domain.status import default_status, reason_phrase
from routedoc.synth.handlers import format_operation_id, resolve_handler
from routedoc.synth.patterns import PatternInfo, extract_infos, is_ignored

log = logging.getLogger(__name__)

BEARER_REQUIREMENT = {"BearerAuth": ["access"]}
AUTH_MIDDLEWARE = frozenset({"auth", "auth:api"})

_NO_BODY_METHODS = {"GET", "DELETE"}

_CRUD_SUMMARIES = {
    "index": "Get a list of {tag}",
    "show": "Get a single instance of {tag}",
    "update": "Update {tag}",
    "destroy": "Delete {tag}",
}


@dataclass(frozen=True)
class RouteContribution:
    """What one route adds to the document."""

    pattern: str
    operations: dict[str, dict[str, Any]]  # lower-case verb -> operation object
    tags: tuple[str, ...]


def derive_security(middleware: Iterable[str]) -> list[dict[str, list[str]]]:
    return [copy.deepcopy(BEARER_REQUIREMENT) for m in middleware if m in AUTH_MIDDLEWARE]


def merge_params(base: Iterable[Parameter], extra: Iterable[Parameter]) -> list[Parameter]:
    """
    Union on (name, in). Entries from extra replace base entries in place;
    extra-only entries are appended.
    """
    merged: dict[tuple[str, str], Parameter] = {p.key: p for p in base}
    for p in extra:
        merged[p.key] = p
    return list(merged.values())


def surviving_methods(methods: Iterable[str], preferred_put_patch: str = "PUT") -> list[str]:
    methods = list(methods)
    both = "PUT" in methods and "PATCH" in methods
    out = []
    for m in methods:
        if m == "HEAD":
            continue
        if both and m in ("PUT", "PATCH") and m != preferred_put_patch:
            continue
        out.append(m)
    return out


def crud_summary(action: str, tag: str) -> str:
    template = _CRUD_SUMMARIES.get(action)
    return template.format(tag=tag.lower()) if template else ""


def _responses(
    method: str,
    secured: bool,
    annotation: OperationAnnotation,
) -> tuple[dict[str, dict[str, Any]], str, str]:
    """
    Layer: 401/403 floor, verb default, annotation responses.
    Returns (responses, seeded summary, seeded description).
    """
    status = default_status(method)
    responses: dict[str, dict[str, Any]] = {}
    if secured:
        responses["401"] = {"description": reason_phrase(401)}
        responses["403"] = {"description": reason_phrase(403)}
    responses[status] = {
        "description": reason_phrase(status),
        "content": {"application/json": {}},
    }
    for code, spec in annotation.responses.items():
        responses[code] = copy.deepcopy(spec.to_openapi())

    seeded_summary = ""
    seeded_description = ""
    if status in annotation.responses:
        entry = responses[status]
        seeded_summary = entry.get("summary") or ""
        seeded_description = entry.get("description") or ""

    # summary only seeds the operation, it is not part of a response object
    for entry in responses.values():
        entry.pop("summary", None)

    return responses, seeded_summary, seeded_description


def build_operation(
    method: str,
    info: PatternInfo,
    route: Route,
    resolved: Optional[ResolvedHandler],
    annotation: OperationAnnotation,
    security: list[dict[str, list[str]]],
) -> dict[str, Any]:
    responses, seeded_summary, seeded_description = _responses(method, bool(security), annotation)

    summary = annotation.summary or seeded_summary
    description = annotation.description or seeded_description

    if not summary and resolved is not None:
        summary = crud_summary(resolved.action, info.tags[0] if info.tags else "")

    where = f"{resolved.display_path}::{resolved.action}" if resolved else "route definition"
    summary = f"{summary} ({where})".lstrip()

    operation_id = annotation.operation_id
    if not operation_id and route.handler is not None:
        operation_id = format_operation_id(route.handler.raw)

    op: dict[str, Any] = {
        "summary": summary,
        "description": description,
    }
    if operation_id:
        op["operationId"] = operation_id
    op["parameters"] = [p.to_openapi() for p in merge_params(info.parameters, annotation.parameters)]
    op["tags"] = list(info.tags)
    op["responses"] = responses
    op["security"] = copy.deepcopy(security)

    if method not in _NO_BODY_METHODS:
        op["requestBody"] = copy.deepcopy(annotation.request_body) or {
            "content": {"application/json": {}},
        }
    return op


def synthesize_route(
    route: Route,
    options: GeneratorOptions,
    cache: AnnotationCache,
) -> Optional[RouteContribution]:
    """
    Build the operations of one route. None when an ignore rule matches.
    Raises SourceReadError when the handler's source file cannot be read.
    """
    if is_ignored(route.pattern, options.ignore):
        log.debug("Ignoring route %s", route.pattern)
        return None

    security = derive_security(route.middleware)
    resolved = resolve_handler(route.handler, options)

    annotation = OperationAnnotation()
    if resolved is not None:
        annotations = cache.get_custom_annotations(resolved.source_file, resolved.action)
        annotation = annotations.get(resolved.action, annotation)

    info = extract_infos(route.pattern, options.tag_index)

    operations: dict[str, dict[str, Any]] = {}
    for method in surviving_methods(route.methods, options.preferred_put_patch):
        operations[method.lower()] = build_operation(method, info, route, resolved, annotation, security)

    return RouteContribution(pattern=info.pattern, operations=operations, tags=info.tags)
