from __future__ import annotations

import copy
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Optional, Union

from pydantic import ValidationError

from routedoc.annotations.source import AnnotationCache
from routedoc.config import GeneratorOptions
from routedoc.domain.models import Route
from routedoc.errors import RouteTableError
from routedoc.schemas.extractor import build_schemas
from routedoc.synth.operations import RouteContribution, synthesize_route

log = logging.getLogger(__name__)

OPENAPI_VERSION = "3.0.0"

CANNED_RESPONSES = {
    "Forbidden": {"description": "Access token is missing or invalid"},
    "Accepted": {"description": "The request was accepted"},
    "Created": {"description": "The resource has been created"},
    "NotFound": {"description": "The resource was not found"},
    "NotAcceptable": {"description": "The resource is not acceptable"},
}

SECURITY_SCHEMES = {
    "BearerAuth": {"type": "http", "scheme": "bearer"},
}


@dataclass(frozen=True)
class GenerateResult:
    document: dict[str, Any]
    routes_seen: int
    routes_ignored: int
    files_parsed: int


def load_route_table(source: Union[Path, list, dict]) -> list[Route]:
    """
    Accepts a list of raw route dicts, a {"root": [...]} dump, or a path to
    a JSON file holding either.
    """
    raw: Any = source
    if isinstance(source, Path):
        try:
            raw = json.loads(source.read_text(encoding="utf-8"))
        except OSError as e:
            raise RouteTableError(f"Cannot read route table {source}: {e}") from e
        except json.JSONDecodeError as e:
            raise RouteTableError(f"Route table {source} is not valid JSON: {e}") from e

    if isinstance(raw, dict):
        raw = raw.get("root")
    if not isinstance(raw, list):
        raise RouteTableError("Route table must be a list of routes or {\"root\": [...]}")

    routes: list[Route] = []
    for i, item in enumerate(raw):
        try:
            routes.append(Route.model_validate(item))
        except ValidationError as e:
            raise RouteTableError(f"Invalid route #{i}: {e}") from e
    return routes


def scaffold(options: GeneratorOptions, schemas: dict[str, Any]) -> dict[str, Any]:
    return {
        "openapi": OPENAPI_VERSION,
        "info": {"title": options.title, "version": options.version},
        "components": {
            "responses": {k: dict(v) for k, v in CANNED_RESPONSES.items()},
            "securitySchemes": {k: dict(v) for k, v in SECURITY_SCHEMES.items()},
            "schemas": schemas,
        },
        "paths": {},
        "tags": [],
    }


def assemble(
    options: GeneratorOptions,
    schemas: dict[str, Any],
    contributions: Iterable[RouteContribution],
) -> dict[str, Any]:
    """Fold route contributions into a fresh document."""
    doc = scaffold(options, schemas)
    paths: dict[str, dict[str, Any]] = doc["paths"]
    tags: list[dict[str, str]] = doc["tags"]
    seen_tags: set[str] = set()

    for c in contributions:
        for tag in c.tags:
            if not tag or tag in seen_tags:
                continue
            seen_tags.add(tag)
            tags.append({"name": tag, "description": f"Everything related to {tag}"})

        if c.operations:
            paths.setdefault(c.pattern, {}).update(c.operations)

    return doc


class OpenApiGenerator:
    """
    One generation run. Owns the annotation cache and the schema set, so a
    handler file is parsed once however many routes point at it; runs
    never share state.
    Raises SourceReadError if a handler or schema file cannot be read.
    """

    def __init__(self, options: GeneratorOptions) -> None:
        self.options = options
        self.cache = AnnotationCache()
        self.schemas = build_schemas(options.app_root, options.snake_case)

    def synthesize(self, route: Route) -> Optional[RouteContribution]:
        return synthesize_route(route, self.options, self.cache)

    def run(self, routes: Iterable[Route]) -> GenerateResult:
        contributions: list[RouteContribution] = []
        seen = 0
        ignored = 0
        for route in routes:
            seen += 1
            c = self.synthesize(route)
            if c is None:
                ignored += 1
                continue
            contributions.append(c)

        document = assemble(self.options, copy.deepcopy(self.schemas), contributions)
        log.debug(
            "Generated %d path(s) from %d route(s), %d ignored",
            len(document["paths"]),
            seen,
            ignored,
        )
        return GenerateResult(
            document=document,
            routes_seen=seen,
            routes_ignored=ignored,
            files_parsed=len(self.cache),
        )


def run_generate(routes: Iterable[Route], options: GeneratorOptions) -> GenerateResult:
    return OpenApiGenerator(options).run(routes)


def generate_document(routes: Iterable[Union[Route, dict]], options: GeneratorOptions) -> dict[str, Any]:
    routes = list(routes)
    if all(isinstance(r, Route) for r in routes):
        parsed = routes
    else:
        parsed = load_route_table(routes)
    return run_generate(parsed, options).document
