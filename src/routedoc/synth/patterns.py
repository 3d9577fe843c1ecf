from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from routedoc.domain.models import Parameter


@dataclass(frozen=True)
class PatternInfo:
    tags: tuple[str, ...]
    parameters: tuple[Parameter, ...]
    pattern: str  # OpenAPI path key: "users/{id}", "/" for the root


def matches_ignore(pattern: str, rule: str) -> bool:
    """
    Substring match, plus "x*" (starts with x) and "*x" (ends with x).
    """
    if rule in pattern:
        return True
    if rule.endswith("*") and pattern.startswith(rule[:-1]):
        return True
    if rule.startswith("*") and pattern.endswith(rule[1:]):
        return True
    return False


def is_ignored(pattern: str, rules: Iterable[str]) -> bool:
    return any(matches_ignore(pattern, r) for r in rules if r)


def extract_infos(pattern: str, tag_index: int = 1) -> PatternInfo:
    """
    /users/:id -> tags ("USERS",), path param id, key "users/{id}"
    A trailing "?" marks an optional parameter (":id?").
    """
    split = (pattern or "").split("/")

    tags: tuple[str, ...] = ()
    if len(split) > tag_index:
        candidate = split[tag_index]
        if candidate and not candidate.startswith(":"):
            tags = (candidate.upper(),)

    params: dict[str, Parameter] = {}
    segments: list[str] = []
    for part in split:
        if not part:
            continue
        if part.startswith(":"):
            name = part[1:].rstrip("?")
            params[name] = Parameter(
                name=name,
                location="path",
                required=not part.endswith("?"),
                schema={"type": "string"},
            )
            part = "{" + name + "}"
        segments.append(part)

    return PatternInfo(
        tags=tags,
        parameters=tuple(params.values()),
        pattern="/".join(segments) or "/",
    )
