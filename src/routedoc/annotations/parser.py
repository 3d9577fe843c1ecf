from __future__ import annotations

import json
import logging
import re
from typing import Any, Optional

from routedoc.domain.models import OperationAnnotation, Parameter, ResponseSpec
from routedoc.domain.status import reason_phrase

log = logging.getLogger(__name__)

_TAG_LINE = re.compile(r"^@([A-Za-z][A-Za-z0-9_]*)\s*(.*)$")
_MODIFIER = re.compile(r"@(type|required|example|summary|format)\b(?:\(([^)]*)\))?")
_MODEL_REF = re.compile(r"^<\s*([A-Za-z_][A-Za-z0-9_.]*)\s*(\[\])?\s*>$")
_STATUS = re.compile(r"^\d{3}$")
_SEP = re.compile(r"\s+-\s+|^-\s+|\s+-$")
_DECODER = json.JSONDecoder()

_PARAM_TAGS = {
    "parampath": "path",
    "paramquery": "query",
    "paramheader": "header",
    "paramcookie": "cookie",
}

_TYPE_ALIASES = {
    "str": "string",
    "string": "string",
    "int": "integer",
    "integer": "integer",
    "float": "number",
    "number": "number",
    "bool": "boolean",
    "boolean": "boolean",
    "list": "array",
    "array": "array",
    "dict": "object",
    "object": "object",
}


class MalformedTag(ValueError):
    pass


def schema_ref(name: str) -> dict[str, Any]:
    return {"$ref": f"#/components/schemas/{name}"}


def split_tags(text: str) -> tuple[str, list[tuple[str, str]]]:
    """
    Split a docstring into (free text before the first tag, [(tag, payload)]).

    A tag starts with "@name" at the beginning of a line; following non-blank
    lines continue it; a blank line ends it. Description payloads keep their
    line breaks, other payloads are joined with spaces.
    """
    preamble: list[str] = []
    tags: list[tuple[str, list[str]]] = []
    current: Optional[tuple[str, list[str]]] = None

    for line in (text or "").splitlines():
        stripped = line.strip()
        m = _TAG_LINE.match(stripped)
        if m:
            current = (m.group(1), [m.group(2).strip()] if m.group(2).strip() else [])
            tags.append(current)
            continue
        if not stripped:
            current = None
            if not tags:
                preamble.append("")
            continue
        if current is not None:
            current[1].append(stripped)
        elif not tags:
            preamble.append(stripped)

    out = []
    for name, lines in tags:
        joiner = "\n" if name.lower() == "description" else " "
        out.append((name, joiner.join(lines)))
    return "\n".join(preamble).strip(), out


def _modifiers(payload: str) -> tuple[str, dict[str, Optional[str]]]:
    found: dict[str, Optional[str]] = {}
    for m in _MODIFIER.finditer(payload):
        found[m.group(1)] = m.group(2)
    return _MODIFIER.sub("", payload).strip(), found


def _parts(text: str) -> list[str]:
    return [p.strip() for p in _SEP.split(text) if p and p.strip()]


def _loads(text: str) -> Any:
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise MalformedTag(f"invalid JSON payload {text!r}: {e}") from e


def _infer_schema(value: Any) -> dict[str, Any]:
    if isinstance(value, bool):
        return {"type": "boolean"}
    if isinstance(value, int):
        return {"type": "integer"}
    if isinstance(value, float):
        return {"type": "number"}
    if isinstance(value, str):
        return {"type": "string"}
    if isinstance(value, list):
        return {"type": "array", "items": _infer_schema(value[0]) if value else {}}
    if isinstance(value, dict):
        return {"type": "object"}
    return {}


def _type_schema(declared: str) -> dict[str, Any]:
    declared = declared.strip()
    ref = _MODEL_REF.match(declared)
    if ref:
        if ref.group(2):
            return {"type": "array", "items": schema_ref(ref.group(1))}
        return schema_ref(ref.group(1))
    if declared.lower() not in _TYPE_ALIASES:
        raise MalformedTag(f"unknown parameter type {declared!r}")
    return {"type": _TYPE_ALIASES[declared.lower()]}


def content_entry(payload: str) -> dict[str, Any]:
    """<Model>, <Model[]> or a JSON example."""
    payload = payload.strip()
    if not payload:
        return {}
    ref = _MODEL_REF.match(payload)
    if ref:
        return {"schema": _type_schema(payload)}
    if payload[0] in "{[":
        value = _loads(payload)
        return {"schema": _infer_schema(value), "example": value}
    raise MalformedTag(f"unrecognized body payload {payload!r}")


def _parse_param(location: str, payload: str) -> Parameter:
    text, mods = _modifiers(payload)
    parts = _parts(text)
    if not parts:
        raise MalformedTag("parameter without a name")

    schema: dict[str, Any] = {"type": "string"}
    if mods.get("type"):
        schema = _type_schema(mods["type"] or "")
    if mods.get("format"):
        schema["format"] = mods["format"]
    if mods.get("example") is not None:
        raw = mods["example"] or ""
        try:
            schema["example"] = json.loads(raw)
        except json.JSONDecodeError:
            schema["example"] = raw

    return Parameter(
        name=parts[0],
        location=location,  # type: ignore[arg-type]
        required=location == "path" or "required" in mods,
        schema=schema,
        description=" - ".join(parts[1:]),
    )


def _status(token: str) -> str:
    if not _STATUS.match(token):
        raise MalformedTag(f"invalid status code {token!r}")
    return token


def _split_body(text: str) -> tuple[str, str]:
    """
    (body, rest). A JSON body is decoded as a unit so that " - " inside it
    does not act as a separator.
    """
    text = text.strip()
    if text[:1] in ("{", "["):
        try:
            _, end = _DECODER.raw_decode(text)
        except json.JSONDecodeError as e:
            raise MalformedTag(f"invalid JSON payload {text!r}: {e}") from e
        return text[:end], text[end:]
    head = _SEP.split(text, maxsplit=1)
    return head[0].strip(), head[1] if len(head) > 1 else ""


def _parse_response_body(payload: str) -> tuple[str, ResponseSpec]:
    text, mods = _modifiers(payload)
    head = _SEP.split(text.strip(), maxsplit=1)
    if not head[0]:
        raise MalformedTag("response without a status code")
    status = _status(head[0].strip())
    body, rest = _split_body(head[1] if len(head) > 1 else "")
    description = " - ".join(_parts(rest)) or reason_phrase(status)
    return status, ResponseSpec(
        description=description,
        content={"application/json": content_entry(body)},
        summary=mods.get("summary"),
    )


def _parse_response(payload: str) -> tuple[str, ResponseSpec]:
    text, mods = _modifiers(payload)
    parts = _parts(text)
    if not parts:
        raise MalformedTag("response without a status code")
    status = _status(parts[0])
    description = " - ".join(parts[1:]) or reason_phrase(status)
    return status, ResponseSpec(description=description, summary=mods.get("summary"))


def _parse_request_body(payload: str) -> tuple[str, dict[str, Any]]:
    tokens = payload.split(None, 1)
    content_type = "application/json"
    if tokens and "/" in tokens[0] and tokens[0][0] not in "<{[":
        content_type = tokens[0]
        payload = tokens[1] if len(tokens) > 1 else ""
    return content_type, content_entry(payload)


def _parse(text: str) -> OperationAnnotation:
    preamble, tags = split_tags(text)

    summary = ""
    description = ""
    operation_id = ""
    params: dict[tuple[str, str], Parameter] = {}
    body: dict[str, Any] = {}
    responses: dict[str, ResponseSpec] = {}

    for name, payload in tags:
        tag = name.lower()
        if tag == "summary":
            summary = payload
        elif tag == "description":
            description = payload
        elif tag == "operationid":
            operation_id = payload.split()[0] if payload.split() else ""
        elif tag in _PARAM_TAGS:
            p = _parse_param(_PARAM_TAGS[tag], payload)
            params[p.key] = p
        elif tag == "requestbody":
            content_type, entry = _parse_request_body(payload)
            body[content_type] = entry
        elif tag == "responsebody":
            status, spec = _parse_response_body(payload)
            responses[status] = spec
        elif tag == "response":
            status, spec = _parse_response(payload)
            responses[status] = spec
        # anything else is not ours

    return OperationAnnotation(
        summary=summary,
        description=description or preamble,
        operation_id=operation_id,
        parameters=tuple(params.values()),
        request_body={"content": body} if body else None,
        responses=responses,
    )


def parse_annotation(text: str) -> OperationAnnotation:
    """
    Parse the structured tags of one docstring.
    Never raises: a malformed docstring yields an empty annotation.
    """
    try:
        return _parse(text)
    except ValueError as e:
        log.debug("Ignoring malformed annotation: %s", e)
        return OperationAnnotation()
