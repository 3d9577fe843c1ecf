from __future__ import annotations

import ast
import copy
import logging
import re
from pathlib import Path
from typing import Any, Optional

from routedoc.repo.scanner import read_source, resolve_dir, scan_python_files

log = logging.getLogger(__name__)

ANY_SCHEMA = {"description": "Any JSON object not defined as schema"}
ANY_REF = {"$ref": "#/components/schemas/Any"}

_PRIMITIVES: dict[str, dict[str, Any]] = {
    "str": {"type": "string"},
    "int": {"type": "integer"},
    "float": {"type": "number"},
    "Decimal": {"type": "number"},
    "bool": {"type": "boolean"},
    "bytes": {"type": "string", "format": "binary"},
    "datetime": {"type": "string", "format": "date-time"},
    "date": {"type": "string", "format": "date"},
    "time": {"type": "string", "format": "time"},
    "UUID": {"type": "string", "format": "uuid"},
    "EmailStr": {"type": "string", "format": "email"},
    "dict": {"type": "object"},
    "Dict": {"type": "object"},
    "Mapping": {"type": "object"},
    "list": {"type": "array", "items": ANY_REF},
    "List": {"type": "array", "items": ANY_REF},
}

_ARRAYS = {"list", "List", "set", "Set", "frozenset", "FrozenSet", "Sequence", "tuple", "Tuple", "Iterable"}
_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])([A-Z])")


def to_snake(name: str) -> str:
    return _CAMEL_BOUNDARY.sub(r"_\1", name).lower()


def to_camel(name: str) -> str:
    head, *rest = to_snake(name).split("_")
    return head + "".join(p.capitalize() for p in rest)


def _name(node: ast.AST) -> str:
    # typing.Optional -> Optional, datetime.datetime -> datetime
    if isinstance(node, ast.Name):
        return node.id
    if isinstance(node, ast.Attribute):
        return node.attr
    return ""


def _subscript_args(node: ast.Subscript) -> list[ast.AST]:
    if isinstance(node.slice, ast.Tuple):
        return list(node.slice.elts)
    return [node.slice]


def _is_none(node: ast.AST) -> bool:
    return isinstance(node, ast.Constant) and node.value is None or _name(node) == "None"


def _nullable(inner: list[ast.AST]) -> dict[str, Any]:
    rest = [a for a in inner if not _is_none(a)]
    if len(rest) != 1:
        return dict(ANY_REF)
    schema = annotation_to_schema(rest[0])
    if len(rest) < len(inner) and "$ref" not in schema:
        schema["nullable"] = True
    return schema


def annotation_to_schema(node: Optional[ast.AST]) -> dict[str, Any]:
    """Convert a class-member annotation to a property schema."""
    if node is None:
        return dict(ANY_REF)

    if isinstance(node, ast.BinOp) and isinstance(node.op, ast.BitOr):
        # X | None
        return _nullable([node.left, node.right])

    if isinstance(node, ast.Subscript):
        base = _name(node.value)
        args = _subscript_args(node)
        if base == "Optional":
            return _nullable(args + [ast.Constant(value=None)])
        if base == "Union":
            return _nullable(args)
        if base == "Annotated":
            return annotation_to_schema(args[0])
        if base in _ARRAYS:
            items = annotation_to_schema(args[0]) if args else dict(ANY_REF)
            schema: dict[str, Any] = {"type": "array", "items": items}
            if base in ("set", "Set", "frozenset", "FrozenSet"):
                schema["uniqueItems"] = True
            return schema
        if base in ("dict", "Dict", "Mapping"):
            return {"type": "object"}
        if base == "Literal":
            values = [a.value for a in args if isinstance(a, ast.Constant)]
            kind = "integer" if values and all(isinstance(v, int) for v in values) else "string"
            return {"type": kind, "enum": values}
        return dict(ANY_REF)

    primitive = _PRIMITIVES.get(_name(node))
    if primitive is not None:
        return copy.deepcopy(primitive)
    return dict(ANY_REF)


def _is_classvar(node: ast.AST) -> bool:
    target = node.value if isinstance(node, ast.Subscript) else node
    return _name(target) == "ClassVar"


def class_properties(cls: ast.ClassDef, snake_case: bool = True) -> dict[str, Any]:
    props: dict[str, Any] = {}
    for stmt in cls.body:
        if not isinstance(stmt, ast.AnnAssign) or not isinstance(stmt.target, ast.Name):
            continue
        member = stmt.target.id
        if member.startswith("_") or _is_classvar(stmt.annotation):
            continue
        key = to_snake(member) if snake_case else to_camel(member)
        props[key] = annotation_to_schema(stmt.annotation)
    return props


def _top_level_classes(path: Path) -> list[ast.ClassDef]:
    source = read_source(path)
    try:
        tree = ast.parse(source, filename=str(path))
    except (SyntaxError, ValueError) as e:
        # ValueError: NUL bytes in the source
        log.warning("Cannot parse %s, no declarations extracted: %s", path, e)
        return []
    return [n for n in tree.body if isinstance(n, ast.ClassDef)]


def _source_files(directory: Optional[Path]) -> list[Path]:
    if directory is None:
        return []
    return [p for p in scan_python_files(directory) if p.name != "__init__.py"]


def get_models(app_root: Path, snake_case: bool = True) -> dict[str, Any]:
    """One schema per file under models/; the first class declared names it."""
    models: dict[str, Any] = {}
    for path in _source_files(resolve_dir(app_root, "models")):
        name = path.stem
        props: dict[str, Any] = {}
        classes = _top_level_classes(path)
        if classes:
            name = classes[0].name
            props = class_properties(classes[0], snake_case)
        models[name] = {"type": "object", "properties": props, "description": "Model"}
    return models


def get_interfaces(app_root: Path, snake_case: bool = True) -> dict[str, Any]:
    """One schema per class declared under interfaces/."""
    interfaces: dict[str, Any] = {}
    for path in _source_files(resolve_dir(app_root, "interfaces")):
        for cls in _top_level_classes(path):
            interfaces[cls.name] = {
                "type": "object",
                "properties": class_properties(cls, snake_case),
                "description": ast.get_docstring(cls) or "Interface",
            }
    return interfaces


def build_schemas(app_root: Path, snake_case: bool = True) -> dict[str, Any]:
    """
    Any fallback, then interfaces, then models.
    Name collisions resolve to the last one written.
    """
    schemas: dict[str, Any] = {"Any": dict(ANY_SCHEMA)}
    schemas.update(get_interfaces(app_root, snake_case))
    schemas.update(get_models(app_root, snake_case))
    log.debug("Built %d schema(s) from %s", len(schemas), app_root)
    return schemas
