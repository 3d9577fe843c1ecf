from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

HttpMethod = Literal["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "HEAD"]
ParamLocation = Literal["path", "query", "header", "cookie"]


# ----------------------------
# Handler references
# ----------------------------


class BoundMethod(BaseModel):
    """Handler already resolved by the framework to a module + method."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["bound"] = "bound"
    source_module: str
    method_name: str
    handler_string: str = ""  # the route's textual handler, if the framework kept one

    @property
    def raw(self) -> str:
        return self.handler_string or f"{self.source_module}.{self.method_name}"


class StringReference(BaseModel):
    """``"UsersController.show"``"""

    model_config = ConfigDict(frozen=True)

    kind: Literal["string"] = "string"
    value: str

    @property
    def raw(self) -> str:
        return self.value


class ObjectReference(BaseModel):
    """``["#controllers/users_controller", "show"]``"""

    model_config = ConfigDict(frozen=True)

    kind: Literal["object"] = "object"
    module_path: str
    method_name: str

    @property
    def raw(self) -> str:
        return f"{self.module_path}.{self.method_name}"


HandlerReference = Annotated[
    Union[BoundMethod, StringReference, ObjectReference],
    Field(discriminator="kind"),
]


def coerce_handler(value: Any) -> Any:
    """
    Map the raw handler shapes found in route-table dumps onto the tagged
    variants. Returns None for empty references.
    """
    if value is None or isinstance(value, (BoundMethod, StringReference, ObjectReference)):
        return value
    if isinstance(value, str):
        value = value.strip()
        return {"kind": "string", "value": value} if value else None
    if not isinstance(value, dict):
        raise ValueError(f"unsupported handler reference: {value!r}")
    if "kind" in value:
        return value

    if "namespace" in value:
        return {
            "kind": "bound",
            "source_module": str(value.get("namespace") or ""),
            "method_name": str(value.get("method") or ""),
        }

    ref = value.get("reference")
    if isinstance(ref, str):
        return coerce_handler(ref)
    if isinstance(ref, (list, tuple)):
        if not ref:
            return None
        module = str(ref[0])
        method = str(ref[1]) if len(ref) > 1 else "handle"
        return {"kind": "object", "module_path": module, "method_name": method}

    module = value.get("moduleNameOrPath") or value.get("module")
    if module:
        return {
            "kind": "object",
            "module_path": str(module),
            "method_name": str(value.get("method") or "handle"),
        }

    if not ref and not module:
        return None
    raise ValueError(f"unsupported handler reference: {value!r}")


# ----------------------------
# Routes
# ----------------------------


class Route(BaseModel):
    """One entry of the framework's route table."""

    model_config = ConfigDict(frozen=True)

    pattern: str
    methods: list[HttpMethod]
    middleware: list[str] = Field(default_factory=list)
    handler: Optional[HandlerReference] = None

    @model_validator(mode="before")
    @classmethod
    def _normalize_raw(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)

        # frameworks that resolve handlers up front keep them under meta.resolvedHandler
        meta = data.pop("meta", None) or {}
        resolved = data.pop("resolvedHandler", None) or meta.get("resolvedHandler")
        if isinstance(resolved, dict) and resolved.get("namespace"):
            handler_string = data.get("handler") if isinstance(data.get("handler"), str) else ""
            data["handler"] = {
                "kind": "bound",
                "source_module": str(resolved["namespace"]),
                "method_name": str(resolved.get("method") or ""),
                "handler_string": handler_string,
            }
        else:
            data["handler"] = coerce_handler(data.get("handler"))
        return data

    @field_validator("methods", mode="before")
    @classmethod
    def _upper_unique(cls, v: Any) -> Any:
        if isinstance(v, str):
            v = [v]
        out: list[str] = []
        for m in v or []:
            m = str(m).strip().upper()
            if m and m not in out:
                out.append(m)
        return out

    @field_validator("middleware", mode="before")
    @classmethod
    def _middleware_names(cls, v: Any) -> Any:
        if v is None:
            return []
        if isinstance(v, str):
            return [v]
        names = []
        for m in v:
            # some route dumps serialize middleware as {"name": ..., "args": ...}
            if isinstance(m, dict):
                m = m.get("name", "")
            names.append(str(m))
        return names


# ----------------------------
# Annotation fragments
# ----------------------------


@dataclass(frozen=True)
class ResolvedHandler:
    source_file: Path
    action: str
    display_path: str  # e.g. controllers/UsersController


@dataclass(frozen=True)
class Parameter:
    name: str
    location: ParamLocation
    required: bool = False
    schema: dict[str, Any] = field(default_factory=lambda: {"type": "string"})
    description: str = ""

    @property
    def key(self) -> tuple[str, str]:
        return (self.name, self.location)

    def to_openapi(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "in": self.location,
            "name": self.name,
            "required": self.required,
            "schema": dict(self.schema),
        }
        if self.description:
            out["description"] = self.description
        return out


@dataclass(frozen=True)
class ResponseSpec:
    description: str
    content: Optional[dict[str, Any]] = None
    summary: Optional[str] = None  # transient, seeds the operation summary

    def to_openapi(self) -> dict[str, Any]:
        out: dict[str, Any] = {"description": self.description}
        if self.content is not None:
            out["content"] = self.content
        if self.summary is not None:
            out["summary"] = self.summary
        return out


@dataclass(frozen=True)
class OperationAnnotation:
    summary: str = ""
    description: str = ""
    operation_id: str = ""
    parameters: tuple[Parameter, ...] = ()
    request_body: Optional[dict[str, Any]] = None
    responses: dict[str, ResponseSpec] = field(default_factory=dict)

    def is_empty(self) -> bool:
        return self == OperationAnnotation()
