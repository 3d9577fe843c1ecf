from __future__ import annotations

import tomllib
from pathlib import Path
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from routedoc.errors import ConfigError

_ALIASES = {
    "appDir": "app_dir",
    "preferredPutPatch": "preferred_put_patch",
    "snakeCase": "snake_case",
    "tagIndex": "tag_index",
}


class GeneratorOptions(BaseModel):
    """
    Options for one generation run.

    Accepts both the snake_case names and the camelCase aliases used by
    route-table tooling (preferredPutPatch, snakeCase, tagIndex, appDir).
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")

    title: str
    version: str
    path: Path = Path(".")
    app_dir: str = Field("app", alias="appDir")
    ignore: tuple[str, ...] = ()
    preferred_put_patch: Literal["PUT", "PATCH"] = Field("PUT", alias="preferredPutPatch")
    snake_case: bool = Field(True, alias="snakeCase")
    tag_index: int = Field(1, alias="tagIndex", ge=0)

    @field_validator("preferred_put_patch", mode="before")
    @classmethod
    def _upper(cls, v: Any) -> Any:
        return v.upper() if isinstance(v, str) else v

    @field_validator("ignore", mode="before")
    @classmethod
    def _ignore_list(cls, v: Any) -> Any:
        if v is None:
            return ()
        if isinstance(v, str):
            return (v,)
        return tuple(v)

    @property
    def root(self) -> Path:
        return self.path.expanduser().resolve()

    @property
    def app_root(self) -> Path:
        return self.root / self.app_dir


def build_options(**values: Any) -> GeneratorOptions:
    try:
        return GeneratorOptions(**values)
    except ValidationError as e:
        raise ConfigError(str(e)) from e


def read_pyproject_table(root: Path) -> dict[str, Any]:
    """Return the [tool.routedoc] table of <root>/pyproject.toml, or {}."""
    pyproject = root / "pyproject.toml"
    if not pyproject.is_file():
        return {}
    try:
        data = tomllib.loads(pyproject.read_text(encoding="utf-8"))
    except (OSError, tomllib.TOMLDecodeError) as e:
        raise ConfigError(f"Cannot read {pyproject}: {e}") from e
    table = data.get("tool", {}).get("routedoc", {})
    if not isinstance(table, dict):
        raise ConfigError(f"[tool.routedoc] in {pyproject} must be a table")
    return table


def load_options(root: Path, overrides: Optional[dict[str, Any]] = None) -> GeneratorOptions:
    """
    Options from [tool.routedoc] with explicit overrides on top.
    None-valued overrides are treated as "not given".
    """
    values: dict[str, Any] = {
        _ALIASES.get(k, k): v for k, v in read_pyproject_table(root).items()
    }
    # a relative path in pyproject.toml is relative to the project, not the cwd
    values["path"] = str(root / values.get("path", "."))
    for k, v in (overrides or {}).items():
        if v is None:
            continue
        values[k] = v
    return build_options(**values)
