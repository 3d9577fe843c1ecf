from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Callable, Optional

from routedoc.config import GeneratorOptions
from routedoc.domain.models import (
    BoundMethod,
    ObjectReference,
    ResolvedHandler,
    StringReference,
)

log = logging.getLogger(__name__)

_NON_ALNUM = re.compile(r"[^a-zA-Z0-9]")

# frameworks resolve anonymous handlers to this catch-all method
CATCH_ALL_METHOD = "handle"
CONTROLLERS_DIR = "controllers"
# namespace prefix of legacy HTTP controllers, dropped from display paths
LEGACY_CONTROLLERS_PREFIX = "App/Controllers/Http/"


def format_operation_id(raw: str) -> str:
    """
    "UsersController.show" -> "usersControllerShow"

    Distinct references that reduce to the same tokens collide.
    """
    words = _NON_ALNUM.sub(" ", raw or "").split()
    joined = "".join(w[0].upper() + w[1:] for w in words)
    return joined[:1].lower() + joined[1:]


def _source_path(base: Path, module: str) -> Path:
    module = module.strip().strip("/")
    if module.endswith(".py"):
        module = module[:-3]
    return base / f"{module}.py"


def _display_path(source_file: Path, options: GeneratorOptions) -> str:
    # controllers/UsersController, relative to the app dir when possible
    stem = source_file.with_suffix("")
    for base in (options.app_root, options.root):
        try:
            shown = stem.relative_to(base).as_posix()
        except ValueError:
            continue
        return shown.removeprefix(LEGACY_CONTROLLERS_PREFIX)
    return stem.as_posix().removeprefix(LEGACY_CONTROLLERS_PREFIX)


def _resolve_bound(ref: BoundMethod, options: GeneratorOptions) -> Optional[ResolvedHandler]:
    module = ref.source_module.strip()
    if not module or not ref.method_name or ref.method_name == CATCH_ALL_METHOD:
        return None
    if "/" not in module:
        module = module.replace(".", "/")
    source_file = _source_path(options.root, module)
    return ResolvedHandler(source_file, ref.method_name, _display_path(source_file, options))


def _resolve_string(ref: StringReference, options: GeneratorOptions) -> Optional[ResolvedHandler]:
    controller, _, action = ref.value.partition(".")
    action = action.split(".")[0]
    if not controller or not action:
        return None
    source_file = _source_path(options.app_root / CONTROLLERS_DIR, controller)
    return ResolvedHandler(source_file, action, _display_path(source_file, options))


def _resolve_object(ref: ObjectReference, options: GeneratorOptions) -> Optional[ResolvedHandler]:
    module = ref.module_path.replace("#", "")
    if not module.strip() or not ref.method_name:
        return None
    source_file = _source_path(options.app_root, module)
    return ResolvedHandler(source_file, ref.method_name, _display_path(source_file, options))


_RESOLVERS: dict[str, Callable[..., Optional[ResolvedHandler]]] = {
    "bound": _resolve_bound,
    "string": _resolve_string,
    "object": _resolve_object,
}


def resolve_handler(ref, options: GeneratorOptions) -> Optional[ResolvedHandler]:
    """
    Map a handler reference to (source file, action). None when the
    reference is empty or names no concrete controller action.
    """
    if ref is None:
        return None
    resolved = _RESOLVERS[ref.kind](ref, options)
    if resolved is None:
        log.debug("Unresolvable handler reference %r", ref.raw)
    return resolved
