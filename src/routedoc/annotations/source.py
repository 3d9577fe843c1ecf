from __future__ import annotations

import ast
import logging
from pathlib import Path
from typing import Iterable

from routedoc.annotations.parser import parse_annotation
from routedoc.domain.models import OperationAnnotation
from routedoc.repo.scanner import read_source

log = logging.getLogger(__name__)


def _iter_function_defs(tree: ast.AST) -> Iterable[ast.FunctionDef | ast.AsyncFunctionDef]:
    for node in ast.walk(tree):
        if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)):
            yield node


def extract_annotations_from_source(source: str, filename: str = "<source>") -> dict[str, OperationAnnotation]:
    """
    Map function/method name -> parsed annotation for every function in the
    source that carries a docstring. Uses ast only; does not import/execute code.

    When two functions share a name (methods of different classes), the one
    declared first wins.
    """
    try:
        tree = ast.parse(source, filename=filename)
    except (SyntaxError, ValueError) as e:
        # ValueError: NUL bytes in the source
        log.warning("Cannot parse %s, skipping its annotations: %s", filename, e)
        return {}

    out: dict[str, OperationAnnotation] = {}
    nodes = sorted(_iter_function_defs(tree), key=lambda n: (n.lineno, n.col_offset))
    for node in nodes:
        doc = ast.get_docstring(node)
        if not doc or node.name in out:
            continue
        out[node.name] = parse_annotation(doc)
    return out


class AnnotationCache:
    """
    Parsed annotations per source file, for the lifetime of one generation run.

    A file is read and parsed once no matter how many actions are requested
    from it. Keys are resolved absolute paths.
    """

    def __init__(self) -> None:
        self._by_file: dict[Path, dict[str, OperationAnnotation]] = {}

    def __len__(self) -> int:
        return len(self._by_file)

    def __contains__(self, source_file: object) -> bool:
        return isinstance(source_file, Path) and source_file.resolve() in self._by_file

    def annotations_for(self, source_file: Path) -> dict[str, OperationAnnotation]:
        key = source_file.resolve()
        cached = self._by_file.get(key)
        if cached is None:
            cached = extract_annotations_from_source(read_source(key), filename=str(key))
            log.debug("Parsed %d annotated action(s) from %s", len(cached), key)
            self._by_file[key] = cached
        return cached

    def get_custom_annotations(self, source_file: Path, action: str) -> dict[str, OperationAnnotation]:
        annotations = self.annotations_for(source_file)
        if action not in annotations:
            log.debug("No annotation for %s in %s", action, source_file)
        return annotations
