from pathlib import Path

import pytest

from routedoc.errors import SourceReadError
from routedoc.repo.scanner import read_source, resolve_dir, scan_python_files


def touch(p: Path) -> None:
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text("", encoding="utf-8")


def test_scan_python_files_sorted_and_pruned(tmp_path: Path):
    for rel in ("b.py", "a.py", "notes.txt", "sub/c.py", "__pycache__/x.py", ".venv/y.py"):
        touch(tmp_path / rel)

    files = [p.relative_to(tmp_path).as_posix() for p in scan_python_files(tmp_path)]
    assert files == ["a.py", "b.py", "sub/c.py"]


def test_resolve_dir_prefers_lower_case(tmp_path: Path):
    assert resolve_dir(tmp_path, "models") is None

    (tmp_path / "Models").mkdir()
    assert resolve_dir(tmp_path, "models").name in ("Models", "models")

    (tmp_path / "models").mkdir(exist_ok=True)
    assert resolve_dir(tmp_path, "models") == tmp_path / "models"


def test_read_source_wraps_os_errors(tmp_path: Path):
    with pytest.raises(SourceReadError) as exc:
        read_source(tmp_path / "missing.py")
    assert "missing.py" in str(exc.value)
