"""Helpers for loading user-provided test files."""
from __future__ import annotations

import importlib.machinery
import importlib.util
import sys
from pathlib import Path
from types import ModuleType
from typing import Union


def load_module_from_path(source: Union[str, Path]) -> ModuleType:
    """Import the Python file at ``source`` under a unique module name."""

    path = Path(source).expanduser().resolve()
    if not path.exists():
        raise FileNotFoundError(f"Test file not found: {path}")
    module_name = f"pagetest_user_{path.stem}_{hash(str(path)) & 0xFFFF:x}"
    spec = importlib.util.spec_from_file_location(module_name, path)
    if spec is None or spec.loader is None:
        raise ImportError(f"Unable to load module from {path}")
    module = importlib.util.module_from_spec(spec)
    loader = spec.loader
    assert isinstance(loader, importlib.machinery.SourceFileLoader)  # type: ignore[attr-defined]
    sys.modules[module_name] = module
    try:
        loader.exec_module(module)
    except BaseException:
        sys.modules.pop(module_name, None)
        raise
    return module
