"""Shared helpers."""
from .awaiting import maybe_await
from .importing import load_module_from_path

__all__ = ["load_module_from_path", "maybe_await"]
