"""Command-line producer and inspector for the sensor stream service."""

from importlib import import_module
from types import ModuleType


def __getattr__(name: str) -> ModuleType:
    # Resolve ``cli.app`` lazily so tests can patch ``cli.app.ApiClient``.
    if name == "app":
        return import_module("cli.app")
    raise AttributeError(name)


__all__ = []
