"""Webapp services."""

from .engine_runner import EngineRunner, get_engine_runner

__all__ = ["EngineRunner", "get_engine_runner"]
