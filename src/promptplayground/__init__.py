"""Prompt Playground: prompt execution orchestrator."""

__version__ = "0.1.0"
