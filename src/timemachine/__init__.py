"""Timemachine - transparent git history for a tree of configuration files."""

from timemachine.core.machine import TimeMachine

__version__ = "0.1.0"

__all__ = ["TimeMachine", "__version__"]
