"""dealscope: dependency-aware multi-agent analysis of sales conversations."""

from dealscope.version import __version__

__all__ = ["__version__"]
