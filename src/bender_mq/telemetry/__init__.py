from . import logging, metrics

__all__ = ["logging", "metrics"]
