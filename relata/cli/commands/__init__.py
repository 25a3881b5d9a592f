"""CLI commands for relata."""

from . import (
    validate,
    resolve,
    describe,
    params,
    config_cmd,
)

__all__ = [
    "validate",
    "resolve",
    "describe",
    "params",
    "config_cmd",
]
