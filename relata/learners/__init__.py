"""Learner declarations: parameter validation, translation and task binding."""

from .parameters import (
    ParameterSchema,
    ValidatedParams,
    coerce_parameter_value,
    render_value,
    translate,
    validate,
)
from .catalog import LearnerCatalog
from .task import Task, ToolkitInvocation

__all__ = [
    "ParameterSchema",
    "ValidatedParams",
    "coerce_parameter_value",
    "render_value",
    "translate",
    "validate",
    "LearnerCatalog",
    "Task",
    "ToolkitInvocation",
]
