"""
Shared exception hierarchy for the cron workflow compiler and engine.
"""

from __future__ import annotations


class WorkflowCompilerError(Exception):
    """Base class for all workflow related errors."""


class ValidationPhaseError(WorkflowCompilerError):
    """Raised when the workflow specification fails structural checks."""


class ConditionError(ValidationPhaseError):
    """Raised when an ``if_condition`` expression cannot be parsed or evaluated."""


class ExecutionError(WorkflowCompilerError):
    """Raised for runtime execution issues (missing collaborators, unknown node types)."""


class NodeExecutionError(ExecutionError):
    """
    The first node failure of a run. Carries the failing node id; the
    original exception is available as ``__cause__``.
    """

    def __init__(self, node_id: str, cause: BaseException) -> None:
        self.node_id = node_id
        super().__init__(f"workflow node {node_id} failed: {describe_error(cause)}")
        self.__cause__ = cause


def describe_error(exc: BaseException) -> str:
    """Render an exception the way it is stored in execution traces."""

    text = str(exc)
    if text:
        return text
    return type(exc).__name__
