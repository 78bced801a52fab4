"""
Public entrypoint for compiling cron workflows into plans and running them.
"""

from __future__ import annotations

from cron_workflow.compiler.parse import parse_job_spec, parse_workflow_spec
from cron_workflow.compiler.plan import build_plan
from cron_workflow.errors import (
    ConditionError,
    ExecutionError,
    NodeExecutionError,
    ValidationPhaseError,
    WorkflowCompilerError,
)
from cron_workflow.registry.node_registry import NodeHandler, NodeRegistry
from cron_workflow.runtime.engine import RunResult, run
from cron_workflow.runtime.service import WorkflowService
from cron_workflow.schema.models import (
    CronJobSpec,
    NodeResult,
    NodeStatus,
    Plan,
    WorkflowExecution,
    WorkflowNodeExecution,
    WorkflowSpec,
)

__all__ = [
    "ConditionError",
    "CronJobSpec",
    "ExecutionError",
    "NodeExecutionError",
    "NodeHandler",
    "NodeRegistry",
    "NodeResult",
    "NodeStatus",
    "Plan",
    "RunResult",
    "ValidationPhaseError",
    "WorkflowCompilerError",
    "WorkflowExecution",
    "WorkflowNodeExecution",
    "WorkflowService",
    "WorkflowSpec",
    "build_plan",
    "parse_job_spec",
    "parse_workflow_spec",
    "run",
]
