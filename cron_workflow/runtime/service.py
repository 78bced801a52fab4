"""
Wires the node registry, plan compiler and engine together for triggered jobs.
"""

from __future__ import annotations

import inspect
import logging
from typing import Any, Optional

from cron_workflow.compiler.plan import build_plan
from cron_workflow.errors import ExecutionError, ValidationPhaseError
from cron_workflow.registry.node_registry import NodeHandler, NodeRegistry
from cron_workflow.runtime import clock
from cron_workflow.runtime.conditions import validate_if_condition
from cron_workflow.runtime.engine import Clock, RunIdFactory, RunResult, coerce_node_result, run
from cron_workflow.schema.models import CronJobSpec, NodeResult, Plan, WorkflowNode

logger = logging.getLogger(__name__)


class WorkflowService:
    """
    Compiles job workflows against the registered node types and runs them
    with handlers resolved from the same registry.
    """

    def __init__(
        self,
        registry: Optional[NodeRegistry] = None,
        *,
        now_iso: Clock = clock.now_iso,
        new_run_id: RunIdFactory = clock.new_run_id,
    ) -> None:
        self.registry = registry if registry is not None else NodeRegistry()
        self._now_iso = now_iso
        self._new_run_id = new_run_id

    def register_handler(self, handler: Optional[NodeHandler]) -> None:
        self.registry.register(handler)

    def build_plan(self, workflow: Any) -> Plan:
        return build_plan(workflow, self.registry.supports, validate_if_condition)

    async def run_node(self, job: CronJobSpec, node: WorkflowNode) -> NodeResult:
        handler = self.registry.resolve(node.type)
        if handler is None:
            raise ExecutionError(f"unsupported workflow node type={node.type!r}")
        outcome = handler.execute(job, node)
        if inspect.isawaitable(outcome):
            outcome = await outcome
        return coerce_node_result(outcome)

    async def execute_job(self, job: CronJobSpec) -> RunResult:
        try:
            plan = self.build_plan(job.workflow)
        except ValidationPhaseError as exc:
            logger.warning("cron job %s has an invalid workflow: %s", job.id, exc)
            raise ValidationPhaseError(f"invalid cron workflow: {exc}") from exc
        return await run(job, plan, self.run_node, self._now_iso, self._new_run_id)
