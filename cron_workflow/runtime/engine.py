"""
Sequential executor for compiled workflow plans.

``run`` walks ``plan.order`` one node at a time, records a trace entry per
node and decides when the chain stops. Node failures are recorded in the
trace rather than raised; only missing collaborators raise.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Mapping, Optional, Union

from cron_workflow.errors import ExecutionError, NodeExecutionError, describe_error
from cron_workflow.schema.models import (
    CronJobSpec,
    NodeResult,
    NodeStatus,
    Plan,
    WorkflowExecution,
    WorkflowNode,
    WorkflowNodeExecution,
)

logger = logging.getLogger(__name__)

NodeRunner = Callable[
    [CronJobSpec, WorkflowNode],
    Union[NodeResult, None, Awaitable[Union[NodeResult, None]]],
]
Clock = Callable[[], str]
RunIdFactory = Callable[[], str]

_CANCELLATION_ERRORS = (asyncio.CancelledError, asyncio.TimeoutError, TimeoutError)


@dataclass(frozen=True)
class RunResult:
    """
    Trace of one run plus the first node failure, if any. A run that kept
    going past a ``continue_on_error`` node still reports that failure here;
    inspect ``execution`` for the full outcome.
    """

    execution: WorkflowExecution
    error: Optional[NodeExecutionError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def raise_for_error(self) -> WorkflowExecution:
        if self.error is not None:
            raise self.error
        return self.execution


async def run(
    job: CronJobSpec,
    plan: Optional[Plan],
    run_node: Optional[NodeRunner],
    now_iso: Optional[Clock],
    new_run_id: Optional[RunIdFactory],
) -> RunResult:
    """
    Execute ``plan`` once for ``job`` and return the trace.

    A cancellation or timeout raised while a node runs is recorded as that
    node's failure and stops the chain. It is not re-raised: a task awaiting
    ``run`` that receives ``task.cancel()`` during a node still completes
    normally with its ``RunResult``, so callers relying on ``TaskGroup`` or
    ``task.cancel()`` propagation should check ``result.error`` with
    ``is_cancellation`` instead.
    """
    if plan is None:
        raise ExecutionError("workflow plan is required")
    if run_node is None:
        raise ExecutionError("workflow node runner is unavailable")
    if now_iso is None:
        raise ExecutionError("workflow clock helper is unavailable")
    if new_run_id is None:
        raise ExecutionError("workflow run id generator is unavailable")

    execution = WorkflowExecution(run_id=new_run_id(), started_at=now_iso())
    logger.info(
        "workflow run %s started job=%s nodes=%d",
        execution.run_id,
        job.id if job is not None else "",
        len(plan.order),
    )

    first_error: Optional[NodeExecutionError] = None
    for idx, node in enumerate(plan.order):
        started_at = now_iso()
        result = NodeResult()
        failure: Optional[BaseException] = None
        try:
            result = await _invoke(run_node, job, node)
        except (Exception, asyncio.CancelledError) as exc:
            failure = exc
        finished_at = now_iso()

        step = WorkflowNodeExecution(
            node_id=node.id,
            node_type=node.type,
            status=NodeStatus.succeeded,
            continue_on_error=node.continue_on_error,
            started_at=started_at,
            finished_at=finished_at,
        )
        if failure is not None:
            step.status = NodeStatus.failed
            step.error = describe_error(failure)
            execution.had_failures = True
            if first_error is None:
                first_error = NodeExecutionError(node.id, failure)
            logger.warning(
                "workflow run %s node %s (%s) failed: %s",
                execution.run_id,
                node.id,
                node.type,
                step.error,
            )
        execution.nodes.append(step)

        force_stop = failure is not None and is_cancellation(failure)
        should_stop = result.stop or (
            failure is not None and (not node.continue_on_error or force_stop)
        )
        if not should_stop:
            continue

        for skipped_node in plan.order[idx + 1 :]:
            skipped_at = now_iso()
            execution.nodes.append(
                WorkflowNodeExecution(
                    node_id=skipped_node.id,
                    node_type=skipped_node.type,
                    status=NodeStatus.skipped,
                    continue_on_error=skipped_node.continue_on_error,
                    started_at=skipped_at,
                    finished_at=skipped_at,
                )
            )
            logger.debug("workflow run %s node %s skipped", execution.run_id, skipped_node.id)
        break

    execution.finished_at = now_iso()
    logger.info(
        "workflow run %s finished had_failures=%s",
        execution.run_id,
        execution.had_failures,
    )
    return RunResult(execution=execution, error=first_error)


def is_cancellation(exc: BaseException) -> bool:
    """True when ``exc``, or an exception it was raised from, is a cancellation or timeout."""

    seen = set()
    current: Optional[BaseException] = exc
    while current is not None and id(current) not in seen:
        if isinstance(current, _CANCELLATION_ERRORS):
            return True
        seen.add(id(current))
        current = current.__cause__
    return False


async def _invoke(run_node: NodeRunner, job: CronJobSpec, node: WorkflowNode) -> NodeResult:
    outcome: Any = run_node(job, node)
    if inspect.isawaitable(outcome):
        outcome = await outcome
    return coerce_node_result(outcome)


def coerce_node_result(outcome: Any) -> NodeResult:
    if outcome is None:
        return NodeResult()
    if isinstance(outcome, NodeResult):
        return outcome
    if isinstance(outcome, Mapping):
        return NodeResult.model_validate(outcome)
    raise ExecutionError(
        f"node runner returned {type(outcome).__name__}; expected NodeResult"
    )
