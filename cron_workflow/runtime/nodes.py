"""
Builtin node handlers. Each wraps an injected side effect so hosts decide how
text is delivered, how delays sleep and how conditions are evaluated.
"""

from __future__ import annotations

import asyncio
import inspect
from typing import Any, Awaitable, Callable, Optional, Union

from cron_workflow.compiler.plan import NODE_TYPE_DELAY, NODE_TYPE_IF_EVENT, NODE_TYPE_TEXT_EVENT
from cron_workflow.errors import ExecutionError
from cron_workflow.registry.node_registry import NodeRegistry
from cron_workflow.runtime.conditions import evaluate_if_condition
from cron_workflow.schema.models import CronJobSpec, NodeResult, WorkflowNode

TextTaskExecutor = Callable[[CronJobSpec, str], Union[None, Awaitable[None]]]
DelayExecutor = Callable[[int], Union[None, Awaitable[None]]]
ConditionEvaluator = Callable[[str, CronJobSpec], bool]


async def _maybe_await(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


async def sleep_delay(seconds: int) -> None:
    if seconds < 0:
        raise ExecutionError("workflow delay_seconds must be greater than or equal to 0")
    if seconds == 0:
        return
    await asyncio.sleep(seconds)


class TextEventHandler:
    type = NODE_TYPE_TEXT_EVENT

    def __init__(self, execute_text_task: Optional[TextTaskExecutor]) -> None:
        self.execute_text_task = execute_text_task

    async def execute(self, job: CronJobSpec, node: WorkflowNode) -> NodeResult:
        if self.execute_text_task is None:
            raise ExecutionError("cron text node executor is unavailable")
        text = node.text.strip()
        if not text:
            raise ExecutionError("workflow text_event requires non-empty text")
        await _maybe_await(self.execute_text_task(job, text))
        return NodeResult()


class DelayHandler:
    type = NODE_TYPE_DELAY

    def __init__(self, execute_delay: Optional[DelayExecutor] = sleep_delay) -> None:
        self.execute_delay = execute_delay

    async def execute(self, job: CronJobSpec, node: WorkflowNode) -> NodeResult:
        if self.execute_delay is None:
            raise ExecutionError("cron delay node executor is unavailable")
        await _maybe_await(self.execute_delay(node.delay_seconds))
        return NodeResult()


class IfEventHandler:
    """Stops the chain when the condition does not match the job."""

    type = NODE_TYPE_IF_EVENT

    def __init__(
        self, evaluate_condition: Optional[ConditionEvaluator] = evaluate_if_condition
    ) -> None:
        self.evaluate_condition = evaluate_condition

    async def execute(self, job: CronJobSpec, node: WorkflowNode) -> NodeResult:
        if self.evaluate_condition is None:
            raise ExecutionError("cron if node evaluator is unavailable")
        matched = self.evaluate_condition(node.if_condition, job)
        return NodeResult(stop=not matched)


def register_builtin_handlers(
    registry: NodeRegistry,
    execute_text_task: Optional[TextTaskExecutor],
    *,
    execute_delay: Optional[DelayExecutor] = sleep_delay,
) -> NodeRegistry:
    registry.register(TextEventHandler(execute_text_task))
    registry.register(DelayHandler(execute_delay))
    registry.register(IfEventHandler())
    return registry
