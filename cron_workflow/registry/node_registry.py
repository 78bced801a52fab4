"""
In-memory registry of executable workflow node types.

The compiler asks the registry whether a node type is supported and the
runtime resolves the handler that performs a node's side effect. ``start`` is
reserved: it is always supported and can never be bound to a handler.
"""

from __future__ import annotations

from typing import Any, Awaitable, Dict, List, Optional, Protocol, Union, runtime_checkable

from cron_workflow.compiler.plan import NODE_TYPE_START
from cron_workflow.schema.models import CronJobSpec, NodeResult, WorkflowNode


@runtime_checkable
class NodeHandler(Protocol):
    type: str

    def execute(
        self, job: CronJobSpec, node: WorkflowNode
    ) -> Union[NodeResult, Awaitable[NodeResult]]: ...


def normalize_node_type(raw: Any) -> str:
    return str(raw or "").strip().lower()


class NodeRegistry:
    """Maps normalized node types to handlers. Not synchronized; register at startup."""

    def __init__(self) -> None:
        self._handlers: Dict[str, NodeHandler] = {}

    def register(self, handler: Optional[NodeHandler]) -> None:
        if handler is None:
            return
        node_type = normalize_node_type(getattr(handler, "type", ""))
        if not node_type or node_type == NODE_TYPE_START:
            return
        self._handlers[node_type] = handler

    def resolve(self, node_type: str) -> Optional[NodeHandler]:
        return self._handlers.get(normalize_node_type(node_type))

    def supports(self, node_type: str) -> bool:
        if normalize_node_type(node_type) == NODE_TYPE_START:
            return True
        return self.resolve(node_type) is not None

    def types(self) -> List[str]:
        return sorted(self._handlers)
