"""
Stage 2 — Validate and normalize a WorkflowSpec into an executable Plan.

A valid workflow is a single chain: exactly one ``start`` node, every node
with at most one incoming and one outgoing edge, and every other node
reachable by walking the chain from ``start``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Dict, List, Optional, Sequence, Set

from cron_workflow.compiler.parse import parse_workflow_spec
from cron_workflow.errors import ValidationPhaseError
from cron_workflow.schema.models import (
    Plan,
    WorkflowEdge,
    WorkflowNode,
    WorkflowSpec,
    WorkflowViewport,
)

WORKFLOW_VERSION_V1 = "v1"

NODE_TYPE_START = "start"
NODE_TYPE_TEXT_EVENT = "text_event"
NODE_TYPE_DELAY = "delay"
NODE_TYPE_IF_EVENT = "if_event"

SupportsNodeType = Callable[[str], bool]
IfConditionValidator = Callable[[str], Any]


@dataclass
class _EdgeIndex:
    edges: List[WorkflowEdge] = field(default_factory=list)
    next_by_id: Dict[str, str] = field(default_factory=dict)
    in_degree: Dict[str, int] = field(default_factory=dict)
    out_degree: Dict[str, int] = field(default_factory=dict)


def build_plan(
    spec: Any,
    supports_node_type: Optional[SupportsNodeType] = None,
    validate_if_condition: Optional[IfConditionValidator] = None,
) -> Plan:
    """
    Compile ``spec`` into a Plan or raise ``ValidationPhaseError`` on the first
    problem found.

    ``supports_node_type`` decides which non-start types are executable; types
    other than the builtin ones are only accepted when it is supplied.
    ``validate_if_condition`` signals an invalid ``if_event`` condition by
    raising.
    """

    if spec is None:
        raise ValidationPhaseError("workflow is required for task_type=workflow")
    spec = parse_workflow_spec(spec)

    version = spec.version.strip().lower()
    if version != WORKFLOW_VERSION_V1:
        raise ValidationPhaseError(f"unsupported workflow version={spec.version!r}")
    if len(spec.nodes) < 2:
        raise ValidationPhaseError("workflow requires at least 2 nodes")
    if len(spec.edges) < 1:
        raise ValidationPhaseError("workflow requires at least 1 edge")

    node_by_id: Dict[str, WorkflowNode] = {}
    start_id = ""
    for raw_node in spec.nodes:
        node = _normalize_node(raw_node, node_by_id, supports_node_type, validate_if_condition)
        if node.type == NODE_TYPE_START:
            if start_id:
                raise ValidationPhaseError("workflow requires exactly one start node")
            start_id = node.id
        node_by_id[node.id] = node

    if not start_id:
        raise ValidationPhaseError("workflow requires exactly one start node")

    index = _index_edges(spec.edges, node_by_id)

    if index.in_degree.get(start_id, 0) > 0:
        raise ValidationPhaseError("workflow start node cannot have incoming edge")
    if index.out_degree.get(start_id, 0) == 0:
        raise ValidationPhaseError(
            "workflow start node must connect to at least one executable node"
        )

    order = _walk_chain(start_id, node_by_id, index.next_by_id)
    if not order:
        raise ValidationPhaseError("workflow requires at least one executable node")

    reachable = {node.id for node in order}
    for node_id, node in node_by_id.items():
        if node.type != NODE_TYPE_START and node_id not in reachable:
            raise ValidationPhaseError(f"workflow node {node_id} is not reachable from start")

    workflow = WorkflowSpec(
        version=WORKFLOW_VERSION_V1,
        viewport=_normalize_viewport(spec.viewport),
        nodes=tuple(node_by_id.values()),
        edges=tuple(index.edges),
    )
    return Plan(
        workflow=workflow,
        start_id=start_id,
        node_by_id=MappingProxyType(node_by_id),
        next_by_id=MappingProxyType(index.next_by_id),
        order=tuple(order),
    )


def _normalize_node(
    raw: WorkflowNode,
    seen: Dict[str, WorkflowNode],
    supports_node_type: Optional[SupportsNodeType],
    validate_if_condition: Optional[IfConditionValidator],
) -> WorkflowNode:
    update: Dict[str, Any] = {
        "id": raw.id.strip(),
        "type": raw.type.strip().lower(),
        "title": raw.title.strip(),
        "text": raw.text.strip(),
        "if_condition": raw.if_condition.strip(),
    }
    node_id = update["id"]
    node_type = update["type"]

    if not node_id:
        raise ValidationPhaseError("workflow node id is required")
    if node_id in seen:
        raise ValidationPhaseError(f"workflow node id duplicated: {node_id}")
    if (
        node_type != NODE_TYPE_START
        and supports_node_type is not None
        and not supports_node_type(node_type)
    ):
        raise ValidationPhaseError(f"workflow node {node_id} has unsupported type={node_type!r}")

    if node_type == NODE_TYPE_START:
        update.update(continue_on_error=False, delay_seconds=0, text="", if_condition="")
    elif node_type == NODE_TYPE_TEXT_EVENT:
        update.update(delay_seconds=0, if_condition="")
        if not update["text"]:
            raise ValidationPhaseError(f"workflow node {node_id} requires non-empty text")
    elif node_type == NODE_TYPE_DELAY:
        update.update(text="", if_condition="")
        if raw.delay_seconds < 0:
            raise ValidationPhaseError(
                f"workflow node {node_id} delay_seconds must be greater than or equal to 0"
            )
    elif node_type == NODE_TYPE_IF_EVENT:
        update.update(text="", delay_seconds=0)
        if validate_if_condition is not None:
            try:
                validate_if_condition(update["if_condition"])
            except Exception as exc:
                raise ValidationPhaseError(
                    f"workflow node {node_id} if_condition invalid: {exc}"
                ) from exc
    elif supports_node_type is None:
        raise ValidationPhaseError(f"workflow node {node_id} has unsupported type={node_type!r}")

    return raw.model_copy(update=update)


def _index_edges(raw_edges: Sequence[WorkflowEdge], node_by_id: Dict[str, WorkflowNode]) -> _EdgeIndex:
    index = _EdgeIndex()
    edge_ids: Set[str] = set()

    for raw in raw_edges:
        edge = raw.model_copy(
            update={
                "id": raw.id.strip(),
                "source": raw.source.strip(),
                "target": raw.target.strip(),
            }
        )
        if not edge.id:
            raise ValidationPhaseError("workflow edge id is required")
        if edge.id in edge_ids:
            raise ValidationPhaseError(f"workflow edge id duplicated: {edge.id}")
        edge_ids.add(edge.id)

        if not edge.source or not edge.target:
            raise ValidationPhaseError(f"workflow edge {edge.id} requires source and target")
        if edge.source == edge.target:
            raise ValidationPhaseError(f"workflow edge {edge.id} cannot link node to itself")
        if edge.source not in node_by_id:
            raise ValidationPhaseError(f"workflow edge {edge.id} source not found: {edge.source}")
        if edge.target not in node_by_id:
            raise ValidationPhaseError(f"workflow edge {edge.id} target not found: {edge.target}")

        index.out_degree[edge.source] = index.out_degree.get(edge.source, 0) + 1
        if index.out_degree[edge.source] > 1:
            raise ValidationPhaseError(
                f"workflow node {edge.source} has more than one outgoing edge"
            )
        index.in_degree[edge.target] = index.in_degree.get(edge.target, 0) + 1
        if index.in_degree[edge.target] > 1:
            raise ValidationPhaseError(
                f"workflow node {edge.target} has more than one incoming edge"
            )

        index.next_by_id[edge.source] = edge.target
        index.edges.append(edge)

    return index


def _walk_chain(
    start_id: str,
    node_by_id: Dict[str, WorkflowNode],
    next_by_id: Dict[str, str],
) -> List[WorkflowNode]:
    visited = {start_id}
    order: List[WorkflowNode] = []
    cursor = start_id
    while cursor in next_by_id:
        next_id = next_by_id[cursor]
        if next_id in visited:
            raise ValidationPhaseError("workflow graph must be acyclic")
        visited.add(next_id)
        next_node = node_by_id[next_id]
        if next_node.type == NODE_TYPE_START:
            raise ValidationPhaseError("workflow start node cannot be targeted by execution path")
        order.append(next_node)
        cursor = next_id
    return order


def _normalize_viewport(viewport: Optional[WorkflowViewport]) -> Optional[WorkflowViewport]:
    if viewport is None:
        return None
    if viewport.zoom <= 0:
        return viewport.model_copy(update={"zoom": 1})
    return viewport.model_copy()
