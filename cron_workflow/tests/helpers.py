from __future__ import annotations

from typing import Any, Dict, List, Optional


def node(node_id: str, node_type: str, **fields: Any) -> Dict[str, Any]:
    payload: Dict[str, Any] = {"id": node_id, "type": node_type}
    payload.update(fields)
    return payload


def chain_spec(
    nodes: List[Dict[str, Any]],
    *,
    version: str = "v1",
    extra_edges: Optional[List[Dict[str, Any]]] = None,
    viewport: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """Workflow payload whose edges link ``nodes`` in list order."""

    edges = [
        {"id": f"e{idx}", "source": source["id"], "target": target["id"]}
        for idx, (source, target) in enumerate(zip(nodes, nodes[1:]), start=1)
    ]
    edges.extend(extra_edges or [])
    spec: Dict[str, Any] = {"version": version, "nodes": nodes, "edges": edges}
    if viewport is not None:
        spec["viewport"] = viewport
    return spec


def text_chain(count: int) -> Dict[str, Any]:
    nodes = [node("start", "start")]
    nodes.extend(node(f"n{idx}", "text_event", text=f"message {idx}") for idx in range(1, count + 1))
    return chain_spec(nodes)


class FakeClock:
    """Deterministic, sortable timestamps: t001, t002, ..."""

    def __init__(self) -> None:
        self.ticks = 0

    def __call__(self) -> str:
        self.ticks += 1
        return f"t{self.ticks:03d}"


class FakeRunIds:
    def __init__(self) -> None:
        self.issued = 0

    def __call__(self) -> str:
        self.issued += 1
        return f"run-{self.issued}"
