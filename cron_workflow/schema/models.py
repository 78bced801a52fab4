"""
Pydantic models describing cron workflows, the jobs that carry them and the
execution traces produced when they run.

Field names match the JSON persisted alongside a job's state, so traces can be
stored and rendered without translation.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class StrictModel(BaseModel):
    model_config = ConfigDict(
        extra="forbid",
        populate_by_name=True,
        validate_assignment=True,
    )


class FrozenModel(StrictModel):
    """Graph models shared through compiled plans; assignment raises."""

    model_config = ConfigDict(frozen=True)


class LenientModel(BaseModel):
    """Models sourced from the wider job store, which may carry extra keys."""

    model_config = ConfigDict(
        extra="ignore",
        populate_by_name=True,
    )


# -----------------------------
# Workflow graph
# -----------------------------
class WorkflowViewport(FrozenModel):
    pan_x: float = 0
    pan_y: float = 0
    zoom: float = 0


class WorkflowNode(FrozenModel):
    id: str = ""
    type: str = ""
    title: str = ""
    x: float = 0
    y: float = 0
    text: str = ""
    delay_seconds: int = 0
    if_condition: str = ""
    continue_on_error: bool = False


class WorkflowEdge(FrozenModel):
    id: str = ""
    source: str = ""
    target: str = ""


class WorkflowSpec(FrozenModel):
    version: str = ""
    viewport: Optional[WorkflowViewport] = None
    nodes: Tuple[WorkflowNode, ...] = ()
    edges: Tuple[WorkflowEdge, ...] = ()


# -----------------------------
# Jobs
# -----------------------------
class CronDispatchTarget(LenientModel):
    user_id: str = ""
    session_id: str = ""


class CronDispatchSpec(LenientModel):
    type: str = ""
    channel: str = ""
    target: CronDispatchTarget = Field(default_factory=CronDispatchTarget)
    mode: str = ""
    meta: Dict[str, Any] = Field(default_factory=dict)


class CronJobSpec(LenientModel):
    id: str = ""
    name: str = ""
    enabled: bool = True
    task_type: str = ""
    text: str = ""
    workflow: Optional[WorkflowSpec] = None
    dispatch: CronDispatchSpec = Field(default_factory=CronDispatchSpec)
    meta: Dict[str, Any] = Field(default_factory=dict)


# -----------------------------
# Execution traces
# -----------------------------
class NodeStatus(str, Enum):
    succeeded = "succeeded"
    failed = "failed"
    skipped = "skipped"


class WorkflowNodeExecution(StrictModel):
    node_id: str
    node_type: str
    status: NodeStatus
    continue_on_error: bool = False
    started_at: str
    finished_at: Optional[str] = None
    error: Optional[str] = None


class WorkflowExecution(StrictModel):
    run_id: str
    started_at: str
    finished_at: Optional[str] = None
    had_failures: bool = False
    nodes: List[WorkflowNodeExecution] = Field(default_factory=list)

    def to_payload(self) -> Dict[str, Any]:
        """JSON-ready dict with unset optional fields omitted."""

        return self.model_dump(mode="json", exclude_none=True)


class NodeResult(StrictModel):
    stop: bool = False


# -----------------------------
# Compiled plan
# -----------------------------
@dataclass(frozen=True)
class Plan:
    """
    Output of ``build_plan``. Read-only and safe to share between runs.
    ``order`` excludes the start node.
    """

    workflow: WorkflowSpec
    start_id: str
    node_by_id: Mapping[str, WorkflowNode]
    next_by_id: Mapping[str, str]
    order: Tuple[WorkflowNode, ...]

    @property
    def order_ids(self) -> List[str]:
        return [node.id for node in self.order]
