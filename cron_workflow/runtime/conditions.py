"""
Grammar and evaluation for ``if_event`` conditions.

A condition compares one job attribute against a literal:

    channel == console
    job_name != "nightly report"
    user_id == 'u-1'
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict

from cron_workflow.errors import ConditionError
from cron_workflow.schema.models import CronJobSpec

DEFAULT_DISPATCH_CHANNEL = "console"

_CONDITION_PATTERN = re.compile(
    r"""^\s*([A-Za-z_][A-Za-z0-9_]*)\s*(==|!=)\s*(?:"([^"]*)"|'([^']*)'|(\S+))\s*$"""
)

ALLOWED_FIELDS = frozenset(
    {"job_id", "job_name", "channel", "user_id", "session_id", "task_type"}
)


@dataclass(frozen=True)
class IfCondition:
    field: str
    operator: str
    value: str


def parse_if_condition(raw: str) -> IfCondition:
    condition = (raw or "").strip()
    if not condition:
        raise ConditionError("if_condition is required")
    match = _CONDITION_PATTERN.match(condition)
    if match is None:
        raise ConditionError("if_condition must match `<field> == <value>` or `<field> != <value>`")
    field = match.group(1).strip().lower()
    if field not in ALLOWED_FIELDS:
        raise ConditionError(f"if_condition field {field!r} is unsupported")
    value = match.group(3) or match.group(4) or match.group(5) or ""
    return IfCondition(field=field, operator=match.group(2), value=value)


def validate_if_condition(raw: str) -> None:
    parse_if_condition(raw)


def resolve_dispatch_channel(job: CronJobSpec) -> str:
    return job.dispatch.channel.strip() or DEFAULT_DISPATCH_CHANNEL


def condition_context(job: CronJobSpec) -> Dict[str, str]:
    return {
        "job_id": job.id.strip(),
        "job_name": job.name.strip(),
        "channel": resolve_dispatch_channel(job).lower(),
        "user_id": job.dispatch.target.user_id.strip(),
        "session_id": job.dispatch.target.session_id.strip(),
        "task_type": job.task_type.strip().lower(),
    }


def evaluate_if_condition(raw: str, job: CronJobSpec) -> bool:
    condition = parse_if_condition(raw)
    left = condition_context(job).get(condition.field)
    if left is None:
        raise ConditionError(f"if_condition field {condition.field!r} is unsupported")
    if condition.operator == "==":
        return left == condition.value
    if condition.operator == "!=":
        return left != condition.value
    raise ConditionError(f"if_condition operator {condition.operator!r} is unsupported")
