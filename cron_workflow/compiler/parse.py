"""
Stage 1 — Parse JSON into a strongly typed WorkflowSpec.
"""

from __future__ import annotations

import json
from typing import Any, Mapping

from pydantic import ValidationError

from cron_workflow.errors import ValidationPhaseError
from cron_workflow.schema.models import CronJobSpec, WorkflowSpec


def parse_workflow_spec(payload: Any) -> WorkflowSpec:
    """
    Accepts either a JSON string, a mapping compatible with the WorkflowSpec
    definition or an existing WorkflowSpec and returns a WorkflowSpec instance.
    """

    if isinstance(payload, WorkflowSpec):
        return payload
    data = _load_mapping(payload, what="workflow")
    try:
        return WorkflowSpec.model_validate(data)
    except ValidationError as exc:
        raise ValidationPhaseError(f"Workflow spec validation failed: {exc}") from exc


def parse_job_spec(payload: Any) -> CronJobSpec:
    if isinstance(payload, CronJobSpec):
        return payload
    data = _load_mapping(payload, what="job")
    try:
        return CronJobSpec.model_validate(data)
    except ValidationError as exc:
        raise ValidationPhaseError(f"Job spec validation failed: {exc}") from exc


def _load_mapping(payload: Any, *, what: str) -> Mapping[str, Any]:
    if isinstance(payload, (str, bytes)):
        try:
            data = json.loads(payload)
        except json.JSONDecodeError as exc:
            raise ValidationPhaseError(f"Invalid {what} JSON payload: {exc}") from exc
        if not isinstance(data, Mapping):
            raise ValidationPhaseError(f"{what.capitalize()} JSON payload must be an object")
        return data
    if isinstance(payload, Mapping):
        return payload
    raise ValidationPhaseError(
        f"Unsupported payload type {type(payload).__name__}; expected str or Mapping"
    )
