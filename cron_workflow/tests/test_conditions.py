from __future__ import annotations

import pytest

from cron_workflow.errors import ConditionError, ValidationPhaseError
from cron_workflow.runtime.conditions import (
    condition_context,
    evaluate_if_condition,
    parse_if_condition,
    validate_if_condition,
)
from cron_workflow.schema.models import CronJobSpec


def _job(**overrides) -> CronJobSpec:
    data = {
        "id": " job-7 ",
        "name": "Nightly Report",
        "task_type": " Workflow ",
        "dispatch": {
            "channel": " Slack ",
            "target": {"user_id": "u-1", "session_id": "s-9"},
        },
    }
    data.update(overrides)
    return CronJobSpec.model_validate(data)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("channel == console", ("channel", "==", "console")),
        ("  JOB_NAME != \"nightly report\" ", ("job_name", "!=", "nightly report")),
        ("user_id=='u 1'", ("user_id", "==", "u 1")),
        ("session_id == ''", ("session_id", "==", "")),
    ],
)
def test_parse_if_condition(raw: str, expected: tuple) -> None:
    condition = parse_if_condition(raw)

    assert (condition.field, condition.operator, condition.value) == expected


@pytest.mark.parametrize(
    "raw, match",
    [
        ("", "if_condition is required"),
        ("   ", "if_condition is required"),
        ("channel = console", "must match"),
        ("channel == two words", "must match"),
        ("1channel == x", "must match"),
        ("region == eu", "field 'region' is unsupported"),
    ],
)
def test_invalid_conditions(raw: str, match: str) -> None:
    with pytest.raises(ConditionError, match=match):
        validate_if_condition(raw)


def test_condition_errors_are_validation_errors() -> None:
    assert issubclass(ConditionError, ValidationPhaseError)


def test_condition_context_normalizes_job_fields() -> None:
    assert condition_context(_job()) == {
        "job_id": "job-7",
        "job_name": "Nightly Report",
        "channel": "slack",
        "user_id": "u-1",
        "session_id": "s-9",
        "task_type": "workflow",
    }


def test_channel_defaults_to_console() -> None:
    job = _job(dispatch={})

    assert evaluate_if_condition("channel == console", job)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("channel == slack", True),
        ("channel != slack", False),
        ("job_name == 'Nightly Report'", True),
        ("job_name == nightly", False),
        ("task_type == workflow", True),
        ("user_id != u-2", True),
    ],
)
def test_evaluate_if_condition(raw: str, expected: bool) -> None:
    assert evaluate_if_condition(raw, _job()) is expected
