from cron_workflow.runtime.engine import RunResult, run
from cron_workflow.runtime.service import WorkflowService

__all__ = [
    "RunResult",
    "WorkflowService",
    "run",
]
