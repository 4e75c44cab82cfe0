"""
Maintenance Task Workflow (``quality_modules.task.workflows``).

Responsibility
--------------
Declares the task lifecycle: an assigned actor starts the work, logs it
and submits it; the creator or a task manager approves (closing the task)
or rejects it back to ``open`` with a reason.

Architecture position
---------------------
**Modules layer** -- declarative workflow definitions.  Imports canonical
Transition and Workflow from ``quality_kernel.domain.workflow``.
Consumed by the workflow engine at runtime.

Invariants enforced
-------------------
* ``approve`` is the only closing transition; it stamps ``closed_at`` and
  the on-time/late outcome against the target date.
* ``reject`` requires a reason; the work log of the rejected attempt is
  kept.
* Resubmitting (``submit_work``) clears the previous rejection reason.
"""

from quality_kernel.domain.records import TaskStatus
from quality_kernel.domain.workflow import Transition, Workflow, states_of
from quality_kernel.logging_config import get_logger

logger = get_logger("modules.task.workflows")

TASK_WORKFLOW = Workflow(
    name="task",
    description="Maintenance task lifecycle",
    initial_state=TaskStatus.OPEN.value,
    states=states_of(TaskStatus),
    terminal_states=(TaskStatus.CLOSED.value,),
    transitions=(
        Transition("open", "in_progress", action="start"),
        Transition("in_progress", "pending_approval", action="submit_work", clears_rejection=True),
        Transition("pending_approval", "closed", action="approve", closes=True),
        Transition("pending_approval", "open", action="reject", requires_reason=True),
    ),
)

logger.info(
    "task_workflow_registered",
    extra={
        "workflow_name": TASK_WORKFLOW.name,
        "state_count": len(TASK_WORKFLOW.states),
        "transition_count": len(TASK_WORKFLOW.transitions),
        "initial_state": TASK_WORKFLOW.initial_state,
    },
)
