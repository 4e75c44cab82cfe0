"""
Field Training Workflow (``quality_modules.training.workflows``).

Responsibility
--------------
Declares the training lifecycle: a planner schedules a training with an
organizer; the organizer (or a planner) records its execution; a planner
approves it as completed or rejects it back to ``planned``.  Admins and
project owners may cancel a training from any non-terminal state.

Architecture position
---------------------
**Modules layer** -- declarative workflow definitions.  Consumed by the
workflow engine at runtime.

Invariants enforced
-------------------
* ``approve`` is the closing transition; the outcome compares the
  completion day with the training's deadline.
* ``reject`` and ``cancel`` require a reason.
* ``cancel`` exists from every non-terminal state, generated from the
  state list so a new intermediate state cannot be left uncancellable.
"""

from quality_kernel.domain.records import TrainingStatus
from quality_kernel.domain.workflow import Transition, Workflow, states_of
from quality_kernel.logging_config import get_logger

logger = get_logger("modules.training.workflows")

_TERMINAL = (TrainingStatus.COMPLETED.value, TrainingStatus.CANCELLED.value)

_CANCEL_TRANSITIONS = tuple(
    Transition(state, TrainingStatus.CANCELLED.value, action="cancel", requires_reason=True)
    for state in states_of(TrainingStatus)
    if state not in _TERMINAL
)

TRAINING_WORKFLOW = Workflow(
    name="training",
    description="Field training lifecycle",
    initial_state=TrainingStatus.PLANNED.value,
    states=states_of(TrainingStatus),
    terminal_states=_TERMINAL,
    transitions=(
        Transition("planned", "awaiting_approval", action="execute", clears_rejection=True),
        Transition("awaiting_approval", "completed", action="approve", closes=True),
        Transition("awaiting_approval", "planned", action="reject", requires_reason=True),
    ) + _CANCEL_TRANSITIONS,
)

logger.info(
    "training_workflow_registered",
    extra={
        "workflow_name": TRAINING_WORKFLOW.name,
        "state_count": len(TRAINING_WORKFLOW.states),
        "transition_count": len(TRAINING_WORKFLOW.transitions),
        "initial_state": TRAINING_WORKFLOW.initial_state,
    },
)
