"""
Field Observation Workflow (``quality_modules.observation.workflows``).

Responsibility
--------------
Declares the nonconformity report lifecycle:

    pre_approval --approve--> waiting_data_entry --enter_data--> open
        --submit_closing--> waiting_close_approval
        --approve_closing--> closed_on_time | closed_late
        --reject_closing--> open

An approver accepts the report and names up to two responsible actors;
the responsible actors record root cause and corrective plan, then the
closing action; the creator or an approver accepts or rejects the
closure.

Architecture position
---------------------
**Modules layer** -- declarative workflow definitions.  Consumed by the
workflow engine at runtime.

Invariants enforced
-------------------
* ``approve_closing`` is declared twice, once per closure outcome; the
  engine picks the edge from the on-time/late classification, so the
  terminal status carries the outcome and is never recomputed.
* ``reject_closing`` returns the report to the responsible actors with a
  mandatory reason; the next ``submit_closing`` clears it.
"""

from quality_kernel.domain.records import ClosureOutcome, ObservationStatus
from quality_kernel.domain.workflow import Transition, Workflow, states_of
from quality_kernel.logging_config import get_logger

logger = get_logger("modules.observation.workflows")

OBSERVATION_WORKFLOW = Workflow(
    name="observation",
    description="Field observation (nonconformity) report lifecycle",
    initial_state=ObservationStatus.PRE_APPROVAL.value,
    states=states_of(ObservationStatus),
    terminal_states=(
        ObservationStatus.CLOSED_ON_TIME.value,
        ObservationStatus.CLOSED_LATE.value,
    ),
    transitions=(
        Transition("pre_approval", "waiting_data_entry", action="approve"),
        Transition("waiting_data_entry", "open", action="enter_data"),
        Transition(
            "open", "waiting_close_approval",
            action="submit_closing", clears_rejection=True,
        ),
        Transition(
            "waiting_close_approval", "closed_on_time",
            action="approve_closing", closes=True, closure_outcome=ClosureOutcome.ON_TIME,
        ),
        Transition(
            "waiting_close_approval", "closed_late",
            action="approve_closing", closes=True, closure_outcome=ClosureOutcome.LATE,
        ),
        Transition(
            "waiting_close_approval", "open",
            action="reject_closing", requires_reason=True,
        ),
    ),
)

logger.info(
    "observation_workflow_registered",
    extra={
        "workflow_name": OBSERVATION_WORKFLOW.name,
        "state_count": len(OBSERVATION_WORKFLOW.states),
        "transition_count": len(OBSERVATION_WORKFLOW.transitions),
        "initial_state": OBSERVATION_WORKFLOW.initial_state,
    },
)
