"""Tests for the pure pending predicate (quality_engines.pending)."""

from datetime import UTC, datetime
from uuid import uuid4

import pytest

from quality_engines.pending import PENDING_RULES, is_pending, pending_statuses
from quality_kernel.domain.authorization import AuthorizationContext, GlobalRole
from quality_kernel.domain.records import Record, RecordKind
from quality_modules.registry import get_workflow

PROJECT = uuid4()
CREATOR = uuid4()
ASSIGNEE = uuid4()
ORGANIZER = uuid4()


def record(kind, status) -> Record:
    return Record(
        id=uuid4(),
        project_id=PROJECT,
        kind=kind,
        status=status,
        creator_actor_id=CREATOR,
        report_number="X-001",
        created_at=datetime(2024, 1, 1, tzinfo=UTC),
        assigned_actor_ids=(ASSIGNEE,),
        organizer_actor_id=ORGANIZER,
    )


def ctx(actor_id=None, *caps, role=GlobalRole.USER, owner=False):
    return AuthorizationContext(
        actor_id=actor_id or uuid4(),
        project_id=PROJECT,
        global_role=role,
        project_owner=owner,
        capabilities=frozenset(caps),
    )


@pytest.mark.parametrize("kind", list(RecordKind))
def test_terminal_states_are_never_pending(kind):
    workflow = get_workflow(kind)
    assert not set(pending_statuses(kind)) & set(workflow.terminal_states)


@pytest.mark.parametrize("kind", list(RecordKind))
def test_every_open_state_has_a_rule(kind):
    workflow = get_workflow(kind)
    open_states = set(workflow.states) - set(workflow.terminal_states)
    assert open_states == {s for (k, s) in PENDING_RULES if k == kind}


class TestObservation:

    def test_pre_approval(self):
        rec = record(RecordKind.OBSERVATION, "pre_approval")
        assert is_pending(ctx(None, "observation.access", "observation.approver"), rec)
        assert not is_pending(ctx(ASSIGNEE, "observation.access"), rec)
        assert is_pending(ctx(None, owner=True), rec)

    @pytest.mark.parametrize("status", ["waiting_data_entry", "open"])
    def test_responsible_actor_states(self, status):
        rec = record(RecordKind.OBSERVATION, status)
        assert is_pending(ctx(ASSIGNEE, "observation.access"), rec)
        assert not is_pending(ctx(None, "observation.access"), rec)
        assert not is_pending(ctx(None, "observation.access", "observation.approver"), rec)
        assert not is_pending(ctx(CREATOR, "observation.access"), rec)
        assert is_pending(ctx(None, owner=True), rec)
        assert is_pending(ctx(None, role=GlobalRole.ADMIN), rec)

    def test_assigned_without_access_is_not_pending(self):
        rec = record(RecordKind.OBSERVATION, "open")
        assert not is_pending(ctx(ASSIGNEE, "task.access"), rec)

    def test_waiting_close_approval_for_creator(self):
        rec = record(RecordKind.OBSERVATION, "waiting_close_approval")
        assert is_pending(ctx(CREATOR, "observation.access"), rec)
        assert not is_pending(ctx(ASSIGNEE, "observation.access"), rec)

    def test_creator_without_access_is_not_pending(self):
        rec = record(RecordKind.OBSERVATION, "waiting_close_approval")
        assert not is_pending(ctx(CREATOR), rec)


class TestTraining:

    def test_planned_only_for_organizer(self):
        rec = record(RecordKind.TRAINING, "planned")
        assert is_pending(ctx(ORGANIZER, "training.access"), rec)
        assert not is_pending(ctx(None, "training.access", "training.planner"), rec)
        assert not is_pending(ctx(None, role=GlobalRole.SUPER_ADMIN), rec)

    def test_awaiting_approval_for_planner(self):
        rec = record(RecordKind.TRAINING, "awaiting_approval")
        assert is_pending(ctx(None, "training.access", "training.planner"), rec)
        assert not is_pending(ctx(ORGANIZER, "training.access"), rec)


class TestTask:

    @pytest.mark.parametrize("status", ["open", "in_progress"])
    def test_work_states_for_assignee(self, status):
        rec = record(RecordKind.TASK, status)
        assert is_pending(ctx(ASSIGNEE, "task.access"), rec)
        assert not is_pending(ctx(CREATOR, "task.access"), rec)

    def test_pending_approval_for_manager_or_creator(self):
        rec = record(RecordKind.TASK, "pending_approval")
        assert is_pending(ctx(None, "task.access", "task.manager"), rec)
        assert is_pending(ctx(CREATOR, "task.access"), rec)
        assert not is_pending(ctx(ASSIGNEE, "task.access"), rec)

    def test_closed_is_never_pending(self):
        rec = record(RecordKind.TASK, "closed")
        assert not is_pending(ctx(None, role=GlobalRole.ADMIN), rec)
