"""
Pending-work derivation against persisted records.

A record is pending for an actor when the actor is one of the parties
able to take its next step; badge counts are the per-kind sizes of that
list.
"""

import types

from quality_kernel.domain.records import RecordKind


def _ids(records):
    return {r.id for r in records}


class TestTaskPending:

    def test_open_task_pending_for_assignee_only(self, workflow_engine, cast, make_task):
        record = make_task()

        assert _ids(workflow_engine.list_pending_for(cast.worker, cast.project_id)) == {record.id}
        assert _ids(workflow_engine.list_pending_for(cast.worker2, cast.project_id)) == set()
        # admins and owners are not nagged about work assigned to others
        assert _ids(workflow_engine.list_pending_for(cast.owner, cast.project_id)) == set()

    def test_pending_approval_moves_to_manager_and_creator(self, workflow_engine, cast, make_task):
        record = make_task()
        workflow_engine.transition(record.id, "start", cast.worker)
        workflow_engine.transition(record.id, "submit_work", cast.worker, {"description": "x"})

        assert _ids(workflow_engine.list_pending_for(cast.worker, cast.project_id)) == set()
        assert _ids(workflow_engine.list_pending_for(cast.manager, cast.project_id)) == {record.id}
        assert _ids(workflow_engine.list_pending_for(cast.creator, cast.project_id)) == {record.id}
        assert _ids(workflow_engine.list_pending_for(cast.owner, cast.project_id)) == {record.id}

    def test_closed_task_is_pending_for_nobody(self, workflow_engine, cast, make_task):
        record = make_task()
        workflow_engine.transition(record.id, "start", cast.worker)
        workflow_engine.transition(record.id, "submit_work", cast.worker, {"description": "x"})
        workflow_engine.transition(record.id, "approve", cast.manager)

        for actor in (cast.worker, cast.manager, cast.creator, cast.owner, cast.admin):
            assert list(workflow_engine.list_pending_for(actor, cast.project_id)) == []


class TestTrainingPending:

    def test_planned_training_waits_on_organizer(self, workflow_engine, cast, make_training):
        record = make_training()

        assert _ids(workflow_engine.list_pending_for(cast.organizer, cast.project_id)) == {record.id}
        assert _ids(workflow_engine.list_pending_for(cast.planner, cast.project_id)) == set()


class TestObservationPending:

    def test_pre_approval_waits_on_approver(self, workflow_engine, cast, make_observation):
        record = make_observation()

        assert _ids(workflow_engine.list_pending_for(cast.approver, cast.project_id)) == {record.id}
        assert _ids(workflow_engine.list_pending_for(cast.worker, cast.project_id)) == set()

        workflow_engine.transition(record.id, "approve", cast.approver)
        assert _ids(workflow_engine.list_pending_for(cast.worker, cast.project_id)) == {record.id}
        # worker2 holds observation.access but is not responsible
        assert _ids(workflow_engine.list_pending_for(cast.worker2, cast.project_id)) == set()
        assert _ids(workflow_engine.list_pending_for(cast.approver, cast.project_id)) == set()

    def test_open_waits_on_responsible_actor(self, workflow_engine, cast, make_observation):
        record = make_observation()
        workflow_engine.transition(record.id, "approve", cast.approver)
        workflow_engine.transition(record.id, "enter_data", cast.worker, {
            "root_cause": "Rail removed for deliveries",
            "suggested_action": "Reinstall rail",
            "corrective_action_required": True,
            "planned_close_date": "2024-01-10",
        })

        assert _ids(workflow_engine.list_pending_for(cast.worker, cast.project_id)) == {record.id}
        assert _ids(workflow_engine.list_pending_for(cast.worker2, cast.project_id)) == set()
        assert _ids(workflow_engine.list_pending_for(cast.owner, cast.project_id)) == {record.id}


class TestAccessAndScope:

    def test_actor_without_access_sees_nothing(self, workflow_engine, cast, make_task):
        make_task(assignees=[cast.planner])

        assert list(workflow_engine.list_pending_for(cast.planner, cast.project_id)) == []

    def test_other_projects_do_not_leak(self, workflow_engine, directory, cast, other_project, make_task):
        directory.grant(cast.worker, other_project.project_id, "task.access")
        make_task()

        assert list(workflow_engine.list_pending_for(cast.worker, other_project.project_id)) == []


class TestPendingCounts:

    def test_counts_match_list(self, workflow_engine, cast, make_task, make_observation):
        make_task()
        make_task()
        make_observation()

        counts = workflow_engine.pending_counts(cast.worker, cast.project_id)
        listed = list(workflow_engine.list_pending_for(cast.worker, cast.project_id))

        assert counts == {
            RecordKind.OBSERVATION: 0,
            RecordKind.TRAINING: 0,
            RecordKind.TASK: 2,
        }
        assert sum(counts.values()) == len(listed)

    def test_list_is_lazy(self, workflow_engine, cast, make_task):
        make_task()

        pending = workflow_engine.list_pending_for(cast.worker, cast.project_id)

        assert isinstance(pending, types.GeneratorType)
        assert len(list(pending)) == 1
        assert list(pending) == []
