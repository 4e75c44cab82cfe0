"""
Payload validation tests for the per-kind modules.

Handlers are pure functions of (record, payload, context); they are
tested here without a database.
"""

from datetime import UTC, date, datetime
from uuid import uuid4

import pytest

from quality_kernel.domain.records import Record, RecordKind
from quality_kernel.exceptions import ValidationError, WorkflowDefinitionError
from quality_modules._payload import PayloadContext, PayloadReader, require_reason
from quality_modules.definition import KindDefinition, validate_definition
from quality_modules.observation import payloads as observation
from quality_modules.registry import KindRegistry, get_definition
from quality_modules.task import payloads as task
from quality_modules.training import payloads as training

NOW = datetime(2024, 1, 1, 12, 0, tzinfo=UTC)
ACTOR = uuid4()
CTX = PayloadContext(actor_id=ACTOR, now=NOW)


def make_record(kind, status, assigned=()):
    return Record(
        id=uuid4(),
        project_id=uuid4(),
        kind=kind,
        status=status,
        creator_actor_id=uuid4(),
        report_number="X-001",
        created_at=NOW,
        assigned_actor_ids=tuple(assigned),
    )


class TestPayloadReader:

    def test_collects_every_error(self):
        reader = PayloadReader({"n": "x", "d": "not-a-date", "c": "purple"})
        reader.text("missing")
        reader.integer("n")
        reader.day("d")
        reader.choice("c", ("red", "blue"))

        with pytest.raises(ValidationError) as exc_info:
            reader.raise_if_errors("bad")

        assert set(exc_info.value.field_errors) == {"missing", "n", "d", "c"}

    def test_actors_deduplicates_and_skips_empty_slots(self):
        a, b = uuid4(), uuid4()
        reader = PayloadReader({"ids": [str(a), None, "", a, b]})

        assert reader.actors("ids", maximum=2) == (a, b)
        assert reader.errors == {}

    def test_integer_rejects_booleans(self):
        reader = PayloadReader({"n": True})
        assert reader.integer("n") is None
        assert "n" in reader.errors

    def test_day_accepts_iso_datetime_strings(self):
        assert PayloadReader({"d": "2024-03-01T10:00:00"}).day("d") == date(2024, 3, 1)

    def test_require_reason(self):
        assert require_reason({"reason": " late "}) == "late"
        with pytest.raises(ValidationError):
            require_reason({})


class TestTaskPayloads:

    def test_create_maps_target_date(self):
        spec = task.validate_create(
            {"title": "Fix", "priority": "high", "target_date": "2024-02-01"}, CTX,
        )
        assert spec.planned_close_date == date(2024, 2, 1)
        assert spec.details["priority"] == "high"
        assert spec.assigned_actor_ids == ()

    def test_unknown_priority(self):
        with pytest.raises(ValidationError) as exc_info:
            task.validate_create({"title": "Fix", "priority": "urgent"}, CTX)
        assert "priority" in exc_info.value.field_errors

    def test_reject_records_reason_and_notes(self):
        effect = task.reject(make_record(RecordKind.TASK, "pending_approval"), {"reason": "no"}, CTX)
        assert effect.patch == {"rejection_reason": "no"}
        assert effect.notes == "no"


class TestTrainingPayloads:

    def test_cancel_stamps_actor_and_time(self):
        effect = training.cancel(make_record(RecordKind.TRAINING, "planned"), {"reason": "storm"}, CTX)
        assert effect.patch["cancelled_by_actor_id"] == ACTOR
        assert effect.details["cancelled_at"] == NOW.isoformat()

    def test_training_type_choices(self):
        with pytest.raises(ValidationError):
            training.validate_create({"training_topic": "PPE", "training_type": "online"}, CTX)


class TestObservationPayloads:

    def test_enter_data_requires_planned_close_date(self):
        record = make_record(RecordKind.OBSERVATION, "waiting_data_entry")
        with pytest.raises(ValidationError) as exc_info:
            observation.enter_data(record, {"root_cause": "a", "suggested_action": "b"}, CTX)
        assert "planned_close_date" in exc_info.value.field_errors

    def test_create_limits_responsible_actors(self):
        ids = [str(uuid4()) for _ in range(3)]
        with pytest.raises(ValidationError):
            observation.validate_create(
                {"observation_description": "x", "assigned_actor_ids": ids}, CTX,
            )

    def test_approve_keeps_existing_assignees(self):
        worker = uuid4()
        record = make_record(RecordKind.OBSERVATION, "pre_approval", assigned=[worker])
        effect = observation.approve(record, {}, CTX)
        assert effect.patch["assigned_actor_ids"] == (worker,)


class TestDefinitions:

    def test_missing_handler_is_rejected(self):
        definition = get_definition(RecordKind.TASK)
        handlers = dict(definition.action_handlers)
        del handlers["start"]

        with pytest.raises(WorkflowDefinitionError) as exc_info:
            validate_definition(KindDefinition(
                kind=definition.kind,
                workflow=definition.workflow,
                validate_create=definition.validate_create,
                action_handlers=handlers,
            ))
        assert "start" in str(exc_info.value)

    def test_missing_authorization_rule_is_rejected(self):
        definition = get_definition(RecordKind.TRAINING)
        with pytest.raises(WorkflowDefinitionError):
            validate_definition(definition, requirements={})

    def test_registry_lookup(self):
        registry = KindRegistry([get_definition("task")])
        assert registry.kinds() == (RecordKind.TASK,)
        assert registry.workflow("task").name == "task"
        with pytest.raises(KeyError):
            registry.get(RecordKind.TRAINING)
