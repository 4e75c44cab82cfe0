"""Payload validation for field trainings."""

from collections.abc import Mapping
from typing import Any

from quality_kernel.domain.records import Record
from quality_modules._payload import (
    ActionEffect,
    CreateSpec,
    PayloadContext,
    PayloadReader,
    no_effect,
    require_reason,
)

TRAINING_TYPES = ("internal", "external")


def validate_create(payload: Mapping[str, Any], ctx: PayloadContext) -> CreateSpec:
    reader = PayloadReader(payload)
    topic = reader.text("training_topic")
    organizer = reader.actor("organizer_actor_id", required=False)
    trainer_name = reader.text("trainer_name", required=False)
    training_type = reader.choice("training_type", TRAINING_TYPES, default="internal")
    deadline = reader.day("deadline_date", required=False)
    reader.raise_if_errors("Invalid training plan")

    return CreateSpec(
        organizer_actor_id=organizer,
        planned_close_date=deadline,
        details={
            "training_topic": topic,
            "trainer_name": trainer_name,
            "training_type": training_type,
        },
    )


def execute(record: Record, payload: Mapping[str, Any], ctx: PayloadContext) -> ActionEffect:
    reader = PayloadReader(payload)
    delivery_date = reader.day("delivery_date")
    participant_count = reader.integer("participant_count", minimum=1)
    duration = reader.integer("training_duration", minimum=1)
    content = reader.text("training_content")
    reader.raise_if_errors("Invalid training execution data")

    return ActionEffect(details={
        "delivery_date": delivery_date.isoformat(),
        "participant_count": participant_count,
        "training_duration": duration,
        "training_content": content,
    })


def reject(record: Record, payload: Mapping[str, Any], ctx: PayloadContext) -> ActionEffect:
    reason = require_reason(payload)
    return ActionEffect(patch={"rejection_reason": reason}, notes=reason)


def cancel(record: Record, payload: Mapping[str, Any], ctx: PayloadContext) -> ActionEffect:
    reason = require_reason(payload)
    return ActionEffect(
        patch={
            "cancellation_reason": reason,
            "cancelled_by_actor_id": ctx.actor_id,
        },
        details={"cancelled_at": ctx.now.isoformat()},
        notes=reason,
    )


ACTION_HANDLERS = {
    "execute": execute,
    "approve": no_effect,
    "reject": reject,
    "cancel": cancel,
}
