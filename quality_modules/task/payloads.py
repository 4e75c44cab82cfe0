"""Payload validation for maintenance tasks."""

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

PRIORITIES = ("low", "medium", "high")


def validate_create(payload: Mapping[str, Any], ctx: PayloadContext) -> CreateSpec:
    reader = PayloadReader(payload)
    title = reader.text("title")
    description = reader.text("description", required=False)
    priority = reader.choice("priority", PRIORITIES, default="medium")
    category = reader.text("category", required=False)
    target_date = reader.day("target_date", required=False)
    assignees = reader.actors("assigned_actor_ids", maximum=ctx.max_assignees)
    reader.raise_if_errors("Invalid task")

    return CreateSpec(
        assigned_actor_ids=assignees,
        planned_close_date=target_date,
        details={
            "title": title,
            "description": description,
            "priority": priority,
            "category": category,
        },
    )


def submit_work(record: Record, payload: Mapping[str, Any], ctx: PayloadContext) -> ActionEffect:
    reader = PayloadReader(payload)
    description = reader.text("description")
    reader.raise_if_errors("A work log description is required")
    return ActionEffect(work_log=description)


def reject(record: Record, payload: Mapping[str, Any], ctx: PayloadContext) -> ActionEffect:
    reason = require_reason(payload)
    return ActionEffect(patch={"rejection_reason": reason}, notes=reason)


ACTION_HANDLERS = {
    "start": no_effect,
    "submit_work": submit_work,
    "approve": no_effect,
    "reject": reject,
}
