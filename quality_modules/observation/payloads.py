"""
Payload validation for field observation reports.

Responsible actors may be named at creation or at pre-approval; the
approval itself is refused unless at least one is set afterwards.
"""

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

SEVERITIES = ("major", "minor")


def validate_create(payload: Mapping[str, Any], ctx: PayloadContext) -> CreateSpec:
    reader = PayloadReader(payload)
    description = reader.text("observation_description")
    location = reader.text("location_description", required=False)
    severity = reader.choice("severity", SEVERITIES, default="minor")
    reference = reader.text("reference_document", required=False)
    company = reader.text("company", required=False)
    responsible = reader.actors("assigned_actor_ids", maximum=ctx.max_assignees)
    reader.raise_if_errors("Invalid observation report")

    return CreateSpec(
        assigned_actor_ids=responsible,
        details={
            "observation_description": description,
            "location_description": location,
            "severity": severity,
            "reference_document": reference,
            "company": company,
        },
    )


def approve(record: Record, payload: Mapping[str, Any], ctx: PayloadContext) -> ActionEffect:
    reader = PayloadReader(payload)
    if "assigned_actor_ids" in reader:
        responsible = reader.actors("assigned_actor_ids", maximum=ctx.max_assignees, minimum=1)
    else:
        responsible = record.assigned_actor_ids
        if not responsible:
            reader.errors["assigned_actor_ids"] = "at least 1 actor(s) required"
    reader.raise_if_errors("A responsible actor must be assigned before approval")

    return ActionEffect(
        patch={"assigned_actor_ids": responsible},
        details={"approved_date": ctx.now.isoformat()},
    )


def enter_data(record: Record, payload: Mapping[str, Any], ctx: PayloadContext) -> ActionEffect:
    reader = PayloadReader(payload)
    root_cause = reader.text("root_cause")
    suggested_action = reader.text("suggested_action")
    corrective_required = reader.boolean("corrective_action_required", default=False)
    planned_close_date = reader.day("planned_close_date")
    reader.raise_if_errors("Invalid observation data entry")

    return ActionEffect(
        patch={"planned_close_date": planned_close_date},
        details={
            "root_cause": root_cause,
            "suggested_action": suggested_action,
            "corrective_action_required": corrective_required,
            "data_entry_date": ctx.now.isoformat(),
        },
    )


def submit_closing(record: Record, payload: Mapping[str, Any], ctx: PayloadContext) -> ActionEffect:
    reader = PayloadReader(payload)
    closing_action = reader.text("closing_action")
    reader.raise_if_errors("A closing action is required")
    return ActionEffect(details={
        "closing_action": closing_action,
        "closing_date": ctx.now.isoformat(),
    })


def reject_closing(record: Record, payload: Mapping[str, Any], ctx: PayloadContext) -> ActionEffect:
    reason = require_reason(payload)
    return ActionEffect(patch={"rejection_reason": reason}, notes=reason)


ACTION_HANDLERS = {
    "approve": approve,
    "enter_data": enter_data,
    "submit_closing": submit_closing,
    "approve_closing": no_effect,
    "reject_closing": reject_closing,
}
