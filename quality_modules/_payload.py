"""
Shared payload helpers for the per-kind workflow modules.

Responsibility:
    Read and validate caller payloads (plain mappings from any transport)
    and describe what a create or an action does to a record.  Field
    problems are collected and raised together as one ValidationError with
    ``field_errors`` so a form can highlight every bad field at once.

Architecture position:
    Modules layer -- pure helpers, no I/O.  Imported only by sibling
    ``payloads`` modules.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any
from uuid import UUID

from quality_kernel.domain.records import Record
from quality_kernel.exceptions import ValidationError


@dataclass(frozen=True)
class PayloadContext:
    """Facts a payload handler may use besides the payload itself."""

    actor_id: UUID
    now: datetime
    max_assignees: int = 2


@dataclass(frozen=True)
class CreateSpec:
    """Validated creation payload: the kind-specific parts of a new record."""

    assigned_actor_ids: tuple[UUID, ...] = ()
    organizer_actor_id: UUID | None = None
    planned_close_date: date | None = None
    details: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ActionEffect:
    """What one action does besides moving the status.

    ``patch`` holds record fields to set; ``details`` is merged into the
    record's details; ``work_log`` appends a work log entry; ``notes`` goes
    to the history row.
    """

    patch: dict[str, Any] = field(default_factory=dict)
    details: dict[str, Any] = field(default_factory=dict)
    work_log: str | None = None
    notes: str | None = None


ActionHandler = Callable[[Record, Mapping[str, Any], PayloadContext], ActionEffect]
CreateHandler = Callable[[Mapping[str, Any], PayloadContext], CreateSpec]


def no_effect(record: Record, payload: Mapping[str, Any], ctx: PayloadContext) -> ActionEffect:
    return ActionEffect()


class PayloadReader:
    """Typed accessors over a payload mapping that collect field errors."""

    def __init__(self, payload: Mapping[str, Any] | None):
        self._payload = dict(payload or {})
        self.errors: dict[str, str] = {}

    def __contains__(self, name: str) -> bool:
        return name in self._payload and self._payload[name] is not None

    def text(self, name: str, required: bool = True) -> str | None:
        value = self._payload.get(name)
        if value is None or (isinstance(value, str) and not value.strip()):
            if required:
                self.errors[name] = "required"
            return None
        if not isinstance(value, str):
            self.errors[name] = "must be text"
            return None
        return value.strip()

    def integer(self, name: str, minimum: int | None = None, required: bool = True) -> int | None:
        value = self._payload.get(name)
        if value is None:
            if required:
                self.errors[name] = "required"
            return None
        if isinstance(value, bool) or not isinstance(value, (int, str)):
            self.errors[name] = "must be an integer"
            return None
        try:
            number = int(value)
        except ValueError:
            self.errors[name] = "must be an integer"
            return None
        if minimum is not None and number < minimum:
            self.errors[name] = f"must be >= {minimum}"
            return None
        return number

    def boolean(self, name: str, default: bool | None = None) -> bool | None:
        value = self._payload.get(name, default)
        if value is None:
            self.errors[name] = "required"
            return None
        if not isinstance(value, bool):
            self.errors[name] = "must be true or false"
            return None
        return value

    def day(self, name: str, required: bool = True) -> date | None:
        value = self._payload.get(name)
        if value is None or value == "":
            if required:
                self.errors[name] = "required"
            return None
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value
        if isinstance(value, str):
            try:
                return date.fromisoformat(value[:10])
            except ValueError:
                pass
        self.errors[name] = "must be a date (YYYY-MM-DD)"
        return None

    def choice(self, name: str, options: tuple[str, ...], default: str | None = None) -> str | None:
        value = self._payload.get(name, default)
        if value not in options:
            self.errors[name] = f"must be one of {', '.join(options)}"
            return None
        return value

    def actor(self, name: str, required: bool = True) -> UUID | None:
        value = self._payload.get(name)
        if value is None or value == "":
            if required:
                self.errors[name] = "required"
            return None
        try:
            return value if isinstance(value, UUID) else UUID(str(value))
        except ValueError:
            self.errors[name] = "must be an actor id"
            return None

    def actors(self, name: str, maximum: int, minimum: int = 0) -> tuple[UUID, ...] | None:
        """Ordered, de-duplicated actor ids; ``None`` entries (empty slots) are skipped."""
        raw = self._payload.get(name)
        if raw is None:
            raw = []
        if isinstance(raw, (str, UUID)) or not hasattr(raw, "__iter__"):
            self.errors[name] = "must be a list of actor ids"
            return None
        ids: list[UUID] = []
        for item in raw:
            if item is None or item == "":
                continue
            try:
                actor_id = item if isinstance(item, UUID) else UUID(str(item))
            except ValueError:
                self.errors[name] = "must be a list of actor ids"
                return None
            if actor_id not in ids:
                ids.append(actor_id)
        if len(ids) > maximum:
            self.errors[name] = f"at most {maximum} actors"
            return None
        if len(ids) < minimum:
            self.errors[name] = f"at least {minimum} actor(s) required"
            return None
        return tuple(ids)

    def raise_if_errors(self, message: str) -> None:
        if self.errors:
            raise ValidationError(message, dict(self.errors))


def require_reason(payload: Mapping[str, Any] | None) -> str:
    """The mandatory, non-empty ``reason`` of a reject or cancel action."""
    reader = PayloadReader(payload)
    reason = reader.text("reason")
    reader.raise_if_errors("A non-empty reason is required")
    return reason
