"""
Typed Exception Hierarchy for the Quality Workflow Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers of the workflow engine (REST handlers, CLI commands, background jobs)
must react to failures precisely.  Parsing message strings is fragile, so:

  1. Every error has a TYPED exception class (catch by type, not message)
  2. Every exception has a CODE attribute (machine-readable, API-safe)
  3. Exceptions carry structured DATA (not just a message string)

Example - WRONG way to handle errors:
    try:
        engine.transition(record_id, "approve", actor_id)
    except Exception as e:
        if "not allowed" in str(e):  # FRAGILE - message might change
            show_forbidden()

Example - RIGHT way (what this module enables):
    try:
        engine.transition(record_id, "approve", actor_id)
    except AuthorizationError as e:
        api_response(403, code=e.code, action=e.action, reason=e.reason)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

All exceptions inherit from QualityKernelError:

    QualityKernelError (base)
    |
    +-- ValidationError
    +-- AuthorizationError
    +-- InvalidTransitionError
    +-- ConflictError
    |   +-- SequenceConflictError
    |
    +-- NotFoundError
    |   +-- RecordNotFoundError
    |   +-- ProjectNotFoundError
    |   +-- ActorNotFoundError
    |
    +-- ImmutabilityViolationError
    +-- WorkflowDefinitionError
    +-- ConfigurationError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Code                    | When Raised
------------------------|-----------------------------------------------------
VALIDATION_ERROR        | Missing/invalid payload field (empty reason, etc.)
AUTHORIZATION_DENIED    | Actor may not perform the action on the record
INVALID_TRANSITION      | Action is not an edge from the record's status
CONFLICT                | Record changed since the caller read it
SEQUENCE_CONFLICT       | Counter row could not be claimed
RECORD_NOT_FOUND        | Record ID doesn't exist
PROJECT_NOT_FOUND       | Project ID doesn't exist
ACTOR_NOT_FOUND         | Actor has no profile / membership
IMMUTABILITY_VIOLATION  | Attempt to modify or delete an audit side record
WORKFLOW_DEFINITION     | Malformed workflow graph at registration
CONFIGURATION_ERROR     | Invalid configuration document

===============================================================================
HANDLING PATTERNS
===============================================================================

1. ONLY ConflictError IS RETRYABLE:

    for _ in range(3):
        try:
            with session_scope() as session:
                record = build_engine(session).transition(...)
            break
        except ConflictError:
            continue  # re-read and re-attempt the same logical operation

2. EVERYTHING ELSE IS TERMINAL FOR THE CALL:

    except (ValidationError, AuthorizationError, InvalidTransitionError) as e:
        return {"error": e.code, "message": str(e)}

===============================================================================
"""


class QualityKernelError(Exception):
    """
    Base exception for all quality kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "QUALITY_KERNEL_ERROR"


class ValidationError(QualityKernelError):
    """
    A required field is missing or invalid.

    ``field_errors`` maps field name to a short human-readable problem so
    the caller can highlight every offending input at once.
    """

    code: str = "VALIDATION_ERROR"

    def __init__(self, message: str, field_errors: dict[str, str] | None = None):
        self.field_errors = dict(field_errors or {})
        super().__init__(message)


class AuthorizationError(QualityKernelError):
    """Actor is not allowed to perform the action on the record."""

    code: str = "AUTHORIZATION_DENIED"

    def __init__(self, actor_id: str, action: str, reason: str, record_id: str | None = None):
        self.actor_id = actor_id
        self.action = action
        self.reason = reason
        self.record_id = record_id
        target = f" on record {record_id}" if record_id else ""
        super().__init__(f"Actor {actor_id} may not '{action}'{target}: {reason}")


class InvalidTransitionError(QualityKernelError):
    """No edge labeled ``action`` leaves ``current_status`` in the kind's graph."""

    code: str = "INVALID_TRANSITION"

    def __init__(self, kind: str, current_status: str, action: str):
        self.kind = kind
        self.current_status = current_status
        self.action = action
        super().__init__(
            f"Action '{action}' is not valid for {kind} in status '{current_status}'"
        )


class ConflictError(QualityKernelError):
    """
    A concurrent write won the race.

    The only retryable error: re-read the record and re-attempt the same
    logical operation.
    """

    code: str = "CONFLICT"

    def __init__(
        self,
        entity_type: str,
        entity_id: str,
        expected_version: int | None = None,
        actual_version: int | None = None,
    ):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.expected_version = expected_version
        self.actual_version = actual_version
        detail = ""
        if expected_version is not None:
            detail = f" (expected version {expected_version}, found {actual_version})"
        super().__init__(
            f"Conflict on {entity_type} {entity_id}: "
            f"modified by another transaction{detail}"
        )


class SequenceConflictError(ConflictError):
    """Counter row for (project, kind) could not be claimed."""

    code: str = "SEQUENCE_CONFLICT"

    def __init__(self, project_id: str, kind: str):
        self.project_id = project_id
        self.kind = kind
        super().__init__("SequenceCounter", f"{project_id}/{kind}")


# Lookup failures


class NotFoundError(QualityKernelError):
    """Base exception for unknown records, projects and actors."""

    code: str = "NOT_FOUND"


class RecordNotFoundError(NotFoundError):
    """Record with given ID was not found."""

    code: str = "RECORD_NOT_FOUND"

    def __init__(self, record_id: str):
        self.record_id = record_id
        super().__init__(f"Record not found: {record_id}")


class ProjectNotFoundError(NotFoundError):
    """Project with given ID was not found."""

    code: str = "PROJECT_NOT_FOUND"

    def __init__(self, project_id: str):
        self.project_id = project_id
        super().__init__(f"Project not found: {project_id}")


class ActorNotFoundError(NotFoundError):
    """Actor has no profile in the directory."""

    code: str = "ACTOR_NOT_FOUND"

    def __init__(self, actor_id: str):
        self.actor_id = actor_id
        super().__init__(f"Actor not found: {actor_id}")


# Definition-time failures


class WorkflowDefinitionError(QualityKernelError):
    """A workflow graph is malformed (unknown state, missing enum member, ...)."""

    code: str = "WORKFLOW_DEFINITION"

    def __init__(self, workflow_name: str, reason: str):
        self.workflow_name = workflow_name
        self.reason = reason
        super().__init__(f"Invalid workflow '{workflow_name}': {reason}")


class ConfigurationError(QualityKernelError):
    """Configuration document failed validation."""

    code: str = "CONFIGURATION_ERROR"

    def __init__(self, source: str, reason: str):
        self.source = source
        self.reason = reason
        super().__init__(f"Invalid configuration {source}: {reason}")


# Audit trail protection


class ImmutabilityViolationError(QualityKernelError):
    """Attempted to modify or delete an append-only audit row."""

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(f"Cannot modify {entity_type} {entity_id}: {reason}")
