"""
Module: quality_engines
Responsibility:
    Pure decision engines for the record workflow: transition
    authorization, pending-action predicates and closure classification.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import quality_kernel/domain/ (and sibling engine modules).
    MUST NOT import quality_services, quality_modules or quality_config.

Invariants enforced:
    - Purity: engines NEVER call ``datetime.now()`` or ``date.today()``.
      Closure timestamps are passed in by the workflow engine.
    - Determinism: identical inputs always produce identical decisions.
"""

from quality_engines.authorizer import (
    CREATE_ACTION,
    TRANSITION_REQUIREMENTS,
    Requirement,
    TransitionAuthorizer,
    parties_of,
)
from quality_engines.deadline import classify_closure
from quality_engines.pending import PENDING_RULES, PendingRule, is_pending, pending_statuses

__all__ = [
    "CREATE_ACTION",
    "TRANSITION_REQUIREMENTS",
    "Requirement",
    "TransitionAuthorizer",
    "parties_of",
    "classify_closure",
    "PENDING_RULES",
    "PendingRule",
    "is_pending",
    "pending_statuses",
]
