"""
quality_services -- Package init and public API.

Responsibility:
    Stateful orchestration over the pure engines (``quality_engines``), the
    per-kind definitions (``quality_modules``) and the kernel's persistence
    services.  The only layer that wires a database session to an engine.

Architecture position:
    Dependency direction (enforced by tests/architecture):
        quality_services/ -> quality_engines/, quality_modules/, quality_kernel/
        quality_kernel/   -> quality_services/ (FORBIDDEN)
        quality_engines/  -> quality_services/ (FORBIDDEN)
"""

from quality_services.pending_resolver import PendingActionResolver
from quality_services.workflow_engine import WorkflowEngine, build_workflow_engine

__all__ = [
    "PendingActionResolver",
    "WorkflowEngine",
    "build_workflow_engine",
]
