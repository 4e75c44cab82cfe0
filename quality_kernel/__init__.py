"""
Quality Kernel - workflow/approval core for the site quality tracker.

Record lifecycles for field observations, field trainings and maintenance
tasks with:
- Capability-gated transitions
- Per-project sequential report numbers
- Optimistic concurrency on record status
- On-time/late closure classification
"""

__version__ = "0.1.0"
