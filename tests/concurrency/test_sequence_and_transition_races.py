"""
True concurrency tests: one database, one session per thread.

- Report numbers allocated from many threads at once are unique and form a
  contiguous run.
- Two actors submitting the same transition against the same version:
  exactly one succeeds, the other gets ConflictError and changes nothing.

Run with: pytest tests/concurrency -v
Skip with: pytest -m "not slow_locks"
"""

import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from quality_config import WorkflowConfig
from quality_kernel.db.engine import session_scope
from quality_kernel.domain.records import RecordKind, TaskStatus
from quality_kernel.exceptions import ConflictError
from quality_kernel.services.sequence_service import SequenceAllocator
from quality_services import build_workflow_engine

pytestmark = pytest.mark.slow_locks

THREADS = 8


@pytest.fixture
def committed_cast(session, cast):
    """The cast, committed so other connections can see it."""
    session.commit()
    return cast


class TestConcurrentAllocation:

    def test_numbers_are_unique_and_contiguous(self, committed_cast):
        project_id = committed_cast.project_id
        barrier = threading.Barrier(THREADS)

        def allocate_many(_):
            barrier.wait()
            numbers = []
            for _ in range(5):
                with session_scope() as s:
                    numbers.append(SequenceAllocator(s).allocate(project_id, RecordKind.TASK))
            return numbers

        with ThreadPoolExecutor(max_workers=THREADS) as pool:
            results = [n for batch in pool.map(allocate_many, range(THREADS)) for n in batch]

        values = sorted(int(n.split("-")[1]) for n in results)
        assert values == list(range(1, THREADS * 5 + 1))

        with session_scope() as s:
            assert SequenceAllocator(s).current(project_id, RecordKind.TASK) == ("TASK", THREADS * 5)

    def test_first_use_race_creates_one_counter(self, committed_cast):
        project_id = committed_cast.project_id
        barrier = threading.Barrier(THREADS)

        def allocate_once(_):
            barrier.wait()
            with session_scope() as s:
                return SequenceAllocator(s).allocate(project_id, RecordKind.OBSERVATION)

        with ThreadPoolExecutor(max_workers=THREADS) as pool:
            results = list(pool.map(allocate_once, range(THREADS)))

        assert sorted(results) == [f"FOR-{i:03d}" for i in range(1, THREADS + 1)]


class TestConcurrentTransition:

    def test_exactly_one_winner(self, committed_cast, clock):
        cast = committed_cast
        config = WorkflowConfig()

        with session_scope() as s:
            record = build_workflow_engine(s, clock=clock, config=config).create_record(
                cast.project_id, "task", cast.creator,
                {"title": "Seal roof", "assigned_actor_ids": [str(cast.worker)]},
            )

        barrier = threading.Barrier(2)

        def start(actor_id):
            barrier.wait()
            try:
                with session_scope() as s:
                    engine = build_workflow_engine(s, clock=clock, config=config)
                    engine.transition(record.id, "start", actor_id, expected_version=1)
                return "won"
            except ConflictError:
                return "conflict"

        with ThreadPoolExecutor(max_workers=2) as pool:
            outcomes = sorted(pool.map(start, [cast.worker, cast.owner]))

        assert outcomes == ["conflict", "won"]

        with session_scope() as s:
            engine = build_workflow_engine(s, clock=clock, config=config)
            final = engine.get_record(record.id)
            history = engine.get_history(record.id)

        assert final.status == TaskStatus.IN_PROGRESS.value
        assert final.version == 2
        assert [h.action for h in history] == ["create", "start"]
