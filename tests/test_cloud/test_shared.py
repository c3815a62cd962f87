"""
Tests for SharedGenerator - clones, poisoning and multi-threaded use
"""

import copy
import threading

import pytest

from helpers import EPOCH_MS, START_NS, NodeFlake, TinyFlake
from tickflake.cloud.shared import SharedGenerator
from tickflake.cloud.wait import blocking_next_id
from tickflake.flake.models import Flake
from tickflake.kernel.errors import (
    IdSegInvalid,
    LockPoisoned,
    MutexError,
    SequenceMaxReached,
    TimestampError,
)
from tickflake.kernel.time import ManualClock


class ExplodingClock(ManualClock):
    """ManualClock that raises whatever error it is handed"""

    def __init__(self, initial_ns: int) -> None:
        super().__init__(initial_ns)
        self.error: BaseException | None = None

    def time_ns(self) -> int:
        if self.error is not None:
            raise self.error
        return super().time_ns()


def test_construction_matches_exclusive_generator(clock: ManualClock, epoch_ms: int) -> None:
    cloud = SharedGenerator(NodeFlake, epoch_ms, 9, clock=clock)

    assert cloud.segments == (9,)
    assert cloud.flake_type is NodeFlake
    assert not cloud.poisoned
    assert cloud.next_id().into_parts() == (86_400_000, 9, 1)

    with pytest.raises(IdSegInvalid):
        SharedGenerator(NodeFlake, epoch_ms, 0, clock=clock)


def test_clones_share_counts(clock: ManualClock, epoch_ms: int) -> None:
    """Test a clone continues the original's sequence"""
    cloud = SharedGenerator(NodeFlake, epoch_ms, 1, clock=clock)
    worker = cloud.clone()

    assert worker is not cloud
    assert worker.shares_counts_with(cloud)
    assert [cloud.next_id().sequence, worker.next_id().sequence, cloud.next_id().sequence] == [
        1,
        2,
        3,
    ]


def test_deepcopy_still_shares_counts(clock: ManualClock, epoch_ms: int) -> None:
    cloud = SharedGenerator(NodeFlake, epoch_ms, 1, clock=clock)

    duplicate = copy.deepcopy(cloud)

    assert duplicate.shares_counts_with(cloud)


def test_independent_generators_do_not_share(clock: ManualClock, epoch_ms: int) -> None:
    first = SharedGenerator(NodeFlake, epoch_ms, 1, clock=clock)
    second = SharedGenerator(NodeFlake, epoch_ms, 1, clock=clock)

    assert not first.shares_counts_with(second)
    assert first.next_id().sequence == second.next_id().sequence == 1


def test_exhaustion_is_shared_between_clones(clock: ManualClock, epoch_ms: int) -> None:
    cloud = SharedGenerator(TinyFlake, epoch_ms, 1, clock=clock)
    worker = cloud.clone()
    for _ in range(TinyFlake.MAX_SEQUENCE):
        cloud.next_id()

    with pytest.raises(SequenceMaxReached) as exc_info:
        worker.next_id()

    assert exc_info.value.wait_ns == 750_000
    assert not cloud.poisoned


def test_clock_error_does_not_poison(epoch_ms: int) -> None:
    clock = ExplodingClock(START_NS)
    cloud = SharedGenerator(NodeFlake, epoch_ms, 1, clock=clock)

    clock.error = OSError("clock unavailable")
    with pytest.raises(TimestampError):
        cloud.next_id()

    clock.error = None
    assert not cloud.poisoned
    assert cloud.next_id().sequence == 1


def test_unexpected_error_poisons_every_clone(epoch_ms: int) -> None:
    """Test a failure inside the critical section disables all clones"""
    clock = ExplodingClock(START_NS)
    cloud = SharedGenerator(NodeFlake, epoch_ms, 1, clock=clock)
    worker = cloud.clone()

    clock.error = RuntimeError("boom")
    with pytest.raises(RuntimeError):
        cloud.next_id()

    clock.error = None
    assert worker.poisoned
    with pytest.raises(LockPoisoned):
        worker.next_id()
    with pytest.raises(MutexError):
        cloud.next_id()


def test_threads_never_duplicate_ids(epoch_ms: int) -> None:
    """Test three threads drawing from clones get distinct, per-thread increasing ids"""
    cloud = SharedGenerator(NodeFlake, epoch_ms, 1)
    results: dict[int, list[Flake]] = {}
    errors: list[BaseException] = []

    def worker(index: int, handle: SharedGenerator) -> None:
        try:
            results[index] = [
                blocking_next_id(handle, 2) for _ in range(NodeFlake.MAX_SEQUENCE)
            ]
        except BaseException as exc:
            errors.append(exc)

    threads = [
        threading.Thread(target=worker, args=(index, cloud.clone())) for index in range(3)
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert errors == []
    all_ids = [flake.id for flakes in results.values() for flake in flakes]
    assert len(all_ids) == 3 * NodeFlake.MAX_SEQUENCE
    assert len(set(all_ids)) == len(all_ids)
    for flakes in results.values():
        ids = [flake.id for flake in flakes]
        assert ids == sorted(ids)


def test_repr(clock: ManualClock) -> None:
    cloud = SharedGenerator(NodeFlake, EPOCH_MS, 2, clock=clock)

    assert repr(cloud) == (
        f"SharedGenerator(SingleIdFlake[43, 8, 12], epoch_ms={EPOCH_MS}, segments=(2,))"
    )
