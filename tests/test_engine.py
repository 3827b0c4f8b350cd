"""
Progression engine tests.

Covers unlock cascades, consistency repair, progress derivation and the
checkpoint gate.
"""

import json
import random

import pytest

from stepgate.classroom import (
    CheckpointGate,
    MemoryStore,
    PersistedState,
    ProgressionEngine,
    data_key,
    completed_key,
    progress_percent,
)
from stepgate.errors import IncompleteExercises


def make_engine(module, store=None):
    store = store if store is not None else MemoryStore()
    return ProgressionEngine(module, PersistedState(store, module.id))


def saved(store, module_id="m1"):
    return json.loads(store.get(data_key(module_id)))


class TestProgressPercent:

    def test_no_blocking_sections_is_complete(self):
        assert progress_percent(0, 0) == 100

    def test_rounding(self):
        assert progress_percent(1, 3) == 33
        assert progress_percent(2, 3) == 67
        assert progress_percent(1, 2) == 50

    def test_half_rounds_up(self):
        assert progress_percent(1, 8) == 13
        assert progress_percent(5, 8) == 63


class TestInitialState:

    def test_fresh_engine(self, make_module):
        engine = make_engine(make_module("concept", "exercise"))
        assert engine.state.unlocked_sections == {0}
        assert engine.state.completed_sections == set()
        assert engine.progress == 0

    def test_module_without_exercises_is_at_100(self, make_module):
        engine = make_engine(make_module("concept", "code"))
        assert engine.progress == 100

    def test_is_unlocked(self, make_module):
        engine = make_engine(make_module("exercise", "exercise"))
        assert engine.is_unlocked(0)
        assert not engine.is_unlocked(1)

    def test_counts(self, make_module):
        engine = make_engine(make_module("concept", "exercise", "quiz", "code", "exercise-code"))
        assert engine.count_blocking() == 3
        assert engine.count_completed_blocking() == 0


class TestUnlockNext:

    def test_single_gate_advance(self, make_module):
        module = make_module("exercise", "concept", "intuition", "exercise", "quiz")
        engine = make_engine(module)

        engine.complete_section(0)
        first = engine.unlock_next(0)

        assert first == 1
        assert engine.state.unlocked_sections == {0, 1, 2, 3}
        assert not engine.is_unlocked(4)

    def test_stops_at_next_blocking(self, make_module):
        engine = make_engine(make_module("quiz", "quiz", "quiz"))
        engine.unlock_next(0)
        assert engine.state.unlocked_sections == {0, 1}

    def test_runs_to_end_without_blocking(self, make_module):
        engine = make_engine(make_module("exercise", "concept", "code"))
        engine.unlock_next(0)
        assert engine.state.unlocked_sections == {0, 1, 2}

    def test_last_section_returns_none(self, make_module):
        engine = make_engine(make_module("concept", "exercise"))
        assert engine.unlock_next(1) is None

    def test_out_of_range(self, make_module):
        engine = make_engine(make_module("exercise"))
        with pytest.raises(IndexError):
            engine.unlock_next(3)

    def test_persists(self, make_module):
        store = MemoryStore()
        engine = make_engine(make_module("exercise", "exercise"), store)
        engine.unlock_next(0)
        assert saved(store)["unlockedSections"] == [0, 1]


class TestCompleteSection:

    def test_records_and_recomputes(self, make_module):
        store = MemoryStore()
        engine = make_engine(make_module("exercise", "quiz", "exercise-code"), store)

        assert engine.complete_section(0) is True
        assert engine.progress == 33
        assert saved(store)["completedSections"] == [0]
        assert saved(store)["progress"] == 33

    def test_already_completed_is_noop(self, make_module):
        engine = make_engine(make_module("exercise"))
        engine.complete_section(0)
        assert engine.complete_section(0) is False
        assert engine.progress == 100

    def test_informational_sections_not_recorded(self, make_module):
        engine = make_engine(make_module("concept", "exercise"))
        assert engine.complete_section(0) is False
        assert engine.state.completed_sections == set()

    def test_out_of_range(self, make_module):
        engine = make_engine(make_module("exercise"))
        with pytest.raises(IndexError):
            engine.complete_section(1)

    def test_does_not_unlock(self, make_module):
        engine = make_engine(make_module("exercise", "exercise"))
        engine.complete_section(0)
        assert engine.state.unlocked_sections == {0}

    def test_completes_linked_objective(self, make_module):
        quiz = {"type": "quiz", "options": ["a", "b"], "correct": 0, "completesObjective": 1}
        engine = make_engine(make_module(quiz, objectives=["first", "second"]))
        engine.complete_section(0)
        assert engine.state.completed_objectives == {1}

    def test_dangling_objective_link_ignored(self, make_module):
        quiz = {"type": "quiz", "options": ["a", "b"], "correct": 0, "completesObjective": 5}
        engine = make_engine(make_module(quiz, objectives=["only"]))
        assert engine.complete_section(0) is True
        assert engine.state.completed_objectives == set()


class TestEnsureConsistency:

    def test_leading_informational_chain(self, make_module):
        engine = make_engine(make_module("concept", "code", "exercise", "concept"))
        engine.ensure_consistency()
        assert engine.state.unlocked_sections == {0, 1, 2}

    def test_informational_first_unlocks_exercise(self, make_module):
        engine = make_engine(make_module("concept", "mcq"))
        engine.ensure_consistency()
        assert engine.is_unlocked(1)

    def test_repairs_stale_snapshot(self, make_module):
        store = MemoryStore({
            data_key("m1"): json.dumps({
                "progress": 25,
                "completedObjectives": [],
                "completedSections": [0],
                "unlockedSections": [0],
            })
        })
        engine = make_engine(make_module("exercise", "concept", "quiz", "quiz"), store)
        engine.ensure_consistency()

        assert engine.state.unlocked_sections == {0, 1, 2}
        assert saved(store)["unlockedSections"] == [0, 1, 2]
        assert engine.progress == 33

    def test_completed_chain_reopens_every_gate(self, make_module):
        store = MemoryStore({
            data_key("m1"): json.dumps({"completedSections": [0, 2], "unlockedSections": [0]})
        })
        engine = make_engine(make_module("quiz", "concept", "quiz", "quiz", "concept"), store)
        engine.ensure_consistency()
        assert engine.state.unlocked_sections == {0, 1, 2, 3}

    def test_idempotent(self, make_module):
        engine = make_engine(make_module("concept", "exercise", "code", "quiz", "concept", "exercise"))
        engine.complete_section(1)
        engine.ensure_consistency()
        first = set(engine.state.unlocked_sections)
        engine.ensure_consistency()
        assert engine.state.unlocked_sections == first

    def test_single_informational_section(self, make_module):
        engine = make_engine(make_module("concept"))
        engine.ensure_consistency()
        assert engine.state.unlocked_sections == {0}


class TestRestore:

    def test_drops_indices_outside_content(self, make_module):
        store = MemoryStore({
            data_key("m1"): json.dumps({
                "progress": 100,
                "completedObjectives": [0, 7],
                "completedSections": [1, 9],
                "unlockedSections": [0, 1, 12],
            })
        })
        engine = make_engine(make_module("concept", "exercise", objectives=["o"]), store)
        assert engine.state.unlocked_sections == {0, 1}
        assert engine.state.completed_sections == {1}
        assert engine.state.completed_objectives == {0}

    def test_drops_completed_informational_sections(self, make_module):
        store = MemoryStore({data_key("m1"): json.dumps({"completedSections": [0, 1]})})
        engine = make_engine(make_module("concept", "exercise"), store)
        assert engine.state.completed_sections == {1}

    def test_progress_recomputed_not_trusted(self, make_module):
        store = MemoryStore({
            data_key("m1"): json.dumps({"progress": 80, "completedSections": [0]})
        })
        engine = make_engine(make_module("exercise", "exercise"), store)
        assert engine.progress == 50

    def test_garbage_snapshot_starts_fresh(self, make_module):
        store = MemoryStore({data_key("m1"): "{not json"})
        engine = make_engine(make_module("exercise"), store)
        assert engine.state.unlocked_sections == {0}
        assert engine.state.completed_sections == set()


class TestReset:

    def test_reset_clears_state_and_store(self, make_module):
        store = MemoryStore()
        engine = make_engine(make_module("exercise", "quiz"), store)
        engine.complete_section(0)
        engine.unlock_next(0)
        store.set(completed_key("m1"), "true")

        engine.reset()

        assert engine.state.unlocked_sections == {0}
        assert engine.state.completed_sections == set()
        assert engine.progress == 0
        assert store.get(data_key("m1")) is None
        assert store.get(completed_key("m1")) is None


class TestInvariants:
    """Random operation sequences never break the core invariants."""

    KINDS = ["concept", "exercise", "quiz", "code", "exercise-code", "warning"]

    @pytest.mark.parametrize("seed", range(20))
    def test_random_operations(self, make_module, seed):
        rng = random.Random(seed)
        kinds = [rng.choice(self.KINDS) for _ in range(rng.randint(1, 10))]
        module = make_module(*kinds, objectives=["a", "b"])
        engine = make_engine(module)
        engine.ensure_consistency()

        for _ in range(30):
            before = engine.snapshot()
            index = rng.randrange(len(kinds))
            op = rng.choice(["complete", "unlock", "objective", "consistency"])
            if op == "complete":
                engine.complete_section(index)
            elif op == "unlock":
                engine.unlock_next(index)
            elif op == "objective":
                engine.complete_objective(rng.randrange(3))
            else:
                engine.ensure_consistency()

            state = engine.state
            assert 0 in state.unlocked_sections
            assert state.unlocked_sections >= before.unlocked_sections
            assert state.completed_sections >= before.completed_sections
            assert state.completed_objectives >= before.completed_objectives
            assert all(kinds[i] in ("exercise", "quiz", "exercise-code") for i in state.completed_sections)
            assert engine.progress == progress_percent(
                engine.count_completed_blocking(), engine.count_blocking()
            )


class TestCheckpointGate:

    def test_gate_closed_until_all_solved(self, make_module):
        engine = make_engine(make_module("exercise", "quiz", objectives=["a", "b"]))
        gate = CheckpointGate(engine)
        engine.complete_section(0)

        assert not gate.can_checkpoint()
        with pytest.raises(IncompleteExercises) as excinfo:
            gate.complete_checkpoint()
        assert (excinfo.value.completed, excinfo.value.total) == (1, 2)
        assert not gate.is_module_completed()

    def test_checkpoint_marks_module_complete(self, make_module):
        store = MemoryStore()
        engine = make_engine(make_module("exercise", "quiz", objectives=["a", "b", "c"]), store)
        notified = []
        gate = CheckpointGate(engine, on_complete=notified.append)
        engine.complete_section(0)
        engine.complete_section(1)

        gate.complete_checkpoint()

        assert gate.is_module_completed()
        assert store.get(completed_key("m1")) == "true"
        assert engine.progress == 100
        assert engine.state.completed_objectives == {0, 1, 2}
        assert saved(store)["completedObjectives"] == [0, 1, 2]
        assert notified == [engine.module]

    def test_module_without_exercises_can_checkpoint(self, make_module):
        gate = CheckpointGate(make_engine(make_module("concept")))
        assert gate.can_checkpoint()
        gate.complete_checkpoint()
        assert gate.is_module_completed()
