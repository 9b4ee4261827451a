"""
Shared test fixtures.

Markers:
    @pytest.mark.slow: solves instances with four or more numerals

Run the fast subset:
    pytest -m "not slow"
"""

import pytest
import z3

from chiffres_z3.core.actions import ActionKind, DIV
from chiffres_z3.core.engine import Engine


class UnknownSolver:
    """Stand-in for a Solver that always times out."""

    def __init__(self):
        self.assertions = []
        self.params = {}
        self.scopes = 0
        self.checks = 0

    def set(self, name, value):
        self.params[name] = value

    def add(self, *formulas):
        self.assertions.extend(formulas)

    def push(self):
        self.scopes += 1

    def pop(self):
        self.scopes -= 1

    def check(self):
        self.checks += 1
        return z3.unknown

    def model(self):
        raise AssertionError("model() called after an unknown check")


class UnknownOptimize(UnknownSolver):
    """Stand-in for an Optimize session that always times out."""

    def __init__(self):
        super().__init__()
        self.objectives = []

    def push(self):
        raise AssertionError("Optimize sessions have no push")

    def pop(self):
        raise AssertionError("Optimize sessions have no pop")

    def minimize(self, expr):
        self.objectives.append(expr)


class Recorder:
    """Factory remembering every session it built."""

    def __init__(self, cls):
        self.cls = cls
        self.built = []

    def __call__(self):
        session = self.cls()
        self.built.append(session)
        return session


@pytest.fixture
def make_engine():
    """Engine factory with small, explicit defaults independent of settings."""
    def _make(numerals, target, **kwargs):
        kwargs.setdefault("bv_bits", 16)
        kwargs.setdefault("no_overflows", False)
        kwargs.setdefault("timeout", 0)
        kwargs.setdefault("guard_intermediates", False)
        return Engine(numerals, target, **kwargs)
    return _make


@pytest.fixture
def unknown_solver_factory():
    return Recorder(UnknownSolver)


@pytest.fixture
def unknown_optimize_factory():
    return Recorder(UnknownOptimize)


def _is_true(model, expr) -> bool:
    return z3.is_true(model.eval(expr, model_completion=True))


@pytest.fixture
def assert_model_invariants():
    """
    Check a model against the stack machine invariants for steps 0..depth:
    one action per step, single use of each pushed value, no division by
    zero, and +1/-1 bookkeeping of the stack index.
    """
    def _check(engine, model, depth):
        encoder = engine.encoder
        decoder = engine.decoder

        assert decoder.stack_index(model, 0) == 0

        pushes_seen = {}
        for step in range(depth + 1):
            fired = [a for a in encoder.actions() if _is_true(model, encoder.trigger(step, a))]
            assert len(fired) == 1, f"step {step}: {[a.label for a in fired]}"
            action = fired[0]

            idx = decoder.stack_index(model, step)
            idx_next = decoder.stack_index(model, step + 1)
            assert idx >= 0

            if action.kind == ActionKind.PUSH:
                assert idx_next == idx + 1
                assert action.value not in pushes_seen, (
                    f"push {action.value} at steps {pushes_seen[action.value]} and {step}"
                )
                pushes_seen[action.value] = step
            else:
                assert idx >= 2
                assert idx_next == idx - 1
                assert idx_next >= 1

            if action == DIV:
                assert decoder.cell_value(model, step, idx - 2) != 0
    return _check
