"""
Tests for the Declare and Parse Passes.

Covers:
- Subsection bracketing and balance per acceptor.
- Visit order and tombstone skipping.
- Capability opt-in.
- Failure handling inside callbacks.
"""

from __future__ import annotations

from typing import Any

import pytest

from acceptor.core.acceptor import DeclareCapable, ParameterAcceptor
from acceptor.core.registry import Registry
from acceptor.core.traversal import (
    declare_all_parameters,
    parse_all_parameters,
    subsection_scope,
)
from acceptor.store.parameter_handler import ParameterHandler, SubsectionError
from tests.fakes import Plain, RecordingStore, Tracing


class _Counter(ParameterAcceptor):
    """Declares a counter and reads it back."""

    def __init__(self, section_name: str, registry: Registry) -> None:
        super().__init__(section_name, registry)
        self.value = None

    def declare_parameters(self, prm: ParameterHandler) -> None:
        prm.declare_entry("count", 1, "A counter", schema={"type": "integer"})

    def parse_parameters(self, prm: ParameterHandler) -> None:
        self.value = prm.get("count")


class _DeclareOnly(DeclareCapable):
    """Registrant that only takes part in the declare pass."""

    def __init__(self, section_name: str) -> None:
        self.section_name = section_name
        self.seen = []

    def declare_parameters(self, prm: Any) -> None:
        self.seen.append("declare")


class _Unbalanced(ParameterAcceptor):
    """Leaves a subsection entered after declaring."""

    def declare_parameters(self, prm: ParameterHandler) -> None:
        prm.enter_subsection("dangling")


class _OverLeaving(ParameterAcceptor):
    """Leaves one more subsection than it entered."""

    def declare_parameters(self, prm: ParameterHandler) -> None:
        prm.leave_subsection()


class _Failing(ParameterAcceptor):
    """Raises from its declare callback."""

    def declare_parameters(self, prm: ParameterHandler) -> None:
        raise RuntimeError("declare failed")


# ---------------------------------------------------------------------------
# Bracketing
# ---------------------------------------------------------------------------


class TestSubsectionBracketing:
    """Tests for enter/leave pairing around callbacks."""

    def test_declare_pass_brackets_each_acceptor(
        self, registry: Registry, recording_store: RecordingStore
    ) -> None:
        """Each path segment is entered once and left in reverse order."""
        root = Tracing("/X/Y/", registry)
        child = Tracing("C/D", registry)

        declare_all_parameters(recording_store, registry)

        assert recording_store.calls == [
            ("enter", "X"),
            ("enter", "Y"),
            ("declare", "/X/Y/", ("X", "Y")),
            ("leave", "Y"),
            ("leave", "X"),
            ("enter", "X"),
            ("enter", "Y"),
            ("enter", "C"),
            ("enter", "D"),
            ("declare", "C/D", ("X", "Y", "C", "D")),
            ("leave", "D"),
            ("leave", "C"),
            ("leave", "Y"),
            ("leave", "X"),
        ]
        assert recording_store.depth == 0
        assert root.declared and child.declared

    def test_parse_pass_brackets_each_acceptor(
        self, registry: Registry, recording_store: RecordingStore
    ) -> None:
        """The parse pass uses the same bracketing as the declare pass."""
        acceptor = Tracing("", registry)

        parse_all_parameters(recording_store, registry)

        assert recording_store.calls == [
            ("enter", "Tracing"),
            ("parse", "Tracing", ("Tracing",)),
            ("leave", "Tracing"),
        ]
        assert acceptor.parsed
        assert not acceptor.declared

    def test_tombstoned_acceptor_is_skipped(
        self, registry: Registry, recording_store: RecordingStore
    ) -> None:
        """Closed acceptors are not visited, and other ids are unchanged."""
        first = Tracing("/A", registry)
        second = Tracing("/B", registry)
        third = Tracing("/C", registry)
        second.close()

        declare_all_parameters(recording_store, registry)
        parse_all_parameters(recording_store, registry)

        visited = [call[1] for call in recording_store.calls if call[0] in ("declare", "parse")]
        assert visited == ["/A", "/C", "/A", "/C"]
        assert (first.acceptor_id, third.acceptor_id) == (0, 2)
        assert not second.declared

    def test_empty_registry_is_a_no_op(
        self, registry: Registry, recording_store: RecordingStore
    ) -> None:
        """Nothing is entered when nothing is registered."""
        declare_all_parameters(recording_store, registry)
        assert recording_store.calls == []

    def test_unbalanced_callback_fails_fast(self, registry: Registry, prm: ParameterHandler) -> None:
        """A callback that changes the nesting depth is reported."""
        acceptor = _Unbalanced("/A", registry)

        with pytest.raises(SubsectionError, match="Unbalanced"):
            declare_all_parameters(prm, registry)
        assert prm.depth == 0
        assert prm.current_path == []
        assert acceptor.acceptor_id == 0

    def test_extra_leave_in_callback_fails_fast(
        self, registry: Registry, recording_store: RecordingStore
    ) -> None:
        """A callback that leaves its own section is reported, store at the root."""
        acceptor = _OverLeaving("/A/B", registry)

        with pytest.raises(SubsectionError, match="depth 1, expected 2"):
            declare_all_parameters(recording_store, registry)
        assert recording_store.depth == 0
        assert acceptor.acceptor_id == 0

    def test_callback_error_leaves_subsections(self, registry: Registry, prm: ParameterHandler) -> None:
        """A failing callback propagates with the store back at the root."""
        acceptor = _Failing("/A/B", registry)

        with pytest.raises(RuntimeError, match="declare failed"):
            declare_all_parameters(prm, registry)
        assert prm.depth == 0
        assert acceptor.acceptor_id == 0

    def test_subsection_scope_restores_depth(self, recording_store: RecordingStore) -> None:
        """subsection_scope enters and leaves the given sections."""
        with subsection_scope(recording_store, ["A", "B"]):
            assert recording_store.current_path == ["A", "B"]
        assert recording_store.depth == 0


# ---------------------------------------------------------------------------
# Capabilities and end-to-end
# ---------------------------------------------------------------------------


class TestPasses:
    """Tests for the two passes against a real parameter handler."""

    def test_declare_then_parse(self, registry: Registry, prm: ParameterHandler) -> None:
        """Values loaded between the passes reach the acceptors."""
        solver = _Counter("/Solver/", registry)
        output = _Counter("Output", registry)

        declare_all_parameters(prm, registry)
        prm.parse_dict({"Solver": {"count": 3, "Output": {"count": 7}}})
        parse_all_parameters(prm, registry)

        assert solver.value == 3
        assert output.value == 7

    def test_defaults_reach_acceptors(self, registry: Registry, prm: ParameterHandler) -> None:
        """Without input every acceptor reads its default."""
        counter = _Counter("Counter", registry)

        declare_all_parameters(prm, registry)
        parse_all_parameters(prm, registry)

        assert counter.value == 1
        assert prm.to_dict() == {"Counter": {"count": 1}}

    def test_declare_only_registrant(self, registry: Registry, prm: ParameterHandler) -> None:
        """A registrant without the parse capability is still bracketed."""
        item = _DeclareOnly("/Only")
        with registry.registration(item):
            declare_all_parameters(prm, registry)
            parse_all_parameters(prm, registry)

        assert item.seen == ["declare"]
        assert prm.to_dict() == {"Only": {}}

    def test_plain_acceptor_creates_empty_section(
        self, registry: Registry, prm: ParameterHandler
    ) -> None:
        """The default no-op callbacks still enter the section."""
        acceptor = Plain("", registry)
        declare_all_parameters(prm, registry)

        assert prm.to_dict() == {"Plain": {}}
        assert acceptor.acceptor_id == 0
