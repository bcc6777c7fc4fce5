"""
Registry Traversal Module.

Drives the two whole-registry passes against a parameter store:

- Declare pass: every live acceptor declares its parameters inside its own
  section, so the complete schema exists before any input is loaded.
- Parse pass: after the caller has loaded input into the store, every live
  acceptor reads its values back from its own section.

Both passes visit slots in ascending id order and skip tombstones. The
registry must not be mutated while a pass is running.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, List, Optional

from loguru import logger

from acceptor.core.acceptor import DeclareCapable, ParseCapable
from acceptor.core.registry import Registry, display_name, get_default_registry
from acceptor.core.resolver import resolve_section_path
from acceptor.store.parameter_handler import ParameterStore, SubsectionError


@contextmanager
def subsection_scope(prm: ParameterStore, sections: List[str], label: str = "") -> Iterator[None]:
    """
    Enter ``sections`` in order, and return to the starting depth on exit.

    The store is returned to its starting depth on every exit path, including
    when the body entered subsections it did not leave.

    Raises:
        SubsectionError: If the body changed the nesting depth.
    """
    start_depth = prm.depth
    expected_depth = start_depth
    body_depth = None
    try:
        for section in sections:
            prm.enter_subsection(section)
            expected_depth += 1
        yield
        body_depth = prm.depth
    finally:
        while prm.depth > start_depth:
            prm.leave_subsection()

    if body_depth != expected_depth:
        raise SubsectionError(
            f"Unbalanced subsections after visiting {label or '/'.join(sections)}: "
            f"depth {body_depth}, expected {expected_depth}"
        )


def _run_pass(prm: ParameterStore, registry: Registry, phase: str) -> int:
    visited = 0
    for acceptor_id, registrant in registry.live():
        sections = resolve_section_path(registry, acceptor_id)
        label = f"acceptor {acceptor_id} ({display_name(registrant)})"
        logger.debug(f"{phase.capitalize()} {label} in /{'/'.join(sections)}")

        with subsection_scope(prm, sections, label):
            if phase == "declare" and isinstance(registrant, DeclareCapable):
                registrant.declare_parameters(prm)
                registrant.after_declare()
            elif phase == "parse" and isinstance(registrant, ParseCapable):
                registrant.parse_parameters(prm)
                registrant.after_parse()
        visited += 1
    return visited


def declare_all_parameters(prm: ParameterStore, registry: Optional[Registry] = None) -> None:
    """
    Run the declare pass over every live acceptor.

    Args:
        prm: Store to declare into.
        registry: Registry to traverse. Defaults to the process-wide one.
    """
    registry = registry if registry is not None else get_default_registry()
    logger.info(f"Declaring parameters for {len(registry)} registry slot(s)")
    visited = _run_pass(prm, registry, "declare")
    logger.info(f"Declare pass complete: {visited} acceptor(s) visited")


def parse_all_parameters(prm: ParameterStore, registry: Optional[Registry] = None) -> None:
    """
    Run the parse pass over every live acceptor.

    Input must already be loaded into ``prm``.

    Args:
        prm: Store to read values from.
        registry: Registry to traverse. Defaults to the process-wide one.
    """
    registry = registry if registry is not None else get_default_registry()
    logger.info(f"Parsing parameters for {len(registry)} registry slot(s)")
    visited = _run_pass(prm, registry, "parse")
    logger.info(f"Parse pass complete: {visited} acceptor(s) visited")
