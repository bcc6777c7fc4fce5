"""
Section Path Resolver.

Derives the nested section path of a registered acceptor from its declared
section name and the declared names of acceptors registered before it.

- A declared name starting with the separator is absolute: ``"/A/B"`` is
  ``["A", "B"]`` no matter what came before.
- Any other non-empty name is relative. It is spliced under the nearest
  earlier live acceptor whose declared name is absolute. When that name has
  no trailing separator its last segment is a leaf and is not descended
  into: after ``"/X/Y"``, ``"C/D"`` resolves to ``["X", "C", "D"]``; after
  ``"/X/Y/"`` it resolves to ``["X", "Y", "C", "D"]``.
- An empty declared name resolves to the acceptor's runtime type name.

Only the nearest absolute name is used. Relative names never chain onto
other relative names. There is no escape for a literal separator inside a
segment name.
"""

from __future__ import annotations

from typing import List, Optional

from loguru import logger

from acceptor.core.registry import Registry, StaleRegistrationError, declared_name


SEPARATOR = "/"


def split_section_name(name: str, sep: str = SEPARATOR) -> List[str]:
    """
    Split a section name into non-empty segments, stripped of surrounding
    whitespace.

    Leading, trailing and repeated separators produce no segments; use
    ``is_absolute`` and ``has_trailing_separator`` to inspect them.

    Examples:
        "/X/Y/" -> ["X", "Y"]
        "C/D"   -> ["C", "D"]
        "/ X / Y" -> ["X", "Y"]
        "/"     -> []
    """
    segments = (segment.strip() for segment in name.split(sep))
    return [segment for segment in segments if segment]


def is_absolute(name: str, sep: str = SEPARATOR) -> bool:
    return name.strip().startswith(sep)


def has_trailing_separator(name: str, sep: str = SEPARATOR) -> bool:
    return name.strip().endswith(sep)


def _absolute_prefix(name: str, sep: str) -> List[str]:
    # Without a trailing separator the last segment names a leaf, not a section.
    segments = split_section_name(name, sep)
    if has_trailing_separator(name, sep):
        return segments
    return segments[:-1]


def resolve_section_path(
    registry: Registry,
    acceptor_id: int,
    generation: Optional[int] = None,
    sep: str = SEPARATOR,
) -> List[str]:
    """
    Resolve the full section path of the acceptor at ``acceptor_id``.

    The result is recomputed on every call, since the nearest absolute
    ancestor depends on which earlier slots are currently tombstoned.

    Args:
        registry: Registry the acceptor was registered with.
        acceptor_id: Id returned by ``Registry.register``.
        generation: Registry generation at registration time, if known.
        sep: Segment separator.

    Returns:
        Ordered list of section names, outermost first.

    Raises:
        StaleRegistrationError: If the id is not in the registry, was issued
            before a reset, or its slot has been tombstoned.
    """
    registry.check(acceptor_id, generation)
    registrant = registry.get(acceptor_id)
    if registrant is None:
        raise StaleRegistrationError(
            acceptor_id, f"Acceptor {acceptor_id} has been unregistered"
        )

    name = declared_name(registrant)
    if not name:
        return [type(registrant).__name__]

    sections = split_section_name(name, sep)
    if is_absolute(name, sep):
        return sections

    for ancestor_id in range(acceptor_id - 1, -1, -1):
        ancestor = registry.get(ancestor_id)
        if ancestor is None:
            continue
        ancestor_name = declared_name(ancestor)
        if is_absolute(ancestor_name, sep):
            prefix = _absolute_prefix(ancestor_name, sep)
            logger.debug(
                f"Acceptor {acceptor_id} '{name}' spliced under acceptor "
                f"{ancestor_id} '{ancestor_name}'"
            )
            return prefix + sections

    return sections
