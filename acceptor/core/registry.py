"""
Acceptor Registry Module.

Keeps the ordered list of every object that contributes a section to the
parameter tree. Each registration appends one slot; the slot index is the
acceptor id. Slots hold weak references only, and destroying an acceptor
tombstones its slot without shifting any other slot, so ids stay valid
until the registry is explicitly reset.

The registry must not be mutated while a declare or parse pass is
iterating it. This is not guarded against.
"""

from __future__ import annotations

import weakref
from contextlib import contextmanager
from typing import Any, Iterator, List, Optional, Tuple

from loguru import logger


def declared_name(registrant: Any) -> str:
    """The section name as declared at construction (possibly empty)."""
    return getattr(registrant, "section_name", "") or ""


def display_name(registrant: Any) -> str:
    """The declared section name, or the runtime type name when it is empty."""
    return declared_name(registrant) or type(registrant).__name__


class RegistryError(Exception):
    """Raised when the registry is used inconsistently."""

    pass


class StaleRegistrationError(RegistryError):
    """Raised when an acceptor id is unknown or was issued before a reset."""

    def __init__(self, acceptor_id: int, message: str) -> None:
        super().__init__(message)
        self.acceptor_id = acceptor_id


class Registry:
    """
    Append-only registry of parameter acceptors.

    Every slot is either live (a weak reference to an object that is still
    alive) or a tombstone. A slot whose referent has been garbage collected
    without an explicit ``unregister`` reads as a tombstone as well.

    Attributes:
        generation: Incremented on every ``reset``; ids issued under an
            older generation are stale.
    """

    def __init__(self) -> None:
        self._slots: List[Optional[weakref.ReferenceType]] = []
        self.generation = 0

    def __len__(self) -> int:
        return len(self._slots)

    def register(self, registrant: Any) -> int:
        """
        Append a live slot for ``registrant``.

        Args:
            registrant: Object contributing a section. Only a weak reference
                is kept.

        Returns:
            The acceptor id, equal to the registry length before insertion.
        """
        acceptor_id = len(self._slots)
        self._slots.append(weakref.ref(registrant))
        logger.debug(
            f"Registered {type(registrant).__name__} as acceptor {acceptor_id} "
            f"(generation {self.generation})"
        )
        return acceptor_id

    def unregister(self, acceptor_id: int, generation: Optional[int] = None) -> None:
        """
        Tombstone the slot at ``acceptor_id``. Calling it twice is harmless.

        Raises:
            StaleRegistrationError: If the id is not in the registry or was
                issued under another generation.
        """
        self.check(acceptor_id, generation)
        if self._slots[acceptor_id] is not None:
            self._slots[acceptor_id] = None
            logger.debug(f"Acceptor {acceptor_id} tombstoned")

    def reset(self) -> None:
        """Drop every slot. All previously issued ids become invalid."""
        count = len(self._slots)
        self._slots.clear()
        self.generation += 1
        logger.debug(f"Registry reset ({count} slot(s) dropped, generation {self.generation})")

    def check(self, acceptor_id: int, generation: Optional[int] = None) -> None:
        """
        Fail fast on an id that cannot belong to this registry.

        Raises:
            StaleRegistrationError: If ``acceptor_id`` is out of range, or
                ``generation`` is given and differs from the current one.
        """
        if generation is not None and generation != self.generation:
            raise StaleRegistrationError(
                acceptor_id,
                f"Acceptor {acceptor_id} was registered under generation {generation}, "
                f"registry is at generation {self.generation}",
            )
        if not 0 <= acceptor_id < len(self._slots):
            raise StaleRegistrationError(
                acceptor_id,
                f"Acceptor {acceptor_id} is not in the registry "
                f"({len(self._slots)} slot(s))",
            )

    def get(self, acceptor_id: int) -> Optional[Any]:
        """Return the live acceptor at ``acceptor_id``, or None for a tombstone."""
        self.check(acceptor_id)
        ref = self._slots[acceptor_id]
        return ref() if ref is not None else None

    def is_live(self, acceptor_id: int) -> bool:
        return self.get(acceptor_id) is not None

    def live(self) -> Iterator[Tuple[int, Any]]:
        """Yield ``(acceptor_id, acceptor)`` for live slots in ascending id order."""
        for acceptor_id in range(len(self._slots)):
            registrant = self.get(acceptor_id)
            if registrant is not None:
                yield acceptor_id, registrant

    @contextmanager
    def registration(self, registrant: Any) -> Iterator[int]:
        """
        Register ``registrant`` for the duration of a ``with`` block.

        The slot is tombstoned on every exit path, including exceptions.
        """
        generation = self.generation
        acceptor_id = self.register(registrant)
        try:
            yield acceptor_id
        finally:
            self.unregister(acceptor_id, generation)

    def describe(self) -> List[str]:
        """One line per slot: the section name, or NULL for a tombstone."""
        lines = []
        for acceptor_id in range(len(self._slots)):
            registrant = self.get(acceptor_id)
            if registrant is not None:
                lines.append(f"Class {acceptor_id}:{display_name(registrant)}")
            else:
                lines.append(f"Class {acceptor_id}: NULL")
        return lines

    def log_info(self) -> None:
        """Log the registry contents, one slot per line."""
        for line in self.describe():
            logger.info(f"ParameterAcceptor:{line}")


_default_registry = Registry()


def get_default_registry() -> Registry:
    """Return the process-wide registry used when none is passed explicitly."""
    return _default_registry
