"""
Parameter Acceptor Base Module.

Every object that owns a piece of the parameter tree derives from
``ParameterAcceptor``. Constructing one registers it with a registry;
closing it (explicitly or by leaving a ``with`` block) tombstones its slot.
An acceptor that is garbage collected without being closed reads as a
tombstone too, since the registry only holds weak references.

The declare and parse phases are separate capabilities, so a class can
opt into one of them without the other.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional

from loguru import logger

from acceptor.core.registry import Registry, display_name, get_default_registry
from acceptor.core.resolver import resolve_section_path

if TYPE_CHECKING:
    from acceptor.store.parameter_handler import ParameterStore


class DeclareCapable:
    """Participates in the declare pass. Both hooks default to no-ops."""

    def declare_parameters(self, prm: "ParameterStore") -> None:
        """
        Declare parameters in the current subsection of ``prm``.

        Called by the declare pass with this acceptor's section already
        entered.
        """
        pass

    def after_declare(self) -> None:
        """Called right after ``declare_parameters``, still inside the section."""
        pass


class ParseCapable:
    """Participates in the parse pass. Both hooks default to no-ops."""

    def parse_parameters(self, prm: "ParameterStore") -> None:
        """
        Read parameter values from the current subsection of ``prm``.

        Called by the parse pass with this acceptor's section already
        entered and the input already loaded into ``prm``.
        """
        pass

    def after_parse(self) -> None:
        """Called right after ``parse_parameters``, still inside the section."""
        pass


class ParameterAcceptor(DeclareCapable, ParseCapable):
    """
    Base class for objects that declare and read their own parameters.

    The section name decides where the parameters live:

    - ``""``: a section named after the concrete class.
    - ``"/A/B"``: absolute, always ``A/B``.
    - ``"C"``: relative, nested under the nearest earlier absolute
      declaration (see ``acceptor.core.resolver``).

    Example usage::

        class Solver(ParameterAcceptor):
            def __init__(self):
                super().__init__("/Solver")
                self.tolerance = 1e-8

            def declare_parameters(self, prm):
                prm.declare_entry("tolerance", self.tolerance, "Residual tolerance")

            def parse_parameters(self, prm):
                self.tolerance = prm.get("tolerance")

    Attributes:
        section_name: Declared section name, as passed at construction.
        registry: Registry this acceptor is registered with.
        acceptor_id: Slot index in ``registry``.
    """

    def __init__(self, section_name: str = "", registry: Optional[Registry] = None) -> None:
        """
        Register the acceptor.

        Args:
            section_name: Declared section name, possibly empty, relative or
                absolute.
            registry: Registry to join. Defaults to the process-wide one.
        """
        self.section_name = section_name
        self.registry = registry if registry is not None else get_default_registry()
        self._generation = self.registry.generation
        self.acceptor_id = self.registry.register(self)
        self._closed = False

    def get_section_name(self) -> str:
        """The declared section name, or the runtime class name when empty."""
        return display_name(self)

    def get_section_path(self) -> List[str]:
        """
        Resolve the full section path against the registry's current state.

        Raises:
            StaleRegistrationError: If the registry was reset since this
                acceptor registered, or the acceptor has been closed.
        """
        return resolve_section_path(self.registry, self.acceptor_id, self._generation)

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Tombstone this acceptor's registry slot. Further calls do nothing."""
        if self._closed:
            return
        self.registry.unregister(self.acceptor_id, self._generation)
        self._closed = True
        logger.debug(f"{type(self).__name__} (acceptor {self.acceptor_id}) closed")

    def __enter__(self) -> "ParameterAcceptor":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(section_name={self.section_name!r}, "
            f"acceptor_id={self.acceptor_id})"
        )
