"""
Parameter Handler Module.

Hierarchical key/value store that acceptors declare their parameters into
and read them back from. Parameters live in nested subsections; the handler
keeps a stack of entered subsections and every declare/get/set call acts on
the innermost one.

Value checks are done here, not in the acceptor core: each entry may carry
a JSON-schema fragment that its default and every assigned value must pass.
"""

from __future__ import annotations

import copy
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from loguru import logger

from acceptor.store import schema as schemas
from acceptor.store.schema import SchemaValidationError


class ParameterError(Exception):
    """Raised when an undeclared parameter or subsection is accessed."""

    pass


class SubsectionError(Exception):
    """Raised when subsection nesting is unbalanced."""

    pass


class ParameterStore(ABC):
    """
    Contract the traversal passes rely on.

    ``enter_subsection`` and ``leave_subsection`` must be paired; leaving
    with nothing entered is an error.
    """

    @abstractmethod
    def enter_subsection(self, name: str) -> None:
        ...

    @abstractmethod
    def leave_subsection(self) -> None:
        ...

    @property
    @abstractmethod
    def depth(self) -> int:
        """Number of currently entered subsections."""
        ...


@dataclass
class Entry:
    """
    A declared parameter.

    Attributes:
        default: Value used until one is parsed or set.
        value: Current value.
        description: Human-readable documentation.
        schema: Optional JSON-schema fragment the value must satisfy.
    """

    default: Any
    value: Any
    description: str = ""
    schema: Optional[Dict[str, Any]] = None


@dataclass
class Section:
    """A subsection: declared entries plus nested subsections, in declaration order."""

    entries: Dict[str, Entry] = field(default_factory=dict)
    subsections: Dict[str, "Section"] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            name: copy.deepcopy(entry.value) for name, entry in self.entries.items()
        }
        for name, subsection in self.subsections.items():
            data[name] = subsection.to_dict()
        return data

    def descriptions(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            name: entry.description for name, entry in self.entries.items()
        }
        for name, subsection in self.subsections.items():
            data[name] = subsection.descriptions()
        return data


class ParameterHandler(ParameterStore):
    """
    In-memory hierarchical parameter store.

    Example usage::

        prm = ParameterHandler()
        prm.enter_subsection("Solver")
        prm.declare_entry("tolerance", 1e-8, "Residual tolerance",
                          schema={"type": "number", "exclusiveMinimum": 0})
        prm.leave_subsection()

        prm.parse_dict({"Solver": {"tolerance": 1e-10}})
    """

    def __init__(self) -> None:
        self._root = Section()
        self._path: List[str] = []

    # ------------------------------------------------------------------
    # Nesting
    # ------------------------------------------------------------------

    def enter_subsection(self, name: str) -> None:
        """Enter subsection ``name`` of the current one, creating it if needed."""
        current = self._current()
        if name in current.entries:
            raise ParameterError(
                f"Cannot enter subsection '{self._location(name)}': "
                f"an entry with that name is declared"
            )
        current.subsections.setdefault(name, Section())
        self._path.append(name)

    def leave_subsection(self) -> None:
        if not self._path:
            raise SubsectionError("leave_subsection() called without a matching enter_subsection()")
        self._path.pop()

    @property
    def depth(self) -> int:
        return len(self._path)

    @property
    def current_path(self) -> List[str]:
        return list(self._path)

    # ------------------------------------------------------------------
    # Entries
    # ------------------------------------------------------------------

    def declare_entry(
        self,
        name: str,
        default: Any,
        description: str = "",
        schema: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Declare a parameter in the current subsection.

        Declaring the same name again replaces the previous definition and
        resets its value to the new default.

        Args:
            name: Parameter name, unique within the subsection.
            default: Default value.
            description: Documentation carried into generated schemas.
            schema: Optional JSON-schema fragment for the value.

        Raises:
            ParameterError: If a subsection of that name exists, or the
                default does not satisfy ``schema``.
        """
        current = self._current()
        location = self._location(name)
        if name in current.subsections:
            raise ParameterError(f"Cannot declare entry '{location}': a subsection with that name exists")

        if schema is not None:
            try:
                schemas.check_schema(schema, location)
                schemas.validate(default, schema, location)
            except SchemaValidationError as e:
                raise ParameterError(f"Invalid declaration of '{location}': {e}") from e

        current.entries[name] = Entry(
            default=copy.deepcopy(default),
            value=copy.deepcopy(default),
            description=description,
            schema=schema,
        )
        logger.debug(f"Declared parameter: {location}")

    def get(self, name: str) -> Any:
        """Return the current value of ``name`` in the current subsection."""
        return self._entry(name).value

    def set(self, name: str, value: Any) -> None:
        """
        Assign ``value`` to ``name`` in the current subsection.

        Raises:
            ParameterError: If ``name`` is undeclared or the value fails the
                entry's schema.
        """
        self._assign(self._entry(name), value, self._location(name))

    def __contains__(self, name: str) -> bool:
        return name in self._current().entries

    # ------------------------------------------------------------------
    # Whole-tree operations
    # ------------------------------------------------------------------

    def parse_dict(self, data: Mapping[str, Any]) -> None:
        """
        Load a nested mapping into the current subsection.

        Keys naming subsections recurse into them; keys naming entries set
        their values. Keys not declared raise ``ParameterError``.
        """
        self._load(self._current(), data, list(self._path))

    def to_dict(self) -> Dict[str, Any]:
        """Nested mapping of every current value, from the root."""
        return self._root.to_dict()

    def descriptions(self) -> Dict[str, Any]:
        """Nested mapping shaped like ``to_dict`` holding each entry's description."""
        return self._root.descriptions()

    def to_json_schema(self, title: str = "parameters") -> Dict[str, Any]:
        """Draft-7 JSON schema describing the whole declared tree."""
        return schemas.document_schema(self._root, title=title)

    def clear(self) -> None:
        """Drop every declaration and value, and return to the root."""
        self._root = Section()
        self._path = []
        logger.debug("Parameter handler cleared")

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _current(self) -> Section:
        section = self._root
        for name in self._path:
            section = section.subsections[name]
        return section

    def _location(self, name: str, path: Optional[List[str]] = None) -> str:
        return "/".join((self._path if path is None else path) + [name])

    def _entry(self, name: str) -> Entry:
        entry = self._current().entries.get(name)
        if entry is None:
            raise ParameterError(f"Undeclared parameter '{self._location(name)}'")
        return entry

    def _load(self, section: Section, data: Mapping[str, Any], path: List[str]) -> None:
        if not isinstance(data, Mapping):
            raise ParameterError(
                f"Expected a mapping for subsection '{'/'.join(path) or '(root)'}', "
                f"got {type(data).__name__}"
            )
        for key, value in data.items():
            key = str(key)
            location = self._location(key, path)
            if key in section.subsections:
                self._load(section.subsections[key], value, path + [key])
            elif key in section.entries:
                self._assign(section.entries[key], value, location)
            else:
                raise ParameterError(f"Unknown parameter or subsection '{location}'")

    @staticmethod
    def _assign(entry: Entry, value: Any, location: str) -> None:
        if entry.schema is not None:
            try:
                schemas.validate(value, entry.schema, location)
            except SchemaValidationError as e:
                raise ParameterError(f"Invalid value for '{location}': {e}") from e
        entry.value = copy.deepcopy(value)
