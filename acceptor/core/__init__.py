"""
Acceptor Core.

Registry of parameter acceptors, section path resolution and the
two whole-registry traversal passes (declare, parse).
"""

from acceptor.core.acceptor import DeclareCapable, ParameterAcceptor, ParseCapable
from acceptor.core.registry import (
    Registry,
    RegistryError,
    StaleRegistrationError,
    get_default_registry,
)
from acceptor.core.resolver import SEPARATOR, resolve_section_path
from acceptor.core.traversal import (
    SubsectionError,
    declare_all_parameters,
    parse_all_parameters,
)

__all__ = [
    "DeclareCapable",
    "ParameterAcceptor",
    "ParseCapable",
    "Registry",
    "RegistryError",
    "StaleRegistrationError",
    "get_default_registry",
    "SEPARATOR",
    "resolve_section_path",
    "SubsectionError",
    "declare_all_parameters",
    "parse_all_parameters",
]
