"""
Acceptor - Hierarchical Self-Registering Parameter Declarations.

This package contains the core logic for:
- Registry: Append-only, weakly-held list of parameter acceptors.
- Resolver: Section path inheritance between registered acceptors.
- Traversal: Declare and parse passes against a parameter store.
- Store: Hierarchical parameter handler with JSON-Schema value checks.
- Configuration: YAML/JSON parameter file driver.
"""

__version__ = "0.1.0"
