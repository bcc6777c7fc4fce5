"""
Configuration Management Module.

Handles the parameter file side of the acceptor cycle:
- Loading YAML and JSON parameter files into the parameter store.
- Writing default and resulting parameter files.
- Running the declare, load and parse sequence.
"""

from acceptor.config.loader import ConfigLoader, ConfigurationError, OutputStyle, clear, initialize

__all__ = ["ConfigLoader", "ConfigurationError", "OutputStyle", "clear", "initialize"]
