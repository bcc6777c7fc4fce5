"""
Parameter File Loader Module.

Drives a complete configuration cycle for registered acceptors:
- Declare pass over the registry.
- Loading a YAML or JSON parameter file, validated against the JSON schema
  generated from the declarations.
- Creation of a default parameter file when the input does not exist.
- Parse pass over the registry.
- Optional write-out of the resulting parameters.
"""

from __future__ import annotations

import json
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from loguru import logger

from acceptor import __version__
from acceptor.core.registry import Registry, get_default_registry
from acceptor.core.traversal import declare_all_parameters, parse_all_parameters
from acceptor.store.parameter_handler import ParameterError, ParameterHandler
from acceptor.store.schema import SchemaValidationError, validate


class ConfigurationError(Exception):
    """Raised when a parameter file is invalid or cannot be loaded."""

    pass


class OutputStyle(Enum):
    """How much of the declarations a written YAML parameter file carries."""

    TEXT = "text"
    SHORT_TEXT = "short_text"


class ConfigLoader:
    """
    Reads and writes parameter files and runs the declare/load/parse cycle.

    Attributes:
        config_dir: Base directory for relative parameter file names.
    """

    YAML_EXTENSIONS = {".yaml", ".yml"}
    JSON_EXTENSIONS = {".json"}
    SUPPORTED_EXTENSIONS = YAML_EXTENSIONS | JSON_EXTENSIONS

    def __init__(self, config_dir: str | Path = ".") -> None:
        """
        Initialize the loader.

        Args:
            config_dir: Directory relative file names are resolved against.
        """
        self.config_dir = Path(config_dir)
        logger.debug(f"ConfigLoader initialized - config_dir={self.config_dir}")

    def initialize(
        self,
        filename: str | Path,
        output_filename: str | Path = "",
        prm: Optional[ParameterHandler] = None,
        registry: Optional[Registry] = None,
        output_style: OutputStyle = OutputStyle.SHORT_TEXT,
    ) -> ParameterHandler:
        """
        Declare, load, and parse all parameters of the registered acceptors.

        Args:
            filename: Input parameter file (.yaml, .yml or .json).
            output_filename: If given, all parameters are written here after
                the parse pass, in the format named by its extension.
            prm: Store to use. A fresh ``ParameterHandler`` by default.
            registry: Registry to traverse. Defaults to the process-wide one.
            output_style: Style of the output file. A missing input file is
                always recreated with descriptions (``OutputStyle.TEXT``).

        Returns:
            The populated parameter store.

        Raises:
            ConfigurationError: If the extension is not supported, the file
                is malformed or fails validation, or the file did not exist
                (a default file is written in its place first).
        """
        prm = prm if prm is not None else ParameterHandler()
        registry = registry if registry is not None else get_default_registry()

        declare_all_parameters(prm, registry)

        input_path = self.resolve_path(filename)
        self._check_extension(input_path, "parameter file")

        if not input_path.exists():
            self.write(prm, input_path)
            logger.warning(f"Parameter file {input_path} not found, wrote defaults in its place")
            raise ConfigurationError(
                f"You specified {input_path} as input parameter file, "
                f"but it does not exist. We created one for you."
            )

        self.load(prm, input_path)
        parse_all_parameters(prm, registry)

        if output_filename:
            output_path = self.resolve_path(output_filename)
            self._check_extension(output_path, "output file")
            self.write(prm, output_path, output_style)

        return prm

    def load(self, prm: ParameterHandler, filename: str | Path) -> None:
        """
        Validate a parameter file against the declared tree and load it.

        Raises:
            ConfigurationError: If the file cannot be read, does not match
                the declarations, or holds invalid values.
        """
        file_path = self.resolve_path(filename)
        logger.info(f"Loading parameters: {file_path}")
        data = self.read(file_path)

        try:
            validate(data, prm.to_json_schema(), file_path.name)
            prm.parse_dict(data)
        except (SchemaValidationError, ParameterError) as e:
            raise ConfigurationError(
                f"Parameter file {file_path} does not match the declared parameters: {e}"
            ) from e

        logger.info(f"Parameters loaded successfully: {file_path}")

    def read(self, filename: str | Path) -> Dict[str, Any]:
        """Read and parse a YAML or JSON parameter file."""
        file_path = self.resolve_path(filename)
        suffix = self._check_extension(file_path, "parameter file")

        try:
            content = file_path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigurationError(f"Failed to read file {file_path}: {e}") from e

        try:
            if suffix in self.YAML_EXTENSIONS:
                data = yaml.safe_load(content)
                # An empty YAML file sets nothing and keeps every default.
                if data is None:
                    data = {}
            else:
                data = json.loads(content)
        except (yaml.YAMLError, json.JSONDecodeError) as e:
            raise ConfigurationError(f"Failed to parse {file_path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigurationError(
                f"Parameter file must contain a mapping (dict), "
                f"got {type(data).__name__}: {file_path}"
            )

        return data

    def write(
        self,
        prm: ParameterHandler,
        filename: str | Path,
        style: OutputStyle = OutputStyle.TEXT,
    ) -> Path:
        """
        Write every parameter of ``prm`` with its current value.

        YAML output starts with a comment naming the generating version. In
        ``OutputStyle.TEXT`` each entry is preceded by its description as a
        comment. JSON has no comments and always holds values only.

        Args:
            prm: Store to write.
            filename: Output file (.yaml, .yml or .json).
            style: Whether to include entry descriptions.
        """
        file_path = self.resolve_path(filename)
        suffix = self._check_extension(file_path, "output file")
        data = prm.to_dict()

        if suffix in self.YAML_EXTENSIONS:
            if style is OutputStyle.TEXT:
                body = "\n".join(_commented_yaml(data, prm.descriptions())) + "\n"
            else:
                body = yaml.safe_dump(data, sort_keys=False, default_flow_style=False)
            content = f"# Parameter file generated with acceptor {__version__}\n" + body
        else:
            content = json.dumps(data, indent=2) + "\n"

        try:
            file_path.parent.mkdir(parents=True, exist_ok=True)
            file_path.write_text(content, encoding="utf-8")
        except OSError as e:
            raise ConfigurationError(f"Failed to write file {file_path}: {e}") from e

        logger.info(f"Parameters written ({style.value}): {file_path}")
        return file_path

    def resolve_path(self, filename: str | Path) -> Path:
        """Absolute paths are used as given; relative ones live under config_dir."""
        path = Path(filename)
        if path.is_absolute():
            return path
        return self.config_dir / path

    def _check_extension(self, file_path: Path, what: str) -> str:
        suffix = file_path.suffix.lower()
        if suffix not in self.SUPPORTED_EXTENSIONS:
            raise ConfigurationError(
                f"Invalid extension '{suffix}' of {what} {file_path}. "
                f"Supported: {sorted(self.SUPPORTED_EXTENSIONS)}"
            )
        return suffix


def initialize(
    filename: str | Path,
    output_filename: str | Path = "",
    prm: Optional[ParameterHandler] = None,
    registry: Optional[Registry] = None,
    output_style: OutputStyle = OutputStyle.SHORT_TEXT,
) -> ParameterHandler:
    """Run ``ConfigLoader.initialize`` with paths relative to the working directory."""
    return ConfigLoader().initialize(
        filename, output_filename, prm=prm, registry=registry, output_style=output_style
    )


def clear(prm: ParameterHandler, registry: Optional[Registry] = None) -> None:
    """Reset the registry and drop every declaration in ``prm``."""
    registry = registry if registry is not None else get_default_registry()
    registry.reset()
    prm.clear()


def _commented_yaml(values: Dict[str, Any], descriptions: Dict[str, Any], indent: int = 0) -> List[str]:
    # Entries are dumped one at a time so their descriptions can sit above them.
    pad = "  " * indent
    lines: List[str] = []
    for key, value in values.items():
        doc = descriptions.get(key, "")
        if isinstance(doc, dict):
            if value:
                header = yaml.safe_dump({key: None}, default_flow_style=False).rstrip("\n")
                lines.append(pad + header[: -len(" null")])
                lines.extend(_commented_yaml(value, doc, indent + 1))
            else:
                lines.append(pad + yaml.safe_dump({key: {}}).rstrip("\n"))
            continue
        for line in doc.splitlines():
            lines.append(f"{pad}# {line}".rstrip())
        dumped = yaml.safe_dump({key: value}, sort_keys=False, default_flow_style=False)
        lines.extend(pad + line for line in dumped.rstrip("\n").splitlines())
    return lines
