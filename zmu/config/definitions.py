"""
Definitions Loader Module.

Declares configurations and their options from a YAML or JSON document
instead of code::

    schema_version: "1.0.0"
    configs:
      ZMU:
        log_level: 4
        file: zmu.ini
        options:
          BoolTest: {type: boolean, default: true}
          IntTest: {type: integer, min: 0, max: 100, default: 50}

Documents are validated against the packaged ``definitions_schema`` before
anything is registered. Unlike the runtime Config layer, problems here are
raised: a broken bootstrap file should stop the caller.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

import jsonschema
import yaml
from loguru import logger

from zmu.config.configuration import Configuration
from zmu.config.errors import DefinitionsError
from zmu.config.registry import ConfigRegistry

DEFINITIONS_SCHEMA_PATH = Path(__file__).parent / "schemas" / "definitions_schema.json"


@dataclass
class ConfigDefinition:
    """
    A Configuration created from a definitions document.

    Attributes:
        config: The registered Configuration.
        settings_file: Settings file declared for it, resolved against the
            definitions file's directory (None if not declared).
    """

    config: Configuration
    settings_file: Optional[Path] = None


def describe_location(path: Iterable[Any]) -> str:
    """
    Name the config and option a schema violation was found in.

    ``("configs", "ZMU", "options", "IntTest", "min")`` becomes
    ``"config ZMU, option IntTest (min)"``.
    """
    parts = [str(p) for p in path]
    if len(parts) < 2 or parts[0] != "configs":
        return ".".join(parts) or "document"

    where = f"config {parts[1]}"
    rest = parts[2:]
    if len(rest) >= 2 and rest[0] == "options":
        where += f", option {rest[1]}"
        rest = rest[2:]
    if rest:
        where += f" ({'.'.join(rest)})"
    return where


class DefinitionsLoader:
    """
    Loads definitions documents and registers the configurations they
    declare.

    Attributes:
        schema_path: JSON schema every document is validated against.
    """

    SUPPORTED_EXTENSIONS = {".yaml", ".yml", ".json"}

    def __init__(self, schema_path: Optional[str | Path] = None) -> None:
        """
        Args:
            schema_path: Definitions schema file. Defaults to the schema
                shipped with the package.
        """
        self.schema_path = Path(schema_path) if schema_path else DEFINITIONS_SCHEMA_PATH
        self._schema: Optional[Dict[str, Any]] = None
        self._cache: Dict[str, Dict[str, Any]] = {}

    @property
    def schema(self) -> Dict[str, Any]:
        """
        The definitions schema, read on first use.

        Raises:
            DefinitionsError: If the schema file is missing or not valid JSON.
        """
        if self._schema is None:
            try:
                self._schema = json.loads(self.schema_path.read_text(encoding="utf-8"))
            except (OSError, json.JSONDecodeError) as e:
                raise DefinitionsError(f"Failed to load definitions schema {self.schema_path}: {e}") from e
            logger.debug(f"Definitions schema loaded: {self.schema_path}")
        return self._schema

    def validate(self, data: Dict[str, Any], source: str = "document") -> None:
        """
        Check a parsed document against the definitions schema.

        Raises:
            DefinitionsError: Listing every violation with the config and
                option it belongs to.
        """
        validator = jsonschema.Draft7Validator(self.schema)
        violations = sorted(
            validator.iter_errors(data), key=lambda e: [str(p) for p in e.absolute_path]
        )
        if not violations:
            return

        errors = [f"{describe_location(v.absolute_path)}: {v.message}" for v in violations]
        raise DefinitionsError(
            f"Definitions validation failed for {source} ({len(errors)} error(s)):\n"
            + "\n".join(f"  {line}" for line in errors),
            errors=errors,
        )

    def load(
        self,
        path: str | Path,
        *,
        validate: bool = True,
        use_cache: bool = True,
    ) -> Dict[str, Any]:
        """
        Read and validate a definitions document.

        Args:
            path: YAML or JSON file.
            validate: Whether to validate against the definitions schema.
            use_cache: Whether to reuse a previously loaded document.

        Returns:
            Parsed document.

        Raises:
            FileNotFoundError: If the file does not exist.
            DefinitionsError: If the file cannot be read, parsed or validated.
        """
        file_path = Path(path)
        if not file_path.exists():
            raise FileNotFoundError(f"Definitions file not found: {file_path}")

        cache_key = str(file_path.resolve())
        if use_cache and cache_key in self._cache:
            logger.debug(f"Returning cached definitions for: {file_path}")
            return self._cache[cache_key]

        logger.info(f"Loading definitions: {file_path}")
        data = self._read_file(file_path)

        if validate:
            self.validate(data, str(file_path))

        if use_cache:
            self._cache[cache_key] = data
        return data

    def apply(
        self,
        registry: ConfigRegistry,
        data: Dict[str, Any],
        base_dir: Optional[str | Path] = None,
    ) -> List[ConfigDefinition]:
        """
        Register every configuration declared in ``data``.

        Each configuration gets the logger of the same name, with its level
        set from ``log_level`` when given. Options that the Configuration
        rejects are logged by it and skipped.

        Args:
            registry: Registry to create configurations in.
            data: Parsed definitions document.
            base_dir: Directory relative settings file paths are resolved
                against (default: current directory).

        Returns:
            One ConfigDefinition per declared configuration, in document order.
        """
        base = Path(base_dir) if base_dir is not None else Path(".")
        created = []

        for name, entry in (data.get("configs") or {}).items():
            entry = entry or {}
            log = registry.loggers.get_or_create(name, level=entry.get("log_level"))
            config = registry.create(name, log)

            for key, declaration in (entry.get("options") or {}).items():
                config.add(key, declaration)

            settings_file = entry.get("file")
            created.append(
                ConfigDefinition(
                    config=config,
                    settings_file=base / settings_file if settings_file else None,
                )
            )
            logger.info(
                f"Config '{config.name}' defined with {len(config.options_table())} option(s)"
            )

        return created

    def load_into(
        self,
        registry: ConfigRegistry,
        path: str | Path,
        *,
        load_settings: bool = True,
    ) -> List[ConfigDefinition]:
        """
        Load a definitions file, register its configurations and, if asked,
        load each one's settings file.
        """
        file_path = Path(path)
        definitions = self.apply(registry, self.load(file_path), base_dir=file_path.parent)
        if load_settings:
            for definition in definitions:
                if definition.settings_file is not None:
                    definition.config.load(definition.settings_file)
        return definitions

    def clear_cache(self) -> None:
        """Forget every cached document."""
        self._cache.clear()
        logger.debug("Definitions cache cleared.")

    def _read_file(self, file_path: Path) -> Dict[str, Any]:
        """Read and parse a YAML or JSON file."""
        suffix = file_path.suffix.lower()
        if suffix not in self.SUPPORTED_EXTENSIONS:
            raise DefinitionsError(
                f"Unsupported file format '{suffix}'. "
                f"Supported: {sorted(self.SUPPORTED_EXTENSIONS)}"
            )

        try:
            content = file_path.read_text(encoding="utf-8")
        except OSError as e:
            raise DefinitionsError(f"Failed to read file {file_path}: {e}") from e

        try:
            if suffix in {".yaml", ".yml"}:
                data = yaml.safe_load(content)
            else:
                data = json.loads(content)
        except (yaml.YAMLError, json.JSONDecodeError) as e:
            raise DefinitionsError(f"Failed to parse {file_path}: {e}") from e

        if not isinstance(data, dict):
            raise DefinitionsError(
                f"Definitions file must contain a mapping, "
                f"got {type(data).__name__}: {file_path}"
            )
        return data
