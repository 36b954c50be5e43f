#!/usr/bin/env python
"""
Inspect Config Script.

Loads configuration definitions, applies each configuration's settings file,
optionally overrides values and saves them back, then prints the effective
settings.

Usage:
    python scripts/inspect_config.py definitions.yaml
    python scripts/inspect_config.py definitions.yaml --config ZMU --set IntTest=101 --save
    python scripts/inspect_config.py definitions.yaml --settings-file other.ini
"""

from __future__ import annotations

import argparse
import sys
from typing import List, Optional, Tuple

from loguru import logger

from zmu.config import ConfigRegistry, DefinitionsError, DefinitionsLoader
from zmu.config.definitions import ConfigDefinition
from zmu.config.persistence import format_value, parse_value


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(description="ZMU Config Inspector")
    parser.add_argument(
        "definitions",
        type=str,
        help="YAML/JSON definitions file declaring configurations and options",
    )
    parser.add_argument(
        "--config",
        type=str,
        default="",
        help="Only inspect this configuration (default: all)",
    )
    parser.add_argument(
        "--settings-file",
        type=str,
        default="",
        help="Settings file to use instead of the one declared in the definitions",
    )
    parser.add_argument(
        "--set",
        dest="assignments",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Override a setting (repeatable)",
    )
    parser.add_argument(
        "--save",
        action="store_true",
        help="Write the settings back to the settings file",
    )
    parser.add_argument(
        "--all",
        dest="show_all",
        action="store_true",
        help="Also list settings that are at their default value",
    )
    return parser.parse_args(argv)


def parse_assignment(text: str) -> Tuple[str, str]:
    """
    Split ``KEY=VALUE``.

    Raises:
        ValueError: If there is no ``=`` or the key is empty.
    """
    key, sep, value = text.partition("=")
    key, value = key.strip(), value.strip()
    if not sep or not key:
        raise ValueError(f"Expected KEY=VALUE, got '{text}'")
    return key, value


def apply_assignments(definition: ConfigDefinition, assignments: List[Tuple[str, str]]) -> int:
    """
    Apply ``--set`` overrides declared by this configuration.

    Returns:
        Number of settings that changed.
    """
    config = definition.config
    changed = 0
    for key, raw in assignments:
        option = config.option(key)
        if option is None:
            logger.debug(f"[Inspect] {config.name} has no option '{key}', skipping")
            continue
        if config.set(key, parse_value(option.type, raw)):
            changed += 1
    return changed


def render(definition: ConfigDefinition, show_all: bool = False) -> List[str]:
    """Format the settings of one configuration for display."""
    config = definition.config
    lines = [f"[{config.name}]"]
    for key, value in config.settings_table().items():
        is_default = value == config.default(key)
        if is_default and not show_all:
            continue
        marker = "" if is_default else " *"
        lines.append(f"{key} = {format_value(value)}{marker}")
    return lines


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the config inspector."""
    args = parse_args(argv)

    try:
        assignments = [parse_assignment(text) for text in args.assignments]
    except ValueError as e:
        logger.error(f"[Inspect] {e}")
        return 2

    registry = ConfigRegistry()
    loader = DefinitionsLoader()
    try:
        definitions = loader.load_into(registry, args.definitions, load_settings=False)
    except (FileNotFoundError, DefinitionsError) as e:
        logger.error(f"[Inspect] {e}")
        return 1

    if args.config:
        definitions = [d for d in definitions if d.config.name == args.config]
        if not definitions:
            logger.error(f"[Inspect] No configuration named '{args.config}'")
            return 1

    exit_code = 0
    for definition in definitions:
        settings_file = args.settings_file or definition.settings_file
        if settings_file:
            definition.config.load(settings_file)

        changed = apply_assignments(definition, assignments)
        logger.info(f"[Inspect] {definition.config.name}: {changed} setting(s) changed")

        if args.save:
            if not settings_file:
                logger.error(f"[Inspect] {definition.config.name} has no settings file to save to")
                exit_code = 1
            elif not definition.config.save(settings_file):
                exit_code = 1

        print("\n".join(render(definition, args.show_all)))

    return exit_code


if __name__ == "__main__":
    sys.exit(main())
