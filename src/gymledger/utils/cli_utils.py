"""
Utility functions and decorators for CLI argument handling.
"""

import argparse
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date
from enum import Enum, auto
from typing import Any

from gymledger.config.types import AppConfig


@dataclass
class CLIContext:
    """Context object for CLI command execution."""
    args: argparse.Namespace
    logger: logging.Logger
    config: AppConfig
    parser: argparse.ArgumentParser
    app: Any = None

class CommandCategory(Enum):
    """Categories for organizing commands."""
    MEMBERS = auto()
    PAYMENTS = auto()
    REPORTS = auto()
    SETTINGS = auto()

@dataclass
class CommandMetadata:
    """Metadata for command registration."""
    name: str
    help_text: str
    category: CommandCategory
    handler: Callable[[CLIContext], int]
    options: list[dict[str, Any]]
    parent_command: str | None = None

    @property
    def key(self) -> str:
        """Registry key; subcommands are qualified by their parent."""
        return f"{self.parent_command} {self.name}" if self.parent_command else self.name

def _is_date(value: str) -> bool:
    try:
        date.fromisoformat(value)
        return True
    except ValueError:
        return False

class CLIOptionFactory:
    """Factory for creating common CLI options with consistent validation."""

    @staticmethod
    def create_date_option(name: str = '--date', help_text: str = 'Date in YYYY-MM-DD format (default: today)') -> dict[str, Any]:
        return {
            'name': name,
            'help': help_text,
            'validator': _is_date
        }

    @staticmethod
    def create_year_option(required: bool = False) -> dict[str, Any]:
        return {
            'name': '--year',
            'type': int,
            'required': required,
            'help': 'Calendar year (default: current year)',
            'validator': lambda x: 1900 <= x <= 9999
        }

    @staticmethod
    def create_month_option() -> dict[str, Any]:
        return {
            'name': '--month',
            'type': int,
            'help': 'Calendar month 1-12 (default: current month)',
            'validator': lambda x: 1 <= x <= 12
        }

    @staticmethod
    def create_duration_option(required: bool = False) -> dict[str, Any]:
        return {
            'name': '--duration',
            'choices': ['monthly', 'twoMonths', 'threeMonths', 'sixMonths', 'yearly'],
            'required': required,
            'help': 'Membership term'
        }

    @staticmethod
    def create_method_option() -> dict[str, Any]:
        return {
            'name': '--method',
            'choices': ['cash', 'card', 'bank'],
            'default': 'cash',
            'help': 'Payment method (default: cash)'
        }

    @staticmethod
    def create_member_id_argument() -> dict[str, Any]:
        return {
            'name': 'member_id',
            'help': 'Member id'
        }

class CommandRegistry:
    """Registry for CLI commands with metadata."""

    _commands: dict[str, CommandMetadata] = {}
    _categories: dict[CommandCategory, list[str]] = {}

    @classmethod
    def clear(cls) -> None:
        """Clear all registered commands."""
        cls._commands.clear()
        cls._categories.clear()

    @classmethod
    def register(cls,
                name: str,
                help_text: str,
                category: CommandCategory,
                options: list[dict[str, Any]] | None = None,
                parent_command: str | None = None) -> Callable[[Callable[[CLIContext], int]], Callable[[CLIContext], int]]:
        """Register a command handler."""
        def decorator(handler: Callable[[CLIContext], int]) -> Callable[[CLIContext], int]:
            metadata = CommandMetadata(
                name=name,
                help_text=help_text,
                category=category,
                handler=handler,
                options=options or [],
                parent_command=parent_command
            )
            cls._commands[metadata.key] = metadata
            cls._categories.setdefault(category, [])
            if metadata.key not in cls._categories[category]:
                cls._categories[category].append(metadata.key)
            return handler
        return decorator

    @classmethod
    def get_command(cls, key: str) -> CommandMetadata | None:
        """Get command metadata by (qualified) name."""
        return cls._commands.get(key)

    @classmethod
    def get_category_commands(cls, category: CommandCategory) -> list[str]:
        """Get all commands in a category."""
        return cls._categories.get(category, [])

    @classmethod
    def commands(cls) -> list[CommandMetadata]:
        return list(cls._commands.values())

class ArgumentValidator:
    """Validator for CLI arguments."""

    @staticmethod
    def validate_option(option: dict[str, Any], value: Any) -> bool:
        """Validate a single option value."""
        if 'validator' not in option:
            return True

        try:
            result = option['validator'](value)
            return bool(result)
        except Exception:
            return False

    @staticmethod
    def validate_args(args: argparse.Namespace, command: CommandMetadata) -> list[str]:
        """Validate all arguments for a command."""
        errors = []

        for option in command.options:
            value = getattr(args, option['name'].lstrip('-').replace('-', '_'), None)
            if value is not None and not ArgumentValidator.validate_option(option, value):
                errors.append(f"Invalid value for {option['name']}: {value}")

        return errors

def add_common_options(parser: argparse.ArgumentParser) -> None:
    """Add common global options to a parser."""
    parser.add_argument(
        '--config-dir',
        help='Directory holding config.yaml (default: $GYMLEDGER_CONFIG_DIR or ~/.config/gymledger)'
    )
    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Enable verbose logging output'
    )
    parser.add_argument(
        '--log-file',
        help='Path to write log output (default: logs to stderr)'
    )
    parser.add_argument(
        '--format',
        choices=['text', 'json'],
        default='text',
        help='Output format: human-readable text or machine-readable JSON (default: text)'
    )

class CLIBuilder:
    """Builder for constructing CLI parsers with consistent formatting."""

    # Custom option fields that should not be passed to argparse
    _CUSTOM_FIELDS = {'validator'}

    def __init__(self, description: str):
        """Initialize CLI builder."""
        self.parser = argparse.ArgumentParser(prog='gymledger', description=description)
        self.subparsers = self.parser.add_subparsers(dest='command', required=True)
        self._parent_parsers: dict[str, argparse._SubParsersAction[Any]] = {}

        add_common_options(self.parser)

    def _parent_subparsers(self, parent: str) -> "argparse._SubParsersAction[Any]":
        if parent not in self._parent_parsers:
            parent_parser = self.subparsers.add_parser(parent, help=f"{parent.capitalize()} commands")
            self._parent_parsers[parent] = parent_parser.add_subparsers(
                dest=f"{parent}_subcommand",
                required=True
            )
        return self._parent_parsers[parent]

    def add_command(self, command: CommandMetadata) -> None:
        """Add a command to the parser."""
        if command.parent_command:
            parser = self._parent_subparsers(command.parent_command).add_parser(
                command.name,
                help=command.help_text
            )
        else:
            parser = self.subparsers.add_parser(
                command.name,
                help=command.help_text
            )

        for option in command.options:
            option_copy = option.copy()
            name = option_copy.pop('name')
            option_dict = {k: v for k, v in option_copy.items() if k not in self._CUSTOM_FIELDS}
            parser.add_argument(name, **option_dict)

        parser.set_defaults(command_key=command.key)

    def build(self) -> argparse.ArgumentParser:
        """Build and return the parser."""
        return self.parser
