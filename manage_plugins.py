#!/usr/bin/env python3
"""Plugin type inspection CLI tool."""

import argparse
import json
import sys
from pathlib import Path

from rich.console import Console
from rich.table import Table

# Ensure project root is in path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

from configapi.binding import derive
from configapi.builtin import register_builtin
from configapi.errors import SchemaDerivationError
from configapi.plugins.registry import CATEGORIES, PluginTypeRegistry, split_name

console = Console()


def get_registry() -> PluginTypeRegistry:
    """Create a registry with the built-in plugin types."""
    registry = PluginTypeRegistry()
    register_builtin(registry)
    return registry


def cmd_list(args):
    """List all registered plugin types."""
    registry = get_registry()

    table = Table(title="Plugin types")
    table.add_column("Name", style="cyan")
    table.add_column("Class")
    table.add_column("Fields", justify="right")

    for category in CATEGORIES:
        if args.category and category != args.category:
            continue
        for name in registry.names(category):
            factory = registry.get(category, name)
            try:
                fields = str(len(derive(factory())))
            except SchemaDerivationError:
                fields = "[red]error[/red]"
            table.add_row(f"{category}.{name}", factory.__name__, fields)

    console.print(table)


def cmd_schema(args):
    """Print the configuration schema of one plugin type as JSON."""
    registry = get_registry()
    if not registry.has(args.name):
        console.print(f"[red]Plugin type '{args.name}' not found.[/red]")
        sys.exit(1)

    factory = registry.get(*split_name(args.name))
    schema = {k: v.to_dict() for k, v in derive(factory()).items()}
    print(json.dumps(schema, indent=2, sort_keys=True))


def cmd_doctor(args):
    """Check that every registered plugin type has a describable schema."""
    registry = get_registry()
    issues = []

    for category in CATEGORIES:
        for name in registry.names(category):
            try:
                derive(registry.get(category, name)())
            except SchemaDerivationError as e:
                issues.append(f"{category}.{name}: {e}")

    if issues:
        console.print(f"[red]Found {len(issues)} issue(s):[/red]")
        for i, issue in enumerate(issues, 1):
            console.print(f"  {i}. {issue}")
        sys.exit(1)
    else:
        console.print(f"[green]All checks passed.[/green] {registry.count()} plugin type(s) registered.")


def main():
    parser = argparse.ArgumentParser(description="Telemetry agent plugin type inspector")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # list
    list_parser = subparsers.add_parser("list", help="List plugin types")
    list_parser.add_argument("--category", choices=CATEGORIES, help="Only list one category")

    # schema
    schema_parser = subparsers.add_parser("schema", help="Show a plugin type's configuration schema")
    schema_parser.add_argument("name", help="Qualified plugin type name, e.g. inputs.cpu")

    # doctor
    subparsers.add_parser("doctor", help="Run schema checks on every plugin type")

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    commands = {
        "list": cmd_list,
        "schema": cmd_schema,
        "doctor": cmd_doctor,
    }

    commands[args.command](args)


if __name__ == "__main__":
    main()
