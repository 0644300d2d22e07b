"""
Command-line interface for kupak.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Any

import yaml
from rich.console import Console
from rich.table import Table

from kupak.config import KupakConfig, load_config
from kupak.errors import KupakError, ParseError
from kupak.kubectl import KubectlRunner, join_manifests
from kupak.loader import load_pak, load_repo, resolve_reference
from kupak.logging import setup_logging
from kupak.manager import Manager
from kupak.models import Pak
from kupak.source import Fetcher

console = Console()
err_console = Console(stderr=True)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Kubernetes Package Manager",
        prog="kupak",
    )

    # Global options
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose output (debug logging)",
    )
    parser.add_argument(
        "-r",
        "--repo",
        default=None,
        help="Repository index address (env: KUPAK_REPO)",
    )
    parser.add_argument(
        "--namespace",
        default=None,
        help="Target namespace (env: KUPAK_NAMESPACE)",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Config file (default: ~/.kupak/config.yaml)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    paks_parser = subparsers.add_parser(
        "paks", aliases=["p"], help="List all available paks of the repository"
    )
    paks_parser.set_defaults(handler=cmd_paks)

    install_parser = subparsers.add_parser(
        "install",
        aliases=["i"],
        help="Install a pak (full address or a name listed in the repository)",
    )
    install_parser.add_argument("pak", help="Pak name or address")
    install_parser.add_argument(
        "values",
        nargs="?",
        default=None,
        help="YAML file with property values (default: stdin)",
    )
    install_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the labeled manifests instead of applying them",
    )
    install_parser.set_defaults(handler=cmd_install)

    list_parser = subparsers.add_parser("list", aliases=["l"], help="List installed paks")
    list_parser.set_defaults(handler=cmd_list)

    spec_parser = subparsers.add_parser(
        "spec", aliases=["s"], help="Print the specification of a pak"
    )
    spec_parser.add_argument("pak", help="Pak name or address")
    spec_parser.set_defaults(handler=cmd_spec)

    delete_parser = subparsers.add_parser(
        "delete", aliases=["d"], help="Delete an installed pak by its group"
    )
    delete_parser.add_argument("group", help="Installation group id")
    delete_parser.set_defaults(handler=cmd_delete)

    return parser


def main(argv: list[str] | None = None) -> None:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if getattr(args, "verbose", False):
        setup_logging("DEBUG")
    else:
        setup_logging("WARNING")

    handler = getattr(args, "handler", None)
    if handler is None:
        parser.print_help()
        return

    try:
        handler(args, _load_config(args))
    except KupakError as exc:
        err_console.print(f"[red]Error:[/red] {exc}", highlight=False)
        sys.exit(1)


def _load_config(args: argparse.Namespace) -> KupakConfig:
    config = load_config(args.config)
    if args.repo:
        config.repo = args.repo
    if args.namespace:
        config.namespace = args.namespace
    return config


def _create_manager(config: KupakConfig, with_runner: bool = True) -> Manager:
    runner = KubectlRunner(config.kubectl, config.kube_context) if with_runner else None
    return Manager(runner, strict_template_labels=config.strict_template_labels)


def _load_reference(reference: str, config: KupakConfig) -> Pak:
    with Fetcher(timeout=config.fetch_timeout) as fetcher:
        address = resolve_reference(reference, config.repo, fetcher)
        return load_pak(address, fetcher)


def _read_values(path: str | None) -> dict[str, Any]:
    if path is not None:
        source = path
        try:
            raw = Path(path).read_text(encoding="utf-8")
        except OSError as exc:
            raise ParseError(f"cannot read values file {path}: {exc}") from exc
    elif not sys.stdin.isatty():
        source = "<stdin>"
        raw = sys.stdin.read()
    else:
        return {}

    try:
        values = yaml.safe_load(raw)
    except yaml.YAMLError as exc:
        raise ParseError(f"failed to parse values from {source}: {exc}") from exc
    if values is None:
        return {}
    if not isinstance(values, dict):
        raise ParseError(f"values in {source} must be a mapping")
    return values


def cmd_paks(args: argparse.Namespace, config: KupakConfig) -> None:
    """List paks of the repository."""
    with Fetcher(timeout=config.fetch_timeout) as fetcher:
        repo = load_repo(config.repo, fetcher)

    table = Table(title=repo.name or "Available Paks")
    table.add_column("Name", style="cyan")
    table.add_column("Version")
    table.add_column("URL", style="dim")
    table.add_column("Tags")
    table.add_column("Description")

    for pak in repo.paks:
        table.add_row(
            pak.name,
            pak.version,
            pak.url,
            ", ".join(pak.tags),
            pak.description.strip()[:60],
        )

    console.print(table)
    console.print(f"\n[dim]Total: {len(repo.paks)} paks[/dim]")


def cmd_install(args: argparse.Namespace, config: KupakConfig) -> None:
    """Install a pak."""
    pak = _load_reference(args.pak, config)
    values = _read_values(args.values)

    manager = _create_manager(config, with_runner=not args.dry_run)
    installation = manager.install(pak, config.namespace, values, dry_run=args.dry_run)

    if args.dry_run:
        sys.stdout.write(join_manifests(installation.manifests).decode("utf-8"))
        return

    console.print(
        f"[green]Installed[/green] {pak.name} {pak.version} "
        f"into [bold]{installation.namespace}[/bold]"
    )
    console.print(f"Group: {installation.group.group_id}")


def cmd_list(args: argparse.Namespace, config: KupakConfig) -> None:
    """List installed paks."""
    manager = _create_manager(config)
    installed = manager.installed(config.namespace)

    if not installed:
        console.print("[dim]No installed paks[/dim]")
        return

    for instance in installed:
        console.print(f"[bold]Pak URL:[/bold] {instance.pak_url}", highlight=False)
        console.print(f"[bold]Group:[/bold]   {instance.group}")
        console.print(f"[bold]Status:[/bold]  {instance.status.value}")
        console.print("[bold]Objects:[/bold]")
        for obj in instance.objects:
            console.print(f"    ({obj.kind}) {obj.name}", highlight=False)
            if obj.kind == "Pod":
                status = obj.status
                console.print(f"      State:   {status.phase}")
                console.print(f"      Pod IP:  {status.pod_ip}")
                if status.reason:
                    console.print(f"      Reason:  {status.reason}")
                if status.message:
                    console.print(f"      Message: {status.message}")
        console.print()


def cmd_spec(args: argparse.Namespace, config: KupakConfig) -> None:
    """Show the specification of a pak."""
    pak = _load_reference(args.pak, config)

    console.print(f"\n[bold]{pak.name}[/bold] {pak.version}")
    if pak.tags:
        console.print(f"Tags: [{', '.join(pak.tags)}]", markup=False)
    if pak.description:
        console.print(f"[dim]{pak.description.strip()}[/dim]")

    if not pak.properties:
        return

    table = Table(title="Properties")
    table.add_column("Name", style="cyan")
    table.add_column("Type")
    table.add_column("Default")
    table.add_column("Description")
    for prop in pak.properties:
        default = "" if prop.default is None else str(prop.default)
        table.add_row(prop.name, prop.type.value, default, prop.description.strip())
    console.print(table)


def cmd_delete(args: argparse.Namespace, config: KupakConfig) -> None:
    """Delete an installation group."""
    manager = _create_manager(config)
    manager.delete_instance(config.namespace, args.group)
    console.print(f"[green]Deleted[/green] group {args.group}")


if __name__ == "__main__":
    main()
