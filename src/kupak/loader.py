"""
Loading paks and repository indexes.

A pak descriptor looks like::

    name: redis
    version: 0.1.0
    description: Single-node redis
    tags: [database, cache]
    properties:
      - name: replicas
        type: int
        default: 1
        description: Number of redis pods
    resources:
      - templates/rc.yaml
      - templates/svc.yaml

Resource addresses are resolved against the directory of the descriptor.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Any

import yaml

from kupak.errors import ParseError, PakNotFoundError, SchemaError
from kupak.logging import get_logger
from kupak.models import Pak, Property, PropertyType, Repo, RepoPak
from kupak.source import Fetcher, join_address
from kupak.templates import compile_template

logger = get_logger("loader")


def _load_mapping(data: bytes, address: str) -> dict[str, Any]:
    try:
        document = yaml.safe_load(data)
    except yaml.YAMLError as exc:
        raise ParseError(f"failed to parse {address}: {exc}") from exc
    if document is None:
        return {}
    if not isinstance(document, dict):
        raise ParseError(f"failed to parse {address}: document is not a mapping")
    return document


def _string_list(value: Any, field_name: str, address: str) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,)
    if not isinstance(value, list):
        raise ParseError(f"{address}: {field_name!r} must be a list")
    return tuple(str(v) for v in value)


def _parse_property(raw: Any, address: str) -> Property:
    if not isinstance(raw, dict) or "name" not in raw:
        raise ParseError(f"{address}: every property needs a name")
    name = str(raw["name"])
    type_name = str(raw.get("type", ""))
    try:
        prop_type = PropertyType(type_name)
    except ValueError:
        raise SchemaError(
            f"{address}: property {name!r} has invalid type {type_name!r}"
        ) from None
    return Property(
        name=name,
        type=prop_type,
        default=raw.get("default"),
        description=str(raw.get("description") or ""),
    )


def validate_properties(properties: list[Property] | tuple[Property, ...]) -> None:
    """
    Check that property names are unique.

    Raises:
        SchemaError: Two properties share a name
    """
    seen: set[str] = set()
    for prop in properties:
        if prop.name in seen:
            raise SchemaError(f"duplicated property {prop.name!r}")
        seen.add(prop.name)


def parse_pak(data: bytes, source_url: str) -> Pak:
    """
    Parse and schema-check a pak descriptor without fetching resources.

    The returned pak has no templates yet.
    """
    document = _load_mapping(data, source_url)
    raw_properties = document.get("properties") or []
    if not isinstance(raw_properties, list):
        raise ParseError(f"{source_url}: 'properties' must be a list")

    properties = tuple(_parse_property(p, source_url) for p in raw_properties)
    validate_properties(properties)

    return Pak(
        name=str(document.get("name") or ""),
        version=str(document.get("version") or ""),
        description=str(document.get("description") or ""),
        source_url=source_url,
        tags=_string_list(document.get("tags"), "tags", source_url),
        properties=properties,
        resource_addresses=_string_list(document.get("resources"), "resources", source_url),
    )


def load_pak(address: str, fetcher: Fetcher | None = None) -> Pak:
    """
    Fetch a pak descriptor and compile all of its resource templates.

    Any failure aborts the load; a partially loaded pak is never returned.

    Args:
        address: Local path, HTTP(S) URL or ``github.com/...`` shorthand
        fetcher: Fetcher to use (a temporary one is created otherwise)

    Raises:
        FetchError, InvalidAddressError, ParseError, SchemaError,
        TemplateCompileError
    """
    if fetcher is None:
        with Fetcher() as own_fetcher:
            return load_pak(address, own_fetcher)

    pak = parse_pak(fetcher.fetch(address), address)

    templates = []
    for resource in pak.resource_addresses:
        resource_url = join_address(address, resource)
        templates.append(compile_template(resource_url, fetcher.fetch(resource_url)))

    logger.info("Loaded pak %s %s from %s", pak.name, pak.version, address)
    return replace(pak, templates=tuple(templates))


def parse_repo(data: bytes, address: str) -> Repo:
    """Parse a repository index; pak urls are resolved against *address*."""
    document = _load_mapping(data, address)
    raw_paks = document.get("paks") or []
    if not isinstance(raw_paks, list):
        raise ParseError(f"{address}: 'paks' must be a list")

    paks: list[RepoPak] = []
    for raw in raw_paks:
        if not isinstance(raw, dict) or not raw.get("name") or not raw.get("url"):
            raise ParseError(f"{address}: every pak entry needs a name and url")
        paks.append(
            RepoPak(
                name=str(raw["name"]),
                url=join_address(address, str(raw["url"])),
                version=str(raw.get("version") or ""),
                description=str(raw.get("description") or ""),
                tags=list(_string_list(raw.get("tags"), "tags", address)),
            )
        )

    return Repo(name=str(document.get("name") or ""), url=address, paks=paks)


def load_repo(address: str, fetcher: Fetcher | None = None) -> Repo:
    """Fetch and parse a repository index."""
    if fetcher is None:
        with Fetcher() as own_fetcher:
            return load_repo(address, own_fetcher)
    return parse_repo(fetcher.fetch(address), address)


def is_pak_name(reference: str) -> bool:
    """Check if *reference* is a bare name rather than an address."""
    return (
        bool(reference)
        and "/" not in reference
        and not reference.startswith(".")
        and not reference.lower().endswith((".yaml", ".yml", ".json"))
    )


def resolve_reference(
    reference: str,
    repo_address: str,
    fetcher: Fetcher | None = None,
) -> str:
    """
    Turn a pak reference into a pak address.

    Bare names are looked up in the repository index at *repo_address*;
    anything else is already an address.

    Raises:
        PakNotFoundError: The name is not in the index
    """
    if not is_pak_name(reference):
        return reference
    repo = load_repo(repo_address, fetcher)
    entry = repo.find(reference)
    if entry is None:
        raise PakNotFoundError(f"pak {reference!r} not found in {repo_address}")
    return entry.url
