"""
Core data models for kupak.

These models describe paks (versioned bundles of property schema plus
resource templates), repository indexes, installation groups, and the
shape of installed instances reported back from the cluster.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from jinja2 import Template

    from kupak.objects import RenderedObject

GROUP_LABEL = "pak-group"
SOURCE_URL_LABEL = "pak-source-url"


class PropertyType(str, Enum):
    """Closed set of property types."""

    INT = "int"
    BOOL = "bool"
    STRING = "string"


@dataclass(frozen=True)
class Property:
    """One named, typed input slot of a pak."""

    name: str
    type: PropertyType
    default: Any = None  # None means no default
    description: str = ""


@dataclass(frozen=True)
class ResourceTemplate:
    """A compiled resource template and the address it was fetched from."""

    address: str
    template: Template = field(compare=False, repr=False)


@dataclass(frozen=True)
class Pak:
    """A fully loaded pak, ready for rendering."""

    name: str
    version: str = ""
    description: str = ""
    source_url: str = ""
    tags: tuple[str, ...] = ()
    properties: tuple[Property, ...] = ()
    resource_addresses: tuple[str, ...] = ()
    templates: tuple[ResourceTemplate, ...] = field(default=(), compare=False, repr=False)

    @property
    def id(self) -> str:
        """Stable identifier derived from the source URL."""
        return hashlib.md5(self.source_url.encode("utf-8")).hexdigest()

    def get_property(self, name: str) -> Property | None:
        return next((p for p in self.properties if p.name == name), None)


@dataclass
class RepoPak:
    """One entry in a repository index."""

    name: str
    url: str
    version: str = ""
    description: str = ""
    tags: list[str] = field(default_factory=list)


@dataclass
class Repo:
    """A repository index listing available paks."""

    name: str = ""
    url: str = ""
    paks: list[RepoPak] = field(default_factory=list)

    def find(self, name: str) -> RepoPak | None:
        """Find a pak entry by name."""
        return next((p for p in self.paks if p.name == name), None)


@dataclass(frozen=True)
class InstallationGroup:
    """Identity shared by every object of one install invocation."""

    group_id: str
    source_url: str

    @property
    def tracking_labels(self) -> dict[str, str]:
        return {GROUP_LABEL: self.group_id, SOURCE_URL_LABEL: self.source_url}


@dataclass
class Installation:
    """Result of an install: the labeled manifests handed to the runner."""

    group: InstallationGroup
    namespace: str
    manifests: list[bytes] = field(default_factory=list)
    applied: bool = False


class InstallStatus(str, Enum):
    """Aggregate state of an installed pak instance."""

    ERROR = "error"
    RUNNING = "running"
    DELETING = "deleting"


@dataclass
class InstalledPak:
    """An installation group as observed in the cluster."""

    group: str
    namespace: str
    pak_url: str = ""
    objects: list[RenderedObject] = field(default_factory=list)
    status: InstallStatus = InstallStatus.RUNNING
