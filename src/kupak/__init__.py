"""
kupak - a package manager for templated Kubernetes manifests.

A pak is a versioned bundle of typed properties and resource templates,
addressed by a local path, an HTTP(S) URL, or a ``github.com/...``
shorthand. Installing a pak renders its templates with the given values
and labels every object with a fresh installation group.

Example:
    from kupak import KubectlRunner, Manager, load_pak

    pak = load_pak("github.com/acme/paks/redis/pak.yaml")
    manager = Manager(KubectlRunner())
    installation = manager.install(pak, "default", {"replicas": "3"})
    print(installation.group.group_id)
"""

from kupak.config import KupakConfig, load_config
from kupak.errors import (
    FetchError,
    InvalidAddressError,
    KupakError,
    LabelMergeError,
    PakNotFoundError,
    ParseError,
    ConfigError,
    PropertyValueError,
    RenderError,
    RunnerError,
    SchemaError,
    TemplateCompileError,
)
from kupak.kubectl import KubectlRunner, Runner
from kupak.loader import load_pak, load_repo, resolve_reference
from kupak.manager import Manager, label_manifests, new_group_id
from kupak.models import (
    GROUP_LABEL,
    SOURCE_URL_LABEL,
    Installation,
    InstallationGroup,
    InstalledPak,
    InstallStatus,
    Pak,
    Property,
    PropertyType,
    Repo,
    RepoPak,
    ResourceTemplate,
)
from kupak.objects import RenderedObject, merge_labels
from kupak.source import Fetcher, fetch_address, githubize, is_relative, join_address
from kupak.templates import compile_template, render_pak, render_templates
from kupak.values import prepare_values

__version__ = "0.1.0"

__all__ = [
    # Config
    "KupakConfig",
    "load_config",
    # Errors
    "KupakError",
    "ConfigError",
    "InvalidAddressError",
    "FetchError",
    "ParseError",
    "SchemaError",
    "TemplateCompileError",
    "PropertyValueError",
    "RenderError",
    "LabelMergeError",
    "PakNotFoundError",
    "RunnerError",
    # Models
    "Pak",
    "Property",
    "PropertyType",
    "ResourceTemplate",
    "Repo",
    "RepoPak",
    "InstallationGroup",
    "Installation",
    "InstalledPak",
    "InstallStatus",
    "GROUP_LABEL",
    "SOURCE_URL_LABEL",
    # Pipeline
    "Fetcher",
    "fetch_address",
    "githubize",
    "is_relative",
    "join_address",
    "load_pak",
    "load_repo",
    "resolve_reference",
    "prepare_values",
    "compile_template",
    "render_templates",
    "render_pak",
    "RenderedObject",
    "merge_labels",
    "label_manifests",
    "new_group_id",
    # Cluster
    "Runner",
    "KubectlRunner",
    "Manager",
]
