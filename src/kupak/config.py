"""
Configuration for kupak.

Settings can be loaded from a YAML file, overridden by ``KUPAK_*``
environment variables, or constructed programmatically.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

import yaml

from kupak.errors import ConfigError

DEFAULT_CONFIG_PATH = Path.home() / ".kupak" / "config.yaml"

_TRUE_STRINGS = ("1", "true", "yes", "on")


def _to_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_STRINGS
    return bool(value)


@dataclass
class KupakConfig:
    """
    Main configuration for kupak.

    Example YAML:
        repo: https://example.com/paks/index.yaml
        namespace: staging
        kubectl: /usr/local/bin/kubectl
        kube_context: staging-cluster
        fetch_timeout: 20
        strict_template_labels: true
    """

    repo: str = "index.yaml"  # Repository index address
    namespace: str = "default"  # Target namespace
    kubectl: str = "kubectl"  # Cluster-management binary
    kube_context: str | None = None  # kubectl --context
    fetch_timeout: float | None = None  # None means fetches never time out
    strict_template_labels: bool = False  # Fail when a pod-template label merge fails

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> KupakConfig:
        """
        Create config from a dictionary.

        Raises:
            ConfigError: A value has the wrong type
        """
        timeout = data.get("fetch_timeout")
        try:
            fetch_timeout = float(timeout) if timeout is not None else None
        except (TypeError, ValueError):
            raise ConfigError(f"fetch_timeout must be a number, got {timeout!r}") from None
        return cls(
            repo=data.get("repo", "index.yaml"),
            namespace=data.get("namespace", "default"),
            kubectl=data.get("kubectl", "kubectl"),
            kube_context=data.get("kube_context"),
            fetch_timeout=fetch_timeout,
            strict_template_labels=_to_bool(data.get("strict_template_labels", False)),
        )

    @classmethod
    def from_yaml(cls, path: Path) -> KupakConfig:
        """Load config from a YAML file."""
        try:
            with open(path) as f:
                content = f.read()
        except OSError as exc:
            raise ConfigError(f"cannot read config file {path}: {exc}") from exc
        return cls.from_yaml_string(content, str(path))

    @classmethod
    def from_yaml_string(cls, content: str, source: str = "<string>") -> KupakConfig:
        """Load config from a YAML string."""
        try:
            data = yaml.safe_load(content)
        except yaml.YAMLError as exc:
            raise ConfigError(f"failed to parse config {source}: {exc}") from exc
        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise ConfigError(f"config {source} must be a mapping")
        return cls.from_dict(data)

    def with_env(self, environ: dict[str, str] | None = None) -> KupakConfig:
        """Return a copy with ``KUPAK_*`` environment overrides applied."""
        env = os.environ if environ is None else environ
        updates: dict[str, Any] = {}
        if env.get("KUPAK_REPO"):
            updates["repo"] = env["KUPAK_REPO"]
        if env.get("KUPAK_NAMESPACE"):
            updates["namespace"] = env["KUPAK_NAMESPACE"]
        if env.get("KUPAK_KUBECTL"):
            updates["kubectl"] = env["KUPAK_KUBECTL"]
        if env.get("KUPAK_CONTEXT"):
            updates["kube_context"] = env["KUPAK_CONTEXT"]
        if "KUPAK_STRICT_TEMPLATE_LABELS" in env:
            updates["strict_template_labels"] = _to_bool(
                env["KUPAK_STRICT_TEMPLATE_LABELS"]
            )
        return replace(self, **updates)

    def to_dict(self) -> dict[str, Any]:
        """Convert config to a dictionary."""
        return {
            "repo": self.repo,
            "namespace": self.namespace,
            "kubectl": self.kubectl,
            "kube_context": self.kube_context,
            "fetch_timeout": self.fetch_timeout,
            "strict_template_labels": self.strict_template_labels,
        }


def load_config(
    path: Path | None = None,
    environ: dict[str, str] | None = None,
) -> KupakConfig:
    """
    Load configuration from a file and the environment.

    Args:
        path: Explicit config file. Falls back to ``~/.kupak/config.yaml``
            when it exists.
        environ: Environment mapping (defaults to ``os.environ``)

    Returns:
        The merged configuration
    """
    if path is None and DEFAULT_CONFIG_PATH.is_file():
        path = DEFAULT_CONFIG_PATH

    config = KupakConfig.from_yaml(path) if path is not None else KupakConfig()
    return config.with_env(environ)
