"""
A mutable view over one rendered manifest.

Only the parts kupak touches are exposed: identity (kind, name), the
top-level labels, the labels of an embedded pod template, and the pod
status used when listing installed instances.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import yaml

from kupak.errors import LabelMergeError


def _label_value(value: Any) -> str:
    # YAML spelling, so an unquoted `canary: true` stays "true"
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def merge_labels(
    base: Mapping[str, str] | None,
    override: Mapping[str, str] | None,
) -> dict[str, str]:
    """Merge two label maps; keys in *override* win."""
    merged: dict[str, str] = dict(base or {})
    merged.update(override or {})
    return merged


@dataclass
class PodStatus:
    """The subset of a pod's status shown to users."""

    phase: str = ""
    pod_ip: str = ""
    reason: str = ""
    message: str = ""


class RenderedObject:
    """A parsed manifest whose labels can be read and rewritten."""

    def __init__(self, data: dict[str, Any]) -> None:
        if not isinstance(data, dict):
            raise LabelMergeError("manifest is not a mapping")
        self._data = data

    @classmethod
    def from_bytes(cls, raw: bytes | str) -> RenderedObject:
        """Parse a single YAML (or JSON) manifest document."""
        try:
            data = yaml.safe_load(raw)
        except yaml.YAMLError as exc:
            raise LabelMergeError(f"cannot parse manifest: {exc}") from exc
        return cls(data)

    @property
    def kind(self) -> str:
        return str(self._data.get("kind", ""))

    @property
    def metadata(self) -> dict[str, Any]:
        return self._mapping(self._data, "metadata", "metadata")

    @property
    def name(self) -> str:
        return str(self._peek_metadata().get("name", ""))

    @property
    def namespace(self) -> str:
        return str(self._peek_metadata().get("namespace", ""))

    @property
    def labels(self) -> dict[str, str]:
        return self._read_labels(self.metadata, "metadata.labels")

    def set_labels(self, labels: Mapping[str, str]) -> None:
        self.metadata["labels"] = dict(labels)

    @property
    def has_pod_template(self) -> bool:
        """Whether the object embeds a pod template with its own metadata."""
        spec = self._data.get("spec")
        if not isinstance(spec, dict):
            return False
        template = spec.get("template")
        return isinstance(template, dict) and "metadata" in template

    @property
    def pod_template_labels(self) -> dict[str, str]:
        return self._read_labels(self._template_metadata(), "spec.template.metadata.labels")

    def set_pod_template_labels(self, labels: Mapping[str, str]) -> None:
        self._template_metadata()["labels"] = dict(labels)

    @property
    def status(self) -> PodStatus:
        status = self._data.get("status")
        if not isinstance(status, dict):
            return PodStatus()
        return PodStatus(
            phase=str(status.get("phase", "")),
            pod_ip=str(status.get("podIP", "")),
            reason=str(status.get("reason", "")),
            message=str(status.get("message", "")),
        )

    @property
    def is_deleting(self) -> bool:
        return bool(self._peek_metadata().get("deletionTimestamp"))

    def to_dict(self) -> dict[str, Any]:
        return self._data

    def to_bytes(self) -> bytes:
        """Serialize the object back to YAML."""
        return yaml.safe_dump(
            self._data, default_flow_style=False, sort_keys=False
        ).encode("utf-8")

    def _peek_metadata(self) -> dict[str, Any]:
        metadata = self._data.get("metadata")
        return metadata if isinstance(metadata, dict) else {}

    def _template_metadata(self) -> dict[str, Any]:
        if not self.has_pod_template:
            raise LabelMergeError(f"{self.kind} {self.name!r} has no pod template")
        return self._mapping(self._data["spec"]["template"], "metadata", "spec.template.metadata")

    @staticmethod
    def _mapping(parent: dict[str, Any], key: str, path: str) -> dict[str, Any]:
        value = parent.get(key)
        if value is None:
            value = parent[key] = {}
        if not isinstance(value, dict):
            raise LabelMergeError(f"{path} is not a mapping")
        return value

    @staticmethod
    def _read_labels(metadata: dict[str, Any], path: str) -> dict[str, str]:
        labels = metadata.get("labels")
        if labels is None:
            return {}
        if not isinstance(labels, dict):
            raise LabelMergeError(f"{path} is not a mapping")
        return {str(k): _label_value(v) for k, v in labels.items()}

    def __repr__(self) -> str:
        return f"RenderedObject(kind={self.kind!r}, name={self.name!r})"
