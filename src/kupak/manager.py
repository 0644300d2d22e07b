"""
Installing paks and tracking installation groups.

Every install gets a fresh group id. The group id and the pak's source
URL are stamped as labels on each rendered object and, for controllers,
on their pod template too, so pods created indirectly stay attributable
to the installation.
"""

from __future__ import annotations

import uuid
from collections.abc import Callable, Mapping, Sequence
from typing import Any

from kupak.errors import LabelMergeError, RunnerError
from kupak.kubectl import Runner
from kupak.logging import get_logger
from kupak.models import (
    GROUP_LABEL,
    SOURCE_URL_LABEL,
    Installation,
    InstallationGroup,
    InstalledPak,
    InstallStatus,
    Pak,
)
from kupak.objects import RenderedObject, merge_labels
from kupak.templates import render_pak

logger = get_logger("manager")

GroupIdFactory = Callable[[], str]


def new_group_id() -> str:
    """Generate a globally unique installation group id."""
    return str(uuid.uuid4())


def label_object(
    obj: RenderedObject,
    labels: Mapping[str, str],
    strict_template_labels: bool = False,
) -> None:
    """
    Merge *labels* into an object's labels and its pod template labels.

    A failure on the object itself always raises. A failure on the pod
    template raises only when *strict_template_labels* is set; otherwise
    it is logged and the template is left untouched.
    """
    obj.set_labels(merge_labels(obj.labels, labels))

    if not obj.has_pod_template:
        return
    try:
        obj.set_pod_template_labels(merge_labels(obj.pod_template_labels, labels))
    except LabelMergeError as exc:
        if strict_template_labels:
            raise
        logger.warning(
            "Skipping pod template labels of %s %r: %s", obj.kind, obj.name, exc
        )


def label_manifests(
    manifests: Sequence[bytes],
    group: InstallationGroup,
    strict_template_labels: bool = False,
) -> list[bytes]:
    """Stamp tracking labels on every manifest, preserving order."""
    labeled: list[bytes] = []
    for manifest in manifests:
        obj = RenderedObject.from_bytes(manifest)
        label_object(obj, group.tracking_labels, strict_template_labels)
        labeled.append(obj.to_bytes())
    return labeled


def _aggregate_status(objects: Sequence[RenderedObject]) -> InstallStatus:
    if any(obj.is_deleting for obj in objects):
        return InstallStatus.DELETING
    if any(obj.kind == "Pod" and obj.status.phase == "Failed" for obj in objects):
        return InstallStatus.ERROR
    return InstallStatus.RUNNING


class Manager:
    """
    Installs paks through a runner and reports installed instances.

    Example:
        manager = Manager(KubectlRunner())
        pak = load_pak("github.com/acme/paks/redis/pak.yaml")
        installation = manager.install(pak, "default", {"replicas": 3})
    """

    def __init__(
        self,
        runner: Runner | None = None,
        group_id_factory: GroupIdFactory = new_group_id,
        strict_template_labels: bool = False,
    ) -> None:
        self.runner = runner
        self.group_id_factory = group_id_factory
        self.strict_template_labels = strict_template_labels

    def _require_runner(self) -> Runner:
        if self.runner is None:
            raise RunnerError("no cluster runner configured")
        return self.runner

    def install(
        self,
        pak: Pak,
        namespace: str,
        values: Mapping[str, Any] | None = None,
        dry_run: bool = False,
    ) -> Installation:
        """
        Render, label and apply a pak.

        Nothing is handed to the runner unless every resource rendered
        and labeled successfully.
        """
        rendered = render_pak(pak, values)
        group = InstallationGroup(
            group_id=self.group_id_factory(),
            source_url=pak.source_url,
        )
        manifests = label_manifests(rendered, group, self.strict_template_labels)
        installation = Installation(group=group, namespace=namespace, manifests=manifests)

        if dry_run:
            return installation

        self._require_runner().apply(namespace, manifests)
        installation.applied = True
        logger.info(
            "Installed %s into %s as group %s", pak.name, namespace, group.group_id
        )
        return installation

    def installed(self, namespace: str) -> list[InstalledPak]:
        """List every installation group in *namespace*."""
        return self._query(namespace, GROUP_LABEL)

    def instances(self, namespace: str, pak: Pak) -> list[InstalledPak]:
        """List the installation groups created from *pak*."""
        return [i for i in self.installed(namespace) if i.pak_url == pak.source_url]

    def status(self, namespace: str, group: str) -> InstalledPak | None:
        """Get one installation group, or ``None`` if nothing carries its label."""
        found = self._query(namespace, f"{GROUP_LABEL}={group}")
        return found[0] if found else None

    def delete_instance(self, namespace: str, group: str) -> None:
        """Delete every object of an installation group."""
        self._require_runner().delete(namespace, f"{GROUP_LABEL}={group}")
        logger.info("Deleted group %s from %s", group, namespace)

    def _query(self, namespace: str, selector: str) -> list[InstalledPak]:
        groups: dict[str, list[RenderedObject]] = {}
        for item in self._require_runner().get(namespace, selector):
            obj = RenderedObject(item)
            group_id = obj.labels.get(GROUP_LABEL)
            if group_id:
                groups.setdefault(group_id, []).append(obj)

        return [
            InstalledPak(
                group=group_id,
                namespace=namespace,
                pak_url=objects[0].labels.get(SOURCE_URL_LABEL, ""),
                objects=objects,
                status=_aggregate_status(objects),
            )
            for group_id, objects in groups.items()
        ]
