"""
Cluster-side runners that apply, query and delete manifests.
"""

from __future__ import annotations

import os
import shutil
import subprocess
from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any

import yaml

from kupak.errors import RunnerError
from kupak.logging import get_logger

logger = get_logger("kubectl")

DOCUMENT_SEPARATOR = b"---\n"


class Runner(ABC):
    """
    Abstract base class for cluster runners.

    A runner receives fully rendered and labeled manifests; it owns every
    cluster-side concern (retries, ordering, consistency).
    """

    @abstractmethod
    def apply(self, namespace: str, manifests: Sequence[bytes]) -> None:
        """Create or update the given manifests."""
        pass

    @abstractmethod
    def delete(self, namespace: str, selector: str) -> None:
        """Delete every object matching the label *selector*."""
        pass

    @abstractmethod
    def get(self, namespace: str, selector: str) -> list[dict[str, Any]]:
        """Return every object matching the label *selector*."""
        pass


def join_manifests(manifests: Sequence[bytes]) -> bytes:
    """Join manifests into one multi-document YAML stream."""
    parts = []
    for manifest in manifests:
        if not manifest.endswith(b"\n"):
            manifest += b"\n"
        parts.append(manifest)
    return DOCUMENT_SEPARATOR.join(parts)


class KubectlRunner(Runner):
    """
    Runner backed by the ``kubectl`` binary.

    Calls are synchronous and block until kubectl exits.
    """

    def __init__(
        self,
        kubectl: str = "kubectl",
        context: str | None = None,
        env: dict[str, str] | None = None,
    ) -> None:
        path = shutil.which(kubectl)
        if path is None:
            raise RunnerError(f"kubectl binary not found: {kubectl}")
        self.kubectl = path
        self.context = context
        self.env = env

    def apply(self, namespace: str, manifests: Sequence[bytes]) -> None:
        if not manifests:
            return
        self._run(["apply", "-f", "-"], namespace, stdin=join_manifests(manifests))

    def delete(self, namespace: str, selector: str) -> None:
        self._run(["delete", "all", "-l", selector], namespace)

    def get(self, namespace: str, selector: str) -> list[dict[str, Any]]:
        output = self._run(["get", "all", "-l", selector, "-o", "yaml"], namespace)
        try:
            document = yaml.safe_load(output) or {}
        except yaml.YAMLError as exc:
            raise RunnerError(f"unreadable kubectl output: {exc}") from exc
        items = document.get("items") or []
        return [item for item in items if isinstance(item, dict)]

    def _run(self, args: list[str], namespace: str, stdin: bytes | None = None) -> bytes:
        command = [self.kubectl]
        if self.context:
            command += ["--context", self.context]
        command += ["--namespace", namespace, *args]

        full_env = os.environ.copy()
        if self.env:
            full_env.update(self.env)

        logger.debug("Running %s", " ".join(command))
        try:
            result = subprocess.run(
                command,
                input=stdin,
                capture_output=True,
                env=full_env,
                check=False,
            )
        except OSError as exc:
            raise RunnerError(f"failed to run kubectl: {exc}") from exc

        if result.returncode != 0:
            stderr = result.stderr.decode("utf-8", errors="replace").strip()
            raise RunnerError(
                f"kubectl {args[0]} exited with {result.returncode}: {stderr}"
            )
        return result.stdout
