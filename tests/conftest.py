"""Shared pytest fixtures for kupak tests."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from textwrap import dedent
from typing import Any

import pytest

from kupak.kubectl import Runner

PAK_YAML = dedent("""
    name: demo
    version: 0.1.0
    description: A demo web server
    tags:
      - web
      - demo
    properties:
      - name: name
        type: string
        default: demo
        description: Object name
      - name: replicas
        type: int
        default: 1
        description: Number of pods
      - name: debug
        type: bool
        default: "no"
    resources:
      - templates/rc.yaml
      - ./templates/svc.yaml
""").lstrip()

RC_TEMPLATE = dedent("""
    apiVersion: v1
    kind: ReplicationController
    metadata:
      name: $(name)
      labels:
        app: demo
    spec:
      replicas: $(replicas)
      template:
        metadata:
          labels:
            app: demo
        spec:
          containers:
            - name: web
              image: nginx
              env:
                - name: DEBUG
                  value: "$(debug)"
""").lstrip()

SVC_TEMPLATE = dedent("""
    apiVersion: v1
    kind: Service
    metadata:
      name: $(name)
      labels:
        app: demo
    spec:
      ports:
        - port: 80
""").lstrip()


class FakeRunner(Runner):
    """In-memory runner recording every call."""

    def __init__(self, objects: list[dict[str, Any]] | None = None) -> None:
        self.applied: list[tuple[str, list[bytes]]] = []
        self.deleted: list[tuple[str, str]] = []
        self.queries: list[tuple[str, str]] = []
        self.objects = objects or []

    def apply(self, namespace: str, manifests: Sequence[bytes]) -> None:
        self.applied.append((namespace, list(manifests)))

    def delete(self, namespace: str, selector: str) -> None:
        self.deleted.append((namespace, selector))

    def get(self, namespace: str, selector: str) -> list[dict[str, Any]]:
        self.queries.append((namespace, selector))
        return self.objects


@pytest.fixture
def pak_dir(tmp_path: Path) -> Path:
    """Create a local pak with a replication controller and a service."""
    root = tmp_path / "demo"
    templates = root / "templates"
    templates.mkdir(parents=True)
    (root / "pak.yaml").write_text(PAK_YAML)
    (templates / "rc.yaml").write_text(RC_TEMPLATE)
    (templates / "svc.yaml").write_text(SVC_TEMPLATE)
    return root


@pytest.fixture
def pak_path(pak_dir: Path) -> Path:
    return pak_dir / "pak.yaml"


@pytest.fixture
def repo_index(tmp_path: Path, pak_dir: Path) -> Path:
    """Create a repository index listing the demo pak by relative url."""
    index = tmp_path / "index.yaml"
    index.write_text(
        dedent("""
            name: Test Repo
            paks:
              - name: demo
                version: 0.1.0
                url: demo/pak.yaml
                description: A demo web server
                tags: [web]
        """).lstrip()
    )
    return index


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner()
