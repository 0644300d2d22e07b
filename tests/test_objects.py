"""Tests for RenderedObject and label merging."""

from __future__ import annotations

from textwrap import dedent

import pytest
import yaml

from kupak.errors import LabelMergeError
from kupak.objects import RenderedObject, merge_labels

POD = dedent("""
    apiVersion: v1
    kind: Pod
    metadata:
      name: web
      namespace: staging
      labels:
        app: demo
        tier: 1
    status:
      phase: Running
      podIP: 10.0.0.4
""").encode()

DEPLOYMENT = dedent("""
    apiVersion: apps/v1
    kind: Deployment
    metadata:
      name: web
    spec:
      template:
        metadata:
          labels:
            app: demo
        spec:
          containers: []
""").encode()


class TestMergeLabels:
    """Tests for merge_labels."""

    def test_right_biased(self) -> None:
        """Should let the second mapping win on collisions."""
        merged = merge_labels({"app": "demo", "pak-group": "old"}, {"pak-group": "new"})

        assert merged == {"app": "demo", "pak-group": "new"}

    def test_none_inputs(self) -> None:
        assert merge_labels(None, {"a": "1"}) == {"a": "1"}
        assert merge_labels({"a": "1"}, None) == {"a": "1"}

    def test_returns_new_mapping(self) -> None:
        base = {"a": "1"}

        merge_labels(base, {"b": "2"})

        assert base == {"a": "1"}


class TestRenderedObject:
    """Tests for RenderedObject."""

    def test_identity(self) -> None:
        obj = RenderedObject.from_bytes(POD)

        assert obj.kind == "Pod"
        assert obj.name == "web"
        assert obj.namespace == "staging"

    def test_labels_are_strings(self) -> None:
        assert RenderedObject.from_bytes(POD).labels == {"app": "demo", "tier": "1"}

    def test_boolean_labels_keep_yaml_spelling(self) -> None:
        """Should read and write back an unquoted boolean label as "true"."""
        obj = RenderedObject.from_bytes(b"kind: Pod\nmetadata:\n  labels:\n    canary: true\n")

        obj.set_labels(merge_labels(obj.labels, {"pak-group": "g1"}))

        labels = yaml.safe_load(obj.to_bytes())["metadata"]["labels"]
        assert labels == {"canary": "true", "pak-group": "g1"}

    def test_set_labels(self) -> None:
        obj = RenderedObject.from_bytes(POD)

        obj.set_labels({"app": "other"})

        assert obj.labels == {"app": "other"}

    def test_labels_created_when_missing(self) -> None:
        obj = RenderedObject.from_bytes(b"kind: ConfigMap\n")

        assert obj.labels == {}
        obj.set_labels({"pak-group": "g"})
        assert obj.to_dict()["metadata"] == {"labels": {"pak-group": "g"}}

    def test_pod_template(self) -> None:
        obj = RenderedObject.from_bytes(DEPLOYMENT)

        assert obj.has_pod_template is True
        assert obj.pod_template_labels == {"app": "demo"}

        obj.set_pod_template_labels({"app": "demo", "pak-group": "g"})

        assert obj.to_dict()["spec"]["template"]["metadata"]["labels"] == {
            "app": "demo",
            "pak-group": "g",
        }

    def test_no_pod_template(self) -> None:
        obj = RenderedObject.from_bytes(POD)

        assert obj.has_pod_template is False
        with pytest.raises(LabelMergeError):
            obj.set_pod_template_labels({"a": "b"})

    def test_template_without_metadata_is_not_a_pod_template(self) -> None:
        obj = RenderedObject.from_bytes(b"kind: Job\nspec:\n  template:\n    spec: {}\n")

        assert obj.has_pod_template is False

    def test_malformed_template_metadata(self) -> None:
        obj = RenderedObject.from_bytes(b"kind: Job\nspec:\n  template:\n    metadata: oops\n")

        assert obj.has_pod_template is True
        with pytest.raises(LabelMergeError, match="spec.template.metadata"):
            obj.pod_template_labels

    def test_malformed_labels(self) -> None:
        obj = RenderedObject.from_bytes(b"kind: Pod\nmetadata:\n  labels: [a, b]\n")

        with pytest.raises(LabelMergeError):
            obj.labels

    @pytest.mark.parametrize(
        "data",
        [b"", b"- a\n- b\n", b"kind: [unclosed", b"kind: A\n---\nkind: B\n"],
    )
    def test_unparseable(self, data: bytes) -> None:
        """Should raise LabelMergeError for anything but one mapping document."""
        with pytest.raises(LabelMergeError):
            RenderedObject.from_bytes(data)

    def test_status(self) -> None:
        status = RenderedObject.from_bytes(POD).status

        assert status.phase == "Running"
        assert status.pod_ip == "10.0.0.4"
        assert status.reason == ""

    def test_to_bytes(self) -> None:
        """Should serialize back to an equivalent document, keeping key order."""
        obj = RenderedObject.from_bytes(DEPLOYMENT)

        raw = obj.to_bytes()

        assert yaml.safe_load(raw) == yaml.safe_load(DEPLOYMENT)
        assert raw.startswith(b"apiVersion: apps/v1\nkind: Deployment\n")
