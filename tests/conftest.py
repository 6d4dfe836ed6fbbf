# SPDX-FileCopyrightText: Copyright (c) 2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

"""Shared fixtures for z-stream tests.

Markers are declared in pyproject.toml (tool.pytest.ini_options.markers);
pre_merge implies post_merge and nightly, applied before marker filtering.
"""

import os
from pathlib import Path
from typing import Sequence

import pytest

from zstream.config import ZStreamConfig

PIPELINE_REF_RUN = """\
apiVersion: tekton.dev/v1
kind: PipelineRun
metadata:
  annotations:
    build.appstudio.openshift.io/repo: https://github.com/red-hat-data-services/odh-dashboard?rev={{revision}}
  labels:
    appstudio.openshift.io/application: {application}
    appstudio.openshift.io/component: odh-dashboard-v2-24
  name: odh-dashboard-v2-24-on-push
  namespace: rhoai-tenant
spec:
  params:
  - name: git-url
    value: '{{source_url}}'
  - name: output-image
    value: quay.io/rhoai/odh-dashboard-rhel9:{{revision}}
  # tags applied to the pushed image
  - name: additional-tags
    value:
    - '{{target_branch}}-{{revision}}'
    - "version={version}"
  - name: additional-labels
    value:
    - version={version}
  pipelineRef:
    resolver: git
    params:
    - name: url
      value: https://github.com/red-hat-data-services/konflux-central.git
"""

PIPELINE_REF_RUN_NO_LABEL = """\
apiVersion: tekton.dev/v1
kind: PipelineRun
metadata:
  labels:
    appstudio.openshift.io/application: {application}
  name: component-v2-24-on-push
spec:
  params:
  - name: additional-tags
    value:
    - '{{target_branch}}-{{revision}}'
  pipelineRef:
    name: docker-build
"""

MODELMESH_RUN = """\
apiVersion: tekton.dev/v1
kind: PipelineRun
metadata:
  labels:
    appstudio.openshift.io/application: rhoai-v2-24
  name: odh-modelmesh-v2-24-on-push
spec:
  params:
  - name: build-args
    value:
    - VERSION=v2.24.5
    - COMMIT=36ff14bc
  - name: additional-tags
    value:
    - version=v2.24.5
  - name: additional-labels
    value:
    - version=v2.24.5
  pipelineRef:
    name: multi-arch-container-build
"""

INLINE_SPEC_RUN = """\
apiVersion: tekton.dev/v1
kind: PipelineRun
metadata:
  labels:
    appstudio.openshift.io/application: rhoai-v2-24
  name: odh-operator-v2-24-on-push
spec:
  params:
  - name: git-url
    value: '{{source_url}}'
  pipelineSpec:
    tasks:
    - name: init
      params:
      - name: image-url
        value: $(params.output-image)
    - name: {task}
      params:
      - name: IMAGE
        value: $(params.output-image)
      - name: LABELS
        value:
        - release=1
        - version=v2.24.5   # keep in sync with the operator
"""

FRAGMENT_RUN = """\
apiVersion: tekton.dev/v1
kind: PipelineRun
metadata:
  name: rhoai-fbc-fragment-rhoai-2-24-ocp-4-19-on-push
spec:
  params:
  - name: git-url
    value: '{{source_url}}'
  - name: rhoai-version
    value: {version}
  pipelineRef:
    name: fbc-fragment-build
"""


@pytest.hookimpl(tryfirst=True)
def pytest_collection_modifyitems(
    session: pytest.Session, config: pytest.Config, items: Sequence[pytest.Item]
) -> None:
    if os.getenv("ZSTREAM_DISABLE_MARKER_IMPLICATIONS") == "1":
        return

    for item in items:
        marker_names = {m.name for m in item.iter_markers()}
        if "pre_merge" in marker_names and "post_merge" not in marker_names:
            item.add_marker("post_merge")
            marker_names.add("post_merge")
        if "post_merge" in marker_names and "nightly" not in marker_names:
            item.add_marker("nightly")


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep CI-provided variables from leaking into the config under test."""
    monkeypatch.delenv("GITHUB_OUTPUT", raising=False)
    monkeypatch.delenv("ZSTREAM_DRY_RUN", raising=False)


@pytest.fixture
def make_config():
    def _make(**overrides) -> ZStreamConfig:
        kwargs = {"branch": "rhoai-2.24"}
        kwargs.update(overrides)
        return ZStreamConfig.create(**kwargs)

    return _make


@pytest.fixture
def pipelineruns_dir(tmp_path) -> Path:
    path = tmp_path / "pipelineruns"
    path.mkdir()
    return path


@pytest.fixture
def write_pipelinerun(pipelineruns_dir):
    """Write a PipelineRun into <pipelineruns>/<component>/.tekton/<filename>."""

    def _write(component: str, filename: str, content: str) -> Path:
        tekton_dir = pipelineruns_dir / component / ".tekton"
        tekton_dir.mkdir(parents=True, exist_ok=True)
        path = tekton_dir / filename
        path.write_text(content)
        return path

    return _write


@pytest.fixture
def rbc_dir(tmp_path) -> Path:
    """A RHOAI-Build-Config checkout at version 2.24.5."""
    root = tmp_path / "RHOAI-Build-Config"
    (root / "config").mkdir(parents=True)
    (root / "bundle").mkdir()
    (root / "catalog").mkdir()
    (root / ".tekton").mkdir()

    (root / "config" / "modelmesh-pig-build-config.yaml").write_text(
        "#!productVersion=2.24.5\n"
        "product: rhoai\n"
        "components:\n"
        "  - modelmesh\n"
    )
    (root / "bundle" / "bundle-patch.yaml").write_text(
        "# Generated by the release tooling\n"
        "patch:\n"
        "  version: 2.24.5\n"
        "  channels: stable,fast\n"
    )
    (root / "catalog" / "catalog-patch.yaml").write_text(
        "olm:\n"
        "  channels:\n"
        "  - name: stable\n"
        "    entries:\n"
        "    - name: rhods-operator.2.24.5\n"
        "      replaces: rhods-operator.2.24.4\n"
        "      skipRange: '>=2.24.0 <2.24.5'\n"
        "  - name: fast\n"
        "    entries:\n"
        "    - name: rhods-operator.2.24.5\n"
    )
    return root
