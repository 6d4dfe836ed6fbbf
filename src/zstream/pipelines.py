# SPDX-FileCopyrightText: Copyright (c) 2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

"""
Z-stream bump of the version label in Konflux Tekton PipelineRuns.

Two PipelineRun layouts exist in component repositories:

    pipeline-ref style   spec.pipelineRef is set; the label lives in the
                         "additional-labels*" PipelineRun parameter and the
                         tag in "additional-tags".
    inline-spec style    spec.pipelineSpec is embedded; the label lives in the
                         LABELS parameter of the build-container/build-images
                         task.

The layout is detected with a structural (pyyaml) read, but the edit itself
is a line-level splice so the human-maintained file keeps its formatting.
"""

import fnmatch
import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from zstream import locator
from zstream.config import ZStreamConfig, ZStreamDefaults
from zstream.discovery import (
    ensure_tekton_dir,
    find_pipeline_files,
    list_component_folders,
)
from zstream.errors import MissingFieldError, ParseError
from zstream.staging import StagedWrites, read_document
from zstream.version import SemanticVersion, VersionProfile

logger = logging.getLogger(__name__)

BUILD_TASK_NAMES = ("build-container", "build-images")
LABELS_PARAM_PREFIX = "additional-labels"
VERSION_ENTRY_PREFIX = "version="


class PipelineStyle(str, Enum):
    PIPELINE_REF = "pipeline-ref"
    INLINE_SPEC = "inline-spec"


class ComponentClass(str, Enum):
    INTERNAL = "internal"
    EXTERNAL_OR_AUTOMATION = "external-or-automation"


@dataclass
class PipelineArtifact:
    path: Path
    style: PipelineStyle
    component_class: ComponentClass
    application: Optional[str]
    label_version: Optional[SemanticVersion]


@dataclass
class PipelineBatchResult:
    updated: List[Path] = field(default_factory=list)
    skipped: List[Path] = field(default_factory=list)
    changes: List[str] = field(default_factory=list)
    last_version: Optional[SemanticVersion] = None


def classify_application(application: Optional[str]) -> ComponentClass:
    """External and automation components may legitimately lack a version label."""
    if application is not None and (
        "external" in application or application == "automation"
    ):
        return ComponentClass.EXTERNAL_OR_AUTOMATION
    return ComponentClass.INTERNAL


def detect_style(doc: Dict[str, Any]) -> PipelineStyle:
    spec = doc.get("spec") or {}
    if isinstance(spec, dict) and "pipelineRef" in spec:
        return PipelineStyle.PIPELINE_REF
    return PipelineStyle.INLINE_SPEC


def _version_entry(values: Any) -> Optional[str]:
    if not isinstance(values, list):
        return None
    for item in values:
        if isinstance(item, str) and item.startswith(VERSION_ENTRY_PREFIX):
            value = item[len(VERSION_ENTRY_PREFIX) :].strip()
            if value:
                return value
    return None


def _named(items: Any) -> List[Dict[str, Any]]:
    if not isinstance(items, list):
        return []
    return [item for item in items if isinstance(item, dict)]


def extract_label_version(doc: Dict[str, Any], style: PipelineStyle) -> Optional[str]:
    """Return the raw version= label value (e.g. 'v2.24.5'), or None if absent."""
    spec = doc.get("spec") or {}
    if not isinstance(spec, dict):
        return None

    if style == PipelineStyle.PIPELINE_REF:
        for param in _named(spec.get("params")):
            if str(param.get("name", "")).startswith(LABELS_PARAM_PREFIX):
                value = _version_entry(param.get("value"))
                if value:
                    return value
        return None

    pipeline_spec = spec.get("pipelineSpec") or {}
    if not isinstance(pipeline_spec, dict):
        return None
    for task in _named(pipeline_spec.get("tasks")):
        if task.get("name") not in BUILD_TASK_NAMES:
            continue
        for param in _named(task.get("params")):
            if param.get("name") == "LABELS":
                value = _version_entry(param.get("value"))
                if value:
                    return value
    return None


def load_pipeline_artifact(path: Path, content: str) -> PipelineArtifact:
    try:
        doc = yaml.safe_load(content) or {}
    except yaml.YAMLError as e:
        raise ParseError(f"YAML parsing error in {path}: {e}") from e
    if not isinstance(doc, dict):
        raise ParseError(f"{path} is not a PipelineRun mapping")

    metadata = doc.get("metadata") or {}
    labels = metadata.get("labels") if isinstance(metadata, dict) else None
    if labels is not None and not isinstance(labels, dict):
        raise ParseError(f"{path}: metadata.labels is not a mapping")
    application = (labels or {}).get(ZStreamDefaults.application_label)
    style = detect_style(doc)
    raw_version = extract_label_version(doc, style)

    return PipelineArtifact(
        path=path,
        style=style,
        component_class=classify_application(application),
        application=application,
        label_version=SemanticVersion.parse(raw_version) if raw_version else None,
    )


class PipelineArtifactPatcher:
    """Bumps the z-stream version label across every component's PipelineRuns."""

    def __init__(self, config: ZStreamConfig):
        self.config = config

    def needs_build_arg_update(self, path: Path) -> bool:
        return any(
            fnmatch.fnmatch(path.name, pattern)
            for pattern in self.config.build_arg_version_patterns
        )

    def patch_content(
        self, artifact: PipelineArtifact, content: str, new_label: str
    ) -> str:
        """Rewrite only the version value(s) for the artifact's layout."""
        version_re = locator.assignment_pattern("version")

        if artifact.style == PipelineStyle.INLINE_SPEC:
            content, _ = locator.rewrite(content, "LABELS", version_re, new_label)
            return content

        content, _ = locator.rewrite(content, "additional-tags", version_re, new_label)
        if self.needs_build_arg_update(artifact.path):
            logger.info(f"  {artifact.path.name}: updating VERSION in build-args")
            content, _ = locator.rewrite(
                content, "build-args", locator.assignment_pattern("VERSION"), new_label
            )
        return content

    def plan_file(self, path: Path, staged: StagedWrites, result: PipelineBatchResult):
        """Classify, extract and decide for one file; stage its edit if any.

        Raises MissingFieldError for an internal component without a label.
        """
        content = read_document(path)
        artifact = load_pipeline_artifact(path, content)
        logger.info(
            f"Processing {path.name} ({artifact.style.value}, "
            f"application={artifact.application})"
        )

        if artifact.label_version is None:
            if artifact.component_class == ComponentClass.EXTERNAL_OR_AUTOMATION:
                logger.warning(
                    f"  {path.name}: external konflux component does not have "
                    "'version' LABEL set. Skipping!"
                )
                result.skipped.append(path)
                return
            raise MissingFieldError(
                f"{path}: internal konflux component does not have 'version' LABEL set",
                path=path,
            )

        next_version = artifact.label_version.bump_patch()
        old_label = artifact.label_version.format(VersionProfile.PIPELINE_LABEL)
        new_label = next_version.format(VersionProfile.PIPELINE_LABEL)

        new_content = self.patch_content(artifact, content, new_label)
        if new_content == content:
            logger.warning(f"  {path.name}: no version value found to rewrite")
            result.skipped.append(path)
            return

        staged.stage(path, new_content, f"{path}: version={old_label} -> {new_label}")
        result.updated.append(path)
        result.last_version = next_version
        logger.info(f"  version={old_label} -> version={new_label}")

    def run(self) -> PipelineBatchResult:
        """Patch every component folder, writing only if no file aborts the batch."""
        pipelineruns_dir = self.config.pipelineruns_dir
        logger.info(
            f"Pipelineruns dir: {pipelineruns_dir}, branch: {self.config.branch}, "
            f"hyphenated version: {self.config.hyphenated_version}"
        )

        staged = StagedWrites()
        result = PipelineBatchResult()

        for folder in list_component_folders(pipelineruns_dir):
            logger.info(f">> Processing Tekton files in folder: {folder.name}")
            tekton_dir = ensure_tekton_dir(folder, self.config.branch)
            logger.info(
                f"Files inside {tekton_dir}: "
                f"{sorted(p.name for p in tekton_dir.iterdir() if p.is_file())}"
            )
            for path in find_pipeline_files(tekton_dir, self.config):
                self.plan_file(path, staged, result)

        staged.apply()
        result.changes = list(staged.changes)
        logger.info(
            f"Pipelineruns: {len(result.updated)} file(s) updated, "
            f"{len(result.skipped)} skipped"
        )
        return result
