# SPDX-FileCopyrightText: Copyright (c) 2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

"""
Z-stream bump of the product version parameter in FBC fragment PipelineRuns.

Fragments live in RHOAI-Build-Config/.tekton and carry the product version as
a PipelineRun parameter:

    - name: rhoai-version
      value: 2.24.5

Each run bumps the patch number once. The operation is not idempotent:
running it twice without resetting the working copy bumps twice.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from zstream import locator
from zstream.config import ZStreamConfig
from zstream.discovery import find_fragment_files
from zstream.env_utils import append_ci_outputs
from zstream.errors import VerificationError
from zstream.staging import StagedWrites, read_document
from zstream.version import SemanticVersion, VersionProfile, has_v_prefix

logger = logging.getLogger(__name__)


@dataclass
class FragmentArtifact:
    path: Path
    version_param: Optional[SemanticVersion]
    occurrence: Optional[locator.FieldOccurrence] = None


@dataclass
class FragmentBatchResult:
    updated: List[Path] = field(default_factory=list)
    skipped: List[Path] = field(default_factory=list)
    changes: List[str] = field(default_factory=list)
    last_version: Optional[SemanticVersion] = None


class FragmentVersionPatcher:
    def __init__(self, config: ZStreamConfig):
        self.config = config
        self.value_re = locator.yaml_value_pattern("value")

    def read_artifact(self, path: Path, content: str) -> FragmentArtifact:
        occurrence = locator.locate(content, self.config.fragment_param, self.value_re)
        if occurrence is None:
            return FragmentArtifact(path=path, version_param=None)
        return FragmentArtifact(
            path=path,
            version_param=SemanticVersion.parse(occurrence.value),
            occurrence=occurrence,
        )

    def verify(self, path: Path, expected: str) -> None:
        """Re-read a written fragment and confirm the parameter holds expected."""
        occurrence = locator.locate(
            read_document(path), self.config.fragment_param, self.value_re
        )
        actual = occurrence.value if occurrence else None
        if actual != expected:
            raise VerificationError(
                f"{path}: expected {self.config.fragment_param}={expected} "
                f"after update, found {actual}"
            )

    def run(self) -> FragmentBatchResult:
        fragment_dir = self.config.resolved_fragment_dir
        param = self.config.fragment_param
        logger.info(f">> Updating FBC fragments in {fragment_dir} ({param})")

        staged = StagedWrites()
        expected = {}
        result = FragmentBatchResult()

        for path in find_fragment_files(fragment_dir, self.config):
            content = read_document(path)
            artifact = self.read_artifact(path, content)
            if artifact.version_param is None:
                logger.warning(f"  {path.name}: parameter '{param}' not found. Skipping!")
                result.skipped.append(path)
                continue

            next_version = artifact.version_param.bump_patch()
            profile = (
                VersionProfile.PIPELINE_LABEL
                if has_v_prefix(artifact.occurrence.value)
                else VersionProfile.BUILD_CONFIG
            )
            new_value = next_version.format(profile)

            staged.stage(
                path,
                locator.replace(content, artifact.occurrence, new_value),
                f"{path}: {param} {artifact.occurrence.value} -> {new_value}",
            )
            expected[path] = new_value
            result.updated.append(path)
            result.last_version = next_version
            logger.info(f"  {path.name}: {artifact.occurrence.value} -> {new_value}")

        for path in staged.apply():
            self.verify(path, expected[path])

        result.changes = list(staged.changes)
        if result.updated:
            logger.info(
                f"Fragments: {len(result.updated)} file(s) updated to "
                f"{result.last_version}"
            )
        else:
            logger.warning("Fragments: no fragment files were updated")

        append_ci_outputs(
            self.config.github_output,
            {
                "fragment_files_updated": len(result.updated),
                "fragment_new_version": result.last_version or "",
            },
        )
        return result
