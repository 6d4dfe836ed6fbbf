# SPDX-FileCopyrightText: Copyright (c) 2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

import os
import re
from pathlib import Path
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError
from pydantic import model_validator

from zstream.env_utils import env_is_truthy
from zstream.errors import ParseError, ValidationError
from zstream.version import SemanticVersion

BRANCH_RE = re.compile(r"^rhoai-(?P<major>\d+)\.(?P<minor>\d+)$")


class ZStreamDefaults:
    """Fixed names and paths of the RHOAI release repositories."""

    # Konflux component grouping label on every PipelineRun
    application_label = "appstudio.openshift.io/application"

    tekton_dir = ".tekton"
    pipeline_file_kinds = ("push", "scheduled")

    # Components whose Dockerfile also takes the version as a build argument,
    # e.g. modelmesh .tekton/odh-modelmesh-v2-22-push.yaml
    build_arg_version_patterns = ("odh-modelmesh-v*-push.yaml",)

    fragment_param = "rhoai-version"

    # RHOAI-Build-Config layout, relative to the repository root
    header_files = (
        "config/modelmesh-pig-build-config.yaml",
        "config/trustyai-pig-build-config.yaml",
    )
    bundle_patch = "bundle/bundle-patch.yaml"
    catalog_patch = "catalog/catalog-patch.yaml"

    # Lower bound used when a catalog entry has no skipRange yet
    skip_range_floor = ">=2.24.0"


class ZStreamConfig(BaseModel):
    """Immutable run configuration threaded through every patcher.

    Mirrors the CLI flags; environment-backed values (dry-run toggle and the
    CI output file) are resolved once at construction time.
    """

    model_config = ConfigDict(frozen=True)

    branch: str
    pipelineruns_dir: Optional[Path] = None
    rbc_dir: Optional[Path] = None
    fragment_dir: Optional[Path] = None
    new_version: Optional[str] = None

    update_rbc: bool = False
    update_fragments: bool = False
    commit: bool = False
    dry_run: bool = Field(default_factory=lambda: env_is_truthy("ZSTREAM_DRY_RUN"))

    github_output: Optional[Path] = Field(
        default_factory=lambda: Path(os.environ["GITHUB_OUTPUT"])
        if os.environ.get("GITHUB_OUTPUT")
        else None
    )

    fragment_param: str = ZStreamDefaults.fragment_param
    skip_range_floor: str = ZStreamDefaults.skip_range_floor
    build_arg_version_patterns: Tuple[str, ...] = (
        ZStreamDefaults.build_arg_version_patterns
    )
    header_files: Tuple[str, ...] = ZStreamDefaults.header_files
    bundle_patch: str = ZStreamDefaults.bundle_patch
    catalog_patch: str = ZStreamDefaults.catalog_patch

    @model_validator(mode="after")
    def _validate_config(self) -> "ZStreamConfig":
        if not BRANCH_RE.match(self.branch):
            raise ValueError(
                f"Invalid branch '{self.branch}': expected rhoai-<major>.<minor> "
                "(e.g. rhoai-2.24)"
            )

        # Pipelineruns are only optional for build-config or fragment-only runs
        if self.pipelineruns_dir is None and not (
            self.update_rbc or self.update_fragments
        ):
            raise ValueError(
                "pipelineruns_dir is required unless build-config or fragment "
                "updates are enabled"
            )
        if self.pipelineruns_dir is not None and not self.pipelineruns_dir.is_dir():
            raise ValueError(
                f"Pipelineruns directory '{self.pipelineruns_dir}' does not exist"
            )

        if self.update_rbc and self.rbc_dir is None:
            raise ValueError("rbc_dir is required when build-config updates are enabled")
        if self.update_fragments and self.resolved_fragment_dir is None:
            raise ValueError(
                "rbc_dir or fragment_dir is required when fragment updates are enabled"
            )
        if self.rbc_dir is not None and not self.rbc_dir.is_dir():
            raise ValueError(f"RBC directory '{self.rbc_dir}' does not exist")

        if self.new_version is not None:
            try:
                SemanticVersion.parse(self.new_version)
            except ParseError as e:
                raise ValueError(str(e)) from e

        return self

    @classmethod
    def create(cls, **kwargs) -> "ZStreamConfig":
        """Build a config, reporting any problem as a ValidationError."""
        try:
            return cls(**kwargs)
        except PydanticValidationError as e:
            messages = "; ".join(err["msg"] for err in e.errors())
            raise ValidationError(messages) from e

    @property
    def major_minor(self) -> Tuple[int, int]:
        m = BRANCH_RE.match(self.branch)
        return int(m.group("major")), int(m.group("minor"))

    @property
    def hyphenated_version(self) -> str:
        """rhoai-2.24 -> v2-24, as used in PipelineRun file names."""
        major, minor = self.major_minor
        return f"v{major}-{minor}"

    @property
    def fragment_version_token(self) -> str:
        """rhoai-2.24 -> 2-24, as used in FBC fragment file names."""
        major, minor = self.major_minor
        return f"{major}-{minor}"

    @property
    def target_version(self) -> Optional[SemanticVersion]:
        if self.new_version is None:
            return None
        return SemanticVersion.parse(self.new_version)

    @property
    def resolved_fragment_dir(self) -> Optional[Path]:
        if self.fragment_dir is not None:
            return self.fragment_dir
        if self.rbc_dir is not None:
            return self.rbc_dir / ZStreamDefaults.tekton_dir
        return None
