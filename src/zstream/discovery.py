# SPDX-FileCopyrightText: Copyright (c) 2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

"""Filesystem discovery of component folders, PipelineRuns and FBC fragments."""

import logging
from pathlib import Path
from typing import List

from zstream.config import ZStreamConfig, ZStreamDefaults
from zstream.errors import ValidationError

logger = logging.getLogger(__name__)


def list_component_folders(pipelineruns_dir: Path) -> List[Path]:
    """Return the immediate subdirectories of pipelineruns_dir, sorted by name."""
    folders = sorted(p for p in pipelineruns_dir.iterdir() if p.is_dir())
    logger.info(
        f"Folders inside '{pipelineruns_dir}': {[folder.name for folder in folders]}"
    )
    return folders


def ensure_tekton_dir(folder: Path, branch: str) -> Path:
    tekton_dir = folder / ZStreamDefaults.tekton_dir
    if not tekton_dir.is_dir():
        raise ValidationError(
            f"Directory '{tekton_dir}' does not exist in branch '{branch}'"
        )
    return tekton_dir


def find_pipeline_files(tekton_dir: Path, config: ZStreamConfig) -> List[Path]:
    """Match *<vX-Y>-{push,scheduled}*.yaml, push files first."""
    files: List[Path] = []
    for kind in ZStreamDefaults.pipeline_file_kinds:
        pattern = f"*{config.hyphenated_version}-{kind}*.yaml"
        for path in sorted(tekton_dir.glob(pattern)):
            if path.is_file() and path not in files:
                files.append(path)
    return files


def find_fragment_files(fragment_dir: Path, config: ZStreamConfig) -> List[Path]:
    if not fragment_dir.is_dir():
        raise ValidationError(f"Fragment directory '{fragment_dir}' does not exist")
    pattern = (
        f"rhoai-fbc-fragment-rhoai-{config.fragment_version_token}-ocp-*-push.yaml"
    )
    return sorted(p for p in fragment_dir.glob(pattern) if p.is_file())
