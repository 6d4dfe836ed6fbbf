# SPDX-FileCopyrightText: Copyright (c) 2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

"""
Environment variable and CI output utilities.

CI runners (GitHub Actions) expose a file path in GITHUB_OUTPUT; every
``key=value`` line appended to it becomes a step output for later jobs.
"""

import logging
import os
from pathlib import Path
from typing import Mapping, Optional

logger = logging.getLogger(__name__)


def env_is_truthy(name: str) -> bool:
    """
    Check if an environment variable is truthy.

    Returns:
        True if the environment variable is set to 1, t or true (any case).
        False if not set, set to a falsy value, or unrecognized.

    Example:
        export ZSTREAM_DRY_RUN=1     # True
        export ZSTREAM_DRY_RUN=True  # True
        export ZSTREAM_DRY_RUN=no    # False
    """
    value = os.getenv(name)
    if value is None:
        return False
    return value.lower().strip() in ("true", "1", "t")


def append_ci_outputs(output_file: Optional[Path], values: Mapping[str, object]) -> None:
    """Append key=value lines to the CI output file, if one is configured."""
    if output_file is None:
        return
    with open(output_file, "a", encoding="utf-8") as f:
        for key, value in values.items():
            f.write(f"{key}={value}\n")
    logger.info(f"Wrote {len(values)} output(s) to {output_file}")
