# SPDX-FileCopyrightText: Copyright (c) 2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

"""
Staged writes: compute every edit of an activity first, write them last.

A fatal error while an activity is still computing leaves the working copy
untouched, so there is never a half-patched batch to reset by hand.
"""

import logging
from pathlib import Path
from typing import Dict, List

from zstream.errors import ParseError

logger = logging.getLogger(__name__)


def read_document(path: Path) -> str:
    """Read a document without newline translation, so CRLF files round-trip."""
    try:
        with open(path, "r", encoding="utf-8", newline="") as f:
            return f.read()
    except UnicodeDecodeError as e:
        raise ParseError(f"{path} is not valid UTF-8: {e}") from e


def write_document(path: Path, content: str) -> None:
    with open(path, "w", encoding="utf-8", newline="") as f:
        f.write(content)


class StagedWrites:
    """Ordered set of pending file contents keyed by path."""

    def __init__(self):
        self._pending: Dict[Path, str] = {}
        self.changes: List[str] = []

    def stage(self, path: Path, content: str, change: str) -> None:
        """Record new content for path; staging the same path again replaces it."""
        self._pending[Path(path)] = content
        self.changes.append(change)

    def __len__(self) -> int:
        return len(self._pending)

    def __contains__(self, path) -> bool:
        return Path(path) in self._pending

    def content_for(self, path: Path) -> str:
        return self._pending[Path(path)]

    @property
    def paths(self) -> List[Path]:
        return list(self._pending)

    def apply(self) -> List[Path]:
        """Write every staged file and return the written paths."""
        written = []
        for path, content in self._pending.items():
            write_document(path, content)
            logger.debug(f"Wrote {path}")
            written.append(path)
        self._pending.clear()
        return written
