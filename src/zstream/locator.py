# SPDX-FileCopyrightText: Copyright (c) 2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

"""
Anchor-then-scan-forward field locator for human-maintained YAML.

Tekton PipelineRuns list parameters as a key line followed by a value list:

    - name: additional-tags
      value:
        - version=v2.24.5

The locator finds the anchor line (``name: additional-tags``) and then scans
forward, line by line, until the value pattern matches. It never parses the
document, so comments, key order, quoting and indentation survive an edit
byte-for-byte; only the matched value substring is replaced.

Only the first anchor in a document is edited; later occurrences of the same
parameter name are left alone.
"""

import logging
import re
from dataclasses import dataclass
from typing import List, Optional, Pattern, Tuple

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FieldOccurrence:
    anchor_line: int
    line_index: int
    start: int
    end: int
    value: str


def anchor_pattern(anchor_key: str) -> Pattern:
    """Match a ``name: <anchor_key>`` line, optionally quoted and commented."""
    return re.compile(
        rf"""name:\s*["']?{re.escape(anchor_key)}["']?\s*(?:#.*)?$"""
    )


def assignment_pattern(key: str) -> Pattern:
    """Match ``<key>=<value>`` (case-sensitive, whole word) and capture the value."""
    return re.compile(rf"""(?<![A-Za-z0-9_]){re.escape(key)}=(?P<value>[^\s"',\]]+)""")


def yaml_value_pattern(key: str = "value") -> Pattern:
    """Match a scalar ``<key>: <value>`` mapping line and capture the value."""
    return re.compile(
        rf"""^\s*(?:-\s+)?{re.escape(key)}:\s*["']?(?P<value>[^\s"'#]+)"""
    )


def locate(
    document: str, anchor_key: str, value_pattern: Pattern
) -> Optional[FieldOccurrence]:
    """
    Find the first value matching value_pattern after the first anchor line.

    Args:
        document: Raw document text
        anchor_key: Sibling key name identifying the parameter (e.g. "LABELS")
        value_pattern: Compiled regex with a named group "value"

    Returns:
        FieldOccurrence spanning only the value substring, or None if there is
        no anchor or no matching value after it.
    """
    lines = document.splitlines(keepends=True)
    anchor_re = anchor_pattern(anchor_key)

    anchor_line = _find_anchor(lines, anchor_re)
    if anchor_line is None:
        return None

    for idx in range(anchor_line + 1, len(lines)):
        m = value_pattern.search(lines[idx].rstrip("\r\n"))
        if m:
            return FieldOccurrence(
                anchor_line=anchor_line,
                line_index=idx,
                start=m.start("value"),
                end=m.end("value"),
                value=m.group("value"),
            )
    return None


def _find_anchor(lines: List[str], anchor_re: Pattern) -> Optional[int]:
    for idx, line in enumerate(lines):
        if anchor_re.search(line.rstrip("\r\n")):
            return idx
    return None


def replace(document: str, occurrence: FieldOccurrence, new_value: str) -> str:
    """Splice new_value into the occurrence's value span."""
    lines = document.splitlines(keepends=True)
    line = lines[occurrence.line_index]
    lines[occurrence.line_index] = (
        line[: occurrence.start] + new_value + line[occurrence.end :]
    )
    return "".join(lines)


def rewrite(
    document: str, anchor_key: str, value_pattern: Pattern, new_value: str
) -> Tuple[str, Optional[FieldOccurrence]]:
    """
    Locate and replace a value in one step.

    Returns the (possibly unchanged) document and the occurrence that was
    edited. A missing anchor or value is a no-op and is logged.
    """
    occurrence = locate(document, anchor_key, value_pattern)
    if occurrence is None:
        logger.warning(
            f"No value matching '{value_pattern.pattern}' found after anchor "
            f"'name: {anchor_key}'; document left unchanged"
        )
        return document, None
    return replace(document, occurrence, new_value), occurrence
