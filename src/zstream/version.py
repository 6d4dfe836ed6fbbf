# SPDX-FileCopyrightText: Copyright (c) 2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

"""
Version arithmetic for z-stream releases.

Version format conventions:
    Build-config (bundle, catalog, headers):  2.24.6
    Pipeline labels (version=, VERSION=):    v2.24.6
"""

import re
from dataclasses import dataclass
from enum import Enum

from zstream.errors import ParseError

# X.Y.Z with an optional leading "v"
VERSION_RE = re.compile(r"^v?(?P<major>\d+)\.(?P<minor>\d+)\.(?P<patch>\d+)$")

# Same pattern, unanchored, for versions embedded in a larger string
EMBEDDED_VERSION_RE = re.compile(r"v?(?P<major>\d+)\.(?P<minor>\d+)\.(?P<patch>\d+)")


class VersionProfile(str, Enum):
    BUILD_CONFIG = "build-config"
    PIPELINE_LABEL = "pipeline-label"


@dataclass(frozen=True, order=True)
class SemanticVersion:
    major: int
    minor: int
    patch: int

    @classmethod
    def parse(cls, text: str) -> "SemanticVersion":
        """Parse "X.Y.Z" or "vX.Y.Z", ignoring surrounding whitespace and quotes."""
        if text is None:
            raise ParseError("Cannot parse version from an empty value")
        cleaned = str(text).strip().strip("\"'")
        m = VERSION_RE.match(cleaned)
        if not m:
            raise ParseError(
                f"Invalid version '{text}': expected major.minor.patch (e.g. 2.24.5 or v2.24.5)"
            )
        return cls(int(m.group("major")), int(m.group("minor")), int(m.group("patch")))

    @classmethod
    def search(cls, text: str) -> "SemanticVersion":
        """Find the last version embedded in text (e.g. 'rhods-operator.2.24.5')."""
        matches = list(EMBEDDED_VERSION_RE.finditer(text or ""))
        if not matches:
            raise ParseError(f"No major.minor.patch version found in '{text}'")
        m = matches[-1]
        return cls(int(m.group("major")), int(m.group("minor")), int(m.group("patch")))

    def bump_patch(self) -> "SemanticVersion":
        return SemanticVersion(self.major, self.minor, self.patch + 1)

    def format(self, profile: VersionProfile = VersionProfile.BUILD_CONFIG) -> str:
        core = f"{self.major}.{self.minor}.{self.patch}"
        if profile == VersionProfile.PIPELINE_LABEL:
            return f"v{core}"
        return core

    def same_stream(self, major: int, minor: int) -> bool:
        """True if this version belongs to the major.minor release line."""
        return self.major == major and self.minor == minor

    def __str__(self) -> str:
        return self.format(VersionProfile.BUILD_CONFIG)


def has_v_prefix(text: str) -> bool:
    """Check whether a raw version value is written with a leading 'v'."""
    return str(text).strip().strip("\"'").startswith("v")
