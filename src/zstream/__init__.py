# SPDX-FileCopyrightText: Copyright (c) 2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

from zstream.version import SemanticVersion, VersionProfile

__version__ = "0.1.0"

__all__ = ["SemanticVersion", "VersionProfile", "__version__"]
