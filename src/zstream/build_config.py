# SPDX-FileCopyrightText: Copyright (c) 2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

"""
Z-stream update of the RHOAI-Build-Config patch set.

Three sub-edits are applied for a target version X.Y.Z:

    config/*-pig-build-config.yaml   first line "#!productVersion=X.Y.Z"
    bundle/bundle-patch.yaml         patch.version = X.Y.Z
    catalog/catalog-patch.yaml       every channel entry is moved up the
                                     upgrade graph:
                                       replaces  = <old name>
                                       name      = rhods-operator.X.Y.Z
                                       skipRange = ">=<old floor> <X.Y.Z"

The bundle and catalog are machine-generated and tolerate a pyyaml round
trip; headers are rewritten as text.
"""

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

from zstream.config import ZStreamConfig
from zstream.env_utils import append_ci_outputs
from zstream.errors import (
    MissingFieldError,
    StructuralAmbiguityError,
    VerificationError,
)
from zstream.staging import StagedWrites, read_document, write_document
from zstream.version import EMBEDDED_VERSION_RE, SemanticVersion

logger = logging.getLogger(__name__)

PRODUCT_VERSION_HEADER_RE = re.compile(r"^#!productVersion=.*$")

SKIP_RANGE_FLOOR_RE = re.compile(r"^\s*(?P<floor>>=\s*v?\d+\.\d+\.\d+)")

# Channel list locations seen in catalog-patch.yaml
PATCH_CHANNELS_KEY = "olm.channels"


@dataclass
class CatalogEntryUpdate:
    channel: str
    channel_index: int
    index: int
    old_name: str
    new_name: str
    replaces: str
    skip_range: str


@dataclass
class BuildConfigResult:
    new_version: Optional[SemanticVersion] = None
    files_updated: List[Path] = field(default_factory=list)
    changes: List[str] = field(default_factory=list)
    entries: List[CatalogEntryUpdate] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


def skip_range_floor(skip_range: Optional[str]) -> Optional[str]:
    """'>=2.24.0 <2.24.5' -> '>=2.24.0'."""
    if not skip_range:
        return None
    m = SKIP_RANGE_FLOOR_RE.match(str(skip_range))
    return m.group("floor") if m else None


def rename_entry(old_name: str, target: SemanticVersion) -> str:
    """Swap the version embedded in an entry name, keeping the operator prefix.

    rhods-operator.2.24.5 -> rhods-operator.2.24.6
    """
    matches = list(EMBEDDED_VERSION_RE.finditer(old_name))
    if not matches:
        raise StructuralAmbiguityError(
            f"Catalog entry name '{old_name}' does not embed a major.minor.patch version"
        )
    m = matches[-1]
    prefix = "v" if m.group(0).startswith("v") else ""
    return f"{old_name[: m.start()]}{prefix}{target}{old_name[m.end() :]}"


def find_channels(doc: Any) -> Tuple[str, List[Any]]:
    """
    Locate the channel list of a catalog patch document.

    Two layouts are recognised:
        patch: {"olm.channels": [...]}   literal dotted key under "patch"
        olm: {channels: [...]}           nested at the document root

    Returns:
        (layout description, channel list)

    Raises:
        StructuralAmbiguityError if neither or both layouts are present.
    """
    if not isinstance(doc, dict):
        raise StructuralAmbiguityError("Catalog patch is not a YAML mapping")

    candidates = []
    patch = doc.get("patch")
    if isinstance(patch, dict) and PATCH_CHANNELS_KEY in patch:
        candidates.append((f'patch."{PATCH_CHANNELS_KEY}"', patch[PATCH_CHANNELS_KEY]))
    olm = doc.get("olm")
    if isinstance(olm, dict) and "channels" in olm:
        candidates.append(("olm.channels", olm["channels"]))

    if not candidates:
        raise StructuralAmbiguityError(
            "Catalog patch has no channel list (expected patch.\"olm.channels\" "
            "or olm.channels)"
        )
    if len(candidates) > 1:
        raise StructuralAmbiguityError(
            "Catalog patch has both patch.\"olm.channels\" and olm.channels; "
            "refusing to guess which one is authoritative"
        )

    layout, channels = candidates[0]
    if not isinstance(channels, list):
        raise StructuralAmbiguityError(f"Catalog {layout} is not a list")
    return layout, channels


def _leading_comments(content: str) -> str:
    """Comment block at the top of a file, which a pyyaml round trip would drop."""
    header = []
    for line in content.splitlines(keepends=True):
        if line.startswith("#"):
            header.append(line)
        else:
            break
    return "".join(header)


def dump_yaml(doc: Any, original: str) -> str:
    return _leading_comments(original) + yaml.safe_dump(
        doc, sort_keys=False, default_flow_style=False
    )


def load_yaml(path: Path) -> Tuple[str, Any]:
    content = read_document(path)
    try:
        return content, yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise StructuralAmbiguityError(f"YAML parsing error in {path}: {e}") from e


class BuildConfigPatchApplier:
    """Applies the z-stream version to a RHOAI-Build-Config checkout."""

    def __init__(self, config: ZStreamConfig):
        self.config = config
        self.rbc_dir = config.rbc_dir

    @property
    def bundle_path(self) -> Path:
        return self.rbc_dir / self.config.bundle_patch

    @property
    def catalog_path(self) -> Path:
        return self.rbc_dir / self.config.catalog_patch

    # ------------------------------------------------------------------
    # Version derivation
    # ------------------------------------------------------------------

    def read_current_version(self) -> SemanticVersion:
        """Current version from bundle patch.version, else the first catalog entry."""
        if self.bundle_path.exists():
            try:
                _, bundle = load_yaml(self.bundle_path)
            except StructuralAmbiguityError as e:
                logger.warning(f"Cannot read version from bundle: {e}")
                bundle = None
            patch = bundle.get("patch") if isinstance(bundle, dict) else None
            version = patch.get("version") if isinstance(patch, dict) else None
            if version not in (None, ""):
                return SemanticVersion.parse(str(version))

        if self.catalog_path.exists():
            _, catalog = load_yaml(self.catalog_path)
            try:
                _, channels = find_channels(catalog)
            except StructuralAmbiguityError as e:
                logger.warning(f"Cannot read version from catalog: {e}")
                channels = []
            if channels and isinstance(channels[0], dict):
                entries = channels[0].get("entries") or []
                if entries and isinstance(entries[0], dict) and entries[0].get("name"):
                    return SemanticVersion.search(str(entries[0]["name"]))

        raise MissingFieldError(
            f"Could not determine the current version from {self.bundle_path} "
            f"or {self.catalog_path}"
        )

    def resolve_target_version(self) -> SemanticVersion:
        target = self.config.target_version
        if target is None:
            current = self.read_current_version()
            target = current.bump_patch()
            logger.warning(
                f"New version not provided, derived {target} from current version "
                f"{current}. Consider providing -v for an explicit version"
            )

        major, minor = self.config.major_minor
        if not target.same_stream(major, minor):
            logger.warning(
                f"Target version {target} is outside branch {self.config.branch}"
            )
        return target

    # ------------------------------------------------------------------
    # Sub-edits
    # ------------------------------------------------------------------

    def rewrite_header(self, content: str, target: SemanticVersion) -> str:
        lines = content.splitlines(keepends=True)
        first = lines[0].rstrip("\r\n") if lines else ""
        if not PRODUCT_VERSION_HEADER_RE.match(first):
            raise StructuralAmbiguityError(
                "first line is not a '#!productVersion=' comment"
            )
        ending = lines[0][len(first) :]
        lines[0] = f"#!productVersion={target}{ending}"
        return "".join(lines)

    def rewrite_bundle(self, doc: Any, target: SemanticVersion) -> None:
        patch = doc.get("patch") if isinstance(doc, dict) else None
        if not isinstance(patch, dict):
            raise StructuralAmbiguityError("bundle patch has no 'patch' mapping")
        patch["version"] = str(target)

    def update_catalog(
        self, doc: Any, target: SemanticVersion, result: BuildConfigResult
    ) -> List[CatalogEntryUpdate]:
        """Move every channel entry one step up the upgrade graph, in place."""
        layout, channels = find_channels(doc)
        logger.info(f"Catalog channels found at {layout}: {len(channels)}")

        updates = []
        for i, channel in enumerate(channels):
            if not isinstance(channel, dict) or not isinstance(
                channel.get("entries"), list
            ):
                self._warn(result, f"Catalog channel {i} has no entries list. Skipping")
                continue
            channel_name = str(channel.get("name", i))
            logger.info(f"  Processing channel {channel_name}")

            for j, entry in enumerate(channel["entries"]):
                old_name = entry.get("name") if isinstance(entry, dict) else None
                if not old_name:
                    self._warn(
                        result,
                        f"Channel {channel_name} entry {j} has no name. Skipping",
                    )
                    continue
                old_name = str(old_name)

                try:
                    new_name = rename_entry(old_name, target)
                except StructuralAmbiguityError as e:
                    self._warn(result, f"Channel {channel_name} entry {j}: {e}")
                    continue

                floor = skip_range_floor(entry.get("skipRange"))
                if floor is None:
                    floor = self.config.skip_range_floor
                new_skip_range = f"{floor} <{target}"

                entry["replaces"] = old_name
                entry["name"] = new_name
                entry["skipRange"] = new_skip_range

                updates.append(
                    CatalogEntryUpdate(
                        channel=channel_name,
                        channel_index=i,
                        index=j,
                        old_name=old_name,
                        new_name=new_name,
                        replaces=old_name,
                        skip_range=new_skip_range,
                    )
                )
                logger.info(
                    f"    Entry {j}: {old_name} -> {new_name} "
                    f"(replaces: {old_name}, skipRange: {new_skip_range})"
                )
        return updates

    def verify_catalog_chain(self, updates: List[CatalogEntryUpdate]) -> None:
        """Re-read the written catalog; re-write any replaces that drifted."""
        content, doc = load_yaml(self.catalog_path)
        _, channels = find_channels(doc)

        drifted = self._drifted_entries(channels, updates)
        if not drifted:
            return

        for entry, update in drifted:
            logger.warning(
                f"Channel {update.channel} entry {update.index}: replaces is "
                f"{entry.get('replaces')}, re-writing {update.old_name}"
            )
            entry["replaces"] = update.old_name
        write_document(self.catalog_path, dump_yaml(doc, content))

        _, doc = load_yaml(self.catalog_path)
        _, channels = find_channels(doc)
        if self._drifted_entries(channels, updates):
            raise VerificationError(
                f"{self.catalog_path}: replaces does not match the previous entry name "
                "after re-write"
            )

    @staticmethod
    def _drifted_entries(
        channels: List[Any], updates: List[CatalogEntryUpdate]
    ) -> List[Tuple[Dict[str, Any], CatalogEntryUpdate]]:
        drifted = []
        for update in updates:
            channel = (
                channels[update.channel_index]
                if update.channel_index < len(channels)
                else None
            )
            entries = channel.get("entries") if isinstance(channel, dict) else None
            if not isinstance(entries, list) or update.index >= len(entries):
                raise VerificationError(
                    f"Catalog channel {update.channel} entry {update.index} "
                    "disappeared after write"
                )
            entry = entries[update.index]
            if entry.get("replaces") != update.old_name:
                drifted.append((entry, update))
        return drifted

    @staticmethod
    def _warn(result: BuildConfigResult, message: str) -> None:
        logger.warning(message)
        result.warnings.append(message)

    # ------------------------------------------------------------------
    # Orchestration
    # ------------------------------------------------------------------

    def run(self) -> BuildConfigResult:
        logger.info(f">> Updating RHOAI-Build-Config patch files in {self.rbc_dir}")
        result = BuildConfigResult()
        target = self.resolve_target_version()
        result.new_version = target
        logger.info(f"New version: {target}")

        staged = StagedWrites()
        self._stage_headers(target, staged, result)
        self._stage_bundle(target, staged, result)
        updates = self._stage_catalog(target, staged, result)

        result.files_updated = staged.apply()
        result.changes = list(staged.changes)
        if updates:
            self.verify_catalog_chain(updates)
        result.entries = updates

        logger.info(f"Build config: {len(result.files_updated)} file(s) updated")
        append_ci_outputs(
            self.config.github_output,
            {"files_updated": len(result.files_updated), "new_version": target},
        )
        return result

    def _stage_headers(
        self, target: SemanticVersion, staged: StagedWrites, result: BuildConfigResult
    ) -> None:
        for rel in self.config.header_files:
            path = self.rbc_dir / rel
            if not path.exists():
                self._warn(result, f"{rel} not found")
                continue
            content = read_document(path)
            try:
                new_content = self.rewrite_header(content, target)
            except StructuralAmbiguityError as e:
                self._warn(result, f"{rel}: {e}")
                continue
            if new_content != content:
                staged.stage(path, new_content, f"{rel}: productVersion -> {target}")

    def _stage_bundle(
        self, target: SemanticVersion, staged: StagedWrites, result: BuildConfigResult
    ) -> None:
        path = self.bundle_path
        if not path.exists():
            self._warn(result, f"{self.config.bundle_patch} not found")
            return
        try:
            content, doc = load_yaml(path)
            self.rewrite_bundle(doc, target)
        except StructuralAmbiguityError as e:
            self._warn(result, f"{self.config.bundle_patch}: {e}")
            return
        staged.stage(
            path,
            dump_yaml(doc, content),
            f"{self.config.bundle_patch}: patch.version -> {target}",
        )

    def _stage_catalog(
        self, target: SemanticVersion, staged: StagedWrites, result: BuildConfigResult
    ) -> List[CatalogEntryUpdate]:
        path = self.catalog_path
        if not path.exists():
            self._warn(result, f"{self.config.catalog_patch} not found")
            return []
        try:
            content, doc = load_yaml(path)
            updates = self.update_catalog(doc, target, result)
        except StructuralAmbiguityError as e:
            self._warn(result, f"{self.config.catalog_patch}: {e}")
            return []
        if updates:
            staged.stage(
                path,
                dump_yaml(doc, content),
                f"{self.config.catalog_patch}: {len(updates)} entry(ies) -> {target}",
            )
        return updates
