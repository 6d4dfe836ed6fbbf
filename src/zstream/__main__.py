# SPDX-FileCopyrightText: Copyright (c) 2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""
RHOAI z-stream version propagation.

Bumps the patch version of a release branch across component Tekton
PipelineRuns, FBC fragments and the RHOAI-Build-Config patch set.

Usage:
    # Component PipelineRuns only
    zstream-bump -b rhoai-2.24 -d pipelineruns

    # PipelineRuns and RHOAI-Build-Config, version derived from bundle-patch.yaml
    zstream-bump -b rhoai-2.24 -d pipelineruns -r RHOAI-Build-Config --update-rbc

    # RHOAI-Build-Config only, explicit version, fragments too, commit without push
    zstream-bump -b rhoai-2.24 -r RHOAI-Build-Config -v 2.24.6 \\
        --update-rbc --update-fragments --commit --dry-run

Exit codes:
    0 OK
    1 Failure (validation error, missing tool or directory, fatal patch
      failure, verification mismatch)
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from zstream import git_ops
from zstream.build_config import BuildConfigPatchApplier
from zstream.config import ZStreamConfig, ZStreamDefaults
from zstream.errors import EXIT_FAILURE, EXIT_OK, ZStreamError
from zstream.fragments import FragmentVersionPatcher
from zstream.pipelines import PipelineArtifactPatcher

logger = logging.getLogger(__name__)


class _ArgumentParser(argparse.ArgumentParser):
    """Usage errors are validation failures: exit 1, not argparse's 2."""

    def error(self, message):
        self.print_usage(sys.stderr)
        self.exit(EXIT_FAILURE, f"{self.prog}: error: {message}\n")


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="zstream-bump",
        description="Apply z-stream (patch release) version changes for an RHOAI branch",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "-b",
        "--branch",
        required=True,
        help="Release branch, e.g. 'rhoai-2.24'",
    )
    parser.add_argument(
        "-d",
        "--pipelineruns-dir",
        type=Path,
        help="Directory of component folders, each with a .tekton directory",
    )
    parser.add_argument(
        "-r", "--rbc-dir", type=Path, help="Path to the RHOAI-Build-Config repository"
    )
    parser.add_argument(
        "-f",
        "--fragment-dir",
        type=Path,
        help="Directory of FBC fragment PipelineRuns (default: <rbc-dir>/.tekton)",
    )
    parser.add_argument(
        "-v",
        "--new-version",
        help="Build-config target version, e.g. '2.24.6' (derived if omitted)",
    )
    parser.add_argument(
        "--update-rbc",
        action="store_true",
        help="Update RHOAI-Build-Config headers, bundle and catalog patches",
    )
    parser.add_argument(
        "--update-fragments",
        action="store_true",
        help="Bump the product version parameter in FBC fragment PipelineRuns",
    )
    parser.add_argument(
        "--fragment-param",
        default=ZStreamDefaults.fragment_param,
        help="Fragment version parameter name (default: %(default)s)",
    )
    parser.add_argument(
        "--commit",
        action="store_true",
        help="Stage and commit the changes in each touched repository, then push",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        default=None,
        help="Commit locally but do not push (also ZSTREAM_DRY_RUN=1)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: %(default)s)",
    )
    return parser


def config_from_args(args: argparse.Namespace) -> ZStreamConfig:
    kwargs = dict(
        branch=args.branch,
        pipelineruns_dir=args.pipelineruns_dir,
        rbc_dir=args.rbc_dir,
        fragment_dir=args.fragment_dir,
        new_version=args.new_version,
        update_rbc=args.update_rbc,
        update_fragments=args.update_fragments,
        fragment_param=args.fragment_param,
        commit=args.commit,
    )
    # Leave dry_run unset so the environment toggle applies
    if args.dry_run:
        kwargs["dry_run"] = True
    return ZStreamConfig.create(**kwargs)


def _commit(repo: Path, config: ZStreamConfig, what: str) -> None:
    message = f"Apply z-stream {what} changes for {config.branch}"
    git_ops.commit_and_push(repo, message, dry_run=config.dry_run)


def run(config: ZStreamConfig) -> int:
    """Run every enabled activity; a failure in one does not cancel the others.

    Filesystem errors (unreadable or unwritable files) count as activity
    failures, like ZStreamError.
    """
    failures: List[str] = []
    rbc_touched = False

    if config.pipelineruns_dir is not None:
        print("\n=== Component PipelineRuns ===")
        try:
            result = PipelineArtifactPatcher(config).run()
            git_ops.report_changes(config.pipelineruns_dir)
            if config.commit and result.updated:
                _commit(config.pipelineruns_dir, config, "pipelinerun")
        except (ZStreamError, OSError) as e:
            logger.error(f"PipelineRun patching aborted: {e}")
            failures.append("pipelineruns")

    if config.update_fragments:
        print("\n=== FBC fragments ===")
        try:
            result = FragmentVersionPatcher(config).run()
            rbc_touched = rbc_touched or bool(result.updated)
        except (ZStreamError, OSError) as e:
            logger.error(f"Fragment patching aborted: {e}")
            failures.append("fragments")

    if config.update_rbc:
        print("\n=== RHOAI-Build-Config patch files ===")
        try:
            result = BuildConfigPatchApplier(config).run()
            rbc_touched = rbc_touched or bool(result.files_updated)
        except (ZStreamError, OSError) as e:
            logger.error(f"Build-config patching aborted: {e}")
            failures.append("build-config")

    if rbc_touched and config.rbc_dir is not None:
        try:
            git_ops.report_changes(config.rbc_dir)
            if config.commit:
                _commit(config.rbc_dir, config, "build-config")
        except (ZStreamError, OSError) as e:
            logger.error(f"Committing RHOAI-Build-Config changes failed: {e}")
            failures.append("rbc-commit")

    print(f"\n{'=' * 60}")
    if failures:
        print(f"FAILED: {', '.join(failures)}")
        print(f"{'=' * 60}")
        return EXIT_FAILURE
    print(f"{'DRY RUN ' if config.dry_run else ''}Done: z-stream changes applied")
    print(f"{'=' * 60}")
    return EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s - %(levelname)s - %(message)s",
    )

    try:
        config = config_from_args(args)
        if config.commit:
            git_ops.ensure_git_available()
    except ZStreamError as e:
        logger.error(str(e))
        return EXIT_FAILURE

    return run(config)


if __name__ == "__main__":
    sys.exit(main())
