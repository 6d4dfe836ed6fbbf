# SPDX-FileCopyrightText: Copyright (c) 2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

"""Thin git wrapper: report, stage, commit and push the patched working copy."""

import logging
import shutil
import subprocess
from pathlib import Path
from typing import List

from zstream.errors import ValidationError, ZStreamError

logger = logging.getLogger(__name__)


class GitCommandError(ZStreamError):
    """A git command exited non-zero."""


def ensure_git_available() -> None:
    if shutil.which("git") is None:
        raise ValidationError("git is not installed. Required for --commit")


def run_git(args: List[str], cwd: Path, check: bool = True) -> subprocess.CompletedProcess:
    cmd = ["git"] + args
    logger.debug(f"$ {' '.join(cmd)} (in {cwd})")
    result = subprocess.run(cmd, cwd=cwd, capture_output=True, text=True)
    if check and result.returncode != 0:
        raise GitCommandError(
            f"'{' '.join(cmd)}' failed in {cwd} with exit code {result.returncode}: "
            f"{result.stderr.strip()}"
        )
    return result


def is_git_repo(path: Path) -> bool:
    """Detect if path is inside a Git work tree."""
    if shutil.which("git") is None:
        return False
    result = run_git(["rev-parse", "--is-inside-work-tree"], cwd=path, check=False)
    return result.returncode == 0 and result.stdout.strip() == "true"


def report_changes(repo: Path) -> None:
    """Log `git status` and `git diff --stat` for the operator to review."""
    if not is_git_repo(repo):
        logger.info(f"{repo} is not a git work tree; skipping change report")
        return
    status = run_git(["status", "--short"], cwd=repo).stdout.strip()
    diff_stat = run_git(["diff", "--stat"], cwd=repo).stdout.strip()
    logger.info(f"git status ({repo}):\n{status or '(clean)'}")
    if diff_stat:
        logger.info(f"git diff --stat ({repo}):\n{diff_stat}")


def commit_and_push(repo: Path, message: str, dry_run: bool) -> bool:
    """
    Stage everything, commit, and push the current branch.

    A dry run still commits locally but never pushes.

    Returns:
        True if a commit was created, False if there was nothing to commit.
    """
    if not is_git_repo(repo):
        raise ValidationError(f"{repo} is not a git work tree; cannot commit")

    run_git(["add", "-A"], cwd=repo)
    staged = run_git(["diff", "--cached", "--quiet"], cwd=repo, check=False)
    if staged.returncode == 0:
        logger.info(f"{repo}: nothing to commit")
        return False

    run_git(["commit", "-m", message], cwd=repo)
    logger.info(f"{repo}: committed '{message}'")

    if dry_run:
        logger.info(f"[dry-run] {repo}: skipping git push")
    else:
        run_git(["push", "origin", "HEAD"], cwd=repo)
        logger.info(f"{repo}: pushed")
    return True
