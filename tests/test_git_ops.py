# SPDX-FileCopyrightText: Copyright (c) 2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

"""Tests for the git wrapper, with subprocess calls replaced by a recorder."""

import subprocess

import pytest

from zstream import git_ops
from zstream.errors import ValidationError

pytestmark = [
    pytest.mark.unit,
    pytest.mark.pre_merge,
]


class FakeGit:
    """Records git invocations and answers with canned results."""

    def __init__(self, in_repo=True, has_staged_changes=True, fail_on=None):
        self.in_repo = in_repo
        self.has_staged_changes = has_staged_changes
        self.fail_on = fail_on
        self.calls = []

    def __call__(self, cmd, cwd=None, capture_output=False, text=False):
        self.calls.append(cmd[1:])
        returncode, stdout = 0, ""
        if cmd[1] == "rev-parse":
            returncode, stdout = (0, "true\n") if self.in_repo else (128, "")
        elif cmd[1:3] == ["diff", "--cached"]:
            returncode = 1 if self.has_staged_changes else 0
        elif cmd[1] == self.fail_on:
            returncode = 1
        return subprocess.CompletedProcess(cmd, returncode, stdout, "boom")

    def subcommands(self):
        return [call[0] for call in self.calls]


@pytest.fixture
def fake_git(monkeypatch):
    def _install(**kwargs):
        fake = FakeGit(**kwargs)
        monkeypatch.setattr(git_ops.shutil, "which", lambda name: "/usr/bin/git")
        monkeypatch.setattr(git_ops.subprocess, "run", fake)
        return fake

    return _install


class TestCommitAndPush:
    def test_commit_and_push(self, fake_git, tmp_path):
        fake = fake_git()
        assert git_ops.commit_and_push(tmp_path, "Apply changes", dry_run=False)
        assert ["add", "-A"] in fake.calls
        assert ["commit", "-m", "Apply changes"] in fake.calls
        assert fake.calls[-1] == ["push", "origin", "HEAD"]

    def test_dry_run_commits_without_push(self, fake_git, tmp_path):
        fake = fake_git()
        assert git_ops.commit_and_push(tmp_path, "Apply changes", dry_run=True)
        assert "commit" in fake.subcommands()
        assert "push" not in fake.subcommands()

    def test_nothing_to_commit(self, fake_git, tmp_path):
        fake = fake_git(has_staged_changes=False)
        assert not git_ops.commit_and_push(tmp_path, "Apply changes", dry_run=False)
        assert "commit" not in fake.subcommands()
        assert "push" not in fake.subcommands()

    def test_not_a_repository(self, fake_git, tmp_path):
        fake_git(in_repo=False)
        with pytest.raises(ValidationError, match="not a git work tree"):
            git_ops.commit_and_push(tmp_path, "Apply changes", dry_run=False)

    def test_failed_push_raises(self, fake_git, tmp_path):
        fake_git(fail_on="push")
        with pytest.raises(git_ops.GitCommandError, match="boom"):
            git_ops.commit_and_push(tmp_path, "Apply changes", dry_run=False)


def test_report_changes_outside_repo_is_quiet(fake_git, tmp_path):
    fake = fake_git(in_repo=False)
    git_ops.report_changes(tmp_path)
    assert fake.subcommands() == ["rev-parse"]


def test_report_changes_runs_status_and_diff(fake_git, tmp_path):
    fake = fake_git()
    git_ops.report_changes(tmp_path)
    assert fake.subcommands() == ["rev-parse", "status", "diff"]


def test_ensure_git_available(monkeypatch):
    monkeypatch.setattr(git_ops.shutil, "which", lambda name: None)
    with pytest.raises(ValidationError, match="git is not installed"):
        git_ops.ensure_git_available()
