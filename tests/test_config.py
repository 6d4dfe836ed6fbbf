# SPDX-FileCopyrightText: Copyright (c) 2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

import pytest
from pydantic import ValidationError as PydanticValidationError

from zstream.config import ZStreamConfig
from zstream.errors import ValidationError
from zstream.version import SemanticVersion

pytestmark = [
    pytest.mark.unit,
    pytest.mark.pre_merge,
]


class TestValidation:
    @pytest.mark.parametrize(
        "branch", ["rhoai-2", "release-2.24", "rhoai-2.24.1", "rhoai-v2.24", ""]
    )
    def test_bad_branch(self, make_config, pipelineruns_dir, branch):
        with pytest.raises(ValidationError, match="Invalid branch"):
            make_config(branch=branch, pipelineruns_dir=pipelineruns_dir)

    def test_pipelineruns_dir_required(self, make_config):
        with pytest.raises(ValidationError, match="pipelineruns_dir is required"):
            make_config()

    def test_pipelineruns_dir_optional_for_rbc_only(self, make_config, rbc_dir):
        config = make_config(rbc_dir=rbc_dir, update_rbc=True)
        assert config.pipelineruns_dir is None

    def test_missing_pipelineruns_dir(self, make_config, tmp_path):
        with pytest.raises(ValidationError, match="does not exist"):
            make_config(pipelineruns_dir=tmp_path / "missing")

    def test_update_rbc_requires_rbc_dir(self, make_config, pipelineruns_dir):
        with pytest.raises(ValidationError, match="rbc_dir is required"):
            make_config(pipelineruns_dir=pipelineruns_dir, update_rbc=True)

    def test_missing_rbc_dir(self, make_config, tmp_path):
        with pytest.raises(ValidationError, match="RBC directory"):
            make_config(rbc_dir=tmp_path / "missing", update_rbc=True)

    def test_update_fragments_requires_a_directory(self, make_config, pipelineruns_dir):
        with pytest.raises(ValidationError, match="fragment_dir is required"):
            make_config(pipelineruns_dir=pipelineruns_dir, update_fragments=True)

    @pytest.mark.parametrize("new_version", ["2.24", "latest", "2.24.6.1"])
    def test_bad_new_version(self, make_config, rbc_dir, new_version):
        with pytest.raises(ValidationError, match="Invalid version"):
            make_config(rbc_dir=rbc_dir, update_rbc=True, new_version=new_version)


class TestDerivedValues:
    def test_branch_tokens(self, make_config, pipelineruns_dir):
        config = make_config(pipelineruns_dir=pipelineruns_dir)
        assert config.major_minor == (2, 24)
        assert config.hyphenated_version == "v2-24"
        assert config.fragment_version_token == "2-24"
        assert config.target_version is None

    def test_target_version(self, make_config, rbc_dir):
        config = make_config(rbc_dir=rbc_dir, update_rbc=True, new_version="2.24.6")
        assert config.target_version == SemanticVersion(2, 24, 6)

    def test_fragment_dir_defaults_to_rbc_tekton(self, make_config, rbc_dir):
        config = make_config(rbc_dir=rbc_dir, update_fragments=True)
        assert config.resolved_fragment_dir == rbc_dir / ".tekton"

    def test_explicit_fragment_dir_wins(self, make_config, rbc_dir, tmp_path):
        config = make_config(
            rbc_dir=rbc_dir, fragment_dir=tmp_path, update_fragments=True
        )
        assert config.resolved_fragment_dir == tmp_path

    def test_frozen(self, make_config, pipelineruns_dir):
        config = make_config(pipelineruns_dir=pipelineruns_dir)
        with pytest.raises(PydanticValidationError):
            config.branch = "rhoai-2.25"


class TestEnvironment:
    def test_dry_run_defaults_off(self, make_config, pipelineruns_dir):
        config = make_config(pipelineruns_dir=pipelineruns_dir)
        assert config.dry_run is False
        assert config.github_output is None

    def test_dry_run_from_env(self, monkeypatch, make_config, pipelineruns_dir):
        monkeypatch.setenv("ZSTREAM_DRY_RUN", "1")
        assert make_config(pipelineruns_dir=pipelineruns_dir).dry_run is True

    def test_explicit_dry_run_overrides_env(
        self, monkeypatch, make_config, pipelineruns_dir
    ):
        monkeypatch.setenv("ZSTREAM_DRY_RUN", "1")
        config = make_config(pipelineruns_dir=pipelineruns_dir, dry_run=False)
        assert config.dry_run is False

    def test_github_output_from_env(
        self, monkeypatch, make_config, pipelineruns_dir, tmp_path
    ):
        monkeypatch.setenv("GITHUB_OUTPUT", str(tmp_path / "out"))
        config = make_config(pipelineruns_dir=pipelineruns_dir)
        assert config.github_output == tmp_path / "out"
