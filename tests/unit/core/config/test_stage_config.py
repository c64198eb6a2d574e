"""Tests for stage, build, retry and remediation configuration models."""

from __future__ import annotations

import pytest

from ffu_orchestrator.core.config import (
    BuildConfig,
    ErrorCategory,
    RemediationConfig,
    RemediationKind,
    RetryConfig,
    RetryPolicies,
    StageConfig,
)
from tests.factories import make_build_config, make_stage_config


class TestStageConfig:
    """Tests for StageConfig validation."""

    def test_command_stage(self) -> None:
        stage = StageConfig(name="copype", command=["copype", "amd64", "C:\\WinPE"])
        assert stage.command == ["copype", "amd64", "C:\\WinPE"]
        assert stage.class_path is None
        assert stage.required is True
        assert stage.enabled is True
        assert stage.max_parallel == 4

    def test_class_path_stage(self) -> None:
        stage = StageConfig(name="capture", class_path="my.steps.Capture", config={"vm": "ffu"})
        assert stage.config == {"vm": "ffu"}

    def test_empty_name_rejected(self) -> None:
        with pytest.raises(ValueError, match="name is required"):
            StageConfig(name="", command=["echo"])

    def test_neither_command_nor_class_path(self) -> None:
        with pytest.raises(ValueError, match="exactly one"):
            StageConfig(name="s")

    def test_both_command_and_class_path(self) -> None:
        with pytest.raises(ValueError, match="exactly one"):
            StageConfig(name="s", command=["echo"], class_path="a.B")

    def test_targets_require_command(self) -> None:
        with pytest.raises(ValueError, match="fan out"):
            StageConfig(name="s", class_path="a.B", targets=["1"])

    def test_max_parallel_must_be_positive(self) -> None:
        with pytest.raises(ValueError, match="max_parallel"):
            make_stage_config(max_parallel=0)

    def test_timeout_must_be_positive(self) -> None:
        with pytest.raises(ValueError, match="timeout_seconds"):
            make_stage_config(timeout_seconds=0)

    def test_negative_free_space_rejected(self) -> None:
        with pytest.raises(ValueError, match="min_free_bytes"):
            make_stage_config(min_free_bytes=-1)


class TestBuildConfig:
    """Tests for BuildConfig validation and lookup helpers."""

    def test_defaults(self) -> None:
        config = make_build_config()
        assert config.default_retry is None
        assert config.report_path is None
        assert config.tags == {}

    def test_requires_stages(self) -> None:
        with pytest.raises(ValueError, match="At least one stage"):
            BuildConfig(name="b", version="1", stages=[])

    def test_requires_version(self) -> None:
        with pytest.raises(ValueError, match="version is required"):
            BuildConfig(name="b", version="", stages=[make_stage_config()])

    def test_duplicate_stage_names(self) -> None:
        with pytest.raises(ValueError, match="unique"):
            make_build_config(stages=[make_stage_config("a"), make_stage_config("a")])

    def test_get_stage(self) -> None:
        config = make_build_config(stages=[make_stage_config("a"), make_stage_config("b")])
        assert config.get_stage("b") is config.stages[1]
        assert config.get_stage("missing") is None

    def test_enabled_stages_preserve_order(self) -> None:
        config = make_build_config(
            stages=[
                make_stage_config("a"),
                make_stage_config("b", enabled=False),
                make_stage_config("c"),
            ]
        )
        assert [s.name for s in config.enabled_stages()] == ["a", "c"]


class TestRetryConfig:
    """Tests for RetryConfig defaults and validation."""

    def test_defaults_retry_once_after_five_seconds(self) -> None:
        config = RetryConfig()
        assert config.max_attempts == 2
        assert config.backoff_seconds == 5.0
        assert config.backoff_multiplier == 1.0
        assert ErrorCategory.RESOURCE_EXHAUSTED in config.fatal_categories
        assert ErrorCategory.DEPENDENCY_UNAVAILABLE in config.fatal_categories

    @pytest.mark.parametrize(
        ("kwargs", "match"),
        [
            ({"max_attempts": 0}, "max_attempts"),
            ({"backoff_seconds": -1.0}, "backoff_seconds"),
            ({"backoff_multiplier": 0.5}, "backoff_multiplier"),
            ({"backoff_seconds": 10.0, "max_backoff_seconds": 5.0}, "max_backoff_seconds"),
        ],
    )
    def test_invalid_values(self, kwargs: dict[str, float], match: str) -> None:
        with pytest.raises(ValueError, match=match):
            RetryConfig(**kwargs)  # type: ignore[arg-type]

    def test_frozen(self) -> None:
        config = RetryConfig()
        with pytest.raises(AttributeError):
            config.max_attempts = 5  # type: ignore[misc]


class TestRetryPolicies:
    """Tests for the preset retry policies."""

    def test_no_retry(self) -> None:
        assert RetryPolicies.NO_RETRY.max_attempts == 1
        assert RetryPolicies.NO_RETRY.backoff_seconds == 0.0

    def test_retry_once_matches_defaults(self) -> None:
        assert RetryPolicies.RETRY_ONCE == RetryConfig()

    def test_network_backs_off_exponentially(self) -> None:
        assert RetryPolicies.NETWORK.max_attempts == 3
        assert RetryPolicies.NETWORK.backoff_multiplier == 2.0

    def test_persistent_is_capped(self) -> None:
        assert RetryPolicies.PERSISTENT.max_backoff_seconds == 60.0


class TestRemediationConfig:
    """Tests for RemediationConfig per-kind validation."""

    def test_remove_paths(self) -> None:
        config = RemediationConfig(step=RemediationKind.REMOVE_PATHS, paths=["C:\\mount"])
        assert config.from_attempt == 1

    def test_remove_paths_requires_paths(self) -> None:
        with pytest.raises(ValueError, match="paths"):
            RemediationConfig(step=RemediationKind.REMOVE_PATHS)

    def test_free_space_requires_threshold(self) -> None:
        with pytest.raises(ValueError, match="min_free_bytes"):
            RemediationConfig(step=RemediationKind.FREE_SPACE, path="C:\\")

    def test_command_requires_command(self) -> None:
        with pytest.raises(ValueError, match="command"):
            RemediationConfig(step=RemediationKind.COMMAND)

    def test_from_attempt_must_be_positive(self) -> None:
        with pytest.raises(ValueError, match="from_attempt"):
            RemediationConfig(step=RemediationKind.COMMAND, command=["dism"], from_attempt=0)

    def test_timeout_must_be_positive(self) -> None:
        with pytest.raises(ValueError, match="timeout_seconds"):
            RemediationConfig(step=RemediationKind.COMMAND, command=["dism"], timeout_seconds=0)
