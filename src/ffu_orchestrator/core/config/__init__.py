"""Configuration models for ffu-orchestrator.

This package provides dataconf-based configuration models for defining
image builds in a type-safe, declarative manner using HOCON format.
"""

from ffu_orchestrator.core.config.base import ErrorCategory, LogFormat, LogLevel, RemediationKind
from ffu_orchestrator.core.config.build import BuildConfig
from ffu_orchestrator.core.config.loader import load_from_env, load_from_file, load_from_string
from ffu_orchestrator.core.config.logging_config import LoggingConfig
from ffu_orchestrator.core.config.presets import RetryPolicies
from ffu_orchestrator.core.config.remediation import RemediationConfig
from ffu_orchestrator.core.config.retry import RetryConfig
from ffu_orchestrator.core.config.stage import StageConfig

__all__ = [
    "BuildConfig",
    "ErrorCategory",
    "LogFormat",
    "LogLevel",
    "LoggingConfig",
    "RemediationConfig",
    "RemediationKind",
    "RetryConfig",
    "RetryPolicies",
    "StageConfig",
    "load_from_env",
    "load_from_file",
    "load_from_string",
]
