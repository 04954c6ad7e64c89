"""Reporter configuration."""

import logging
import os
from typing import Any, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


logger = logging.getLogger(__name__)

OPTIONS_ENV_VAR = "TESTLENS_REPORTER_OPTIONS"

# node-style option names -> settings fields
_OPTION_FIELDS = {
    "timeout-warning": "timeout_warning_ms",
    "stuck-threshold": "stuck_threshold_ms",
    "show-passing": "show_passing",
    "show-skip": "show_skip",
    "progress": "progress",
    "slow-limit": "slow_test_limit",
}


class ReporterSettings(BaseSettings):
    """Configuration for the reporter.

    Loads from environment variables automatically:
        TESTLENS_TIMEOUT_WARNING_MS, TESTLENS_STUCK_THRESHOLD_MS,
        TESTLENS_SHOW_PASSING, TESTLENS_SHOW_SKIP, TESTLENS_PROGRESS,
        TESTLENS_SLOW_TEST_LIMIT
    """

    timeout_warning_ms: int = Field(
        default=5000, ge=0, description="Completed tests slower than this are ranked as slow"
    )
    stuck_threshold_ms: int = Field(
        default=30000, ge=0, description="Running tests older than this are flagged as suspicious"
    )
    show_passing: bool = Field(default=True, description="Print passing nested tests")
    show_skip: bool = Field(default=True, description="Print skipped tests")
    progress: Literal["auto", "on", "off"] = Field(
        default="auto", description="Live progress mode; 'auto' enables it on terminals"
    )
    slow_test_limit: int = Field(default=10, ge=0, description="Maximum slow tests in the summary")

    model_config = SettingsConfigDict(
        env_prefix="TESTLENS_",
        extra="forbid",
    )


def parse_reporter_options(options: str | None) -> dict[str, str]:
    """Parse ``key=value,key=value`` into settings field names.

    Unknown keys and entries without ``=`` are ignored.
    """
    parsed: dict[str, str] = {}
    if not options:
        return parsed
    for entry in options.split(","):
        key, sep, value = entry.partition("=")
        key = key.strip()
        if not sep or not key:
            continue
        field_name = _OPTION_FIELDS.get(key, key.replace("-", "_"))
        if field_name not in ReporterSettings.model_fields:
            logger.debug("Ignoring unknown reporter option %r", key)
            continue
        parsed[field_name] = value.strip()
    return parsed


def load_settings(options: str | None = None, **overrides: Any) -> ReporterSettings:
    """Build settings from env, option strings and explicit overrides.

    Priority, lowest first: ``TESTLENS_*`` variables, the
    ``TESTLENS_REPORTER_OPTIONS`` string, ``options``, keyword overrides.

    Raises:
        pydantic.ValidationError: If a value cannot be parsed.
    """
    values: dict[str, Any] = parse_reporter_options(os.environ.get(OPTIONS_ENV_VAR))
    values.update(parse_reporter_options(options))
    values.update({key: value for key, value in overrides.items() if value is not None})
    return ReporterSettings(**values)
