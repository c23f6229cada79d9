"""Shared helpers for CLI commands."""

import logging
from typing import Any

import typer

from wordwise.application.config import AppConfig, resolve_config
from wordwise.domain.review.models import Grade


def _resolve_with_overrides(verbose: int = 1, **kwargs: Any) -> AppConfig:
    """Resolve config with CLI overrides and apply the log level."""
    overrides = {k: v for k, v in kwargs.items() if v is not None}
    overrides["verbose"] = verbose
    config = resolve_config(overrides)

    if config.verbose >= 2:
        logging.getLogger().setLevel(logging.DEBUG)
    return config


def parse_grade(value: str) -> Grade:
    """Parse a grade name, failing with a usage error for unknown values."""
    try:
        return Grade(value.strip().lower())
    except ValueError:
        choices = ", ".join(g.value for g in Grade)
        raise typer.BadParameter(f"'{value}' is not a grade. Choose from: {choices}") from None
