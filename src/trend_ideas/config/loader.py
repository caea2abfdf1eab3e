"""YAML configuration loading utilities."""

from pathlib import Path

import yaml

from trend_ideas.config.models import TrendIdeasConfig


def load_config(path: Path | str) -> TrendIdeasConfig:
    """Load configuration from YAML file.

    Args:
        path: Path to YAML config file.

    Returns:
        Validated TrendIdeasConfig.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        pydantic.ValidationError: If config is invalid.
    """
    path = Path(path)
    with path.open() as f:
        raw = yaml.safe_load(f)

    # An empty file means all defaults
    return TrendIdeasConfig.model_validate(raw or {})


def get_default_config_path() -> Path:
    """Get path to default config file."""
    return Path(__file__).parent.parent.parent.parent / "configs" / "default.yaml"
