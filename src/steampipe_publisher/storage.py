"""Build description files (YAML) for repeatable uploads."""

import logging
from pathlib import Path

import yaml
from pydantic import ValidationError

from .models import BuildSpec, ManifestValidationError

logger = logging.getLogger(__name__)


def load_build_spec(path: Path) -> BuildSpec:
    """Load a BuildSpec from a YAML build description.

    Example:
        app_id: "480"
        description: Nightly
        content_root: /builds/nightly
        branch: beta
        depots:
          - id: "481"
            exclude_pattern: "*.pdb"

    Raises:
        ManifestValidationError: If the file is missing, not YAML, or has invalid fields
    """
    path = Path(path)
    if not path.is_file():
        raise ManifestValidationError(f"Build description not found: {path}", {"path": str(path)})

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ManifestValidationError(
                f"Build description must be a mapping: {path}", {"path": str(path)}
            )
        spec = BuildSpec(**data)
    except (yaml.YAMLError, ValidationError) as e:
        raise ManifestValidationError(
            f"Invalid build description {path}: {e}", {"path": str(path)}
        ) from e

    logger.debug(f"Loaded build description for app {spec.app_id} from {path}")
    return spec


def save_build_spec(spec: BuildSpec, path: Path) -> Path:
    """Save a BuildSpec as a YAML build description."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, "w", encoding="utf-8") as f:
        yaml.dump(spec.model_dump(), f, default_flow_style=False, allow_unicode=True, sort_keys=False)

    return path
