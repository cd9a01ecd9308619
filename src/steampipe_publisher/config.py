"""Configuration management using Pydantic settings."""

import atexit
import shutil
import sys
import tempfile
from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Tool location:
    - steamworks_sdk_folder takes priority over steamcmd_path when both are set
    - with neither set, steamcmd is searched for relative to steampipe_search_root
      (defaults to the directory of the running entry script), the home
      directory, system paths and finally PATH
    """

    model_config = {
        "extra": "ignore",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
    }

    # Tool location
    steamworks_sdk_folder: str = ""
    steamcmd_path: str = ""  # direct path to steamcmd.sh
    steampipe_search_root: str = ""

    # Manifests
    manifest_dir: str = ""  # empty = per-process temp directory

    # Subprocess settings
    terminal_type: str = "xterm"
    stderr_prefix: str = "[STDERR] "
    stream_limit_bytes: int = 1024 * 1024  # longest single output line

    # Development settings
    debug: bool = False
    log_level: str = "INFO"


# Global settings instance
settings = Settings()


def get_config() -> Settings:
    """Get the global configuration instance."""
    return settings


def get_search_root() -> Path:
    """Directory that anchors the relative steamcmd search."""
    if settings.steampipe_search_root:
        return Path(settings.steampipe_search_root).expanduser()
    return Path(sys.argv[0] or ".").resolve().parent


_process_manifest_dir: Path | None = None


def get_manifest_dir() -> Path:
    """Directory generated manifests are written to.

    Uses MANIFEST_DIR when configured, otherwise one temporary directory per
    process that is removed at interpreter exit.
    """
    global _process_manifest_dir

    if settings.manifest_dir:
        path = Path(settings.manifest_dir).expanduser()
        path.mkdir(parents=True, exist_ok=True)
        return path

    if _process_manifest_dir is None or not _process_manifest_dir.is_dir():
        _process_manifest_dir = Path(tempfile.mkdtemp(prefix="steampipe_publisher_"))
        atexit.register(shutil.rmtree, _process_manifest_dir, True)

    return _process_manifest_dir
