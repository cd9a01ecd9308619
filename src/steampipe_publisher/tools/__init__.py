"""steamcmd tooling: discovery, process execution and manifest generation."""

from .locator import ToolLocator
from .manifest import build_depot_manifest, build_upload_manifest, simple_build_spec
from .process import ProcessRunner, strip_ansi

__all__ = [
    "ToolLocator",
    "ProcessRunner",
    "strip_ansi",
    "build_upload_manifest",
    "build_depot_manifest",
    "simple_build_spec",
]
