"""steamcmd discovery.

Best-effort search over the conventional Steamworks SDK layouts. The search is
read-only and deterministic for a fixed filesystem; if none of the layouts
hold, PATH is the only fallback.
"""

import logging
import os
import shutil
from collections.abc import Callable
from pathlib import Path

logger = logging.getLogger(__name__)

TOOL_NAME = "steamcmd"
BUILDER_RELATIVE = Path("builder_linux") / "steamcmd.sh"
SDK_TOOL_RELATIVE = Path("tools") / "ContentBuilder" / BUILDER_RELATIVE
SDK_GLOB = "steamworks_sdk*"
HOME_SDK_FOLDERS = ("sdk", "SteamworksSDK", "steamworks_sdk")
SYSTEM_CANDIDATES = (Path("/usr/bin/steamcmd"), Path("/usr/games/steamcmd"))
GLOB_ANCESTOR_LEVELS = 3


def _full(path: Path) -> Path:
    return Path(os.path.abspath(path))


class ToolLocator:
    """Find the steamcmd executable across ranked candidate locations."""

    def __init__(
        self,
        home: Path | None = None,
        system_candidates: tuple[Path, ...] = SYSTEM_CANDIDATES,
        path_lookup: Callable[[str], str | None] = shutil.which,
    ):
        """Initialize the locator.

        Args:
            home: Home directory for per-user SDK installs (defaults to ~)
            system_candidates: Package-manager install paths
            path_lookup: PATH resolver for the bare tool name
        """
        self.home = Path(home) if home is not None else Path.home()
        self.system_candidates = tuple(Path(p) for p in system_candidates)
        self.path_lookup = path_lookup

    def static_candidates(self, base_dir: Path) -> tuple[Path, ...]:
        """Fixed candidates relative to the install dir, home and system paths."""
        base = _full(Path(base_dir))
        candidates = [
            base / BUILDER_RELATIVE,
            base.parent / BUILDER_RELATIVE,
            base / "sdk" / SDK_TOOL_RELATIVE,
            base.parent / "sdk" / SDK_TOOL_RELATIVE,
            base.parent.parent / "sdk" / SDK_TOOL_RELATIVE,
        ]
        candidates.extend(self.home / folder / SDK_TOOL_RELATIVE for folder in HOME_SDK_FOLDERS)
        candidates.extend(self.system_candidates)
        return tuple(_full(p) for p in candidates)

    def glob_candidates(self, base_dir: Path) -> tuple[Path, ...]:
        """Versioned SDK folders next to the install dir and its ancestors."""
        base = _full(Path(base_dir))
        roots = [base]
        for _ in range(GLOB_ANCESTOR_LEVELS):
            roots.append(roots[-1].parent)

        candidates: list[Path] = []
        for root in roots:
            if not root.is_dir():
                continue
            for sdk_dir in sorted(root.glob(SDK_GLOB)):
                if sdk_dir.is_dir():
                    candidates.append(sdk_dir / "sdk" / SDK_TOOL_RELATIVE)
        return tuple(candidates)

    def candidates(self, base_dir: Path) -> tuple[Path, ...]:
        """All filesystem candidates in priority order (PATH lookup excluded)."""
        return self.static_candidates(base_dir) + self.glob_candidates(base_dir)

    def locate(self, base_dir: Path) -> Path | None:
        """Return the first existing steamcmd, or None if nothing is found."""
        for candidate in self.candidates(base_dir):
            if candidate.is_file():
                logger.debug(f"steamcmd candidate matched: {candidate}")
                return candidate

        which = self.path_lookup(TOOL_NAME)
        if which and Path(which).is_file():
            logger.debug(f"steamcmd resolved from PATH: {which}")
            return _full(Path(which))

        logger.debug(f"steamcmd not found from search root {base_dir}")
        return None

    def resolve_from_sdk_folder(self, sdk_folder: Path) -> Path | None:
        """Resolve steamcmd inside a user-supplied Steamworks SDK folder."""
        sdk = _full(Path(sdk_folder).expanduser())
        for candidate in (
            sdk / SDK_TOOL_RELATIVE,
            sdk / BUILDER_RELATIVE,
            sdk / "steamcmd.sh",
        ):
            if candidate.is_file():
                return candidate
        return None

    def resolve_from_direct_path(self, path: Path) -> Path | None:
        """Accept a direct path to steamcmd if it is an existing file."""
        candidate = _full(Path(path).expanduser())
        return candidate if candidate.is_file() else None
