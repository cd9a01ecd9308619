"""VDF manifest generation for steamcmd builds.

steamcmd reads app and depot build configurations as VDF: a tree of
double-quoted keys whose values are either double-quoted strings or
brace-delimited child blocks, one entry per line, indented with tabs.

    "AppBuild"
    {
        "AppID"     "480"
        "Desc"      "Nightly"
        "Depots"
        {
            "481"
            {
                "FileMapping"
                {
                    "LocalPath"     "*"
                    ...
"""

import logging
from pathlib import Path
from typing import Union

from ..config import get_manifest_dir
from ..models import BuildSpec, DepotSpec, ManifestValidationError

logger = logging.getLogger(__name__)

MANIFEST_EXTENSION = "vdf"

# An entry is (key, value) where value is a string or a nested list of entries.
Entry = tuple[str, Union[str, list]]


def escape_value(value: str) -> str:
    """Escape backslashes and double quotes for a quoted VDF value."""
    return value.replace("\\", "\\\\").replace('"', '\\"')


def dump_vdf(root_key: str, entries: list[Entry]) -> str:
    """Serialize a root block to VDF text; keys and values are escaped here."""
    lines: list[str] = []
    _dump_block(lines, root_key, entries, 0)
    return "\n".join(lines) + "\n"


def _dump_block(lines: list[str], key: str, entries: list[Entry], depth: int) -> None:
    indent = "\t" * depth
    lines.append(f'{indent}"{escape_value(key)}"')
    lines.append(f"{indent}{{")
    for child_key, value in entries:
        if isinstance(value, list):
            _dump_block(lines, child_key, value, depth + 1)
        else:
            lines.append(f'{indent}\t"{escape_value(child_key)}"\t"{escape_value(value)}"')
    lines.append(f"{indent}}}")


def _file_mapping_entries(depot: DepotSpec) -> list[Entry]:
    entries: list[Entry] = [
        (
            "FileMapping",
            [
                ("LocalPath", depot.include_pattern),
                ("DepotPath", depot.destination_path),
                ("recursive", "1" if depot.recursive else "0"),
            ],
        )
    ]
    if depot.exclude_pattern:
        entries.append(("FileExclusion", [("Pattern", depot.exclude_pattern)]))
    return entries


def validate_build_spec(spec: BuildSpec) -> None:
    """Raise ManifestValidationError if the build description cannot produce a manifest."""
    if not spec.app_id or not spec.app_id.strip():
        raise ManifestValidationError("AppID is required.", {"field": "app_id"})
    if not spec.depots:
        raise ManifestValidationError(
            "At least one depot is required.", {"field": "depots", "app_id": spec.app_id}
        )
    for depot in spec.depots:
        if not depot.id or not depot.id.strip():
            raise ManifestValidationError(
                "Every depot needs an ID.", {"field": "depots", "app_id": spec.app_id}
            )


def render_app_build(spec: BuildSpec) -> str:
    """Render the AppBuild document for a validated spec."""
    validate_build_spec(spec)

    entries: list[Entry] = [
        ("AppID", spec.app_id.strip()),
        ("Desc", spec.description or ""),
    ]
    if spec.content_root:
        entries.append(("ContentRoot", spec.content_root))
    if spec.branch:
        entries.append(("SetLive", spec.branch))
    if spec.preview_only:
        entries.append(("Preview", "1"))

    entries.append(
        ("Depots", [(depot.id.strip(), _file_mapping_entries(depot)) for depot in spec.depots])
    )
    return dump_vdf("AppBuild", entries)


def render_depot_build(depot: DepotSpec) -> str:
    """Render a single-depot DepotBuildConfig document."""
    if not depot.id or not depot.id.strip():
        raise ManifestValidationError("DepotID is required.", {"field": "id"})

    entries: list[Entry] = [("DepotID", depot.id.strip())]
    if depot.source_content_path:
        entries.append(("ContentRoot", depot.source_content_path))
    entries.extend(_file_mapping_entries(depot))
    return dump_vdf("DepotBuildConfig", entries)


def _write_manifest(text: str, filename: str, output_dir: Path | None) -> Path:
    target_dir = Path(output_dir) if output_dir is not None else get_manifest_dir()
    target_dir.mkdir(parents=True, exist_ok=True)

    path = target_dir / filename
    path.write_text(text, encoding="utf-8")
    return path


def build_upload_manifest(spec: BuildSpec, output_dir: Path | None = None) -> Path:
    """Write the app build manifest for spec and return its path.

    Raises:
        ManifestValidationError: If app_id is empty or there are no depots.
            Nothing is written in that case.
    """
    text = render_app_build(spec)
    path = _write_manifest(
        text, f"app_{spec.app_id.strip()}_build.{MANIFEST_EXTENSION}", output_dir
    )
    logger.info(f"App build manifest written: {path}")
    return path


def build_depot_manifest(depot: DepotSpec, output_dir: Path | None = None) -> Path:
    """Write a depot build manifest for ad-hoc single-depot builds."""
    text = render_depot_build(depot)
    path = _write_manifest(
        text, f"depot_{depot.id.strip()}.{MANIFEST_EXTENSION}", output_dir
    )
    logger.info(f"Depot build manifest written: {path}")
    return path


def simple_build_spec(
    app_id: str, content_path: str, description: str = "", branch: str = ""
) -> BuildSpec:
    """Create a one-depot build where the depot ID follows the AppID + 1 convention."""
    try:
        depot_id = str(int(app_id.strip()) + 1)
    except (ValueError, AttributeError):
        logger.warning(f"AppID {app_id!r} is not numeric, falling back to depot ID 0")
        depot_id = "0"

    return BuildSpec(
        app_id=app_id,
        description=description,
        content_root=content_path,
        branch=branch,
        depots=[
            DepotSpec(
                id=depot_id,
                source_content_path=content_path,
                include_pattern="*",
                destination_path=".",
                recursive=True,
            )
        ],
    )


def read_manifest(path: Path) -> str | None:
    """Read an existing manifest for inspection, or None if it does not exist."""
    path = Path(path)
    if not path.is_file():
        logger.warning(f"Manifest not found: {path}")
        return None
    return path.read_text(encoding="utf-8")


def _tokenize(text: str):
    i = 0
    length = len(text)
    while i < length:
        char = text[i]
        if char.isspace():
            i += 1
        elif char == "/" and text.startswith("//", i):
            newline = text.find("\n", i)
            i = length if newline == -1 else newline + 1
        elif char in "{}":
            yield char
            i += 1
        elif char == '"':
            i += 1
            chars: list[str] = []
            while i < length and text[i] != '"':
                if text[i] == "\\" and i + 1 < length and text[i + 1] in '\\"':
                    chars.append(text[i + 1])
                    i += 2
                else:
                    chars.append(text[i])
                    i += 1
            if i >= length:
                raise ValueError("Unterminated quoted string in VDF")
            i += 1
            yield ("str", "".join(chars))
        else:
            start = i
            while i < length and not text[i].isspace() and text[i] not in '{}"':
                i += 1
            yield ("str", text[start:i])


def parse_manifest(text: str) -> dict:
    """Parse VDF text into nested dicts, preserving key order.

    Raises:
        ValueError: If the text is not well-formed VDF.
    """
    root: dict = {}
    stack = [root]
    pending_key: str | None = None

    for token in _tokenize(text):
        if token == "{":
            if pending_key is None:
                raise ValueError("Block opened without a key")
            child: dict = {}
            stack[-1][pending_key] = child
            stack.append(child)
            pending_key = None
        elif token == "}":
            if pending_key is not None or len(stack) == 1:
                raise ValueError("Unexpected closing brace")
            stack.pop()
        else:
            value = token[1]
            if pending_key is None:
                pending_key = value
            else:
                stack[-1][pending_key] = value
                pending_key = None

    if pending_key is not None or len(stack) != 1:
        raise ValueError("Unexpected end of VDF document")
    return root
