"""Read and write the compiled command tree artifact.

The artifact is canonical JSON: keys sorted, two-space indent, a trailing
newline and no ``null`` fields. Together with the compiler's sorted output
this makes recompiling an unchanged document byte-identical, so the shipped
``command_tree.json`` can be checked in and diffed.
"""

from __future__ import annotations

import json
import logging
from importlib import resources
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from cloudflare_cli.config import atomic_write
from cloudflare_cli.exceptions import ConfigError
from cloudflare_cli.models import CommandTree

logger = logging.getLogger(__name__)

PACKAGED_TREE = "command_tree.json"


def dumps_tree(tree: CommandTree) -> str:
    """Serialize *tree* to canonical JSON text."""
    data = tree.model_dump(mode="json", exclude_none=True)
    return json.dumps(data, indent=2, sort_keys=True, ensure_ascii=False) + "\n"


def write_command_tree(tree: CommandTree, path: Path) -> None:
    """Write *tree* to *path* atomically."""
    atomic_write(path, dumps_tree(tree))
    logger.debug("Wrote command tree to %s", path)


def load_command_tree(path: Optional[str] = None) -> CommandTree:
    """Load a command tree artifact.

    Args:
        path: An alternate artifact (from ``--tree`` or
            ``CLOUDFLARE_CLI_TREE``). When ``None`` the tree shipped inside
            the package is used.

    Raises:
        ConfigError: If the artifact cannot be read or is not a valid tree.
    """
    if path is None:
        source = f"package data {PACKAGED_TREE}"
        try:
            text = (
                resources.files("cloudflare_cli.schemas")
                .joinpath(PACKAGED_TREE)
                .read_text(encoding="utf-8")
            )
        except (OSError, ModuleNotFoundError) as exc:
            raise ConfigError(f"Cannot read {source}: {exc}") from exc
    else:
        source = path
        try:
            text = Path(path).expanduser().read_text(encoding="utf-8")
        except OSError as exc:
            raise ConfigError(f"Cannot read command tree {path}: {exc}") from exc

    try:
        tree = CommandTree.model_validate_json(text)
    except ValidationError as exc:
        raise ConfigError(f"Invalid command tree in {source}: {exc}") from exc
    logger.debug("Loaded command tree from %s (%d resources)", source, len(tree.resources))
    return tree
