"""Project manifest (``pipehub.yaml``) parsing."""

from __future__ import annotations

import logging
import re
from io import StringIO
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from ruamel.yaml import YAML

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger(__name__)

MANIFEST_FILE_NAME = "pipehub.yaml"


class Manifest(BaseModel):
    """Metadata a project declares under the top-level ``manifest`` key.

    Keys may be written in snake_case or camelCase (``main_script`` /
    ``mainScript``).  Unknown keys are ignored.
    """

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="ignore", frozen=True
    )

    main_script: str | None = None
    default_branch: str | None = None
    description: str | None = None
    home_page: str | None = None
    gitmodules: bool | list[str] | str | None = None

    def submodule_paths(self) -> list[str] | None:
        """Submodule paths to sync: ``None`` when disabled, ``[]`` for all of them."""
        modules = self.gitmodules
        if modules is False:
            return None
        if modules is None or modules is True:
            return []
        if isinstance(modules, str):
            return [m for m in re.split(r"[,\s]+", modules) if m]
        return list(modules)


def parse_manifest(text: str) -> Manifest:
    """Parse manifest YAML text.

    The safe loader is used, so tags and include-style constructs are never
    resolved.  An empty document or one without a ``manifest`` block yields an
    empty manifest.

    Raises:
        Exception: Any YAML or validation error.
    """
    raw = YAML(typ="safe").load(StringIO(text))
    if not isinstance(raw, dict):
        return Manifest()
    block = raw.get("manifest")
    if block is None:
        return Manifest()
    return Manifest.model_validate(block)


class ManifestReader:
    """Reads the manifest from *source* each time :meth:`read` is called.

    *source* returns the manifest text, or ``None`` when there is none.
    """

    def __init__(self, source: Callable[[], str | None]) -> None:
        self._source = source

    def read(self) -> Manifest:
        """Current manifest; any failure degrades to an empty one."""
        try:
            text = self._source()
            if text:
                return parse_manifest(text)
        except Exception as exc:
            logger.debug("Cannot read pipeline manifest -- Cause: %s", exc)
        return Manifest()
