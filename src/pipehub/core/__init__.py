"""Core pipeline asset management."""

from pipehub.core.manager import AssetManager, list_pipelines
from pipehub.core.manifest import Manifest, ManifestReader
from pipehub.core.naming import Ambiguous, Resolved, ResolvedName, resolve_name
from pipehub.core.revisions import RevisionController
from pipehub.core.store import LocalAssetStore

__all__ = [
    "Ambiguous",
    "AssetManager",
    "LocalAssetStore",
    "Manifest",
    "ManifestReader",
    "Resolved",
    "ResolvedName",
    "RevisionController",
    "list_pipelines",
    "resolve_name",
]
