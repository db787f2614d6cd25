"""Provider configuration and environment defaults."""

from __future__ import annotations

from pipehub.config.loader import ProviderConfigs, load_providers, read_scm_file
from pipehub.config.schema import DEFAULT_PROVIDERS, ProviderConfig
from pipehub.config.settings import Settings

__all__ = [
    "DEFAULT_PROVIDERS",
    "ProviderConfig",
    "ProviderConfigs",
    "Settings",
    "load_providers",
    "read_scm_file",
]
