"""Provider configuration loading and merging."""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import TYPE_CHECKING, Any

from dotenv import dotenv_values
from pydantic import ValidationError
from ruamel.yaml import YAML

from pipehub.config.schema import DEFAULT_PROVIDERS, ProviderConfig, ScmFile
from pipehub.errors import ConfigError, UnknownProviderError

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator, Mapping

logger = logging.getLogger(__name__)

# Field name → environment variable suffix.
_CREDENTIAL_FIELDS: dict[str, str] = {
    "user": "USER",
    "password": "PASSWORD",
    "token": "TOKEN",
}


class ProviderConfigs:
    """Ordered, name-unique collection of provider configurations."""

    def __init__(self, configs: Iterable[ProviderConfig] = ()) -> None:
        self._configs: dict[str, ProviderConfig] = {}
        for config in configs:
            self._configs[config.name] = config

    def __iter__(self) -> Iterator[ProviderConfig]:
        return iter(self._configs.values())

    def __len__(self) -> int:
        return len(self._configs)

    def __contains__(self, name: object) -> bool:
        return name in self._configs

    def names(self) -> list[str]:
        return list(self._configs)

    def find(self, name: str) -> ProviderConfig | None:
        return self._configs.get(name)

    def select(self, name: str) -> ProviderConfig:
        """Return the configuration called *name*.

        Raises:
            UnknownProviderError: When no configuration has that name.
        """
        config = self._configs.get(name)
        if config is None:
            raise UnknownProviderError(name)
        return config

    def find_by_domain(self, domain: str | None) -> ProviderConfig | None:
        """Return the first configuration whose server host equals *domain*."""
        if not domain:
            return None
        return next((c for c in self._configs.values() if c.domain == domain), None)

    def with_provider(self, config: ProviderConfig) -> ProviderConfigs:
        """Return a copy of this collection with *config* added (or replaced)."""
        return ProviderConfigs([*self._configs.values(), config])


def _env_key(provider: str, suffix: str) -> str:
    return f"PIPEHUB_{re.sub(r'[^A-Z0-9]+', '_', provider.upper())}_{suffix}"


def _resolve_credentials(
    name: str, raw: dict[str, Any], dotenv_vals: Mapping[str, str | None]
) -> dict[str, Any]:
    """Fill credential fields from env vars and ``.env``.

    Priority (highest wins): YAML value > env var > ``.env`` file.
    """
    resolved = dict(raw)
    for field, suffix in _CREDENTIAL_FIELDS.items():
        if resolved.get(field) is not None:
            continue
        env_key = _env_key(name, suffix)
        val = os.environ.get(env_key)
        if val is None:
            val = dotenv_vals.get(env_key)
        if val is not None:
            resolved[field] = val
    return resolved


def _merge(
    base: dict[str, dict[str, Any]], entries: Mapping[str, Mapping[str, Any]]
) -> dict[str, dict[str, Any]]:
    merged = {name: dict(fields) for name, fields in base.items()}
    for name, fields in entries.items():
        target = merged.setdefault(name, {"name": name})
        server = fields.get("server")
        if server and server != target.get("server") and not fields.get("endpoint"):
            # the API endpoint follows the server unless set alongside it
            target.pop("endpoint", None)
        target.update({k: v for k, v in fields.items() if v is not None})
    return merged


def read_scm_file(path: Path | str) -> dict[str, dict[str, Any]]:
    """Read the ``providers`` mapping from a YAML scm file.

    Returns an empty mapping when the file does not exist.

    Raises:
        ConfigError: On YAML parse errors or unknown fields.
    """
    path = Path(path)
    if not path.is_file():
        logger.debug("No scm file at %s", path)
        return {}

    try:
        raw = YAML(typ="safe").load(path)
    except Exception as exc:
        raise ConfigError(f"Failed to read {path}: {exc}") from exc

    try:
        scm = ScmFile.model_validate(raw or {})
    except ValidationError as exc:
        raise ConfigError(str(exc)) from exc

    return {
        name: entry.model_dump(exclude_none=True) for name, entry in scm.providers.items()
    }


def load_providers(
    scm_path: Path | str | None = None,
    overrides: Mapping[str, Mapping[str, Any]] | None = None,
) -> ProviderConfigs:
    """Build the provider collection.

    Built-in defaults are merged with the user scm file and then with
    *overrides*, later sources winning field by field.

    Raises:
        ConfigError: When a merged entry is not a valid provider configuration.
    """
    base = {c.name: c.model_dump(exclude_none=True) for c in DEFAULT_PROVIDERS}
    dotenv_vals: dict[str, str | None] = {}
    if scm_path is not None:
        scm_path = Path(scm_path)
        base = _merge(base, read_scm_file(scm_path))
        env_file = scm_path.parent / ".env"
        if env_file.is_file():
            dotenv_vals = dotenv_values(env_file, encoding="utf-8-sig")

    if overrides:
        base = _merge(base, overrides)

    configs: list[ProviderConfig] = []
    for name, fields in base.items():
        fields = _resolve_credentials(name, fields, dotenv_vals)
        fields["name"] = name
        try:
            configs.append(ProviderConfig.model_validate(fields))
        except ValidationError as exc:
            raise ConfigError(f"Invalid provider '{name}': {exc}") from exc

    logger.debug("Loaded %d provider configuration(s): %s", len(configs), ", ".join(base))
    return ProviderConfigs(configs)
