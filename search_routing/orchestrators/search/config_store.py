"""Config store: holds the current routing document and swaps it wholesale."""

import threading
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ValidationError

from search_routing.contracts.routing_config_v1 import (
    SearchConfig,
    load_config_file,
    parse_config,
)
from search_routing.core.logger import logger
from search_routing.orchestrators.search.errors import ConfigurationError


class ConfigStore:
    """Read-mostly holder of the routing document.

    Readers take `current` once per search and keep that reference, so a
    concurrent update never changes the document a search is running against.
    """

    def __init__(self, config: SearchConfig | dict[str, Any]) -> None:
        if not isinstance(config, SearchConfig):
            config = self._validate(config)
        self._config = config
        self._lock = threading.Lock()

    @classmethod
    def from_file(cls, path: Path) -> "ConfigStore":
        try:
            config = load_config_file(path)
        except (OSError, ValueError) as e:
            raise ConfigurationError(f"Cannot load routing config {path}: {e}") from e
        logger.info(
            "Loaded routing config v%s from %s: %s categories, %s providers",
            config.version,
            path,
            len(config.categories),
            len(config.providers),
        )
        return cls(config)

    @property
    def current(self) -> SearchConfig:
        return self._config

    @property
    def version(self) -> str:
        return self._config.version

    def update_config(self, partial: dict[str, Any]) -> SearchConfig:
        """Shallow-merge top-level sections over the current document and swap.

        The merged document is validated as a whole; on failure the current
        document stays in place.
        """
        with self._lock:
            document = self._config.to_document()
            for key, value in partial.items():
                if isinstance(value, BaseModel):
                    value = value.model_dump(mode="json", by_alias=True)
                elif isinstance(value, list):
                    value = [
                        v.model_dump(mode="json", by_alias=True) if isinstance(v, BaseModel) else v
                        for v in value
                    ]
                elif isinstance(value, dict):
                    value = {
                        k: v.model_dump(mode="json", by_alias=True) if isinstance(v, BaseModel) else v
                        for k, v in value.items()
                    }
                document[key] = value
            new_config = self._validate(document)
            self._config = new_config
        logger.config_update(new_config.version, sorted(partial.keys()))
        return new_config

    def replace(self, config: SearchConfig) -> None:
        with self._lock:
            self._config = config

    @staticmethod
    def _validate(document: dict[str, Any]) -> SearchConfig:
        try:
            return parse_config(document)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid routing config: {e}") from e
