import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from ..errors import ConfigUnreadable
from ..models import ConfigEntry

logger = logging.getLogger(__name__)


class ConfigFileProvider:
    """
    Reads the configured model list from a LiteLLM-style YAML file.

    Expected layout:
        model_list:
          - model_name: gpt-4o
            litellm_params:
              model: openai/gpt-4o

    A missing or unreadable file is not an error: it yields an empty list
    and a logged warning.
    """

    source_name = "config"

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def load(self) -> List[ConfigEntry]:
        try:
            return self._read()
        except ConfigUnreadable as err:
            logger.warning("%s, returning empty model list", err)
            return []

    def _read(self) -> List[ConfigEntry]:
        if not self.path.exists():
            raise ConfigUnreadable(str(self.path), "config file not found")

        try:
            with open(self.path, encoding="utf-8") as f:
                config = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as err:
            raise ConfigUnreadable(str(self.path), f"cannot parse config: {err}") from err

        if not isinstance(config, dict) or not isinstance(config.get("model_list"), list):
            raise ConfigUnreadable(str(self.path), "no model_list found in config")

        entries = []
        for item in config["model_list"]:
            entry = self._parse_entry(item)
            if entry is not None:
                entries.append(entry)
        return entries

    def _parse_entry(self, item: Any) -> Optional[ConfigEntry]:
        if not isinstance(item, dict):
            return None
        params: Dict[str, Any] = item.get("litellm_params") or {}
        model = params.get("model") if isinstance(params, dict) else None
        if not model or not isinstance(model, str):
            logger.debug("Skipping model_list entry without a model: %r", item)
            return None
        return ConfigEntry(
            logical_name=str(item.get("model_name") or model),
            model_identifier=model,
        )
