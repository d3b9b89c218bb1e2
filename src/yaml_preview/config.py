"""
Preview configuration: namespace `yamlIframePreview`.

Read once when a session is created; a session never sees later changes.
"""

import json
import logging
from pathlib import Path
from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

logger = logging.getLogger(__name__)

CONFIG_SECTION = "yamlIframePreview"
CONFIG_FILE = Path.home() / ".yaml-preview" / "config.json"
DEFAULT_DEBOUNCE_MS = 300.0


class PreviewConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    remote_url: str = Field(default="", alias="remoteUrl")
    debounce_ms: float = Field(default=DEFAULT_DEBOUNCE_MS, alias="debounceMs")
    allow_http: bool = Field(default=True, alias="allowHttp")

    @field_validator("remote_url", mode="before")
    @classmethod
    def _none_is_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("debounce_ms")
    @classmethod
    def _clamp_debounce(cls, value: float) -> float:
        return max(0.0, value)

    @classmethod
    def from_settings(cls, settings: Optional[Mapping[str, Any]]) -> "PreviewConfig":
        """Build from a host configuration section. Unknown keys are ignored,
        invalid values fall back to defaults field by field."""
        known = {"remoteUrl", "debounceMs", "allowHttp"}
        values = {k: v for k, v in (settings or {}).items() if k in known}
        try:
            return cls.model_validate(values)
        except ValidationError as e:
            bad = {str(err["loc"][0]) for err in e.errors() if err["loc"]}
            logger.warning("Ignoring invalid %s settings: %s", CONFIG_SECTION, ", ".join(sorted(bad)))
            return cls.model_validate({k: v for k, v in values.items() if k not in bad})

    def to_settings(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


def load_config_file(path: Optional[Path] = None) -> dict[str, Any]:
    path = path or CONFIG_FILE
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        if not isinstance(e, FileNotFoundError):
            logger.warning("Ignoring unreadable config file %s: %s", path, e)
        return {}
    if not isinstance(data, dict):
        return {}
    section = data.get(CONFIG_SECTION, {})
    return section if isinstance(section, dict) else {}


def save_config_file(settings: Mapping[str, Any], path: Optional[Path] = None) -> None:
    path = path or CONFIG_FILE
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            data = {}
    except (OSError, UnicodeDecodeError, json.JSONDecodeError):
        data = {}
    data[CONFIG_SECTION] = dict(settings)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")
