"""
Wire models for the session -> frame update message.

    { "type": "yaml:update",
      "payload": { "yaml", "uri", "fileName", "languageId", "version" } }
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

UPDATE_MESSAGE_TYPE = "yaml:update"


class ChangeSnapshot(BaseModel):
    """Full (non-incremental) document state at send time."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    yaml: str
    uri: str
    file_name: str = Field(alias="fileName")
    language_id: str = Field(alias="languageId")
    version: int


class UpdateMessage(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["yaml:update"] = UPDATE_MESSAGE_TYPE
    payload: ChangeSnapshot
