"""
Update message construction for the session -> frame channel.
"""

from typing import Any

from yaml_preview.host import TextDocument
from yaml_preview.models.snapshot import ChangeSnapshot, UpdateMessage


def snapshot_document(document: TextDocument) -> ChangeSnapshot:
    """Capture the document as it is right now."""
    return ChangeSnapshot(
        yaml=document.get_text(),
        uri=str(document.uri),
        file_name=document.file_name,
        language_id=document.language_id,
        version=document.version,
    )


def build_update_message(document: TextDocument) -> dict[str, Any]:
    """Build a `yaml:update` message as a dict ready for post_message."""
    return UpdateMessage(payload=snapshot_document(document)).model_dump(by_alias=True)
