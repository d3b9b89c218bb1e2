"""
ContentSource: where the embedded frame loads its page from.

Exactly one variant is chosen per session, once, at creation.
"""

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class RemoteSource(BaseModel):
    """Trusted https endpoint."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["remote"] = "remote"
    address: str


class LocalServedSource(BaseModel):
    """Bundled page served over loopback on an ephemeral port."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["local_served"] = "local_served"
    address: str


class LocalBundledSource(BaseModel):
    """Bundled page addressed through the host's resource scheme. No network origin."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["local_bundled"] = "local_bundled"
    address: str


ContentSource = Annotated[
    Union[RemoteSource, LocalServedSource, LocalBundledSource],
    Field(discriminator="kind"),
]
