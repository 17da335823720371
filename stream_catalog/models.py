"""Typed records for the two collections.

Documents are schema-less in the store; these models are where required
fields and defaults are enforced. A `StreamCreate` always carries every
Stream field by the time it is written.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from stream_catalog.util.time import as_utc, utcnow


REQUIRED_STREAM_FIELDS = ("title", "description", "thumbnail", "streamUrl")


def _required_text(v: Any) -> Any:
    if v is None or (isinstance(v, str) and v == ""):
        raise ValueError("is required")
    return v


class StreamCreate(BaseModel):
    # Unknown fields in the request body are dropped.
    model_config = ConfigDict(extra="ignore")

    title: str
    description: str
    thumbnail: str
    streamUrl: str
    isLive: bool = False
    tags: List[str] = Field(default_factory=list)
    category: str = "General"
    createdAt: datetime = Field(default_factory=utcnow)

    @field_validator(*REQUIRED_STREAM_FIELDS, mode="before")
    @classmethod
    def check_required(cls, v: Any) -> Any:
        return _required_text(v)

    @field_validator("createdAt")
    @classmethod
    def created_at_utc(cls, v: datetime) -> datetime:
        return as_utc(v)


class StreamUpdate(BaseModel):
    """Partial update; only the fields the caller sent are written."""

    model_config = ConfigDict(extra="ignore")

    title: Optional[str] = None
    description: Optional[str] = None
    thumbnail: Optional[str] = None
    streamUrl: Optional[str] = None
    isLive: Optional[bool] = None
    tags: Optional[List[str]] = None
    category: Optional[str] = None
    createdAt: Optional[datetime] = None

    @field_validator(*REQUIRED_STREAM_FIELDS, mode="before")
    @classmethod
    def check_required(cls, v: Any) -> Any:
        return _required_text(v)

    @field_validator("isLive", "tags", "category", "createdAt", mode="before")
    @classmethod
    def check_not_null(cls, v: Any) -> Any:
        if v is None:
            raise ValueError("may not be null")
        return v

    def changes(self) -> Dict[str, Any]:
        out = self.model_dump(exclude_unset=True)
        if "createdAt" in out:
            out["createdAt"] = as_utc(out["createdAt"])
        return out


class Stream(StreamCreate):
    """A stored stream, as returned by the API."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str = Field(alias="_id")

    @field_validator("id", mode="before")
    @classmethod
    def id_to_str(cls, v: Any) -> str:
        return str(v)

    @field_serializer("createdAt")
    def created_at_iso(self, v: datetime) -> str:
        # 2025-09-19T10:00:00.000Z
        return as_utc(v).strftime("%Y-%m-%dT%H:%M:%S.") + f"{v.microsecond // 1000:03d}Z"

    @classmethod
    def from_doc(cls, doc: Dict[str, Any]) -> "Stream":
        return cls.model_validate(doc)

    def to_json(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


class User(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str = Field(alias="_id")
    email: str
    # Salted hash, never plaintext.
    password: str = Field(repr=False)
    role: str = "admin"

    @field_validator("id", mode="before")
    @classmethod
    def id_to_str(cls, v: Any) -> str:
        return str(v)
