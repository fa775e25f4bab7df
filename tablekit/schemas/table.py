# File: /tablekit/schemas/table.py | Version: 1.0 | Title: Request bodies for the table routes (Pydantic v2)
from __future__ import annotations

from typing import Any, Dict, List, Union

from pydantic import BaseModel, ConfigDict, Field


class ActionPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    keys: List[Union[int, str]] = Field(default_factory=list)
    json_response: bool = Field(default=False, alias="json")


class ExportPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    keys: List[Union[int, str]] = Field(default_factory=list)


class StoreViewPayload(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    title: str = Field(min_length=1, max_length=255)
    query: Dict[str, Any] = Field(default_factory=dict)
