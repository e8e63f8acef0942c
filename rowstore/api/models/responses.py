from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ReadResponse(BaseModel):
    data: List[Dict[str, Any]] = Field(default_factory=list)


class CreateResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    status: str = "success"
    message: str
    created_ids: List[str] = Field(default_factory=list, alias="createdIds")


class UpdateResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    status: str = "success"
    message: str = "Row updated"
    updated_fields: List[str] = Field(default_factory=list, alias="updatedFields")
    id: Any


class DeleteResponse(BaseModel):
    status: str = "success"
    message: str = "Row soft deleted (is_enabled=false)"
    id: Any


class ErrorResponse(BaseModel):
    error: str
    debug: Optional[str] = None
    request_id: Optional[str] = None
