from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

CommentOrderBy = Literal["id", "created_at"]


class CommentCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    text: str = Field(min_length=1, max_length=1000)
    parent_id: str | None = Field(default=None, alias="parentId")


class CommentUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    text: str = Field(min_length=1, max_length=1000)


class CommentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    listing_id: str
    author_id: str
    text: str
    parent_id: str | None
    created_at: datetime
    updated_at: datetime


class CommentQuery(BaseModel):
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=20, ge=1, le=100)
    orderBy: CommentOrderBy = "created_at"
    orderDirection: Literal["ASC", "DESC"] = "ASC"
