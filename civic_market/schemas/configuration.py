from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


FLAG_KEY_PATTERN = r"^[a-z0-9_-]+$"


class ConfigurationUpsert(BaseModel):
    value: str = Field(min_length=1, max_length=500)
    description: str | None = Field(default=None, max_length=1000)


class ConfigurationOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    key: str
    value: str
    description: str | None
    enabled: bool
    updated_at: datetime
    updated_by: str | None
