from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class HealthResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    status: Literal["ok", "loading"]
    updated_at: str | None = Field(default=None, alias="updatedAt")
    session_alive: bool = Field(alias="sessionAlive")
    rates: dict[str, dict]
    recent_logs: list[str] = Field(alias="recentLogs")
