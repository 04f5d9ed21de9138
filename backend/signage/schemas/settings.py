from typing import Any

from pydantic import BaseModel, Field


class SettingsPayload(BaseModel):
    """Display settings document. Sections are free-form objects owned by the client."""

    version: int = Field(..., gt=0)
    theme: dict[str, str] | None = None
    fonts: dict[str, Any] | None = None
    slides: dict[str, Any] | None = None
    display: dict[str, Any] | None = None
    audio: dict[str, Any] | None = None
    header: dict[str, Any] | None = None

    def to_json(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_unset=True)


class SettingsSaveResponse(BaseModel):
    ok: bool = True
    version: int
