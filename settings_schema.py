from typing import Literal

from pydantic import BaseModel, Field, ValidationError


class SettingsSchema(BaseModel):
    color_theme: Literal[
        "violet", "blue", "green", "yellow", "orange", "red", "rose"
    ] = "violet"
    color_softness: float = Field(0, ge=0, le=100)
    weight_unit: Literal["kg", "lb"] = "kg"
    language: Literal["en", "fr"] = "en"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    drag_mouse_distance: float = Field(3, ge=0)
    drag_touch_delay_ms: float = Field(150, ge=0)
    drag_touch_tolerance: float = Field(5, ge=0)
    backend_api_key: str | bool | None = None
    app_version: str = "1.0.0"


def validate_settings(data: dict) -> None:
    try:
        SettingsSchema(**data)
    except ValidationError as e:
        raise ValueError(str(e))
