from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from errors import InvalidRecord


class SettingsSchema(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    theme: Literal["light", "dark"] = "light"
    auto_timer: bool = Field(False, alias="autoTimer")
    timer_duration: int = Field(90, gt=0, alias="timerDuration")


DEFAULT_SETTINGS = SettingsSchema().model_dump(by_alias=True)


def validate_settings(data: dict) -> dict:
    """Validate ``data`` and return it merged over the defaults."""
    try:
        return SettingsSchema(**{**DEFAULT_SETTINGS, **data}).model_dump(by_alias=True)
    except ValidationError as e:
        raise InvalidRecord(str(e))
