"""
Pydantic models for runtime settings.
"""

from typing import Any, Literal

from pydantic import BaseModel, Field

SettingType = Literal["int", "float", "bool", "str", "json"]


class SettingWrite(BaseModel):
    value: Any = Field(..., examples=[0.25])
    type: SettingType = Field(..., examples=["float"])


class SettingRead(BaseModel):
    key: str
    value: Any
    type: str
