"""Schemas pydantic de los formatos documento (clave/valor).

Formato json:
{
    "devid": "rpi#0001",
    "time": "2024-04-05 19:10:40",
    "temperature": "23.45"
}

Formato alink (post de propiedades a plataforma IoT en la nube):
{
    "id": "1712315440000",
    "version": "1.0",
    "params": {"CurrentTemperature": 23.45},
    "method": "thing.event.property.post"
}
"""

from __future__ import annotations

import math
from typing import Dict

from pydantic import BaseModel, Field, field_validator


class JsonPacket(BaseModel):
    devid: str = Field(..., min_length=1)
    time: str
    temperature: str


class AlinkPropertyPost(BaseModel):
    id: str
    version: str = "1.0"
    params: Dict[str, float]
    method: str = "thing.event.property.post"

    @field_validator("params")
    @classmethod
    def validate_params(cls, v):
        for key, value in v.items():
            if not math.isfinite(value):
                raise ValueError(f"param {key} is not finite")
        return v
