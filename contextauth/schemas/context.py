"""
Login context schemas untuk ContextAuth API.
Validasi sinyal yang dikirim client pada signup dan login.
"""

import ipaddress
from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class LocationPayload(BaseModel):
    """
    Koordinat geografis dari client.
    """
    latitude: float = Field(..., ge=-90, le=90, description="Latitude dalam derajat")
    longitude: float = Field(..., ge=-180, le=180, description="Longitude dalam derajat")


class ContextPayload(BaseModel):
    """
    Sinyal kontekstual satu login attempt.
    Menerima field snake_case maupun camelCase dari frontend.
    """
    model_config = ConfigDict(
        populate_by_name=True,
        str_strip_whitespace=True,
        json_schema_extra={
            "example": {
                "ip": "1.2.3.4",
                "device": "chrome-macos-abc",
                "location": {"latitude": -6.2088, "longitude": 106.8456},
                "typingSpeed": 5.2,
                "loginHour": 14
            }
        }
    )

    ip: str = Field(..., min_length=1, max_length=45, description="Client IP address")
    device: str = Field(..., min_length=1, max_length=255, description="Stable device fingerprint")
    location: LocationPayload = Field(..., description="Client location")
    typing_speed: Optional[float] = Field(
        None,
        ge=0,
        validation_alias=AliasChoices("typing_speed", "typingSpeed"),
        description="Kecepatan mengetik (karakter per detik)"
    )
    login_hour: Optional[int] = Field(
        None,
        ge=0,
        le=23,
        validation_alias=AliasChoices("login_hour", "loginHour", "loginHours"),
        description="Jam login lokal client (0-23)"
    )

    @field_validator("ip")
    def validate_ip(cls, v: str) -> str:
        """Pastikan IP address valid (IPv4 atau IPv6)."""
        try:
            return str(ipaddress.ip_address(v))
        except ValueError:
            raise ValueError("Invalid IP address")
