"""
User schemas untuk ContextAuth API.
"""

from datetime import datetime
from typing import Optional, Dict, Any, List
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class UserResponse(BaseModel):
    """
    User response schema untuk API responses.
    Tidak menyertakan data trust store.
    """
    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "example": {
                "u_id": "550e8400-e29b-41d4-a716-446655440000",
                "u_email": "user@example.com",
                "u_name": "John Doe",
                "u_is_verified": True,
                "created_at": "2024-01-01T00:00:00Z",
                "u_last_login_at": "2024-01-15T09:00:00Z"
            }
        }
    )

    u_id: UUID = Field(..., description="User ID")
    u_email: EmailStr = Field(..., description="User email")
    u_name: str = Field(..., description="Display name")
    u_is_verified: bool = Field(..., description="Whether email is verified")
    created_at: Optional[datetime] = Field(None, description="Account creation timestamp")
    u_last_login_at: Optional[datetime] = Field(None, description="Last login timestamp")


class UserRiskProfile(UserResponse):
    """
    User beserta risk profile (trust store) untuk check-auth.
    """
    u_risk_score: int = Field(0, description="Risk score terakhir")
    u_trusted_ips: List[str] = Field(default_factory=list, description="IP terpercaya")
    u_trusted_devices: List[str] = Field(default_factory=list, description="Device terpercaya")
    u_known_locations: List[Dict[str, float]] = Field(default_factory=list, description="Lokasi dikenal")
    u_behavioral_profile: Dict[str, Any] = Field(default_factory=dict, description="Baseline perilaku")
    u_context_logs: List[Dict[str, Any]] = Field(default_factory=list, description="Riwayat context login")
