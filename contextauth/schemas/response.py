"""
Generic response schemas untuk ContextAuth API.
Menangani response format yang konsisten.
"""

from datetime import datetime
from typing import Optional, Dict, Any

from pydantic import BaseModel, ConfigDict, Field

from contextauth.schemas.user import UserResponse, UserRiskProfile


class MessageResponse(BaseModel):
    """
    Simple message response schema.
    """
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "success": True,
                "message": "Operation completed successfully"
            }
        }
    )

    success: bool = Field(True, description="Request berhasil")
    message: str = Field(..., description="Response message")
    details: Optional[Dict[str, Any]] = Field(None, description="Additional details")


class UserMessageResponse(MessageResponse):
    """Message response beserta user."""
    user: UserResponse = Field(..., description="User")


class CheckAuthResponse(BaseModel):
    """Response untuk check-auth, berisi user dan risk profile."""
    success: bool = Field(True, description="Request berhasil")
    user: UserRiskProfile = Field(..., description="User beserta risk profile")


class ErrorResponse(BaseModel):
    """
    Error response schema dengan struktur konsisten.
    """
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "error": {
                    "message": "Invalid request",
                    "type": "ValidationError",
                    "details": {},
                    "request_id": "550e8400-e29b-41d4-a716-446655440000",
                    "timestamp": "2024-01-15T10:00:00Z"
                }
            }
        }
    )

    error: Dict[str, Any] = Field(..., description="Error details")


class HealthCheckResponse(BaseModel):
    """
    Health check response schema.
    """
    status: str = Field(..., description="Health status")
    timestamp: datetime = Field(..., description="Check timestamp")
    version: str = Field(..., description="API version")
    service: str = Field(..., description="Service name")
    details: Optional[Dict[str, Any]] = Field(None, description="Additional health details")
