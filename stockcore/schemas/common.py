"""
Stock Control Common Schemas
Shared Pydantic models for common API structures
"""
from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, Optional


class ErrorResponse(BaseModel):
    """
    Standard error response model

    Used for all API error responses
    """
    error: str = Field(..., description="Error type, e.g. InsufficientStock")
    detail: Any = Field(None, description="Human-readable message or validation details")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "error": "InsufficientStock",
                "detail": "Insufficient stock for P001: requested 30.000, available 20.000"
            }
        }
    )


class SuccessResponse(BaseModel):
    """
    Standard success response model

    Used for operations that don't return specific data
    """
    success: bool = Field(True, description="Operation success flag")
    message: str = Field(..., description="Success message")
    data: Optional[Dict[str, Any]] = Field(None, description="Additional response data")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "success": True,
                "message": "Inventory check KK-20241015-001 deleted",
                "data": None
            }
        }
    )


class HealthResponse(BaseModel):
    status: str
    app: str
    version: str
    database: str
