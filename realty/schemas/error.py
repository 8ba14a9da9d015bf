"""
Error response schemas for API documentation and consistent error formatting.
"""

from pydantic import BaseModel, Field
from typing import List, Optional, Dict, Any


class ErrorDetail(BaseModel):
    """Schema for individual error detail."""

    field: Optional[str] = Field(None, description="Field name that caused the error", examples=["price"])
    message: str = Field(..., description="Human-readable error message", examples=["Price cannot be negative."])


class ErrorResponse(BaseModel):
    """Schema for standardized error responses."""

    code: str = Field(..., description="Error code identifier", examples=["VALIDATION_ERROR"])
    message: str = Field(..., description="Human-readable error message")
    timestamp: str = Field(..., description="Error timestamp in ISO format")
    request_id: Optional[str] = Field(None, description="Request identifier for tracking")
    details: Optional[List[ErrorDetail]] = Field(None, description="Per-field errors for validation failures")


class APIErrorResponse(BaseModel):
    """Schema for API error response wrapper."""

    error: ErrorResponse


def _example(code: str, message: str, details: Optional[List[Dict[str, str]]] = None) -> Dict[str, Any]:
    error = {
        "code": code,
        "message": message,
        "timestamp": "2024-01-01T00:00:00+00:00",
        "request_id": "abc12345",
    }
    if details:
        error["details"] = details
    return {"error": error}


def _response(description: str, example: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "description": description,
        "model": APIErrorResponse,
        "content": {"application/json": {"example": example}},
    }


# Common error responses for route documentation
COMMON_ERROR_RESPONSES = {
    401: _response(
        "Unauthorized - Authentication required",
        _example("UNAUTHORIZED", "Authentication token required"),
    ),
    403: _response(
        "Forbidden - The actor may not perform this action",
        _example("FORBIDDEN", "Insufficient permissions to edit this property"),
    ),
    404: _response(
        "Not Found - Resource not found",
        _example("NOT_FOUND", "Property not found with ID: 123e4567-e89b-12d3-a456-426614174000"),
    ),
    409: _response(
        "Conflict - The change would violate a directory invariant",
        _example("LAST_ADMIN", "Cannot delete the last admin user."),
    ),
    422: _response(
        "Unprocessable Entity - Validation error",
        _example(
            "VALIDATION_ERROR",
            "The given data was invalid",
            [
                {"field": "price", "message": "Price cannot be negative."},
                {"field": "images.0", "message": "Each image must be smaller than 2MB."},
            ],
        ),
    ),
    500: _response(
        "Internal Server Error - Unexpected error",
        _example("INTERNAL_SERVER_ERROR", "An unexpected error occurred. Please try again later."),
    ),
}


def get_error_responses(*status_codes: int) -> Dict[int, Dict[str, Any]]:
    """Pick documented error responses for a route."""
    return {code: COMMON_ERROR_RESPONSES[code] for code in status_codes if code in COMMON_ERROR_RESPONSES}
