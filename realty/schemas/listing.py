"""
Pydantic schemas for listing requests and responses.
Handles listing validation with user-facing messages, search payloads and pagination.
"""

from pydantic import BaseModel, Field, field_serializer, field_validator, ValidationError as PydanticValidationError
from typing import Optional, List, Dict, Any
from datetime import datetime
from decimal import Decimal
from realty.models.listing import ListingStatus
from realty.schemas.image import ListingImageResponse
from realty.schemas.user import UserSummary
from realty.schemas.pagination import PageMeta, page_fields
import uuid


MAX_PRICE = Decimal("9999999999.99")

# Messages keyed by field and rule, shown next to the offending form field
FIELD_MESSAGES: Dict[str, Dict[str, str]] = {
    "title": {
        "required": "Property title is required.",
        "max": "Property title may not be greater than 255 characters.",
    },
    "description": {
        "required": "Property description is required.",
    },
    "price": {
        "required": "Property price is required.",
        "number": "Price must be a valid number.",
        "min": "Price cannot be negative.",
        "max": "Price may not be greater than 9999999999.99.",
        "places": "Price may not have more than 2 decimal places.",
    },
    "surface_area": {
        "required": "Surface area is required.",
        "integer": "Surface area must be a whole number.",
        "min": "Surface area must be at least 1 square meter.",
    },
    "bedrooms": {
        "required": "Number of bedrooms is required.",
        "integer": "Number of bedrooms must be a whole number.",
        "min": "Number of bedrooms cannot be negative.",
        "max": "Maximum 20 bedrooms allowed.",
    },
    "city": {
        "required": "City is required.",
        "max": "City may not be greater than 255 characters.",
    },
    "neighborhood": {
        "required": "Neighborhood is required.",
        "max": "Neighborhood may not be greater than 255 characters.",
    },
    "status": {
        "invalid": "Status must be pending, published, or archived.",
    },
}

# pydantic error type -> rule name in FIELD_MESSAGES
ERROR_RULES = {
    "missing": "required",
    "string_too_short": "required",
    "string_too_long": "max",
    "decimal_parsing": "number",
    "decimal_type": "number",
    "finite_number": "number",
    "decimal_max_places": "places",
    "decimal_max_digits": "max",
    "int_parsing": "integer",
    "int_from_float": "integer",
    "int_type": "integer",
    "greater_than_equal": "min",
    "less_than_equal": "max",
    "enum": "invalid",
}


def collect_field_errors(exc: PydanticValidationError) -> List[Dict[str, str]]:
    """
    Convert a pydantic ValidationError into ``{"field", "message"}`` entries.
    Only the first failure per field is kept.
    """
    errors: List[Dict[str, str]] = []
    seen = set()

    for error in exc.errors():
        field = ".".join(str(part) for part in error["loc"]) or "__root__"
        if field in seen:
            continue
        seen.add(field)

        rule = ERROR_RULES.get(error["type"])
        message = FIELD_MESSAGES.get(field, {}).get(rule) if rule else None
        errors.append({"field": field, "message": message or error["msg"]})

    return errors


class ListingCreate(BaseModel):
    """Attributes required to create a listing."""

    title: str = Field(..., min_length=1, max_length=255, examples=["Sunny two-bedroom apartment"])
    description: str = Field(..., min_length=1)
    price: Decimal = Field(..., ge=0, le=MAX_PRICE, decimal_places=2, examples=[250000])
    surface_area: int = Field(..., ge=1, description="Surface area in square meters", examples=[85])
    bedrooms: int = Field(..., ge=0, le=20, examples=[2])
    city: str = Field(..., min_length=1, max_length=255, examples=["Casablanca"])
    neighborhood: str = Field(..., min_length=1, max_length=255, examples=["Maarif"])

    class Config:
        str_strip_whitespace = True


class ListingUpdate(BaseModel):
    """Partial update; only provided fields are validated and applied."""

    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, min_length=1)
    price: Optional[Decimal] = Field(None, ge=0, le=MAX_PRICE, decimal_places=2)
    surface_area: Optional[int] = Field(None, ge=1)
    bedrooms: Optional[int] = Field(None, ge=0, le=20)
    city: Optional[str] = Field(None, min_length=1, max_length=255)
    neighborhood: Optional[str] = Field(None, min_length=1, max_length=255)
    status: Optional[ListingStatus] = None

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, v):
        """Accept status names in any case, as the moderation workflow does."""
        if isinstance(v, str):
            return v.strip().lower()
        return v

    class Config:
        str_strip_whitespace = True


class StatusUpdateRequest(BaseModel):
    """Admin moderation payload. Unknown values are rejected by the moderation workflow."""

    status: str = Field(..., examples=["published"])


class ListingResponse(BaseModel):
    """Listing view model with owner and images in display order."""

    id: uuid.UUID
    title: str
    description: str
    price: Decimal
    surface_area: int
    bedrooms: int
    city: str
    neighborhood: str
    status: ListingStatus
    user_id: uuid.UUID
    owner: Optional[UserSummary] = None
    images: List[ListingImageResponse] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    @field_serializer("price")
    def serialize_price(self, price: Decimal) -> float:
        return float(price)

    class Config:
        from_attributes = True


class ListingListResponse(PageMeta):
    """Paginated listing results."""

    items: List[ListingResponse]


def listing_page(result) -> ListingListResponse:
    """Build a paginated response from a search page (items, total, page, page_size)."""
    return ListingListResponse(
        items=[ListingResponse.model_validate(listing) for listing in result.items],
        **page_fields(result.total, result.page, result.page_size)
    )


class ListingMutationResponse(BaseModel):
    message: str
    listing: ListingResponse


class ListingEditResponse(BaseModel):
    """Payload for the edit form of a listing."""

    listing: ListingResponse
    can_change_status: bool = Field(..., description="Whether the viewer may moderate the status")
    statuses: List[str] = Field(default_factory=list, description="Statuses the viewer may choose from")


class HomeResponse(BaseModel):
    """Landing page: most recent published listings plus optional search results."""

    recent_properties: List[ListingResponse]
    search_results: Optional[ListingListResponse] = None
    filters: Dict[str, Any] = Field(default_factory=dict)
