"""
Pydantic schemas for catalog items, sync reports and API payloads.
"""
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Union
from pydantic import BaseModel, ConfigDict, Field, model_validator


class CatalogItem(BaseModel):
    """Normalized product row as read from a spreadsheet tab."""

    model_config = ConfigDict(from_attributes=True)

    id: str = Field(..., description="Stable external identifier, unique across the catalog")
    name: str = Field(..., description="Display name")
    url: str = Field("", description="External product link")
    image_url_1: str = Field("", description="Primary image URL")
    image_url_2: str = Field("", description="Secondary image URL")
    original_price: float = Field(0.0, ge=0, description="Price before discount")
    price: float = Field(0.0, ge=0, description="Effective price")
    stock_status: str = Field("", description="Free-form stock tag, e.g. 'In Stock'")
    description: str = Field("", description="Defaults to the name")

    @model_validator(mode="after")
    def default_description(self) -> "CatalogItem":
        if not self.description:
            self.description = self.name
        return self


class PersistedCatalogItem(CatalogItem):
    """Catalog item as mirrored in the store."""

    category: str = Field(..., min_length=1, description="Sheet tab the item belongs to")
    is_active: bool = True
    sync_source: str = "external_sheet"
    created_at: datetime
    updated_at: datetime
    last_synced_at: datetime
    custom_data: Dict[str, Any] = Field(default_factory=dict)


class SyncState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    COMPLETED_WITH_ERRORS = "completed_with_errors"
    FAILED = "failed"


class SyncError(BaseModel):
    """One failed category (or a failed category discovery when ``category`` is None)."""

    category: Optional[str] = None
    error: str
    chunks_committed: Optional[int] = Field(
        None, description="Upsert chunks committed before a store write failure"
    )


class SyncReport(BaseModel):
    """Result of a sync run."""

    success: bool
    message: str
    synced_categories: List[str] = Field(default_factory=list)
    total_synced: int = 0
    errors: Optional[List[SyncError]] = None


class RemovalPolicy(str, Enum):
    DEACTIVATE = "deactivate"
    DELETE = "delete"


class RemovalReport(BaseModel):
    """Items found in the store but missing from the source for one category."""

    category: str
    policy: RemovalPolicy
    removed_ids: List[str] = Field(default_factory=list)


class SyncStatus(BaseModel):
    state: SyncState
    last_report: Optional[SyncReport] = None


class CatalogResult(BaseModel):
    """What the storefront needs to render one catalog page."""

    items: List[Union[PersistedCatalogItem, CatalogItem]] = Field(default_factory=list)
    categories: List[str] = Field(default_factory=list)
    selected_category: Optional[str] = None
    origin: Literal["store", "source", "fallback"]
    fallback_reason: Optional[str] = Field(
        None, description="Why the primary path was not used"
    )


class OrderLine(BaseModel):
    id: str
    name: str
    price: float = Field(..., ge=0)
    quantity: int = Field(..., ge=1)

    @property
    def subtotal(self) -> float:
        return self.price * self.quantity


class OrderRequest(BaseModel):
    """Cart submitted from the storefront."""

    cart: List[OrderLine] = Field(..., min_length=1)
    total: float = Field(..., ge=0)
    phone_number: str = Field(..., min_length=1, max_length=50)
    email: str = Field(..., min_length=3, max_length=255)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "cart": [
                    {"id": "P001", "name": "Premium Laptop", "price": 999.99, "quantity": 1}
                ],
                "total": 999.99,
                "phone_number": "+966500000000",
                "email": "buyer@example.com",
            }
        }
    )


class OrderResponse(BaseModel):
    success: bool
    message_id: Optional[int] = None


class ErrorResponse(BaseModel):
    """Error response schema."""

    error: str = Field(..., description="Error message")
    detail: Optional[str] = Field(None, description="Additional error details")
