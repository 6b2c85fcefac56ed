"""
Input validation schemas using Pydantic for better data integrity.
"""
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import List, Optional


def _strip(v):
    if isinstance(v, str):
        return v.strip()
    return v


class MasterItemInput(BaseModel):
    """Schema for a new catalog product with its first brand variant."""
    name: str = Field(..., min_length=1, max_length=100)
    brand: str = Field(..., min_length=1, max_length=100)
    price: float = Field(..., ge=0)
    category: Optional[str] = None
    image_source: Optional[str] = None

    @field_validator('name', 'brand', mode='before')
    @classmethod
    def strip_whitespace(cls, v):
        """Remove leading/trailing whitespace."""
        return _strip(v)


class MasterItemUpdateInput(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    category: Optional[str] = None

    @field_validator('name', mode='before')
    @classmethod
    def strip_whitespace(cls, v):
        return _strip(v)


class VariantInput(BaseModel):
    """Schema for adding or editing a brand variant."""
    brand: str = Field(..., min_length=1, max_length=100)
    price: float = Field(..., ge=0)
    image_source: Optional[str] = None

    @field_validator('brand', mode='before')
    @classmethod
    def strip_whitespace(cls, v):
        return _strip(v)


class ListCreateInput(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)

    @field_validator('name', mode='before')
    @classmethod
    def strip_whitespace(cls, v):
        return _strip(v)


class ListItemInput(BaseModel):
    master_item_id: str = Field(..., min_length=1)
    variant_index: int = Field(0, ge=0)


class OpenSessionInput(BaseModel):
    list_id: str = Field(..., min_length=1)
    replace: bool = False


class PriceEditInput(BaseModel):
    """Raw text typed by the user; parsing and fallback happen in the tracker."""
    text: str = ""


class ImageInput(BaseModel):
    source_path: str = Field(..., min_length=1)


class CompleteSessionInput(BaseModel):
    actual_paid: str = ""
    receipt_source: Optional[str] = None


# --- Portable .shoplist file -------------------------------------------------

class ExportedItem(BaseModel):
    """One list entry in a .shoplist file; prices and images never travel."""
    model_config = ConfigDict(populate_by_name=True)

    name: str
    brand: str = ""
    master_item_id: str = Field(..., alias='masterItemId')
    variant_index: int = Field(0, alias='variantIndex', ge=0)


class ExportedList(BaseModel):
    name: str = Field(..., min_length=1)
    items: List[ExportedItem]

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        if not v.strip():
            raise ValueError('List name cannot be empty')
        return v


class ShoplistFile(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    version: int = Field(..., ge=1)
    exported_at: Optional[int] = Field(None, alias='exportedAt')
    list: ExportedList
