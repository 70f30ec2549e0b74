"""Request schemas (pydantic v2).

Field names accept both the camelCase the storefront client sends and the
snake_case used by multipart forms, e.g. ``variantId`` / ``variant_id``.
"""
from typing import Annotated, List, Optional
from urllib.parse import urlsplit
from uuid import UUID

from pydantic import (
    AfterValidator,
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)


def _check_url(value):
    if value is None:
        return value
    parts = urlsplit(value.strip())
    if parts.scheme not in ("http", "https") or not parts.netloc:
        raise ValueError("Invalid URL")
    return value.strip()


WebUrl = Annotated[str, AfterValidator(_check_url)]


class _Schema(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class VariantImageCreate(_Schema):
    variant_id: UUID = Field(validation_alias=AliasChoices("variantId", "variant_id"))
    url: WebUrl
    position: int = Field(1, ge=0)


class VariantImageUpdate(_Schema):
    variant_id: Optional[UUID] = Field(
        None, validation_alias=AliasChoices("variantId", "variant_id")
    )
    url: Optional[WebUrl] = None
    position: Optional[int] = Field(None, ge=0)


class UploadRequest(_Schema):
    """Shared fields of the single and multi upload endpoints."""

    variant_id: UUID = Field(validation_alias=AliasChoices("variant_id", "variantId"))
    position: int = Field(1, ge=0)
    positions: Optional[List[Annotated[int, Field(ge=0)]]] = None

    @field_validator("position", mode="before")
    @classmethod
    def _blank_position(cls, value):
        # multipart forms send "" for an empty field
        if value in (None, ""):
            return 1
        return value


# ---------------------------------------------------------------------------
# Combined product / variant / image payloads
# ---------------------------------------------------------------------------


class ImageIn(_Schema):
    id: Optional[UUID] = None
    url: Optional[WebUrl] = None
    image_data: Optional[str] = Field(
        None, validation_alias=AliasChoices("imageData", "image_data")
    )
    position: int = Field(1, ge=0)


class ProductIn(_Schema):
    slug: str = Field(min_length=1, max_length=255)
    name: str = Field(min_length=1, max_length=255)
    short_description: Optional[str] = None
    long_description: Optional[str] = None
    currency: str = Field("USD", min_length=3, max_length=3)
    is_active: bool = True


class ProductPatch(_Schema):
    slug: Optional[str] = Field(None, min_length=1, max_length=255)
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    short_description: Optional[str] = None
    long_description: Optional[str] = None
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
    is_active: Optional[bool] = None


class VariantIn(_Schema):
    sku: Optional[str] = None
    price: float
    compare_at_price: Optional[float] = Field(
        None, validation_alias=AliasChoices("compareAtPrice", "compare_at_price")
    )
    stock: int = 0
    weight_gram: Optional[int] = Field(
        None, validation_alias=AliasChoices("weightGram", "weight_gram")
    )
    is_active: bool = Field(
        True, validation_alias=AliasChoices("isActive", "is_active")
    )
    images: List[ImageIn] = Field(default_factory=list)


class VariantPatch(_Schema):
    id: UUID
    sku: Optional[str] = None
    price: Optional[float] = None
    compare_at_price: Optional[float] = Field(
        None, validation_alias=AliasChoices("compareAtPrice", "compare_at_price")
    )
    stock: Optional[int] = None
    weight_gram: Optional[int] = Field(
        None, validation_alias=AliasChoices("weightGram", "weight_gram")
    )
    is_active: Optional[bool] = Field(
        None, validation_alias=AliasChoices("isActive", "is_active")
    )
    images: List[ImageIn] = Field(default_factory=list)


class CombinedProductCreate(_Schema):
    product: ProductIn
    variants: List[VariantIn] = Field(default_factory=list)


class CombinedProductUpdate(_Schema):
    product: Optional[ProductPatch] = None
    variants: List[VariantPatch] = Field(default_factory=list)
