from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field as PydanticField

# KLARA does not report stock; every article counts as available
STOCK_ALWAYS_AVAILABLE = 999
# Categories without an explicit order sort after everything else
UNORDERED_SORT_SENTINEL = 9999


class CanonicalArticle(BaseModel):
    id: str
    article_number: str
    name: str
    price: Decimal = Decimal("0")
    description: str = ""
    category_ids: List[str] = []
    stock: int = STOCK_ALWAYS_AVAILABLE


class CanonicalCategory(BaseModel):
    id: str
    name: str
    name_en: Optional[str] = None
    sort_order: Union[int, float] = UNORDERED_SORT_SENTINEL


class CategoryWithCount(CanonicalCategory):
    count: int


# Tasting attributes maintained by the shop admins
class CustomData(BaseModel):
    model_config = ConfigDict(extra="allow")

    grapes: Optional[str] = None
    nose: Optional[str] = None
    food: Optional[str] = None
    temp: Optional[str] = None
    alcohol: Optional[str] = None
    barrel: Optional[str] = None
    vintage: Optional[int] = None
    sweetness: Optional[int] = PydanticField(None, ge=1, le=5)
    acidity: Optional[int] = PydanticField(None, ge=1, le=5)
    tannins: Optional[int] = PydanticField(None, ge=1, le=5)
    body: Optional[int] = PydanticField(None, ge=1, le=5)
    fruitiness: Optional[int] = PydanticField(None, ge=1, le=5)
    new_item_until: Optional[datetime] = None
    discount_percentage: Decimal = PydanticField(Decimal("0"), ge=0, le=100)


class OverrideRecord(BaseModel):
    """Admin edits for one KLARA article; ``None`` means "use KLARA's value"."""

    model_config = ConfigDict(from_attributes=True)

    custom_name: Optional[str] = None
    custom_description: Optional[str] = None
    custom_price: Optional[Decimal] = PydanticField(None, ge=0, decimal_places=2)
    custom_images: Optional[List[str]] = None
    custom_data: Optional[CustomData] = None
    is_active: bool = True
    is_featured: bool = False


class OverrideResponse(OverrideRecord):
    klara_article_id: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# What the admin edit form submits: field values, not the delta. Omitted
# name, description or price leave the KLARA value untouched.
class OverrideForm(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    price: Optional[Decimal] = PydanticField(None, ge=0, decimal_places=2)
    images: List[str] = []
    custom_data: Optional[CustomData] = None
    is_active: bool = True
    is_featured: bool = False


class ArticleView(BaseModel):
    id: str
    article_number: str
    name: str
    description: str
    price: Decimal
    effective_price: Decimal
    discount_percentage: Decimal = Decimal("0")
    category_ids: List[str]
    stock: int
    images: List[str] = []
    image_url: Optional[str] = None
    visible: bool = True
    is_featured: bool = False
    is_new: bool = False
    has_override: bool = False
    custom_data: Optional[CustomData] = None


class CacheAction(BaseModel):
    action: str
