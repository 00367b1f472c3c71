from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import List, Optional, Dict, Any
from datetime import datetime, timezone
from enum import Enum


class CamelModel(BaseModel):
    """Base for models persisted or returned in the camelCase wire format"""
    model_config = ConfigDict(populate_by_name=True)

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


class Gender(str, Enum):
    MEN = "men"
    WOMEN = "women"
    UNISEX = "unisex"


class FeedbackAction(str, Enum):
    LIKE = "like"
    DISLIKE = "dislike"
    SAVE = "save"
    REMOVE_SAVE = "remove-save"


class Product(CamelModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str
    title: str
    brand: str
    color: str
    material: str
    fabric: Optional[str] = None
    category: str
    gender: Optional[str] = None
    size_options: List[str] = Field(default_factory=list, alias="sizeOptions")
    price: float = Field(ge=0)
    currency: str = "INR"
    thumbnail: str = ""
    product_url: str = Field(default="", alias="productUrl")
    description: Optional[str] = None


class Budget(BaseModel):
    min: Optional[float] = None
    max: Optional[float] = None


class QueryFilters(BaseModel):
    category: Optional[str] = None
    color: Optional[str] = None
    material: Optional[str] = None
    gender: Optional[str] = None
    brand: Optional[str] = None
    budget: Optional[Budget] = None
    size: Optional[List[str]] = None

    @field_validator("category", "color", "material", "gender", "brand", mode="before")
    @classmethod
    def _normalize_text(cls, value):
        # External extractors send "" or "null" for unknown fields
        if value is None:
            return None
        value = str(value).strip().lower()
        return value if value and value != "null" else None

    @field_validator("size", mode="before")
    @classmethod
    def _normalize_sizes(cls, value):
        if value is None:
            return None
        if not isinstance(value, (list, tuple, set)):
            value = [value]
        sizes: List[str] = []
        for token in value:
            token = str(token).strip().upper()
            if token and token not in sizes:
                sizes.append(token)
        return sizes or None


class QueryMeta(BaseModel):
    quantity: Optional[int] = None

    def resolved_quantity(self, default: int = 4, upper: int = 5) -> int:
        """Requested result count clamped to [1, upper]"""
        if not self.quantity:
            return default
        return min(max(self.quantity, 1), upper)


class PreferenceState(CamelModel):
    liked_brands: List[str] = Field(default_factory=list, alias="likedBrands")
    liked_product_ids: List[str] = Field(default_factory=list, alias="likedProductIds")
    disliked_product_ids: List[str] = Field(default_factory=list, alias="dislikedProductIds")
    saved_product_ids: List[str] = Field(default_factory=list, alias="savedProductIds")
    colors: List[str] = Field(default_factory=list)
    materials: List[str] = Field(default_factory=list)
    price_range: Budget = Field(default_factory=Budget, alias="priceRange")


class HistoryEntry(CamelModel):
    timestamp: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    user_message: str = Field(alias="userMessage")
    filters: QueryFilters = Field(default_factory=QueryFilters)
    response_product_ids: List[str] = Field(default_factory=list, alias="responseProductIds")


class SessionState(CamelModel):
    preferences: PreferenceState = Field(default_factory=PreferenceState)
    history: List[HistoryEntry] = Field(default_factory=list)


class ExtractionResult(BaseModel):
    """Outcome of one extraction attempt chain; source is 'gemini' or 'heuristic'"""
    filters: QueryFilters
    meta: QueryMeta
    source: str


class AssistantMessage(CamelModel):
    text: str
    follow_up: Optional[str] = Field(default=None, alias="followUp")


class ProductSummary(CamelModel):
    id: str
    title: str
    brand: str
    color: str
    size_options: List[str] = Field(alias="sizeOptions")
    material: str
    price: float
    currency: str
    thumbnail: str
    product_url: str = Field(alias="productUrl")
    description: Optional[str] = None
    fabric: Optional[str] = None
    saved: bool = False

    @classmethod
    def from_product(cls, product: Product, saved: bool = False) -> "ProductSummary":
        return cls(
            id=product.id,
            title=product.title,
            brand=product.brand,
            color=product.color,
            size_options=list(product.size_options),
            material=product.material,
            price=product.price,
            currency=product.currency,
            thumbnail=product.thumbnail,
            product_url=product.product_url,
            description=product.description,
            fabric=product.fabric,
            saved=saved,
        )


class TurnResult(CamelModel):
    session_id: str = Field(alias="sessionId")
    message: AssistantMessage
    products: List[ProductSummary]
    filters: QueryFilters
    suggestions: List[str]


# API request bodies. Required fields are checked by the endpoints so the
# caller gets the same 400 message whether a field is missing or blank.

class ChatRequest(CamelModel):
    message: Optional[str] = None
    session_id: Optional[str] = Field(default=None, alias="sessionId")


class FeedbackRequest(CamelModel):
    session_id: Optional[str] = Field(default=None, alias="sessionId")
    product_id: Optional[str] = Field(default=None, alias="productId")
    action: Optional[str] = None


class ParseQueryRequest(BaseModel):
    query: Optional[str] = None
