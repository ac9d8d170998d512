"""Pydantic схемы API управления ботами и товарами."""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

MIN_PRICE = Decimal("0.01")


class BotCreate(BaseModel):
    name: str = Field(..., min_length=1)
    bot_identifier: str = Field(..., min_length=1)
    access_token: str = Field(..., min_length=1)
    platform: str = "telegram"
    description: str = ""
    shop_name: Optional[str] = None


class BotUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    shop_name: Optional[str] = None


class BotOut(BaseModel):
    """Бот без access_token: токен наружу не отдаётся."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    bot_identifier: str
    platform: str
    platform_api_id: int
    shop_name: Optional[str] = None
    owner_id: int
    description: str = ""


class BotStats(BaseModel):
    total_messages: int
    total_dialogues: int


class ProductCreate(BaseModel):
    name: str = Field(..., min_length=1)
    price: Decimal = Field(..., ge=MIN_PRICE)
    description: str = ""
    catalog: str = ""
    subcategory: str = ""
    image_url: Optional[str] = None
    in_stock: bool = True


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    price: Optional[Decimal] = Field(default=None, ge=MIN_PRICE)
    description: Optional[str] = None
    catalog: Optional[str] = None
    subcategory: Optional[str] = None
    image_url: Optional[str] = None
    in_stock: Optional[bool] = None


class ProductOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    bot_id: int
    name: str
    price: Decimal
    description: str = ""
    catalog: str = ""
    subcategory: str = ""
    image_url: Optional[str] = None
    in_stock: bool = True


class ImportReport(BaseModel):
    created: int
    skipped: int
    errors: list[str] = []


class TurnOut(BaseModel):
    role: str
    content: str


class TokenUsageStats(BaseModel):
    bot_identifier: str
    total_requests: int
    total_prompt_tokens: int
    total_completion_tokens: int
    total_cost_usd: float
    total_cost_local: float
