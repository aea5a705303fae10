# backend/shopledger/schemas/product_schema.py
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class CategoryRef(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: int
    name: str


class CategoryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: int
    name: str
    description: Optional[str] = None
    parent: Optional[CategoryRef] = None
    is_active: bool


class VariantOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: int
    name: str
    sku: str
    buy_price: Decimal
    sell_price: Decimal
    stock_quantity: int
    attributes: Optional[Dict[str, str]] = None
    image_index: int = 0


class ImageOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: int
    image_id: str
    url: str
    thumbnail_url: Optional[str] = None
    is_primary: bool


class ProductOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: int
    sku: str
    name: str
    category: Optional[CategoryRef] = None
    subcategory: Optional[str] = None
    description: Optional[str] = None
    manufacturer: Optional[str] = None
    unit: str
    buy_price: Decimal
    sell_price: Decimal
    stock_quantity: int
    reorder_point: int
    variants: List[VariantOut] = []
    images: List[ImageOut] = []
    created_by: Optional[int] = None
    created_at: Optional[datetime] = None


class VariantIn(BaseModel):
    id: Optional[int] = None
    name: Optional[str] = None
    sku: Optional[str] = None
    buy_price: Optional[Decimal] = Field(None, ge=0)
    sell_price: Optional[Decimal] = Field(None, ge=0)
    stock_quantity: Optional[int] = Field(None, ge=0)
    attributes: Optional[Dict[str, str]] = None
    image_index: Optional[int] = Field(None, ge=0)


class ImageIn(BaseModel):
    image_id: str
    url: str
    thumbnail_url: Optional[str] = None
    is_primary: bool = False


class ProductIn(BaseModel):
    sku: str
    name: str
    # id or category name
    category: Union[int, str]
    subcategory: Optional[str] = None
    description: Optional[str] = None
    manufacturer: Optional[str] = None
    unit: Optional[str] = None
    buy_price: Decimal = Field(Decimal("0"), ge=0)
    sell_price: Decimal = Field(Decimal("0"), ge=0)
    stock_quantity: int = Field(0, ge=0)
    reorder_point: Optional[int] = Field(None, ge=0)
    variants: List[VariantIn] = []
    images: List[ImageIn] = []


class ProductUpdate(BaseModel):
    sku: Optional[str] = None
    name: Optional[str] = None
    category: Optional[Union[int, str]] = None
    subcategory: Optional[str] = None
    description: Optional[str] = None
    manufacturer: Optional[str] = None
    unit: Optional[str] = None
    buy_price: Optional[Decimal] = Field(None, ge=0)
    sell_price: Optional[Decimal] = Field(None, ge=0)
    reorder_point: Optional[int] = Field(None, ge=0)
    variants: Optional[List[VariantIn]] = None
    images: Optional[List[ImageIn]] = None


class CategoryIn(BaseModel):
    name: str
    description: Optional[str] = None
    parent: Optional[Union[int, str]] = None
    is_active: bool = True


class CategoryUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    parent: Optional[Union[int, str]] = None
    is_active: Optional[bool] = None


class ImageUploadIn(BaseModel):
    file_name: str
    # base64-encoded file bytes
    content_base64: str
    folder: Optional[str] = None
