"""Request bodies accepted by the web API.

Field names follow the camelCase wire format of the remote sheet.
"""

from __future__ import annotations

from typing import List, Optional, Union

from pydantic import BaseModel, Field


class OrderRowIn(BaseModel):
    itemName: str = Field("", description="Product name, blank rows are ignored")
    quantity: Optional[Union[int, float, str]] = Field(None, description="Positive whole number")


class OrderIn(BaseModel):
    date: str = Field(..., description="Delivery date, YYYY-MM-DD")
    storeName: str = Field(..., description="Client store")
    deliveryTime: str = Field("", description="HH:MM")
    rows: List[OrderRowIn] = Field(default_factory=list)
    override: bool = Field(False, description="Stage duplicate items anyway")


class DefaultItemIn(BaseModel):
    itemName: str
    quantity: int = Field(..., gt=0)


class StoreIn(BaseModel):
    storeName: str
    phone: str = ""
    holidayDates: List[str] = Field(default_factory=list)
    deliveryTime: str = "08:00"
    defaultItems: List[DefaultItemIn] = Field(default_factory=list)


class ProductIn(BaseModel):
    itemName: str
    unit: str = ""
