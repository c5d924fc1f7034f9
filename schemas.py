"""
Request and response schemas.

Documents in the ``Products`` collection are returned as stored, so only
the payloads this service accepts or produces are modelled here.
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Any, List, Optional, Union


# Collection: Orders
class OrderIn(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    orderId: Optional[Union[str, int]] = Field(None, description="Client-supplied order id")
    name: str = Field(..., min_length=1)
    surname: str = Field(..., min_length=1)
    phone: str = Field(..., min_length=1)
    # strict: JSON booleans are not prices
    totalPrice: float = Field(..., gt=0, strict=True, description="Order total")
    courses: List[Any] = Field(..., min_length=1, description="Purchased items, in order")


class OrderCreated(BaseModel):
    message: str
    orderId: str


# Availability batch entry
class AvailabilityItem(BaseModel):
    title: str = Field(..., min_length=1)
    quantity: int = Field(..., gt=0)


class AvailabilityResult(BaseModel):
    message: str
    matched: int
    unmatched: List[str] = []


class Message(BaseModel):
    message: str
