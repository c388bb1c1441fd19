"""
Database Schemas

MongoDB collection schemas and request/response bodies, as Pydantic models.

- Lesson -> "lessons" collection
- Order  -> "orders" collection
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field

# Fields a client may change on a lesson. Anything else in an update is dropped.
UPDATABLE_LESSON_FIELDS = frozenset({"subject", "location", "price", "spaces", "image"})


class Lesson(BaseModel):
    """
    Lessons collection schema
    Collection name: "lessons"
    """
    subject: str = Field(..., description="Subject taught, e.g. Math")
    location: str = Field(..., description="Where the class takes place")
    price: float = Field(..., ge=0, description="Price per space")
    spaces: int = Field(..., ge=0, description="Remaining spaces")
    image: Optional[str] = Field(None, description="Image path under /images")


class LessonUpdate(BaseModel):
    """Partial lesson update. Only fields that were sent are applied."""
    subject: Optional[str] = None
    location: Optional[str] = None
    price: Optional[float] = None
    spaces: Optional[int] = None
    image: Optional[str] = None


class OrderRequest(BaseModel):
    """
    Body of POST /orders. Presence is checked by the handler so that empty
    values get the same treatment as missing ones.
    """
    name: Optional[str] = None
    phone: Optional[str] = None
    lessonIDs: Optional[List[str]] = None
    spaces: Optional[Union[int, float, List[int]]] = None


class Order(BaseModel):
    """
    Orders collection schema
    Collection name: "orders"
    """
    name: str = Field(..., description="Parent's name")
    phone: str = Field(..., description="Contact phone number")
    lessonIDs: List[str] = Field(..., min_length=1, description="Booked lesson ids")
    spaces: Union[int, float, List[int]] = Field(..., description="Spaces booked, total or per lesson")
    createdAt: datetime = Field(..., description="Server time of the booking")


class OrderCreated(BaseModel):
    message: str
    orderId: str
    order: Order


class LessonUpdated(BaseModel):
    message: str
    modifiedCount: int
    lesson: Dict[str, Any]


class ErrorResponse(BaseModel):
    error: str
    message: str
