"""
Database Schemas for the Restaurant API

Pydantic models validating request payloads before they reach MongoDB.
Create models carry the required fields of each collection; Patch models make
every field optional so an update only touches what the client sent.
"""

from datetime import datetime, timezone
from typing import Annotated, Any, List, Literal, Optional

from pydantic import AfterValidator, BaseModel, EmailStr, Field, model_validator

from helpers import utc_now


def _as_utc(value: datetime) -> datetime:
    # Naive datetimes from clients are taken as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


UTCDatetime = Annotated[datetime, AfterValidator(_as_utc)]

# Finite and non-negative; stored rounded to 2 decimals
Price = Annotated[float, Field(ge=0, allow_inf_nan=False)]

PaymentMethod = Literal["CARD", "CASH"]
PaymentStatus = Literal["PENDING", "PAID"]

DEFAULT_PAYMENT_STATUS = "PENDING"


# Menus
class MenuCreate(BaseModel):
    name: str = Field(..., min_length=1, description="Menu name")
    category: str = Field(..., min_length=1, description="Category like Lunch, Dinner, Drinks")
    start_date: Optional[UTCDatetime] = Field(None, description="Start of the active window")
    end_date: Optional[UTCDatetime] = Field(None, description="End of the active window")

    @model_validator(mode="after")
    def check_window(self):
        if self.start_date and self.end_date and self.end_date <= self.start_date:
            raise ValueError("end_date must be after start_date")
        return self


class MenuPatch(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    category: Optional[str] = Field(None, min_length=1)
    start_date: Optional[UTCDatetime] = None
    end_date: Optional[UTCDatetime] = None


# Foods
class FoodCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=100, description="Dish name")
    price: Price = Field(..., description="Price, stored rounded to 2 decimals")
    food_image: str = Field(..., description="Image URL")
    menu_id: str = Field(..., description="Menu the food belongs to")


class FoodPatch(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    price: Optional[Price] = None
    food_image: Optional[str] = None
    menu_id: Optional[str] = None


# Tables
class TableCreate(BaseModel):
    number_of_guests: int = Field(..., ge=1, description="Seating capacity")
    table_number: int = Field(..., ge=1, description="Number shown on the table")


class TablePatch(BaseModel):
    number_of_guests: Optional[int] = Field(None, ge=1)
    table_number: Optional[int] = Field(None, ge=1)


# Orders
class OrderCreate(BaseModel):
    order_date: UTCDatetime = Field(default_factory=utc_now)
    table_id: Optional[str] = Field(None, description="Table the order is served at")


class OrderPatch(BaseModel):
    order_date: Optional[UTCDatetime] = None
    table_id: Optional[str] = None


# Order items
class OrderItemCreate(BaseModel):
    quantity: int = Field(..., ge=1)
    unit_price: Price
    food_id: str


class OrderItemPack(BaseModel):
    """Items submitted together; they share one newly created order."""
    table_id: Optional[str] = None
    order_items: List[OrderItemCreate] = Field(..., min_length=1)


class OrderItemPatch(BaseModel):
    quantity: Optional[int] = Field(None, ge=1)
    unit_price: Optional[Price] = None
    food_id: Optional[str] = None


# Invoices
class InvoiceCreate(BaseModel):
    order_id: str
    payment_method: Optional[PaymentMethod] = None
    payment_status: PaymentStatus = DEFAULT_PAYMENT_STATUS

    @model_validator(mode="before")
    @classmethod
    def default_status(cls, data: Any) -> Any:
        # An explicit null means "not given"
        if isinstance(data, dict) and data.get("payment_status") is None:
            data = {k: v for k, v in data.items() if k != "payment_status"}
        return data


class InvoicePatch(BaseModel):
    payment_method: Optional[PaymentMethod] = None
    payment_status: Optional[PaymentStatus] = None


class InvoiceView(BaseModel):
    invoice_id: str
    order_id: str
    payment_method: Optional[str] = None
    payment_status: Optional[str] = None
    payment_due: float = 0
    table_number: Optional[int] = None
    payment_due_date: Optional[datetime] = None
    order_details: int = 0


# Users (authentication)
class SignUp(BaseModel):
    first_name: str = Field(..., min_length=2, max_length=100)
    last_name: str = Field(..., min_length=2, max_length=100)
    password: str = Field(..., min_length=6)
    email: EmailStr
    phone: str = Field(..., min_length=1)
    avatar: Optional[str] = Field(None, description="Avatar image URL")


class Login(BaseModel):
    email: EmailStr
    password: str


class SignedDetails(BaseModel):
    """Claims carried by session and refresh tokens."""
    email: str
    first_name: str
    last_name: str
    uid: str
    exp: int
    type: Optional[str] = None


def patch_fields(patch: BaseModel) -> dict:
    """Fields present in `patch` plus a fresh updated_at, ready for $set."""
    fields = patch.model_dump(exclude_none=True)
    fields["updated_at"] = utc_now()
    return fields
