"""Pydantic request/response schemas for the Dining API.

These are external contracts (anti-corruption layer) — separate from
internal Protean commands.
"""

from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class OptionSchema(BaseModel):
    option_id: str
    name: str
    price: float


class PackageDishSchema(BaseModel):
    dish_id: str
    name: str
    description: str | None = None
    base_price: float | None = None
    promotional_price: float | None = None
    quantity: int = Field(ge=1, default=1)
    addons: list[OptionSchema] = []
    variants: list[OptionSchema] = []


class StatusResponse(BaseModel):
    status: str = "ok"


# ---------------------------------------------------------------------------
# Address
# ---------------------------------------------------------------------------
class RegisterAddressRequest(BaseModel):
    name: str
    phone: str
    address: str
    building: str | None = None
    floor: str | None = None
    latitude: float | None = None
    longitude: float | None = None


class AddressIdResponse(BaseModel):
    address_id: str


# ---------------------------------------------------------------------------
# Cart
# ---------------------------------------------------------------------------
class AddDishRequest(BaseModel):
    dish_id: str
    name: str
    description: str | None = None
    category_name: str | None = None
    image_url: str | None = None
    base_price: float = Field(ge=0)
    promotional_price: float | None = Field(default=None, ge=0)
    quantity: int = Field(ge=1, default=1)
    addons: list[OptionSchema] = []
    variants: list[OptionSchema] = []

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "dish_id": "dish-001",
                    "name": "Beef Noodle Soup",
                    "base_price": 28.0,
                    "quantity": 2,
                    "addons": [{"option_id": "addon-egg", "name": "Extra egg", "price": 5.0}],
                    "variants": [],
                }
            ]
        }
    }


class AddPackageRequest(BaseModel):
    package_id: str
    name: str
    description: str | None = None
    category_name: str | None = None
    image: str | None = None
    package_price: float = Field(ge=0)
    quantity: int = Field(ge=1, default=1)
    dishes: list[PackageDishSchema] = []


class CartIdResponse(BaseModel):
    cart_id: str


class CartItemResponse(BaseModel):
    item_id: str
    dish_id: str
    name: str
    base_price: float | None
    promotional_price: float | None
    quantity: int
    addons: list[OptionSchema]
    variants: list[OptionSchema]


class CartPackageItemResponse(BaseModel):
    item_id: str
    package_id: str
    name: str
    package_price: float | None
    quantity: int
    dishes: list[PackageDishSchema]


class CartResponse(BaseModel):
    cart_id: str | None = None
    status: str | None = None
    items: list[CartItemResponse] = []
    package_items: list[CartPackageItemResponse] = []


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------
class PlaceOrderRequest(BaseModel):
    service_method: Literal["delivery", "pickup", "dine-in"]
    payment_method: str
    address_id: str | None = None
    table_id: str | None = None
    guests_count: int | None = Field(default=None, ge=1)
    dining_date: date | None = None
    time_slot_id: str | None = None
    pickup_time: str | None = None
    subtotal: float = Field(ge=0)
    delivery_fee: float = Field(ge=0, default=0.0)
    discount_amount: float = Field(ge=0, default=0.0)
    total_amount: float = Field(ge=0)
    promo_code: str | None = None
    special_instructions: str | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "service_method": "dine-in",
                    "payment_method": "cash",
                    "table_id": "table-001",
                    "guests_count": 4,
                    "dining_date": "2025-09-01",
                    "time_slot_id": "slot-1200",
                    "subtotal": 66.0,
                    "delivery_fee": 0.0,
                    "discount_amount": 0.0,
                    "total_amount": 66.0,
                }
            ]
        }
    }


class OrderItemResponse(BaseModel):
    item_id: str
    dish_id: str
    name: str
    description: str | None = None
    image_url: str | None = None
    category_name: str | None = None
    base_price: float | None
    promotional_price: float | None
    quantity: int
    addons: list[OptionSchema]
    variants: list[OptionSchema]
    unit_price: float
    item_total: float


class OrderPackageItemResponse(BaseModel):
    item_id: str
    package_id: str
    name: str
    description: str | None = None
    image: str | None = None
    category_name: str | None = None
    package_price: float
    quantity: int
    dishes: list[PackageDishSchema]
    unit_price: float
    item_total: float


class DeliveryResponse(BaseModel):
    name: str | None = None
    phone: str | None = None
    address: str | None = None
    building: str | None = None
    floor: str | None = None
    latitude: float | None = None
    longitude: float | None = None


class ReservationResponse(BaseModel):
    table_id: str
    table_code: str | None = None
    guests_count: int | None = None
    dining_date: date
    checkin_time: str
    checkout_time: str
    status: str
    auto_extend_count: int
    total_extended_minutes: int
    checked_in_at: datetime | None = None
    checked_out_at: datetime | None = None
    overdue_flagged_at: datetime | None = None
    overdue_reason: str | None = None


class OrderResponse(BaseModel):
    order_id: str
    order_number: str
    status: str
    payment_status: str
    service_method: str
    payment_method: str
    subtotal: float
    delivery_fee: float
    discount_amount: float
    total_amount: float
    promo_code: str | None = None
    special_instructions: str | None = None
    pickup_time: str | None = None
    delivery: DeliveryResponse | None = None
    reservation: ReservationResponse | None = None
    items: list[OrderItemResponse]
    package_items: list[OrderPackageItemResponse]
    created_at: datetime | None = None


# ---------------------------------------------------------------------------
# Tables and time slots
# ---------------------------------------------------------------------------
class TimeSlotResponse(BaseModel):
    time_slot_id: str
    start_time: str
    end_time: str


class TableAvailabilityResponse(BaseModel):
    table_id: str
    table_code: str
    capacity: int
    location: str | None = None
    status: Literal["available", "occupied", "maintenance"]
    is_under_maintenance: bool
    has_conflict: bool


class AvailabilityResponse(BaseModel):
    dining_date: date
    time_slot_id: str
    party_size: int
    tables: list[TableAvailabilityResponse]


class TableStatusResponse(BaseModel):
    table_id: str
    table_code: str
    is_under_maintenance: bool
    is_occupied: bool
    order_id: str | None = None
    order_number: str | None = None
    guests_count: int | None = None
    checkin_at: datetime | None = None
    checkout_at: datetime | None = None
    auto_extend_count: int | None = None
    total_extended_minutes: int | None = None
    is_overdue: bool = False


# ---------------------------------------------------------------------------
# Reservation sweep
# ---------------------------------------------------------------------------
class ProcessExpiredRequest(BaseModel):
    as_of: datetime | None = None
    dry_run: bool = False


class SweepOutcomeResponse(BaseModel):
    order_id: str
    order_number: str
    table_id: str
    table_code: str | None = None
    action: Literal["extended", "flagged"]
    extensions_applied: int
    auto_extend_count: int
    total_extended_minutes: int
    reserved_until: datetime | None = None
    reason: str | None = None


class ProcessExpiredResponse(BaseModel):
    dry_run: bool
    processed: int
    outcomes: list[SweepOutcomeResponse]
