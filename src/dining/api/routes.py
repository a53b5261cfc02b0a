"""FastAPI routes for the Dining domain — carts, orders, tables and reservations."""

import json
from datetime import date, datetime

import structlog
from fastapi import APIRouter, Depends, Query
from protean.exceptions import ExpectedVersionError, ProteanException
from protean.utils.globals import current_domain

from dining.address.address import RegisterAddress
from dining.api.dependencies import admin_actor, current_actor
from dining.api.schemas import (
    AddDishRequest,
    AddPackageRequest,
    AddressIdResponse,
    AvailabilityResponse,
    CartIdResponse,
    CartItemResponse,
    CartPackageItemResponse,
    CartResponse,
    DeliveryResponse,
    OptionSchema,
    OrderItemResponse,
    OrderPackageItemResponse,
    OrderResponse,
    PackageDishSchema,
    PlaceOrderRequest,
    ProcessExpiredRequest,
    ProcessExpiredResponse,
    RegisterAddressRequest,
    ReservationResponse,
    StatusResponse,
    SweepOutcomeResponse,
    TableAvailabilityResponse,
    TableStatusResponse,
    TimeSlotResponse,
)
from dining.cart.management import AddDishToCart, AddPackageToCart, ClearCart, current_cart
from dining.order.checkout import PlaceOrder, commit_cart
from dining.order.expiry import ProcessExpiredReservations
from dining.order.queries import get_order, list_orders
from dining.order.reservation import CancelReservation, CheckInReservation, CheckOutReservation
from dining.shared.actor import ActorContext
from dining.shared.errors import EmptyCart, TransactionFailed
from dining.table.availability import current_table_status, find_available
from dining.timeslot.catalog import list_time_slots

logger = structlog.get_logger(__name__)


# ---------------------------------------------------------------------------
# Response mapping
# ---------------------------------------------------------------------------
def _from_value(schema, value):
    """Copy the schema's fields off a domain value object."""
    return schema(**{name: _plain(getattr(value, name)) for name in schema.model_fields})


def _plain(value):
    return value if value is None or isinstance(value, bool | int | float | str | date | datetime) else str(value)


def _options(snapshots) -> list[OptionSchema]:
    return [OptionSchema(option_id=str(o.option_id), name=o.name, price=o.price) for o in snapshots]


def _package_dishes(dishes) -> list[PackageDishSchema]:
    return [
        PackageDishSchema(
            dish_id=str(dish.dish_id),
            name=dish.name,
            description=dish.description,
            base_price=dish.base_price,
            promotional_price=dish.promotional_price,
            quantity=dish.quantity,
            addons=_options(dish.addon_snapshots),
            variants=_options(dish.variant_snapshots),
        )
        for dish in dishes
    ]


def _cart_response(cart) -> CartResponse:
    if cart is None:
        return CartResponse()
    return CartResponse(
        cart_id=str(cart.id),
        status=cart.status,
        items=[
            CartItemResponse(
                item_id=str(item.id),
                dish_id=str(item.dish_id),
                name=item.name,
                base_price=item.base_price,
                promotional_price=item.promotional_price,
                quantity=item.quantity,
                addons=_options(item.addon_snapshots),
                variants=_options(item.variant_snapshots),
            )
            for item in cart.items
        ],
        package_items=[
            CartPackageItemResponse(
                item_id=str(item.id),
                package_id=str(item.package_id),
                name=item.name,
                package_price=item.package_price,
                quantity=item.quantity,
                dishes=_package_dishes(item.dish_snapshots),
            )
            for item in cart.package_items
        ],
    )


def _order_response(order) -> OrderResponse:
    delivery = None
    if order.delivery is not None:
        delivery = _from_value(DeliveryResponse, order.delivery)

    reservation = None
    if order.requires_table:
        reservation = ReservationResponse(
            table_id=str(order.table_id),
            table_code=order.table_code,
            guests_count=order.guests_count,
            dining_date=order.dining_date,
            checkin_time=order.checkin_time,
            checkout_time=order.checkout_time,
            status=order.reservation_status,
            auto_extend_count=order.auto_extend_count,
            total_extended_minutes=order.total_extended_minutes,
            checked_in_at=order.checked_in_at,
            checked_out_at=order.checked_out_at,
            overdue_flagged_at=order.overdue_flagged_at,
            overdue_reason=order.overdue_reason,
        )

    return OrderResponse(
        order_id=str(order.id),
        order_number=order.order_number,
        status=order.status,
        payment_status=order.payment_status,
        service_method=order.service_method,
        payment_method=order.payment_method,
        subtotal=order.totals.subtotal,
        delivery_fee=order.totals.delivery_fee,
        discount_amount=order.totals.discount_amount,
        total_amount=order.totals.total_amount,
        promo_code=order.promo_code,
        special_instructions=order.special_instructions,
        pickup_time=order.pickup_time,
        delivery=delivery,
        reservation=reservation,
        items=[
            OrderItemResponse(
                item_id=str(item.id),
                dish_id=str(item.dish_id),
                name=item.name,
                description=item.description,
                image_url=item.image_url,
                category_name=item.category_name,
                base_price=item.base_price,
                promotional_price=item.promotional_price,
                quantity=item.quantity,
                addons=_options(item.addon_snapshots),
                variants=_options(item.variant_snapshots),
                unit_price=item.unit_price,
                item_total=item.item_total,
            )
            for item in order.items
        ],
        package_items=[
            OrderPackageItemResponse(
                item_id=str(item.id),
                package_id=str(item.package_id),
                name=item.name,
                description=item.description,
                image=item.image,
                category_name=item.category_name,
                package_price=item.package_price,
                quantity=item.quantity,
                dishes=_package_dishes(item.dish_snapshots),
                unit_price=item.unit_price,
                item_total=item.item_total,
            )
            for item in order.package_items
        ],
        created_at=order.created_at,
    )


# ---------------------------------------------------------------------------
# Address Router
# ---------------------------------------------------------------------------
address_router = APIRouter(prefix="/addresses", tags=["addresses"])


@address_router.post("", status_code=201, response_model=AddressIdResponse)
async def register_address(
    body: RegisterAddressRequest, actor: ActorContext = Depends(current_actor)
) -> AddressIdResponse:
    command = RegisterAddress(actor_id=actor.actor_id, **body.model_dump())
    result = current_domain.process(command, asynchronous=False)
    return AddressIdResponse(address_id=result)


# ---------------------------------------------------------------------------
# Cart Router
# ---------------------------------------------------------------------------
cart_router = APIRouter(prefix="/cart", tags=["cart"])


@cart_router.post("/dishes", status_code=201, response_model=CartIdResponse)
async def add_dish(body: AddDishRequest, actor: ActorContext = Depends(current_actor)) -> CartIdResponse:
    command = AddDishToCart(
        actor_id=actor.actor_id,
        dish_id=body.dish_id,
        name=body.name,
        description=body.description,
        category_name=body.category_name,
        image_url=body.image_url,
        base_price=body.base_price,
        promotional_price=body.promotional_price,
        quantity=body.quantity,
        addons=json.dumps([addon.model_dump() for addon in body.addons]),
        variants=json.dumps([variant.model_dump() for variant in body.variants]),
    )
    result = current_domain.process(command, asynchronous=False)
    return CartIdResponse(cart_id=result)


@cart_router.post("/packages", status_code=201, response_model=CartIdResponse)
async def add_package(body: AddPackageRequest, actor: ActorContext = Depends(current_actor)) -> CartIdResponse:
    command = AddPackageToCart(
        actor_id=actor.actor_id,
        package_id=body.package_id,
        name=body.name,
        description=body.description,
        category_name=body.category_name,
        image=body.image,
        package_price=body.package_price,
        quantity=body.quantity,
        dishes=json.dumps([dish.model_dump() for dish in body.dishes]),
    )
    result = current_domain.process(command, asynchronous=False)
    return CartIdResponse(cart_id=result)


@cart_router.get("", response_model=CartResponse)
async def get_cart(actor: ActorContext = Depends(current_actor)) -> CartResponse:
    return _cart_response(current_cart(actor.actor_id))


@cart_router.delete("", response_model=StatusResponse)
async def clear_cart(actor: ActorContext = Depends(current_actor)) -> StatusResponse:
    current_domain.process(ClearCart(actor_id=actor.actor_id), asynchronous=False)
    return StatusResponse()


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.post("", status_code=201, response_model=OrderResponse)
async def place_order(body: PlaceOrderRequest, actor: ActorContext = Depends(current_actor)) -> OrderResponse:
    """Commit the caller's cart.

    Domain failures pass through to their own status codes; anything else
    means the unit of work was rolled back and is reported as retryable.
    """
    command = PlaceOrder(
        actor_id=actor.actor_id,
        is_admin=actor.is_admin,
        **body.model_dump(),
    )
    try:
        order_id = commit_cart(command)
    except ExpectedVersionError as exc:
        # Another commit consumed the cart first
        raise EmptyCart({"cart": ["Your cart is empty"]}) from exc
    except (ProteanException, TransactionFailed):
        raise
    except Exception as exc:
        logger.exception(
            "Order commit failed",
            actor_id=actor.actor_id,
            service_method=body.service_method,
            table_id=body.table_id,
        )
        raise TransactionFailed("The order could not be placed, please retry") from exc

    return _order_response(get_order(actor, order_id))


@order_router.get("", response_model=list[OrderResponse])
async def get_orders(actor: ActorContext = Depends(current_actor)) -> list[OrderResponse]:
    return [_order_response(order) for order in list_orders(actor)]


@order_router.get("/{order_id}", response_model=OrderResponse)
async def get_order_detail(order_id: str, actor: ActorContext = Depends(current_actor)) -> OrderResponse:
    return _order_response(get_order(actor, order_id))


@order_router.put("/{order_id}/reservation/check-in", response_model=OrderResponse)
async def check_in_reservation(order_id: str, actor: ActorContext = Depends(current_actor)) -> OrderResponse:
    command = CheckInReservation(order_id=order_id, actor_id=actor.actor_id, is_admin=actor.is_admin)
    current_domain.process(command, asynchronous=False)
    return _order_response(get_order(actor, order_id))


@order_router.put("/{order_id}/reservation/check-out", response_model=OrderResponse)
async def check_out_reservation(order_id: str, actor: ActorContext = Depends(current_actor)) -> OrderResponse:
    command = CheckOutReservation(order_id=order_id, actor_id=actor.actor_id, is_admin=actor.is_admin)
    current_domain.process(command, asynchronous=False)
    return _order_response(get_order(actor, order_id))


@order_router.put("/{order_id}/reservation/cancel", response_model=OrderResponse)
async def cancel_reservation(order_id: str, actor: ActorContext = Depends(current_actor)) -> OrderResponse:
    command = CancelReservation(order_id=order_id, actor_id=actor.actor_id, is_admin=actor.is_admin)
    current_domain.process(command, asynchronous=False)
    return _order_response(get_order(actor, order_id))


# ---------------------------------------------------------------------------
# Table Router
# ---------------------------------------------------------------------------
table_router = APIRouter(prefix="/tables", tags=["tables"])


@table_router.get("/availability", response_model=AvailabilityResponse)
async def table_availability(
    dining_date: date,
    time_slot_id: str,
    party_size: int = Query(ge=1),
    actor: ActorContext = Depends(current_actor),  # noqa: ARG001
) -> AvailabilityResponse:
    tables = find_available(dining_date, time_slot_id, party_size)
    return AvailabilityResponse(
        dining_date=dining_date,
        time_slot_id=time_slot_id,
        party_size=party_size,
        tables=[_from_value(TableAvailabilityResponse, table) for table in tables],
    )


@table_router.get("/{table_id}/status", response_model=TableStatusResponse)
async def table_status(
    table_id: str,
    as_of: datetime | None = None,
    actor: ActorContext = Depends(current_actor),  # noqa: ARG001
) -> TableStatusResponse:
    return _from_value(TableStatusResponse, current_table_status(table_id, as_of))


# ---------------------------------------------------------------------------
# Time Slot Router
# ---------------------------------------------------------------------------
time_slot_router = APIRouter(prefix="/time-slots", tags=["time-slots"])


@time_slot_router.get("", response_model=list[TimeSlotResponse])
async def time_slots() -> list[TimeSlotResponse]:
    return [
        TimeSlotResponse(time_slot_id=str(slot.id), start_time=slot.start_time, end_time=slot.end_time)
        for slot in list_time_slots()
    ]


# ---------------------------------------------------------------------------
# Reservation Maintenance Router
# ---------------------------------------------------------------------------
reservation_router = APIRouter(prefix="/reservations", tags=["reservations"])


@reservation_router.post("/process-expired", response_model=ProcessExpiredResponse)
async def process_expired_reservations(
    body: ProcessExpiredRequest | None = None,
    actor: ActorContext = Depends(admin_actor),  # noqa: ARG001
) -> ProcessExpiredResponse:
    body = body or ProcessExpiredRequest()
    command = ProcessExpiredReservations(as_of=body.as_of, dry_run=body.dry_run)
    outcomes = current_domain.process(command, asynchronous=False)
    return ProcessExpiredResponse(
        dry_run=body.dry_run,
        processed=len(outcomes),
        outcomes=[_from_value(SweepOutcomeResponse, outcome) for outcome in outcomes],
    )
