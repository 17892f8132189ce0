# orders.py
"""Order submission: validate, then write the order, its line items, the
stock deductions, the payment and the loyalty update in one transaction.

Either all of it is committed or none of it is.
"""
import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional
from sqlalchemy import select, update
from models import db, MenuItem, Customer, Order, OrderItem, Payment
import inventory
import utils

PAYMENT_TYPES = ("Cash", "Card", "Credit", "Debit")
PAYMENT_STATUS = "Completed"


class OrderError(Exception):
    status_code = 500

    def __init__(self, message, detail=None):
        super().__init__(message)
        self.message = message
        self.detail = detail


class InvalidRequest(OrderError):
    status_code = 400


class InsufficientPoints(OrderError):
    status_code = 400


class CustomerNotFound(OrderError):
    status_code = 404


class ItemNotFound(OrderError):
    status_code = 404


class TransactionFailure(OrderError):
    status_code = 500


def _number(value, label, cast=float):
    if cast is int and isinstance(value, float) and not value.is_integer():
        raise InvalidRequest(f"Invalid {label}: {value!r} is not a whole number")
    try:
        return cast(value)
    except (TypeError, ValueError, OverflowError):
        raise InvalidRequest(f"Invalid {label}: {value!r}")


@dataclass
class CartLine:
    quantity: int
    price: float
    name: Optional[str] = None
    menu_item_id: Optional[int] = None
    customizations: dict = field(default_factory=dict)

    @classmethod
    def from_json(cls, data):
        if not isinstance(data, dict):
            raise InvalidRequest("Cart items must be objects")
        menu_item_id = data.get("menuitemid", data.get("menu_item_id"))
        customizations = data.get("customizations") or {}
        if not isinstance(customizations, dict):
            raise InvalidRequest("customizations must be an object")
        if not isinstance(customizations.get("toppings") or [], list):
            raise InvalidRequest("toppings must be a list")
        return cls(
            quantity=_number(data.get("quantity", 1), "quantity", int),
            price=_number(data.get("price", 0), "price"),
            name=str(data.get("name") or "").strip() or None,
            menu_item_id=_number(menu_item_id, "menu item id", int) if menu_item_id is not None else None,
            customizations=customizations,
        )


@dataclass
class OrderRequest:
    cart: List[CartLine]
    total_cost: Optional[float]
    payment_type: Optional[str]
    customer_id: Optional[int] = None
    employee_id: Optional[int] = None
    rewards_used: List[str] = field(default_factory=list)
    reward_discount: float = 0.0
    points_redeemed: int = 0

    @classmethod
    def from_json(cls, data):
        """Build a request from the kiosk/cashier POST body (camelCase keys)."""
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise InvalidRequest("Request body must be an object")
        cart = data.get("cartItems") or []
        if not isinstance(cart, list):
            raise InvalidRequest("cartItems must be a list")
        total = data.get("totalCost")
        customer_id = data.get("customerId")
        employee_id = data.get("employeeId")
        return cls(
            cart=[CartLine.from_json(line) for line in cart],
            total_cost=_number(total, "totalCost") if total is not None else None,
            payment_type=str(data.get("paymentType") or "").strip() or None,
            customer_id=_number(customer_id, "customerId", int) if customer_id is not None else None,
            employee_id=_number(employee_id, "employeeId", int) if employee_id is not None else None,
            rewards_used=[str(r) for r in data.get("rewardsUsed") or []],
            reward_discount=_number(data.get("rewardDiscount") or 0, "rewardDiscount"),
            points_redeemed=_number(data.get("pointsRedeemed") or 0, "pointsRedeemed", int),
        )


@dataclass(frozen=True)
class OrderResult:
    order_id: int
    low_stock: tuple = ()


def validate_order_request(session, req):
    if not req.cart:
        raise InvalidRequest("Cart is empty")
    if req.total_cost is None or not math.isfinite(req.total_cost) or req.total_cost < 0:
        raise InvalidRequest("Total cost is missing or negative")
    if not math.isfinite(req.reward_discount) or req.reward_discount < 0:
        raise InvalidRequest(f"Invalid reward discount: {req.reward_discount}")
    if not req.payment_type:
        raise InvalidRequest("Payment type is required")
    if req.payment_type not in PAYMENT_TYPES:
        utils.log(f"Unrecognised payment type '{req.payment_type}', accepting as-is")
    for line in req.cart:
        if line.quantity < 1:
            raise InvalidRequest(f"Quantity must be at least 1, got {line.quantity}")
        if not math.isfinite(line.price) or line.price < 0:
            raise InvalidRequest(f"Price must be a non-negative number, got {line.price}")
    if req.points_redeemed < 0:
        raise InvalidRequest("Points redeemed must not be negative")

    if req.customer_id is None:
        if req.points_redeemed > 0:
            raise CustomerNotFound("Points can only be redeemed by a customer")
        return
    points = session.execute(
        select(Customer.points).where(Customer.id == req.customer_id)
    ).scalar_one_or_none()
    if points is None:
        raise CustomerNotFound(f"Customer {req.customer_id} not found")
    if points < req.points_redeemed:
        raise InsufficientPoints(
            f"Customer has {points} points, {req.points_redeemed} requested"
        )


def write_order_header(session, req):
    now = datetime.now()
    order = Order(
        order_date=now.date(),
        order_time=now.time().replace(microsecond=0),
        total=req.total_cost,
        discount=req.reward_discount,
        rewards=",".join(req.rewards_used) or None,
        employee_id=req.employee_id,
        customer_id=req.customer_id,
    )
    session.add(order)
    session.flush()
    return order


def resolve_item_name(session, line):
    if line.name:
        return line.name
    if line.menu_item_id is None:
        raise ItemNotFound("Cart line has no name or menu item id")
    name = session.execute(
        select(MenuItem.name).where(MenuItem.id == line.menu_item_id)
    ).scalar_one_or_none()
    if not name:
        raise ItemNotFound(f"Menu item not found: {line.menu_item_id}")
    return name


def write_line_items(session, order, cart):
    """One OrderItem row per unit, so a quantity-3 line yields three rows."""
    items = []
    for line in cart:
        name = resolve_item_name(session, line)
        modifications = utils.format_modifications(line.customizations)
        toppings = utils.format_toppings(line.customizations.get("toppings"))
        for _ in range(line.quantity):
            items.append(OrderItem(
                order_id_fk=order.id,
                item_name=name,
                modifications=modifications,
                toppings=toppings,
                price=line.price,
            ))
    session.add_all(items)
    session.flush()
    return items


def record_payment(session, order, req):
    payment = Payment(
        order_id_fk=order.id,
        payment_type=req.payment_type,
        amount=req.total_cost,
        status=PAYMENT_STATUS,
    )
    session.add(payment)
    session.flush()
    return payment


def update_loyalty(session, req):
    """Apply earned and redeemed points in a single conditional update."""
    if req.customer_id is None:
        return None
    earned = math.floor(req.total_cost)
    stmt = (
        update(Customer)
        .where(Customer.id == req.customer_id)
        .values(points=Customer.points + earned - req.points_redeemed)
        .execution_options(synchronize_session=False)
    )
    if req.points_redeemed > 0:
        stmt = stmt.where(Customer.points >= req.points_redeemed)
    result = session.execute(stmt)
    if result.rowcount == 0:
        exists = session.execute(
            select(Customer.id).where(Customer.id == req.customer_id)
        ).scalar_one_or_none()
        if exists is None:
            raise CustomerNotFound(f"Customer {req.customer_id} not found")
        raise InsufficientPoints(
            f"Customer {req.customer_id} no longer has {req.points_redeemed} points"
        )
    return earned


def submit_order(req, session=None):
    """Validate and persist an order. Returns an OrderResult.

    Raises an OrderError subclass on failure; nothing is written in that case.

    ``session`` must not carry pending work of its own: it is rolled back
    once validation is done and closed when the order finishes.
    """
    session = session if session is not None else db.session
    try:
        validate_order_request(session, req)
        # validation reads must not hold the transaction open
        session.rollback()
        try:
            order = write_order_header(session, req)
            order_id = order.id
            items = write_line_items(session, order, req.cart)
            low_stock = inventory.deduct_order_inventory(session, items)
            record_payment(session, order, req)
            update_loyalty(session, req)
            session.commit()
        except OrderError as e:
            session.rollback()
            utils.log(f"Order rolled back: {e.message}")
            raise
        except Exception as e:
            session.rollback()
            utils.log(f"Order rolled back: {type(e).__name__}: {e}")
            raise TransactionFailure("Failed to process order", detail=str(e)) from e
    finally:
        session.close()

    utils.log(f"Order {order_id} committed: {len(items)} items, total={req.total_cost}, payment={req.payment_type}")
    return OrderResult(order_id=order_id, low_stock=tuple(low_stock))
