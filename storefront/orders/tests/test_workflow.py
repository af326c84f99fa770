import threading
from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal

import pytest
from storefront.auth.access import Identity
from storefront.config import set_config_for_test
from storefront.data.models import Item, OrderFilters, OrderRequest, User
from storefront.data.util import get_stores
from storefront.errors import (
    ForbiddenError,
    InsufficientStockError,
    NotFoundError,
    StoreError,
    ValidationError,
)
from storefront.orders.workflow import OrderWorkflow, parse_order_request

@pytest.fixture(autouse=True)
def config():
    set_config_for_test(jwt_secret="test-secret", log_level="WARNING")

@pytest.fixture
def stores():
    stores = get_stores()
    stores.users.save(User(id="u1", first_name="Ann", last_name="Smith", email="ann@example.com", password="secret1"))
    stores.users.save(User(id="u2", first_name="Bob", last_name="Jones", email="bob@example.com", password="secret2"))
    stores.users.save(
        User(id="a1", first_name="Root", last_name="Admin", email="root@example.com", password="secret3", role="admin")
    )
    stores.items.save(Item(id="A", name="Item A", price=Decimal("10"), stock=5))
    stores.items.save(Item(id="B", name="Item B", price=Decimal("20"), stock=1))
    return stores

@pytest.fixture
def workflow(stores):
    return OrderWorkflow(stores)

ANN = Identity(id="u1", email="ann@example.com", role="user")
ADMIN = Identity(id="a1", email="root@example.com", role="admin")

def _request(user_id="u1", items=None, amount=1):
    if items is None:
        items = [{"itemId": "A", "quantity": 2}, {"itemId": "B", "quantity": 1}]
    return {"userId": user_id, "items": items, "amount": amount}

def _stock(stores, item_id):
    return stores.items.find_by_id(item_id).stock

def _order_count(stores):
    return len(stores.orders.find(OrderFilters()))

def test_place_order_end_to_end(stores, workflow):
    """Test 2 x A (10) + 1 x B (20) totals 40 and decrements both items."""
    order = workflow.place_order(ANN, _request())

    assert order.amount == Decimal("40")
    assert order.user_id == "u1"
    assert order.status == "pending"
    assert order.created_at is not None and order.updated_at is not None
    assert [(li.item_id, li.quantity) for li in order.items] == [("A", 2), ("B", 1)]
    assert _stock(stores, "A") == 3
    assert _stock(stores, "B") == 0
    assert stores.orders.find_by_id(order.id) == order

    with pytest.raises(InsufficientStockError) as exc:
        workflow.place_order(ANN, _request(items=[{"itemId": "B", "quantity": 1}]))
    assert exc.value.item_name == "Item B"
    assert "Item B" in exc.value.message

def test_client_amount_is_ignored(stores, workflow):
    """Test a deliberately wrong amount is replaced by the computed total."""
    order = workflow.place_order(ANN, _request(amount=99999))
    assert order.amount == Decimal("40")
    assert stores.orders.find_by_id(order.id).amount == Decimal("40")

def test_amount_is_optional(workflow):
    """Test the amount field can be left out entirely."""
    order = workflow.place_order(ANN, {"userId": "u1", "items": [{"itemId": "A", "quantity": 1}]})
    assert order.amount == Decimal("10")

def test_line_items_snapshot_price_and_name(stores, workflow):
    """Test line items keep the name and price the order was placed at."""
    order = workflow.place_order(ANN, _request(items=[{"itemId": "A", "quantity": 2}]))
    item = stores.items.find_by_id("A")
    stores.items.save(item.model_copy(update={"price": Decimal("15"), "name": "Renamed"}))

    stored = stores.orders.find_by_id(order.id)
    assert stored.items[0].name == "Item A"
    assert stored.items[0].price == Decimal("10")
    assert stored.amount == Decimal("20")

def test_status_is_always_pending(workflow):
    """Test a client-provided status does not carry over to a new order."""
    payload = _request(items=[{"itemId": "A", "quantity": 1}])
    payload["status"] = "delivered"
    assert workflow.place_order(ANN, payload).status == "pending"

def test_accepts_parsed_request(workflow):
    """Test the workflow also takes an already parsed OrderRequest."""
    request = OrderRequest(user_id="u1", items=[{"item_id": "A", "quantity": 1}])
    assert workflow.place_order(ANN, request).amount == Decimal("10")

def test_other_user_is_forbidden(stores, workflow):
    """Test placing an order for someone else is refused."""
    with pytest.raises(ForbiddenError):
        workflow.place_order(ANN, _request(user_id="u2"))
    assert _stock(stores, "A") == 5
    assert _order_count(stores) == 0

def test_admin_cannot_order_for_others(stores, workflow):
    """Test admins get no bypass on the ownership rule when creating orders."""
    with pytest.raises(ForbiddenError):
        workflow.place_order(ADMIN, _request(user_id="u1"))
    assert _order_count(stores) == 0

def test_admin_can_order_for_self(workflow):
    """Test admins can place their own orders."""
    order = workflow.place_order(ADMIN, _request(user_id="a1", items=[{"itemId": "A", "quantity": 1}]))
    assert order.user_id == "a1"

def test_unknown_user(stores, workflow):
    """Test an unknown userId is reported as missing before ownership is checked."""
    with pytest.raises(NotFoundError) as exc:
        workflow.place_order(ANN, _request(user_id="ghost"))
    assert exc.value.entity == "user"

def test_unknown_item_mutates_nothing(stores, workflow):
    """Test a missing item fails with no stock or order change."""
    items = [{"itemId": "A", "quantity": 2}, {"itemId": "missing", "quantity": 1}]
    with pytest.raises(NotFoundError) as exc:
        workflow.place_order(ANN, _request(items=items))
    assert exc.value.entity == "item"
    assert _stock(stores, "A") == 5
    assert _stock(stores, "B") == 1
    assert _order_count(stores) == 0

def test_insufficient_stock_mutates_nothing(stores, workflow):
    """Test a shortage on a later line leaves earlier lines untouched."""
    items = [{"itemId": "A", "quantity": 2}, {"itemId": "B", "quantity": 2}]
    with pytest.raises(InsufficientStockError) as exc:
        workflow.place_order(ANN, _request(items=items))
    assert exc.value.item_id == "B"
    assert exc.value.requested == 2
    assert exc.value.available == 1
    assert _stock(stores, "A") == 5
    assert _stock(stores, "B") == 1
    assert _order_count(stores) == 0

def test_repeated_item_lines_are_added_up(stores, workflow):
    """Test two lines for the same item cannot together exceed its stock."""
    items = [{"itemId": "A", "quantity": 3}, {"itemId": "A", "quantity": 3}]
    with pytest.raises(InsufficientStockError):
        workflow.place_order(ANN, _request(items=items))
    assert _stock(stores, "A") == 5

    items = [{"itemId": "A", "quantity": 3}, {"itemId": "A", "quantity": 2}]
    order = workflow.place_order(ANN, _request(items=items))
    assert order.amount == Decimal("50")
    assert _stock(stores, "A") == 0

@pytest.mark.parametrize("payload", [
    None,
    [],
    {},
    {"items": [{"itemId": "A", "quantity": 1}]},
    {"userId": "", "items": [{"itemId": "A", "quantity": 1}]},
    {"userId": "u1"},
    {"userId": "u1", "items": []},
    {"userId": "u1", "items": [{"itemId": "A", "quantity": 0}]},
    {"userId": "u1", "items": [{"itemId": "A", "quantity": -1}]},
    {"userId": "u1", "items": [{"itemId": "A", "quantity": 1.5}]},
    {"userId": "u1", "items": [{"itemId": "A"}]},
    {"userId": "u1", "items": [{"quantity": 1}]},
    {"userId": "u1", "items": [{"itemId": "A", "quantity": 1}], "amount": -5},
    {"userId": "u1", "items": [{"itemId": "A", "quantity": 1}], "status": "lost"},
    {"userId": "u1", "items": [{"itemId": "A", "quantity": 1}], "coupon": "FREE"},
])
def test_structural_validation(stores, workflow, payload):
    """Test malformed requests fail with ValidationError and change nothing."""
    with pytest.raises(ValidationError) as exc:
        workflow.place_order(ANN, payload)
    assert not isinstance(exc.value, InsufficientStockError)
    assert _stock(stores, "A") == 5
    assert _order_count(stores) == 0

def test_validation_message_names_field():
    """Test validation messages point at the offending field."""
    with pytest.raises(ValidationError) as exc:
        parse_order_request({"userId": "u1", "items": [{"itemId": "A", "quantity": 0}]})
    assert exc.value.message.startswith("items.0.quantity")

def test_order_write_failure_releases_stock(stores, workflow, monkeypatch):
    """Test stock reserved for an order that fails to persist is given back."""
    def boom(doc):
        raise RuntimeError("write failed")

    monkeypatch.setattr(stores.orders.collection, "put", boom)
    with pytest.raises(StoreError):
        workflow.place_order(ANN, _request())
    assert _stock(stores, "A") == 5
    assert _stock(stores, "B") == 1

def test_lost_race_releases_earlier_reservations(stores, workflow, monkeypatch):
    """Test losing a reservation after the snapshot check rolls back earlier lines."""
    real_reserve = stores.items.reserve_stock

    def reserve(item_id, quantity):
        if item_id == "B":
            # another order takes the last B between the check and the reservation
            real_reserve("B", 1)
        return real_reserve(item_id, quantity)

    monkeypatch.setattr(stores.items, "reserve_stock", reserve)
    with pytest.raises(InsufficientStockError) as exc:
        workflow.place_order(ANN, _request())
    assert exc.value.item_id == "B"
    assert _stock(stores, "A") == 5
    assert _order_count(stores) == 0

def test_concurrent_orders_for_last_unit(stores):
    """Test N concurrent orders for the last unit: exactly one succeeds."""
    n = 16
    identities = []
    for i in range(n):
        user = User(first_name="Buyer", last_name=f"No{i:02d}", email=f"buyer{i}@example.com", password="secret")
        stores.users.save(user)
        identities.append(Identity(id=user.id, email=user.email, role="user"))

    barrier = threading.Barrier(n)

    def attempt(identity):
        barrier.wait()
        try:
            return OrderWorkflow(stores).place_order(
                identity, {"userId": identity.id, "items": [{"itemId": "B", "quantity": 1}], "amount": 20}
            )
        except InsufficientStockError as e:
            return e

    with ThreadPoolExecutor(max_workers=n) as pool:
        results = list(pool.map(attempt, identities))

    placed = [r for r in results if not isinstance(r, InsufficientStockError)]
    assert len(placed) == 1
    assert _stock(stores, "B") == 0
    assert _order_count(stores) == 1
