from __future__ import annotations

from datetime import datetime, timedelta
from types import SimpleNamespace
from typing import Optional

import pytest

from voice_commerce.actions.product_creation import extract_price, is_exit_utterance, map_category
from voice_commerce.actions.registry import (
    Action,
    ActionExecutor,
    ActionRegistry,
    BusinessStore,
)
from voice_commerce.core.intent import Entities, Intent, IntentAnalysisResult
from voice_commerce.core.session import (
    UNCHANGED,
    AwaitingCategory,
    AwaitingName,
    AwaitingPrice,
    ConversationContext,
)
from voice_commerce.db.repositories import OrderRepository, ProductRepository

from tests.conftest import ARTISAN_ID


class FailingRepository:
    """Every call raises, like a data store that went away."""

    def __getattr__(self, name):
        async def _fail(*args, **kwargs):
            raise ConnectionError(f"{name}: database is locked")
        return _fail


def classified(intent: Intent, text: str, **entities) -> IntentAnalysisResult:
    return IntentAnalysisResult(
        intent=intent,
        entities=Entities(text=text, **entities),
        confidence=90
    )


def context_with(state=None) -> ConversationContext:
    return ConversationContext(session_id="S1", artisan_id=ARTISAN_ID, product_creation=state)


@pytest.fixture
def executor(store) -> ActionExecutor:
    return ActionExecutor(registry=ActionRegistry().initialize(), store=store)


def failing_executor(store, **overrides) -> ActionExecutor:
    fields = {"products": store.products, "artisans": store.artisans, "orders": store.orders}
    fields.update(overrides)
    return ActionExecutor(registry=ActionRegistry().initialize(), store=BusinessStore(**fields))


async def add_product(name: str, price: float, days_ago: int = 0, status: str = "active", **counters):
    return await ProductRepository().create({
        "artisan_id": ARTISAN_ID,
        "name": name,
        "category": "pottery",
        "price": price,
        "status": status,
        "created_at": datetime.utcnow() - timedelta(days=days_ago),
        **counters
    })


# =========================
# Guided product creation
# =========================

@pytest.mark.asyncio
async def test_start_greets_artisan_and_asks_for_name(executor, artisan) -> None:
    result = await executor.execute(
        classified(Intent.PRODUCT_CREATE, "I want to add a new product"),
        ARTISAN_ID,
        context_with(None),
        "en-IN"
    )

    assert result.action == "product_creation_start"
    assert result.success
    assert result.product_creation == AwaitingName()
    assert result.message == (
        "Hello Rajesh Kumar! Let's create a new product. What is the name of your product?"
    )


@pytest.mark.asyncio
async def test_start_without_artisan_record_still_asks_for_name(executor, database) -> None:
    result = await executor.execute(
        classified(Intent.PRODUCT_CREATE, "add product"),
        "art_unknown",
        context_with(None),
        "en-IN"
    )

    assert result.product_creation == AwaitingName()
    assert result.message == "What is the name of your product?"


@pytest.mark.asyncio
async def test_name_step_takes_raw_text_whatever_the_intent(executor) -> None:
    result = await executor.execute(
        classified(Intent.UNKNOWN, "Blue Pottery Vase"),
        ARTISAN_ID,
        context_with(AwaitingName()),
        "en-IN"
    )

    assert result.action == "product_creation_continue"
    assert result.product_creation == AwaitingCategory(name="Blue Pottery Vase")
    assert result.data["step"] == "category"
    assert result.message == "Which category does this product belong to?"


@pytest.mark.asyncio
async def test_name_step_prefers_extracted_entity(executor) -> None:
    result = await executor.execute(
        classified(Intent.PRODUCT_CREATE, "its name is Silk Dupatta", product_name="Silk Dupatta"),
        ARTISAN_ID,
        context_with(AwaitingName()),
        "en-IN"
    )

    assert result.product_creation == AwaitingCategory(name="Silk Dupatta")


@pytest.mark.asyncio
async def test_category_step_maps_hindi_keyword(executor) -> None:
    result = await executor.execute(
        classified(Intent.PRODUCT_CREATE, "मिट्टी का सामान"),
        ARTISAN_ID,
        context_with(AwaitingCategory(name="Blue Pottery Vase")),
        "hi-IN"
    )

    assert result.product_creation == AwaitingPrice(name="Blue Pottery Vase", category="pottery")
    assert result.message == "इसकी कीमत क्या रखना चाहते हैं?"


@pytest.mark.asyncio
async def test_bare_price_labelled_pricing_is_owned_by_the_flow(executor, artisan) -> None:
    result = await executor.execute(
        classified(Intent.PRICING, "2500 rupees"),
        ARTISAN_ID,
        context_with(AwaitingPrice(name="Blue Pottery Vase", category="pottery")),
        "en-IN"
    )

    assert result.action == "product_created"
    assert result.product_creation is None
    assert result.data["product"]["name"] == "Blue Pottery Vase"
    assert result.data["product"]["price"] == 2500
    assert result.message == "Excellent! Blue Pottery Vase has been created successfully."

    stored = await ProductRepository().find_by_artisan(ARTISAN_ID)
    assert [p.name for p in stored] == ["Blue Pottery Vase"]


@pytest.mark.asyncio
async def test_price_without_digits_is_saved_as_zero(executor, artisan) -> None:
    result = await executor.execute(
        classified(Intent.PRODUCT_CREATE, "you decide"),
        ARTISAN_ID,
        context_with(AwaitingPrice(name="Diya", category="other")),
        "en-IN"
    )

    assert result.action == "product_created"
    assert result.data["product"]["price"] == 0


@pytest.mark.asyncio
async def test_exit_utterance_cancels_the_flow(executor) -> None:
    result = await executor.execute(
        classified(Intent.HELP, "रहने दो"),
        ARTISAN_ID,
        context_with(AwaitingCategory(name="Vase")),
        "hi-IN"
    )

    assert result.action == "product_creation_cancelled"
    assert result.product_creation is None
    assert result.data == {"cancelledStep": "category"}


@pytest.mark.asyncio
async def test_failed_persist_keeps_waiting_for_price(store, artisan) -> None:
    executor = failing_executor(store, products=FailingRepository())

    result = await executor.execute(
        classified(Intent.PRODUCT_CREATE, "800"),
        ARTISAN_ID,
        context_with(AwaitingPrice(name="Vase", category="pottery")),
        "en-IN"
    )

    assert result.action == "product_creation_error"
    assert not result.success
    assert result.product_creation is UNCHANGED
    assert "database is locked" in result.error


@pytest.mark.parametrize(
    "text, expected",
    [
        ("cancel", True),
        ("Never mind", True),
        ("रद्द करो", True),
        ("stop it please", True),
        ("Stopwatch Bracelet", False),
        ("please do not stop, the name is Handmade Brass Lamp With Stand", False),
        ("", False),
    ],
)
def test_exit_utterances(text, expected) -> None:
    assert is_exit_utterance(text) is expected


@pytest.mark.parametrize(
    "text, category, expected",
    [
        ("anything", "Textiles", "textiles"),
        ("धातु का दीया", None, "metalwork"),
        ("wooden jewelry box", None, "jewelry"),
        ("brass diya", None, "metalwork"),
        ("silk saree", None, "textiles"),
        ("something new", None, "other"),
        ("", "sculptures", "sculpture"),
    ],
)
def test_map_category(text, category, expected) -> None:
    assert map_category(text, category) == expected


@pytest.mark.parametrize(
    "text, expected",
    [("2500 rupees", 2500), ("₹1,200", 1200), ("दाम 450 रखो", 450), ("free", 0), (None, 0)],
)
def test_extract_price(text: Optional[str], expected: int) -> None:
    assert extract_price(text) == expected


# =========================
# Lookups
# =========================

@pytest.mark.asyncio
async def test_product_list_newest_active_first(executor, artisan) -> None:
    await add_product("Old Vase", 900, days_ago=10)
    await add_product("New Diya", 300, days_ago=1)
    await add_product("Draft Plate", 500, status="draft")

    result = await executor.execute(classified(Intent.PRODUCT_LIST, "show my products"), ARTISAN_ID, context_with(), "en-IN")

    assert result.success
    assert result.open_ended
    assert result.data["count"] == 2
    assert [p["name"] for p in result.data["products"]] == ["New Diya", "Old Vase"]
    assert result.message == "You have 2 active products: New Diya, Old Vase."


@pytest.mark.asyncio
async def test_product_list_empty(executor, artisan) -> None:
    result = await executor.execute(classified(Intent.PRODUCT_LIST, "show my products"), ARTISAN_ID, context_with(), "en-IN")

    assert result.success
    assert result.data == {"products": [], "count": 0}
    assert not result.open_ended


@pytest.mark.asyncio
async def test_analytics_merges_metrics_and_live_counters(executor, artisan) -> None:
    await add_product("Vase", 900, views=100, likes=10, orders=3)
    await add_product("Diya", 300, views=50, likes=5, orders=1)
    await add_product("Hidden", 300, status="inactive", views=999)

    result = await executor.execute(classified(Intent.ANALYTICS, "sales kitni hui"), ARTISAN_ID, context_with(), "en-IN")

    metrics = result.data["metrics"]
    assert result.success
    assert result.data["analyticsType"] == "overview"
    assert metrics["totalSales"] == 125000
    assert metrics["activeProducts"] == 2
    assert metrics["totalViews"] == 150
    assert metrics["totalLikes"] == 15
    assert metrics["totalProductOrders"] == 4
    assert "₹125,000" in result.message


@pytest.mark.asyncio
async def test_analytics_for_unknown_artisan_fails(executor, database) -> None:
    result = await executor.execute(classified(Intent.ANALYTICS, "sales"), "art_missing", context_with(), "en-IN")

    assert not result.success
    assert result.message == "Sorry, I could not fetch your business analytics."


@pytest.mark.asyncio
async def test_pricing_quotes_named_product(executor, artisan) -> None:
    await add_product("Blue Pottery Vase", 2200)
    await add_product("Clay Diya", 150)

    result = await executor.execute(
        classified(Intent.PRICING, "vase ka daam", product_name="pottery vase"),
        ARTISAN_ID,
        context_with(),
        "en-IN"
    )

    assert result.message == "Blue Pottery Vase is priced at ₹2,200."
    assert result.data["product"]["price"] == 2200


@pytest.mark.asyncio
async def test_pricing_summarizes_catalog(executor, artisan) -> None:
    await add_product("Vase", 2200)
    await add_product("Diya", 150)
    await add_product("Plate", 1000)

    result = await executor.execute(classified(Intent.PRICING, "my prices"), ARTISAN_ID, context_with(), "en-IN")

    assert result.data["summary"] == {"count": 3, "minPrice": 150, "maxPrice": 2200, "avgPrice": 1116.67}


@pytest.mark.asyncio
async def test_pricing_summary_covers_whole_active_catalog(executor, artisan) -> None:
    await add_product("Old Clay Cup", 50, days_ago=30)
    await add_product("Retired Lamp", 5, days_ago=40, status="draft")
    for i in range(10):
        await add_product(f"Vase {i}", 1000 + i)

    result = await executor.execute(classified(Intent.PRICING, "my prices"), ARTISAN_ID, context_with(), "en-IN")

    summary = result.data["summary"]
    assert summary["count"] == 11
    assert summary["minPrice"] == 50
    assert summary["maxPrice"] == 1009
    assert result.message.startswith("Your 11 products range from ₹50 to ₹1,009")


@pytest.mark.asyncio
async def test_pricing_without_active_products(executor, artisan) -> None:
    await add_product("Draft Bowl", 400, status="draft")

    result = await executor.execute(classified(Intent.PRICING, "my prices"), ARTISAN_ID, context_with(), "en-IN")

    assert result.success
    assert result.data == {"count": 0}
    assert result.message == "You have no products to price yet."


@pytest.mark.asyncio
async def test_orders_reports_open_value(executor, artisan) -> None:
    orders = OrderRepository()
    await orders.create({"artisan_id": ARTISAN_ID, "status": "pending", "total_amount": 1000})
    await orders.create({"artisan_id": ARTISAN_ID, "status": "shipped", "total_amount": 500})
    await orders.create({"artisan_id": ARTISAN_ID, "status": "delivered", "total_amount": 9000})
    await orders.create({"artisan_id": ARTISAN_ID, "status": "cancelled", "total_amount": 700})

    result = await executor.execute(classified(Intent.ORDERS, "orders dikhao"), ARTISAN_ID, context_with(), "en-IN")

    assert result.success
    assert result.data["count"] == 4
    assert result.data["pendingCount"] == 2
    assert result.data["pendingValue"] == 1500
    assert result.message == "You have 4 recent orders, 2 still open worth ₹1,500."


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "intent, repository, message",
    [
        (Intent.PRODUCT_LIST, "products", "Sorry, I could not fetch your products."),
        (Intent.ANALYTICS, "artisans", "Sorry, I could not fetch your business analytics."),
        (Intent.PRICING, "products", "Sorry, I could not fetch pricing information."),
        (Intent.ORDERS, "orders", "Sorry, I could not fetch your orders."),
    ],
)
async def test_data_store_failure_is_reported_not_raised(store, intent, repository, message) -> None:
    executor = failing_executor(store, **{repository: FailingRepository()})

    result = await executor.execute(classified(intent, "anything"), ARTISAN_ID, context_with(), "en-IN")

    assert not result.success
    assert result.message == message
    assert result.product_creation is UNCHANGED


# =========================
# Dispatch
# =========================

@pytest.mark.asyncio
async def test_unknown_intent_gets_default_reply(executor) -> None:
    result = await executor.execute(classified(Intent.UNKNOWN, "weather?"), ARTISAN_ID, context_with(), "en-IN")

    assert result.action == "unknown"
    assert not result.success
    assert result.message == "I didn't understand that. Please try again."


@pytest.mark.asyncio
async def test_help_lists_capabilities(executor) -> None:
    result = await executor.execute(classified(Intent.HELP, "what can you do"), ARTISAN_ID, context_with(), "hi-IN")

    assert result.action == "help"
    assert result.success
    assert "नया प्रोडक्ट" in result.message


@pytest.mark.asyncio
async def test_crashing_handler_becomes_technical_error(store) -> None:
    async def explode(request):
        raise KeyError("boom")

    registry = ActionRegistry()
    registry.register(Action(intent=Intent.HELP, name="help", description="", handler=explode))
    executor = ActionExecutor(registry=registry, store=store)

    result = await executor.execute(classified(Intent.HELP, "help"), ARTISAN_ID, context_with(), "en-IN")

    assert result.action == "help"
    assert not result.success
    assert result.message == "Sorry, something went wrong. Please try again later."


def test_registry_covers_every_actionable_intent() -> None:
    registry = ActionRegistry().initialize()

    assert set(registry.intents()) == set(Intent) - {Intent.UNKNOWN}


def test_route_prefers_active_sub_flow() -> None:
    executor = ActionExecutor(registry=ActionRegistry(), store=SimpleNamespace())

    assert executor.route(classified(Intent.ORDERS, "x"), context_with(AwaitingName())) is Intent.PRODUCT_CREATE
    assert executor.route(classified(Intent.ORDERS, "x"), context_with(None)) is Intent.ORDERS
