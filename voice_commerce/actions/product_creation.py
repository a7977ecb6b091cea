"""
Guided Product Creation.
Three-step dialog collecting name, category and price, then persisting the product.

    no sub-flow -> AwaitingName -> AwaitingCategory -> AwaitingPrice -> persisted

Each step takes the entity from the current utterance or a best-effort guess
from the raw text, and always moves forward.
"""

import logging
import re

from voice_commerce.config import CATEGORY_KEYWORDS, PRODUCT_CATEGORIES
from voice_commerce.core.intent import Intent
from voice_commerce.core.session import AwaitingCategory, AwaitingName, AwaitingPrice
from voice_commerce.actions.registry import Action, ActionRegistry, ActionRequest, ActionResult

logger = logging.getLogger(__name__)

# Phrases that abandon the flow; only short utterances count
_EXIT_PATTERNS = re.compile(
    r"\b(cancel|stop|quit|exit|never ?mind|forget it)\b"
    r"|(रद्द|छोड़ो|छोड़ दो|रहने दो|बंद करो|कैंसल)",
    re.IGNORECASE,
)
_EXIT_MAX_LENGTH = 40

_DIGITS = re.compile(r"\d+")


def is_exit_utterance(text: str) -> bool:
    """Check if the user wants to abandon the product being created."""
    if not text or len(text) > _EXIT_MAX_LENGTH:
        return False
    return bool(_EXIT_PATTERNS.search(text))


def map_category(text: str, category: str = None) -> str:
    """Vocabulary category for an entity or free text; `other` when nothing matches."""
    if category and category.strip().lower() in PRODUCT_CATEGORIES:
        return category.strip().lower()

    haystack = f"{category or ''} {text or ''}".lower()
    for keyword, mapped in CATEGORY_KEYWORDS.items():
        if keyword.lower() in haystack:
            return mapped
    for candidate in PRODUCT_CATEGORIES:
        if candidate in haystack:
            return candidate

    return "other"


def extract_price(text: str) -> int:
    """First run of digits in the utterance, 0 if there is none."""
    match = _DIGITS.search((text or "").replace(",", ""))
    return int(match.group()) if match else 0


async def product_creation_handler(request: ActionRequest) -> ActionResult:
    state = request.context.product_creation
    entities = request.intent_result.entities

    if state is not None and is_exit_utterance(request.text):
        logger.info(f"Product creation cancelled in session {request.context.session_id}")
        return ActionResult(
            action="product_creation_cancelled",
            success=True,
            message=request.render("product_creation_cancelled"),
            data={"cancelledStep": state.step},
            product_creation=None
        )

    if state is None:
        return await _start(request)

    if isinstance(state, AwaitingName):
        name = (entities.product_name or request.text).strip()
        if not name:
            return _prompt(request, "ask_product_name", state)
        return _prompt(request, "ask_product_category", AwaitingCategory(name=name))

    if isinstance(state, AwaitingCategory):
        category = map_category(request.text, entities.category)
        return _prompt(request, "ask_product_price", AwaitingPrice(name=state.name, category=category))

    return await _persist(request, state)


async def _start(request: ActionRequest) -> ActionResult:
    prompt = request.render("ask_product_name")
    message = prompt

    try:
        artisan = await request.store.artisans.get_by_id(request.artisan_id)
    except Exception as e:
        logger.warning(f"Could not load artisan {request.artisan_id} for welcome: {e}")
        artisan = None

    if artisan is not None:
        welcome = request.render("product_creation_welcome", {"artisanName": artisan.name})
        message = f"{welcome} {prompt}"

    return ActionResult(
        action="product_creation_start",
        success=True,
        message=message,
        data={"step": AwaitingName.step, "nextPrompt": prompt},
        product_creation=AwaitingName()
    )


def _prompt(request: ActionRequest, key: str, next_state) -> ActionResult:
    prompt = request.render(key)
    return ActionResult(
        action="product_creation_continue",
        success=True,
        message=prompt,
        data={"step": next_state.step, "collected": next_state.to_dict()["data"], "nextPrompt": prompt},
        product_creation=next_state
    )


async def _persist(request: ActionRequest, state: AwaitingPrice) -> ActionResult:
    entities = request.intent_result.entities
    price = entities.price if entities.price is not None else extract_price(request.text)

    fields = {
        "artisan_id": request.artisan_id,
        "name": state.name,
        "category": state.category,
        "price": price,
        "status": "active"
    }

    try:
        product = await request.store.products.create(fields)
    except Exception as e:
        # Sub-state stays at AwaitingPrice so the price can be repeated
        logger.error(f"Product creation failed for artisan {request.artisan_id}: {e}")
        return ActionResult(
            action="product_creation_error",
            success=False,
            message=request.render("product_creation_failed"),
            error=str(e),
            data={"step": state.step, "collected": state.to_dict()["data"]}
        )

    return ActionResult(
        action="product_created",
        success=True,
        message=request.render("product_created_success", {"productName": product.name}),
        data={"product": product.to_dict()},
        product_creation=None
    )


def register_product_creation_actions(registry: ActionRegistry):
    """Register the guided product creation flow."""
    registry.register(Action(
        intent=Intent.PRODUCT_CREATE,
        name="product_create",
        description="Guided three-step product creation",
        handler=product_creation_handler
    ))
