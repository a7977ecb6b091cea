"""
Product Listing Action.
Reads the artisan's active products and summarizes them.
"""

import logging

from voice_commerce.config import get_settings
from voice_commerce.core.intent import Intent
from voice_commerce.actions.registry import Action, ActionRegistry, ActionRequest, ActionResult

logger = logging.getLogger(__name__)
settings = get_settings()


async def product_list_handler(request: ActionRequest) -> ActionResult:
    """
    List the artisan's active products, newest first.

    Returns:
        ActionResult with data {"products": [...], "count": int}
    """
    try:
        products = await request.store.products.find_by_artisan(
            request.artisan_id,
            limit=settings.PRODUCT_LIST_LIMIT
        )
    except Exception as e:
        logger.error(f"Product list error: {e}")
        return ActionResult(
            action="product_list",
            success=False,
            message=request.render("product_list_failed"),
            error=str(e)
        )

    if not products:
        return ActionResult(
            action="product_list",
            success=True,
            message=request.render("product_list_empty"),
            data={"products": [], "count": 0}
        )

    names = ", ".join(p.name for p in products)
    return ActionResult(
        action="product_list",
        success=True,
        message=request.render("product_list_summary", {"count": len(products), "names": names}),
        data={"products": [p.to_dict() for p in products], "count": len(products)},
        open_ended=True
    )


def register_product_actions(registry: ActionRegistry):
    """Register product listing."""
    registry.register(Action(
        intent=Intent.PRODUCT_LIST,
        name="product_list",
        description="List the artisan's active products",
        handler=product_list_handler
    ))
