"""
Pricing Lookup Action.
Quotes one product's price, or the price range of the active catalog.
"""

import logging

from voice_commerce.core.intent import Intent
from voice_commerce.actions.registry import Action, ActionRegistry, ActionRequest, ActionResult

logger = logging.getLogger(__name__)


def _amount(value) -> str:
    return f"{value:,.0f}"


async def pricing_handler(request: ActionRequest) -> ActionResult:
    """
    Read-only price lookup.

    A product name entity that matches one of the artisan's products gives
    that product's price; otherwise min, average and max over active products.
    """
    product_name = request.intent_result.entities.product_name

    try:
        if product_name:
            matches = await request.store.products.find_by_name(request.artisan_id, product_name)
            if matches:
                product = matches[0]
                return ActionResult(
                    action="pricing",
                    success=True,
                    message=request.render("pricing_product", {
                        "productName": product.name,
                        "price": _amount(product.price)
                    }),
                    data={"product": product.to_dict()},
                    open_ended=True
                )

        summary = await request.store.products.get_price_summary(request.artisan_id)
    except Exception as e:
        logger.error(f"Pricing lookup error: {e}")
        return ActionResult(
            action="pricing",
            success=False,
            message=request.render("pricing_failed"),
            error=str(e)
        )

    if not summary["count"]:
        return ActionResult(
            action="pricing",
            success=True,
            message=request.render("pricing_empty"),
            data={"count": 0}
        )

    return ActionResult(
        action="pricing",
        success=True,
        message=request.render("pricing_summary", {
            "count": summary["count"],
            "minPrice": _amount(summary["minPrice"]),
            "maxPrice": _amount(summary["maxPrice"]),
            "avgPrice": _amount(summary["avgPrice"])
        }),
        data={"summary": summary},
        open_ended=True
    )


def register_pricing_actions(registry: ActionRegistry):
    registry.register(Action(
        intent=Intent.PRICING,
        name="pricing",
        description="Price of a product or the catalog price range",
        handler=pricing_handler
    ))
