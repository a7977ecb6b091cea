"""
Orders Lookup Action.
Recent orders and the value still waiting on the artisan.
"""

import logging

from voice_commerce.config import get_settings
from voice_commerce.core.intent import Intent
from voice_commerce.actions.registry import Action, ActionRegistry, ActionRequest, ActionResult

logger = logging.getLogger(__name__)
settings = get_settings()


async def orders_handler(request: ActionRequest) -> ActionResult:
    try:
        orders = await request.store.orders.find_by_artisan(
            request.artisan_id,
            limit=settings.ORDERS_LIST_LIMIT
        )
        pending = await request.store.orders.get_pending_summary(request.artisan_id)
    except Exception as e:
        logger.error(f"Orders lookup error: {e}")
        return ActionResult(
            action="orders",
            success=False,
            message=request.render("orders_failed"),
            error=str(e)
        )

    if not orders:
        return ActionResult(
            action="orders",
            success=True,
            message=request.render("orders_empty"),
            data={"orders": [], "count": 0, **pending}
        )

    return ActionResult(
        action="orders",
        success=True,
        message=request.render("orders_summary", {
            "count": len(orders),
            "pendingCount": pending["pendingCount"],
            "pendingValue": f"{pending['pendingValue']:,.0f}"
        }),
        data={"orders": [o.to_dict() for o in orders], "count": len(orders), **pending},
        open_ended=True
    )


def register_order_actions(registry: ActionRegistry):
    registry.register(Action(
        intent=Intent.ORDERS,
        name="orders",
        description="Recent orders and pending value",
        handler=orders_handler
    ))
