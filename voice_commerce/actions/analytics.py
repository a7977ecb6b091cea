"""
Business Analytics Action.
Aggregate artisan metrics plus live sums over product performance counters.
"""

import logging

from voice_commerce.core.intent import Intent
from voice_commerce.actions.registry import Action, ActionRegistry, ActionRequest, ActionResult

logger = logging.getLogger(__name__)


def _amount(value) -> str:
    return f"{value:,.0f}"


async def analytics_handler(request: ActionRequest) -> ActionResult:
    analytics_type = request.intent_result.entities.analytics_type or "overview"

    def failed(error: str) -> ActionResult:
        return ActionResult(
            action="analytics",
            success=False,
            message=request.render("analytics_failed"),
            error=error,
            data={"analyticsType": analytics_type}
        )

    try:
        metrics = await request.store.artisans.get_metrics(request.artisan_id)
        if metrics is None:
            return failed(f"Artisan '{request.artisan_id}' not found")
        performance = await request.store.products.get_performance_totals(request.artisan_id)
    except Exception as e:
        logger.error(f"Analytics error: {e}")
        return failed(str(e))

    summary = {**metrics, **performance}
    message = request.render("analytics_summary", {
        "totalSales": _amount(summary["totalSales"]),
        "totalOrders": summary["totalOrders"],
        "activeProducts": summary["activeProducts"],
        "totalViews": summary["totalViews"]
    })

    return ActionResult(
        action="analytics",
        success=True,
        message=message,
        data={"analyticsType": analytics_type, "metrics": summary},
        open_ended=True
    )


def register_analytics_actions(registry: ActionRegistry):
    registry.register(Action(
        intent=Intent.ANALYTICS,
        name="analytics",
        description="Sales and product performance overview",
        handler=analytics_handler
    ))
