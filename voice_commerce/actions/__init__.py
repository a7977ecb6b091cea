"""Business actions run for classified intents."""

from voice_commerce.actions.registry import (
    Action,
    ActionExecutor,
    ActionRegistry,
    ActionRequest,
    ActionResult,
    BusinessStore
)

__all__ = [
    "Action",
    "ActionExecutor",
    "ActionRegistry",
    "ActionRequest",
    "ActionResult",
    "BusinessStore"
]
