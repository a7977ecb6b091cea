"""
Action Registry and Executor.
Dispatches a classified intent to the handler that carries it out.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional

from voice_commerce.config import get_settings
from voice_commerce.core.intent import Intent, IntentAnalysisResult
from voice_commerce.core.messages import MessageCatalog, catalog as default_catalog
from voice_commerce.core.session import ConversationContext, UNCHANGED

logger = logging.getLogger(__name__)
settings = get_settings()


@dataclass
class ActionResult:
    """
    Outcome of one handler.

    `message` is the localized reply the handler built; `product_creation`
    is the sub-state to write back, or UNCHANGED.
    """
    action: str
    success: bool
    message: Optional[str] = None
    error: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)
    product_creation: Any = UNCHANGED
    open_ended: bool = False


@dataclass
class BusinessStore:
    """Repositories the handlers read and write."""
    products: Any
    artisans: Any
    orders: Any

    @classmethod
    def default(cls) -> "BusinessStore":
        from voice_commerce.db.repositories import (
            ArtisanRepository,
            OrderRepository,
            ProductRepository
        )
        return cls(
            products=ProductRepository(),
            artisans=ArtisanRepository(),
            orders=OrderRepository()
        )


@dataclass
class ActionRequest:
    """Everything a handler may look at for one turn."""
    intent_result: IntentAnalysisResult
    artisan_id: str
    context: ConversationContext
    language: str
    store: BusinessStore
    messages: MessageCatalog = default_catalog

    @property
    def text(self) -> str:
        return self.intent_result.entities.text

    def render(self, key: str, params: Optional[Dict[str, Any]] = None) -> str:
        return self.messages.render(key, self.language, params)


Handler = Callable[[ActionRequest], Awaitable[ActionResult]]


@dataclass
class Action:
    """Handler bound to one intent."""
    intent: Intent
    name: str
    description: str
    handler: Handler


class ActionRegistry:
    """Maps each intent to at most one action."""

    def __init__(self):
        self._actions: Dict[Intent, Action] = {}

    def initialize(self):
        """Register all built-in actions."""
        from voice_commerce.actions.product_creation import register_product_creation_actions
        from voice_commerce.actions.products import register_product_actions
        from voice_commerce.actions.analytics import register_analytics_actions
        from voice_commerce.actions.pricing import register_pricing_actions
        from voice_commerce.actions.orders import register_order_actions
        from voice_commerce.actions.help import register_help_actions

        register_product_creation_actions(self)
        register_product_actions(self)
        register_analytics_actions(self)
        register_pricing_actions(self)
        register_order_actions(self)
        register_help_actions(self)

        logger.info(f"Registered {len(self._actions)} actions: {[i.value for i in self._actions]}")
        return self

    def register(self, action: Action):
        self._actions[action.intent] = action
        logger.debug(f"Registered action: {action.name}")

    def get(self, intent: Intent) -> Optional[Action]:
        return self._actions.get(intent)

    def intents(self) -> List[Intent]:
        return list(self._actions)


def unknown_result(request: ActionRequest) -> ActionResult:
    return ActionResult(
        action="unknown",
        success=False,
        message=request.render("unknown_intent"),
        error=f"No action for intent '{request.intent_result.intent.value}'"
    )


class ActionExecutor:
    """
    Runs the action for a classified intent.

    While a guided product creation is in progress the utterance belongs to
    that flow whatever the intent, so a bare "2500" is read as the price.
    Never raises: handler errors become `success=False` results.
    """

    def __init__(
        self,
        registry: Optional[ActionRegistry] = None,
        store: Optional[BusinessStore] = None,
        messages: MessageCatalog = default_catalog
    ):
        self.registry = registry or ActionRegistry().initialize()
        self.store = store or BusinessStore.default()
        self.messages = messages

    def route(self, intent_result: IntentAnalysisResult, context: ConversationContext) -> Intent:
        if context.product_creation is not None:
            return Intent.PRODUCT_CREATE
        return intent_result.intent

    async def execute(
        self,
        intent_result: IntentAnalysisResult,
        artisan_id: str,
        context: ConversationContext,
        language: str
    ) -> ActionResult:
        request = ActionRequest(
            intent_result=intent_result,
            artisan_id=artisan_id,
            context=context,
            language=language,
            store=self.store,
            messages=self.messages
        )

        intent = self.route(intent_result, context)
        action = self.registry.get(intent)
        if action is None:
            return unknown_result(request)

        start_time = time.time()
        try:
            result = await action.handler(request)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.exception(f"Action {action.name} failed: {e}")
            return ActionResult(
                action=action.name,
                success=False,
                message=request.render("technical_error"),
                error=str(e)
            )

        logger.info(
            f"Action {result.action} for artisan {artisan_id} "
            f"(success={result.success}) in {(time.time() - start_time) * 1000:.2f}ms"
        )
        return result
