"""Help Action."""

from voice_commerce.core.intent import Intent
from voice_commerce.actions.registry import Action, ActionRegistry, ActionRequest, ActionResult


async def help_handler(request: ActionRequest) -> ActionResult:
    return ActionResult(
        action="help",
        success=True,
        message=request.render("help")
    )


def register_help_actions(registry: ActionRegistry):
    registry.register(Action(
        intent=Intent.HELP,
        name="help",
        description="What the assistant can do",
        handler=help_handler
    ))
