from .redirect import Redirect
from .click import LinkClick
from .bot_audit import BotAudit

__all__ = ["Redirect", "LinkClick", "BotAudit"]
