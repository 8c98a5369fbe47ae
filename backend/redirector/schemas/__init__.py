from .click import ClickEvent

__all__ = ["ClickEvent"]
