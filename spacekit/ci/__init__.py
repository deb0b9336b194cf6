"""CI host integration."""

from .host import ActionsHost

__all__ = ["ActionsHost"]
