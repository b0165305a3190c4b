from .base import ApplyOutcome, FamilyContext, FamilyHandler
from .dispatcher import handler_for

__all__ = ["ApplyOutcome", "FamilyContext", "FamilyHandler", "handler_for"]
