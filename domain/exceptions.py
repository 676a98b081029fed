"""Domain Exceptions"""
from typing import Optional


class WaitingListError(Exception):
    """Base class for waiting list engine errors"""


class ValidationError(WaitingListError, ValueError):
    """Input rejected by a business rule; always names the offending field"""

    def __init__(self, field: str, message: str):
        self.field = field
        self.message = message
        super().__init__(f"{field}: {message}")


class NotFoundError(WaitingListError, LookupError):
    """Referenced entity does not exist (or was soft-deleted)"""

    def __init__(self, entity: str, entity_id: Optional[object] = None):
        self.entity = entity
        self.entity_id = entity_id
        if entity_id is None:
            super().__init__(f"{entity} not found")
        else:
            super().__init__(f"{entity} {entity_id} not found")
