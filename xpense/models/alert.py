"""Alert models."""

from datetime import datetime
from enum import IntEnum

from pydantic import BaseModel, Field


class AlertPriority(IntEnum):
    """Lower value = more urgent."""
    CRITICAL = 1   # money or durability at risk (funds, missing account, lost write)
    WARNING = 2    # request rejected or rolled back
    NOTICE = 3


class Alert(BaseModel):
    """A prioritized notification. Ephemeral: consumed when displayed."""

    message: str = Field(..., min_length=1)
    priority: int = Field(
        default=AlertPriority.WARNING,
        description="Integer priority, lower is more urgent"
    )
    created_at: datetime = Field(default_factory=datetime.now)
