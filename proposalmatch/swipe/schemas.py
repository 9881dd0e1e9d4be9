"""
schemas.py - Swipe Decision data contracts.
"""
from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

SwipeAction = Literal["like", "pass"]
VALID_ACTIONS: tuple[str, ...] = ("like", "pass")


class Decision(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: str
    user_id: str
    profile_id: str
    action: SwipeAction
    created_at: datetime
    updated_at: datetime


class SwipeActionRequest(BaseModel):
    """Body for POST /api/swipe/action. action is matched case-sensitively by the recorder."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    profile_id: Optional[str] = None
    action: Optional[str] = None
