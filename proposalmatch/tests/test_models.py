"""
ORM column tests: columns filled from user input or model output carry no
length limit, so an over-long value is stored instead of failing the INSERT.
"""
import pytest
from sqlalchemy import String

from proposalmatch.models import ProfileORM, ResumeORM, UserORM


def _bounded(model) -> set:
    return {
        column.name
        for column in model.__table__.columns
        if isinstance(column.type, String) and column.type.length is not None
    }


@pytest.mark.parametrize("model", [ProfileORM, ResumeORM])
def test_only_identifiers_are_length_bounded(model) -> None:
    assert _bounded(model) == {"id", "owner_id"}


def test_user_bounds_match_registration_rules() -> None:
    # username is capped at 20 by the registration pattern
    assert _bounded(UserORM) == {"id", "username", "password_hash"}
