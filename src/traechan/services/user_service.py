from __future__ import annotations

import logging
from typing import Protocol

from traechan.domain import User
from traechan.logging_config import log_with_fields

_logger = logging.getLogger(__name__)


class UserLookup(Protocol):
    async def get_by_id(self, user_id: int) -> User | None: ...


async def get_user_by_id(
    user_id: int,
    user_repository: UserLookup,
    *,
    logger: logging.Logger = _logger,
) -> User | None:
    log_with_fields(logger, logging.DEBUG, "fetching user by id", user_id=user_id)
    user = await user_repository.get_by_id(user_id)
    if user is None:
        log_with_fields(logger, logging.DEBUG, "user not found", user_id=user_id)
    else:
        log_with_fields(logger, logging.DEBUG, "user found", user_id=user.id)
    return user
