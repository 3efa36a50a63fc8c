"""Repository layer.

These repositories encapsulate common query patterns for the app's entities
and hand domain dataclasses back to callers. Keep them focused on
persistence/query shaping; business logic lives in services.
"""

from traechan.db.repos.auth_accounts import AuthAccountRepository
from traechan.db.repos.characters import CharacterRepository, UserCharacterRepository
from traechan.db.repos.user_registration import UserRegistrationRepository
from traechan.db.repos.users import UserRepository

__all__ = [
    "AuthAccountRepository",
    "CharacterRepository",
    "UserCharacterRepository",
    "UserRegistrationRepository",
    "UserRepository",
]
