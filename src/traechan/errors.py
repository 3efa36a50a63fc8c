from __future__ import annotations


class TraechanError(Exception):
    """Base class for errors raised by this package."""


class IdentityProviderError(TraechanError):
    """The identity provider rejected the authorization code or could not be reached."""


class ProviderNotConfiguredError(TraechanError):
    pass
