"""Actor resolution and authorization."""

from consorcio_market.security.authorization import Actor, Authorizer

__all__ = ["Actor", "Authorizer"]
