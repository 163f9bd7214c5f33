"""Authentication middleware."""

from tessera.infra.auth.middleware.jwt_auth import JWTAuthMiddleware

__all__ = ["JWTAuthMiddleware"]
