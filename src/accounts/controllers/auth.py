"""This module contains the controllers for the authentication app."""

import typing as t

import structlog
from ninja_extra import api_controller, route
from ninja_jwt.controller import TokenObtainPairController
from ninja_jwt.schema import (
    TokenObtainPairInputSchema,
    TokenObtainPairOutputSchema,
    TokenRefreshInputSchema,
    TokenRefreshOutputSchema,
)

from common.throttling import AuthThrottle

from ..models import RemoteUser

logger = structlog.get_logger(__name__)


@api_controller("/auth", tags=["Auth"], auth=None, throttle=AuthThrottle())
class AuthController(TokenObtainPairController):
    @route.post("/token/pair", response=TokenObtainPairOutputSchema, url_name="token_obtain_pair")
    def obtain_token(self, user_token: TokenObtainPairInputSchema) -> TokenObtainPairOutputSchema:
        """Authenticate with username and password to obtain JWT access/refresh tokens.

        Logged-in users act as the remote contact linked to their account; every
        registration they submit is attributed to that contact.
        """
        user_token.check_user_authentication_rule()
        user = t.cast(RemoteUser, user_token._user)
        logger.info("token_pair_issued", user_id=str(user.id), linked=user.is_linked)
        return t.cast(TokenObtainPairOutputSchema, user_token.to_response_schema())  # type: ignore[no-untyped-call]

    @route.post("/token/refresh", response=TokenRefreshOutputSchema, url_name="token_refresh")
    def refresh_token(self, refresh_token: TokenRefreshInputSchema) -> TokenRefreshOutputSchema:
        """Exchange a refresh token for a new access token."""
        return t.cast(TokenRefreshOutputSchema, refresh_token.to_response_schema())  # type: ignore[no-untyped-call]
