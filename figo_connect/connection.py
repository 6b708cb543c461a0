from __future__ import annotations

import base64
import logging
from typing import Any, Dict, Optional
from urllib.parse import urlencode

from .core.config import FigoConfig
from .core.context import ApiContext, path_segment as _segment
from .core.errors import SdkUsageError

logger = logging.getLogger(__name__)


class Connection(ApiContext):
    """Non user-bound connection, authenticated with the client credentials.

    Its main purpose is the OAuth 2.0 login; it also covers user creation,
    password recovery and the public catalog.
    """

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        redirect_uri: Optional[str] = None,
        config: Optional[FigoConfig] = None,
    ):
        if not all([client_id, client_secret]):
            raise ValueError("client_id and client_secret are required.")

        self.client_id = client_id
        self.redirect_uri = redirect_uri
        credentials = base64.b64encode(f"{client_id}:{client_secret}".encode("utf-8")).decode("ascii")
        super().__init__(f"Basic {credentials}", config)

    async def _query_oauth(self, path: str, data: Dict[str, Any]) -> Any:
        return await self.query_api(path, data, "POST", encoding="form")

    def login_url(self, state: str, scope: Optional[str] = None) -> str:
        """URL the user opens in a browser to start the login.

        At the end the user is sent to ``redirect_uri`` with an authorization
        code that ``obtain_access_token`` converts into an access token.
        """
        options = {"response_type": "code", "client_id": self.client_id, "state": state}
        if scope:
            options["scope"] = scope
        if self.redirect_uri:
            options["redirect_uri"] = self.redirect_uri
        return f"{self.config.api_base_url}/auth/code?{urlencode(options)}"

    async def obtain_access_token(self, authorization_code_or_refresh_token: str, scope: Optional[str] = None) -> Any:
        """Exchange an authorization code (``O...``) or a refresh token (``R...``) for tokens."""
        if not authorization_code_or_refresh_token:
            raise ValueError("authorization_code_or_refresh_token is required.")

        prefix = authorization_code_or_refresh_token[0]
        options: Dict[str, Any] = {}
        if prefix == "O":
            options["grant_type"] = "authorization_code"
            options["code"] = authorization_code_or_refresh_token
            options["redirect_uri"] = self.redirect_uri
        elif prefix == "R":
            options["grant_type"] = "refresh_token"
            options["refresh_token"] = authorization_code_or_refresh_token
            options["scope"] = scope
        else:
            raise SdkUsageError("Expected an authorization code (O...) or a refresh token (R...).")

        logger.info("Requesting access token via %s grant", options["grant_type"])
        return await self._query_oauth("/auth/token", options)

    async def revoke_token(self, refresh_token_or_access_token: str) -> Any:
        """Revoke a token; it is unusable right after this call."""
        return await self._query_oauth("/auth/revoke", {"token": refresh_token_or_access_token})

    async def credential_login(
        self,
        username: str,
        password: str,
        device_name: Optional[str] = None,
        device_type: Optional[str] = None,
        device_udid: Optional[str] = None,
        scope: Optional[str] = None,
    ) -> Any:
        options = {
            "grant_type": "password",
            "username": username,
            "password": password,
            "device_name": device_name,
            "device_type": device_type,
            "device_udid": device_udid,
            "scope": scope,
        }
        return await self._query_oauth("/auth/token", options)

    async def unlock_account(self, username: str, unlock_code: Any, recovery_password: str, new_password: str) -> Any:
        options = {
            "username": username,
            "unlock_code": unlock_code,
            "recovery_password": recovery_password,
            "new_password": new_password,
        }
        return await self.query_api("/auth/unlock", options, "POST")

    async def create_user(
        self,
        name: str,
        email: str,
        password: str,
        language: Optional[str] = None,
        send_newsletter: Optional[bool] = None,
    ) -> Any:
        """Create a figo account; the result holds the ``recovery_password``."""
        options = {
            "name": name,
            "email": email,
            "password": password,
            "language": language or None,
            "send_newsletter": send_newsletter if isinstance(send_newsletter, bool) else None,
        }
        return await self.query_api("/auth/user", options, "POST")

    async def forgot_password(self, username: str) -> Any:
        return await self.query_api("/auth/forgot", {"username": username}, "POST")

    async def resend_unlock_code(self, username: str) -> Any:
        return await self.query_api("/auth/user/resend_unlock_code", {"username": username}, "POST")

    async def get_banks(self, country_code: Optional[str] = None) -> Any:
        path = f"/catalog/banks/{_segment(country_code)}" if country_code else "/catalog/banks"
        return await self.query_api(path)

    async def get_services(self) -> Any:
        return await self.query_api("/catalog/services")
