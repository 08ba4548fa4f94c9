"""Bullhorn OAuth session acquisition."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, cast
from urllib.parse import parse_qs, urljoin, urlsplit

from structlog import get_logger

from app.clients.http import Transport, send_request
from app.core.config import SyncConfig
from app.core.errors import BullhornAuthError, ConfigurationError
from app.types.bullhorn import LoginResponseTD, TokenResponseTD

logger = get_logger()

MAX_AUTH_REDIRECTS = 5
REDIRECT_DELAY_SECONDS = 0.2
MAX_LOGIN_ATTEMPTS = 2
AUTH_FAILURE_STATUSES = (401, 403)


@dataclass(frozen=True)
class BullhornSession:
    """Short-lived REST credentials returned by rest-services/login."""

    bh_rest_token: str
    rest_url: str

    @property
    def is_valid(self) -> bool:
        return bool(self.bh_rest_token and self.rest_url)


class BullhornAuth:
    """
    Exchanges the configured refresh token for a Bullhorn REST session.

    Nothing is cached: every call to acquire_session performs the full
    token exchange and login.
    """

    def __init__(self, config: SyncConfig, transport: Transport | None = None) -> None:
        self.config = config
        self.oauth_url = config.bullhorn_oauth_url.rstrip("/")
        self.rest_base_url = config.bullhorn_rest_base_url.rstrip("/")
        self._send = transport or send_request
        self._sleep = asyncio.sleep

    def _require_credentials(self) -> None:
        if not (
            self.config.bullhorn_client_id
            and self.config.bullhorn_client_secret
            and self.config.bullhorn_refresh_token
        ):
            raise ConfigurationError("Missing Bullhorn OAuth configuration")

    async def acquire_session(self, retry_on_auth_failure: bool = True) -> BullhornSession:
        """
        Obtain a fresh BhRestToken and restUrl.

        If the login call is rejected with 401/403, the whole acquisition
        (token exchange included) is repeated once.

        Args:
            retry_on_auth_failure: Allow the single retry after a login auth error

        Returns:
            BullhornSession

        Raises:
            ConfigurationError: If client id/secret/refresh token are missing
            BullhornAuthError: If token exchange or login fails
        """
        self._require_credentials()

        max_attempts = MAX_LOGIN_ATTEMPTS if retry_on_auth_failure else 1
        attempt = 0
        while True:
            attempt += 1
            access_token = await self._get_access_token()
            try:
                return await self._login(access_token)
            except BullhornAuthError as e:
                if e.status in AUTH_FAILURE_STATUSES and attempt < max_attempts:
                    logger.warning(
                        "bullhorn_login_auth_failed_retrying",
                        status=e.status,
                        attempt=attempt,
                    )
                    continue
                raise

    async def check_refresh_token(self) -> TokenResponseTD:
        """
        Run only the refresh-token exchange and return the token payload.

        Raises:
            ConfigurationError: If client id/secret/refresh token are missing
            BullhornAuthError: If the token endpoint rejects the refresh token
        """
        self._require_credentials()
        payload = await self._exchange_token("refresh_token")
        self._warn_if_rotated(payload)
        return payload

    async def _get_access_token(self) -> str:
        try:
            payload = await self._exchange_token("refresh_token")
        except BullhornAuthError as e:
            invalid_grant = isinstance(e.body, dict) and e.body.get("error") == "invalid_grant"
            if not (invalid_grant and self.config.has_password_fallback):
                raise

            logger.warning("bullhorn_refresh_token_invalid_grant_using_password_login")
            auth_code = await self._get_auth_code_headless()
            payload = await self._exchange_token("authorization_code", auth_code=auth_code)

        self._warn_if_rotated(payload)

        access_token = payload.get("access_token")
        if not access_token:
            raise BullhornAuthError("Bullhorn token response missing access_token")
        return access_token

    def _warn_if_rotated(self, payload: TokenResponseTD) -> None:
        rotated = payload.get("refresh_token")
        if rotated and rotated != self.config.bullhorn_refresh_token:
            logger.warning(
                "bullhorn_refresh_token_rotated",
                hint="Update BULLHORN_REFRESH_TOKEN to avoid auth failures",
            )

    async def _exchange_token(
        self, grant_type: str, auth_code: str | None = None
    ) -> TokenResponseTD:
        form: dict[str, str] = {
            "grant_type": grant_type,
            "client_id": self.config.bullhorn_client_id,
            "client_secret": self.config.bullhorn_client_secret,
        }
        if grant_type == "refresh_token":
            form["refresh_token"] = self.config.bullhorn_refresh_token
        elif grant_type == "authorization_code" and auth_code:
            form["code"] = auth_code

        if self.config.bullhorn_redirect_uri:
            form["redirect_uri"] = self.config.bullhorn_redirect_uri

        logger.info("bullhorn_token_request", grant_type=grant_type)
        response = await self._send(
            "POST",
            f"{self.oauth_url}/token",
            data=form,
            headers={"Content-Type": "application/x-www-form-urlencoded"},
        )

        if not response.ok:
            body = response.error_body()
            logger.error(
                "bullhorn_token_request_failed",
                grant_type=grant_type,
                status=response.status,
                body=body,
            )
            raise BullhornAuthError.from_response(
                "Bullhorn token request failed", response.status, body
            )

        payload = response.json()
        return cast(TokenResponseTD, payload if isinstance(payload, dict) else {})

    async def _login(self, access_token: str) -> BullhornSession:
        response = await self._send(
            "GET",
            f"{self.rest_base_url}/rest-services/login",
            params={"version": "*", "access_token": access_token},
        )

        if not response.ok:
            body = response.error_body()
            logger.error("bullhorn_login_failed", status=response.status, body=body)
            raise BullhornAuthError.from_response("Bullhorn login failed", response.status, body)

        data: dict[str, Any] = response.json() or {}
        login = cast(LoginResponseTD, data)
        session = BullhornSession(
            bh_rest_token=login.get("BhRestToken") or "",
            rest_url=login.get("restUrl") or "",
        )
        logger.info("bullhorn_session_acquired", rest_url=session.rest_url)
        return session

    async def _get_auth_code_headless(self) -> str:
        params = {
            "client_id": self.config.bullhorn_client_id,
            "response_type": "code",
            "action": "Login",
            "username": self.config.bullhorn_username or "",
            "password": self.config.bullhorn_password or "",
        }
        if self.config.bullhorn_redirect_uri:
            params["redirect_uri"] = self.config.bullhorn_redirect_uri

        status, code = await self._follow_redirects_for_code(f"{self.oauth_url}/authorize", params)
        if not code:
            raise BullhornAuthError(
                f"Bullhorn headless auth redirect missing code (status {status or 'unknown'})",
                status=status or None,
            )
        return code

    async def _follow_redirects_for_code(
        self, start_url: str, params: dict[str, str]
    ) -> tuple[int, str | None]:
        """
        Walk Location headers by hand until one carries a ``code`` parameter.

        Returns:
            (last HTTP status, code or None); status is 0 when the hop
            limit was exhausted
        """
        current_url = start_url
        current_params: dict[str, str] | None = params

        for _ in range(MAX_AUTH_REDIRECTS):
            response = await self._send(
                "GET", current_url, params=current_params, allow_redirects=False
            )
            if response.status >= 400:
                body = response.error_body()
                logger.error("bullhorn_authorize_failed", status=response.status, body=body)
                raise BullhornAuthError.from_response(
                    "Bullhorn authorize request failed", response.status, body
                )

            location = response.header("Location")
            if not location:
                return response.status, None

            redirect_url = urljoin(current_url, location)
            code_values = parse_qs(urlsplit(redirect_url).query).get("code")
            if code_values and code_values[0]:
                return response.status, code_values[0]

            current_url = redirect_url
            current_params = None
            await self._sleep(REDIRECT_DELAY_SECONDS)

        return 0, None
