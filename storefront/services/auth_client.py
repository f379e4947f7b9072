# storefront/services/auth_client.py
import uuid

import requests

from storefront.domain.errors import RemoteFailure, Unauthenticated
from storefront.domain.schemas import Identity
from storefront.services.identity import SessionIdentity
from storefront.utils.retry import http_retry
from storefront.utils.settings import SUPABASE_URL, SUPABASE_ANON_KEY, HTTP_TIMEOUT_SECONDS
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class AuthClient:
    """Email/password auth against the hosted backend's GoTrue endpoint."""

    def __init__(
        self,
        identity: SessionIdentity,
        base_url: str | None = None,
        api_key: str | None = None,
        timeout: float | None = None,
        session: requests.Session | None = None,
    ):
        self.identity = identity
        self.base_url = (base_url or SUPABASE_URL).rstrip("/") + "/auth/v1"
        self.api_key = api_key or SUPABASE_ANON_KEY
        self.timeout = timeout or HTTP_TIMEOUT_SECONDS
        self.http = session or requests.Session()

    def _post(self, path: str, payload: dict | None = None, token: str | None = None, **kwargs):
        headers = {"apikey": self.api_key}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        url = f"{self.base_url}/{path}"
        logger.info(f"AuthClient POST {url}")
        return self.http.post(url, json=payload, headers=headers, timeout=self.timeout, **kwargs)

    @http_retry()
    def _post_with_retry(self, path: str, payload: dict | None = None, token: str | None = None, **kwargs):
        return self._post(path, payload, token, **kwargs)

    def _call(
        self,
        path: str,
        payload: dict | None = None,
        token: str | None = None,
        retry: bool = True,
        **kwargs,
    ) -> dict:
        send = self._post_with_retry if retry else self._post
        try:
            resp = send(path, payload, token, **kwargs)
        except requests.RequestException as e:
            raise RemoteFailure(f"Auth request {path} failed: {e}") from e

        try:
            body = resp.json() if resp.content else {}
        except ValueError:
            body = {}

        if resp.status_code in (400, 401, 422):
            message = body.get("error_description") or body.get("msg") or "Invalid login credentials"
            raise Unauthenticated(message)
        if resp.status_code >= 400:
            raise RemoteFailure(f"Auth request {path} returned {resp.status_code}")
        return body

    def _open_session(self, body: dict) -> Identity:
        user = body.get("user") or {}
        if not user.get("id"):
            raise RemoteFailure("Auth response did not include a user")
        identity = Identity(id=user["id"], email=user.get("email") or "")
        self.identity.set_session(identity, body.get("access_token"))
        return identity

    def sign_in_with_password(self, email: str, password: str) -> Identity:
        body = self._call(
            "token",
            {"email": email, "password": password},
            params={"grant_type": "password"},
        )
        return self._open_session(body)

    def sign_up(self, email: str, password: str) -> Identity | None:
        """Returns None when the backend wants the address confirmed first."""
        # token grants and logout are safe to repeat, a retried signup is not
        body = self._call("signup", {"email": email, "password": password}, retry=False)
        if not body.get("access_token"):
            logger.info(f"Sign up for {email} awaits email confirmation")
            return None
        return self._open_session(body)

    def sign_out(self) -> None:
        token = self.identity.access_token()
        try:
            if token:
                self._call("logout", token=token)
        except RemoteFailure as e:
            # the token expires on its own, the local session still ends
            logger.warning(f"Remote sign out failed: {e}")
        finally:
            self.identity.sign_out()


class DevAuthClient:
    """
    Local development stand-in for AuthClient, used with the SQL backend.
    Any password is accepted and the user id is derived from the email.
    """

    def __init__(self, identity: SessionIdentity):
        self.identity = identity

    def sign_in_with_password(self, email: str, password: str) -> Identity:
        if not email or not password:
            raise Unauthenticated("Invalid login credentials")
        identity = Identity(
            id=str(uuid.uuid5(uuid.NAMESPACE_URL, f"storefront:{email.strip().lower()}")),
            email=email.strip(),
        )
        self.identity.set_session(identity, access_token=None)
        return identity

    def sign_up(self, email: str, password: str) -> Identity | None:
        return self.sign_in_with_password(email, password)

    def sign_out(self) -> None:
        self.identity.sign_out()
