"""Google Cloud Identity Platform (Firebase Auth) client.

Two roles:
- TokenVerifier: verifies caller ID tokens (google-auth handles signature,
  expiry, and audience checks against the Firebase signing certs).
- IdentityDirectory: admin operations on external accounts through the
  Identity Toolkit REST API, authorized with service-account credentials.

The client is created once at startup, opened in the FastAPI lifespan,
and injected through app.core.deps. There is no module-level instance.
"""

from __future__ import annotations

import json
import logging
import threading
import time
from typing import Any, Protocol

import google.auth
import httpx
from google.auth import exceptions as google_exceptions
from google.auth.transport import requests as google_requests
from google.oauth2 import id_token, service_account

from app.core.config import settings
from app.core.exceptions import (
    CredentialExpiredError,
    ExternalAccountExistsError,
    ExternalServiceError,
    InvalidCredentialError,
)
from app.schemas.auth import ExternalIdentity
from app.services.http_service import request_with_retries_sync

logger = logging.getLogger(__name__)

CLOUD_PLATFORM_SCOPE = "https://www.googleapis.com/auth/cloud-platform"
FIREBASE_ISSUER_PREFIX = "https://securetoken.google.com/"
TOKEN_VERSION_CLAIM = "token_version"


class TokenVerifier(Protocol):
    def verify(self, token: str) -> ExternalIdentity: ...


class IdentityDirectory(Protocol):
    def create_passwordless_account(self, email: str, first_name: str, last_name: str) -> str: ...

    def delete_account(self, uid: str) -> None: ...

    def disable_account(self, uid: str) -> None: ...

    def enable_account(self, uid: str) -> None: ...

    def generate_password_reset_link(self, email: str) -> str: ...

    def set_email_verified(self, uid: str, verified: bool) -> None: ...

    def set_custom_claims(self, uid: str, claims: dict[str, Any]) -> None: ...

    def revoke_refresh_tokens(self, uid: str) -> None: ...


class GoogleIdentityPlatform:
    """Token verifier and account directory backed by Identity Platform."""

    def __init__(
        self,
        project_id: str,
        *,
        credentials_file: str = "",
        base_url: str = "https://identitytoolkit.googleapis.com/v1",
        timeout: float = 10.0,
        continue_url: str | None = None,
        max_attempts: int = 3,
        retry_base_delay: float = 0.5,
    ):
        self.project_id = project_id
        self._credentials_file = credentials_file
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._continue_url = continue_url
        self._max_attempts = max_attempts
        self._retry_base_delay = retry_base_delay
        self._credentials = None
        self._client: httpx.Client | None = None
        self._auth_request: google_requests.Request | None = None
        self._lock = threading.Lock()

    @classmethod
    def from_settings(cls) -> "GoogleIdentityPlatform":
        return cls(
            settings.GCIP_PROJECT_ID,
            credentials_file=settings.GOOGLE_APPLICATION_CREDENTIALS,
            base_url=settings.IDENTITY_TOOLKIT_URL,
            timeout=settings.IDENTITY_HTTP_TIMEOUT,
            continue_url=settings.password_setup_continue_url,
        )

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def open(self) -> None:
        """Load credentials and create the HTTP client."""
        if self._client is not None:
            return
        if self._credentials_file:
            self._credentials = service_account.Credentials.from_service_account_file(
                self._credentials_file, scopes=[CLOUD_PLATFORM_SCOPE]
            )
        else:
            self._credentials, detected_project = google.auth.default(scopes=[CLOUD_PLATFORM_SCOPE])
            if not self.project_id and detected_project:
                self.project_id = detected_project
        if not self.project_id:
            raise ExternalServiceError("identity platform project id is not configured")
        self._auth_request = google_requests.Request()
        self._client = httpx.Client(timeout=self._timeout)
        logger.info("Identity platform client opened for project %s", self.project_id)

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None
        self._credentials = None
        logger.info("Identity platform client closed")

    def _require_open(self) -> httpx.Client:
        if self._client is None:
            raise ExternalServiceError("identity platform client is not open")
        return self._client

    # =========================================================================
    # Token verification
    # =========================================================================

    def verify(self, token: str) -> ExternalIdentity:
        """
        Verify a Firebase ID token.

        Raises:
            CredentialExpiredError: token expired
            InvalidCredentialError: any other verification failure
        """
        self._require_open()
        try:
            claims = id_token.verify_firebase_token(
                token, self._auth_request, audience=self.project_id
            )
        except (ValueError, google_exceptions.GoogleAuthError) as exc:
            if "expired" in str(exc).lower():
                raise CredentialExpiredError("token expired") from exc
            raise InvalidCredentialError("token verification failed") from exc

        if not claims or claims.get("iss") != FIREBASE_ISSUER_PREFIX + self.project_id:
            raise InvalidCredentialError("unexpected token issuer")
        uid = claims.get("user_id") or claims.get("sub")
        if not uid:
            raise InvalidCredentialError("token has no subject")

        token_version = claims.get(TOKEN_VERSION_CLAIM)
        return ExternalIdentity(
            uid=uid,
            email=claims.get("email"),
            email_verified=bool(claims.get("email_verified", False)),
            token_version=token_version if isinstance(token_version, int) else None,
        )

    # =========================================================================
    # Account directory
    # =========================================================================

    def _access_token(self) -> str:
        with self._lock:
            if not self._credentials.valid:
                self._credentials.refresh(self._auth_request)
            return self._credentials.token

    def _post(
        self, path: str, payload: dict[str, Any], *, idempotent: bool = True
    ) -> dict[str, Any]:
        """POST to the project; only idempotent calls are retried."""
        client = self._require_open()
        url = f"{self._base_url}/projects/{self.project_id}/{path}"

        def _send() -> httpx.Response:
            return client.post(
                url,
                json=payload,
                headers={"Authorization": f"Bearer {self._access_token()}"},
            )

        try:
            response = request_with_retries_sync(
                _send,
                label=f"identity platform {path}",
                max_attempts=self._max_attempts if idempotent else 1,
                base_delay=self._retry_base_delay,
            )
        except (httpx.RequestError, google_exceptions.GoogleAuthError) as exc:
            raise ExternalServiceError(f"identity platform request failed: {path}") from exc

        if response.status_code >= 400:
            code = _error_code(response)
            if code.startswith("EMAIL_EXISTS"):
                raise ExternalAccountExistsError("external account already exists")
            raise ExternalServiceError(f"identity platform error on {path}: {code}")
        return response.json() if response.content else {}

    def create_passwordless_account(self, email: str, first_name: str, last_name: str) -> str:
        """Create an account with no password; the user sets one via the setup link."""
        data = self._post(
            "accounts",
            {
                "email": email,
                "displayName": f"{first_name} {last_name}".strip(),
                "emailVerified": False,
                "disabled": False,
            },
            idempotent=False,
        )
        uid = data.get("localId")
        if not uid:
            raise ExternalServiceError("identity platform returned no account id")
        return uid

    def delete_account(self, uid: str) -> None:
        self._post("accounts:delete", {"localId": uid})

    def disable_account(self, uid: str) -> None:
        self._post("accounts:update", {"localId": uid, "disableUser": True})

    def enable_account(self, uid: str) -> None:
        self._post("accounts:update", {"localId": uid, "disableUser": False})

    def set_email_verified(self, uid: str, verified: bool) -> None:
        self._post("accounts:update", {"localId": uid, "emailVerified": verified})

    def set_custom_claims(self, uid: str, claims: dict[str, Any]) -> None:
        self._post("accounts:update", {"localId": uid, "customAttributes": json.dumps(claims)})

    def revoke_refresh_tokens(self, uid: str) -> None:
        """Invalidate refresh tokens issued before now (seconds resolution)."""
        self._post("accounts:update", {"localId": uid, "validSince": str(int(time.time()))})

    def generate_password_reset_link(self, email: str) -> str:
        payload: dict[str, Any] = {
            "requestType": "PASSWORD_RESET",
            "email": email,
            "returnOobLink": True,
        }
        if self._continue_url:
            payload["continueUrl"] = self._continue_url
        data = self._post("accounts:sendOobCode", payload)
        link = data.get("oobLink")
        if not link:
            raise ExternalServiceError("identity platform returned no setup link")
        return link


def _error_code(response: httpx.Response) -> str:
    """Identity Toolkit errors look like {"error": {"message": "EMAIL_EXISTS"}}."""
    try:
        data = response.json()
    except ValueError:
        return f"HTTP {response.status_code}"
    error = data.get("error") if isinstance(data, dict) else None
    if isinstance(error, dict) and isinstance(error.get("message"), str):
        return error["message"]
    return f"HTTP {response.status_code}"
