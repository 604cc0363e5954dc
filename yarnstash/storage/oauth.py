"""
Google OAuth flow and encrypted per-user Drive credentials.

Tokens are encrypted at rest using Fernet symmetric encryption and stored
through the ``DriveTokenRepository``.
"""

import base64
import hashlib
import logging
import secrets
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Tuple
from urllib.parse import urlencode

import httpx
from cryptography.fernet import Fernet, InvalidToken

from ..config.settings import DriveConfig
from ..data.base import DriveTokenRepository
from ..exceptions import ConfigurationError, ObjectStoreError, ValidationError, create_error_context

logger = logging.getLogger(__name__)

GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
SCOPES = [
    "https://www.googleapis.com/auth/drive.file",
    "https://www.googleapis.com/auth/drive.appdata",
]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class OAuthTokens:
    """Decrypted OAuth token pair for one user."""
    access_token: str
    refresh_token: str
    token_type: str = "Bearer"
    expires_at: Optional[datetime] = None
    scope: str = ""

    def is_expired(self) -> bool:
        """Check if access token is expired."""
        if not self.expires_at:
            return True
        # Consider expired 5 minutes before actual expiry
        return _utcnow() >= (self.expires_at - timedelta(minutes=5))


@dataclass
class OAuthState:
    """OAuth state for CSRF protection."""
    state_token: str
    user_id: int
    redirect_uri: str
    created_at: datetime = field(default_factory=_utcnow)

    def is_expired(self) -> bool:
        """State tokens expire after 10 minutes."""
        return _utcnow() > (self.created_at + timedelta(minutes=10))


class TokenCipher:
    """Fernet cipher for token encryption at rest."""

    def __init__(self, key: Optional[str] = None):
        if not key:
            logger.warning(
                "DRIVE_TOKEN_ENCRYPTION_KEY not set. "
                "Using ephemeral key - Drive connections will be lost on restart."
            )
            key = Fernet.generate_key().decode()
        try:
            self._fernet = Fernet(key.encode())
        except ValueError:
            # Not a Fernet key: derive one from the passphrase
            derived = base64.urlsafe_b64encode(hashlib.sha256(key.encode()).digest())
            self._fernet = Fernet(derived)

    def encrypt(self, value: str) -> str:
        return self._fernet.encrypt(value.encode()).decode()

    def decrypt(self, value: str) -> str:
        return self._fernet.decrypt(value.encode()).decode()


class DriveCredentialStore:
    """Encrypts and persists Drive tokens per user."""

    def __init__(self, repository: DriveTokenRepository, cipher: TokenCipher):
        self.repository = repository
        self.cipher = cipher

    async def store_tokens(self, user_id: int, tokens: OAuthTokens) -> None:
        await self.repository.save_tokens(
            user_id=user_id,
            access_token=self.cipher.encrypt(tokens.access_token),
            refresh_token=self.cipher.encrypt(tokens.refresh_token or ""),
            expires_at=tokens.expires_at,
            scope=tokens.scope,
        )
        logger.info(f"Stored Drive tokens for user {user_id}")

    async def get_tokens(self, user_id: int) -> Optional[OAuthTokens]:
        """
        Retrieve and decrypt tokens.

        Returns:
            Tokens if stored and decryptable, None otherwise
        """
        row = await self.repository.get_tokens(user_id)
        if not row:
            return None

        try:
            return OAuthTokens(
                access_token=self.cipher.decrypt(row["access_token"]),
                refresh_token=self.cipher.decrypt(row["refresh_token"]),
                expires_at=row.get("expires_at"),
                scope=row.get("scope") or "",
            )
        except InvalidToken:
            logger.error(f"Failed to decrypt Drive tokens for user {user_id}")
            return None

    async def delete_tokens(self, user_id: int) -> bool:
        deleted = await self.repository.delete_tokens(user_id)
        if deleted:
            logger.info(f"Deleted Drive tokens for user {user_id}")
        return deleted

    async def has_tokens(self, user_id: int) -> bool:
        return await self.get_tokens(user_id) is not None

    async def list_connected_users(self) -> List[int]:
        return await self.repository.list_connected_users()


class GoogleOAuthFlow:
    """
    Handles the Google OAuth 2.0 consent flow for Drive access.
    """

    def __init__(
        self,
        config: DriveConfig,
        credential_store: DriveCredentialStore,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize OAuth flow.

        Args:
            config: Drive settings with client id, secret and redirect URI
            credential_store: Encrypted token storage
            transport: Optional httpx transport for the token endpoint
        """
        self.config = config
        self.credential_store = credential_store
        self.transport = transport
        self._pending_states: Dict[str, OAuthState] = {}

    def is_configured(self) -> bool:
        return self.config.oauth_configured

    def generate_auth_url(self, user_id: int) -> Tuple[str, str]:
        """
        Generate OAuth authorization URL.

        Args:
            user_id: User initiating the flow

        Returns:
            Tuple of (auth_url, state_token)

        Raises:
            ConfigurationError: If OAuth client credentials are missing
        """
        if not self.is_configured():
            raise ConfigurationError(
                message="Google OAuth not configured",
                error_code="OAUTH_NOT_CONFIGURED",
                context=create_error_context(operation="generate_auth_url", user_id=user_id),
                user_message="Google Drive integration is not configured on this server.",
            )

        state_token = secrets.token_urlsafe(32)
        self._pending_states[state_token] = OAuthState(
            state_token=state_token,
            user_id=user_id,
            redirect_uri=self.config.redirect_uri,
        )
        self._cleanup_expired_states()

        params = {
            "client_id": self.config.client_id,
            "redirect_uri": self.config.redirect_uri,
            "response_type": "code",
            "scope": " ".join(SCOPES),
            "access_type": "offline",  # Get refresh token
            "prompt": "consent",  # Always show consent to get refresh token
            "state": state_token,
        }
        return f"{GOOGLE_AUTH_URL}?{urlencode(params)}", state_token

    def validate_state(self, state_token: str) -> Optional[OAuthState]:
        """
        Validate and consume a state token.

        Returns:
            OAuth state if valid and not expired
        """
        state = self._pending_states.pop(state_token, None)
        if state is None or state.is_expired():
            return None
        return state

    async def exchange_code(self, code: str, state: OAuthState) -> OAuthTokens:
        """
        Exchange an authorization code for tokens and store them.

        Args:
            code: Authorization code from callback
            state: Validated OAuth state

        Returns:
            OAuth tokens

        Raises:
            ValidationError: If no code was supplied
            ObjectStoreError: If Google rejects the exchange
        """
        if not code:
            raise ValidationError("Authorization code is required", error_code="MISSING_CODE")

        try:
            async with httpx.AsyncClient(transport=self.transport, timeout=30.0) as client:
                response = await client.post(
                    GOOGLE_TOKEN_URL,
                    data={
                        "client_id": self.config.client_id,
                        "client_secret": self.config.client_secret,
                        "code": code,
                        "grant_type": "authorization_code",
                        "redirect_uri": state.redirect_uri,
                    },
                )
        except httpx.HTTPError as e:
            raise ObjectStoreError(
                message=f"Token exchange request failed: {e}",
                error_code="OAUTH_EXCHANGE_FAILED",
                context=create_error_context(operation="exchange_code", user_id=state.user_id),
                cause=e,
            )

        if response.status_code != 200:
            try:
                error = response.json().get("error", "unknown_error")
            except ValueError:
                error = f"HTTP {response.status_code}"
            raise ObjectStoreError(
                message=f"Token exchange failed: {error}",
                error_code="OAUTH_EXCHANGE_FAILED",
                context=create_error_context(operation="exchange_code", user_id=state.user_id),
                user_message="Google rejected the authorization. Please try connecting again.",
            )

        data = response.json()
        expires_at = None
        if "expires_in" in data:
            expires_at = _utcnow() + timedelta(seconds=data["expires_in"])

        tokens = OAuthTokens(
            access_token=data["access_token"],
            refresh_token=data.get("refresh_token", ""),
            token_type=data.get("token_type", "Bearer"),
            expires_at=expires_at,
            scope=data.get("scope", ""),
        )
        await self.credential_store.store_tokens(state.user_id, tokens)
        return tokens

    async def disconnect(self, user_id: int) -> bool:
        """Forget the stored Drive tokens of a user."""
        return await self.credential_store.delete_tokens(user_id)

    def _cleanup_expired_states(self) -> None:
        expired = [
            token for token, state in self._pending_states.items()
            if state.is_expired()
        ]
        for token in expired:
            del self._pending_states[token]
