import enum
import logging
from dataclasses import dataclass, field
from typing import List

import requests
from pydantic import ValidationError

from ...errors import AuthenticationError, DeserializationError, ExtractorConnectionError
from ...models import ImageBoards
from .schemas import AuthUser
from .types import ServerConfig

logger = logging.getLogger(__name__)

class AuthState(enum.Enum):
    AUTHENTICATED = "authenticated"
    NOT_AUTHENTICATED = "not_authenticated"

    @property
    def is_auth(self) -> bool:
        return self is AuthState.AUTHENTICATED

@dataclass
class UserData:
    id: int = 0
    name: str = ""
    blacklisted_tags: List[str] = field(default_factory=list)

@dataclass
class ImageboardConfig:
    """Credentials for one imageboard plus what the board told us about the user."""
    imageboard: ServerConfig
    username: str
    api_key: str
    user_data: UserData = field(default_factory=UserData)

    @property
    def server_pretty_name(self) -> str:
        return self.imageboard.pretty_name

    def _auth_url(self) -> str:
        if self.imageboard.server == ImageBoards.e621:
            return f"{self.imageboard.auth_url}{self.username}.json"
        return self.imageboard.auth_url

    def authenticate(self, session: requests.Session):
        """
        Check the credentials against the board and fetch the user's blacklist.

        Raises AuthenticationError when the board has no auth endpoint or
        rejects the login.
        """
        if not self.imageboard.auth_url:
            raise AuthenticationError(f"{self.server_pretty_name} does not support authentication")

        logger.debug(f"Authenticating to {self.imageboard.base_url}")
        try:
            response = session.get(
                self._auth_url(),
                auth=(self.username, self.api_key),
                headers={"User-Agent": self.imageboard.client_user_agent},
                timeout=15,
            )
        except requests.RequestException as e:
            raise ExtractorConnectionError(f"Connection to auth url failed: {e}") from e

        if response.status_code in (401, 403):
            raise AuthenticationError("Invalid username or API key")
        if response.status_code >= 400:
            raise ExtractorConnectionError(
                f"Auth request to {self.server_pretty_name} failed with status {response.status_code}"
            )

        try:
            user = AuthUser.model_validate_json(response.text)
        except ValidationError as e:
            raise DeserializationError(f"Unexpected auth response from {self.server_pretty_name}: {e}") from e

        # Danbooru answers a bad login with {"success": false, ...}
        if user.success is not None:
            raise AuthenticationError("Invalid username or API key")

        if user.id is not None:
            self.user_data.id = user.id
            self.user_data.name = user.name or self.username
            self.user_data.blacklisted_tags = [
                line.strip()
                for line in (user.blacklisted_tags or "").splitlines()
                if line.strip() and "//" not in line
            ]
            logger.debug(f"User id: {self.user_data.id}")
            logger.debug(f"Blacklisted tags: {self.user_data.blacklisted_tags}")
