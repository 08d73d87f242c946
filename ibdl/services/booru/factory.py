from typing import Dict, Mapping, Optional, Type
from urllib.parse import urlparse

from ...errors import InvalidImageboardError
from ...models import ImageBoards
from .base import SiteApi
from .danbooru import DanbooruApi
from .e621 import E621Api
from .gelbooru import GelbooruApi
from .moebooru import MoebooruApi
from .types import ServerConfig

_API_CLASSES: Dict[ImageBoards, Type[SiteApi]] = {
    ImageBoards.danbooru: DanbooruApi,
    ImageBoards.e621: E621Api,
    ImageBoards.gelbooru: GelbooruApi,
    ImageBoards.gelbooru_020: GelbooruApi,
    ImageBoards.moebooru: MoebooruApi,
}

def get_api_for_imageboard(board: ImageBoards) -> Type[SiteApi]:
    try:
        return _API_CLASSES[board]
    except KeyError:
        raise InvalidImageboardError(f"No adapter for imageboard type: {board}")

def get_api_for_server(server: ServerConfig) -> SiteApi:
    """Build the adapter that talks to `server`."""
    return get_api_for_imageboard(server.server)(server)

def get_server_for_url(url: str, servers: Mapping[str, ServerConfig]) -> Optional[ServerConfig]:
    """
    Find the configured server a URL belongs to, matching on the host of
    its base or API URLs.
    """
    netloc = urlparse(url).netloc.lower()
    if not netloc:
        return None
    for server in servers.values():
        for candidate in (server.base_url, server.post_list_url, server.post_url):
            if candidate and urlparse(candidate).netloc.lower() == netloc:
                return server
    return None
