from .auth import AuthState, ImageboardConfig, UserData
from .base import SiteApi
from .blacklist import BlacklistFilter, GlobalBlacklist
from .danbooru import DanbooruApi
from .e621 import E621Api
from .extractor import PostExtractor
from .factory import get_api_for_imageboard, get_api_for_server, get_server_for_url
from .gelbooru import GelbooruApi
from .moebooru import MoebooruApi
from .servers import default_servers, read_server_cfg_file
from .types import Post, PostQueue, ServerConfig, Tag

__all__ = [
    "AuthState",
    "BlacklistFilter",
    "DanbooruApi",
    "E621Api",
    "GelbooruApi",
    "GlobalBlacklist",
    "ImageboardConfig",
    "MoebooruApi",
    "Post",
    "PostExtractor",
    "PostQueue",
    "ServerConfig",
    "SiteApi",
    "Tag",
    "UserData",
    "default_servers",
    "get_api_for_imageboard",
    "get_api_for_server",
    "get_server_for_url",
    "read_server_cfg_file",
]
