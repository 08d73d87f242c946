import logging
import tomllib
from dataclasses import fields, replace
from pathlib import Path
from typing import Dict, Union

from ... import __version__
from ...errors import InvalidImageboardError
from ...models import ImageBoards
from .types import ServerConfig

logger = logging.getLogger(__name__)

EXTRACTOR_UA = f"Python Imageboard Post Extractor/{__version__}"
CLIENT_UA = f"Python Imageboard Downloader/{__version__}"

def default_servers() -> Dict[str, ServerConfig]:
    """The servers known out of the box, keyed by their short name."""
    servers = [
        ServerConfig(
            name="danbooru",
            pretty_name="Danbooru",
            server=ImageBoards.danbooru,
            client_user_agent=CLIENT_UA,
            extractor_user_agent=EXTRACTOR_UA,
            base_url="https://danbooru.donmai.us",
            post_url="https://danbooru.donmai.us/posts/",
            post_list_url="https://danbooru.donmai.us/posts.json",
            pool_idx_url="https://danbooru.donmai.us/pools",
            max_post_limit=200,
            auth_url="https://danbooru.donmai.us/profile.json",
        ),
        ServerConfig(
            name="e621",
            pretty_name="e621",
            server=ImageBoards.e621,
            client_user_agent=CLIENT_UA,
            extractor_user_agent=EXTRACTOR_UA,
            base_url="https://e621.net",
            post_url="https://e621.net/posts/",
            post_list_url="https://e621.net/posts.json",
            pool_idx_url="https://e621.net/pools",
            max_post_limit=320,
            auth_url="https://e621.net/users/",
        ),
        ServerConfig(
            name="gelbooru",
            pretty_name="Gelbooru",
            server=ImageBoards.gelbooru,
            client_user_agent=CLIENT_UA,
            extractor_user_agent=EXTRACTOR_UA,
            base_url="https://gelbooru.com",
            post_url="https://gelbooru.com/index.php?page=dapi&s=post&q=index&json=1",
            post_list_url="https://gelbooru.com/index.php?page=dapi&s=post&q=index&json=1",
            max_post_limit=100,
        ),
        ServerConfig(
            name="rule34",
            pretty_name="Rule34",
            server=ImageBoards.gelbooru,
            client_user_agent=CLIENT_UA,
            extractor_user_agent=EXTRACTOR_UA,
            base_url="https://rule34.xxx",
            post_url="https://api.rule34.xxx/index.php?page=dapi&s=post&q=index&json=1",
            post_list_url="https://api.rule34.xxx/index.php?page=dapi&s=post&q=index&json=1",
            max_post_limit=1000,
        ),
        ServerConfig(
            name="realbooru",
            pretty_name="Realbooru",
            server=ImageBoards.gelbooru_020,
            client_user_agent=CLIENT_UA,
            extractor_user_agent=EXTRACTOR_UA,
            base_url="https://realbooru.com",
            post_url="https://realbooru.com/index.php?page=dapi&s=post&q=index&json=1",
            post_list_url="https://realbooru.com/index.php?page=dapi&s=post&q=index&json=1",
            max_post_limit=1000,
        ),
        ServerConfig(
            name="konachan",
            pretty_name="Konachan",
            server=ImageBoards.moebooru,
            client_user_agent=CLIENT_UA,
            extractor_user_agent=EXTRACTOR_UA,
            base_url="https://konachan.com",
            post_list_url="https://konachan.com/post.json",
            max_post_limit=100,
        ),
    ]
    return {server.name: server for server in servers}

def parse_server_cfg(text: str) -> Dict[str, ServerConfig]:
    """
    Parse user-defined servers from TOML.

    Each [servers.<name>] table either overrides fields of a default server
    with the same name or defines a new one, in which case `server`,
    `pretty_name` and `base_url` are required.
    """
    try:
        data = tomllib.loads(text)
    except tomllib.TOMLDecodeError as e:
        raise InvalidImageboardError(f"Invalid server config file: {e}") from e

    defaults = default_servers()
    known_fields = {f.name for f in fields(ServerConfig)}
    servers: Dict[str, ServerConfig] = {}

    for name, table in data.get("servers", {}).items():
        unknown = set(table) - known_fields
        if unknown:
            logger.warning(f"Ignoring unknown fields {sorted(unknown)} for server '{name}'")
        values = {key: value for key, value in table.items() if key in known_fields}
        values["name"] = name
        if "server" in values:
            values["server"] = ImageBoards.from_str(values["server"])

        if name in defaults:
            servers[name] = replace(defaults[name], **values)
            continue

        missing = [key for key in ("server", "pretty_name", "base_url") if key not in values]
        if missing:
            raise InvalidImageboardError(f"Server '{name}' is missing required fields: {', '.join(missing)}")
        values.setdefault("client_user_agent", CLIENT_UA)
        values.setdefault("extractor_user_agent", EXTRACTOR_UA)
        servers[name] = ServerConfig(**values)

    return servers

def read_server_cfg_file(path: Union[str, Path]) -> Dict[str, ServerConfig]:
    """Defaults merged with the servers defined in `path`, if it exists."""
    servers = default_servers()
    path = Path(path)
    if path.exists():
        servers.update(parse_server_cfg(path.read_text(encoding="utf-8")))
        logger.debug(f"Loaded server config from {path}")
    return servers
