import os
from pathlib import Path
from typing import Dict, List, Optional

from dotenv import load_dotenv

from .models import Rating
from .services.booru.auth import ImageboardConfig
from .services.booru.blacklist import GlobalBlacklist
from .services.booru.servers import read_server_cfg_file
from .services.booru.types import ServerConfig

load_dotenv()

def _default_config_dir() -> Path:
    base = os.getenv("XDG_CONFIG_HOME") or Path.home() / ".config"
    return Path(base) / "imageboard-downloader"

class Settings:
    def __init__(self):
        self.CONFIG_DIR = Path(os.getenv("IBDL_CONFIG_DIR") or _default_config_dir())
        self.SERVERS_FILE = Path(os.getenv("IBDL_SERVERS_FILE") or self.CONFIG_DIR / "servers.toml")
        self.BLACKLIST_FILE = Path(os.getenv("IBDL_BLACKLIST_FILE") or self.CONFIG_DIR / "blacklist.toml")

        self.servers: Dict[str, ServerConfig] = self.load_servers()

    def load_servers(self) -> Dict[str, ServerConfig]:
        return read_server_cfg_file(self.SERVERS_FILE)

    def load_blacklist(self) -> GlobalBlacklist:
        return GlobalBlacklist.get(self.BLACKLIST_FILE)

    def credentials_for(self, server: ServerConfig) -> Optional[ImageboardConfig]:
        """Credentials from IBDL_<SERVER>_USERNAME / IBDL_<SERVER>_API_KEY, if both are set."""
        prefix = f"IBDL_{server.name.upper()}"
        username = os.getenv(f"{prefix}_USERNAME")
        api_key = os.getenv(f"{prefix}_API_KEY")
        if not (username and api_key):
            return None
        return ImageboardConfig(imageboard=server, username=username, api_key=api_key)

    @property
    def DEBUG(self) -> bool:
        return os.getenv("IBDL_DEBUG", "false").lower() == "true"

    @property
    def RATE_LIMIT(self) -> int:
        """Searches per minute and client allowed on the web API."""
        return int(os.getenv("IBDL_RATE_LIMIT", 30))

    @property
    def SAFE_MODE(self) -> bool:
        return os.getenv("IBDL_SAFE_MODE", "false").lower() == "true"

    @property
    def DISABLE_BLACKLIST(self) -> bool:
        return os.getenv("IBDL_DISABLE_BLACKLIST", "true").lower() == "true"

    def selected_ratings(self, ratings: Optional[List[Rating]] = None, ignore_unknown: bool = False) -> List[Rating]:
        """
        Ratings to keep when the caller didn't pick any: only safe posts in
        safe mode, everything otherwise. Unknown ratings are kept unless
        `ignore_unknown` is set.
        """
        if ratings:
            selected = list(ratings)
        elif self.SAFE_MODE:
            selected = [Rating.safe]
        else:
            selected = [Rating.safe, Rating.questionable, Rating.explicit]
        if not ignore_unknown and Rating.unknown not in selected:
            selected.append(Rating.unknown)
        return selected

settings = Settings()
