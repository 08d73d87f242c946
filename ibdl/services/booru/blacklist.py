import bisect
import logging
import tomllib
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Set, Tuple, Union

from ...errors import BlacklistDecodeError
from ...models import Extension, Rating
from .types import Post, ServerConfig

logger = logging.getLogger(__name__)

ANIMATED_TAG = "animated"

DEFAULT_BLACKLIST_TOML = """\
[blacklist]

[blacklist.global]
tags = []

[blacklist.danbooru]
tags = []

[blacklist.e621]
tags = []

[blacklist.realbooru]
tags = []

[blacklist.rule34]
tags = []

[blacklist.gelbooru]
tags = []

[blacklist.konachan]
tags = []
"""

class GlobalBlacklist:
    """User blacklist read from TOML, split into global and per-server tag sets."""

    def __init__(self, global_tags: Optional[Iterable[str]] = None, server_tags: Optional[Dict[str, Set[str]]] = None):
        self.global_tags: Set[str] = set(global_tags or ())
        self.server_tags: Dict[str, Set[str]] = server_tags or {}

    @classmethod
    def from_config(cls, text: str) -> "GlobalBlacklist":
        try:
            data = tomllib.loads(text)
        except tomllib.TOMLDecodeError as e:
            raise BlacklistDecodeError(f"Failed to decode blacklist: {e}") from e

        sections = data.get("blacklist", {})
        if not isinstance(sections, dict):
            raise BlacklistDecodeError("The [blacklist] entry must be a table")

        if "global" not in sections:
            logger.warning("Blacklist has no [blacklist.global] section, only per-server tags will be used")

        global_tags: Set[str] = set()
        server_tags: Dict[str, Set[str]] = {}
        for name, section in sections.items():
            if not isinstance(section, dict) or not isinstance(section.get("tags", []), list):
                raise BlacklistDecodeError(f"Invalid blacklist section: {name}")
            tags = {str(tag).strip() for tag in section.get("tags", []) if str(tag).strip()}
            if name == "global":
                global_tags = tags
            else:
                server_tags[name] = tags
        return cls(global_tags, server_tags)

    @classmethod
    def get(cls, path: Union[str, Path]) -> "GlobalBlacklist":
        """Load the blacklist at `path`, creating it from the default template if missing."""
        path = Path(path)
        if not path.exists():
            logger.debug(f"Creating default blacklist at {path}")
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(DEFAULT_BLACKLIST_TOML, encoding="utf-8")
        return cls.from_config(path.read_text(encoding="utf-8"))

    def tags_for(self, server_name: str) -> Set[str]:
        return self.global_tags | self.server_tags.get(server_name, set())

class BlacklistFilter:
    """
    Removes posts by extension, rating, blacklisted tags and animation.

    Built once per extraction run and read-only afterwards, so filter() is
    safe to call repeatedly and from several threads.
    """

    def __init__(
        self,
        server: ServerConfig,
        global_blacklist: Optional[GlobalBlacklist] = None,
        excluded_tags: Iterable[str] = (),
        selected_ratings: Iterable[Rating] = (),
        disabled: bool = False,
        ignore_animated: bool = False,
        extension: Optional[Extension] = None,
    ):
        self.server = server
        self.disabled = disabled
        self.ignore_animated = ignore_animated
        self.extension = extension
        self.selected_ratings: List[Rating] = sorted(set(selected_ratings))

        tags: Set[str] = set()
        if not disabled:
            if global_blacklist is not None:
                tags |= global_blacklist.tags_for(server.name)
            tags |= {tag for tag in excluded_tags if tag}
        self.gbl_tags: frozenset = frozenset(tags)

    def _rating_allowed(self, rating: Rating) -> bool:
        idx = bisect.bisect_left(self.selected_ratings, rating)
        return idx < len(self.selected_ratings) and self.selected_ratings[idx] == rating

    def filter(self, posts: List[Post]) -> Tuple[int, List[Post]]:
        """Return (number of posts removed, surviving posts)."""
        removed = 0
        survivors = list(posts)

        if self.extension is not None:
            size = len(survivors)
            survivors = [post for post in survivors if post.extension == self.extension]
            removed += size - len(survivors)
            logger.debug(f"Removed {size - len(survivors)} posts not matching extension {self.extension}")

        if self.selected_ratings:
            size = len(survivors)
            survivors = [post for post in survivors if self._rating_allowed(post.rating)]
            removed += size - len(survivors)
            logger.debug(f"Removed {size - len(survivors)} posts with non-selected ratings")

        if not self.disabled and self.gbl_tags:
            size = len(survivors)
            survivors = [post for post in survivors if self.gbl_tags.isdisjoint(post.tag_texts)]
            removed += size - len(survivors)
            logger.debug(f"Removed {size - len(survivors)} blacklisted posts")

        # Independent of the tag blacklist being disabled
        if self.ignore_animated:
            size = len(survivors)
            survivors = [
                post for post in survivors
                if not post.extension.is_video and ANIMATED_TAG not in post.tag_texts
            ]
            removed += size - len(survivors)
            logger.debug(f"Removed {size - len(survivors)} animated posts")

        return removed, survivors
