import logging
import re
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urlencode, urlparse

from pydantic import TypeAdapter, ValidationError

from ...errors import DeserializationError, PostMapError, UnsupportedOperationError
from ...models import ExtractorFeatures, ImageBoards
from .schemas import PoolDetails
from .types import Post, ServerConfig

logger = logging.getLogger(__name__)

def join_query(url: str, params: Dict[str, Any]) -> str:
    """Append query parameters to a URL that may already carry some."""
    separator = "&" if "?" in url else "?"
    return f"{url}{separator}{urlencode(params)}"

class SiteApi(ABC):
    """
    Per-imageboard adapter.

    Knows how to build the request URLs of one family of imageboards and how
    to turn their JSON into Post objects. All pagination and filtering lives
    in PostExtractor, which drives any SiteApi the same way.
    """

    BOARD: ImageBoards
    FEATURES: ExtractorFeatures = ExtractorFeatures.TAG_SEARCH
    MAX_QUERY_TAGS: Optional[int] = None
    PAGE_LIMIT = 100
    API_CALL_DELAY: Optional[float] = 0.5  # seconds
    MULTI_GET_DELAY: Optional[float] = 0.5  # seconds
    USES_BASIC_AUTH = True
    POST_URL_PATTERN = re.compile(r"/posts/(\d+)")

    def __init__(self, server: ServerConfig):
        self.server = server

    @property
    def max_post_limit(self) -> int:
        return self.server.max_post_limit

    # URLs

    @abstractmethod
    def posts_url(self, base: str, page: int, limit: int, tag_query: str) -> str:
        ...

    def single_post_url(self, base: str, post_id: int) -> str:
        raise UnsupportedOperationError(f"{self.server.pretty_name} does not support fetching single posts")

    def pool_details_url(self, base: str, pool_id: int) -> str:
        raise UnsupportedOperationError(f"{self.server.pretty_name} does not support pool downloads")

    @abstractmethod
    def post_page_url(self, post_id: int) -> str:
        """Human-facing page of a post."""
        ...

    def parse_post_id(self, url: str) -> int:
        """Extract the post id from a post page URL."""
        match = self.POST_URL_PATTERN.search(urlparse(url).path)
        if not match:
            raise ValueError(f"Could not extract post ID from URL: {url}")
        return int(match.group(1))

    def auth_params(self, username: str, api_key: str) -> Dict[str, str]:
        """Query parameters carrying credentials, for boards that don't take basic auth."""
        return {}

    # Deserialization

    def _validate(self, schema: Any, raw: str):
        try:
            return TypeAdapter(schema).validate_json(raw)
        except ValidationError as e:
            raise DeserializationError(
                f"Failed to deserialize {self.server.pretty_name} response: {e}"
            ) from e

    @abstractmethod
    def deserialize_post_list(self, raw: str) -> List[Any]:
        ...

    def deserialize_single_post(self, raw: str) -> Any:
        raise UnsupportedOperationError(f"{self.server.pretty_name} does not support fetching single posts")

    def deserialize_pool_details_response(self, raw: str) -> PoolDetails:
        return self._validate(PoolDetails, raw)

    # Mapping

    @abstractmethod
    def map_post(self, item: Any) -> Post:
        """Map one raw record. Raises PostMapError when a required field is missing."""
        ...

    def map_post_list_response(self, items: List[Any]) -> List[Post]:
        posts = []
        for item in items:
            try:
                posts.append(self.map_post(item))
            except PostMapError as e:
                logger.debug(f"Dropping {self.server.name} post {getattr(item, 'id', None)}: {e}")
        return posts

    def map_single_post_response(self, item: Any) -> Post:
        return self.map_post(item)

    def map_pool_details_to_post_ids_with_order(self, details: PoolDetails) -> Dict[int, int]:
        order: Dict[int, int] = {}
        for position, post_id in enumerate(details.post_ids):
            order.setdefault(post_id, position)
        return order

    # Query behaviour

    def process_tags(self, tags: List[str]) -> Tuple[str, List[str]]:
        """
        Build the tag query sent to the API.

        Returns the query string and the full list of tags. Boards with a cap
        on tags per query only get the first MAX_QUERY_TAGS of them, the rest
        are checked client-side by the extractor.
        """
        cleaned = [tag.strip() for tag in tags if tag and tag.strip()]
        query_tags = cleaned
        if self.MAX_QUERY_TAGS is not None and len(cleaned) > self.MAX_QUERY_TAGS:
            logger.debug(
                f"{self.server.pretty_name} accepts {self.MAX_QUERY_TAGS} tags per query, "
                f"filtering {cleaned[self.MAX_QUERY_TAGS:]} locally"
            )
            query_tags = cleaned[:self.MAX_QUERY_TAGS]
        return " ".join(query_tags), cleaned

    def full_search_page_limit(self) -> int:
        return self.PAGE_LIMIT

    def full_search_post_limit_break_condition(self, count: int) -> bool:
        """Whether a page with `count` raw results was probably the last one."""
        return count < self.max_post_limit

    def full_search_api_call_delay(self) -> Optional[float]:
        return self.API_CALL_DELAY

    def multi_get_post_api_call_delay(self) -> Optional[float]:
        return self.MULTI_GET_DELAY
