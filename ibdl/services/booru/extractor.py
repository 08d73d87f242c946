import logging
import queue
import time
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Set

import requests

from ...errors import (
    AuthenticationError,
    ChannelSendError,
    ExtractorConnectionError,
    ExtractorError,
    UnsupportedOperationError,
    ZeroPageError,
    ZeroPostsError,
)
from ...models import Extension, ExtractorFeatures, ImageBoards, Rating
from ...utils.channel import ChannelClosed, PostChannel
from .auth import AuthState, ImageboardConfig
from .base import SiteApi, join_query
from .blacklist import BlacklistFilter, GlobalBlacklist
from .types import Post, PostQueue, ServerConfig

logger = logging.getLogger(__name__)

# Query syntax that can't be checked against a post's tag list
METATAG_PREFIXES = (
    "rating:", "order:", "sort:", "score:", "id:", "user:", "pool:", "fav:",
    "date:", "status:", "limit:", "md5:", "width:", "height:", "filetype:",
    "source:", "parent:", "type:",
)

@dataclass(frozen=True)
class PoolDownload:
    pool_id: int
    last_first: bool = False

def split_filter_tags(tags: Iterable[str]):
    """Split query tags into the ones a post must carry and the ones it must not."""
    required: Set[str] = set()
    forbidden: Set[str] = set()
    for tag in tags:
        lowered = tag.lower()
        if any(c in tag for c in "*~") or lowered.startswith(METATAG_PREFIXES):
            continue
        if lowered.startswith("-"):
            if len(lowered) > 1 and not lowered[1:].startswith(METATAG_PREFIXES):
                forbidden.add(lowered[1:])
            continue
        required.add(lowered)
    return required, forbidden

def _matches_query(post: Post, required: Set[str], forbidden: Set[str]) -> bool:
    # Boards match tags case-insensitively
    tags = {tag.lower() for tag in post.tag_texts}
    return required <= tags and forbidden.isdisjoint(tags)

class PostExtractor:
    """
    Drives any SiteApi: pagination, filtering, limits and streaming.

    One instance handles one extraction. Apart from auth() and
    setup_pool_download(), configure it before fetching anything.
    """

    MAX_RETRIES = 2
    RETRY_DELAY = 1.0  # seconds
    REQUEST_TIMEOUT = 15  # seconds

    def __init__(
        self,
        api: SiteApi,
        tags: Iterable[str] = (),
        download_ratings: Iterable[Rating] = (),
        disable_blacklist: bool = False,
        map_videos: bool = True,
        global_blacklist: Optional[GlobalBlacklist] = None,
        session: Optional[requests.Session] = None,
    ):
        self.api = api
        self.server: ServerConfig = api.server
        self.tag_string, self.tags = api.process_tags(list(tags))
        self.download_ratings: List[Rating] = list(download_ratings)
        self.disable_blacklist = disable_blacklist
        self.map_videos = map_videos
        self.global_blacklist = global_blacklist
        self.excluded_tags: List[str] = []
        self.selected_extension: Optional[Extension] = None

        self.auth_state = AuthState.NOT_AUTHENTICATED
        self.auth_config: Optional[ImageboardConfig] = None
        self.pool_download: Optional[PoolDownload] = None
        self.pool_order: Dict[int, int] = {}
        self._total_removed = 0

        self.session = session or requests.Session()
        self.session.headers.update({
            "User-Agent": self.server.extractor_user_agent,
            "Accept": "application/json",
        })
        logger.debug(f"Tag list: {self.tags}, query: '{self.tag_string}'")

    # Configuration

    @property
    def config(self) -> ServerConfig:
        return self.server

    @property
    def imageboard(self) -> ImageBoards:
        return self.server.server

    @property
    def total_removed(self) -> int:
        return self._total_removed

    def features(self) -> ExtractorFeatures:
        return self.api.FEATURES

    def client(self) -> requests.Session:
        return self.session

    def exclude_tags(self, tags: Iterable[str]) -> "PostExtractor":
        self.excluded_tags.extend(tag for tag in tags if tag)
        return self

    def force_extension(self, extension: Extension) -> "PostExtractor":
        self.selected_extension = extension
        return self

    def setup_pool_download(self, pool_id: int, last_first: bool = False):
        if not self.server.pool_idx_url:
            raise UnsupportedOperationError(f"{self.server.pretty_name} does not support pool downloads")
        self.pool_download = PoolDownload(pool_id, last_first)

    def auth(self, config: ImageboardConfig):
        """
        Use `config` for every following request. Boards with an auth
        endpoint get the credentials checked first, a rejected login raises.
        """
        if ExtractorFeatures.AUTH not in self.features():
            raise AuthenticationError(f"{self.server.pretty_name} does not support authentication")
        if self.server.auth_url:
            config.authenticate(self.session)
        self.auth_config = config
        self.auth_state = AuthState.AUTHENTICATED
        logger.debug(f"Authenticated to {self.server.pretty_name} as {config.username}")

    def _blacklist(self) -> BlacklistFilter:
        excluded = set(self.excluded_tags)
        if self.auth_state.is_auth and self.auth_config is not None:
            excluded |= set(self.auth_config.user_data.blacklisted_tags)
        return BlacklistFilter(
            self.server,
            global_blacklist=self.global_blacklist,
            excluded_tags=excluded,
            selected_ratings=self.download_ratings,
            disabled=self.disable_blacklist,
            ignore_animated=not self.map_videos,
            extension=self.selected_extension,
        )

    # HTTP

    def _request(self, url: str) -> str:
        """GET `url` and return the body, backing off when rate-limited."""
        kwargs = {"timeout": self.REQUEST_TIMEOUT}
        if self.auth_state.is_auth and self.auth_config is not None:
            if self.api.USES_BASIC_AUTH:
                kwargs["auth"] = (self.auth_config.username, self.auth_config.api_key)
            else:
                url = join_query(url, self.api.auth_params(self.auth_config.username, self.auth_config.api_key))

        for attempt in range(self.MAX_RETRIES + 1):
            try:
                response = self.session.get(url, **kwargs)
            except requests.RequestException as e:
                raise ExtractorConnectionError(f"Failed to connect to {self.server.pretty_name}: {e}") from e

            if response.status_code == 429 and attempt < self.MAX_RETRIES:
                logger.debug(f"Rate limited by {self.server.pretty_name}, retrying")
                time.sleep(self.RETRY_DELAY * (attempt + 1))
                continue

            if response.status_code in (401, 403):
                raise AuthenticationError(
                    f"{self.server.pretty_name} rejected the request with status {response.status_code}"
                )
            if response.status_code == 404:
                raise ZeroPostsError(f"{self.server.pretty_name} returned 404 Not Found")
            if response.status_code >= 400:
                raise ExtractorConnectionError(
                    f"{self.server.pretty_name} returned status {response.status_code}"
                )
            return response.text

        raise ExtractorConnectionError(f"Rate limited by {self.server.pretty_name}")

    @staticmethod
    def _delay(seconds: Optional[float]):
        if seconds:
            logger.debug(f"Waiting {seconds}s before next request")
            time.sleep(seconds)

    @staticmethod
    def _send(channel: PostChannel, post: Post, post_counter: Optional[queue.Queue] = None):
        try:
            channel.send(post)
        except ChannelClosed as e:
            raise ChannelSendError() from e
        if post_counter is not None:
            post_counter.put(1)

    # Listing

    def map_posts(self, raw_json: str) -> List[Post]:
        """Map a raw post list response obtained by any means."""
        items = self.api.deserialize_post_list(raw_json)
        posts = self.api.map_post_list_response(items)
        logger.debug(f"Mapped {len(posts)} of {len(items)} posts")
        return posts

    def get_post_list(self, page: int, limit: Optional[int] = None) -> List[Post]:
        if page == 0:
            raise ZeroPageError()
        if not self.server.post_list_url:
            raise UnsupportedOperationError(f"{self.server.pretty_name} does not support tag search")

        url = self.api.posts_url(
            self.server.post_list_url,
            page,
            limit or self.api.max_post_limit,
            self.tag_string,
        )
        return self.map_posts(self._request(url))

    def search(self, page: int) -> PostQueue:
        posts = self.get_post_list(page)
        if not posts:
            raise ZeroPostsError()
        posts.sort(reverse=True)
        return PostQueue(imageboard=self.imageboard, client=self.session, posts=posts, tags=list(self.tags))

    def full_search(self, start_page: Optional[int] = None, limit: Optional[int] = None) -> PostQueue:
        """Collect every matching post, up to `limit`, newest first."""
        if start_page == 0:
            raise ZeroPageError()

        blacklist = self._blacklist()
        page = start_page or 1
        page_limit = self.api.full_search_page_limit()
        collected: List[Post] = []
        pages_scanned = 0

        while True:
            logger.debug(f"Scanning page {page}")
            posts = self.get_post_list(page)
            size = len(posts)
            if size == 0:
                break

            removed, posts = blacklist.filter(posts)
            self._total_removed += removed
            collected.extend(posts)
            pages_scanned += 1

            if limit is not None and len(collected) >= limit:
                break
            if pages_scanned >= page_limit:
                logger.debug(f"Reached the {page_limit} page limit")
                break
            if self.api.full_search_post_limit_break_condition(size):
                break

            self._delay(self.api.full_search_api_call_delay())
            page += 1

        if limit is not None:
            del collected[limit:]
        if not collected:
            raise ZeroPostsError()

        collected.sort(reverse=True)
        logger.debug(f"Found {len(collected)} posts, removed {self._total_removed}")
        return PostQueue(imageboard=self.imageboard, client=self.session, posts=collected, tags=list(self.tags))

    # Streaming

    def async_fetch(
        self,
        channel: PostChannel,
        start_page: Optional[int] = None,
        limit: Optional[int] = None,
        post_counter: Optional[queue.Queue] = None,
    ) -> int:
        """
        Push matching posts onto `channel` one at a time.

        Streams a pool when setup_pool_download() was called, a tag search
        otherwise. Returns the number of posts removed by the blacklist.
        """
        if self.pool_download is not None:
            return self._fetch_pool(channel, self.pool_download, limit, post_counter)
        return self._fetch_tags(channel, start_page, limit, post_counter)

    def _fetch_tags(
        self,
        channel: PostChannel,
        start_page: Optional[int],
        limit: Optional[int],
        post_counter: Optional[queue.Queue],
    ) -> int:
        if start_page == 0:
            raise ZeroPageError()

        blacklist = self._blacklist()
        required, forbidden = split_filter_tags(self.tags)
        page = start_page or 1
        page_limit = self.api.full_search_page_limit()
        pages_scanned = 0
        sent = 0

        while True:
            logger.debug(f"Scanning page {page}")
            posts = self.get_post_list(page)
            size = len(posts)
            if size == 0:
                break

            # The API may have seen only part of the query
            posts = [
                post for post in posts
                if _matches_query(post, required, forbidden)
            ]
            removed, posts = blacklist.filter(posts)
            self._total_removed += removed

            for post in posts:
                if limit is not None and sent >= limit:
                    break
                self._send(channel, post, post_counter)
                sent += 1

            pages_scanned += 1
            if limit is not None and sent >= limit:
                logger.debug(f"Target post count of {limit} reached")
                break
            if pages_scanned >= page_limit:
                logger.debug(f"Reached the {page_limit} page limit")
                break
            if self.api.full_search_post_limit_break_condition(size):
                break

            self._delay(self.api.full_search_api_call_delay())
            page += 1

        if sent == 0:
            raise ZeroPostsError()
        return self._total_removed

    def _fetch_pool(
        self,
        channel: PostChannel,
        pool: PoolDownload,
        limit: Optional[int],
        post_counter: Optional[queue.Queue],
    ) -> int:
        blacklist = self._blacklist()
        self.pool_order = self.fetch_pool_idxs(pool.pool_id, None)
        post_ids = sorted(self.pool_order, key=self.pool_order.__getitem__, reverse=pool.last_first)
        if limit is not None:
            post_ids = post_ids[:limit]
        if not post_ids:
            raise ZeroPostsError(f"Pool {pool.pool_id} has no posts")

        delay = self.api.multi_get_post_api_call_delay()
        for index, post_id in enumerate(post_ids):
            if index:
                self._delay(delay)
            try:
                post = self.get_post(post_id)
            except ExtractorError as e:
                logger.warning(f"Skipping post {post_id} of pool {pool.pool_id}: {e}")
                continue

            removed, survivors = blacklist.filter([post])
            self._total_removed += removed
            for survivor in survivors:
                self._send(channel, survivor, post_counter)

        return self._total_removed

    def setup_fetch_thread(
        self,
        channel: PostChannel,
        start_page: Optional[int] = None,
        limit: Optional[int] = None,
        post_counter: Optional[queue.Queue] = None,
    ) -> Future:
        """Run async_fetch() in a worker thread. The channel is closed when it ends."""
        def run() -> int:
            try:
                return self.async_fetch(channel, start_page, limit, post_counter)
            finally:
                channel.close_sender()

        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix=f"{self.server.name}-fetch")
        future = executor.submit(run)
        executor.shutdown(wait=False)
        return future

    # Direct access

    def get_post(self, post_id: int) -> Post:
        if not self.server.post_url:
            raise UnsupportedOperationError(f"{self.server.pretty_name} does not support fetching single posts")
        url = self.api.single_post_url(self.server.post_url, post_id)
        item = self.api.deserialize_single_post(self._request(url))
        return self.api.map_single_post_response(item)

    def get_posts(self, post_ids: Iterable[int]) -> List[Post]:
        """Fetch posts one by one. The first failure aborts the whole call."""
        delay = self.api.multi_get_post_api_call_delay()
        posts = []
        for index, post_id in enumerate(post_ids):
            if index:
                self._delay(delay)
            posts.append(self.get_post(post_id))
        return posts

    def setup_async_post_fetch(
        self,
        channel: PostChannel,
        post_ids: Iterable[int],
        length_channel: Optional[queue.Queue] = None,
    ) -> Future:
        """Stream explicitly requested posts through `channel` from a worker thread."""
        post_ids = list(post_ids)

        def run() -> int:
            try:
                delay = self.api.multi_get_post_api_call_delay()
                for index, post_id in enumerate(post_ids):
                    if index:
                        self._delay(delay)
                    self._send(channel, self.get_post(post_id), length_channel)
                return len(post_ids)
            finally:
                channel.close_sender()

        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix=f"{self.server.name}-posts")
        future = executor.submit(run)
        executor.shutdown(wait=False)
        return future

    def fetch_pool_idxs(self, pool_id: int, limit: Optional[int] = None) -> Dict[int, int]:
        """
        Map each post id of a pool to its 0-based position in the pool.

        With a limit only the first `limit` posts in pool order are kept, or
        the last ones when the pool download was set up latest-first.
        """
        if not self.server.pool_idx_url:
            raise UnsupportedOperationError(f"{self.server.pretty_name} does not support pool downloads")

        url = self.api.pool_details_url(self.server.pool_idx_url, pool_id)
        details = self.api.deserialize_pool_details_response(self._request(url))
        order = self.api.map_pool_details_to_post_ids_with_order(details)

        if limit is not None:
            last_first = self.pool_download is not None and self.pool_download.last_first
            kept = sorted(order, key=order.__getitem__, reverse=last_first)[:limit]
            order = {post_id: order[post_id] for post_id in kept}

        logger.debug(f"Pool {pool_id} has {len(order)} posts")
        return order
