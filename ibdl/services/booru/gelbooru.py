from typing import Dict, List, Union
from urllib.parse import parse_qs, urlparse

from ...errors import MissingFieldError, ZeroPostsError
from ...models import Extension, ExtractorFeatures, ImageBoards, Rating, TagType
from .base import SiteApi, join_query
from .schemas import GelbooruPost, GelbooruPostList
from .types import Post, Tag

class GelbooruApi(SiteApi):
    """
    Adapter for Gelbooru v0.2 style APIs (index.php?page=dapi...).
    Used by Gelbooru itself and forks like Rule34 and Realbooru, which answer
    with a bare list instead of the {"@attributes", "post"} envelope.
    """

    BOARD = ImageBoards.gelbooru
    FEATURES = ExtractorFeatures.AUTH | ExtractorFeatures.TAG_SEARCH | ExtractorFeatures.SINGLE_POST
    USES_BASIC_AUTH = False

    def posts_url(self, base: str, page: int, limit: int, tag_query: str) -> str:
        # dapi pages are zero-indexed
        return join_query(base, {
            "limit": min(limit, self.max_post_limit),
            "pid": page - 1,
            "tags": tag_query,
        })

    def single_post_url(self, base: str, post_id: int) -> str:
        return join_query(base, {"id": post_id})

    def post_page_url(self, post_id: int) -> str:
        return f"{self.server.base_url.rstrip('/')}/index.php?page=post&s=view&id={post_id}"

    def parse_post_id(self, url: str) -> int:
        qs = parse_qs(urlparse(url).query)
        if "id" not in qs:
            raise ValueError(f"Could not extract post ID from URL: {url}")
        return int(qs["id"][0])

    def auth_params(self, username: str, api_key: str) -> Dict[str, str]:
        return {"api_key": api_key, "user_id": username}

    def deserialize_post_list(self, raw: str) -> List[GelbooruPost]:
        # Some forks answer an empty search with an empty body
        if not raw.strip():
            return []

        data = self._validate(Union[List[GelbooruPost], GelbooruPostList], raw)
        if isinstance(data, list):
            return data
        if data.post is None:
            return []
        if isinstance(data.post, GelbooruPost):
            return [data.post]
        return data.post

    def deserialize_single_post(self, raw: str) -> GelbooruPost:
        posts = self.deserialize_post_list(raw)
        if not posts:
            raise ZeroPostsError("Post not found")
        return posts[0]

    def _resolve_url(self, url: str) -> str:
        """Handle relative URLs."""
        if url.startswith("http"):
            return url
        base = self.server.base_url.rstrip("/")
        if url.startswith("//"):
            return f"https:{url}"
        if url.startswith("/"):
            return f"{base}{url}"
        return f"{base}/{url}"

    def _file_url(self, item: GelbooruPost, md5: str) -> str:
        if item.file_url:
            return self._resolve_url(item.file_url)
        if not (item.image and item.directory):
            raise MissingFieldError("file_url")

        # Built the way the image servers lay files out: images/<dir>/<md5>.<ext>
        image_host = (self.server.image_url or self.server.base_url).rstrip("/")
        ext = item.image.rsplit(".", 1)[-1] if "." in item.image else ""
        name = f"{md5}.{ext}" if ext else item.image
        return f"{image_host}/images/{item.directory}/{name}"

    def map_post(self, item: GelbooruPost) -> Post:
        if item.id is None:
            raise MissingFieldError("id")
        md5 = item.md5 or item.hash
        if not md5:
            raise MissingFieldError("md5")

        url = self._file_url(item, md5)
        return Post(
            id=item.id,
            url=url,
            md5=md5,
            extension=Extension.from_url(url),
            rating=Rating.from_rating_str(item.rating or ""),
            tags=[Tag(name, TagType.any) for name in item.tags.split()],
            website=self.server.server,
        )
