import re
from typing import List

from ...errors import MissingFieldError
from ...models import Extension, ImageBoards, Rating, TagType
from .base import SiteApi, join_query
from .schemas import MoebooruPost
from .types import Post, Tag

class MoebooruApi(SiteApi):
    """Adapter for Moebooru (Konachan, Yande.re). Tag search only."""

    BOARD = ImageBoards.moebooru
    POST_URL_PATTERN = re.compile(r"/post/show/(\d+)")

    def posts_url(self, base: str, page: int, limit: int, tag_query: str) -> str:
        return join_query(base, {
            "page": page,
            "limit": min(limit, self.max_post_limit),
            "tags": tag_query,
        })

    def post_page_url(self, post_id: int) -> str:
        return f"{self.server.base_url.rstrip('/')}/post/show/{post_id}"

    def deserialize_post_list(self, raw: str) -> List[MoebooruPost]:
        return self._validate(List[MoebooruPost], raw)

    def map_post(self, item: MoebooruPost) -> Post:
        if item.id is None:
            raise MissingFieldError("id")
        if not item.file_url:
            raise MissingFieldError("file_url")
        if not item.md5:
            raise MissingFieldError("md5")

        extension = (
            Extension.guess_format(item.file_ext) if item.file_ext
            else Extension.from_url(item.file_url)
        )
        return Post(
            id=item.id,
            url=item.file_url,
            md5=item.md5,
            extension=extension,
            rating=Rating.from_rating_str(item.rating or ""),
            tags=[Tag(name, TagType.any) for name in item.tags.split()],
            website=self.BOARD,
        )
