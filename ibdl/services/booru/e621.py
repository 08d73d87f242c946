from typing import List

from ...errors import MissingFieldError
from ...models import Extension, ExtractorFeatures, ImageBoards, Rating, TagType
from .base import SiteApi, join_query
from .schemas import E621Post, E621PostList, E621SinglePost
from .types import Post, Tag

E621_TAG_FIELDS = (
    ("artist", TagType.author),
    ("copyright", TagType.copyright),
    ("character", TagType.character),
    ("species", TagType.species),
    ("general", TagType.general),
    ("lore", TagType.lore),
    ("meta", TagType.meta),
)

class E621Api(SiteApi):
    """Adapter for e621-style APIs."""

    BOARD = ImageBoards.e621
    FEATURES = (
        ExtractorFeatures.AUTH
        | ExtractorFeatures.TAG_SEARCH
        | ExtractorFeatures.SINGLE_POST
        | ExtractorFeatures.POOL_DOWNLOAD
    )

    def posts_url(self, base: str, page: int, limit: int, tag_query: str) -> str:
        return join_query(base, {
            "page": page,
            "limit": min(limit, self.max_post_limit),
            "tags": tag_query,
        })

    def single_post_url(self, base: str, post_id: int) -> str:
        return f"{base.rstrip('/')}/{post_id}.json"

    def pool_details_url(self, base: str, pool_id: int) -> str:
        return f"{base.rstrip('/')}/{pool_id}.json"

    def post_page_url(self, post_id: int) -> str:
        return f"{self.server.base_url.rstrip('/')}/posts/{post_id}"

    def deserialize_post_list(self, raw: str) -> List[E621Post]:
        return self._validate(E621PostList, raw).posts

    def deserialize_single_post(self, raw: str) -> E621Post:
        return self._validate(E621SinglePost, raw).post

    def map_post(self, item: E621Post) -> Post:
        if item.id is None:
            raise MissingFieldError("id")
        if not item.file.url:
            raise MissingFieldError("file.url")
        if not item.file.md5:
            raise MissingFieldError("file.md5")

        tags = [
            Tag(name, tag_type)
            for attr, tag_type in E621_TAG_FIELDS
            for name in getattr(item.tags, attr)
        ]
        extension = (
            Extension.guess_format(item.file.ext) if item.file.ext
            else Extension.from_url(item.file.url)
        )
        return Post(
            id=item.id,
            url=item.file.url,
            md5=item.file.md5,
            extension=extension,
            rating=Rating.from_rating_str(item.rating or ""),
            tags=tags,
            website=self.BOARD,
        )
