from typing import Dict, List

from ...errors import MissingFieldError
from ...models import Extension, ExtractorFeatures, ImageBoards, Rating, TagType
from .base import SiteApi, join_query
from .schemas import DanbooruPost
from .types import Post, Tag

DANBOORU_CATEGORY_MAP: Dict[str, TagType] = {
    "tag_string_artist": TagType.author,
    "tag_string_copyright": TagType.copyright,
    "tag_string_character": TagType.character,
    "tag_string_general": TagType.general,
    "tag_string_meta": TagType.meta,
}

class DanbooruApi(SiteApi):
    """
    Adapter for Danbooru-style APIs.

    Anonymous and basic accounts can only search two tags at once, so the
    query is cut down and the remaining tags are matched locally.
    """

    BOARD = ImageBoards.danbooru
    FEATURES = (
        ExtractorFeatures.AUTH
        | ExtractorFeatures.TAG_SEARCH
        | ExtractorFeatures.SINGLE_POST
        | ExtractorFeatures.POOL_DOWNLOAD
    )
    MAX_QUERY_TAGS = 2

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

    def deserialize_post_list(self, raw: str) -> List[DanbooruPost]:
        return self._validate(List[DanbooruPost], raw)

    def deserialize_single_post(self, raw: str) -> DanbooruPost:
        return self._validate(DanbooruPost, raw)

    def _parse_tags(self, item: DanbooruPost) -> List[Tag]:
        tags: List[Tag] = []
        for attr, tag_type in DANBOORU_CATEGORY_MAP.items():
            for name in getattr(item, attr).split():
                tags.append(Tag(name, tag_type))

        # Older mirrors only send the flat tag_string
        if not tags:
            tags = [Tag(name, TagType.general) for name in item.tag_string.split()]
        return tags

    @staticmethod
    def _parse_rating(rating: str) -> Rating:
        # "s" is "sensitive" here, which sits between general and questionable
        if rating == "s":
            return Rating.questionable
        return Rating.from_rating_str(rating)

    def map_post(self, item: DanbooruPost) -> Post:
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
            rating=self._parse_rating(item.rating or ""),
            tags=self._parse_tags(item),
            website=self.BOARD,
        )

    def full_search_post_limit_break_condition(self, count: int) -> bool:
        # Danbooru pages are exact, an empty page is the only reliable end
        return False
