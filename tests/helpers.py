import json
import re
from typing import Callable, Dict, List, Optional
from urllib.parse import parse_qs, urlparse

from ibdl.models import Extension, ImageBoards, Rating, TagType
from ibdl.services.booru.servers import default_servers
from ibdl.services.booru.types import Post, Tag

SERVERS = default_servers()

class FakeResponse:
    def __init__(self, text: str = "", status_code: int = 200):
        self.text = text
        self.status_code = status_code

class FakeSession:
    """Stands in for requests.Session; `handler(url)` decides every response."""

    def __init__(self, handler: Callable[[str], FakeResponse]):
        self.handler = handler
        self.headers: Dict[str, str] = {}
        self.calls: List[tuple] = []

    def get(self, url: str, **kwargs) -> FakeResponse:
        self.calls.append((url, kwargs))
        return self.handler(url)

def query(url: str) -> Dict[str, str]:
    return {key: values[0] for key, values in parse_qs(urlparse(url).query).items()}

def danbooru_post(
    post_id: int,
    tags: str = "",
    rating: str = "g",
    ext: str = "jpg",
    md5: Optional[str] = None,
    file_url: Optional[str] = "",
) -> dict:
    md5 = md5 if md5 is not None else f"{post_id:032x}"
    if file_url == "":
        file_url = f"https://cdn.donmai.us/original/{md5}.{ext}"
    return {
        "id": post_id,
        "md5": md5,
        "file_url": file_url,
        "file_ext": ext,
        "rating": rating,
        "tag_string": tags,
        "tag_string_general": tags,
        "tag_string_character": "",
        "tag_string_copyright": "",
        "tag_string_artist": "",
        "tag_string_meta": "",
    }

def paged_danbooru(posts: List[dict]) -> Callable[[str], FakeResponse]:
    """Serve `posts` page by page like /posts.json, honouring `page` and `limit`."""
    def handler(url: str) -> FakeResponse:
        params = query(url)
        page = int(params.get("page", 1))
        page_size = int(params["limit"])
        start = (page - 1) * page_size
        return FakeResponse(json.dumps(posts[start:start + page_size]))
    return handler

def make_post(
    post_id: int,
    tags: tuple = (),
    rating: Rating = Rating.safe,
    extension: Extension = Extension.jpg,
) -> Post:
    return Post(
        id=post_id,
        url=f"https://example.com/{post_id}.{extension}",
        md5=f"{post_id:032x}",
        extension=extension,
        rating=rating,
        tags=[Tag(t, TagType.general) for t in tags],
        website=ImageBoards.danbooru,
    )

def danbooru_router(listing=None, posts_by_id=None, pools=None, profile=None, failing=()):
    """Route fake Danbooru requests by path."""
    posts_by_id = posts_by_id or {}
    pools = pools or {}

    def handler(url: str) -> FakeResponse:
        path = urlparse(url).path
        if path.endswith("/posts.json"):
            return listing(url)
        match = re.search(r"/posts/(\d+)\.json$", path)
        if match:
            post_id = int(match.group(1))
            if post_id in failing:
                return FakeResponse("oops", status_code=500)
            if post_id not in posts_by_id:
                return FakeResponse("{}", status_code=404)
            return FakeResponse(json.dumps(posts_by_id[post_id]))
        match = re.search(r"/pools/(\d+)\.json$", path)
        if match:
            pool_id = int(match.group(1))
            return FakeResponse(json.dumps({"id": pool_id, "post_ids": pools[pool_id]}))
        if path.endswith("/profile.json"):
            return FakeResponse(json.dumps(profile))
        return FakeResponse("not found", status_code=404)
    return handler
