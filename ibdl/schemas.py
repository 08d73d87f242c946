from pydantic import BaseModel
from typing import Optional, List

from .models import Extension, ImageBoards, Rating

class ServerInfo(BaseModel):
    name: str
    pretty_name: str
    server: ImageBoards
    base_url: str
    supports_pools: bool
    supports_single_post: bool
    supports_auth: bool

class WebPost(BaseModel):
    id: int
    direct_url: str
    post_url: str
    tags: List[str]
    site: str
    rating: Rating
    md5: str
    extension: Extension

class SearchResponse(BaseModel):
    posts: List[WebPost]
    removed: int
    pool_order: Optional[dict[int, int]] = None
