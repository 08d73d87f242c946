from dataclasses import dataclass, field
from typing import List, Optional

import requests

from ...errors import MissingFieldError
from ...models import Extension, ImageBoards, NameType, Rating, TagType

@dataclass(frozen=True)
class Tag:
    """A tag attached to a post. Two tags are equal when their text is."""
    text: str
    tag_type: TagType = field(default=TagType.any, compare=False)

    def __str__(self) -> str:
        return self.text

    @property
    def is_prompt_tag(self) -> bool:
        return self.tag_type.is_prompt_tag

@dataclass(frozen=True, eq=False)
class Post:
    """A post mapped from any imageboard. Identity and ordering use the id only."""
    id: int
    url: str
    md5: str
    extension: Extension
    rating: Rating
    tags: List[Tag] = field(default_factory=list)
    website: Optional[ImageBoards] = None

    def __post_init__(self):
        if not self.url:
            raise MissingFieldError("url")
        if not self.md5:
            raise MissingFieldError("md5")

    def __eq__(self, other):
        if not isinstance(other, Post):
            return NotImplemented
        return self.id == other.id

    def __lt__(self, other: "Post") -> bool:
        return self.id < other.id

    def __le__(self, other: "Post") -> bool:
        return self.id <= other.id

    def __gt__(self, other: "Post") -> bool:
        return self.id > other.id

    def __ge__(self, other: "Post") -> bool:
        return self.id >= other.id

    def __hash__(self) -> int:
        return hash(self.id)

    @property
    def tag_texts(self) -> set:
        return {tag.text for tag in self.tags}

    def name(self, name_type: NameType) -> str:
        if name_type == NameType.md5:
            return self.md5
        return str(self.id)

    def file_name(self, name_type: NameType) -> str:
        return f"{self.name(name_type)}.{self.extension}"

    def seq_file_name(self, num_digits: int) -> str:
        """Zero-padded file name for posts downloaded as part of a pool."""
        return f"{self.id:0{num_digits}}.{self.extension}"

@dataclass
class PostQueue:
    """A batch of posts ready for download, most recent first."""
    imageboard: ImageBoards
    client: requests.Session
    posts: List[Post]
    tags: List[str]

    def prepare(self, limit: Optional[int] = None):
        if limit is not None:
            del self.posts[limit:]

    def __len__(self) -> int:
        return len(self.posts)

@dataclass(frozen=True)
class ServerConfig:
    """Static description of one imageboard server and its endpoints."""
    name: str
    pretty_name: str
    server: ImageBoards
    client_user_agent: str
    extractor_user_agent: str
    base_url: str
    post_url: Optional[str] = None
    post_list_url: Optional[str] = None
    pool_idx_url: Optional[str] = None
    max_post_limit: int = 100
    auth_url: Optional[str] = None
    image_url: Optional[str] = None
