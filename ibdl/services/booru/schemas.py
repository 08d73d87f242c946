from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

class DanbooruPost(BaseModel):
    id: Optional[int] = None
    md5: Optional[str] = None
    file_url: Optional[str] = None
    file_ext: Optional[str] = None
    rating: Optional[str] = None
    tag_string: str = ""
    tag_string_general: str = ""
    tag_string_character: str = ""
    tag_string_copyright: str = ""
    tag_string_artist: str = ""
    tag_string_meta: str = ""

class PoolDetails(BaseModel):
    """Pool payload shared by Danbooru and e621."""
    id: Optional[int] = None
    name: Optional[str] = None
    post_ids: List[int] = Field(default_factory=list)

class E621File(BaseModel):
    ext: Optional[str] = None
    md5: Optional[str] = None
    url: Optional[str] = None

class E621Tags(BaseModel):
    general: List[str] = Field(default_factory=list)
    species: List[str] = Field(default_factory=list)
    character: List[str] = Field(default_factory=list)
    copyright: List[str] = Field(default_factory=list)
    artist: List[str] = Field(default_factory=list)
    lore: List[str] = Field(default_factory=list)
    meta: List[str] = Field(default_factory=list)
    invalid: List[str] = Field(default_factory=list)

class E621Post(BaseModel):
    id: Optional[int] = None
    file: E621File = Field(default_factory=E621File)
    tags: E621Tags = Field(default_factory=E621Tags)
    rating: Optional[str] = None

class E621PostList(BaseModel):
    posts: List[E621Post] = Field(default_factory=list)

class E621SinglePost(BaseModel):
    post: E621Post

class GelbooruPost(BaseModel):
    id: Optional[int] = None
    md5: Optional[str] = None
    hash: Optional[str] = None
    file_url: Optional[str] = None
    image: Optional[str] = None
    directory: Optional[str] = None
    tags: str = ""
    rating: Optional[str] = None

class GelbooruAttributes(BaseModel):
    limit: Optional[int] = None
    offset: Optional[int] = None
    count: Optional[int] = None

class GelbooruPostList(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    attributes: Optional[GelbooruAttributes] = Field(default=None, alias="@attributes")
    post: Union[List[GelbooruPost], GelbooruPost, None] = None

class MoebooruPost(BaseModel):
    id: Optional[int] = None
    md5: Optional[str] = None
    file_url: Optional[str] = None
    file_ext: Optional[str] = None
    tags: str = ""
    rating: Optional[str] = None

class AuthUser(BaseModel):
    """Profile payload returned by the auth endpoints of Danbooru and e621."""
    id: Optional[int] = None
    name: Optional[str] = None
    blacklisted_tags: Optional[str] = None
    success: Optional[bool] = None
    message: Optional[str] = None
