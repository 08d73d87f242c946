import enum

from .errors import InvalidImageboardError

class Rating(str, enum.Enum):
    safe = "safe"
    questionable = "questionable"
    explicit = "explicit"
    unknown = "unknown"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def from_rating_str(cls, rating: str) -> "Rating":
        """Parse the single-letter or word ratings used by the different boards."""
        value = (rating or "").strip().lower()
        if value in ("s", "g", "safe", "sensitive", "general"):
            return cls.safe
        if value in ("q", "questionable"):
            return cls.questionable
        if value in ("e", "explicit"):
            return cls.explicit
        return cls.unknown

class Extension(str, enum.Enum):
    avif = "avif"
    jxl = "jxl"
    jpg = "jpg"
    png = "png"
    webp = "webp"
    gif = "gif"
    webm = "webm"
    mp4 = "mp4"
    ugoira = "zip"
    unknown = "bin"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def guess_format(cls, s: str) -> "Extension":
        """Map a file suffix (with or without the leading dot) to an Extension."""
        value = (s or "").strip().lower().lstrip(".")
        if value in ("jpg", "jpeg", "jfif"):
            return cls.jpg
        if value in ("png", "apng"):
            return cls.png
        if value == "zip":
            return cls.ugoira
        try:
            return cls(value)
        except ValueError:
            return cls.unknown

    @classmethod
    def from_url(cls, url: str) -> "Extension":
        path = (url or "").split("?", 1)[0]
        if "." not in path.rsplit("/", 1)[-1]:
            return cls.unknown
        return cls.guess_format(path.rsplit(".", 1)[-1])

    @property
    def is_video(self) -> bool:
        return self in (Extension.gif, Extension.webm, Extension.mp4, Extension.ugoira)

class TagType(str, enum.Enum):
    author = "author"
    copyright = "copyright"
    character = "character"
    species = "species"
    general = "general"
    lore = "lore"
    meta = "meta"
    any = "any"

    @property
    def is_prompt_tag(self) -> bool:
        return self not in (TagType.author, TagType.copyright, TagType.lore, TagType.meta)

class ImageBoards(str, enum.Enum):
    danbooru = "danbooru"
    e621 = "e621"
    gelbooru_020 = "gelbooru_020"
    moebooru = "moebooru"
    gelbooru = "gelbooru"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def from_str(cls, s: str) -> "ImageBoards":
        value = (s or "").strip().lower()
        if value == "realbooru":
            return cls.gelbooru_020
        try:
            return cls(value)
        except ValueError:
            raise InvalidImageboardError(f"Invalid imageboard type: {s}")

class NameType(str, enum.Enum):
    id = "id"
    md5 = "md5"

class ExtractorFeatures(enum.Flag):
    """Capabilities an imageboard adapter advertises."""
    NONE = 0
    AUTH = enum.auto()
    TAG_SEARCH = enum.auto()
    SINGLE_POST = enum.auto()
    POOL_DOWNLOAD = enum.auto()
