class ExtractorError(Exception):
    """Base class for every failure raised while extracting posts."""

class ZeroPageError(ExtractorError):
    def __init__(self, message: str = "Page number 0 is not valid, pages start at 1"):
        super().__init__(message)

class ZeroPostsError(ExtractorError):
    def __init__(self, message: str = "No posts found for the given tags"):
        super().__init__(message)

class ExtractorConnectionError(ExtractorError):
    """Network-layer failure while talking to the imageboard."""

class InvalidServerResponseError(ExtractorError):
    """The imageboard answered with something we could not understand."""

class DeserializationError(InvalidServerResponseError):
    pass

class AuthenticationError(ExtractorError):
    pass

class PostMapError(ExtractorError):
    pass

class MissingFieldError(PostMapError):
    def __init__(self, field: str):
        self.field = field
        super().__init__(f"Post is missing required field: {field}")

class InvalidImageboardError(ExtractorError):
    pass

class UnsupportedOperationError(ExtractorError):
    pass

class ChannelSendError(ExtractorError):
    def __init__(self, message: str = "Failed to send post through channel: receiver closed"):
        super().__init__(message)

class BlacklistDecodeError(ExtractorError):
    pass
