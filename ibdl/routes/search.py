import logging
from typing import Dict, Iterator, List, Optional, Type

import requests
from fastapi import APIRouter, Depends, HTTPException, Query, Request

from ..config import settings
from ..errors import (
    AuthenticationError,
    ExtractorError,
    InvalidImageboardError,
    UnsupportedOperationError,
    ZeroPageError,
    ZeroPostsError,
)
from ..models import ExtractorFeatures, Rating
from ..schemas import SearchResponse, ServerInfo, WebPost
from ..services.booru import (
    GlobalBlacklist,
    Post,
    PostExtractor,
    ServerConfig,
    SiteApi,
    get_api_for_server,
    get_server_for_url,
)
from ..utils.channel import PostChannel
from ..utils.rate_limiter import SimpleRateLimiter

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/search", tags=["search"])

search_limiter = SimpleRateLimiter(requests_per_minute=settings.RATE_LIMIT)

_ERROR_STATUS: Dict[Type[ExtractorError], int] = {
    ZeroPostsError: 404,
    ZeroPageError: 400,
    InvalidImageboardError: 400,
    UnsupportedOperationError: 400,
    AuthenticationError: 401,
}

def get_servers() -> Dict[str, ServerConfig]:
    return settings.servers

def get_session() -> Iterator[requests.Session]:
    session = requests.Session()
    try:
        yield session
    finally:
        session.close()

def get_global_blacklist() -> Optional[GlobalBlacklist]:
    if settings.DISABLE_BLACKLIST:
        return None
    return settings.load_blacklist()

def _http_error(e: ExtractorError) -> HTTPException:
    status = 502
    for error_cls, code in _ERROR_STATUS.items():
        if isinstance(e, error_cls):
            status = code
            break
    return HTTPException(status_code=status, detail=str(e))

def _get_server(name: str, servers: Dict[str, ServerConfig]) -> ServerConfig:
    server = servers.get(name.lower())
    if server is None:
        raise HTTPException(status_code=404, detail=f"Unknown server: {name}")
    return server

def _to_web_post(api: SiteApi, post: Post) -> WebPost:
    return WebPost(
        id=post.id,
        direct_url=post.url,
        post_url=api.post_page_url(post.id),
        tags=[tag.text for tag in post.tags],
        site=api.server.name,
        rating=post.rating,
        md5=post.md5,
        extension=post.extension,
    )

def _build_extractor(
    server: ServerConfig,
    session: requests.Session,
    tags: List[str],
    ratings: List[Rating],
    map_videos: bool,
    global_blacklist: Optional[GlobalBlacklist],
) -> PostExtractor:
    extractor = PostExtractor(
        get_api_for_server(server),
        tags=tags,
        download_ratings=settings.selected_ratings(ratings),
        disable_blacklist=global_blacklist is None,
        map_videos=map_videos,
        global_blacklist=global_blacklist,
        session=session,
    )
    credentials = settings.credentials_for(server)
    if credentials is not None:
        extractor.auth(credentials)
    return extractor

@router.get("/servers", response_model=List[ServerInfo])
def list_servers(servers: Dict[str, ServerConfig] = Depends(get_servers)):
    """List the configured imageboards."""
    results = []
    for server in servers.values():
        features = get_api_for_server(server).FEATURES
        results.append(ServerInfo(
            name=server.name,
            pretty_name=server.pretty_name,
            server=server.server,
            base_url=server.base_url,
            supports_pools=bool(server.pool_idx_url) and ExtractorFeatures.POOL_DOWNLOAD in features,
            supports_single_post=bool(server.post_url) and ExtractorFeatures.SINGLE_POST in features,
            supports_auth=ExtractorFeatures.AUTH in features,
        ))
    return results

@router.get("/fetch", response_model=WebPost)
def fetch_post_by_url(
    url: str,
    servers: Dict[str, ServerConfig] = Depends(get_servers),
    session: requests.Session = Depends(get_session),
):
    """Fetch a single post from its page URL on any configured imageboard."""
    server = get_server_for_url(url, servers)
    if server is None:
        raise HTTPException(status_code=400, detail=f"No configured imageboard for {url}")

    api = get_api_for_server(server)
    try:
        post_id = api.parse_post_id(url)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    try:
        extractor = _build_extractor(server, session, [], [], True, None)
        post = extractor.get_post(post_id)
    except ExtractorError as e:
        raise _http_error(e) from e
    return _to_web_post(api, post)

@router.get("/{server_name}/posts/{post_id}", response_model=WebPost)
def get_post(
    server_name: str,
    post_id: int,
    servers: Dict[str, ServerConfig] = Depends(get_servers),
    session: requests.Session = Depends(get_session),
):
    server = _get_server(server_name, servers)
    try:
        extractor = _build_extractor(server, session, [], [], True, None)
        post = extractor.get_post(post_id)
    except ExtractorError as e:
        raise _http_error(e) from e
    return _to_web_post(extractor.api, post)

@router.get("/{server_name}", response_model=SearchResponse)
def search_posts(
    server_name: str,
    request: Request,
    tags: str = "",
    limit: int = Query(20, ge=1, le=1000),
    page: Optional[int] = None,
    pool: Optional[int] = None,
    reverse: bool = False,
    ratings: List[Rating] = Query(default=[]),
    map_videos: bool = True,
    servers: Dict[str, ServerConfig] = Depends(get_servers),
    session: requests.Session = Depends(get_session),
    global_blacklist: Optional[GlobalBlacklist] = Depends(get_global_blacklist),
):
    """
    Search an imageboard by tags, or stream a pool when `pool` is given.

    Posts are streamed from a worker thread and collected here, so the
    response holds at most `limit` posts.
    """
    search_limiter.check(request)
    server = _get_server(server_name, servers)

    channel: PostChannel = PostChannel()
    try:
        extractor = _build_extractor(server, session, tags.split(), ratings, map_videos, global_blacklist)
        if pool is not None:
            extractor.setup_pool_download(pool, reverse)
        future = extractor.setup_fetch_thread(channel, page, limit)
        posts = list(channel)
        removed = future.result()
    except ExtractorError as e:
        channel.close()
        raise _http_error(e) from e

    logger.debug(f"Search on {server.name} for '{tags}' returned {len(posts)} posts, {removed} removed")
    return SearchResponse(
        posts=[_to_web_post(extractor.api, post) for post in posts],
        removed=removed,
        pool_order=extractor.pool_order if pool is not None else None,
    )
