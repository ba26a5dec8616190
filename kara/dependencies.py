"""FastAPI dependencies: services live on ``app.state``, built by ``create_app``."""

from fastapi import Depends, HTTPException, Response
from fastapi.requests import HTTPConnection
from kara.config import MASTER_COOKIE, MASTER_COOKIE_MAX_AGE, MASTER_HEADER, Settings
from kara.models.master import AuthorizeResult
from kara.services.broadcast import ConnectionManager
from kara.services.master import MasterManager
from kara.services.playlists import PlaylistStore
from kara.services.queue import QueueManager
from kara.services.youtube import YouTubeClient


def get_settings(conn: HTTPConnection) -> Settings:
    return conn.app.state.settings


def get_queue_manager(conn: HTTPConnection) -> QueueManager:
    return conn.app.state.queue


def get_master_manager(conn: HTTPConnection) -> MasterManager:
    return conn.app.state.master


def get_connection_manager(conn: HTTPConnection) -> ConnectionManager:
    return conn.app.state.connections


def get_playlist_store(conn: HTTPConnection) -> PlaylistStore:
    return conn.app.state.playlists


def get_youtube(conn: HTTPConnection) -> YouTubeClient:
    return conn.app.state.youtube


def get_master_token(conn: HTTPConnection) -> str | None:
    """Master token from the header, falling back to the cookie."""
    return conn.headers.get(MASTER_HEADER) or conn.cookies.get(MASTER_COOKIE)


def set_master_token(response: Response, token: str) -> None:
    response.set_cookie(MASTER_COOKIE, token, path="/", max_age=MASTER_COOKIE_MAX_AGE)
    response.headers[MASTER_HEADER] = token


def clear_master_token(response: Response) -> None:
    response.set_cookie(MASTER_COOKIE, "", path="/", max_age=0)


def require_master(
    response: Response,
    token: str | None = Depends(get_master_token),
    master: MasterManager = Depends(get_master_manager),
) -> AuthorizeResult:
    """Allow the request to act as master, or answer 409 when locked out."""
    result = master.authorize(token)
    if not result.allowed:
        raise HTTPException(status_code=409, detail="Master is locked")
    if result.new_token:
        set_master_token(response, result.new_token)
    return result
