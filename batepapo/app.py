import logging
from contextlib import asynccontextmanager
from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, FastAPI, Header, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from . import services
from .config import Settings
from .exceptions import ChatError, ValidationError
from .presence import PresenceTracker
from .reaper import Reaper
from .store import Store

logger = logging.getLogger(__name__)

router = APIRouter()


def get_store(request: Request) -> Store:
    return request.app.state.store


def get_presence(request: Request) -> PresenceTracker:
    return request.app.state.presence


@router.post('/participants', status_code=201)
async def register(payload: Any = Body(None), store: Store = Depends(get_store)):
    await services.register_participant(store, payload)
    return Response(status_code=201)


@router.get('/participants')
async def list_participants(store: Store = Depends(get_store)):
    return await services.list_participants(store)


@router.post('/messages', status_code=201)
async def post_message(payload: Any = Body(None), user: Optional[str] = Header(None),
                       store: Store = Depends(get_store)):
    await services.submit_message(store, user, payload)
    return Response(status_code=201)


@router.get('/messages')
async def get_messages(limit: Optional[str] = None, user: Optional[str] = Header(None),
                       store: Store = Depends(get_store)):
    return await services.read_messages(store, user, limit)


@router.post('/status')
async def heartbeat(user: Optional[str] = Header(None), presence: PresenceTracker = Depends(get_presence)):
    await presence.touch(user)
    return Response(status_code=200)


async def chat_error_handler(request: Request, exc: ChatError):
    if exc.status_code >= 500:
        logger.error('%s %s failed: %s', request.method, request.url.path, exc.message)
    return JSONResponse(exc.to_dict(), status_code=exc.status_code)


async def request_validation_handler(request: Request, exc: RequestValidationError):
    # malformed JSON or wrong types caught by FastAPI before a route runs
    return await chat_error_handler(request, ValidationError.from_errors(exc.errors()))


def create_app(settings: Optional[Settings] = None, store: Optional[Store] = None) -> FastAPI:
    """Build the API. The store is created from settings unless one is given."""
    settings = settings or Settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app_store = store or Store.from_url(settings.DATABASE_URL, settings.DATABASE_NAME)
        await app_store.open()
        presence = PresenceTracker(app_store)
        reaper = Reaper(app_store, presence,
                        threshold_ms=settings.INACTIVITY_THRESHOLD_MS,
                        interval=settings.SWEEP_INTERVAL_MS / 1000)
        app.state.store = app_store
        app.state.presence = presence
        app.state.reaper = reaper
        reaper.start()
        try:
            yield
        finally:
            await reaper.stop(grace=settings.SHUTDOWN_GRACE_S)
            await app_store.close()

    app = FastAPI(title='batepapo', lifespan=lifespan)
    # Allow browser front-ends on other origins to poll the API
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_methods=['*'],
        allow_headers=['*'],
    )
    app.add_exception_handler(ChatError, chat_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.include_router(router)
    return app
