from fastapi import FastAPI, WebSocket
from fastapi.middleware.cors import CORSMiddleware
from typing import Optional
from routers.rooms import rooms_router
from routers.users import users_router
from routers.chat import chat_router
from backend import RedisUserStore, UserStore
from generation import GeminiReplyGenerator, ReplyGenerator
from gateway import ConnectionGateway, build_gateway
from constants import CORS_ORIGINS
from schemas.rooms import HealthResponse
from logging_config import get_logger, setup_logging
import os

# Setup logging
log_level = os.getenv("LOG_LEVEL", "INFO")
log_file = os.getenv("LOG_FILE", None)
setup_logging(log_level=log_level, log_file=log_file)
logger = get_logger(__name__)


def create_app(gateway: Optional[ConnectionGateway] = None, user_store: Optional[UserStore] = None,
               reply_generator: Optional[ReplyGenerator] = None) -> FastAPI:
    """Create the application. Room state lives in ``app.state.gateway`` for the life of the process."""
    app = FastAPI(title="Peer Rooms")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.gateway = gateway if gateway is not None else build_gateway()
    app.state.user_store = user_store if user_store is not None else RedisUserStore()
    app.state.reply_generator = reply_generator if reply_generator is not None else GeminiReplyGenerator()

    app.include_router(rooms_router)
    app.include_router(users_router)
    app.include_router(chat_router)

    @app.get("/health", response_model=HealthResponse)
    async def health():
        return HealthResponse(
            status="ok",
            rooms=len(app.state.gateway.registry),
            connections=app.state.gateway.connection_count,
        )

    @app.websocket("/ws")
    async def websocket_endpoint(websocket: WebSocket):
        """Room websocket. Frames are JSON objects of the form {"event": ..., "data": ...}."""
        logger.info(f"WebSocket connection attempt from {websocket.client.host if websocket.client else 'unknown'}")
        await app.state.gateway.serve(websocket)

    logger.info("FastAPI application initialized")
    return app


app = create_app()
