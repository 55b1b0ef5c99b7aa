import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pymongo.database import Database

import database
import errors
from repositories import build_repositories
from resources import (
    FoodResource,
    InvoiceResource,
    MenuResource,
    OrderItemResource,
    OrderResource,
    TableResource,
    UserResource,
)
from security import TokenService, authenticate
from settings import settings, setup_logging

setup_logging()
logger = logging.getLogger(__name__)

APP_NAME = "Restaurant Manager API"


def create_app(db: Optional[Database] = None, token_service: Optional[TokenService] = None) -> FastAPI:
    """
    Build the API.

    Without an injected database the app owns its MongoClient: it is pinged
    at startup and closed at shutdown. User indexes are ensured at startup
    either way.
    """
    client = None
    if db is None:
        client = database.connect(settings)
        db = client[settings.database_name]
    if token_service is None:
        token_service = TokenService.from_settings(settings)
    repositories = build_repositories(db)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"Starting {APP_NAME}")
        if client is not None:
            database.ping(client)
        repositories.ensure_indexes()
        yield
        if client is not None:
            client.close()
        logger.info("Shut down")

    app = FastAPI(title=APP_NAME, lifespan=lifespan)
    app.state.token_service = token_service
    app.state.repositories = repositories

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    errors.install(app)

    # Users: signup and login must stay reachable without a token
    public = APIRouter()
    UserResource(repositories, token_service).register(public)

    @public.get("/")
    def root():
        return {"name": APP_NAME, "status": "ok"}

    protected = APIRouter(dependencies=[Depends(authenticate)])
    for resource in (
        FoodResource(repositories),
        MenuResource(repositories.menus),
        TableResource(repositories.tables),
        OrderResource(repositories),
        OrderItemResource(repositories),
        InvoiceResource(repositories),
    ):
        resource.register(protected)

    app.include_router(public)
    app.include_router(protected)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=settings.port)
