from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from spirit_gacha.core.db import engine
from spirit_gacha.engine.errors import PullError
from spirit_gacha.services.gacha import get_catalog
from spirit_gacha.utils.exception_handlers import (
    general_exception_handler,
    http_exception_handler,
    pull_error_handler,
    validation_exception_handler,
)
from spirit_gacha.utils.router_discovery import register_routers


@asynccontextmanager
async def app_lifespan(_: FastAPI) -> AsyncGenerator[None, FastAPI]:
    # Fail at startup rather than on the first pull if the catalog is broken
    get_catalog()

    yield

    await engine.dispose()


app = FastAPI(title="Spirit Gacha API", lifespan=app_lifespan)


app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


register_routers(app)

app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(PullError, pull_error_handler)
app.add_exception_handler(Exception, general_exception_handler)


@app.get("/")
async def healthz() -> str:
    return "OK"
