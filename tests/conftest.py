"""
Shared pytest fixtures.

Builds a throwaway FastAPI app whose routes fail in every way the
exception handlers know about.
"""
import pytest
from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.security import OAuth2PasswordBearer
from fastapi.testclient import TestClient
from pydantic import BaseModel
from starlette.requests import ClientDisconnect

from api_errors.core.errors import APIError
from api_errors.core.handlers import register_exception_handlers

BIG_REQUEST_ID = 2**64 - 1


class ItemIn(BaseModel):
    name: str
    qty: int


oauth2_scheme = OAuth2PasswordBearer(tokenUrl="token")


def _assign_request_id(request: Request) -> None:
    request.state.request_id = BIG_REQUEST_ID


def build_app() -> FastAPI:
    app = FastAPI()
    register_exception_handlers(app)

    @app.get("/boom")
    def boom():
        raise RuntimeError("db timeout")

    @app.get("/teapot")
    def teapot():
        raise HTTPException(status_code=418, detail="short and stout")

    @app.get("/widgets/{widget_id}")
    def get_widget(widget_id: int):
        err = APIError("W0001", "Widget not found.", 404)
        err.meta["widget_id"] = widget_id
        raise err

    @app.get("/tracked", dependencies=[Depends(_assign_request_id)])
    def tracked():
        raise APIError("W0002", "Tracked failure.", 409)

    @app.post("/items", status_code=201)
    def create_item(item: ItemIn):
        return item

    @app.get("/secure")
    def secure(token: str = Depends(oauth2_scheme)):
        return {"token": token}

    @app.get("/search")
    def search(limit: int = 10):
        return {"limit": limit}

    @app.post("/upload")
    async def upload(request: Request):
        raise ClientDisconnect()

    return app


@pytest.fixture()
def app():
    return build_app()


@pytest.fixture()
def client(app):
    # Unhandled exceptions are re-raised after the 500 response is sent.
    with TestClient(app, raise_server_exceptions=False) as c:
        yield c
