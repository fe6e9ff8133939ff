"""FastAPI dependency injection utilities."""

from typing import Annotated, AsyncGenerator

import httpx
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from engagement.db.session import get_db


async def get_http_client(request: Request) -> AsyncGenerator[httpx.AsyncClient | None, None]:
    """Provide the HTTP client opened by the application lifespan.

    ``None`` outside the lifespan; each batch then opens its own client.
    """
    yield getattr(request.app.state, "http_client", None)


DbSession = Annotated[AsyncSession, Depends(get_db)]
HttpClient = Annotated[httpx.AsyncClient | None, Depends(get_http_client)]
