# backoffice/core/context.py

from dataclasses import dataclass
from typing import Optional

import httpx
from fastapi import Request

from backoffice.core.config import Settings
from backoffice.core.database import MongoDbContext
from backoffice.core.document_store import DocumentStore


@dataclass
class AppContext:
    """Dependências compartilhadas da aplicação, criadas uma vez em `create_app`."""

    settings: Settings
    store: DocumentStore
    http_client: httpx.AsyncClient
    mongo: Optional[MongoDbContext] = None


def get_context(request: Request) -> AppContext:
    return request.app.state.context
