"""API route modules."""

from neriah.api.routes.attachments import router as attachments_router
from neriah.api.routes.chat import router as chat_router
from neriah.api.routes.extract import router as extract_router
from neriah.api.routes.health import router as health_router
from neriah.api.routes.items import router as items_router
from neriah.api.routes.sync import router as sync_router
from neriah.api.routes.webhooks import router as webhooks_router

__all__ = [
    "attachments_router",
    "chat_router",
    "extract_router",
    "health_router",
    "items_router",
    "sync_router",
    "webhooks_router",
]
