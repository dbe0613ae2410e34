import uvicorn
from fastapi import FastAPI

from cardpick.api.routes.health import router as health_router
from cardpick.api.routes.search import router as search_router
from cardpick.config import configure_logging, settings

configure_logging(settings.log_level)

app = FastAPI(title="CardPick API", version="0.1.0")
app.include_router(health_router)
app.include_router(search_router)


def run(host: str | None = None, port: int | None = None) -> None:
    uvicorn.run(
        "cardpick.api.app:app",
        host=host or settings.app_host,
        port=port or settings.app_port,
        reload=False,
    )
