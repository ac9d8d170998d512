"""Shop bots — точка входа. FastAPI: вебхуки Telegram + API управления."""

import logging
from logging.handlers import RotatingFileHandler
import time as _time
from pathlib import Path
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from config import WEBHOOK_HOST, WEBHOOK_PORT
from db import init_db
from admin.routes import router as admin_router
from tgapi.client import close_client
from tgapi.webhook import router as webhook_router

# ── Logging ──────────────────────────────────────────────────

Path("data").mkdir(exist_ok=True)

logging.basicConfig(
    format="%(asctime)s %(name)s %(levelname)s %(message)s",
    level=logging.INFO,
    handlers=[
        logging.StreamHandler(),
        RotatingFileHandler("data/bot.log", maxBytes=10*1024*1024, backupCount=5, encoding="utf-8"),
    ],
)
# httpx логирует каждый запрос вместе с URL, а в URL Bot API лежит токен бота
logging.getLogger("httpx").setLevel(logging.WARNING)
logger = logging.getLogger(__name__)


# ── App ──────────────────────────────────────────────────────

@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting shop bots service...")
    init_db()
    logger.info("Service ready!")
    yield
    await close_client()
    logger.info("Service stopped.")


app = FastAPI(title="Shop bots", lifespan=lifespan)
app.include_router(webhook_router)
app.include_router(admin_router)
_start = _time.time()


@app.get("/health")
async def health():
    return {"status": "ok", "uptime": int(_time.time() - _start)}


if __name__ == "__main__":
    uvicorn.run("main:app", host=WEBHOOK_HOST, port=WEBHOOK_PORT, reload=False)
