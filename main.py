import asyncio
import sys

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from config.settings import settings
from core.repositories.errors import StoreError
from infrastructure.db.sqlite import init_db
from infrastructure.web.controllers.admin_controller import router as admin_router
from infrastructure.web.controllers.event_controller import router as event_router
from infrastructure.web.controllers.report_controller import router as report_router
from infrastructure.web.controllers.reward_controller import router as reward_router
from infrastructure.web.controllers.token_controller import router as token_router
from infrastructure.web.controllers.user_controller import router as user_router

logger.remove()
logger.add(sys.stderr, level=settings.LOG_LEVEL)

app = FastAPI(title="Waste reporting rewards")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.on_event("startup")
def on_startup():
    init_db(settings.DB_PATH)
    logger.info("Database ready at {}", settings.DB_PATH)

@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError):
    logger.error("Store failure on {} {}: {}", request.method, request.url.path, exc)
    return JSONResponse(status_code=503, content={"detail": "Storage unavailable"})

@app.exception_handler(asyncio.TimeoutError)
async def store_timeout_handler(request: Request, exc: asyncio.TimeoutError):
    logger.error("Store call timed out on {} {}", request.method, request.url.path)
    return JSONResponse(status_code=504, content={"detail": "Storage timed out"})

app.include_router(user_router)
app.include_router(token_router)
app.include_router(report_router)
app.include_router(reward_router)
app.include_router(event_router)
app.include_router(admin_router)
