import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from taskhub.core.database import engine, Base
from taskhub.core.config import settings
from taskhub.core.errors import register_exception_handlers
from taskhub.core.logging_setup import setup_logging
from taskhub.routers import auth, tasks, notifications, users

setup_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

app = FastAPI(title="Taskhub API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.include_router(auth.router, prefix=settings.API_PREFIX)
app.include_router(tasks.router, prefix=settings.API_PREFIX)
app.include_router(notifications.router, prefix=settings.API_PREFIX)
app.include_router(users.router, prefix=settings.API_PREFIX)

@app.on_event("startup")
async def startup():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Taskhub API ready (environment=%s)", settings.ENVIRONMENT)

@app.get("/")
async def root():
    return {"message": "Taskhub API is running"}

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=settings.API_PORT)
