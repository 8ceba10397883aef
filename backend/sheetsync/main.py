from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from sheetsync.api.v1.routes.cron import router as cron_router
from sheetsync.api.v1.routes.health import router as health_router
from sheetsync.api.v1.routes.sync import router as sync_router
from sheetsync.core.db import init_db
from sheetsync.core.logging import configure_logging_if_needed

configure_logging_if_needed()


@asynccontextmanager
async def lifespan(_app: FastAPI):
    init_db()
    yield


app = FastAPI(title="Sheet Sync API", lifespan=lifespan)

# Open CORS: the admin UI calls the API directly. Tighten per deployment.
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health_router, prefix="/v1")
app.include_router(sync_router)
app.include_router(cron_router)
