"""Main FastAPI application."""
from fastapi import FastAPI
from contextlib import asynccontextmanager

from salesnote.core.logging import setup_logging
from salesnote.db.database import init_db
from salesnote.api import catalog, drafts, health, ledger


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup
    setup_logging()
    await init_db()
    yield
    # Shutdown
    pass


app = FastAPI(
    title="SalesNote",
    description="Turns sales notes into validated order drafts",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(health.router, tags=["health"])
app.include_router(catalog.router, tags=["catalog"])
app.include_router(drafts.router, tags=["drafts"])
app.include_router(ledger.router, tags=["ledger"])


@app.get("/")
async def root():
    return {"message": "SalesNote API", "version": "0.1.0"}
