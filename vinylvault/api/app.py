"""FastAPI app, CORS, and route registration."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s: %(name)s: %(message)s",
)

from vinylvault.api.state import AppState, get_state
from vinylvault.config import ensure_data_dir

# Import routes after state to avoid circular imports
from vinylvault.api.routes import catalog, cover, dashboard, records

__all__ = ["app", "AppState", "get_state"]


@asynccontextmanager
async def lifespan(app: FastAPI):
    ensure_data_dir()
    state = get_state()
    # Subscribe the dashboard snapshot to store changes up front
    state.dashboard
    logging.getLogger(__name__).info("Vinyl Vault API ready")

    yield

    await state.aclose()


app = FastAPI(
    title="Vinyl Vault API",
    description="Vinyl record catalog, admin CRUD, dashboard and cover lookup",
    lifespan=lifespan,
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(catalog.router, prefix="/api/catalog", tags=["catalog"])
app.include_router(cover.router, prefix="/api/cover", tags=["cover"])
app.include_router(dashboard.router, prefix="/api/dashboard", tags=["dashboard"])
app.include_router(records.router, prefix="/api/records", tags=["records"])


@app.get("/health")
def health():
    return {"ok": True}
