"""FastAPI entry point for the room access portal.

Wires logging, CORS and the room routes; the rooms backend itself is reached
through the shared httpx client, which is closed on shutdown.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from roomshare import __version__
from roomshare.api.routes import rooms
from roomshare.config import API_HOST, API_PORT, BACKEND_API_BASE_URL, CORS_ALLOWED_ORIGINS
from roomshare.core.logging_config import setup_logging
from roomshare.services.backend_client import close_http_client

setup_logging()

app = FastAPI(
    title="Room Access Portal API",
    description="Room roles, capability flags and invite-code lifecycle in front of the rooms backend.",
    version=__version__,
)

# Browser clients call the portal from the frontend dev servers
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(rooms.router)


@app.on_event("shutdown")
async def shutdown_tasks() -> None:
    """Close the shared backend HTTP client."""
    await close_http_client()


@app.get("/", summary="API root", tags=["Info"])
def root() -> dict:
    """Describe the portal and point at its docs and health endpoints."""
    return {
        "name": "Room Access Portal API",
        "version": __version__,
        "backend": BACKEND_API_BASE_URL,
        "docs": {"swagger": "/docs", "redoc": "/redoc"},
        "health": "/api/health",
    }


@app.get("/api/health", summary="Health check", tags=["Health"])
def health() -> dict:
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn

    print(f"Starting Room Access Portal on http://{API_HOST}:{API_PORT}")
    print(f"Rooms backend: {BACKEND_API_BASE_URL}")
    uvicorn.run("roomshare.app:app", host=API_HOST, port=API_PORT, reload=True)
