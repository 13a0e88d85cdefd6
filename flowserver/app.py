"""FastAPI application for storing and editing flows."""

import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

load_dotenv()  # FLOW_DB_PATH, CORS_ORIGINS, LOG_LEVEL may come from .env

from flowbuilder.utils.logger import get_logger, init_logger
from flowserver import flow_db
from flowserver.db import init_all
from flowserver.flow_routes import router as flow_router

log = get_logger("server")

# comma-separated list; "*" allows any origin but then disables credentials
CORS_ORIGINS = [origin.strip() for origin in os.getenv("CORS_ORIGINS", "*").split(",") if origin.strip()]

HOST = os.getenv("FLOW_SERVER_HOST", "127.0.0.1")
PORT = int(os.getenv("FLOW_SERVER_PORT", "8000"))

VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Set up logging and the flow table before serving."""
    init_logger()
    init_all()
    log.info("flow server %s using %s", VERSION, flow_db.FLOW_DB_PATH)
    yield


app = FastAPI(
    title="Flowbuilder API",
    description="Stores chatbot/workflow flows and applies node edits to them",
    version=VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials="*" not in CORS_ORIGINS,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
    allow_headers=["*"],
)

app.include_router(flow_router, prefix="/api")


@app.get("/")
def health():
    """Health check with the storage location and main routes."""
    return {
        "status": "ok",
        "version": VERSION,
        "flow_db": str(flow_db.FLOW_DB_PATH),
        "endpoints": {
            "flows": "/api/flows",
            "nodes": "/api/flows/{flow_id}/nodes",
            "options": "/api/flows/{flow_id}/nodes/{node_id}/options",
        },
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("flowserver.app:app", host=HOST, port=PORT)
