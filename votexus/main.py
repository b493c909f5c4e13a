# votexus/main.py
import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import APIRouter, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from fastapi.staticfiles import StaticFiles

from votexus import __version__, config
from votexus.database.connection import MongoConnector
from votexus.errors import register_error_handlers
from votexus.routes.candidate_routes import router as candidate_router
from votexus.routes.election_routes import router as election_router
from votexus.routes.voter_routes import router as voter_router

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s | %(levelname)-7s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Attempting to connect to MongoDB server...")
    connector = MongoConnector.instance()
    yield
    connector.close()


app = FastAPI(title="VOTEXUS - Election and Voting API", version=__version__, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

api = APIRouter(prefix=config.API_PREFIX)
api.include_router(voter_router)
api.include_router(election_router)
api.include_router(candidate_router)


@api.get("/health", tags=["Health"])
def health_check():
    return {"status": "healthy", "database": "MongoDB"}


app.include_router(api)

if config.MEDIA_BACKEND == "local":
    app.mount("/uploads", StaticFiles(directory=config.UPLOAD_DIR, check_dir=False), name="uploads")


@app.get("/", tags=["Root"])
def read_root():
    return {"message": "Welcome to the VOTEXUS API"}


@app.get("/favicon.ico", include_in_schema=False)
async def favicon():
    return Response(status_code=204)


def run():
    logger.info(f"Server starting on port {config.PORT}")
    uvicorn.run("votexus.main:app", host="0.0.0.0", port=config.PORT)


if __name__ == "__main__":
    run()
