"""FastAPI main application for the Splash relay"""

import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .ws.server import router

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app = FastAPI(title="Splash Relay", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router)


@app.get("/")
async def root():
    return {"message": "Splash Relay", "version": "1.0.0"}
