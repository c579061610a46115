import logging

from fastapi import FastAPI

from wager.api.routes import router
from wager.settings import settings_from_env

# Configure logging
logging.basicConfig(level=settings_from_env().log_level)
logger = logging.getLogger(__name__)

app = FastAPI(title="nft-wager", version="0.1.0")
app.include_router(router)


@app.get("/info")
async def info() -> dict[str, str]:
    return {"name": "nft-wager", "version": "0.1.0"}
