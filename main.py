import logging

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from steam_inventory.core.config import settings
from steam_inventory.api.routes import inventory

logger = logging.getLogger(__name__)

VERSION = "0.1.0"

app = FastAPI(
    title="Steam Inventory Aggregator",
    description="多 app/context 分区 Steam 库存并发聚合",
    version=VERSION,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(inventory.router, prefix="/api/inventory", tags=["inventory"])


@app.get("/health")
async def health():
    return {"status": "ok", "version": VERSION}


if __name__ == "__main__":
    uvicorn.run("main:app", host=settings.host, port=settings.port, reload=True)
