import logging

from fastapi import FastAPI

from parstock.app.api.v1.router import router as v1_router
from parstock.app.core.config import settings

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(title="ParStock", version="0.1.0")
app.include_router(v1_router, prefix="/v1")
