from fastapi import FastAPI
from app.core.config import settings
from app.core.logging import logger
from app.api.routes.peaks import router as peaks_router

app = FastAPI(title="Audio peaks API (audiowaveform .dat)")

app.include_router(peaks_router, tags=["peaks"])
logger.info(f"[app] storage_dir='{settings.STORAGE_DIR}' env={settings.APP_ENV}")


@app.get("/test")
def test_api():
    return "SUCCESS"
