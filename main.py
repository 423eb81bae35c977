# main.py
from dotenv import load_dotenv
from fastapi import FastAPI

from ingest_router import router as ingest_router
from logger_config import setup_logging

load_dotenv()
setup_logging()

app = FastAPI(title="Bucket Ingest Admin")
app.include_router(ingest_router)


@app.get("/")
def root():
    return {
        "message": "Bucket Ingest Admin API",
        "available_endpoints": ["/admin/ingest-s3", "/health"]}


@app.get("/health")
def health():
    return {"status": "ok"}
