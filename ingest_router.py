# ingest_router.py
from typing import Optional

from fastapi import APIRouter, HTTPException, Query

from bucket_to_sql import BrowseConfig, ingest_from_s3
from ingest_errors import ServiceError, StoreConnectionError

# Router for /admin endpoints
router = APIRouter(prefix="/admin", tags=["admin"])


@router.post("/ingest-s3")
def run_ingest(
    prefix: Optional[str] = Query(default=None, description="Optional S3 prefix (e.g. aa2019/)"),
    max_pages: Optional[int] = Query(default=None, ge=1, description="Page cap for this run"),
    s3key_offset: Optional[int] = Query(default=None, ge=0, description="video_id offset in s3_key"),
):
    """
    Trigger a one-off S3 -> MySQL walk.
    Bucket and region come from S3_BUCKET / AWS_REGION.
    Example:
        POST /admin/ingest-s3?prefix=aa2019/&max_pages=2
    """
    config = BrowseConfig.from_env(prefix=prefix, max_pages=max_pages, key_offset=s3key_offset)
    try:
        summary = ingest_from_s3(config)
    except StoreConnectionError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except ServiceError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return {"status": "ok", **summary}
