# bucket_to_sql.py
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from sqlalchemy import create_engine, text
from sqlalchemy.engine import URL, Connection, Engine
from sqlalchemy.exc import SQLAlchemyError

from ingest_errors import ParseError, ServiceError, StoreConnectionError, StoreError
from s3_keys import ParsedRecord, parse_s3_key

logger = logging.getLogger(__name__)


# ---------- Settings ----------
@dataclass
class BrowseConfig:
    bucket_name: str = "scrape-bucket"
    region: str = "us-east-1"
    max_pages: int = 10
    prefix: str = ""
    key_offset: int = 1
    verbose: bool = False
    progress_every: int = 1000
    table: str = "scraped_videos"

    def __post_init__(self):
        if self.max_pages < 1:
            raise ValueError(f"max_pages must be >= 1, got {self.max_pages}")
        if self.key_offset < 0:
            raise ValueError(f"key_offset must be >= 0, got {self.key_offset}")
        if self.progress_every < 1:
            raise ValueError(f"progress_every must be >= 1, got {self.progress_every}")

    @classmethod
    def from_env(cls, **overrides) -> "BrowseConfig":
        values: Dict[str, Any] = {
            "bucket_name": os.getenv("S3_BUCKET", "scrape-bucket"),
            "region": os.getenv("AWS_REGION", "us-east-1"),
            "max_pages": int(os.getenv("MAX_PAGES", "10")),
            "prefix": os.getenv("S3_PREFIX", ""),
            "key_offset": int(os.getenv("S3KEY_OFFSET", "1")),
            "verbose": os.getenv("VERBOSE", "n").lower() in ("y", "yes", "true", "1"),
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


@dataclass
class DbSettings:
    name: str = ""
    user: str = ""
    password: str = ""
    host: Optional[str] = None
    port: int = 3306

    @classmethod
    def from_env(cls) -> "DbSettings":
        return cls(
            name=os.getenv("DB_NAME", ""),
            user=os.getenv("DB_USER", ""),
            password=os.getenv("DB_PASSWORD", ""),
            host=os.getenv("DB_HOST") or None,
            port=int(os.getenv("DB_PORT", "3306")),
        )

    def url(self) -> URL:
        return URL.create(
            "mysql+pymysql",
            username=self.user,
            password=self.password,
            host=self.host,
            port=self.port if self.host else None,
            database=self.name,
            query={"charset": "utf8"},
        )


# ---------- DB engine ----------
def get_db_engine(settings: Optional[DbSettings] = None) -> Engine:
    settings = settings or DbSettings.from_env()
    return create_engine(
        settings.url(),
        pool_pre_ping=True,
        pool_recycle=3600,
        pool_timeout=30,
    )


# ---------- S3 listing ----------
@dataclass
class ListingPage:
    keys: List[str]
    continuation_token: Optional[str] = None
    is_truncated: bool = False


class S3PageFetcher:
    """One list_objects_v2 call per page, prefix passed straight through."""

    def __init__(self, client, bucket: str, prefix: str = ""):
        self.client = client
        self.bucket = bucket
        self.prefix = prefix

    def fetch_page(self, continuation_token: Optional[str] = None) -> ListingPage:
        kwargs = {"Bucket": self.bucket, "Prefix": self.prefix}
        if continuation_token:
            kwargs["ContinuationToken"] = continuation_token

        try:
            resp = self.client.list_objects_v2(**kwargs)
        except (BotoCoreError, ClientError) as e:
            raise ServiceError(self.bucket, e) from e

        return ListingPage(
            keys=[obj["Key"] for obj in resp.get("Contents", [])],
            continuation_token=resp.get("NextContinuationToken"),
            is_truncated=bool(resp.get("IsTruncated", False)),
        )


# ---------- MySQL sink ----------
INSERT_SQL = """
INSERT INTO {table} (video_id, bucket_name, prefix, s3_key)
VALUES (:video_id, :bucket_name, :prefix, :s3_key)
"""


class MySQLSink:
    """
    Inserts one row per parsed key over a single shared connection.

    Every insert is committed on its own, so a crash mid-run keeps the rows
    written so far. A failed insert is rolled back and raised as StoreError;
    the connection stays usable for the next row.
    """

    def __init__(self, conn: Connection, table: str = "scraped_videos"):
        self.conn = conn
        self.stmt = text(INSERT_SQL.format(table=table))

    @classmethod
    def connect(cls, engine: Engine, table: str = "scraped_videos") -> "MySQLSink":
        logger.info("testing db-ping")
        try:
            conn = engine.connect()
        except SQLAlchemyError as e:
            raise StoreConnectionError(e) from e
        try:
            conn.execute(text("SELECT 1"))
            conn.commit()
        except SQLAlchemyError as e:
            conn.close()
            raise StoreConnectionError(e) from e
        logger.info("Successfully connected!")
        return cls(conn, table)

    def insert(self, record: ParsedRecord, bucket_name: str) -> None:
        try:
            self.conn.execute(self.stmt, record.as_row(bucket_name))
            self.conn.commit()
        except SQLAlchemyError as e:
            self.conn.rollback()
            raise StoreError(record, e) from e

    def close(self):
        self.conn.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()


# ---------- Pagination driver ----------
@dataclass
class WalkState:
    page_count: int = 0
    total_processed: int = 0
    parsed: int = 0
    inserted: int = 0
    parse_failures: int = 0
    insert_failures: int = 0
    continuation_token: Optional[str] = None
    done: bool = False
    errors: List[str] = field(default_factory=list)

    def summary(self, bucket: str, prefix: str) -> Dict[str, Any]:
        return {
            "bucket": bucket,
            "prefix": prefix,
            "pages": self.page_count,
            "scanned": self.total_processed,
            "inserted": self.inserted,
            "parse_failures": self.parse_failures,
            "insert_failures": self.insert_failures,
            "continuation_token": self.continuation_token,
            "errors": self.errors,
        }


ProgressFn = Callable[[WalkState, ParsedRecord], None]


def log_progress(state: WalkState, record: ParsedRecord) -> None:
    logger.info(
        "s3key: count %d, key %s, s3prefix %s, videoID %s",
        state.total_processed, record.source_key, record.prefix, record.identifier,
    )


class BucketWalker:
    """Walks a bucket listing page by page and feeds parsed keys to the sink."""

    def __init__(self, config: BrowseConfig, fetcher: S3PageFetcher, sink: MySQLSink,
                 progress: Optional[ProgressFn] = log_progress):
        self.config = config
        self.fetcher = fetcher
        self.sink = sink
        self.progress = progress
        self.state = WalkState()

    def run(self) -> WalkState:
        state = self.state
        while not state.done:
            try:
                page = self.fetcher.fetch_page(state.continuation_token)
            except ServiceError as e:
                state.done = True
                state.errors.append(str(e))
                logger.error("%s", e)
                raise

            self._process_page(page)

            state.continuation_token = page.continuation_token
            state.page_count += 1
            if not page.is_truncated or state.page_count >= self.config.max_pages:
                state.done = True

            if self.config.verbose:
                logger.info("page Num %d, recCount %d", state.page_count, state.total_processed)

        return state

    def _process_page(self, page: ListingPage):
        state = self.state
        for key in page.keys:
            state.total_processed += 1

            try:
                record = parse_s3_key(key, self.config.key_offset)
            except ParseError as e:
                state.parse_failures += 1
                logger.debug("skipping key: %s", e)
                continue
            state.parsed += 1

            if self.progress and state.total_processed % self.config.progress_every == 0:
                self.progress(state, record)

            try:
                self.sink.insert(record, self.config.bucket_name)
            except StoreError as e:
                state.insert_failures += 1
                state.errors.append(str(e))
                logger.warning("DB insert Error %s", e.cause)
                continue
            state.inserted += 1


# ---------- One-shot ingest ----------
def s3_client(region: str):
    return boto3.client("s3", region_name=region)


def ingest_from_s3(config: BrowseConfig, engine: Optional[Engine] = None, client=None) -> Dict[str, Any]:
    engine = engine or get_db_engine()
    client = client or s3_client(config.region)

    fetcher = S3PageFetcher(client, config.bucket_name, config.prefix)
    with MySQLSink.connect(engine, config.table) as sink:
        walker = BucketWalker(config, fetcher, sink)
        state = walker.run()

    return state.summary(config.bucket_name, config.prefix)
