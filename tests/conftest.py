import boto3
import pytest
from sqlalchemy import create_engine, text

from bucket_to_sql import ListingPage
from ingest_errors import ServiceError, StoreError

CREATE_SQL = """
CREATE TABLE scraped_videos (
  video_id VARCHAR(64) NOT NULL,
  bucket_name VARCHAR(128) NOT NULL,
  prefix VARCHAR(512) NOT NULL,
  s3_key VARCHAR(1024) NOT NULL UNIQUE
)
"""


@pytest.fixture
def engine():
    eng = create_engine("sqlite://")
    with eng.begin() as conn:
        conn.execute(text(CREATE_SQL))
    yield eng
    eng.dispose()


def fetch_rows(engine):
    with engine.connect() as conn:
        return [tuple(r) for r in conn.execute(
            text("SELECT video_id, bucket_name, prefix, s3_key FROM scraped_videos ORDER BY s3_key")
        )]


@pytest.fixture
def s3():
    return boto3.client(
        "s3",
        region_name="us-east-1",
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
    )


class FakeFetcher:
    def __init__(self, pages, fail_on_call=None):
        self.pages = list(pages)
        self.fail_on_call = fail_on_call
        self.calls = []

    def fetch_page(self, continuation_token=None):
        self.calls.append(continuation_token)
        if self.fail_on_call == len(self.calls):
            raise ServiceError("test-bucket", RuntimeError("listing blew up"))
        return self.pages[len(self.calls) - 1]


class FakeSink:
    def __init__(self, fail_keys=()):
        self.fail_keys = set(fail_keys)
        self.attempts = []
        self.rows = []

    def insert(self, record, bucket_name):
        self.attempts.append(record.source_key)
        if record.source_key in self.fail_keys:
            raise StoreError(record, RuntimeError("duplicate entry"))
        self.rows.append(record.as_row(bucket_name))


def truncated_pages(n, keys_per_page=2):
    pages = []
    for i in range(n):
        keys = [f"p{i}/vid{i}_{j}.mp4" for j in range(keys_per_page)]
        pages.append(ListingPage(keys=keys, continuation_token=f"tok{i + 1}", is_truncated=True))
    return pages


@pytest.fixture
def fake_sink():
    return FakeSink()
