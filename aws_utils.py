# aws_utils.py
#
# Connection helpers for S3, SQS and DynamoDB (and Redis, which lives here too).
# AWS credentials come from the standard boto3 chain: AWS_ACCESS_KEY_ID /
# AWS_SECRET_ACCESS_KEY or the shared credentials file.
import logging
import os
from typing import Tuple

import boto3
import redis
from botocore.exceptions import BotoCoreError

logger = logging.getLogger(__name__)


class KeyNotFoundError(KeyError):
    def __init__(self, key: str, context: str):
        self.key = key
        self.context = context
        super().__init__(key)

    def __str__(self):
        return f"{self.context}: key {self.key}"


def getenv(key: str, fallback: str) -> str:
    """Like os.getenv, but an empty value also falls back."""
    value = os.getenv(key, "")
    if not value:
        return fallback
    return value


# ---------- Redis ----------
def redis_conn(db: int = 0) -> redis.Redis:
    client = redis.Redis(
        host=getenv("REDIS_SERVER", "localhost"),
        port=6379,
        password=getenv("REDIS_PWD", "") or None,
        db=db,
    )
    try:
        client.ping()
    except redis.exceptions.RedisError as e:
        logger.error("Error in accessing redis %s", e)
        raise
    return client


def redis_get(client: redis.Redis, key: str) -> bytes:
    value = client.get(key)
    if value is None:
        raise KeyNotFoundError(key, "redis")
    return value


# ---------- AWS ----------
def _aws_conn(service: str, region: str) -> Tuple[object, boto3.session.Session]:
    try:
        sess = boto3.session.Session(region_name=region)
        svc = sess.client(service)
    except BotoCoreError as e:
        logger.error("%s session error %s", service.upper(), e)
        raise
    return svc, sess


def aws_ddb_conn(region: str):
    """Returns a DynamoDB client and its session."""
    return _aws_conn("dynamodb", region)


def aws_s3_conn(region: str):
    """Returns an S3 client and its session."""
    return _aws_conn("s3", region)


def aws_sqs_conn(region: str):
    """Returns an SQS client and its session."""
    return _aws_conn("sqs", region)
