import pytest
import redis

import aws_utils
from aws_utils import KeyNotFoundError


class FakeRedis:
    instances = []

    def __init__(self, fail=False, store=None, **kwargs):
        self.kwargs = kwargs
        self.fail = fail
        self.store = store or {}
        FakeRedis.instances.append(self)

    def ping(self):
        if self.fail:
            raise redis.exceptions.ConnectionError("connection refused")
        return True

    def get(self, key):
        return self.store.get(key)


def test_getenv_fallback(monkeypatch):
    monkeypatch.setenv("SOME_SETTING", "")
    assert aws_utils.getenv("SOME_SETTING", "dflt") == "dflt"
    monkeypatch.setenv("SOME_SETTING", "real")
    assert aws_utils.getenv("SOME_SETTING", "dflt") == "real"
    monkeypatch.delenv("SOME_SETTING")
    assert aws_utils.getenv("SOME_SETTING", "dflt") == "dflt"


def test_redis_conn_uses_env(monkeypatch):
    monkeypatch.setenv("REDIS_SERVER", "cache.internal")
    monkeypatch.setenv("REDIS_PWD", "pw")
    monkeypatch.setattr(aws_utils.redis, "Redis", FakeRedis)

    client = aws_utils.redis_conn(db=3)
    assert client.kwargs == {"host": "cache.internal", "port": 6379, "password": "pw", "db": 3}


def test_redis_conn_ping_failure(monkeypatch):
    monkeypatch.setattr(aws_utils.redis, "Redis", lambda **kw: FakeRedis(fail=True, **kw))
    with pytest.raises(redis.exceptions.ConnectionError):
        aws_utils.redis_conn()


def test_redis_get_missing_key():
    client = FakeRedis(store={"present": b"1"})
    assert aws_utils.redis_get(client, "present") == b"1"
    with pytest.raises(KeyNotFoundError) as exc:
        aws_utils.redis_get(client, "absent")
    assert str(exc.value) == "redis: key absent"


@pytest.mark.parametrize("factory,service", [
    (aws_utils.aws_s3_conn, "s3"),
    (aws_utils.aws_sqs_conn, "sqs"),
    (aws_utils.aws_ddb_conn, "dynamodb"),
])
def test_aws_connections(factory, service):
    svc, sess = factory("eu-west-1")
    assert sess.region_name == "eu-west-1"
    assert svc.meta.region_name == "eu-west-1"
    assert svc.meta.service_model.service_name == service
