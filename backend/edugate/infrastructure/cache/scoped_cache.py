import json
import time
from collections.abc import Callable
from typing import Any

from redis.exceptions import RedisError
from sqlalchemy.exc import OperationalError

from edugate.config import settings
from edugate.domain.identity import Identity
from edugate.domain.scope import TenantScope
from edugate.infrastructure.cache.redis_client import get_redis_client
from edugate.infrastructure.logging import get_logger

logger = get_logger(__name__)

KEY_PREFIX = "edugate:scoped"


def build_scoped_cache_key(entity: str, identity: Identity, scope: TenantScope, params: str = "") -> str:
    return ":".join(
        [
            KEY_PREFIX,
            str(scope.school_id),
            entity,
            str(identity.id),
            scope.cache_fragment(),
            identity.role.value,
            params,
        ]
    )


def _read(cache_key: str) -> dict | None:
    try:
        raw = get_redis_client().get(cache_key)
    except RedisError:
        return None
    if raw is None or not isinstance(raw, str):
        return None
    try:
        value = json.loads(raw)
    except json.JSONDecodeError:
        return None
    if not isinstance(value, dict) or "stored_at" not in value or "data" not in value:
        return None
    return value


def _write(cache_key: str, data: Any) -> None:
    envelope = {"stored_at": time.time(), "data": data}
    try:
        get_redis_client().setex(cache_key, settings.cache_retention_seconds, json.dumps(envelope, default=str))
    except (RedisError, TypeError, ValueError):
        return


def _delete_matching(pattern: str) -> int:
    client = get_redis_client()
    deleted = 0
    try:
        for key in client.scan_iter(match=pattern):
            deleted += int(client.delete(key))
    except RedisError:
        return deleted
    return deleted


def get_or_load(
    cache_key: str,
    loader: Callable[[], Any],
    *,
    is_payload_visible: Callable[[Any], bool],
) -> Any:
    """Stale-while-revalidate read through the scoped cache.

    A fresh payload is served as is. A stale one is reloaded, and only served if the
    reload hits a database outage. Any payload that fails ``is_payload_visible`` for
    the current scope is discarded.
    """
    cached = _read(cache_key)
    if cached is not None and not is_payload_visible(cached["data"]):
        logger.warning("scoped_cache_payload_rejected", cache_key=cache_key)
        cached = None

    if cached is not None:
        age = time.time() - float(cached["stored_at"])
        if age < settings.cache_fresh_seconds:
            logger.debug("scoped_cache_hit", cache_key=cache_key, age_seconds=round(age, 2))
            return cached["data"]

    try:
        data = loader()
    except OperationalError:
        if cached is None:
            raise
        logger.warning("scoped_cache_serving_stale", cache_key=cache_key)
        return cached["data"]

    _write(cache_key, data)
    return data


def invalidate_entity(school_id: object, entity: str) -> int:
    return _delete_matching(f"{KEY_PREFIX}:{school_id}:{entity}:*")


def invalidate_principal(principal_id: object) -> int:
    deleted = _delete_matching(f"{KEY_PREFIX}:*:*:{principal_id}:*")
    logger.info("scoped_cache_principal_invalidated", principal_id=str(principal_id), deleted=deleted)
    return deleted
