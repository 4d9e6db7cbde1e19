import redis
import json
from typing import Optional, Protocol
from constants import REDIS_HOST, REDIS_PORT, REDIS_PASSWORD
from redis_keys import REDIS_USER_KEY, REDIS_ASSESSMENTS_KEY
from logging_config import get_logger

logger = get_logger(__name__)


class UserStore(Protocol):
    def find_by_username(self, username: str) -> Optional[dict]: ...

    def insert(self, record: dict) -> bool: ...

    def update_first_time_flag(self, username: str, first_time_user: bool) -> bool: ...

    def append_assessment(self, username: str, assessment: dict) -> bool: ...


class RedisUserStore:
    def __init__(self, redis_client: Optional[redis.Redis] = None):
        # redis.Redis connects lazily, on the first command
        self.redis_client = redis_client or redis.Redis(
            host=REDIS_HOST, port=REDIS_PORT, password=REDIS_PASSWORD, decode_responses=True
        )
        logger.info(f"Initializing RedisUserStore for {REDIS_HOST}:{REDIS_PORT}")

    def ping(self) -> bool:
        try:
            return bool(self.redis_client.ping())
        except redis.RedisError as e:
            logger.error(f"Redis ping failed for {REDIS_HOST}:{REDIS_PORT}: {e}")
            return False

    def find_by_username(self, username: str) -> Optional[dict]:
        logger.debug(f"Fetching user {username}")
        key = REDIS_USER_KEY.format(username=username)
        data = self.redis_client.hgetall(key)
        if not data:
            logger.debug(f"User {username} not found in Redis")
            return None
        record = dict(data)
        record["first_time_user"] = data.get("first_time_user") == "1"
        assessments_key = REDIS_ASSESSMENTS_KEY.format(username=username)
        record["assessments"] = []
        for raw in self.redis_client.lrange(assessments_key, 0, -1):
            try:
                record["assessments"].append(json.loads(raw))
            except (json.JSONDecodeError, TypeError):
                logger.warning(f"Skipping unreadable assessment for user {username}")
        return record

    def insert(self, record: dict) -> bool:
        """Store a new user record. Returns False if the username is taken."""
        username = record["username"]
        key = REDIS_USER_KEY.format(username=username)
        mapping = {}
        for k, v in record.items():
            if v is None:
                continue  # Skip None values
            if isinstance(v, bool):
                mapping[k] = "1" if v else "0"
            else:
                mapping[k] = str(v)
        mapping.setdefault("first_time_user", "1")
        # HSETNX on the username field claims the key atomically
        if not self.redis_client.hsetnx(key, "username", username):
            logger.info(f"User {username} already exists")
            return False
        self.redis_client.hset(key, mapping=mapping)
        logger.info(f"Created user {username}")
        return True

    def update_first_time_flag(self, username: str, first_time_user: bool) -> bool:
        key = REDIS_USER_KEY.format(username=username)
        if not self.redis_client.exists(key):
            logger.debug(f"Cannot update first-time flag: user {username} not found")
            return False
        self.redis_client.hset(key, "first_time_user", "1" if first_time_user else "0")
        logger.debug(f"User {username} first_time_user={first_time_user}")
        return True

    def append_assessment(self, username: str, assessment: dict) -> bool:
        key = REDIS_USER_KEY.format(username=username)
        if not self.redis_client.exists(key):
            logger.debug(f"Cannot append assessment: user {username} not found")
            return False
        assessments_key = REDIS_ASSESSMENTS_KEY.format(username=username)
        count = self.redis_client.rpush(assessments_key, json.dumps(assessment))
        logger.info(f"Stored assessment #{count} for user {username}")
        return True
