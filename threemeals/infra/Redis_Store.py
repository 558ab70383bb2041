"""Key-value backend for Remote Persistence (Redis).

Layout:
    plan:<email>   JSON string {"mealPlan", "prefs"}
    emails         hash email -> ISO timestamp of last save
    email_list     list of JSON {"email", "timestamp"}, newest first
"""
import json
import logging
from datetime import datetime, timezone
from typing import Optional

import redis

from threemeals.errors import StoreError
from threemeals.infra.Plan_Store import PlanStore, email_key

logger = logging.getLogger(__name__)


class RedisPlanStore(PlanStore):
    def __init__(self, url: Optional[str] = None, client=None):
        self._url = url
        self._client = client

    @property
    def client(self):
        """Lazy-load the Redis client so the app starts without a reachable server."""
        if self._client is None:
            self._client = redis.Redis.from_url(
                self._url,
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
            )
        return self._client

    def save(self, email, meal_plan, prefs) -> bool:
        key = email_key(email)
        timestamp = datetime.now(timezone.utc).isoformat()
        try:
            if meal_plan is None or prefs is None:
                existing = self._read(key) or {}
                meal_plan = meal_plan if meal_plan is not None else existing.get("mealPlan")
                prefs = prefs if prefs is not None else existing.get("prefs")
            self.client.set(f"plan:{key}", json.dumps({"mealPlan": meal_plan, "prefs": prefs}))
            self.client.hset("emails", mapping={email.strip(): timestamp})
            self.client.lpush("email_list", json.dumps({"email": email.strip(), "timestamp": timestamp}))
        except redis.RedisError as e:
            raise StoreError(f"Redis save failed: {e}") from e
        return True

    def _read(self, key: str):
        """Decoded value of plan:<key>; a value that is not a JSON object raises StoreError."""
        data = self.client.get(f"plan:{key}")
        if not data:
            return None
        try:
            parsed = json.loads(data) if isinstance(data, (str, bytes)) else data
        except ValueError as e:
            raise StoreError(f"Stored plan for {key} is not valid JSON: {e}") from e
        if not isinstance(parsed, dict):
            raise StoreError(f"Stored plan for {key} is malformed")
        return parsed

    def get(self, email):
        try:
            parsed = self._read(email_key(email))
        except redis.RedisError as e:
            raise StoreError(f"Redis lookup failed: {e}") from e
        if not parsed or not parsed.get("mealPlan"):
            return None
        return {"mealPlan": parsed["mealPlan"], "prefs": parsed.get("prefs")}

    def list_emails(self):
        try:
            entries = self.client.lrange("email_list", 0, -1)
        except redis.RedisError as e:
            raise StoreError(f"Redis list failed: {e}") from e
        try:
            return [json.loads(e) if isinstance(e, (str, bytes)) else e for e in entries]
        except ValueError as e:
            raise StoreError(f"Email list holds a malformed entry: {e}") from e


__all__ = ["RedisPlanStore"]
