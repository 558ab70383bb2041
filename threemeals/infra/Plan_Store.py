"""Remote Persistence: plans + preferences keyed by email.

One interface, several backends (JSON file, Redis, SQL) selected by PLAN_STORE_BACKEND.
"""
import json
import logging
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from threemeals.errors import StoreError
from threemeals.infra.paths import PLAN_STORE_FILE

logger = logging.getLogger(__name__)


def email_key(email: str) -> str:
    return (email or "").strip().lower()


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class PlanStore:
    """Interface shared by all backends."""

    def save(self, email: str, meal_plan: Optional[dict], prefs: Optional[dict]) -> bool:
        raise NotImplementedError

    def get(self, email: str) -> Optional[Dict[str, Any]]:
        """Return {"mealPlan": ..., "prefs": ...} or None when nothing is stored."""
        raise NotImplementedError

    def list_emails(self) -> List[Dict[str, str]]:
        """Every recorded signup, newest first: [{"email", "timestamp"}]."""
        raise NotImplementedError


class JsonPlanStore(PlanStore):
    def __init__(self, path: Path = PLAN_STORE_FILE):
        self.path = Path(path)

    def _load(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {"plans": {}, "emails": []}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                store = json.load(f) or {}
        except (OSError, json.JSONDecodeError) as e:
            raise StoreError(f"Plan store unreadable: {e}") from e
        if not isinstance(store, dict) or not isinstance(store.get("plans", {}), dict) \
                or not isinstance(store.get("emails", []), list):
            raise StoreError(f"Plan store {self.path} does not hold a plans object")
        store.setdefault("plans", {})
        store.setdefault("emails", [])
        return store

    def _write(self, store: Dict[str, Any]):
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=str(self.path.parent), prefix=".plans_", suffix=".json")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as tmp:
                    json.dump(store, tmp, indent=2, ensure_ascii=False)
                os.replace(tmp_path, self.path)
            finally:
                if os.path.exists(tmp_path):
                    os.remove(tmp_path)
        except OSError as e:
            raise StoreError(f"Plan store not writable: {e}") from e

    def save(self, email, meal_plan, prefs) -> bool:
        store = self._load()
        timestamp = _now()
        key = email_key(email)
        existing = store["plans"].get(key, {})
        store["plans"][key] = {
            "mealPlan": meal_plan if meal_plan is not None else existing.get("mealPlan"),
            "prefs": prefs if prefs is not None else existing.get("prefs"),
            "updatedAt": timestamp,
        }
        store["emails"].insert(0, {"email": email.strip(), "timestamp": timestamp})
        self._write(store)
        return True

    def get(self, email):
        entry = self._load()["plans"].get(email_key(email))
        if entry is not None and not isinstance(entry, dict):
            raise StoreError(f"Stored plan for {email} is malformed")
        if not entry or not entry.get("mealPlan"):
            return None
        return {"mealPlan": entry["mealPlan"], "prefs": entry.get("prefs")}

    def list_emails(self):
        return list(self._load()["emails"])


def save_plan(store: PlanStore, email: str, meal_plan: Optional[dict], prefs: Optional[dict]) -> Dict[str, bool]:
    """Wire-level save: {email, mealPlan, prefs} -> {success}."""
    try:
        return {"success": bool(store.save(email, meal_plan, prefs))}
    except StoreError:
        logger.exception("Saving plan for %s failed", email)
        return {"success": False}


def get_plan(store: PlanStore, email: str) -> Dict[str, Any]:
    """Wire-level lookup: {email} -> {exists, mealPlan?, prefs?}. Raises StoreError on backend failure."""
    found = store.get(email)
    if not found:
        return {"exists": False}
    return {"exists": True, "mealPlan": found["mealPlan"], "prefs": found.get("prefs")}


def create_plan_store(backend: Optional[str] = None) -> PlanStore:
    """Build the backend named by ``backend`` (defaults to PLAN_STORE_BACKEND)."""
    from threemeals.utilities.config import PLAN_STORE_BACKEND, REDIS_URL, DATABASE_URL
    name = (backend or PLAN_STORE_BACKEND).lower()
    if name == "json":
        return JsonPlanStore()
    if name == "redis":
        from threemeals.infra.Redis_Store import RedisPlanStore
        return RedisPlanStore(url=REDIS_URL)
    if name in ("sql", "sqlite", "postgres"):
        from threemeals.infra.Sql_Store import SqlPlanStore
        return SqlPlanStore(url=DATABASE_URL)
    raise ValueError(f"Unknown plan store backend: {name}")


__all__ = ["PlanStore", "JsonPlanStore", "create_plan_store", "save_plan", "get_plan", "email_key"]
