import json
import logging
import time
from datetime import timedelta
from typing import Dict, Optional, Tuple

import redis
from pydantic import ValidationError

from models.schemas import (
    FeedbackAction,
    HistoryEntry,
    PreferenceState,
    QueryFilters,
    SessionState,
)

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 60 * 60 * 24
DEFAULT_MAX_HISTORY = 15


class InvalidFeedbackAction(ValueError):
    """Raised for feedback actions other than like, dislike, save, remove-save"""

    def __init__(self, action):
        super().__init__(f"Unsupported feedback action: {action!r}")
        self.action = action


class InMemoryStore:
    """Stand-in for Redis get/setex/delete when no server is configured.

    Expiry is absolute from the last write and checked lazily on read.
    """

    def __init__(self, clock=time.monotonic):
        self._data: Dict[str, Tuple[str, float]] = {}
        self._clock = clock

    def get(self, key: str) -> Optional[str]:
        item = self._data.get(key)
        if item is None:
            return None
        value, expires_at = item
        if self._clock() >= expires_at:
            del self._data[key]
            return None
        return value

    def setex(self, key: str, ttl, value: str) -> bool:
        seconds = ttl.total_seconds() if isinstance(ttl, timedelta) else float(ttl)
        self._data[key] = (value, self._clock() + seconds)
        return True

    def delete(self, key: str) -> int:
        return 1 if self._data.pop(key, None) is not None else 0


def connect_store(redis_url: Optional[str]):
    """Return a Redis client for redis_url, or an in-memory store when unset or unreachable"""
    if not redis_url:
        logger.info("💾 Using in-memory session storage (no Redis URL provided)")
        return InMemoryStore()

    try:
        client = redis.from_url(
            redis_url,
            decode_responses=True,
            socket_connect_timeout=5,
            socket_timeout=5,
        )
        client.ping()
        logger.info("✅ Connected to Redis for session management")
        return client
    except redis.RedisError as e:
        logger.warning(f"⚠️ Redis connection failed, using in-memory storage: {e}")
        return InMemoryStore()


class SessionManager:
    """Owns SessionState: load, save, and the pure preference/history updates"""

    def __init__(self, store, ttl_seconds: int = DEFAULT_TTL_SECONDS,
                 max_history: int = DEFAULT_MAX_HISTORY):
        self.store = store
        self.ttl = timedelta(seconds=ttl_seconds)
        self.max_history = max_history

    @staticmethod
    def _key(session_id: str) -> str:
        return f"session:{session_id}"

    def load(self, session_id: str) -> SessionState:
        """Stored state for session_id, or a fresh default state.

        Store read errors and corrupt payloads are logged and treated as a miss.
        """
        try:
            raw = self.store.get(self._key(session_id))
        except (redis.RedisError, UnicodeDecodeError) as e:
            logger.error(f"Session retrieval error for {session_id}: {e}")
            return SessionState()

        if not raw:
            return SessionState()

        try:
            return SessionState.model_validate(json.loads(raw))
        except (json.JSONDecodeError, UnicodeDecodeError, ValidationError) as e:
            logger.error(f"Failed to parse session state for {session_id}, resetting: {e}")
            return SessionState()

    def save(self, session_id: str, state: SessionState) -> SessionState:
        """Persist state, restarting the expiry window"""
        data = json.dumps(state.to_wire())
        self.store.setex(self._key(session_id), self.ttl, data)
        return state

    def clear(self, session_id: str):
        self.store.delete(self._key(session_id))

    def apply_filters(self, state: SessionState, filters: Optional[QueryFilters]) -> SessionState:
        """Fold a turn's brand, color, material and budget into preferences.

        Returns a new state; the input is left untouched.
        """
        if filters is None:
            return state.model_copy(deep=True)

        prefs = state.preferences.model_copy(deep=True)

        if filters.brand:
            _append_unique(prefs.liked_brands, filters.brand.lower())
        if filters.color:
            _append_unique(prefs.colors, filters.color.lower())
        if filters.material:
            _append_unique(prefs.materials, filters.material.lower())
        if filters.budget:
            # Each bound is replaced only when the new turn supplies it
            if filters.budget.min is not None:
                prefs.price_range.min = filters.budget.min
            if filters.budget.max is not None:
                prefs.price_range.max = filters.budget.max

        return SessionState(
            preferences=prefs,
            history=[entry.model_copy(deep=True) for entry in state.history],
        )

    def apply_feedback(self, state: SessionState, product_id: str, action: str) -> SessionState:
        """Apply one like/dislike/save/remove-save action; returns a new state"""
        try:
            action = FeedbackAction(action)
        except ValueError:
            raise InvalidFeedbackAction(action) from None

        updated = state.model_copy(deep=True)
        prefs: PreferenceState = updated.preferences

        if action is FeedbackAction.LIKE:
            _append_unique(prefs.liked_product_ids, product_id)
            _remove(prefs.disliked_product_ids, product_id)
        elif action is FeedbackAction.DISLIKE:
            _append_unique(prefs.disliked_product_ids, product_id)
            _remove(prefs.liked_product_ids, product_id)
            _remove(prefs.saved_product_ids, product_id)
        elif action is FeedbackAction.SAVE:
            _append_unique(prefs.saved_product_ids, product_id)
        elif action is FeedbackAction.REMOVE_SAVE:
            _remove(prefs.saved_product_ids, product_id)

        return updated

    def record_turn(self, state: SessionState, entry: HistoryEntry) -> SessionState:
        """Append a history entry, keeping only the most recent max_history"""
        state.history = (state.history + [entry])[-self.max_history:]
        return state


def _append_unique(values, value):
    if value not in values:
        values.append(value)


def _remove(values, value):
    while value in values:
        values.remove(value)
