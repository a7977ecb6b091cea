"""
Conversation Context Store.
Session-scoped conversation state with a sliding lifetime, kept in the session cache.
"""

import asyncio
import json
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, AsyncIterator, ClassVar, Dict, Optional, Union

from voice_commerce.config import get_settings
from voice_commerce.core.exceptions import SessionConflictException, SessionStoreException
from voice_commerce.services.cache import stored_version

logger = logging.getLogger(__name__)
settings = get_settings()


# =========================
# Product creation sub-state
# =========================

@dataclass(frozen=True)
class AwaitingName:
    """Guided creation started; waiting for the product name."""
    step: ClassVar[str] = "name"

    def to_dict(self) -> Dict[str, Any]:
        return {"step": self.step, "data": {}}


@dataclass(frozen=True)
class AwaitingCategory:
    """Name collected; waiting for the category."""
    name: str
    step: ClassVar[str] = "category"

    def to_dict(self) -> Dict[str, Any]:
        return {"step": self.step, "data": {"name": self.name}}


@dataclass(frozen=True)
class AwaitingPrice:
    """Name and category collected; waiting for the price."""
    name: str
    category: str
    step: ClassVar[str] = "price"

    def to_dict(self) -> Dict[str, Any]:
        return {"step": self.step, "data": {"name": self.name, "category": self.category}}


ProductCreationState = Union[AwaitingName, AwaitingCategory, AwaitingPrice]


def product_creation_from_dict(raw: Optional[Dict[str, Any]]) -> Optional[ProductCreationState]:
    """Rebuild the sub-state from its cached shape; malformed shapes are dropped."""
    if not raw:
        return None

    step = raw.get("step")
    data = raw.get("data") or {}

    if step == AwaitingName.step:
        return AwaitingName()
    if step == AwaitingCategory.step and data.get("name"):
        return AwaitingCategory(name=data["name"])
    if step == AwaitingPrice.step and data.get("name"):
        return AwaitingPrice(name=data["name"], category=data.get("category") or "other")

    logger.warning(f"Discarding malformed product creation state: {raw}")
    return None


class _Unchanged:
    """Marker for "leave this field as it is"."""

    def __repr__(self):
        return "UNCHANGED"


UNCHANGED = _Unchanged()


# =========================
# Conversation context
# =========================

@dataclass(frozen=True)
class ConversationContext:
    """
    Conversation scratch state for one session.

    Immutable: a processed turn produces the next value through `advance`.
    """
    session_id: str
    artisan_id: str
    started_at: datetime = field(default_factory=datetime.now)
    conversation_turn: int = 0
    last_intent: Optional[str] = None
    last_action: Optional[str] = None
    product_creation: Optional[ProductCreationState] = None
    language: Optional[str] = None
    version: int = 0

    def advance(
        self,
        intent: str,
        action: str,
        product_creation: Any = UNCHANGED,
        language: Optional[str] = None
    ) -> "ConversationContext":
        """Context after one successfully processed turn."""
        return replace(
            self,
            conversation_turn=self.conversation_turn + 1,
            last_intent=intent,
            last_action=action,
            product_creation=self.product_creation if product_creation is UNCHANGED else product_creation,
            language=language or self.language
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert context to its cached (camelCase) form."""
        return {
            "sessionId": self.session_id,
            "artisanId": self.artisan_id,
            "startedAt": self.started_at.isoformat(),
            "conversationTurn": self.conversation_turn,
            "lastIntent": self.last_intent,
            "lastAction": self.last_action,
            "productCreation": self.product_creation.to_dict() if self.product_creation else None,
            "language": self.language,
            "version": self.version
        }

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "ConversationContext":
        return cls(
            session_id=raw["sessionId"],
            artisan_id=raw["artisanId"],
            started_at=datetime.fromisoformat(raw["startedAt"]),
            conversation_turn=int(raw.get("conversationTurn", 0)),
            last_intent=raw.get("lastIntent"),
            last_action=raw.get("lastAction"),
            product_creation=product_creation_from_dict(raw.get("productCreation")),
            language=raw.get("language"),
            version=int(raw.get("version", 0))
        )

    def get_context_summary(self) -> str:
        """Generate a summary string for prompt injection."""
        parts = [f"Conversation turn: {self.conversation_turn}"]

        if self.last_intent:
            parts.append(f"Last intent: {self.last_intent}")

        if self.last_action:
            parts.append(f"Last action: {self.last_action}")

        if self.product_creation:
            parts.append(f"Guided product creation waiting for: {self.product_creation.step}")
            collected = self.product_creation.to_dict()["data"]
            if collected:
                parts.append(f"Collected so far: {json.dumps(collected, ensure_ascii=False)}")

        return "\n".join(parts)


class ConversationContextStore:
    """
    Reads and writes conversation contexts in the session cache.

    Contexts are created lazily on first reference and are never written by
    a read. Writes are whole-object, refresh the TTL, and carry an optimistic
    version check. `lock()` serializes turns of one session in this process.
    """

    KEY_PREFIX = "voice_context:"
    VERSION_FIELD = "version"

    def __init__(self, cache: Any, ttl_seconds: Optional[int] = None):
        self._cache = cache
        self._ttl = ttl_seconds or settings.SESSION_TTL_SECONDS
        self._locks: Dict[str, asyncio.Lock] = {}
        self._lock_refs: Dict[str, int] = {}

    def _key(self, session_id: str) -> str:
        return f"{self.KEY_PREFIX}{session_id}"

    async def get(self, session_id: str, artisan_id: str) -> ConversationContext:
        """Cached context, or a fresh unwritten one."""
        try:
            raw = await self._cache.get(self._key(session_id))
        except Exception as e:
            raise SessionStoreException(session_id, str(e))

        if raw:
            try:
                context = ConversationContext.from_dict(json.loads(raw))
            except (ValueError, KeyError, TypeError) as e:
                logger.warning(f"Corrupt context for session {session_id}, starting fresh: {e}")
                # The cache compares writes against whatever version the payload still holds
                return ConversationContext(
                    session_id=session_id,
                    artisan_id=artisan_id,
                    version=stored_version(raw, self.VERSION_FIELD)
                )
            else:
                if context.artisan_id == artisan_id:
                    return context

                # A session id reused by another artisan starts a new lifetime
                logger.warning(
                    f"Session {session_id} belongs to artisan {context.artisan_id}, "
                    f"restarting it for {artisan_id}"
                )
                return ConversationContext(
                    session_id=session_id,
                    artisan_id=artisan_id,
                    version=context.version
                )

        return ConversationContext(session_id=session_id, artisan_id=artisan_id)

    async def put(self, context: ConversationContext) -> ConversationContext:
        """
        Write the whole context with a sliding TTL.

        Fails with SessionConflictException when the cached version moved
        since `context` was read. Returns the context as written.
        """
        written = replace(context, version=context.version + 1)
        payload = json.dumps(written.to_dict(), ensure_ascii=False)

        try:
            ok, actual = await self._cache.set_if_version(
                self._key(context.session_id),
                payload,
                self._ttl,
                self.VERSION_FIELD,
                context.version
            )
        except Exception as e:
            raise SessionStoreException(context.session_id, str(e))

        if not ok:
            raise SessionConflictException(context.session_id, context.version, actual)

        return written

    async def delete(self, session_id: str):
        try:
            await self._cache.delete(self._key(session_id))
        except Exception as e:
            raise SessionStoreException(session_id, str(e))

    @asynccontextmanager
    async def lock(self, session_id: str) -> AsyncIterator[None]:
        """Hold the per-session lock for one read-modify-write cycle."""
        lock = self._locks.setdefault(session_id, asyncio.Lock())
        self._lock_refs[session_id] = self._lock_refs.get(session_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_refs[session_id] -= 1
            if self._lock_refs[session_id] == 0:
                del self._lock_refs[session_id]
                self._locks.pop(session_id, None)

    def active_locks(self) -> int:
        return len(self._locks)
