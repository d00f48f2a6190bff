"""
Waitlist storage for the landing page.

Signups live in an in-memory cache that mirrors one key of a durable
key-value store. Reads of the durable store never fail: anything missing or
unreadable loads as an empty waitlist.
"""
from __future__ import annotations

import itertools
import json
import logging
import threading
import time
import uuid
from datetime import datetime, timezone
from typing import Callable, Dict, List, Mapping, Optional, Union

from pydantic import ValidationError

from models import AddResult, WaitlistEntry, WaitlistSignup
from storage import KeyValueStorage

logger = logging.getLogger(__name__)

WAITLIST_KEY = "waitlist_v1"

SignupFields = Union[WaitlistSignup, Mapping[str, Optional[str]]]

_fallback_counter = itertools.count()


def normalize_email(email: str) -> str:
    """Comparison form of an email address. Never stored."""
    return email.strip().casefold()


def generate_id() -> str:
    try:
        return str(uuid.uuid4())
    except NotImplementedError:
        # No os.urandom on this platform
        return f"{int(time.time() * 1000)}-{next(_fallback_counter)}"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def encode_entries(entries: List[WaitlistEntry]) -> str:
    records = [
        entry.model_dump(mode="json", by_alias=True, exclude_none=True)
        for entry in entries
    ]
    return json.dumps(records, indent=2)


def decode_entries(payload: str) -> List[WaitlistEntry]:
    """
    Parse a stored payload back into entries, preserving order.

    Records that don't validate are skipped.

    Raises:
        ValueError: If the payload is not JSON or not a list
    """
    try:
        data = json.loads(payload)
    except RecursionError:
        raise ValueError("Payload is nested too deeply")
    if not isinstance(data, list):
        raise ValueError(f"Expected a list of entries, got {type(data).__name__}")

    entries = []
    for position, record in enumerate(data):
        try:
            entries.append(WaitlistEntry.model_validate(record))
        except ValidationError as e:
            logger.warning(f"Skipping unreadable waitlist record at {position}: {e.error_count()} errors")
    return entries


class WaitlistStore:
    """Single source of truth for signups, newest first"""

    def __init__(
        self,
        storage: KeyValueStorage,
        key: str = WAITLIST_KEY,
        id_factory: Optional[Callable[[], str]] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.storage = storage
        self.key = key
        self._id_factory = id_factory or generate_id
        self._clock = clock or _utcnow
        self._entries: List[WaitlistEntry] = []
        self._by_email: Dict[str, WaitlistEntry] = {}
        self._lock = threading.RLock()

    def load(self) -> List[WaitlistEntry]:
        """Replace the cache with what the durable store holds. Never raises."""
        entries = self._read()
        with self._lock:
            self._entries = []
            self._by_email = {}
            for entry in entries:
                normalized = normalize_email(entry.email)
                if normalized in self._by_email:
                    logger.warning(f"Dropping duplicate waitlist record {entry.id}")
                    continue
                self._entries.append(entry)
                self._by_email[normalized] = entry
            logger.info(f"Loaded {len(self._entries)} waitlist entries from {self.key}")
            return list(self._entries)

    def _read(self) -> List[WaitlistEntry]:
        try:
            payload = self.storage.get(self.key)
        except (OSError, ValueError) as e:
            logger.warning(f"Waitlist storage unavailable, starting empty: {e}")
            return []

        if payload is None:
            return []

        try:
            return decode_entries(payload)
        except ValueError as e:
            logger.warning(f"Waitlist payload under {self.key} is unreadable, starting empty: {e}")
            return []

    def count(self) -> int:
        return len(self._entries)

    def exists(self, email: str) -> bool:
        return normalize_email(email) in self._by_email

    def entries(self) -> List[WaitlistEntry]:
        """Copy of the cached entries, newest first"""
        return list(self._entries)

    def add(self, fields: SignupFields) -> WaitlistEntry:
        """
        Append a new signup and persist the whole waitlist.

        Does not validate the fields or check for an existing email; use
        add_if_absent for that.

        Raises:
            StorageWriteError: If the durable store rejects the write. The
                cache is rolled back, so nothing is added.
        """
        signup = self._coerce(fields)
        with self._lock:
            entry = self._build_entry(signup)
            normalized = normalize_email(entry.email)
            previous = self._by_email.get(normalized)

            self._entries.insert(0, entry)
            self._by_email[normalized] = entry
            try:
                self.storage.set(self.key, encode_entries(self._entries))
            except Exception:
                self._entries.pop(0)
                if previous is None:
                    del self._by_email[normalized]
                else:
                    self._by_email[normalized] = previous
                logger.error(f"Failed to persist waitlist entry {entry.id}, rolled back")
                raise

            logger.info(f"Added waitlist entry {entry.id} ({len(self._entries)} total)")
            return entry

    def add_if_absent(self, fields: SignupFields) -> AddResult:
        """Insert unless the normalized email is already on the list."""
        signup = self._coerce(fields)
        with self._lock:
            existing = self._by_email.get(normalize_email(signup.email))
            if existing is not None:
                return AddResult(inserted=False, entry=existing)
            return AddResult(inserted=True, entry=self.add(signup))

    @staticmethod
    def _coerce(fields: SignupFields) -> WaitlistSignup:
        if isinstance(fields, WaitlistSignup):
            return fields
        return WaitlistSignup.model_validate(dict(fields))

    def _build_entry(self, signup: WaitlistSignup) -> WaitlistEntry:
        created_at = self._clock()
        if created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=timezone.utc)
        if self._entries and created_at < self._entries[0].created_at:
            created_at = self._entries[0].created_at

        return WaitlistEntry(
            id=self._id_factory(),
            name=signup.name,
            email=signup.email,
            company=signup.company,
            role=signup.role,
            created_at=created_at,
        )
