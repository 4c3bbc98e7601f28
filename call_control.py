"""
Call Control
Local implementation of the call-control collaborator: dial-pad staging,
the active call session, and JSON-persisted contacts, call logs and block list
"""

import json
import re
import threading
import time
import uuid
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import List, Optional

import config
from logger import setup_logger, log_info, log_warning

DIAL_KEYS = set('0123456789*#+')


def normalize_number(number):
    """Digits only (keeps a leading +) so formatted and raw numbers compare equal"""
    if not number:
        return ''
    number = number.strip()
    digits = re.sub(r'\D', '', number)
    return f"+{digits}" if number.startswith('+') and digits else digits


def _same_number(a, b):
    a, b = normalize_number(a).lstrip('+'), normalize_number(b).lstrip('+')
    if not a or not b:
        return False
    if a == b:
        return True
    # Only a leading country code may differ: "+1 (555) 123-4567" == "5551234567"
    short, long = sorted((a, b), key=len)
    return len(short) >= 10 and len(long) - len(short) <= 3 and long.endswith(short)


@dataclass
class Contact:
    name: str
    phone_number: str
    id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    favorite: bool = False
    last_called: Optional[float] = None


@dataclass
class CallLog:
    phone_number: str
    timestamp: float
    duration: int = 0  # seconds
    type: str = 'outgoing'  # incoming | outgoing | missed
    contact_id: Optional[str] = None
    name: Optional[str] = None
    id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])


@dataclass
class BlockedNumber:
    number: str
    blocked_at: Optional[float] = None


@dataclass
class CallSession:
    phone_number: str
    started_at: float
    name: Optional[str] = None
    contact_id: Optional[str] = None


class JsonStore:
    """List of records persisted as one JSON file"""

    def __init__(self, path, record_type):
        self.logger = setup_logger(__name__)
        self.path = Path(path) if path else None
        self.record_type = record_type

    def load(self):
        if self.path is None or not self.path.exists():
            return []
        try:
            with open(self.path, encoding='utf-8') as f:
                raw = json.load(f)
            return [self.record_type(**item) for item in raw]
        except (OSError, ValueError, TypeError) as e:
            log_warning(self.logger, f"{e}", f"Could not read {self.path}, starting empty")
            return []

    def save(self, records):
        if self.path is None:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix('.tmp')
        with open(tmp, 'w', encoding='utf-8') as f:
            json.dump([asdict(r) for r in records], f, indent=2)
        tmp.replace(self.path)


class ContactStore:
    def __init__(self, path=None):
        self._store = JsonStore(path, Contact)
        self.contacts: List[Contact] = self._store.load()

    def add(self, contact):
        self.contacts.append(contact)
        self._store.save(self.contacts)
        return contact

    def update(self, contact):
        self.contacts = [contact if c.id == contact.id else c for c in self.contacts]
        self._store.save(self.contacts)

    def delete(self, contact_id):
        self.contacts = [c for c in self.contacts if c.id != contact_id]
        self._store.save(self.contacts)

    def toggle_favorite(self, contact_id):
        for contact in self.contacts:
            if contact.id == contact_id:
                contact.favorite = not contact.favorite
        self._store.save(self.contacts)

    def find_by_name(self, fragment):
        """First contact whose name contains ``fragment`` (case-insensitive)"""
        fragment = (fragment or '').strip().lower()
        if not fragment:
            return None
        for contact in self.contacts:
            if fragment in contact.name.lower():
                return contact
        return None

    def find_by_number(self, number):
        for contact in self.contacts:
            if _same_number(contact.phone_number, number):
                return contact
        return None

    def touch(self, contact_id, when):
        for contact in self.contacts:
            if contact.id == contact_id:
                contact.last_called = when
        self._store.save(self.contacts)


class CallLogStore:
    """Call history, newest first"""

    def __init__(self, path=None):
        self._store = JsonStore(path, CallLog)
        self.call_logs: List[CallLog] = self._store.load()

    def add(self, log):
        self.call_logs.insert(0, log)
        self._store.save(self.call_logs)
        return log

    def delete(self, log_id):
        self.call_logs = [log for log in self.call_logs if log.id != log_id]
        self._store.save(self.call_logs)

    def clear(self):
        self.call_logs = []
        self._store.save(self.call_logs)

    def most_recent(self):
        return self.call_logs[0] if self.call_logs else None


class LocalCallControl:
    """
    Call-control collaborator backed by local stores

    Pass ``data_dir=None`` for a purely in-memory instance.
    """

    def __init__(self, data_dir=config.DATA_DIR):
        self.logger = setup_logger(__name__)
        data_dir = Path(data_dir) if data_dir else None
        self.contacts = ContactStore(data_dir / config.CONTACTS_FILE if data_dir else None)
        self.call_logs = CallLogStore(data_dir / config.CALL_LOGS_FILE if data_dir else None)
        self._blocked_store = JsonStore(data_dir / config.BLOCKED_FILE if data_dir else None, BlockedNumber)
        self.blocked: List[BlockedNumber] = self._blocked_store.load()
        self.session: Optional[CallSession] = None
        self._staged = ''
        self._lock = threading.RLock()

    # ------------------------------------------------------------------ reads

    def staged_number(self):
        return self._staged

    def find_contact_by_name(self, fragment):
        with self._lock:
            return self.contacts.find_by_name(fragment)

    def find_contact_by_number(self, number):
        with self._lock:
            return self.contacts.find_by_number(number)

    def most_recent_call(self):
        with self._lock:
            return self.call_logs.most_recent()

    def active_call_number(self):
        session = self.session
        return session.phone_number if session else None

    def is_blocked(self, number):
        return any(_same_number(number, entry.number) for entry in self.blocked)

    # ------------------------------------------------------------------ dial pad

    def press_key(self, key):
        if key not in DIAL_KEYS:
            raise ValueError(f"Not a dial pad key: {key!r}")
        with self._lock:
            self._staged += key
            return self._staged

    def set_number(self, number):
        with self._lock:
            self._staged = ''.join(ch for ch in number if ch in DIAL_KEYS)
            return self._staged

    def delete_last_digit(self):
        with self._lock:
            self._staged = self._staged[:-1]
            return self._staged

    def clear_number(self):
        with self._lock:
            self._staged = ''

    # ------------------------------------------------------------------ calls

    def dial(self, number):
        """Start a call session; an ongoing call is ended first"""
        with self._lock:
            if self.session is not None:
                self.hangup()
            contact = self.contacts.find_by_number(number)
            now = time.time()
            self.session = CallSession(
                phone_number=number,
                started_at=now,
                name=contact.name if contact else None,
                contact_id=contact.id if contact else None,
            )
            if contact:
                self.contacts.touch(contact.id, now)
            log_info(self.logger, f"Calling {contact.name + ' ' if contact else ''}{number}")
            return self.session

    def hangup(self):
        """End the active call and log it"""
        with self._lock:
            session = self.session
            if session is None:
                log_info(self.logger, "No active call to hang up")
                return None
            self.session = None
            log = self.call_logs.add(CallLog(
                phone_number=session.phone_number,
                timestamp=session.started_at,
                duration=int(time.time() - session.started_at),
                type='outgoing',
                contact_id=session.contact_id,
                name=session.name,
            ))
            log_info(self.logger, f"Call with {session.phone_number} ended after {log.duration}s")
            return log

    # ------------------------------------------------------------------ contacts

    def save_contact(self, number, suggested_name=None):
        with self._lock:
            existing = self.contacts.find_by_number(number)
            if existing:
                log_info(self.logger, f"{number} already saved as {existing.name}")
                return existing
            contact = self.contacts.add(Contact(name=suggested_name or f"Contact {number}", phone_number=number))
            log_info(self.logger, f"Saved contact {contact.name}: {number}")
            return contact

    def block(self, number):
        with self._lock:
            # Hang up before the block list is written
            if self.session and _same_number(self.session.phone_number, number):
                self.hangup()
            if not self.is_blocked(number):
                self.blocked.append(BlockedNumber(number, time.time()))
                self._blocked_store.save(self.blocked)
                log_info(self.logger, f"Blocked {number}")
