"""Open-addressing table that maps FT8/FT4 callsign hashes back to callsigns."""

import logging
from dataclasses import dataclass
from enum import Enum

TABLE_SIZE = 256
MAX_CALLSIGN = 11
HASH_MASK = 0x3FFFFF
_AGE_SHIFT = 24

log = logging.getLogger(__name__)


class HashType(Enum):
    """Width of a callsign hash as carried in a message; value is its shift."""

    HASH_22_BITS = 0
    HASH_12_BITS = 10
    HASH_10_BITS = 12


@dataclass
class _Slot:
    callsign: str = ""
    hash: int = 0  # top 8 bits: age, low 22 bits: hash value

    def clear(self):
        self.callsign = ""
        self.hash = 0


class CallsignHashTable:
    """Remembers recently heard callsigns by their 22-bit hash.

    Entries age on every ``cleanup`` and are dropped once they are older
    than the given limit; hearing a callsign again makes it young again.
    """

    def __init__(self):
        self._slots = [_Slot() for _ in range(TABLE_SIZE)]
        self._size = 0

    def __len__(self):
        return self._size

    @staticmethod
    def _start_index(hash10):
        return (hash10 * 23) % TABLE_SIZE

    def add(self, callsign, hash_value):
        """Store ``callsign`` under its 22-bit ``hash_value``."""
        if not 0 <= hash_value <= HASH_MASK:
            raise ValueError(f"hash {hash_value!r} is not a 22-bit value")
        if not callsign:
            raise ValueError("callsign must not be empty")
        callsign = callsign[:MAX_CALLSIGN]
        idx = self._start_index((hash_value >> 12) & 0x3FF)
        for _ in range(TABLE_SIZE):
            slot = self._slots[idx]
            if not slot.callsign:
                slot.callsign = callsign
                slot.hash = hash_value
                self._size += 1
                return
            if (slot.hash & HASH_MASK) == hash_value and slot.callsign == callsign:
                slot.hash &= HASH_MASK
                log.debug("Found a duplicate [%s]", callsign)
                return
            log.debug("Hash table clash!")
            idx = (idx + 1) % TABLE_SIZE
        raise OverflowError("callsign hash table is full")

    def lookup(self, hash_type, hash_value):
        """Return the callsign stored for a hash of the given width, or None."""
        shift = HashType(hash_type).value
        idx = self._start_index((hash_value >> (12 - shift)) & 0x3FF)
        for _ in range(TABLE_SIZE):
            slot = self._slots[idx]
            if not slot.callsign:
                return None
            if ((slot.hash & HASH_MASK) >> shift) == hash_value:
                return slot.callsign
            idx = (idx + 1) % TABLE_SIZE
        return None

    def cleanup(self, max_age):
        """Drop entries older than ``max_age`` and age the rest by one."""
        for slot in self._slots:
            if not slot.callsign:
                continue
            age = (slot.hash >> _AGE_SHIFT) & 0xFF
            if age > max_age:
                log.info("Removing [%s] from hash table, age = %d", slot.callsign, age)
                slot.clear()
                self._size -= 1
            else:
                slot.hash = (((age + 1) & 0xFF) << _AGE_SHIFT) | (slot.hash & HASH_MASK)