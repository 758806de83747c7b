"""
Identity Generation Module

Produces opaque identifiers for users and accounts. User IDs are 10
upper-case alphanumerics derived from 128 random bits; account IDs are
16-digit strings built from two random 8-digit numbers.
"""

from abc import ABC, abstractmethod
import base64
import random
import re
import uuid


USER_ID_LENGTH = 10
ACCOUNT_ID_PART_MIN = 10_000_000
ACCOUNT_ID_PART_MAX = 99_999_999

_NON_ALPHANUMERIC = re.compile(r"[^a-zA-Z0-9]")


def encode_user_id(raw: bytes) -> str:
    """
    Encode random bytes as a user ID.

    Returns an empty string when fewer than USER_ID_LENGTH alphanumeric
    characters survive encoding, so the caller can draw again.
    """
    encoded = base64.b64encode(raw).decode("ascii")
    alphanumeric = _NON_ALPHANUMERIC.sub("", encoded)
    if len(alphanumeric) < USER_ID_LENGTH:
        return ""
    return alphanumeric[:USER_ID_LENGTH].upper()


class IdentityGenerator(ABC):
    """Abstract source of user and account identifiers"""

    @abstractmethod
    def _random_bytes(self) -> bytes:
        """Return 16 random bytes"""
        pass

    @abstractmethod
    def _random_part(self) -> int:
        """Return an integer in [ACCOUNT_ID_PART_MIN, ACCOUNT_ID_PART_MAX]"""
        pass

    def new_user_id(self) -> str:
        """Generate a new user identifier"""
        user_id = ""
        while not user_id:
            user_id = encode_user_id(self._random_bytes())
        return user_id

    def new_account_id(self) -> str:
        """Generate a new 16-digit account identifier"""
        return f"{self._random_part()}{self._random_part()}"


class RandomIdentityGenerator(IdentityGenerator):
    """Production generator backed by the operating system's entropy source"""

    def __init__(self):
        self._rng = random.SystemRandom()

    def _random_bytes(self) -> bytes:
        return uuid.uuid4().bytes

    def _random_part(self) -> int:
        return self._rng.randint(ACCOUNT_ID_PART_MIN, ACCOUNT_ID_PART_MAX)


class SeededIdentityGenerator(IdentityGenerator):
    """Deterministic generator for tests; same seed yields the same sequence"""

    def __init__(self, seed: int = 0):
        self._rng = random.Random(seed)

    def _random_bytes(self) -> bytes:
        return self._rng.getrandbits(128).to_bytes(16, "big")

    def _random_part(self) -> int:
        return self._rng.randint(ACCOUNT_ID_PART_MIN, ACCOUNT_ID_PART_MAX)
