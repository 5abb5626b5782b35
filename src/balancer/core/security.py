"""Security utilities for the balancer.

This module provides passcode generation plus hashing and verification using
Argon2id. Hashing cost is selected per environment: production uses the
argon2-cffi defaults, development a cheap profile to keep login latency low.
"""

import re
import secrets
import string

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError

PASSCODE_LENGTH = 8
PASSCODE_ALPHABET = string.ascii_uppercase + string.digits

TEAM_NAME_MAX_LENGTH = 16
TEAM_NAME_PATTERN = re.compile(r"^[a-z0-9]([-a-z0-9])+[a-z0-9]$")
PASSCODE_PATTERN = re.compile(r"^[A-Z0-9]{8}$")

# Development profile (memory_cost in KiB)
DEV_TIME_COST = 1
DEV_MEMORY_COST = 1024


def is_valid_team_name(team: str) -> bool:
    return len(team) <= TEAM_NAME_MAX_LENGTH and TEAM_NAME_PATTERN.fullmatch(team) is not None


def is_valid_passcode(passcode: str) -> bool:
    return PASSCODE_PATTERN.fullmatch(passcode) is not None


def generate_passcode() -> str:
    """Generate an 8 character uppercase alphanumeric passcode (CSPRNG)."""
    return "".join(secrets.choice(PASSCODE_ALPHABET) for _ in range(PASSCODE_LENGTH))


def create_hasher(
    environment: str,
    time_cost: int | None = None,
    memory_cost: int | None = None,
) -> PasswordHasher:
    """Build a PasswordHasher for the environment, honoring explicit overrides."""
    if environment == "production":
        defaults = PasswordHasher()
        base_time, base_memory = defaults.time_cost, defaults.memory_cost
    else:
        base_time, base_memory = DEV_TIME_COST, DEV_MEMORY_COST

    return PasswordHasher(
        time_cost=time_cost or base_time,
        memory_cost=memory_cost or base_memory,
    )


def hash_passcode(hasher: PasswordHasher, passcode: str) -> str:
    """Hash a passcode using Argon2id."""
    return hasher.hash(passcode)


def verify_passcode(hasher: PasswordHasher, passcode: str, passcode_hash: str) -> bool:
    """Verify a passcode against its hash.

    A malformed stored hash counts as a mismatch.
    """
    try:
        hasher.verify(passcode_hash, passcode)
        return True
    except (VerificationError, InvalidHashError):
        return False


def secrets_equal(given: str, expected: str) -> bool:
    """Constant-time string comparison."""
    return secrets.compare_digest(given.encode(), expected.encode())
