"""Credential verification for admin and team logins.

Every verification records exactly one outcome on the MetricsRecorder:
a login (admin/user) on success, a failed login (admin/user) otherwise.
Argon2 work runs in a worker thread so hashing cost never stalls the event loop.
"""

import asyncio

from argon2 import PasswordHasher

from balancer.app.config import AdminConfig
from balancer.app.metrics import LoginType, MetricsRecorder, UserType
from balancer.core.security import hash_passcode, secrets_equal, verify_passcode


class CredentialVerifier:
    """Checks admin secrets and team passcodes."""

    def __init__(
        self,
        admin: AdminConfig,
        hasher: PasswordHasher,
        metrics: MetricsRecorder,
    ) -> None:
        self._admin = admin
        self._hasher = hasher
        self._metrics = metrics

    def is_admin(self, team: str) -> bool:
        return team == self._admin.username

    def verify_admin(self, team: str, passcode: str) -> bool:
        """Exact match against the provisioned admin identity and secret."""
        name_ok = secrets_equal(team, self._admin.username)
        secret_ok = secrets_equal(passcode, self._admin.password)
        if name_ok and secret_ok:
            self._metrics.record_login(LoginType.LOGIN, UserType.ADMIN)
            return True
        self._metrics.record_failed_login(UserType.ADMIN)
        return False

    async def verify_team(self, passcode: str | None, passcode_hash: str) -> bool:
        """Verify a team passcode against the hash stored with its instance."""
        if passcode is not None and await asyncio.to_thread(
            verify_passcode, self._hasher, passcode, passcode_hash
        ):
            self._metrics.record_login(LoginType.LOGIN, UserType.USER)
            return True
        self._metrics.record_failed_login(UserType.USER)
        return False

    async def hash(self, passcode: str) -> str:
        return await asyncio.to_thread(hash_passcode, self._hasher, passcode)
