"""
Token registry: associates the device's delivery token with a user.

A signed-in save merges ``fcm_token`` onto the user's Profile. Without a
signed-in user the token is upserted into PendingDeviceToken, keyed by the
token value, so it can be reconciled once an identity is known.

Every public method is fire-and-forget for its caller: failures are
written to the audit log and returned as ServiceResult failures, never
raised.

Usage:
    from notifications.tokens import TokenRegistry

    registry = TokenRegistry(transport, identity, audit, analytics)
    token = registry.retrieve_current_token()
    if token:
        registry.save_token(token)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from django.db import DatabaseError

from authentication.models import Profile
from core.services import BaseService, ServiceResult
from notifications.analytics import mask_token
from notifications.constants import SYSTEM_USER, UNKNOWN_USER, AuditStep
from notifications.exceptions import StorageWriteError, TransportUnavailableError
from notifications.models import AuditStatus, PendingDeviceToken

if TYPE_CHECKING:
    from authentication.models import User
    from notifications.analytics import NotificationAnalytics
    from notifications.audit import AuditLogWriter
    from notifications.identity import IdentitySource
    from notifications.transport import PushTransport


class TokenRegistry(BaseService):
    """
    Delivery token lifecycle.

    Attributes:
        transport: Source of the current token
        identity: Source of the signed-in user
        audit: Audit log writer
        analytics: Error/analytics sink (optional)

    Thread Safety:
        Keeps no mutable state. Writes are an update_or_create on the
        user's profile or on the unique token key.
    """

    def __init__(
        self,
        transport: PushTransport,
        identity: IdentitySource,
        audit: AuditLogWriter,
        analytics: NotificationAnalytics | None = None,
    ):
        self.transport = transport
        self.identity = identity
        self.audit = audit
        self.analytics = analytics

    # -------------------------------------------------------------------------
    # Retrieval
    # -------------------------------------------------------------------------

    def retrieve_current_token(self) -> str | None:
        """
        Ask the transport for the active token.

        Returns None when there is no token yet or the transport cannot be
        reached (audited as token_retrieval_failed).
        """
        try:
            token = self.transport.get_token()
        except Exception as exc:
            if not isinstance(exc, TransportUnavailableError):
                exc = TransportUnavailableError(str(exc) or exc.__class__.__name__)
            self.get_logger().warning(f"Could not retrieve push token: {exc.message}")
            self.audit.record(
                AuditStep.TOKEN_RETRIEVAL_FAILED,
                target_user_id=self._current_user_id(),
                status=AuditStatus.ERROR,
                info=exc.message,
            )
            return None

        if not token:
            self.get_logger().info("Push transport has no token yet")
            return None

        if self.analytics is not None:
            self.analytics.record_token(token)
        self.audit.record(
            AuditStep.TOKEN_RECEIVED,
            target_user_id=self._current_user_id(),
            status=AuditStatus.SUCCESS,
            info=mask_token(token),
        )
        return token

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def save_token(self, token: str) -> ServiceResult[str]:
        """
        Persist a token for the current identity, or as pending.

        Returns:
            ServiceResult with "saved" or "pending" on success
        """
        if not token:
            return ServiceResult.failure("Empty token", error_code="EMPTY_TOKEN")

        user = None
        # Until the identity is known a failure is attributed to the system
        target_user_id = SYSTEM_USER
        try:
            user = self.identity.current_user()
            target_user_id = user.identity if user is not None else UNKNOWN_USER
            if user is not None:
                self._save_for_user(user, token)
            else:
                self._save_pending(token)
        except Exception as exc:
            error = exc if isinstance(exc, StorageWriteError) else StorageWriteError(
                f"Token save failed: {exc}",
                details={"token": mask_token(token)},
            )
            self.audit.record(
                AuditStep.TOKEN_SAVE_FAILED,
                target_user_id=target_user_id,
                status=AuditStatus.ERROR,
                info=str(exc) or exc.__class__.__name__,
            )
            return self.handle_exception(
                error, context=f"Failed to save push token {mask_token(token)}"
            )

        if user is not None:
            self.audit.record(
                AuditStep.TOKEN_SAVED,
                target_user_id=user.identity,
                status=AuditStatus.SUCCESS,
                info=mask_token(token),
            )
            return ServiceResult.success("saved")

        self.audit.record(
            AuditStep.TOKEN_PENDING_SAVED,
            target_user_id=UNKNOWN_USER,
            status=AuditStatus.SUCCESS,
            info=mask_token(token),
        )
        return ServiceResult.success("pending")

    def _save_for_user(self, user: User, token: str) -> None:
        try:
            with self.atomic():
                # Only fcm_token is written; other profile columns are untouched
                Profile.objects.update_or_create(user=user, defaults={"fcm_token": token})
                superseded = PendingDeviceToken.objects.filter(
                    token=token,
                    associated=False,
                ).update(owner=user, associated=True)
        except DatabaseError as exc:
            raise StorageWriteError(
                f"Could not store token for user {user.identity}: {exc}",
                details={"user_id": user.identity},
            ) from exc

        self.get_logger().info(
            f"Saved push token {mask_token(token)} for user {user.identity}"
            + (f" (superseded {superseded} pending)" if superseded else "")
        )

    def _save_pending(self, token: str) -> None:
        try:
            PendingDeviceToken.objects.update_or_create(
                token=token,
                defaults={"associated": False},
            )
        except DatabaseError as exc:
            raise StorageWriteError(
                f"Could not store pending token: {exc}",
                details={"token": mask_token(token)},
            ) from exc

        self.get_logger().info(f"Saved pending push token {mask_token(token)}")

    # -------------------------------------------------------------------------
    # Lifecycle hooks
    # -------------------------------------------------------------------------

    def on_identity_change(self, user: User | None) -> None:
        """
        React to sign-in/sign-out.

        On sign-in the current token is fetched again and saved, which
        associates a token obtained before the user was known. Sign-out
        leaves tokens alone.
        """
        if user is None:
            self.get_logger().debug("Signed out; push token left untouched")
            return

        token = self.retrieve_current_token()
        if token:
            self.save_token(token)

    def on_token_refresh(self, token: str) -> None:
        """Save a rotated token, whoever is signed in."""
        self.get_logger().info(f"Push token refreshed: {mask_token(token)}")
        self.save_token(token)

    @staticmethod
    def pending_tokens():
        """Tokens still waiting for an identity."""
        return PendingDeviceToken.objects.filter(associated=False)

    def _current_user_id(self) -> str:
        try:
            user = self.identity.current_user()
        except Exception:
            self.get_logger().debug("Identity lookup failed", exc_info=True)
            return SYSTEM_USER
        return user.identity if user is not None else UNKNOWN_USER
