"""ProfileService: seeding and reading the reference profile directory."""

from __future__ import annotations

from prolink.domain.errors import InvalidArgumentError, NetworkError, NotFoundError
from prolink.domain.ids import is_valid_user_id
from prolink.services._helpers import now_iso
from prolink.services.base import BaseService
from prolink.services.result import ServiceResult
from prolink.services.telemetry import traced


class ProfileService(BaseService):
    """Registers profiles and returns their projections."""

    @traced
    def register(
        self,
        user_id: str,
        first_name: str,
        last_name: str,
        email: str,
        *,
        headline: str | None = None,
        avatar_url: str | None = None,
        location: str | None = None,
    ) -> ServiceResult:
        """Create a profile. Fails with ``CONFLICT`` on a duplicate id or email."""
        op = "register_profile"
        if not is_valid_user_id(user_id):
            return ServiceResult.failure(
                op, InvalidArgumentError(f"Invalid user id: {user_id!r}", detail={"user_id": user_id})
            )
        if not first_name.strip() or not email.strip():
            return ServiceResult.failure(
                op, InvalidArgumentError("First name and email are required")
            )

        try:
            with self._vault.transaction() as txn:
                profile = txn.profiles.register(
                    user_id,
                    first_name=first_name.strip(),
                    last_name=last_name.strip(),
                    email=email.strip(),
                    headline=headline,
                    avatar_url=avatar_url,
                    location=location,
                    created=now_iso(),
                )
        except NetworkError as exc:
            return ServiceResult.failure(op, exc)

        return ServiceResult(ok=True, op=op, data=profile.to_item())

    @traced
    def show(self, user_id: str) -> ServiceResult:
        """Profile projection for *user_id*, with its pending-invitation count."""
        op = "show_profile"
        with self._vault.snapshot() as view:
            profile = view.profiles.get_profile(user_id)
            pending = view.invitations.count_pending_for_recipient(user_id)

        if profile is None:
            return ServiceResult.failure(
                op, NotFoundError(f"Unknown user: {user_id}", detail={"user_id": user_id})
            )
        return ServiceResult(
            ok=True,
            op=op,
            data={**profile.to_item(), "pending_invitations_count": pending},
        )
