"""Organization invite lifecycle: create, list and accept."""

from datetime import UTC, datetime
from uuid import UUID

import structlog

from workday.core.auth.repository import AuthRepository
from workday.core.auth.tokens import generate_invite_token, get_invite_expiry
from workday.core.auth.types import SessionIdentity
from workday.core.entitlements.engine import EntitlementEngine, enforce_limit
from workday.core.entitlements.features import LimitKey
from workday.core.exceptions import Conflict, Forbidden, Gone, NotFound
from workday.core.orgs.service import OrganizationService, workspace_role_for
from workday.core.orgs.types import (
    InviteState,
    OrgInvite,
    OrgMember,
    OrgMemberStatus,
    OrgRole,
    PendingInvite,
)

logger = structlog.get_logger()


class InviteService:
    """Issues invites and moves them through pending -> accepted.

    Expiry is never stored; it is derived from the clock every time an
    invite is read.
    """

    def __init__(
        self,
        repo: AuthRepository,
        entitlements: EntitlementEngine,
        orgs: OrganizationService | None = None,
    ) -> None:
        """Initialize the service.

        Args:
            repo: Store holding invites and memberships.
            entitlements: Engine used for seat limits.
            orgs: Organization service used for role checks.
        """
        self._repo = repo
        self._entitlements = entitlements
        self._orgs = orgs or OrganizationService(repo, entitlements)

    async def create_invite(
        self,
        actor_id: UUID,
        org_id: UUID,
        email: str,
        role: OrgRole = OrgRole.MEMBER,
        now: datetime | None = None,
    ) -> OrgInvite:
        """Invite an email address into an organization.

        Args:
            actor_id: Inviting user, must be an org owner or admin.
            org_id: Organization to invite into.
            email: Invitee address, stored lower-cased.
            role: Org role granted on acceptance.
            now: Creation time, defaults to the current UTC time.

        Returns:
            The created invite including its token.

        Raises:
            Forbidden: If the actor is not an owner or admin.
            LimitReached: If members plus pending invites meet the limit.
        """
        await self._orgs.require_manager(org_id, actor_id)
        now = now or datetime.now(UTC)

        entitlements = await self._entitlements.compute(actor_id)
        usage = await self._entitlements.org_seat_usage(org_id, now)
        enforce_limit(entitlements, LimitKey.ORG_MEMBERS, usage)

        invite = await self._repo.create_invite(
            org_id=org_id,
            email=email.strip().lower(),
            role=role,
            token=generate_invite_token(),
            expires_at=get_invite_expiry(now),
        )
        logger.info(
            "org_invite_created",
            actor_id=str(actor_id),
            org_id=str(org_id),
            invite_id=str(invite.id),
            role=role.value,
        )
        return invite

    async def list_org_invites(self, actor_id: UUID, org_id: UUID) -> list[OrgInvite]:
        """List all invites of an organization. Active members only."""
        await self._orgs.require_active_member(org_id, actor_id)
        return await self._repo.list_org_invites(org_id)

    async def list_pending_invites(
        self,
        identity: SessionIdentity,
        now: datetime | None = None,
    ) -> list[PendingInvite]:
        """List unaccepted, unexpired invites addressed to the caller's email."""
        now = now or datetime.now(UTC)
        return await self._repo.list_pending_invites_for_email(identity.email.lower(), now)

    async def accept_invite(
        self,
        identity: SessionIdentity,
        token: str,
        now: datetime | None = None,
    ) -> OrgMember:
        """Accept an invite on behalf of the session user.

        Guards run in a fixed order so each failure is distinguishable:
        missing, already accepted, expired, then addressed to someone else.
        Every write is idempotent, so a retry after a partial failure
        converges to the same end state.

        Args:
            identity: Verified session identity of the accepting user.
            token: Invite token.
            now: Acceptance time, defaults to the current UTC time.

        Returns:
            The accepting user's org membership.

        Raises:
            NotFound: If no invite has this token.
            Conflict: If the invite was already accepted, also when a
                concurrent accept of the same token stamped it first.
            Gone: If the invite has expired.
            Forbidden: If the invite is addressed to a different email.
            LimitReached: If the org owner's member limit is met. Without an
                owner the accepting user's plan applies.
        """
        now = now or datetime.now(UTC)

        invite = await self._repo.get_invite_by_token(token)
        if invite is None:
            raise NotFound("Invite not found.")

        state = invite.state(now)
        if state == InviteState.ACCEPTED:
            raise Conflict("Invite already accepted.")
        if state == InviteState.EXPIRED:
            raise Gone("Invite expired.")
        if invite.email.lower() != identity.email.lower():
            logger.warning(
                "org_invite_email_mismatch",
                user_id=str(identity.user_id),
                invite_id=str(invite.id),
            )
            raise Forbidden("Invite email does not match.")

        await self._check_seat_limit(invite, identity.user_id)

        async with self._repo.transaction():
            member = await self._repo.upsert_org_member(
                invite.org_id,
                identity.user_id,
                invite.role,
                OrgMemberStatus.ACTIVE,
            )
            default_workspace = await self._repo.get_default_org_workspace(invite.org_id)
            if default_workspace is not None:
                await self._repo.add_membership(
                    identity.user_id,
                    default_workspace.id,
                    workspace_role_for(invite.role),
                )
            if not await self._repo.mark_invite_accepted(invite.id, now):
                raise Conflict("Invite already accepted.")

        logger.info(
            "org_invite_accepted",
            user_id=str(identity.user_id),
            org_id=str(invite.org_id),
            invite_id=str(invite.id),
            role=invite.role.value,
        )
        return member

    async def _check_seat_limit(self, invite: OrgInvite, user_id: UUID) -> None:
        existing = await self._repo.get_org_member(invite.org_id, user_id)
        if existing is not None and existing.is_active:
            return

        owner = await self._repo.get_org_owner(invite.org_id)
        limit_holder = owner.user_id if owner is not None else user_id

        entitlements = await self._entitlements.compute(limit_holder)
        usage = await self._repo.count_active_org_members(invite.org_id)
        enforce_limit(entitlements, LimitKey.ORG_MEMBERS, usage)
