"""
Voyage Teams Backend: Membership Service Tests
===============================================

What we test:
    ✅ Identity resolves to the caller's membership in that team only
    ✅ Unknown caller / wrong team resolves to None and fails as BadRequest
    ✅ Team validator raises NotFoundError for a missing team
"""

import uuid

import pytest
from unittest.mock import MagicMock

from app.auth import AuthenticatedCaller
from app.exceptions import BadRequestError, ErrorKind, NotFoundError
from app.services.membership_service import MembershipService


class TestResolveMemberIdentity:
    def setup_method(self):
        self.service = MembershipService()

    @pytest.mark.asyncio
    async def test_member_resolves_to_membership_id(self, db_session, seed):
        member_id = await self.service.resolve_member_identity(db_session, seed.alice, seed.team_id)
        assert member_id == seed.alice_member_id

    @pytest.mark.asyncio
    async def test_member_of_other_team_is_absent(self, db_session, seed):
        """Dave belongs to the other team only."""
        member_id = await self.service.resolve_member_identity(db_session, seed.dave, seed.team_id)
        assert member_id is None

    @pytest.mark.asyncio
    async def test_unknown_user_is_absent(self, db_session, seed):
        member_id = await self.service.resolve_member_identity(
            db_session, seed.outsider, seed.team_id
        )
        assert member_id is None

    @pytest.mark.asyncio
    async def test_require_raises_bad_request_with_keys(self, mock_db_session):
        result = MagicMock()
        result.scalar_one_or_none.return_value = None
        mock_db_session.execute.return_value = result
        caller = AuthenticatedCaller(user_id=uuid.uuid4())

        with pytest.raises(BadRequestError, match="Invalid user or team id") as exc_info:
            await self.service.require_member_identity(mock_db_session, caller, 42)

        assert exc_info.value.kind is ErrorKind.BAD_REQUEST
        assert exc_info.value.context == {"user_id": str(caller.user_id), "team_id": 42}
        mock_db_session.add.assert_not_called()
        mock_db_session.flush.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_require_returns_member_id(self, mock_db_session):
        result = MagicMock()
        result.scalar_one_or_none.return_value = 7
        mock_db_session.execute.return_value = result

        member_id = await self.service.require_member_identity(
            mock_db_session, AuthenticatedCaller(user_id=uuid.uuid4()), 1
        )
        assert member_id == 7


class TestAssertTeamExists:
    def setup_method(self):
        self.service = MembershipService()

    @pytest.mark.asyncio
    async def test_existing_team_passes(self, db_session, seed):
        await self.service.assert_team_exists(db_session, seed.team_id)

    @pytest.mark.asyncio
    async def test_missing_team_raises_not_found(self, db_session, seed):
        with pytest.raises(NotFoundError, match=r"Team \(id: 999\) doesn't exist"):
            await self.service.assert_team_exists(db_session, 999)
