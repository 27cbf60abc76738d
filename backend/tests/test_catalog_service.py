"""
Voyage Teams Backend: Catalog Reader and User Profile Tests
============================================================

What we test:
    ✅ Every category is listed, each with only the requesting team's items
    ✅ Items carry is_selected and voters in voting order
    ✅ Missing team → NotFoundError
    ✅ /users/me profile lists memberships; unknown user → NotFoundError
    ✅ User lookups: list all, by id (malformed → BadRequestError), by email
"""

import pytest

from app.exceptions import BadRequestError, NotFoundError
from app.services.catalog_service import CatalogService
from app.services.user_service import UserService


class TestListCatalog:
    def setup_method(self):
        self.service = CatalogService()

    @pytest.mark.asyncio
    async def test_all_categories_listed_when_team_has_no_items(self, db_session, seed):
        catalog = await self.service.list_catalog(db_session, seed.team_id)

        assert [c.name for c in catalog] == ["Frontend", "Backend", "Database"]
        assert all(c.items == [] for c in catalog)

    @pytest.mark.asyncio
    async def test_items_are_scoped_to_team(self, db_session, seed, make_item):
        ours = await make_item(seed.team_id, seed.frontend_id, "React", [seed.alice_member_id])
        await make_item(seed.other_team_id, seed.frontend_id, "React", [seed.dave_member_id])

        catalog = await self.service.list_catalog(db_session, seed.team_id)

        frontend = next(c for c in catalog if c.id == seed.frontend_id)
        assert [item.id for item in frontend.items] == [ours]

    @pytest.mark.asyncio
    async def test_items_carry_voters_and_selection(self, db_session, seed, make_item):
        item_id = await make_item(
            seed.team_id,
            seed.database_id,
            "PostgreSQL",
            [seed.bob_member_id, seed.alice_member_id],
            is_selected=True,
        )

        catalog = await self.service.list_catalog(db_session, seed.team_id)

        database = next(c for c in catalog if c.id == seed.database_id)
        (item,) = database.items
        assert item.id == item_id
        assert item.is_selected is True
        assert [v.first_name for v in item.voters] == ["Bob", "Alice"]
        assert item.voters[0].team_member_id == seed.bob_member_id
        assert item.voters[0].user_id == seed.bob.user_id
        assert item.voters[0].avatar == "https://avatars.example.com/bob.png"

    @pytest.mark.asyncio
    async def test_missing_team(self, db_session, seed):
        with pytest.raises(NotFoundError, match=r"Team \(id: 999\) doesn't exist"):
            await self.service.list_catalog(db_session, 999)


class TestPrivateProfile:
    def setup_method(self):
        self.service = UserService()

    @pytest.mark.asyncio
    async def test_profile_lists_memberships(self, db_session, seed):
        profile = await self.service.get_private_profile(db_session, seed.alice)

        assert profile.id == seed.alice.user_id
        assert profile.email == "alice@example.com"
        assert [(t.team_id, t.team_name, t.member_id) for t in profile.voyage_teams] == [
            (seed.team_id, "tier3-team-01", seed.alice_member_id)
        ]

    @pytest.mark.asyncio
    async def test_unknown_user(self, db_session, seed):
        with pytest.raises(NotFoundError):
            await self.service.get_private_profile(db_session, seed.outsider)


class TestUserLookups:
    def setup_method(self):
        self.service = UserService()

    @pytest.mark.asyncio
    async def test_list_users(self, db_session, seed):
        users = await self.service.list_users(db_session)

        assert sorted(u.email for u in users) == [
            "alice@example.com",
            "bob@example.com",
            "carol@example.com",
            "dave@example.com",
        ]
        dave = next(u for u in users if u.email == "dave@example.com")
        assert [t.team_id for t in dave.voyage_teams] == [seed.other_team_id]

    @pytest.mark.asyncio
    async def test_by_id(self, db_session, seed):
        user = await self.service.get_user_by_id(db_session, str(seed.bob.user_id))

        assert user.email == "bob@example.com"
        assert user.voyage_teams[0].member_id == seed.bob_member_id

    @pytest.mark.asyncio
    async def test_malformed_id_is_bad_request(self, db_session, seed):
        with pytest.raises(BadRequestError, match="abc is not a valid UUID."):
            await self.service.get_user_by_id(db_session, "abc")

    @pytest.mark.asyncio
    async def test_unknown_id_is_not_found(self, db_session, seed):
        with pytest.raises(NotFoundError):
            await self.service.get_user_by_id(db_session, str(seed.outsider.user_id))

    @pytest.mark.asyncio
    async def test_by_email_ignores_case(self, db_session, seed):
        user = await self.service.get_user_by_email(db_session, "Carol@Example.com")

        assert user.id == seed.carol.user_id

    @pytest.mark.asyncio
    async def test_unknown_email_is_not_found(self, db_session, seed):
        with pytest.raises(NotFoundError, match="User not found"):
            await self.service.get_user_by_email(db_session, "nobody@example.com")
