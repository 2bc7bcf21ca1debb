"""Permission evaluator tests."""

import pytest

from roomshare.core.permissions import RoomPermissions, can_create_rooms, coerce_id
from roomshare.core.roles import RoomRole
from roomshare.schemas.room import Capabilities
from roomshare.schemas.user import ActingUser

from tests.conftest import (
    ADMIN_ID,
    CREATOR_ID,
    MEMBER_ID,
    OUTSIDER_ID,
    acting,
    make_file,
    make_member,
    make_room,
)


def _perms(room_details, user_id, role="user"):
    return RoomPermissions(room_details.room, room_details.members, acting(user_id, role))


class TestScenarios:

    def test_scenario_a_sole_creator(self):
        creator = make_member(7, "creator")
        perms = RoomPermissions(make_room(creator_id=7), [creator], acting(7))

        assert perms.is_creator is True
        assert perms.can_manage is True
        assert perms.can_leave(creator) is False

    def test_scenario_b_plain_member(self):
        member = make_member(9, "member")
        perms = RoomPermissions(
            make_room(creator_id=7), [make_member(7, "creator"), member], acting(9)
        )

        assert perms.is_creator is False
        assert perms.can_manage is False
        assert perms.can_leave(member) is True

    @pytest.mark.parametrize("acting_user", [None, ActingUser(id=None, role="user")])
    def test_scenario_e_missing_identity_denies_everything(self, room_details, room_files, acting_user):
        perms = RoomPermissions(room_details.room, room_details.members, acting_user)

        assert perms.capabilities() == Capabilities()
        assert perms.acting_room_role is None
        for member in room_details.members:
            assert perms.can_remove(member) is False
            assert perms.can_leave(member) is False
        for f in room_files:
            assert perms.can_change_visibility(f) is False

    @pytest.mark.parametrize(
        "room", [None, make_room(creator_id=None)], ids=["room-loading", "no-creator-id"]
    )
    @pytest.mark.parametrize("user_id", [ADMIN_ID, MEMBER_ID])
    def test_missing_room_identity_denies_everything(self, room_details, room_files, room, user_id):
        perms = RoomPermissions(room, room_details.members, acting(user_id))

        assert perms.capabilities() == Capabilities()
        for member in room_details.members:
            assert perms.can_remove(member) is False
            assert perms.can_leave(member) is False
        for f in room_files + [make_file(1, user_id)]:
            assert perms.can_change_visibility(f) is False


class TestIsCreator:

    @pytest.mark.parametrize("creator_id", [7, "7"])
    @pytest.mark.parametrize("user_id", [7, "7"])
    def test_string_and_number_ids_compare_numerically(self, creator_id, user_id):
        room = make_room(creator_id=creator_id)
        perms = RoomPermissions(room, [], ActingUser(id=user_id, role="user"))
        assert perms.is_creator is True

    def test_other_user_is_not_creator(self, room_details):
        assert _perms(room_details, OUTSIDER_ID).is_creator is False

    def test_room_without_creator_id_denies(self, room_details):
        room = make_room(creator_id=None)
        perms = RoomPermissions(room, room_details.members, acting(ADMIN_ID))
        assert perms.is_creator is False
        assert perms.can_manage is False
        assert perms.can_change_visibility(make_file(1, MEMBER_ID)) is False

    def test_creator_without_member_record_is_still_creator(self):
        perms = RoomPermissions(make_room(), [], acting(CREATOR_ID))
        assert perms.is_creator is True
        assert perms.acting_room_role is RoomRole.CREATOR


class TestCanManage:

    def test_room_admin_can_manage(self, room_details):
        perms = _perms(room_details, ADMIN_ID)
        assert perms.can_manage is True
        assert perms.can_manage_invite_codes is True
        assert perms.can_invite_by_email is True

    def test_admin_is_not_creator_for_settings_and_delete(self, room_details):
        perms = _perms(room_details, ADMIN_ID)
        assert perms.can_update_settings is False
        assert perms.can_delete_room is False

    def test_creator_has_every_room_flag(self, room_details):
        caps = _perms(room_details, CREATOR_ID).capabilities()
        assert all(caps.model_dump().values())

    def test_legacy_string_role_counts_as_admin(self):
        members = [make_member(CREATOR_ID, "creator"), make_member(ADMIN_ID, "ADMIN")]
        perms = RoomPermissions(make_room(), members, acting(ADMIN_ID))
        assert perms.can_manage is True

    def test_global_admin_gets_no_room_privilege(self, room_details):
        perms = _perms(room_details, OUTSIDER_ID, role="superadmin")
        assert perms.can_manage is False

    def test_member_with_unknown_role_cannot_manage(self):
        members = [make_member(CREATOR_ID, "creator"), make_member(MEMBER_ID, "owner")]
        perms = RoomPermissions(make_room(), members, acting(MEMBER_ID))
        assert perms.can_manage is False

    def test_records_from_another_room_are_ignored(self):
        members = [
            make_member(CREATOR_ID, "creator"),
            make_member(ADMIN_ID, "admin", room_id=99),
        ]
        perms = RoomPermissions(make_room(), members, acting(ADMIN_ID))
        assert perms.can_manage is False
        assert [m.user_id for m in perms.members] == [CREATOR_ID]


class TestRemoveAndLeave:

    def test_manager_can_remove_others_but_not_self(self, room_details):
        perms = _perms(room_details, ADMIN_ID)
        by_id = {m.user_id: m for m in room_details.members}
        assert perms.can_remove(by_id[MEMBER_ID]) is True
        assert perms.can_remove(by_id[CREATOR_ID]) is True
        assert perms.can_remove(by_id[ADMIN_ID]) is False

    def test_member_cannot_remove_anyone(self, room_details):
        perms = _perms(room_details, MEMBER_ID)
        assert not any(perms.can_remove(m) for m in room_details.members)

    @pytest.mark.parametrize("user_id", [CREATOR_ID, ADMIN_ID, MEMBER_ID])
    def test_creator_can_never_leave(self, room_details, user_id):
        creator = room_details.members[0]
        assert _perms(room_details, user_id).can_leave(creator) is False

    def test_creator_by_id_cannot_leave_even_with_stale_role(self):
        stale = make_member(CREATOR_ID, "member")
        perms = RoomPermissions(make_room(), [stale], acting(CREATOR_ID))
        assert perms.can_leave(stale) is False

    def test_only_self_can_leave(self, room_details):
        member = room_details.members[2]
        assert _perms(room_details, MEMBER_ID).can_leave(member) is True
        assert _perms(room_details, ADMIN_ID).can_leave(member) is False

    def test_admin_can_leave(self, room_details):
        admin = room_details.members[1]
        assert _perms(room_details, ADMIN_ID).can_leave(admin) is True


class TestChangeVisibility:

    def test_uploader_can_toggle_own_file(self, room_details):
        perms = _perms(room_details, MEMBER_ID)
        assert perms.can_change_visibility(make_file(1, MEMBER_ID)) is True
        assert perms.can_change_visibility(make_file(2, ADMIN_ID)) is False

    @pytest.mark.parametrize("user_id", [CREATOR_ID, ADMIN_ID])
    def test_room_managers_can_toggle_any_file(self, room_details, user_id):
        assert _perms(room_details, user_id).can_change_visibility(make_file(1, MEMBER_ID)) is True

    def test_global_admin_role_is_not_used(self, room_details):
        perms = _perms(room_details, OUTSIDER_ID, role="admin")
        assert perms.can_change_visibility(make_file(1, MEMBER_ID)) is False


class TestPurity:

    def test_repeated_evaluation_is_identical(self, room_details):
        first = _perms(room_details, ADMIN_ID)
        second = _perms(room_details, ADMIN_ID)
        assert first.capabilities() == first.capabilities() == second.capabilities()
        assert [first.can_remove(m) for m in room_details.members] == [
            second.can_remove(m) for m in room_details.members
        ]


class TestHelpers:

    @pytest.mark.parametrize(
        "value, expected",
        [(7, 7), ("7", 7), (" 12 ", 12), (7.0, 7), (7.5, None), (True, None), ("x", None), (None, None)],
    )
    def test_coerce_id(self, value, expected):
        assert coerce_id(value) == expected

    @pytest.mark.parametrize(
        "role, expected", [("user", False), ("admin", True), ("superadmin", True)]
    )
    def test_can_create_rooms(self, role, expected):
        assert can_create_rooms(acting(MEMBER_ID, role)) is expected

    def test_anonymous_cannot_create_rooms(self):
        assert can_create_rooms(None) is False
