"""
Tests for applying PATCH operations to users and groups.
"""
import pytest
from scimcore.exceptions import InvalidPatch, InvalidValue, UnsupportedPatchPath
from scimcore.schemas import Email, Group, GroupMember, Name, PatchOperation, User
from scimcore.services.patch import PatchEngine, USER_PATCH_ATTRIBUTES, GROUP_PATCH_ATTRIBUTES


def op(kind, path=None, value=None):
    return PatchOperation(op=kind, path=path, value=value)


class TestUserPatch:

    @pytest.fixture
    def engine(self):
        return PatchEngine(USER_PATCH_ATTRIBUTES)

    @pytest.fixture
    def user(self):
        return User(
            id="2819c223-7f76-453a-919d-413861904646",
            user_name="bjensen",
            display_name="Babs Jensen",
            title="Engineer",
            name=Name(given_name="Barbara", family_name="Jensen"),
            emails=[
                Email(value="bjensen@contoso.com", type="work", primary=True),
                Email(value="babs@jensen.org", type="home"),
            ],
        )

    def test_replace_active(self, engine, user):
        patched = engine.apply(user, [op("replace", "active", False)])
        assert patched.active is False
        # The input is never mutated
        assert user.active is True

    def test_op_and_path_are_case_insensitive(self, engine, user):
        patched = engine.apply(user, [op("Replace", "DisplayName", "Barbara")])
        assert patched.display_name == "Barbara"

    def test_boolean_strings_are_accepted(self, engine, user):
        patched = engine.apply(user, [op("replace", "active", "False")])
        assert patched.active is False

    def test_type_mismatch(self, engine, user):
        with pytest.raises(InvalidValue):
            engine.apply(user, [op("replace", "active", "maybe")])
        with pytest.raises(InvalidValue):
            engine.apply(user, [op("replace", "title", {"not": "a string"})])

    def test_remove_clears_attribute(self, engine, user):
        patched = engine.apply(user, [op("remove", "title"), op("remove", "active")])
        assert patched.title is None
        assert patched.active is False

    def test_sub_attribute(self, engine, user):
        patched = engine.apply(user, [op("replace", "name.familyName", "Smith")])
        assert patched.name.family_name == "Smith"
        assert patched.name.given_name == "Barbara"

    def test_add_merges_complex_replace_overwrites(self, engine, user):
        added = engine.apply(user, [op("add", "name", {"middleName": "Jane"})])
        assert added.name.given_name == "Barbara"
        assert added.name.middle_name == "Jane"

        replaced = engine.apply(user, [op("replace", "name", {"givenName": "Babs"})])
        assert replaced.name.given_name == "Babs"
        assert replaced.name.family_name is None

    def test_pathless_replace(self, engine, user):
        patched = engine.apply(user, [op("replace", value={"displayName": "BJ", "active": False})])
        assert patched.display_name == "BJ"
        assert patched.active is False

    def test_pathless_remove_is_rejected(self, engine, user):
        with pytest.raises(InvalidPatch):
            engine.apply(user, [op("remove")])

    def test_schema_qualified_path(self, engine, user):
        patched = engine.apply(user, [op("replace", "urn:ietf:params:scim:schemas:core:2.0:User:title", "Lead")])
        assert patched.title == "Lead"

    def test_foreign_schema_path(self, engine, user):
        with pytest.raises(UnsupportedPatchPath):
            engine.apply(user, [op("replace", "urn:ietf:params:scim:schemas:extension:enterprise:2.0:User:department", "R&D")])

    def test_unknown_path(self, engine, user):
        with pytest.raises(UnsupportedPatchPath):
            engine.apply(user, [op("replace", "favoriteColor", "blue")])

    def test_id_is_not_patchable(self, engine, user):
        with pytest.raises(UnsupportedPatchPath):
            engine.apply(user, [op("replace", "id", "other")])

    def test_add_emails_skips_duplicates(self, engine, user):
        patched = engine.apply(user, [op("add", "emails", [
            {"value": "BJENSEN@contoso.com", "type": "work"},
            {"value": "barbara@contoso.com", "type": "other"},
        ])])
        assert [e.value for e in patched.emails] == [
            "bjensen@contoso.com", "babs@jensen.org", "barbara@contoso.com"
        ]

    def test_invalid_email(self, engine, user):
        with pytest.raises(InvalidValue):
            engine.apply(user, [op("add", "emails", [{"value": "not-an-email"}])])

    def test_filtered_replace(self, engine, user):
        patched = engine.apply(user, [op("replace", 'emails[type eq "work"].value', "barbara@contoso.com")])
        assert patched.emails[0].value == "barbara@contoso.com"
        assert patched.emails[0].primary is True
        assert patched.emails[1].value == "babs@jensen.org"

    def test_filtered_remove(self, engine, user):
        patched = engine.apply(user, [op("remove", 'emails[type eq "home"]')])
        assert [e.value for e in patched.emails] == ["bjensen@contoso.com"]

    def test_filtered_replace_without_match(self, engine, user):
        with pytest.raises(InvalidPatch):
            engine.apply(user, [op("replace", 'emails[type eq "other"].value', "x@contoso.com")])

    def test_second_primary_email_is_rejected(self, engine, user):
        with pytest.raises(InvalidValue):
            engine.apply(user, [op("replace", 'emails[type eq "home"].primary', "true")])

    def test_failure_leaves_input_untouched(self, engine, user):
        with pytest.raises(UnsupportedPatchPath):
            engine.apply(user, [op("replace", "title", "Lead"), op("replace", "favoriteColor", "blue")])
        assert user.title == "Engineer"


class TestGroupPatch:

    @pytest.fixture
    def engine(self):
        return PatchEngine(GROUP_PATCH_ATTRIBUTES)

    @pytest.fixture
    def group(self):
        return Group(
            id="e9e30dba-f08f-4109-8486-d5c6a331660a",
            display_name="Team A",
            members=[GroupMember(value="user-1", display="Alice")],
        )

    def test_add_members(self, engine, group):
        patched = engine.apply(group, [op("add", "members", [{"value": "user-2"}, {"value": "user-1"}])])
        assert [m.value for m in patched.members] == ["user-1", "user-2"]

    def test_remove_member_by_filter(self, engine, group):
        patched = engine.apply(group, [op("remove", 'members[value eq "user-1"]')])
        assert patched.members == []

    def test_remove_member_by_value(self, engine, group):
        patched = engine.apply(group, [op("remove", "members", [{"value": "user-1"}])])
        assert patched.members == []

    def test_remove_all_members(self, engine, group):
        patched = engine.apply(group, [op("remove", "members")])
        assert patched.members == []

    def test_replace_members(self, engine, group):
        patched = engine.apply(group, [op("replace", "members", [{"value": "user-3"}])])
        assert [m.value for m in patched.members] == ["user-3"]

    def test_rename(self, engine, group):
        patched = engine.apply(group, [op("replace", "displayName", "Team B")])
        assert patched.display_name == "Team B"

    def test_user_paths_are_unknown(self, engine, group):
        with pytest.raises(UnsupportedPatchPath):
            engine.apply(group, [op("replace", "active", False)])
