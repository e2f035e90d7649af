import pytest

from fastapi_idm import InMemoryIdentityStore
from fastapi_idm.groups import (
    ancestors_inclusive,
    effective_membership_ancestry,
    find_group,
    group_path,
    is_member,
    resolve_group,
)
from fastapi_idm.roles import add_to_group, get_group, remove_from_group


class TestAncestors:
    def test_root_group_yields_itself(self, store: InMemoryIdentityStore) -> None:
        root = store.add_group("root")
        assert list(ancestors_inclusive(store, root)) == [root]

    def test_nested_group_yields_chain_to_root(self, store: InMemoryIdentityStore) -> None:
        a = store.add_group("a")
        b = store.add_group("b", a)
        c = store.add_group("c", b)
        assert list(ancestors_inclusive(store, c)) == [c, b, a]

    def test_restartable(self, store: InMemoryIdentityStore) -> None:
        a = store.add_group("a")
        b = store.add_group("b", a)
        assert list(ancestors_inclusive(store, b)) == list(ancestors_inclusive(store, b))

    def test_group_path(self, store: InMemoryIdentityStore) -> None:
        manager = store.add_group("manager")
        user = store.add_group("user", manager)
        assert group_path(store, manager) == "/manager"
        assert group_path(store, user) == "/manager/user"


class TestResolveGroup:
    @pytest.fixture
    def tree(self, store: InMemoryIdentityStore) -> dict[str, object]:
        admin = store.add_group("admin")
        manager = store.add_group("manager")
        user = store.add_group("user", manager)
        return {"admin": admin, "manager": manager, "user": user}

    def test_unknown_group(self, store: InMemoryIdentityStore) -> None:
        assert resolve_group(store, "bottle washer") is None

    @pytest.mark.parametrize(
        ("path", "expected"),
        [
            ("admin", "admin"),
            ("/admin", "admin"),
            ("/manager/", None),
            ("/manager", "manager"),
            ("manager", "manager"),
            ("user", None),
            ("/user", None),
            ("/manager/user", "user"),
            ("/", None),
            ("", None),
            ("/admin/user", None),
        ],
    )
    def test_paths(
        self,
        store: InMemoryIdentityStore,
        tree: dict[str, object],
        path: str,
        expected: str | None,
    ) -> None:
        resolved = resolve_group(store, path)
        if expected is None:
            assert resolved is None
        else:
            assert resolved == tree[expected]

    def test_get_group_resolves_path(self, store: InMemoryIdentityStore, tree: dict[str, object]) -> None:
        assert get_group(store, "/manager/user") == tree["user"]

    def test_explicit_parent(self, store: InMemoryIdentityStore, tree: dict[str, object]) -> None:
        assert find_group(store, "admin", None) == tree["admin"]
        assert find_group(store, "/admin", None) is None
        assert find_group(store, "manager", None) == tree["manager"]
        assert find_group(store, "user", tree["manager"]) == tree["user"]  # type: ignore[arg-type]
        assert find_group(store, "manager", tree["user"]) is None  # type: ignore[arg-type]
        assert find_group(store, "user", None) is None


class TestMembership:
    def test_upward_propagation(self, store: InMemoryIdentityStore) -> None:
        g1 = store.add_group("g1")
        g2 = store.add_group("g2")
        g3 = store.add_group("g3", g2)

        a1 = store.add_caller("a1")
        a2 = store.add_caller("a2")
        a3 = store.add_caller("a3")

        add_to_group(store, a1, g1)
        add_to_group(store, a2, g2)
        add_to_group(store, a3, g3)

        assert is_member(store, a1, g1) is True
        assert is_member(store, a2, g2) is True
        assert is_member(store, a1, g2) is False
        assert is_member(store, a2, g1) is False
        assert is_member(store, a3, g1) is False
        # Parent
        assert is_member(store, a3, g2) is True
        assert is_member(store, a3, g3) is True
        # Not downward into children
        assert is_member(store, a2, g3) is False

        remove_from_group(store, a1, g1)

        assert is_member(store, a1, g1) is False
        assert is_member(store, a2, g2) is True

    def test_effective_ancestry_unions_direct_groups(self, store: InMemoryIdentityStore) -> None:
        a = store.add_group("a")
        b = store.add_group("b", a)
        x = store.add_group("x")
        y = store.add_group("y", x)
        store.add_group("sibling", a)
        caller = store.add_caller("joe")

        add_to_group(store, caller, b)
        add_to_group(store, caller, y)

        assert effective_membership_ancestry(store, caller) == {a, b, x, y}

    def test_unknown_entities_are_not_members(self, store: InMemoryIdentityStore) -> None:
        g1 = store.add_group("g1")
        caller = store.add_caller("joe")
        assert is_member(store, None, g1) is False
        assert is_member(store, caller, None) is False
        assert is_member(store, caller, resolve_group(store, "/nope")) is False
