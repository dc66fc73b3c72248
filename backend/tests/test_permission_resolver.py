"""
权限解析器单元测试
"""
import pytest
from unittest.mock import AsyncMock, MagicMock

from app.core.exceptions import AccessCheckError, EntityStoreError
from app.models.dashboard import Dashboard
from app.models.dashboard_permission import DashboardPermission
from app.models.database_permission import DatabasePermission
from app.models.db_connection import DatabaseConnection
from app.services.permission_resolver import permission_resolver, permission_satisfies


@pytest.fixture
def dashboard(db, users):
    dashboard = Dashboard(name="Sales", created_by="alice")
    db.add(dashboard)
    db.commit()
    db.refresh(dashboard)
    return dashboard


@pytest.fixture
def connection(db, users):
    connection = DatabaseConnection(name="Demo", type="dummy", config="{}", created_by="alice")
    db.add(connection)
    db.commit()
    db.refresh(connection)
    return connection


def grant_dashboard(db, dashboard_id, entity_type, entity_id, permission):
    db.add(DashboardPermission(
        dashboard_id=dashboard_id, entity_type=entity_type, entity_id=str(entity_id), permission=permission
    ))
    db.commit()


def grant_database(db, database_id, entity_type, entity_id, permission):
    db.add(DatabasePermission(
        database_id=database_id, entity_type=entity_type, entity_id=str(entity_id), permission=permission
    ))
    db.commit()


class TestPermissionSatisfies:
    """测试权限满足规则"""

    @pytest.mark.parametrize("granted,required,expected", [
        ("view", "view", True),
        ("edit", "view", True),
        ("edit", "edit", True),
        ("view", "edit", False),
    ])
    def test_dashboard_edit_implies_view(self, granted, required, expected):
        assert permission_satisfies("dashboard", granted, required) is expected

    @pytest.mark.parametrize("granted,required,expected", [
        ("read", "read", True),
        ("write", "write", True),
        ("write", "read", False),
        ("read", "write", False),
    ])
    def test_database_requires_exact_match(self, granted, required, expected):
        assert permission_satisfies("database", granted, required) is expected


class TestGetUserGroups:
    """测试分组成员关系查询"""

    @pytest.mark.asyncio
    async def test_no_memberships_returns_empty_list(self, store, users):
        assert await permission_resolver.get_user_groups(store, user_id="bob") == []

    @pytest.mark.asyncio
    async def test_returns_memberships(self, store, users, make_group):
        team = make_group("team", ["bob"])
        memberships = await permission_resolver.get_user_groups(store, user_id="bob")
        assert [m.group_id for m in memberships] == [team.id]

    @pytest.mark.asyncio
    async def test_store_failure_raises_access_check_error(self):
        store = MagicMock()
        store.select = AsyncMock(side_effect=EntityStoreError("down"))
        with pytest.raises(AccessCheckError):
            await permission_resolver.get_user_groups(store, user_id="bob")


class TestCheckAccess:
    """测试访问权限检查"""

    @pytest.mark.asyncio
    async def test_direct_edit_grant_allows_view(self, db, store, dashboard):
        grant_dashboard(db, dashboard.id, "user", "bob", "edit")
        assert await permission_resolver.check_access(
            store, user_id="bob", resource_id=dashboard.id,
            resource_kind="dashboard", required_permission="view",
        )

    @pytest.mark.asyncio
    async def test_direct_view_grant_does_not_allow_edit(self, db, store, dashboard):
        grant_dashboard(db, dashboard.id, "user", "bob", "view")
        assert not await permission_resolver.check_access(
            store, user_id="bob", resource_id=dashboard.id,
            resource_kind="dashboard", required_permission="edit",
        )

    @pytest.mark.asyncio
    async def test_group_grant_applies_to_members(self, db, store, dashboard, make_group):
        team = make_group("team", ["bob"])
        grant_dashboard(db, dashboard.id, "group", team.id, "view")

        assert await permission_resolver.check_access(
            store, user_id="bob", resource_id=dashboard.id,
            resource_kind="dashboard", required_permission="view",
        )
        # carol 不在分组内
        assert not await permission_resolver.check_access(
            store, user_id="carol", resource_id=dashboard.id,
            resource_kind="dashboard", required_permission="view",
        )

    @pytest.mark.asyncio
    async def test_any_group_grant_is_enough(self, db, store, dashboard, make_group):
        readers = make_group("readers", ["bob"])
        editors = make_group("editors", ["bob"])
        grant_dashboard(db, dashboard.id, "group", readers.id, "view")
        grant_dashboard(db, dashboard.id, "group", editors.id, "edit")

        assert await permission_resolver.check_access(
            store, user_id="bob", resource_id=dashboard.id,
            resource_kind="dashboard", required_permission="edit",
        )

    @pytest.mark.asyncio
    async def test_grant_on_other_dashboard_does_not_leak(self, db, store, dashboard):
        other = Dashboard(name="Other", created_by="alice")
        db.add(other)
        db.commit()
        grant_dashboard(db, other.id, "user", "bob", "edit")

        assert not await permission_resolver.check_access(
            store, user_id="bob", resource_id=dashboard.id,
            resource_kind="dashboard", required_permission="view",
        )

    @pytest.mark.asyncio
    async def test_database_write_does_not_imply_read(self, db, store, connection):
        grant_database(db, connection.id, "user", "bob", "write")

        assert await permission_resolver.check_access(
            store, user_id="bob", resource_id=connection.id,
            resource_kind="database", required_permission="write",
        )
        assert not await permission_resolver.check_access(
            store, user_id="bob", resource_id=connection.id,
            resource_kind="database", required_permission="read",
        )

    @pytest.mark.asyncio
    async def test_creator_is_not_resolved_from_grant_table(self, store, dashboard):
        """创建者的隐式权限由调用方判断, 解析器只看授权表"""
        assert not await permission_resolver.check_access(
            store, user_id="alice", resource_id=dashboard.id,
            resource_kind="dashboard", required_permission="view",
        )

    @pytest.mark.asyncio
    async def test_store_failure_is_not_a_denial(self):
        store = MagicMock()
        store.select = AsyncMock(side_effect=EntityStoreError("down"))
        with pytest.raises(AccessCheckError):
            await permission_resolver.check_access(
                store, user_id="bob", resource_id=1,
                resource_kind="dashboard", required_permission="view",
            )


class TestListAccessibleDashboards:
    """测试可访问 Dashboard 枚举"""

    @pytest.mark.asyncio
    async def test_union_of_owned_direct_and_group(self, db, store, users, make_group):
        owned = Dashboard(name="Mine", created_by="bob")
        direct = Dashboard(name="Direct", created_by="alice")
        via_group = Dashboard(name="Group", created_by="alice")
        hidden = Dashboard(name="Hidden", created_by="alice")
        db.add_all([owned, direct, via_group, hidden])
        db.commit()

        team = make_group("team", ["bob"])
        grant_dashboard(db, direct.id, "user", "bob", "view")
        grant_dashboard(db, via_group.id, "group", team.id, "edit")
        # 同一个 Dashboard 同时被直接授权与分组授权, 结果只出现一次
        grant_dashboard(db, direct.id, "group", team.id, "view")

        ids = await permission_resolver.list_accessible_dashboards(store, user_id="bob")
        assert ids == {owned.id, direct.id, via_group.id}

    @pytest.mark.asyncio
    async def test_user_without_anything_gets_empty_set(self, store, users):
        assert await permission_resolver.list_accessible_dashboards(store, user_id="carol") == set()
