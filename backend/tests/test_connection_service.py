"""
数据库连接业务服务测试
"""
import json

import pytest

from app.core.exceptions import AccessDenied, ResourceNotFound, UnsupportedDataSource, ValidationError
from app.models.database_permission import DatabasePermission
from app.models.db_connection import DatabaseConnection
from app.schemas.connection import ConnectionCreate, ConnectionUpdate
from app.schemas.permission import PermissionGrantIn
from app.services.connection_service import MASKED_SECRET, connection_service, mask_config

MYSQL_CONFIG = {"host": "db.local", "port": 3306, "user": "report", "password": "s3cret"}


async def create(store, user_id="alice", name="Warehouse", type="mysql", config=None, permissions=()):
    return await connection_service.create_connection(
        store,
        obj_in=ConnectionCreate(
            name=name,
            type=type,
            config=MYSQL_CONFIG if config is None else config,
            permissions=[PermissionGrantIn(**p) for p in permissions],
        ),
        user_id=user_id,
    )


def grants_of(db, connection_id):
    rows = db.query(DatabasePermission).filter(DatabasePermission.database_id == connection_id).all()
    return {(r.entity_type, r.entity_id, r.permission) for r in rows}


class TestMaskConfig:
    def test_password_is_masked(self):
        assert mask_config(MYSQL_CONFIG)["password"] == MASKED_SECRET
        assert mask_config(MYSQL_CONFIG)["host"] == "db.local"

    def test_empty_password_stays_empty(self):
        assert mask_config({"password": ""}) == {"password": ""}


class TestCreateAndUpdate:
    """测试连接的创建与保存"""

    @pytest.mark.asyncio
    async def test_creator_gets_read_and_write(self, db, store, users):
        connection = await create(store)

        assert connection.can_write is True
        assert connection.config["password"] == MASKED_SECRET
        assert grants_of(db, connection.id) == {("user", "alice", "read"), ("user", "alice", "write")}

    @pytest.mark.asyncio
    async def test_password_is_stored_unmasked(self, db, store, users):
        connection = await create(store)
        row = db.get(DatabaseConnection, connection.id)
        assert json.loads(row.config)["password"] == "s3cret"

    @pytest.mark.asyncio
    async def test_dummy_connection_has_empty_config(self, db, store, users):
        connection = await create(store, type="dummy", config={"host": "ignored"})
        assert connection.config == {}

    @pytest.mark.asyncio
    async def test_dashboard_permission_value_is_rejected(self, store, users):
        with pytest.raises(ValidationError):
            await create(store, permissions=[{"entity_type": "user", "entity_id": "bob", "permission": "view"}])

    @pytest.mark.asyncio
    async def test_empty_name_is_rejected(self, store, users):
        with pytest.raises(ValidationError):
            await create(store, name=" ")

    @pytest.mark.asyncio
    async def test_masked_password_keeps_existing_secret(self, db, store, users):
        connection = await create(store)
        await connection_service.update_connection(
            store,
            connection_id=connection.id,
            obj_in=ConnectionUpdate(
                name="Warehouse",
                type="mysql",
                config={**MYSQL_CONFIG, "host": "db2.local", "password": MASKED_SECRET},
            ),
            user_id="alice",
        )
        stored = json.loads(db.get(DatabaseConnection, connection.id).config)
        assert stored["host"] == "db2.local"
        assert stored["password"] == "s3cret"

    @pytest.mark.asyncio
    async def test_read_grant_cannot_update(self, store, users):
        connection = await create(store, permissions=[
            {"entity_type": "user", "entity_id": "bob", "permission": "read"},
        ])
        with pytest.raises(AccessDenied):
            await connection_service.update_connection(
                store,
                connection_id=connection.id,
                obj_in=ConnectionUpdate(name="x", type="mysql"),
                user_id="bob",
            )

    @pytest.mark.asyncio
    async def test_writer_save_replaces_grants(self, db, store, users):
        connection = await create(store, permissions=[
            {"entity_type": "user", "entity_id": "bob", "permission": "write"},
        ])
        await connection_service.update_connection(
            store,
            connection_id=connection.id,
            obj_in=ConnectionUpdate(
                name="Warehouse",
                type="mysql",
                config=MYSQL_CONFIG,
                permissions=[PermissionGrantIn(entity_type="user", entity_id="carol", permission="read")],
            ),
            user_id="bob",
        )
        assert grants_of(db, connection.id) == {
            ("user", "alice", "read"),
            ("user", "alice", "write"),
            ("user", "carol", "read"),
        }


class TestVisibility:
    """测试列表与查看"""

    @pytest.mark.asyncio
    async def test_read_or_write_is_enough_to_list(self, store, users):
        readable = await create(store, name="A", permissions=[
            {"entity_type": "user", "entity_id": "bob", "permission": "read"},
        ])
        writable = await create(store, name="B", permissions=[
            {"entity_type": "user", "entity_id": "bob", "permission": "write"},
        ])
        await create(store, name="C")

        listed = await connection_service.list_connections(store, user_id="bob")
        assert [c.id for c in listed] == [readable.id, writable.id]
        assert [c.can_write for c in listed] == [False, True]

    @pytest.mark.asyncio
    async def test_group_grant(self, store, users, make_group):
        team = make_group("analysts", ["carol"])
        connection = await create(store, permissions=[
            {"entity_type": "group", "entity_id": str(team.id), "permission": "read"},
        ])
        seen = await connection_service.get_connection(store, connection_id=connection.id, user_id="carol")
        assert seen.can_write is False

    @pytest.mark.asyncio
    async def test_no_grant_is_denied(self, store, users):
        connection = await create(store)
        with pytest.raises(AccessDenied):
            await connection_service.get_connection(store, connection_id=connection.id, user_id="carol")

    @pytest.mark.asyncio
    async def test_missing_connection(self, store, users):
        with pytest.raises(ResourceNotFound):
            await connection_service.get_connection(store, connection_id=404, user_id="alice")


class TestDelete:
    @pytest.mark.asyncio
    async def test_delete_removes_grants(self, db, store, users):
        connection = await create(store)
        await connection_service.delete_connection(store, connection_id=connection.id, user_id="alice")

        assert grants_of(db, connection.id) == set()
        with pytest.raises(ResourceNotFound):
            await connection_service.get_connection(store, connection_id=connection.id, user_id="alice")

    @pytest.mark.asyncio
    async def test_reader_cannot_delete(self, store, users):
        connection = await create(store, permissions=[
            {"entity_type": "user", "entity_id": "bob", "permission": "read"},
        ])
        with pytest.raises(AccessDenied):
            await connection_service.delete_connection(store, connection_id=connection.id, user_id="bob")


class TestSchemaAndQuery:
    """测试表结构与查询执行"""

    @pytest.mark.asyncio
    async def test_dummy_schema(self, store, users):
        connection = await create(store, type="dummy")
        schema = await connection_service.get_schema(store, connection_id=connection.id, user_id="alice")
        assert schema.tables[0].name == "dummyData"

    @pytest.mark.asyncio
    async def test_mysql_schema_is_unsupported(self, store, users):
        connection = await create(store)
        with pytest.raises(UnsupportedDataSource):
            await connection_service.get_schema(store, connection_id=connection.id, user_id="alice")

    @pytest.mark.asyncio
    async def test_execute_on_dummy_connection(self, store, users, demo_data):
        connection = await create(store, type="dummy")
        rows = await connection_service.execute(
            store,
            connection_id=connection.id,
            user_id="alice",
            query="SELECT * FROM dummyData WHERE region = '${region}'",
            variables={"region": "North"},
        )
        assert len(rows) == len(demo_data)

    @pytest.mark.asyncio
    async def test_execute_requires_read(self, store, users):
        connection = await create(store, type="dummy", permissions=[
            {"entity_type": "user", "entity_id": "bob", "permission": "write"},
        ])
        with pytest.raises(AccessDenied):
            await connection_service.execute(
                store, connection_id=connection.id, user_id="bob", query="SELECT * FROM dummyData"
            )

    @pytest.mark.asyncio
    async def test_execute_with_undefined_variable(self, store, users):
        connection = await create(store, type="dummy")
        with pytest.raises(ValidationError):
            await connection_service.execute(
                store, connection_id=connection.id, user_id="alice", query="SELECT '${region}'"
            )
