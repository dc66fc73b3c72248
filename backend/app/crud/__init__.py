from app.crud.base import CRUDBase
from app.crud.crud_user import user
from app.models.dashboard import Dashboard
from app.models.dashboard_permission import DashboardPermission
from app.models.dashboard_template import DashboardTemplate
from app.models.db_connection import DatabaseConnection
from app.models.database_permission import DatabasePermission
from app.models.dummy_data import DummyData
from app.models.user_group import UserGroup, UserGroupMember
from app.models.user_preference import UserPreference

# 其余集合只需要通用的按条件增删改查, 直接使用 CRUDBase 实例
crud_dashboard = CRUDBase(Dashboard)
crud_dashboard_permission = CRUDBase(DashboardPermission)
crud_dashboard_template = CRUDBase(DashboardTemplate)
crud_database_connection = CRUDBase(DatabaseConnection)
crud_database_permission = CRUDBase(DatabasePermission)
crud_user_group = CRUDBase(UserGroup)
crud_user_group_member = CRUDBase(UserGroupMember)
crud_user_preference = CRUDBase(UserPreference)
crud_dummy_data = CRUDBase(DummyData)
