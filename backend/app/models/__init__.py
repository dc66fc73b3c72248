# 导入所有模型以便 Base.metadata.create_all 可以检测到
from app.models.user import User
from app.models.user_group import UserGroup, UserGroupMember
from app.models.dashboard import Dashboard
from app.models.dashboard_permission import DashboardPermission
from app.models.dashboard_template import DashboardTemplate
from app.models.db_connection import DatabaseConnection
from app.models.database_permission import DatabasePermission
from app.models.dummy_data import DummyData
from app.models.user_preference import UserPreference
