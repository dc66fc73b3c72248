# Import all the models, so that Base has them before being
# imported by create_all
from app.db.base_class import Base  # noqa
from app.models.user import User  # noqa
from app.models.user_group import UserGroup, UserGroupMember  # noqa
from app.models.dashboard import Dashboard  # noqa
from app.models.dashboard_permission import DashboardPermission  # noqa
from app.models.dashboard_template import DashboardTemplate  # noqa
from app.models.db_connection import DatabaseConnection  # noqa
from app.models.database_permission import DatabasePermission  # noqa
from app.models.dummy_data import DummyData  # noqa
from app.models.user_preference import UserPreference  # noqa
