# Import and re-export schema classes
from app.schemas.auth import UserCreate, UserLogin, UserUpdate, Token, SessionUser, SessionResponse, UserResponse
from app.schemas.permission import (
    EntityType,
    Permission,
    ResourceKind,
    PermissionGrantIn,
    PermissionGrantResponse,
    PermissionListResponse,
)
from app.schemas.widget import (
    WidgetType,
    Widget,
    DataSource,
    Position,
    Size,
    WidgetConfig,
    WIDGET_CONFIG_MODELS,
    parse_widget_type,
)
from app.schemas.visualization import VisualizationState, VisualizationOutput
from app.schemas.dashboard import (
    Variable,
    DashboardLayout,
    DashboardBase,
    DashboardCreate,
    DashboardUpdate,
    DashboardListItem,
    DashboardDetail,
    DashboardRenderRequest,
    DashboardRenderResponse,
    DashboardTemplateResponse,
    TemplateInstantiateRequest,
    FavoriteStatus,
    FavoriteListResponse,
)
from app.schemas.connection import (
    ConnectionType,
    ConnectionCreate,
    ConnectionUpdate,
    ConnectionResponse,
    DatabaseSchema,
    ConnectionQueryRequest,
    ConnectionQueryResponse,
)
from app.schemas.user_group import (
    UserGroupCreate,
    UserGroupUpdate,
    UserGroupResponse,
    GroupMemberCreate,
    GroupMembership,
    GroupMemberListResponse,
)
