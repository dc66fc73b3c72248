"""收藏服务

收藏的 Dashboard ID 列表按用户存储在 user_preferences 集合中。
读取时会过滤掉已删除或已无权访问的 Dashboard。
"""
from typing import List, Optional
import json
import logging

from app.db.entity_store import EntityStore
from app.services.permission_resolver import permission_resolver

logger = logging.getLogger(__name__)


def _decode_favorites(raw: Optional[str]) -> List[int]:
    try:
        values = json.loads(raw or "[]")
    except (TypeError, ValueError):
        logger.warning(f"收藏列表格式错误, 已忽略: {raw!r}")
        return []
    if not isinstance(values, list):
        return []
    result = []
    for value in values:
        try:
            dashboard_id = int(value)
        except (TypeError, ValueError):
            continue
        if dashboard_id not in result:
            result.append(dashboard_id)
    return result


class FavoriteService:
    """收藏服务"""

    async def get_stored_favorites(self, store: EntityStore, *, user_id: str) -> List[int]:
        """存储中的收藏列表(未过滤)"""
        rows = await store.select("user_preferences", {"user_id": user_id})
        if not rows:
            return []
        return _decode_favorites(rows[0].favorites)

    async def _save(self, store: EntityStore, *, user_id: str, favorites: List[int]) -> None:
        payload = json.dumps(favorites)
        async with store.transaction():
            updated = await store.update("user_preferences", {"favorites": payload}, {"user_id": user_id})
            if not updated:
                await store.insert("user_preferences", [{"user_id": user_id, "favorites": payload}])

    async def list_favorites(self, store: EntityStore, *, user_id: str) -> List[int]:
        """收藏列表, 只保留仍然存在且当前可访问的 Dashboard"""
        favorites = await self.get_stored_favorites(store, user_id=user_id)
        if not favorites:
            return []
        accessible = await permission_resolver.list_accessible_dashboards(store, user_id=user_id)
        return [dashboard_id for dashboard_id in favorites if dashboard_id in accessible]

    async def is_favorite(self, store: EntityStore, *, user_id: str, dashboard_id: int) -> bool:
        return dashboard_id in await self.get_stored_favorites(store, user_id=user_id)

    async def toggle_favorite(self, store: EntityStore, *, user_id: str, dashboard_id: int) -> bool:
        """切换收藏状态

        调用方负责确认用户可以查看该 Dashboard

        Returns:
            切换后是否为收藏状态
        """
        favorites = await self.get_stored_favorites(store, user_id=user_id)
        if dashboard_id in favorites:
            favorites.remove(dashboard_id)
            is_favorite = False
        else:
            favorites.append(dashboard_id)
            is_favorite = True
        await self._save(store, user_id=user_id, favorites=favorites)
        logger.info(f"用户 {user_id} {'收藏' if is_favorite else '取消收藏'} Dashboard {dashboard_id}")
        return is_favorite

    async def remove_dashboard(self, store: EntityStore, *, user_id: str, dashboard_id: int) -> None:
        favorites = await self.get_stored_favorites(store, user_id=user_id)
        if dashboard_id in favorites:
            favorites.remove(dashboard_id)
            await self._save(store, user_id=user_id, favorites=favorites)


# 创建全局实例
favorite_service = FavoriteService()
