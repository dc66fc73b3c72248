import logging
from datetime import date, timedelta
from typing import Any, Dict, List

from sqlalchemy.orm import Session

from app.db.base import Base
from app.db.entity_store import EntityStore
from app.services.template_service import template_service

logger = logging.getLogger(__name__)

DEMO_CATEGORIES = ["Product A", "Product B", "Product C"]
DEMO_REGIONS = ["North", "South", "East", "West"]
DEMO_START_DATE = date(2024, 1, 1)
DEMO_DAYS = 7


def build_demo_rows() -> List[Dict[str, Any]]:
    """生成确定性的演示数据: 每天 x 每个产品 x 每个区域一行"""
    rows = []
    for day in range(DEMO_DAYS):
        current = (DEMO_START_DATE + timedelta(days=day)).isoformat()
        for c, category in enumerate(DEMO_CATEGORIES):
            for r, region in enumerate(DEMO_REGIONS):
                rows.append({
                    "category": category,
                    "value": float(100 + 40 * c + 15 * r + 10 * ((day * 7 + c * 3 + r) % 5)),
                    "date": current,
                    "region": region,
                })
    return rows


async def seed_demo_data(store: EntityStore) -> int:
    """dummy_data 为空时写入演示数据"""
    if await store.select("dummy_data", limit=1):
        return 0
    rows = build_demo_rows()
    await store.insert("dummy_data", rows)
    logger.info(f"已写入 {len(rows)} 条演示数据")
    return len(rows)


async def init_db(db: Session, *, seed: bool = True) -> None:
    # Create tables
    Base.metadata.create_all(bind=db.get_bind())
    logger.info("Tables created")

    if seed:
        store = EntityStore(db)
        await seed_demo_data(store)
        await template_service.seed_default_templates(store)
