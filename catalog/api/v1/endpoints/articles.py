from typing import Dict, Optional

from fastapi import APIRouter, Request
from sqlalchemy.exc import SQLAlchemyError

from catalog.core.dependencies import DBDependency, KlaraDependency
from catalog.core.rate_limiting import CATALOG_RATE_LIMIT, limiter
from catalog.core.responses import send_list, send_success
from catalog.db.schemas.catalog import CategoryWithCount, OverrideRecord
from catalog.services.overrides import (
    count_active_by_category,
    load_override_map,
    merge_catalog,
)
from catalog.utils.logging import get_logger

router = APIRouter(prefix="/klara", tags=["Catalog"])
logger = get_logger()


async def _overrides_or_empty(db) -> Dict[str, OverrideRecord]:
    # The catalog still renders from KLARA alone when the database is down
    try:
        return await load_override_map(db)
    except SQLAlchemyError as e:
        await db.rollback()
        logger.warning(f"Override database unavailable, serving KLARA data only: {e}")
        return {}


@router.get("/articles")
@limiter.limit(CATALOG_RATE_LIMIT)
async def list_articles(
    request: Request,
    klara: KlaraDependency,
    db: DBDependency,
    category_id: Optional[str] = None,
    search: Optional[str] = None,
    only_active: bool = False,
):
    articles = await klara.fetch_articles(category_id, search)
    overrides = await _overrides_or_empty(db)
    views = merge_catalog(articles, overrides, only_active=only_active)
    return send_list(views, source="klara_api_with_overrides")


@router.get("/categories")
async def list_categories(
    klara: KlaraDependency, db: DBDependency, only_with_products: bool = True
):
    categories = await klara.fetch_categories()
    if not only_with_products:
        return send_list(categories, source="klara_api")

    articles = await klara.fetch_articles()
    counts = count_active_by_category(articles, await _overrides_or_empty(db))
    with_products = [
        CategoryWithCount(**category.model_dump(), count=counts[category.id])
        for category in categories
        if counts.get(category.id, 0) > 0
    ]
    return send_list(with_products, source="klara_api_with_active_filter")


@router.get("/categories/{category_id}/count")
async def count_category_articles(category_id: str, klara: KlaraDependency):
    count = await klara.count_articles_in_category(category_id)
    return send_success(data={"category_id": category_id, "count": count})
