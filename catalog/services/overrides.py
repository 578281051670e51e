"""Admin overrides for KLARA articles.

KLARA stays the source of truth for identity, stock and categories. Admins
can replace name, description, price and images, attach tasting data, and
hide an article. Overrides are merged on top of the canonical article every
time it is read, so nothing here is cached.
"""

from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Iterable, List, Mapping, Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from catalog.db.models.override import KlaraProductOverride
from catalog.db.schemas.catalog import (
    ArticleView,
    CanonicalArticle,
    OverrideForm,
    OverrideRecord,
)
from catalog.utils.logging import get_logger

logger = get_logger()

CENT = Decimal("0.01")


def _pick(override_value, canonical_value):
    return canonical_value if override_value is None else override_value


def _changed(submitted, canonical_value):
    return None if submitted is None or submitted == canonical_value else submitted


def apply_discount(price: Decimal, discount_percentage: Decimal) -> Decimal:
    if discount_percentage <= 0:
        return price
    discounted = price * (Decimal(100) - discount_percentage) / Decimal(100)
    return discounted.quantize(CENT, rounding=ROUND_HALF_UP)


def _as_utc(value: datetime) -> datetime:
    return value.replace(tzinfo=timezone.utc) if value.tzinfo is None else value


def is_new_until(new_item_until: Optional[datetime], now: datetime) -> bool:
    if new_item_until is None:
        return False
    return _as_utc(new_item_until) > _as_utc(now)


def merge(
    canonical: CanonicalArticle,
    override: Optional[OverrideRecord] = None,
    now: Optional[datetime] = None,
) -> ArticleView:
    now = now or datetime.now(timezone.utc)
    if override is None:
        return ArticleView(
            id=canonical.id,
            article_number=canonical.article_number,
            name=canonical.name,
            description=canonical.description,
            price=canonical.price,
            effective_price=canonical.price,
            category_ids=list(canonical.category_ids),
            stock=canonical.stock,
        )

    price = _pick(override.custom_price, canonical.price)
    images = list(_pick(override.custom_images, []))
    custom_data = override.custom_data
    discount = custom_data.discount_percentage if custom_data else Decimal("0")

    return ArticleView(
        id=canonical.id,
        article_number=canonical.article_number,
        name=_pick(override.custom_name, canonical.name),
        description=_pick(override.custom_description, canonical.description),
        price=price,
        effective_price=apply_discount(price, discount),
        discount_percentage=discount,
        category_ids=list(canonical.category_ids),
        stock=canonical.stock,
        images=images,
        image_url=images[0] if images else None,
        visible=override.is_active,
        is_featured=override.is_featured,
        is_new=is_new_until(custom_data.new_item_until if custom_data else None, now),
        has_override=True,
        custom_data=custom_data,
    )


def build_override_payload(canonical: CanonicalArticle, form: OverrideForm) -> OverrideRecord:
    """Turn a submitted edit form into the sparse record that gets stored.

    Name, description and price are only kept when submitted and different
    from KLARA, so later changes in KLARA show through fields the admin never
    touched.
    """
    return OverrideRecord(
        custom_name=_changed(form.name, canonical.name),
        custom_description=_changed(form.description, canonical.description),
        custom_price=_changed(form.price, canonical.price),
        custom_images=list(form.images),
        custom_data=form.custom_data,
        is_active=form.is_active,
        is_featured=form.is_featured,
    )


def merge_catalog(
    articles: Iterable[CanonicalArticle],
    overrides: Mapping[str, OverrideRecord],
    only_active: bool = False,
    now: Optional[datetime] = None,
) -> List[ArticleView]:
    now = now or datetime.now(timezone.utc)
    merged = [merge(article, overrides.get(article.id), now) for article in articles]
    if only_active:
        merged = [view for view in merged if view.visible]
    return merged


def count_active_by_category(
    articles: Iterable[CanonicalArticle], overrides: Mapping[str, OverrideRecord]
) -> Dict[str, int]:
    counts: Dict[str, int] = {}
    for article in articles:
        override = overrides.get(article.id)
        if override is not None and not override.is_active:
            continue
        for category_id in article.category_ids:
            counts[category_id] = counts.get(category_id, 0) + 1
    return counts


# Persistence


def _column_values(record: OverrideRecord) -> dict:
    return {
        "custom_name": record.custom_name,
        "custom_description": record.custom_description,
        "custom_price": record.custom_price,
        "custom_images": list(record.custom_images or []),
        "custom_data": (
            record.custom_data.model_dump(mode="json", exclude_none=True)
            if record.custom_data is not None
            else None
        ),
        "is_active": record.is_active,
        "is_featured": record.is_featured,
    }


async def get_override(db: AsyncSession, article_id: str) -> Optional[KlaraProductOverride]:
    result = await db.execute(
        select(KlaraProductOverride).where(
            KlaraProductOverride.klara_article_id == article_id
        )
    )
    return result.scalar_one_or_none()


async def list_overrides(db: AsyncSession) -> List[KlaraProductOverride]:
    result = await db.execute(
        select(KlaraProductOverride).order_by(KlaraProductOverride.created_at.desc())
    )
    return list(result.scalars().all())


async def load_override_map(db: AsyncSession) -> Dict[str, OverrideRecord]:
    rows = await list_overrides(db)
    return {row.klara_article_id: OverrideRecord.model_validate(row) for row in rows}


async def upsert_override(
    db: AsyncSession, article_id: str, record: OverrideRecord
) -> KlaraProductOverride:
    values = _column_values(record)
    row = await get_override(db, article_id)
    if row is None:
        row = KlaraProductOverride(klara_article_id=article_id, **values)
        db.add(row)
    else:
        for column, value in values.items():
            setattr(row, column, value)
    await db.commit()
    await db.refresh(row)
    logger.info(f"Saved override for KLARA article {article_id}")
    return row


async def delete_override(db: AsyncSession, article_id: str) -> bool:
    result = await db.execute(
        delete(KlaraProductOverride).where(
            KlaraProductOverride.klara_article_id == article_id
        )
    )
    await db.commit()
    deleted = result.rowcount > 0
    if deleted:
        logger.info(f"Deleted override for KLARA article {article_id}")
    return deleted
