from fastapi import APIRouter, HTTPException, status
from fastapi.responses import JSONResponse

from catalog.core.dependencies import DBDependency, KlaraDependency
from catalog.core.responses import send_error, send_list, send_success
from catalog.db.schemas.catalog import (
    CacheAction,
    OverrideForm,
    OverrideRecord,
    OverrideResponse,
)
from catalog.services.overrides import (
    build_override_payload,
    delete_override,
    get_override,
    list_overrides,
    upsert_override,
)

router = APIRouter(prefix="/admin/klara", tags=["Admin"])


@router.get("/cache")
async def cache_stats(klara: KlaraDependency):
    return send_success(data=klara.cache.stats())


@router.post("/cache")
async def cache_action(body: CacheAction, klara: KlaraDependency):
    if body.action != "clear":
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid action")
    cleared = klara.invalidate_all()
    return send_success(
        message="KLARA cache cleared. Next request will fetch fresh data.",
        data={"cleared": cleared},
    )


@router.get("/test-connection")
async def test_connection(klara: KlaraDependency):
    report = await klara.test_connection()
    if not report["success"]:
        return JSONResponse(
            status_code=status.HTTP_502_BAD_GATEWAY,
            content=send_error(
                message=report.get("error") or report.get("warning", "KLARA API test failed"),
                data=report,
                status_code=status.HTTP_502_BAD_GATEWAY,
            ).model_dump(mode="json"),
        )
    return send_success(message=report["message"], data=report)


@router.get("/overrides")
async def all_overrides(db: DBDependency, only_active: bool = False):
    rows = await list_overrides(db)
    if only_active:
        rows = [row for row in rows if row.is_active]
    return send_list(
        [OverrideResponse.model_validate(row) for row in rows],
        source="database_overrides",
    )


@router.get("/override/{article_id}")
async def read_override(article_id: str, db: DBDependency):
    row = await get_override(db, article_id)
    return send_success(data=OverrideResponse.model_validate(row) if row else None)


@router.put("/override/{article_id}")
async def save_override(article_id: str, record: OverrideRecord, db: DBDependency):
    row = await upsert_override(db, article_id, record)
    return send_success(
        message="Override saved successfully", data=OverrideResponse.model_validate(row)
    )


@router.post("/override/{article_id}/form")
async def save_override_form(
    article_id: str, form: OverrideForm, db: DBDependency, klara: KlaraDependency
):
    canonical = next(
        (a for a in await klara.fetch_articles() if a.id == article_id), None
    )
    if canonical is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"KLARA article {article_id} not found",
        )
    row = await upsert_override(db, article_id, build_override_payload(canonical, form))
    return send_success(
        message="Override saved successfully", data=OverrideResponse.model_validate(row)
    )


@router.delete("/override/{article_id}")
async def remove_override(article_id: str, db: DBDependency):
    deleted = await delete_override(db, article_id)
    message = "Override deleted successfully" if deleted else "Override not found (already deleted)"
    return send_success(message=message)
