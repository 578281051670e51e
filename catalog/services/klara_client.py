"""KLARA POS catalog client.

Responsibilities:
- Fetch articles and categories from the KLARA REST API
- Normalize the raw payload into CanonicalArticle / CanonicalCategory
- Serve repeated queries from the in-memory TTL cache
- Fail open: upstream trouble of any kind yields an empty list, never an exception
"""

import math
import time
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union
from urllib.parse import quote

import httpx

from catalog.core.config import KLARA_PLACEHOLDER_KEY
from catalog.db.schemas.catalog import (
    CanonicalArticle,
    CanonicalCategory,
    UNORDERED_SORT_SENTINEL,
)
from catalog.services.mock_catalog import get_mock_articles, get_mock_categories
from catalog.utils.caching import TTLCache
from catalog.utils.logging import get_logger

logger = get_logger()

ARTICLES_CACHE_NAMESPACE = "klara:articles"
CATEGORIES_CACHE_KEY = "klara:categories"

ARTICLES_PATH = "/articles"
CATEGORIES_PATH = "/article-categories"
CONNECTION_TEST_LIMIT = 5

# Localized fields in priority order; add a locale by extending the tuple
NAME_FIELDS = ("nameDE", "nameEN")
DESCRIPTION_FIELDS = ("descriptionDE", "descriptionEN")
DEFAULT_ARTICLE_NAME = "Artikel"
DEFAULT_CATEGORY_NAME = "Kategorie"

# Some KLARA endpoints wrap the list in an envelope
WRAPPED_LIST_KEYS = ("data", "items", "content")

STATUS_ANALYSIS = {
    401: ("Authentication failed", "Check KLARA_API_KEY - it might be invalid or expired"),
    403: ("Access forbidden", "The API key may not have permission to access articles"),
    404: ("Endpoint not found", "Check KLARA_API_URL - the endpoint path might be incorrect"),
    429: ("Rate limit exceeded", "Too many requests - wait a few minutes and try again"),
}


def articles_cache_key(
    category_id: Optional[str] = None, search: Optional[str] = None
) -> str:
    key = ARTICLES_CACHE_NAMESPACE
    if category_id:
        key += f":cat:{quote(category_id, safe='')}"
    if search:
        key += f":search:{quote(search, safe='')}"
    return key


def first_non_empty(record: Dict[str, Any], fields: Sequence[str], default: str = "") -> str:
    for field in fields:
        value = record.get(field)
        if isinstance(value, str) and value.strip():
            return value
    return default


def _as_id(value: Any) -> str:
    if value is None or isinstance(value, bool):
        return ""
    return str(value).strip()


def _parse_price(record: Dict[str, Any]) -> Decimal:
    periods = record.get("pricePeriods")
    if not isinstance(periods, list) or not periods or not isinstance(periods[0], dict):
        return Decimal("0")
    raw = periods[0].get("price")
    if raw is None or isinstance(raw, bool):
        return Decimal("0")
    try:
        price = Decimal(str(raw))
    except InvalidOperation:
        return Decimal("0")
    return price if price.is_finite() else Decimal("0")


def normalize_article(record: Any) -> Optional[CanonicalArticle]:
    if not isinstance(record, dict):
        return None

    article_id = _as_id(record.get("id"))
    article_number = _as_id(record.get("articleNumber"))
    if not article_id and not article_number:
        logger.warning(f"Skipping KLARA article without id and articleNumber: {record!r}")
        return None

    category_ids: List[str] = []
    categories = record.get("posCategories")
    if isinstance(categories, list):
        for category in categories:
            if isinstance(category, dict) and _as_id(category.get("id")):
                category_ids.append(_as_id(category.get("id")))

    return CanonicalArticle(
        id=article_id or article_number,
        article_number=article_number or article_id,
        name=first_non_empty(record, NAME_FIELDS, DEFAULT_ARTICLE_NAME),
        price=_parse_price(record),
        description=first_non_empty(record, DESCRIPTION_FIELDS),
        category_ids=list(dict.fromkeys(category_ids)),
    )


def _parse_order(raw: Any) -> Union[int, float]:
    if isinstance(raw, bool):
        return UNORDERED_SORT_SENTINEL
    if isinstance(raw, str):
        try:
            raw = float(raw.strip())
        except ValueError:
            return UNORDERED_SORT_SENTINEL
        if raw.is_integer():
            raw = int(raw)
    if not isinstance(raw, (int, float)) or not math.isfinite(raw):
        return UNORDERED_SORT_SENTINEL
    return raw


def normalize_category(record: Any) -> Optional[CanonicalCategory]:
    if not isinstance(record, dict) or not _as_id(record.get("id")):
        return None

    return CanonicalCategory(
        id=_as_id(record.get("id")),
        name=first_non_empty(record, NAME_FIELDS, DEFAULT_CATEGORY_NAME),
        name_en=first_non_empty(record, ("nameEN",)) or None,
        sort_order=_parse_order(record.get("order")),
    )


def normalize_articles(records: Iterable[Any]) -> List[CanonicalArticle]:
    return [a for a in (normalize_article(r) for r in records) if a is not None]


def filter_articles(
    articles: Iterable[CanonicalArticle],
    category_id: Optional[str] = None,
    search: Optional[str] = None,
) -> List[CanonicalArticle]:
    selected = []
    term = search.lower() if search else None
    for article in articles:
        if category_id and category_id not in article.category_ids:
            continue
        if term and (
            term not in article.name.lower()
            and term not in article.article_number.lower()
        ):
            continue
        selected.append(article)
    return selected


def unwrap_records(payload: Any) -> Optional[List[Any]]:
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        for key in WRAPPED_LIST_KEYS:
            if isinstance(payload.get(key), list):
                return payload[key]
    return None


def missing_article_fields(record: Dict[str, Any]) -> List[str]:
    missing = []
    if not record.get("id"):
        missing.append("id")
    if not record.get("articleNumber"):
        missing.append("articleNumber")
    if not first_non_empty(record, NAME_FIELDS):
        missing.append("name (nameDE/nameEN)")
    if _parse_price(record) == 0:
        missing.append("price (pricePeriods)")
    return missing


@dataclass(slots=True)
class UpstreamOk:
    records: List[Any]


@dataclass(slots=True)
class UpstreamUnavailable:
    reason: str


UpstreamResult = Union[UpstreamOk, UpstreamUnavailable]


class KlaraClient:
    def __init__(
        self,
        cache: TTLCache,
        api_url: str,
        api_key: Optional[str] = None,
        api_secret: Optional[str] = None,
        use_mock: bool = False,
        timeout: float = 30.0,
        page_size: int = 1000,
        placeholder_key: str = KLARA_PLACEHOLDER_KEY,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.cache = cache
        self.api_url = api_url.rstrip("/")
        self.api_key = api_key
        self.api_secret = api_secret
        self.use_mock = use_mock
        self.timeout = timeout
        self.page_size = page_size
        self._placeholder_key = placeholder_key
        self._transport = transport

    @classmethod
    def from_settings(cls, settings, cache: TTLCache, transport=None) -> "KlaraClient":
        return cls(
            cache=cache,
            api_url=settings.KLARA_API_URL,
            api_key=settings.KLARA_API_KEY,
            api_secret=settings.KLARA_API_SECRET,
            use_mock=settings.USE_MOCK_KLARA,
            timeout=settings.KLARA_REQUEST_TIMEOUT_SECONDS,
            page_size=settings.KLARA_PAGE_SIZE,
            transport=transport,
        )

    @property
    def credentials_valid(self) -> bool:
        return bool(self.api_key and self.api_key != self._placeholder_key)

    def _headers(self) -> Dict[str, str]:
        return {
            "Accept": "application/json",
            "Accept-Language": "de",
            "X-API-KEY": self.api_key or "",
            "Cache-Control": "no-cache",
        }

    def _http_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport)

    async def _get_records(self, path: str, limit: int) -> UpstreamResult:
        if not self.credentials_valid:
            return UpstreamUnavailable("KLARA_API_KEY not configured")

        url = f"{self.api_url}{path}"
        logger.info(f"Calling KLARA API: {url}?limit={limit}")
        try:
            async with self._http_client() as client:
                response = await client.get(
                    url, params={"limit": limit}, headers=self._headers()
                )
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.error(f"KLARA API request to {url} failed: {e!r}")
            return UpstreamUnavailable(f"transport error: {e}")

        if not response.is_success:
            logger.error(
                f"KLARA API error response {response.status_code} for {url}: "
                f"{response.text[:1000]}"
            )
            return UpstreamUnavailable(f"HTTP {response.status_code}")

        try:
            payload = response.json()
        except (ValueError, RecursionError) as e:
            logger.error(f"KLARA API returned invalid JSON for {url}: {e}")
            return UpstreamUnavailable("malformed JSON body")

        records = unwrap_records(payload)
        if records is None:
            logger.error(
                f"KLARA API returned unexpected shape for {url}: {type(payload).__name__}"
            )
            return UpstreamUnavailable("unexpected response shape")

        if len(records) >= limit:
            logger.warning(
                f"KLARA API returned a full page of {len(records)} records from {url}; "
                f"records beyond KLARA_PAGE_SIZE={limit} are not loaded"
            )
        logger.info(f"KLARA API returned {len(records)} records from {url}")
        return UpstreamOk(records)

    async def fetch_articles(
        self, category_id: Optional[str] = None, search: Optional[str] = None
    ) -> List[CanonicalArticle]:
        cache_key = articles_cache_key(category_id, search)
        cached = self.cache.get(cache_key)
        if cached is not None:
            logger.info(f"Returning {len(cached)} articles from cache ({cache_key})")
            return list(cached)

        if self.use_mock:
            logger.info("Using mock KLARA articles")
            return filter_articles(
                normalize_articles(get_mock_articles()), category_id, search
            )

        logger.info(f"Cache MISS for {cache_key}, fetching articles from KLARA")
        result = await self._get_records(ARTICLES_PATH, self.page_size)
        if isinstance(result, UpstreamUnavailable):
            logger.warning(f"Returning empty article list: {result.reason}")
            return []

        articles = filter_articles(normalize_articles(result.records), category_id, search)
        # Stored immutable; every caller gets its own list
        self.cache.set(cache_key, tuple(articles))
        logger.info(f"Processed {len(articles)} filtered KLARA articles")
        return articles

    async def fetch_categories(self) -> List[CanonicalCategory]:
        cached = self.cache.get(CATEGORIES_CACHE_KEY)
        if cached is not None:
            logger.info(f"Returning {len(cached)} categories from cache")
            return list(cached)

        if self.use_mock:
            logger.info("Using mock KLARA categories")
            raw_categories = get_mock_categories()
        else:
            result = await self._get_records(CATEGORIES_PATH, self.page_size)
            if isinstance(result, UpstreamUnavailable):
                logger.warning(f"Returning empty category list: {result.reason}")
                return []
            raw_categories = result.records

        categories = [
            c for c in (normalize_category(r) for r in raw_categories) if c is not None
        ]
        categories.sort(key=lambda category: category.sort_order)

        if not self.use_mock:
            self.cache.set(CATEGORIES_CACHE_KEY, tuple(categories))
        return categories

    async def count_articles_in_category(self, category_id: str) -> int:
        return len(await self.fetch_articles(category_id))

    def invalidate_all(self) -> int:
        return self.cache.clear()

    async def test_connection(self) -> dict:
        """Probe the articles endpoint and describe what came back.

        Used by the admin diagnostics page; bypasses the cache on purpose.
        """
        config = {
            "api_url": self.api_url,
            "api_key_configured": self.credentials_valid,
            "api_secret_configured": bool(self.api_secret),
            "api_key_length": len(self.api_key or ""),
            "use_mock": self.use_mock,
        }
        if not self.credentials_valid:
            return {
                "success": False,
                "error": "KLARA_API_KEY not configured",
                "solution": "Add KLARA_API_KEY to the environment or .env file",
                "config": config,
            }

        url = f"{self.api_url}{ARTICLES_PATH}"
        started = time.perf_counter()
        try:
            async with self._http_client() as client:
                response = await client.get(
                    url, params={"limit": CONNECTION_TEST_LIMIT}, headers=self._headers()
                )
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.error(f"KLARA connection test failed: {e!r}")
            return {
                "success": False,
                "error": "Failed to connect to KLARA API",
                "details": str(e),
                "response_time_ms": round((time.perf_counter() - started) * 1000),
                "config": config,
            }
        response_time_ms = round((time.perf_counter() - started) * 1000)

        if not response.is_success:
            status = response.status_code
            analysis, solution = STATUS_ANALYSIS.get(
                status, ("Unknown error", "Check the KLARA API documentation")
            )
            if status >= 500:
                analysis, solution = (
                    "KLARA API server error",
                    "KLARA is experiencing issues - try again later",
                )
            return {
                "success": False,
                "error": f"KLARA API returned error status: {status}",
                "error_analysis": analysis,
                "solution": solution,
                "status": status,
                "response_time_ms": response_time_ms,
                "response": response.text[:1000],
                "config": config,
            }

        try:
            records = unwrap_records(response.json()) or []
        except (ValueError, RecursionError):
            records = []
        if not records:
            return {
                "success": False,
                "warning": "API connection successful but no articles returned",
                "status": response.status_code,
                "response_time_ms": response_time_ms,
                "articles_found": 0,
                "config": config,
            }

        first = records[0] if isinstance(records[0], dict) else {}
        missing = missing_article_fields(first)
        article = normalize_article(first)
        return {
            "success": True,
            "message": "KLARA API connection successful",
            "status": response.status_code,
            "response_time_ms": response_time_ms,
            "articles_found": len(records),
            "missing_fields": missing or None,
            "first_article": article.model_dump(mode="json") if article else None,
            "config": config,
        }
