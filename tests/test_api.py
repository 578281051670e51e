from decimal import Decimal

import pytest

ARTICLES_URL = "/api/v1/klara/articles"
CATEGORIES_URL = "/api/v1/klara/categories"
CACHE_URL = "/api/v1/admin/klara/cache"


def override_url(article_id: str) -> str:
    return f"/api/v1/admin/klara/override/{article_id}"


@pytest.fixture
def cleanup_overrides(client):
    created = []
    yield created
    for article_id in created:
        client.delete(override_url(article_id))


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["data"]["status"] == "healthy"


def test_list_articles_from_mock_catalog(client):
    response = client.get(ARTICLES_URL)
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["meta"] == {"count": 12, "source": "klara_api_with_overrides"}

    barolo = next(a for a in body["data"] if a["id"] == "wine-002")
    assert barolo["name"] == "Barolo Riserva DOCG 2016"
    assert Decimal(str(barolo["price"])) == Decimal("89.5")
    assert barolo["visible"] is True
    assert barolo["has_override"] is False


def test_category_filter_and_count_agree(client):
    articles = client.get(ARTICLES_URL, params={"category_id": "cat-rotwein"}).json()
    count = client.get(f"{CATEGORIES_URL}/cat-rotwein/count").json()

    assert articles["meta"]["count"] == 5
    assert count["data"] == {"category_id": "cat-rotwein", "count": 5}


def test_search_is_case_insensitive(client):
    body = client.get(ARTICLES_URL, params={"search": "BAROLO"}).json()
    assert [a["article_number"] for a in body["data"]] == ["RW-002"]


def test_categories_with_counts_in_sort_order(client):
    body = client.get(CATEGORIES_URL).json()

    ids = [c["id"] for c in body["data"]]
    assert ids == [
        "cat-rotwein",
        "cat-weisswein",
        "cat-rosewein",
        "cat-schaumwein",
        "cat-bio",
        "cat-schweiz",
    ]
    counts = {c["id"]: c["count"] for c in body["data"]}
    assert counts["cat-rotwein"] == 5
    assert counts["cat-schweiz"] == 4


def test_all_categories_without_counts(client):
    body = client.get(CATEGORIES_URL, params={"only_with_products": "false"}).json()
    assert body["meta"]["source"] == "klara_api"
    assert "count" not in body["data"][0]


def test_override_is_merged_into_catalog(client, cleanup_overrides):
    cleanup_overrides.append("wine-002")
    payload = {
        "custom_price": "80",
        "custom_images": ["https://cdn.test/barolo.jpg"],
        "custom_data": {"grapes": "Nebbiolo", "discount_percentage": 25},
    }
    saved = client.put(override_url("wine-002"), json=payload)
    assert saved.status_code == 200
    assert saved.json()["data"]["klara_article_id"] == "wine-002"

    body = client.get(ARTICLES_URL, params={"search": "barolo"}).json()
    barolo = body["data"][0]
    assert Decimal(str(barolo["price"])) == Decimal("80")
    assert Decimal(str(barolo["effective_price"])) == Decimal("60.00")
    assert barolo["image_url"] == "https://cdn.test/barolo.jpg"
    assert barolo["custom_data"]["grapes"] == "Nebbiolo"
    assert barolo["has_override"] is True


def test_hidden_article_is_filtered_and_not_counted(client, cleanup_overrides):
    cleanup_overrides.append("wine-001")
    client.put(override_url("wine-001"), json={"is_active": False})

    everything = client.get(ARTICLES_URL, params={"category_id": "cat-rotwein"}).json()
    active = client.get(
        ARTICLES_URL, params={"category_id": "cat-rotwein", "only_active": "true"}
    ).json()
    categories = client.get(CATEGORIES_URL).json()

    assert everything["meta"]["count"] == 5
    assert active["meta"]["count"] == 4
    counts = {c["id"]: c["count"] for c in categories["data"]}
    assert counts["cat-rotwein"] == 4


def test_read_override(client, cleanup_overrides):
    cleanup_overrides.append("wine-008")
    assert client.get(override_url("wine-008")).json()["data"] is None

    client.put(override_url("wine-008"), json={"custom_name": "Chablis 1er Cru"})
    stored = client.get(override_url("wine-008")).json()["data"]
    assert stored["custom_name"] == "Chablis 1er Cru"
    assert stored["is_active"] is True


def test_edit_form_stores_only_changes(client, cleanup_overrides):
    cleanup_overrides.append("wine-014")
    form = {
        "name": "Champagne Brut",
        "description": "Klassischer französischer Champagner mit feinen Bläschen.",
        "price": "72.00",
        "images": ["https://cdn.test/champagne.jpg"],
    }
    response = client.post(f"{override_url('wine-014')}/form", json=form)
    assert response.status_code == 200

    stored = response.json()["data"]
    assert stored["custom_name"] is None
    assert stored["custom_description"] is None
    assert Decimal(str(stored["custom_price"])) == Decimal("72")
    assert stored["custom_images"] == ["https://cdn.test/champagne.jpg"]


def test_edit_form_with_price_only_keeps_klara_text(client, cleanup_overrides):
    cleanup_overrides.append("wine-017")
    response = client.post(f"{override_url('wine-017')}/form", json={"price": "45"})
    assert response.status_code == 200

    stored = response.json()["data"]
    assert stored["custom_name"] is None
    assert stored["custom_description"] is None
    assert Decimal(str(stored["custom_price"])) == Decimal("45")


def test_edit_form_for_unknown_article(client):
    response = client.post(
        f"{override_url('does-not-exist')}/form", json={"name": "X", "price": "1"}
    )
    assert response.status_code == 404
    assert response.json()["success"] is False


def test_delete_override_twice(client):
    client.put(override_url("wine-015"), json={"custom_name": "Prosecco"})

    first = client.delete(override_url("wine-015"))
    second = client.delete(override_url("wine-015"))

    assert first.json()["message"] == "Override deleted successfully"
    assert second.status_code == 200
    assert second.json()["message"] == "Override not found (already deleted)"


def test_list_overrides(client, cleanup_overrides):
    cleanup_overrides.extend(["wine-010", "wine-012"])
    client.put(override_url("wine-010"), json={"custom_name": "Riesling"})
    client.put(override_url("wine-012"), json={"is_active": False})

    everything = client.get("/api/v1/admin/klara/overrides").json()
    active = client.get("/api/v1/admin/klara/overrides", params={"only_active": "true"}).json()

    assert {o["klara_article_id"] for o in everything["data"]} >= {"wine-010", "wine-012"}
    assert "wine-012" not in {o["klara_article_id"] for o in active["data"]}


def test_invalid_override_is_rejected(client):
    response = client.put(override_url("wine-002"), json={"custom_price": -5})
    assert response.status_code == 422
    body = response.json()
    assert body["success"] is False
    assert "custom_price" in body["data"]["errors"]


def test_cache_stats_and_clear(client):
    stats = client.get(CACHE_URL).json()
    assert stats["success"] is True
    assert "total_entries" in stats["data"]

    cleared = client.post(CACHE_URL, json={"action": "clear"})
    assert cleared.status_code == 200
    assert cleared.json()["success"] is True
    assert client.get(CACHE_URL).json()["data"]["total_entries"] == 0


def test_unknown_cache_action(client):
    response = client.post(CACHE_URL, json={"action": "flush-everything"})
    assert response.status_code == 400
    assert response.json()["message"] == "Invalid action"


def test_connection_check_without_credentials(client):
    response = client.get("/api/v1/admin/klara/test-connection")
    assert response.status_code == 502
    body = response.json()
    assert body["success"] is False
    assert body["data"]["config"]["api_key_configured"] is False
