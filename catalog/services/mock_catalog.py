"""Static KLARA-shaped catalog used when USE_MOCK_KLARA is enabled.

Records mirror the raw API payload so they run through the same
normalization as live data.
"""

from typing import Any, Dict, List


def _article(
    article_id: str,
    number: str,
    name: str,
    price: float,
    description: str,
    categories: List[str],
) -> Dict[str, Any]:
    return {
        "id": article_id,
        "articleNumber": number,
        "nameDE": name,
        "descriptionDE": description,
        "pricePeriods": [{"price": price, "currency": "CHF"}],
        "posCategories": [{"id": category_id} for category_id in categories],
    }


MOCK_CATEGORIES: List[Dict[str, Any]] = [
    {"id": "cat-rotwein", "nameDE": "Rotwein", "nameEN": "Red wine", "order": 1},
    {"id": "cat-weisswein", "nameDE": "Weisswein", "nameEN": "White wine", "order": 2},
    {"id": "cat-rosewein", "nameDE": "Roséwein", "nameEN": "Rosé", "order": 3},
    {"id": "cat-schaumwein", "nameDE": "Schaumwein", "nameEN": "Sparkling", "order": 4},
    {"id": "cat-bio", "nameDE": "Bio-Weine", "order": 5},
    {"id": "cat-schweiz", "nameDE": "Schweizer Weine"},
]

MOCK_ARTICLES: List[Dict[str, Any]] = [
    # Rotweine
    _article(
        "wine-001",
        "RW-001",
        "Château Margaux 2015",
        450.00,
        "Ein herausragender Bordeaux. Komplex, elegant und langlebig.",
        ["cat-rotwein"],
    ),
    _article(
        "wine-002",
        "RW-002",
        "Barolo Riserva DOCG 2016",
        89.50,
        "Kraftvoller italienischer Rotwein aus der Nebbiolo-Traube.",
        ["cat-rotwein"],
    ),
    _article(
        "wine-003",
        "RW-003",
        "Pinot Noir Reserve Graubünden",
        45.00,
        "Eleganter Schweizer Pinot Noir aus den Bündner Bergen.",
        ["cat-rotwein", "cat-schweiz"],
    ),
    _article(
        "wine-004",
        "RW-004",
        "Merlot Ticino DOC",
        38.50,
        "Weicher Tessiner Merlot mit fruchtigen Noten.",
        ["cat-rotwein", "cat-schweiz"],
    ),
    # Weissweine
    _article(
        "wine-007",
        "WW-001",
        "Chasselas Lavaux AOC",
        28.50,
        "Frischer Schweizer Weisswein aus dem Lavaux.",
        ["cat-weisswein", "cat-schweiz"],
    ),
    _article(
        "wine-008",
        "WW-002",
        "Chablis Premier Cru",
        55.00,
        "Eleganter französischer Chardonnay mit ausgeprägter Mineralität.",
        ["cat-weisswein"],
    ),
    _article(
        "wine-010",
        "WW-004",
        "Riesling Mosel Kabinett",
        24.50,
        "Deutscher Riesling mit feiner Säure.",
        ["cat-weisswein"],
    ),
    # Roséweine
    _article(
        "wine-012",
        "ROS-001",
        "Provence Rosé AOC",
        22.50,
        "Eleganter französischer Rosé mit Aromen von roten Beeren.",
        ["cat-rosewein"],
    ),
    # Schaumweine
    _article(
        "wine-014",
        "SCH-001",
        "Champagne Brut",
        78.00,
        "Klassischer französischer Champagner mit feinen Bläschen.",
        ["cat-schaumwein"],
    ),
    _article(
        "wine-015",
        "SCH-002",
        "Prosecco DOC Extra Dry",
        18.50,
        "Italienischer Prosecco mit frischen Aromen von Birne und Apfel.",
        ["cat-schaumwein"],
    ),
    # Bio-Weine
    _article(
        "wine-017",
        "BIO-001",
        "Merlot Bio Tessin",
        42.00,
        "Biologisch angebauter Tessiner Merlot.",
        ["cat-rotwein", "cat-bio", "cat-schweiz"],
    ),
    _article(
        "wine-018",
        "BIO-002",
        "Chardonnay Bio Burgund",
        48.50,
        "Biodynamischer Chardonnay aus Burgund.",
        ["cat-weisswein", "cat-bio"],
    ),
]


def get_mock_articles() -> List[Dict[str, Any]]:
    return [dict(record) for record in MOCK_ARTICLES]


def get_mock_categories() -> List[Dict[str, Any]]:
    return [dict(record) for record in MOCK_CATEGORIES]
