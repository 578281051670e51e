import httpx

KLARA_TEST_URL = "https://klara.test/core/latest"


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class RecordingHandler:
    """httpx.MockTransport handler that remembers every request it served."""

    def __init__(self, status_code=200, json_body=None, content=None, exc=None):
        self.status_code = status_code
        self.json_body = json_body
        self.content = content
        self.exc = exc
        self.calls = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        if self.exc is not None:
            raise self.exc
        if self.content is not None:
            return httpx.Response(self.status_code, content=self.content)
        return httpx.Response(self.status_code, json=self.json_body)


def klara_article(article_id, number, name_de=None, price=None, categories=(), **extra):
    record = {"id": article_id, "articleNumber": number}
    if name_de is not None:
        record["nameDE"] = name_de
    if price is not None:
        record["pricePeriods"] = [{"price": price, "currency": "CHF"}]
    record["posCategories"] = [{"id": c, "nameDE": c} for c in categories]
    record.update(extra)
    return record
