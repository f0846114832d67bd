import json
from pathlib import Path

import pytest
import requests


@pytest.fixture
def tmp_json(tmp_path: Path):
    def _make(data, name="sample.json"):
        path = tmp_path / name
        path.write_text(json.dumps(data, ensure_ascii=False), encoding="utf-8")
        return path

    return _make


class FakeResponse:
    def __init__(self, payload=None, status_code=200, text=None, headers=None, url="http://fake"):
        self._payload = payload
        self.status_code = status_code
        self.text = text if text is not None else json.dumps(payload)
        self.headers = headers or {}
        self.url = url

    def json(self):
        if self._payload is None and self.text:
            return json.loads(self.text)
        return self._payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error for {self.url}")


class FakeSession:
    """
    Stand-in for requests.Session.

    ``routes`` maps a URL (or a (method, URL) pair) to a FakeResponse, an
    exception instance to raise, or a list of those consumed in order.
    """

    def __init__(self, routes=None):
        self.routes = dict(routes or {})
        self.headers = {}
        self.verify = True
        self.calls = []

    def _answer(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        answer = self.routes.get((method, url), self.routes.get(url))
        if answer is None:
            return FakeResponse({"error": "not found"}, status_code=404, url=url)
        if isinstance(answer, list):
            answer = answer.pop(0) if len(answer) > 1 else answer[0]
        if isinstance(answer, BaseException):
            raise answer
        return answer

    def get(self, url, **kwargs):
        return self._answer("GET", url, **kwargs)

    def post(self, url, **kwargs):
        return self._answer("POST", url, **kwargs)

    def count(self, method, url):
        return sum(1 for m, u, _ in self.calls if m == method and u == url)


@pytest.fixture
def fake_session():
    return FakeSession()


@pytest.fixture
def swatch_records():
    return [
        {"pms": "185", "series": "C", "hex": "#E4002B", "name": "PMS 185 C", "notes": ""},
        {"pms": "185", "series": "U", "hex": "#F5333F", "name": "PMS 185 U", "notes": ""},
        {"pms": "286", "series": "C", "hex": "#0033A0", "name": "PMS 286 C", "notes": ""},
        {"pms": "113", "series": "C", "hex": "#FADE4B", "name": "PMS 113 C", "notes": ""},
        {"pms": "485", "series": "C", "hex": "#DA291C", "name": "PMS 485 C", "notes": ""},
    ]


def spreadsheet_record(code, color="FF0000", components=None, series="301 RC Neo"):
    components = components if components is not None else [
        {"componentCode": "RED MFB", "componentDescription": "Red", "percentage": 60.0,
         "hex": "C92A4F", "isBase": False},
        {"componentCode": "CLR 301C", "componentDescription": "Clear", "percentage": 40.0,
         "hex": "FFFFFF", "isBase": True},
    ]
    return {
        "_id": code,
        "formulaCode": code,
        "formulaDescription": f"Formula {code}",
        "formulaSeries": series,
        "formulaColor": "",
        "formulaSwatchColor": {"_id": code, "formulaCode": code, "formulaColor": color},
        "components": components,
    }


def scraped_record(formula_id, name, hex_value="#E4002B", percents=(50.0, 50.0)):
    return {
        "id": str(formula_id),
        "code": name,
        "name": name,
        "hex": hex_value,
        "family": "7500 Coated",
        "lines": [
            {"part_number": f"75-{i}", "name": f"Part {i}", "percent": pct,
             "weight": 10.0, "category": "base", "density": 1.2}
            for i, pct in enumerate(percents)
        ],
    }


@pytest.fixture
def make_spreadsheet_record():
    return spreadsheet_record


@pytest.fixture
def make_scraped_record():
    return scraped_record


SPREADSHEET_HEADER = ["FormulaCode", "FormulaDescription", "ComponentCode", "ComponentDescription", "Percentage"]


@pytest.fixture
def make_workbook():
    """Write an .xlsx export with the raw Matsui column layout."""
    import openpyxl

    def _make(path: Path, rows):
        wb = openpyxl.Workbook()
        ws = wb.active
        ws.append(SPREADSHEET_HEADER)
        for row in rows:
            ws.append(list(row))
        wb.save(path)
        wb.close()
        return path

    return _make
