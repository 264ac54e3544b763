# tests/test_app.py
import pytest

from site_sensitivity.app import app


@pytest.fixture
def client():
    app.config["TESTING"] = True
    with app.test_client() as c:
        yield c


def _body(**extra):
    body = {
        "layers": {"v": [[0, 10, 20], [10, 0, 20]]},
        "breakpoints": {"v": [[0, 10, 0], [10, 20, 10], [20, 30, 20]]},
        "mask": [[None, None, 1], [1, None, None]],
    }
    body.update(extra)
    return body


def test_root(client):
    r = client.get("/")
    assert r.status_code == 200
    assert r.get_json()["ok"] is True


def test_evaluate_reports_table_and_thresholds(client):
    r = client.post("/sensitivity/evaluate", json=_body(criterion="xover"))
    assert r.status_code == 200
    d = r.get_json()
    assert d["auc"] == pytest.approx(0.667)
    assert d["thresholds"] == {"sens_spec": 10.0, "xover": 20.0, "kg": 10.0, "reach": 20.0}
    assert d["n_positive"] == 2 and d["n_negative"] == 6
    # synthetic top threshold and undefined metrics are serialised as null
    assert d["table"][-1]["threshold"] is None
    assert d["table"][0]["reach"] is None
    assert d["threshold"] == 20.0
    assert d["prediction"] == [[0, 0, 1], [0, 0, 1]]
    assert r.headers["Access-Control-Allow-Origin"] == "*"


def test_sites_with_extent(client):
    body = _body(extent={"min_lon": 0, "min_lat": 0, "max_lon": 2, "max_lat": 1},
                 sites=[{"lon": 2, "lat": 1}, {"lon": 0, "lat": 0}])
    body.pop("mask")
    d = client.post("/sensitivity/evaluate", json=body).get_json()
    assert d["n_positive"] == 2
    assert d["thresholds"]["sens_spec"] == 10.0


def test_degenerate_sample_reports_nulls(client):
    d = client.post("/sensitivity/evaluate",
                    json=_body(mask=[[None] * 3, [None] * 3])).get_json()
    assert d["degenerate"] is True
    assert d["auc"] is None
    assert all(v is None for v in d["thresholds"].values())


def test_range_error_is_400(client):
    r = client.post("/sensitivity/evaluate",
                    json=_body(breakpoints={"v": [[0, 10, 1]]}))
    assert r.status_code == 400
    d = r.get_json()
    assert d["type"] == "RangeError"
    assert d["variable"] == "v"
    assert d["value"] in (10.0, 20.0)


def test_shape_mismatch_is_400(client):
    r = client.post("/sensitivity/evaluate", json=_body(mask=[[1, None]]))
    assert r.status_code == 400
    assert r.get_json()["type"] == "ShapeMismatchError"


def test_missing_inputs_are_400(client):
    assert client.post("/sensitivity/evaluate", json={}).status_code == 400
    body = _body(); body.pop("mask")
    assert client.post("/sensitivity/evaluate", json=body).status_code == 400
    assert client.post("/sensitivity/evaluate", json=_body(criterion="best")).status_code == 400


def test_malformed_layers_and_breakpoints_are_400(client):
    for body in (_body(layers={"v": 5}),
                 _body(layers={"v": [1, 2, 3]}),
                 _body(breakpoints={"v": [7]}),
                 _body(breakpoints={"v": 7})):
        for route in ("/sensitivity/evaluate", "/sensitivity/preview"):
            r = client.post(route, json=body)
            assert r.status_code == 400
            assert r.get_json()["type"] == "BadRequest"


def test_preview_png(client):
    r = client.post("/sensitivity/preview", json=_body(criterion="kg"))
    assert r.status_code == 200
    assert r.headers["Content-Type"] == "image/png"
    assert r.data[:8] == b"\x89PNG\r\n\x1a\n"
