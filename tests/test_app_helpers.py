import importlib

import pytest

pytest.importorskip("flask")

PUZZLE = """0:
##
#.

1:
##
##

3x2: 2 0
2x2: 0 2
0x3: 1 0
"""


@pytest.fixture
def app_module(tmp_path, monkeypatch):
    app = importlib.import_module("app")
    from config import CFG

    monkeypatch.setattr(app, "BASE_DIR", str(tmp_path))
    monkeypatch.setattr(CFG, "WORKERS", 1)
    monkeypatch.setattr(CFG, "METHOD", "backtrack")
    return app


@pytest.fixture
def client(app_module):
    app_module.app.config["TESTING"] = True
    return app_module.app.test_client()


def test_finalize_solver_progress_respects_ok_flag(monkeypatch, app_module):
    calls = []

    def fake_set_done(ok=None, *, reason=None):
        calls.append((ok, reason))

    monkeypatch.setattr(app_module, "set_done", fake_set_done)

    app_module._finalize_solver_progress(True, "All good")
    app_module._finalize_solver_progress(False, "error happened")
    assert calls == [(True, "All good"), (False, "error happened")]


def test_finalize_solver_progress_sets_terminal_status(app_module):
    from progress import reset, snapshot

    reset()
    app_module._finalize_solver_progress(False, "2 of 3 regions fit")
    snap = snapshot()
    assert snap["status"] == "Error"
    assert snap["ok"] is False
    assert snap["message"] == "2 of 3 regions fit"

    app_module._finalize_solver_progress(True, "3 of 3 regions fit")
    assert snapshot()["status"] == "Solved"


def test_solve_returns_counts_as_json(client, tmp_path):
    resp = client.post("/solve", json={"puzzle": PUZZLE})
    assert resp.status_code == 200
    data = resp.get_json()

    assert data["total"] == 3
    assert data["feasible"] == 1
    assert data["infeasible"] == 1
    assert data["errors"] == 1
    assert data["ok"] is False
    assert [r["ok"] for r in data["regions"]] == [True, False, False]
    assert data["regions"][2]["error"]

    results = (tmp_path / "results.txt").read_text(encoding="utf-8")
    assert "Regions that fit: 1 of 3" in results
    assert (tmp_path / "layout_view.html").exists()


def test_solve_rejects_malformed_puzzle(client):
    resp = client.post("/solve", json={"puzzle": "0:\n##\n#\n"})
    assert resp.status_code == 400
    data = resp.get_json()
    assert data["ok"] is False
    assert "not rectangular" in data["error"]

    progress = client.get("/progress3").get_json()
    assert progress["status"] == "Error"
    assert progress["done"] is True


def test_solve_requires_region_lines(client):
    resp = client.post("/solve", data={"puzzle": "0:\n#\n"})
    assert resp.status_code == 400
    assert "no region lines" in resp.get_json()["error"]


def test_solve_renders_html_when_requested(client):
    resp = client.post("/solve", data={"puzzle": PUZZLE}, headers={"Accept": "text/html"})
    assert resp.status_code == 200
    body = resp.get_data(as_text=True)
    assert "1 of 3 regions fit" in body
    assert "<svg" in body


def test_progress_endpoint_disables_caching(client):
    client.post("/solve", json={"puzzle": "0:\n#\n\n1x1: 1\n"})
    resp = client.get("/progress3")
    assert resp.headers["Cache-Control"] == "no-store, max-age=0"
    data = resp.get_json()
    assert data["status"] == "Solved"
    assert data["feasible"] == 1
    assert data["result_url"] == "/result/latest"
