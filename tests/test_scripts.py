"""
Command-Line Script Tests
=========================

Runs the scripts' main() functions in-process against temporary files.
"""

import importlib.util
import json
from pathlib import Path

import pytest

from tests.fixtures import SIM_SEED, pentagon_payload

SCRIPTS_DIR = Path(__file__).resolve().parent.parent / "scripts"


def load_script(name):
    spec = importlib.util.spec_from_file_location(name, SCRIPTS_DIR / f"{name}.py")
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


@pytest.fixture
def payload_file(tmp_path):
    path = tmp_path / "graph.json"
    path.write_text(json.dumps(pentagon_payload()), encoding="utf-8")
    return path


def test_generate_graph_data(tmp_path, capsys):
    output = tmp_path / "nested" / "data.json"
    script = load_script("generate_graph_data")

    code = script.main(["-o", str(output), "-p", "20", "-n", "30", "-a", "3", "-s", "5"])

    assert code == 0
    payload = json.loads(output.read_text(encoding="utf-8"))
    assert len(payload["users"]) == 20
    assert len(payload["links"]) == 30
    assert [a["assignmentId"] for a in payload["assignments"]] == [1, 2, 3]
    assert "[*] Generated" in capsys.readouterr().out


def test_run_layout_writes_positions(payload_file, tmp_path):
    output = tmp_path / "layout.json"
    script = load_script("run_layout")

    code = script.main([str(payload_file), "-a", "2", "-s", str(SIM_SEED), "-o", str(output)])

    assert code == 0
    result = json.loads(output.read_text(encoding="utf-8"))
    assert result["selection"] == [2]
    assert result["status"] == "cooled"
    assert result["active_edges"] == 2
    assert result["isolated_nodes"] == [1, 2]
    assert set(result["positions"]) == {"1", "2", "3", "4", "5"}


def test_run_layout_reports_bad_payload(tmp_path, capsys):
    path = tmp_path / "broken.json"
    path.write_text(json.dumps({"users": []}), encoding="utf-8")

    code = load_script("run_layout").main([str(path)])

    assert code == 1
    assert "MALFORMED_RECORD" in capsys.readouterr().err
