"""
Tests for scripts/export_openapi.py.
"""

import importlib.util
import json
from pathlib import Path

import pytest
import yaml

SCRIPT = Path(__file__).resolve().parents[2] / "scripts" / "export_openapi.py"


@pytest.fixture
def exporter():
    spec = importlib.util.spec_from_file_location("export_openapi", SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


class TestExportOpenAPI:

    def test_spec_describes_gateway(self, exporter) -> None:
        spec = exporter.build_spec()

        assert spec["info"]["title"] == "Study Assistant Gateway"
        assert spec["info"]["version"] == "1.0.0"
        assert "/api/v1/chatbot/chat" in spec["paths"]

    def test_writes_json_and_yaml(self, exporter, tmp_path) -> None:
        json_path, yaml_path = exporter.export_openapi_spec(tmp_path / "docs")

        from_json = json.loads(json_path.read_text())
        from_yaml = yaml.safe_load(yaml_path.read_text())
        assert from_json == from_yaml
        assert "/health/ready" in from_json["paths"]
