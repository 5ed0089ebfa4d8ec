#!/usr/bin/env python3
"""
Export the gateway's OpenAPI specification to JSON and YAML.

Usage:
    python scripts/export_openapi.py [--output-dir docs]

Outputs:
    - <output-dir>/openapi.json
    - <output-dir>/openapi.yaml
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Any

import yaml

# Add project root to path for imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from assistant_gateway.core.config import Settings  # noqa: E402
from assistant_gateway.main import create_app  # noqa: E402


def build_spec() -> dict[str, Any]:
    """OpenAPI document of an app built with default (fallback-only) settings."""
    return create_app(Settings(google_api_key="")).openapi()


def export_openapi_spec(output_dir: Path) -> tuple[Path, Path]:
    """
    Write the spec to output_dir as openapi.json and openapi.yaml.

    Returns:
        Paths of the JSON and YAML files.
    """
    spec = build_spec()
    output_dir.mkdir(parents=True, exist_ok=True)

    json_path = output_dir / "openapi.json"
    with open(json_path, "w") as f:
        json.dump(spec, f, indent=2)

    yaml_path = output_dir / "openapi.yaml"
    with open(yaml_path, "w") as f:
        yaml.safe_dump(spec, f, default_flow_style=False, sort_keys=False)

    info = spec.get("info", {})
    print(f"Exported {info.get('title', 'N/A')} v{info.get('version', 'N/A')}")
    print(f"   Paths: {len(spec.get('paths', {}))}")
    print(f"   Schemas: {len(spec.get('components', {}).get('schemas', {}))}")
    print(f"   -> {json_path}")
    print(f"   -> {yaml_path}")
    return json_path, yaml_path


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Export the OpenAPI specification")
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=project_root / "docs",
        help="Directory to write openapi.json / openapi.yaml into",
    )
    args = parser.parse_args()
    export_openapi_spec(args.output_dir)
