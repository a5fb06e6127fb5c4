"""Shared fixtures: the cellar API design used across the test suite."""

from __future__ import annotations

import copy
import json
from pathlib import Path
from typing import Any

import pytest

from appgen.config import GeneratorConfig
from appgen.design import API
from appgen.loader import build_design


# ---------------------------------------------------------------------------
# Design document
# ---------------------------------------------------------------------------

CELLAR: dict[str, Any] = {
    "name": "cellar",
    "description": "The wine cellar API",
    "versions": [
        {
            "version": "",
            "resources": [
                {
                    "name": "Bottle",
                    "description": "A wine bottle",
                    "media_type": "application/vnd.bottle+json",
                    "headers": {"X-Account": {"required": False}},
                    "responses": {"NotFound": {"status": 404}},
                    "actions": [
                        {
                            "name": "show",
                            "description": "Retrieve a bottle by ID",
                            "routes": [{"method": "GET", "path": "/bottles/:id"}],
                            "params": {"id": {"type": "integer", "required": True}},
                            "responses": {
                                "OK": {"status": 200, "media_type": "application/vnd.bottle+json"},
                            },
                        },
                        {
                            "name": "list",
                            "routes": [{"method": "GET", "path": "/bottles"}],
                            "params": {
                                "years": {"type": "array"},
                                "sort": {"type": "string"},
                            },
                            "responses": {
                                "OK": {
                                    "status": 200,
                                    "media_type": "application/vnd.bottle-collection+json",
                                },
                            },
                        },
                        {
                            "name": "create",
                            "routes": [{"method": "POST", "path": "/bottles"}],
                            "payload": "BottlePayload",
                            "headers": {"X-Account": {"required": True}},
                            "responses": {"Created": {"status": 201}},
                        },
                    ],
                },
                {
                    "name": "Review",
                    "actions": [
                        {
                            "name": "show",
                            "routes": [
                                {"method": "GET", "path": "/bottles/:id/reviews/:reviewID"},
                            ],
                            "responses": {"OK": {"status": 200}},
                        },
                    ],
                },
                {"name": "Health"},
            ],
        },
    ],
    "media_types": [
        {
            "identifier": "application/vnd.bottle+json",
            "type_name": "Bottle",
            "shape": "object",
            "attributes": {
                "id": {"type": "integer"},
                "name": {"type": "string"},
                "vintage": {"type": "Rating"},
            },
        },
        {
            "identifier": "application/vnd.bottle-collection+json",
            "type_name": "BottleCollection",
            "shape": "array",
            "element": "Bottle",
        },
        {
            "identifier": "text/x-bottle-name",
            "type_name": "BottleName",
            "shape": "string",
        },
    ],
    "user_types": [
        {
            "type_name": "BottlePayload",
            "shape": "object",
            "attributes": {
                "name": {"type": "string", "required": True},
                "vintage": {"type": "integer"},
            },
        },
        {"type_name": "Rating", "shape": "integer"},
    ],
}


@pytest.fixture
def cellar_doc() -> dict[str, Any]:
    """A fresh, mutable copy of the cellar design document."""
    return copy.deepcopy(CELLAR)


@pytest.fixture
def cellar_api(cellar_doc) -> API:
    return build_design(cellar_doc)


@pytest.fixture
def cellar_file(tmp_path, cellar_doc) -> Path:
    path = tmp_path / "cellar.json"
    path.write_text(json.dumps(cellar_doc))
    return path


@pytest.fixture
def config(tmp_path) -> GeneratorConfig:
    return GeneratorConfig(output_dir=tmp_path / "out", target_package="cellarapp")
