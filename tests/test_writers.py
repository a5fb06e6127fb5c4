"""Tests for the writers module."""

import jinja2
import pytest

from appgen.context_builder import ContextData, ResourceData
from appgen.errors import EmissionError
from appgen.writers import ContextsWriter, ImportSpec, ResourcesWriter, simple_import


def _resource(**overrides) -> ResourceData:
    fields = dict(
        name="Bottle",
        snake="bottle",
        const="BOTTLE",
        identifier="application/vnd.bottle+json",
        description="",
        canonical_template="/bottles/%v",
        canonical_params=["id"],
        args=["id"],
    )
    fields.update(overrides)
    return ResourceData(**fields)


class TestImportSpec:
    """Test import statement rendering."""

    def test_simple(self):
        assert simple_import("logging").statement == "import logging"

    def test_from(self):
        assert ImportSpec("typing", ("Any", "Optional")).statement == "from typing import Any, Optional"


class TestSourceWriter:
    """Test header, record rendering and validation."""

    def test_header(self, tmp_path):
        path = tmp_path / "hrefs.py"
        with ResourcesWriter(path) as wr:
            wr.write_header("cellar: Hrefs", "cellarapp", [simple_import("logging")])
            wr.format_code()
        source = path.read_text()
        assert source.startswith("# Code generated by appgen, DO NOT EDIT.\n")
        assert "# cellar: Hrefs\n" in source
        assert "# Package: cellarapp\n" in source
        assert '"""cellar: Hrefs."""' in source
        assert "import logging\n" in source

    def test_header_without_imports(self, tmp_path):
        path = tmp_path / "hrefs.py"
        with ResourcesWriter(path) as wr:
            wr.write_header("cellar", "cellarapp", None)
            wr.format_code()
        assert "import" not in path.read_text()

    def test_execute_appends_records(self, tmp_path):
        path = tmp_path / "hrefs.py"
        with ResourcesWriter(path) as wr:
            wr.write_header("cellar", "cellarapp", [])
            wr.execute(_resource())
            wr.execute(_resource(name="Account", snake="account", const="ACCOUNT", canonical_template=""))
            wr.format_code()
        source = path.read_text()
        assert "def bottle_href(id) -> str:" in source
        assert "return fill_template('/bottles/%v', id)" in source
        assert "ACCOUNT_MEDIA_TYPE = 'application/vnd.bottle+json'" in source
        assert "account_href" not in source

    def test_docstring_text_escaped(self, tmp_path):
        path = tmp_path / "hrefs.py"
        with ResourcesWriter(path) as wr:
            wr.write_header('the "cellar" \\ API"', "cellarapp", [])
            wr.format_code()

    def test_invalid_source(self, tmp_path):
        path = tmp_path / "contexts.py"
        data = ContextData(
            name="Show Bottle",
            resource_name="Bottle",
            action_name="show",
            description="",
            payload=None,
            params=[],
            headers=[],
            responses=[],
            routes=[],
            api_name="cellar",
            version="",
        )
        with ContextsWriter(path) as wr:
            wr.write_header("cellar", "cellarapp", [])
            wr.execute(data)
            with pytest.raises(EmissionError, match="contexts.py"):
                wr.format_code()

    def test_record_missing_field(self, tmp_path):
        """Templates refuse records that lack a field they reference."""
        with ResourcesWriter(tmp_path / "hrefs.py") as wr:
            with pytest.raises(jinja2.UndefinedError):
                wr.execute({"name": "Bottle"})

    def test_cannot_open(self, tmp_path):
        with pytest.raises(OSError):
            ResourcesWriter(tmp_path / "missing" / "hrefs.py")
