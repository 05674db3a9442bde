"""Tests for the Jinja2 template renderer."""

from __future__ import annotations

from pathlib import Path

import pytest

from netgen.errors import SynthesisError
from netgen.scaffolder.templates import TemplateRenderer

pytestmark = pytest.mark.unit


class TestTemplateRenderer:
    """Tests for TemplateRenderer."""

    def test_bundled_templates(self, renderer: TemplateRenderer) -> None:
        assert renderer.list_templates("read_mode") == [
            "read_mode/_frame_error.py.j2",
            "read_mode/delimited.py.j2",
            "read_mode/fixed_size.py.j2",
            "read_mode/length_prefixed.py.j2",
            "read_mode/lines.py.j2",
        ]
        assert "http/main.py.j2" in renderer.list_templates()

    def test_list_missing_prefix(self, renderer: TemplateRenderer) -> None:
        assert renderer.list_templates("nope") == []

    def test_missing_template(self, renderer: TemplateRenderer) -> None:
        with pytest.raises(SynthesisError, match="nope.j2"):
            renderer.render("nope.j2", {})

    def test_undefined_variable_is_error(self, tmp_path: Path) -> None:
        (tmp_path / "t.j2").write_text("PORT = {{ port }}\n", encoding="utf-8")
        with pytest.raises(SynthesisError):
            TemplateRenderer(tmp_path).render("t.j2", {})

    def test_filters(self, tmp_path: Path) -> None:
        (tmp_path / "t.j2").write_text(
            "x = {{ value | pyrepr }}\nname = {{ name | toml_str }}\n", encoding="utf-8"
        )
        out = TemplateRenderer(tmp_path).render(
            "t.j2", {"value": "it's", "name": 'a "b" \\c'}
        )
        assert out == 'x = "it\'s"\nname = "a \\"b\\" \\\\c"\n'

    def test_keeps_trailing_newline(self, tmp_path: Path) -> None:
        (tmp_path / "t.j2").write_text("{% if flag %}\nyes\n{% endif %}\nend\n", encoding="utf-8")
        assert TemplateRenderer(tmp_path).render("t.j2", {"flag": True}) == "yes\nend\n"
