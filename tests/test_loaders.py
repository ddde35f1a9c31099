"""Tests for template loaders."""

import pytest

from dtl import (
    ChoiceLoader,
    DictLoader,
    Environment,
    FileSystemLoader,
    FunctionLoader,
    TemplateNotFoundError,
)


class TestFileSystemLoader:
    """Loading from directories."""

    def test_load(self, tmp_path):
        (tmp_path / "page.html").write_text("Hi {{ name }}", encoding="utf-8")
        env = Environment(loader=FileSystemLoader(tmp_path))
        t = env.get_template("page.html")
        assert t.render(name="Ada") == "Hi Ada"
        assert t.filename == str((tmp_path / "page.html").resolve())

    def test_subdirectory(self, tmp_path):
        (tmp_path / "pages").mkdir()
        (tmp_path / "pages" / "about.html").write_text("About", encoding="utf-8")
        loader = FileSystemLoader(str(tmp_path))
        source, _ = loader.get_source("pages/about.html")
        assert source == "About"

    def test_search_order(self, tmp_path):
        first = tmp_path / "custom"
        second = tmp_path / "default"
        first.mkdir()
        second.mkdir()
        (first / "nav.html").write_text("custom", encoding="utf-8")
        (second / "nav.html").write_text("default", encoding="utf-8")
        (second / "footer.html").write_text("footer", encoding="utf-8")
        loader = FileSystemLoader([first, second])
        assert loader.get_source("nav.html")[0] == "custom"
        assert loader.get_source("footer.html")[0] == "footer"

    def test_missing(self, tmp_path):
        loader = FileSystemLoader(tmp_path)
        with pytest.raises(TemplateNotFoundError) as exc_info:
            loader.get_source("nope.html")
        assert exc_info.value.name == "nope.html"

    def test_path_escape_rejected(self, tmp_path):
        root = tmp_path / "templates"
        root.mkdir()
        (tmp_path / "secret.txt").write_text("secret", encoding="utf-8")
        loader = FileSystemLoader(root)
        with pytest.raises(TemplateNotFoundError):
            loader.get_source("../secret.txt")

    def test_directory_is_not_a_template(self, tmp_path):
        (tmp_path / "dir").mkdir()
        with pytest.raises(TemplateNotFoundError):
            FileSystemLoader(tmp_path).get_source("dir")

    def test_encoding(self, tmp_path):
        (tmp_path / "latin.html").write_bytes("café".encode("latin-1"))
        loader = FileSystemLoader(tmp_path, encoding="latin-1")
        assert loader.get_source("latin.html")[0] == "café"

    def test_list_templates(self, tmp_path):
        (tmp_path / "a.html").write_text("", encoding="utf-8")
        (tmp_path / "sub").mkdir()
        (tmp_path / "sub" / "b.html").write_text("", encoding="utf-8")
        assert FileSystemLoader(tmp_path).list_templates() == ["a.html", "sub/b.html"]

    def test_include_from_files(self, tmp_path):
        (tmp_path / "base.html").write_text("[{% block c %}{% endblock %}]", encoding="utf-8")
        (tmp_path / "page.html").write_text(
            "{% extends 'base.html' %}{% block c %}{% include 'part.html' %}{% endblock %}",
            encoding="utf-8",
        )
        (tmp_path / "part.html").write_text("part", encoding="utf-8")
        env = Environment(loader=FileSystemLoader(tmp_path))
        assert env.render("page.html") == "[part]"


class TestDictLoader:
    """In-memory templates."""

    def test_load(self):
        loader = DictLoader({"a.html": "A"})
        assert loader.get_source("a.html") == ("A", None)
        assert loader.list_templates() == ["a.html"]

    def test_suggestion(self):
        loader = DictLoader({"base.html": ""})
        with pytest.raises(TemplateNotFoundError, match="Did you mean 'base.html'"):
            loader.get_source("bsae.html")

    def test_lists_available(self):
        loader = DictLoader({"one.html": "", "two.html": ""})
        with pytest.raises(TemplateNotFoundError, match="Available: one.html, two.html"):
            loader.get_source("zzzzzzzz")


class TestChoiceLoader:
    """Fallback across loaders."""

    def test_first_match_wins(self):
        loader = ChoiceLoader([DictLoader({"nav.html": "custom"}), DictLoader({"nav.html": "default", "f.html": "f"})])
        assert loader.get_source("nav.html")[0] == "custom"
        assert loader.get_source("f.html")[0] == "f"
        assert loader.list_templates() == ["f.html", "nav.html"]

    def test_none_match(self):
        loader = ChoiceLoader([DictLoader({}), DictLoader({})])
        with pytest.raises(TemplateNotFoundError, match="not found in any of 2 loaders") as exc_info:
            loader.get_source("x.html")
        assert exc_info.value.name == "x.html"


class TestFunctionLoader:
    """Callable-backed loader."""

    def test_string_result(self):
        loader = FunctionLoader(lambda name: "Hello" if name == "g.html" else None)
        assert loader.get_source("g.html") == ("Hello", None)

    def test_tuple_result(self):
        loader = FunctionLoader(lambda name: ("src", f"db://{name}"))
        assert loader.get_source("x") == ("src", "db://x")

    def test_none_is_not_found(self):
        loader = FunctionLoader(lambda name: None)
        with pytest.raises(TemplateNotFoundError) as exc_info:
            loader.get_source("x")
        assert exc_info.value.name == "x"

    def test_with_environment(self):
        env = Environment(loader=FunctionLoader(lambda name: "Hello, {{ name }}!"))
        assert env.render("any", name="World") == "Hello, World!"
