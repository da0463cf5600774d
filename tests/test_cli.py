"""Tests for the stencil CLI."""

from typer.testing import CliRunner

from stencil import __version__
from stencil.cli import typer_app

runner = CliRunner()


def test_version():
    result = runner.invoke(typer_app, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.stdout


def test_render_to_stdout(tmp_path):
    page = tmp_path / "page.tpl"
    page.write_text("Hi <%= name %>")
    data = tmp_path / "data.yaml"
    data.write_text("name: Ada\n")

    result = runner.invoke(typer_app, ["render", str(page), "-d", str(data)])
    assert result.exit_code == 0, result.output
    assert result.stdout == "Hi Ada"


def test_render_from_views_to_file(tmp_path):
    views = tmp_path / "views"
    views.mkdir()
    (views / "page.tpl").write_text("<%= include_file('./part') %>!")
    (views / "part.tpl").write_text("part")
    out = tmp_path / "out" / "page.txt"

    result = runner.invoke(
        typer_app, ["render", "page", "--views", str(views), "--cache", "-o", str(out)]
    )
    assert result.exit_code == 0, result.output
    assert out.read_text() == "part!"


def test_render_async(tmp_path):
    page = tmp_path / "page.tpl"
    page.write_text("<%= 1 + 1 %>")

    result = runner.invoke(typer_app, ["render", str(page), "--async"])
    assert result.exit_code == 0, result.output
    assert result.stdout == "2"


def test_render_with_config_file(tmp_path):
    page = tmp_path / "page.tpl"
    page.write_text("<%= html %>")
    data = tmp_path / "data.json"
    data.write_text('{"html": "<b>"}')
    config = tmp_path / "stencil.yaml"
    config.write_text("auto_escape: false\n")

    result = runner.invoke(
        typer_app, ["render", str(page), "-d", str(data), "-c", str(config)]
    )
    assert result.exit_code == 0, result.output
    assert result.stdout == "<b>"


def test_render_missing_template_fails(tmp_path):
    result = runner.invoke(typer_app, ["render", "nope", "--views", str(tmp_path)])
    assert result.exit_code == 1
    assert "Could not find the template" in result.output


def test_check_ok(tmp_path):
    page = tmp_path / "page.tpl"
    page.write_text("<% if x %>y<% endif %>")

    result = runner.invoke(typer_app, ["check", str(page)])
    assert result.exit_code == 0, result.output
    assert "OK" in result.stdout


def test_check_reports_syntax_error(tmp_path):
    page = tmp_path / "page.tpl"
    page.write_text("<% if x %>never closed")

    result = runner.invoke(typer_app, ["check", str(page)])
    assert result.exit_code == 1
    assert "Loading file" in result.output


def test_render_malformed_data_file_fails_cleanly(tmp_path):
    page = tmp_path / "page.tpl"
    page.write_text("Hi <%= name %>")
    data = tmp_path / "data.yaml"
    data.write_text("name: [Ada\n")

    result = runner.invoke(typer_app, ["render", str(page), "-d", str(data)])
    assert result.exit_code == 1
    assert isinstance(result.exception, SystemExit)
    assert "Invalid YAML in data file" in result.output


def test_render_malformed_config_file_fails_cleanly(tmp_path):
    page = tmp_path / "page.tpl"
    page.write_text("Hi")
    config = tmp_path / "stencil.yaml"
    config.write_text("views: {unclosed\n")

    result = runner.invoke(typer_app, ["render", str(page), "-c", str(config)])
    assert result.exit_code == 1
    assert isinstance(result.exception, SystemExit)
    assert "Invalid YAML in config file" in result.output
