"""Smoke tests: imports work, CLI --help works."""

from click.testing import CliRunner

from flowviz.__main__ import main


def test_import():
    import flowviz

    assert flowviz.parse_flow is not None


def test_cli_help():
    runner = CliRunner()
    result = runner.invoke(main, ["--help"])
    assert result.exit_code == 0
    assert "Salesforce Flow XML" in result.output
