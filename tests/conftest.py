import pytest
from typer.testing import CliRunner
from mongouri import ParseOptions, parse_connection_string


@pytest.fixture
def parse():
    return parse_connection_string


@pytest.fixture
def raw_case():
    return ParseOptions(case_translate=False)


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def clean_env(monkeypatch):
    monkeypatch.delenv('MONGODB_URI', raising=False)
    monkeypatch.delenv('MONGOURI_DEBUG', raising=False)
