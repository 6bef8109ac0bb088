from unittest.mock import AsyncMock, patch

from typer.testing import CliRunner

from joke_common.cli import app

runner = CliRunner()


@patch("joke_common.cli.load_dotenv")
@patch("uvicorn.run")
def test_serve_runs_selected_service(mock_run, mock_load_dotenv):
    result = runner.invoke(app, ["serve", "submit", "--port", "9999"])

    assert result.exit_code == 0
    args, kwargs = mock_run.call_args
    assert args[0] == "submit_service.api.main:app"
    assert kwargs["port"] == 9999
    mock_load_dotenv.assert_called_once()


@patch("joke_common.cli.load_dotenv")
@patch("uvicorn.run")
def test_serve_etl_uses_etl_port(mock_run, mock_load_dotenv):
    result = runner.invoke(app, ["serve", "etl"])

    assert result.exit_code == 0
    args, kwargs = mock_run.call_args
    assert args[0] == "joke_service.etl.main:app"
    assert kwargs["port"] == 3001


@patch("joke_common.cli.load_dotenv")
@patch("joke_common.cli.setup_logging")
@patch("joke_service.storage.create_store")
def test_types_prints_store_types(mock_create_store, mock_setup_logging, mock_load_dotenv):
    store = AsyncMock()
    store.list_distinct_types.return_value = ["dad", "general"]
    mock_create_store.return_value = store

    result = runner.invoke(app, ["types"])

    assert result.exit_code == 0
    assert result.stdout.splitlines() == ["dad", "general"]
    store.initialize.assert_awaited_once()
    store.close.assert_awaited_once()


@patch("joke_common.cli.load_dotenv")
@patch("joke_common.cli.setup_logging")
@patch("joke_service.storage.seed_if_empty", new_callable=AsyncMock)
@patch("joke_service.storage.create_store")
def test_seed_reports_inserted_count(mock_create_store, mock_seed, mock_setup_logging, mock_load_dotenv):
    mock_create_store.return_value = AsyncMock()
    mock_seed.return_value = 6

    result = runner.invoke(app, ["seed"])

    assert result.exit_code == 0
    assert "Inserted 6 sample jokes" in result.stdout
