import json
import os
from unittest.mock import Mock, patch

from click.testing import CliRunner

from headoffice.cli.main import main


def _geocode_response():
    response = Mock()
    response.status_code = 200
    response.json.return_value = [{"lat": "-33.87", "lon": "151.21", "display_name": "Sydney NSW"}]
    return response


class TestCLICommands:
    """Test suite for CLI commands."""

    def setup_method(self):
        """Setup test environment."""
        self.runner = CliRunner()

    def _write_config(self, text="REGISTRY_PROVIDER=mock\nCACHE_FILE=\nLOG_FILE=\n"):
        with open("settings.env", "w") as f:
            f.write(text)
        return "settings.env"

    def test_main_command_help(self):
        """Test main command help output."""
        result = self.runner.invoke(main, ['--help'])
        assert result.exit_code == 0
        assert 'Head Office Locator' in result.output
        assert 'search' in result.output
        assert 'serve' in result.output
        assert 'config' in result.output

    def test_version(self):
        result = self.runner.invoke(main, ['--version'])
        assert result.exit_code == 0
        assert 'Head Office Locator v0.1.0' in result.output

    @patch('headoffice.cli.commands.setup_logging')
    @patch('headoffice.registry.retry.requests.get')
    def test_search_with_mock_provider(self, mock_get, mock_logging):
        """Test a search rendered from the mock provider."""
        mock_get.return_value = _geocode_response()

        with self.runner.isolated_filesystem():
            config_path = self._write_config()
            result = self.runner.invoke(main, ['search', 'Example', 'Pty', 'Ltd', '-c', config_path])

        assert result.exit_code == 0, result.output
        assert 'Sample Pty Ltd' in result.output
        assert 'Territory: Inside' in result.output
        assert 'Franchise: Unknown' in result.output
        assert 'https://www.openstreetmap.org/?mlat=-33.87000&mlon=151.21000' in result.output
        assert 'Found details.' in result.output

    @patch('headoffice.cli.commands.setup_logging')
    @patch('headoffice.registry.retry.requests.get')
    def test_search_json_output(self, mock_get, mock_logging):
        mock_get.return_value = _geocode_response()

        with self.runner.isolated_filesystem():
            config_path = self._write_config()
            result = self.runner.invoke(main, ['search', 'Example', '-c', config_path, '--json'])

        assert result.exit_code == 0, result.output
        payload = json.loads(result.stdout)
        assert payload['name'] == 'Sample Pty Ltd'
        assert payload['salesTerritory']['status'] == 'Inside'
        assert payload['geo']['lat'] == -33.87
        assert 'Found details.' in result.stderr
        assert 'https://www.openstreetmap.org/' in result.stderr

    @patch('headoffice.cli.commands.setup_logging')
    def test_search_verbose_sets_debug_level(self, mock_logging):
        """Test that -v configures every handler at DEBUG."""
        with self.runner.isolated_filesystem():
            config_path = self._write_config()
            self.runner.invoke(main, ['search', '-c', config_path, '-v'])

        assert mock_logging.call_args.args[0]['level'] == 'DEBUG'

    @patch('headoffice.cli.commands.setup_logging')
    def test_search_default_level_from_config(self, mock_logging):
        with self.runner.isolated_filesystem():
            config_path = self._write_config("REGISTRY_PROVIDER=mock\nLOG_LEVEL=WARNING\nCACHE_FILE=\nLOG_FILE=\n")
            self.runner.invoke(main, ['search', '-c', config_path])

        assert mock_logging.call_args.args[0]['level'] == 'WARNING'

    @patch('headoffice.cli.commands.setup_logging')
    def test_search_without_name(self, mock_logging):
        with self.runner.isolated_filesystem():
            config_path = self._write_config()
            result = self.runner.invoke(main, ['search', '-c', config_path])

        assert result.exit_code == 1
        assert 'Please provide a company name.' in result.output

    @patch('headoffice.cli.commands.setup_logging')
    @patch('headoffice.registry.retry.time.sleep')
    @patch('headoffice.registry.retry.requests.get')
    def test_search_no_match_with_never_policy(self, mock_get, mock_sleep, mock_logging):
        response = Mock()
        response.status_code = 200
        response.json.return_value = {"results": {"companies": []}}
        mock_get.return_value = response

        with self.runner.isolated_filesystem():
            config_path = self._write_config(
                "REGISTRY_PROVIDER=opencorporates\nMOCK_FALLBACK=never\nCACHE_FILE=\nLOG_FILE=\n"
            )
            result = self.runner.invoke(main, ['search', 'Nonexistent', '-c', config_path])

        assert result.exit_code == 1
        assert 'No matching company found.' in result.output

    @patch('headoffice.cli.commands.setup_logging')
    def test_search_voice_unsupported(self, mock_logging):
        with self.runner.isolated_filesystem():
            config_path = self._write_config()
            result = self.runner.invoke(main, ['search', '--voice', '-c', config_path])

        assert result.exit_code == 1
        assert 'Voice input is not supported' in result.output

    def test_search_invalid_configuration(self):
        with self.runner.isolated_filesystem():
            config_path = self._write_config("REGISTRY_PROVIDER=abr\n")
            result = self.runner.invoke(main, ['search', 'Example', '-c', config_path])

        assert result.exit_code == 1
        assert 'ABR_GUID is required' in result.output

    def test_search_missing_config_file(self):
        with self.runner.isolated_filesystem():
            result = self.runner.invoke(main, ['search', 'Example', '-c', 'missing.env'])

        assert result.exit_code == 1
        assert 'Configuration file not found' in result.output

    def test_config_show_masks_token(self):
        with self.runner.isolated_filesystem():
            config_path = self._write_config("OPENCORPORATES_API_TOKEN=secret-token\n")
            result = self.runner.invoke(main, ['config', 'show', '-c', config_path])

        assert result.exit_code == 0
        assert 'OPENCORPORATES_API_TOKEN: \'****\'' in result.output
        assert 'secret-token' not in result.output
        assert 'TERRITORY_KEYWORD: Australia' in result.output

    def test_config_validate(self):
        with self.runner.isolated_filesystem():
            config_path = self._write_config()
            result = self.runner.invoke(main, ['config', 'validate', '-c', config_path])

        assert result.exit_code == 0
        assert 'Configuration is valid' in result.output

    def test_config_validate_failure(self):
        with self.runner.isolated_filesystem():
            config_path = self._write_config("REGISTRY_PROVIDER=proxy\n")
            result = self.runner.invoke(main, ['config', 'validate', '-c', config_path])

        assert result.exit_code == 1
        assert 'PROXY_BASE is required' in result.output

    def test_config_example(self):
        result = self.runner.invoke(main, ['config', 'example'])
        assert result.exit_code == 0
        assert 'TERRITORY_KEYWORD=Australia' in result.output
        assert 'NOMINATIM_BASE=https://nominatim.openstreetmap.org' in result.output

    def test_cache_clear(self):
        with self.runner.isolated_filesystem():
            config_path = self._write_config("CACHE_FILE=cache/lookups.json\n")
            os.makedirs("cache")
            with open("cache/lookups.json", "w") as f:
                f.write("{}")

            result = self.runner.invoke(main, ['cache', 'clear', '-c', config_path])

            assert result.exit_code == 0
            assert 'Cleared cache cache/lookups.json' in result.output
            assert not os.path.exists("cache/lookups.json")

    def test_cache_clear_memory_only(self):
        with self.runner.isolated_filesystem():
            config_path = self._write_config()
            result = self.runner.invoke(main, ['cache', 'clear', '-c', config_path])

        assert result.exit_code == 0
        assert 'memory-only' in result.output

    @patch('headoffice.cli.commands.setup_logging')
    @patch('headoffice.cli.commands.run_server')
    @patch('headoffice.core.config.load_dotenv')
    def test_serve(self, mock_load_dotenv, mock_run_server, mock_logging):
        result = self.runner.invoke(main, ['serve', '--port', '9001'], env={'ABR_GUID': 'guid-1'})

        assert result.exit_code == 0, result.output
        settings = mock_run_server.call_args.args[0]
        assert settings.abr_guid == 'guid-1'
        assert mock_run_server.call_args.kwargs == {'host': '127.0.0.1', 'port': 9001}
