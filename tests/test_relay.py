"""Tests for the command-line entry point"""

import os
from unittest.mock import patch

import pytest

import relay

@pytest.fixture
def clean_env(tmp_path):
    with patch.dict(os.environ, {'HOME': str(tmp_path)}, clear=True), \
            patch('fiforelay.config.get_config_path', return_value=tmp_path / 'missing.env'):
        yield

class TestParser:
    """Test option parsing"""

    def test_options_map_to_config_names(self):
        args = relay.build_parser().parse_args(
            ['-n', 'bot', '-c', '#chan', '-s', 'irc.example.com', '-p', '7000',
             '-r', '-vv', '-m', '600', '-e', 'cat', '-F', 'Full Name'])
        assert args.NICK == 'bot'
        assert args.CHANNEL == '#chan'
        assert args.SERVER == 'irc.example.com'
        assert args.PORT == 7000
        assert args.RECONNECT is True
        assert args.VERBOSE == 2
        assert args.PIPE_MODE == 0o600
        assert args.COMMAND == 'cat'
        assert args.FULLNAME == 'Full Name'

    def test_unset_options_are_none(self):
        args = relay.build_parser().parse_args(['-n', 'bot'])
        assert args.RECONNECT is None
        assert args.VERBOSE is None
        assert args.PORT is None

    def test_bad_mode(self):
        with pytest.raises(SystemExit):
            relay.build_parser().parse_args(['-m', '999'])

class TestMain:
    """Test the main entry point"""

    def test_no_arguments_prints_usage(self, capsys):
        assert relay.main([]) == 0
        assert 'usage' in capsys.readouterr().out

    def test_missing_nickname(self, clean_env, capsys):
        assert relay.main(['-s', 'irc.example.com']) == 1
        assert 'no nickname specified' in capsys.readouterr().err

    def test_runs_supervisor(self, clean_env):
        with patch('relay.Supervisor') as supervisor, patch('relay.setup_logging') as logging_setup:
            supervisor.return_value.run.return_value = 0
            assert relay.main(['-n', 'bot', '-v']) == 0

        config = supervisor.call_args[0][0]
        assert config.NICK == 'bot'
        assert config.VERBOSE == 1
        logging_setup.assert_called_once_with(1, None)

    def test_password_prompt(self, clean_env):
        with patch('relay.getpass.getpass', return_value='s3cret'), \
                patch('relay.Supervisor') as supervisor, patch('relay.setup_logging'):
            supervisor.return_value.run.return_value = 0
            relay.main(['-n', 'bot', '-P', '-'])
        assert supervisor.call_args[0][0].NICKSERV_PASSWORD == 's3cret'
