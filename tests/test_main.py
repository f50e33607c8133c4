"""
Command line entry point tests
"""
import logging

import main
from aedoom_ai.config import Config


def test_detailed_logging_forces_debug_console():
    args = main.parse_args(['--log-level', 'WARNING'])
    assert main.console_level(args) == logging.WARNING
    assert main.console_level(args, Config()) == logging.WARNING
    assert main.console_level(args, Config().replace(DETAILED_LOGGING=True)) == logging.DEBUG


def test_synthetic_run_writes_report(monkeypatch, tmp_path):
    calls = []
    monkeypatch.setattr(main, 'setup_pretty_logging', lambda **kwargs: calls.append(kwargs))
    monkeypatch.setattr(main.signal, 'signal', lambda *args: None)
    monkeypatch.setenv('AEDOOM_DETAILED_LOGGING', 'true')
    report = tmp_path / "report.txt"

    code = main.main(['--synthetic', '--size', '16x16', '--frames', '3',
                      '--workers', '1', '--report', str(report)])

    assert code == 0
    assert calls[0]['level'] == logging.DEBUG
    assert calls[0]['log_to_file'] is False
    assert "Frames Processed: 3" in report.read_text(encoding='utf-8')


def test_invalid_environment_is_reported(monkeypatch):
    monkeypatch.setattr(main, 'setup_pretty_logging', lambda **kwargs: None)
    monkeypatch.setenv('AEDOOM_NUM_ACTIONS', '12')
    assert main.main(['--frames', '1']) == 2
