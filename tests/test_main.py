"""Tests for the command line entry point."""

from main import _result_payload, main, parse_args

from cosmicdaily.domain.models import FetchResult
from cosmicdaily.enums import FetchSource, FetchState


class TestParseArgs:
    def test_defaults(self):
        args = parse_args([])
        assert args.refresh is False
        assert args.clear_cache is False
        assert args.translate is None
        assert args.recent is None
        assert args.date is None

    def test_options(self):
        args = parse_args(["--refresh", "--translate", "tr", "--recent", "3"])
        assert args.refresh is True
        assert args.translate == "tr"
        assert args.recent == 3


def test_result_payload(sample_record):
    result = FetchResult(
        record=sample_record,
        source=FetchSource.Cache,
        state=FetchState.ServingCache,
        fetched_at=123.0,
        is_stale=True,
    )
    payload = _result_payload(result)
    assert payload["source"] == "cache"
    assert payload["state"] == "serving_cache"
    assert payload["is_stale"] is True
    assert payload["record"]["hdurl"] == sample_record.hd_url


def test_configuration_error_exits_nonzero(monkeypatch, capsys):
    monkeypatch.setenv("NASA_API_KEY", "   ")
    assert main([]) == 1
    assert "Configuration Error" in capsys.readouterr().err
