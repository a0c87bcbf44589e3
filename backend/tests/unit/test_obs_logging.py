import json
import logging

from campuslink.obs import logging as obs_logging
from campuslink.settings import settings


def _record(level=logging.INFO, msg="recs.friends subject=%s", args=("u1",), **extra):
	record = logging.LogRecord("campuslink.test", level, __file__, 1, msg, args, None)
	for key, value in extra.items():
		setattr(record, key, value)
	return record


def test_json_formatter_emits_context_and_extras():
	tokens = obs_logging.bind_context(request_id="req-1", user_id="u1", domain="friends")
	try:
		line = obs_logging.JSONLogFormatter().format(_record(candidates=["a", "b"]))
	finally:
		obs_logging.reset_context(tokens)
	payload = json.loads(line)

	assert payload["msg"] == "recs.friends subject=u1"
	assert payload["level"] == "info"
	assert payload["request_id"] == "req-1"
	assert payload["domain"] == "friends"
	assert payload["candidates"] == ["a", "b"]
	assert payload["service"] == settings.service_name


def test_json_formatter_redacts_and_truncates():
	record = _record(user_email="ada@example.edu", note="x" * 300, ids=list(range(20)))
	payload = json.loads(obs_logging.JSONLogFormatter().format(record))

	assert payload["user_email"] == "[redacted]"
	assert len(payload["note"]) == 257
	assert len(payload["ids"]) == 11
	assert "request_id" not in payload


def test_sampling_filter_only_drops_info(monkeypatch):
	monkeypatch.setattr(settings, "obs_log_sampling_rate_info", 0.0)
	sampler = obs_logging.InfoSamplingFilter()
	assert sampler.filter(_record()) is False
	assert sampler.filter(_record(level=logging.WARNING)) is True

	monkeypatch.setattr(settings, "obs_log_sampling_rate_info", 1.0)
	assert sampler.filter(_record()) is True
