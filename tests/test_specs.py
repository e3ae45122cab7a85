from datetime import timedelta

import pytest

from smolvm.agent.types import PortMapping
from smolvm.cli.specs import (
    microvm_label,
    parse_duration,
    parse_env_spec,
    parse_port,
    truncate,
)


def test_parse_duration_seconds():
    assert parse_duration("30s") == timedelta(seconds=30)


def test_parse_duration_minutes_equal_seconds():
    assert parse_duration("5m") == parse_duration("300s")


def test_parse_duration_hour_equals_sixty_minutes():
    assert parse_duration("1h") == parse_duration("60m")


def test_parse_duration_combined_parts_add_up():
    assert parse_duration("1h 30m") == parse_duration("1h") + parse_duration("30m")


def test_parse_duration_unit_aliases_agree():
    assert parse_duration("2sec") == parse_duration("2s") == parse_duration("2seconds")


def test_parse_duration_milliseconds():
    assert parse_duration("1500ms") == parse_duration("1s") + parse_duration("500ms")


@pytest.mark.parametrize("text", ["", "   ", "30", "5x", "abc", "s"])
def test_parse_duration_rejects_invalid(text):
    with pytest.raises(ValueError):
        parse_duration(text)


def test_parse_port_host_guest():
    assert parse_port("8080:80") == PortMapping(8080, 80)


def test_parse_port_single_maps_same():
    mapping = parse_port("443")
    assert mapping.host == mapping.guest == 443


def test_parse_port_invalid_host_message():
    with pytest.raises(ValueError, match="invalid host port: abc"):
        parse_port("abc:80")


def test_parse_port_invalid_guest_message():
    with pytest.raises(ValueError, match="invalid guest port: xyz"):
        parse_port("80:xyz")


def test_parse_port_invalid_single_message():
    with pytest.raises(ValueError, match="invalid port: nope"):
        parse_port("nope")


@pytest.mark.parametrize("spec", ["65536", "-1", "1:2:3", "", " 80"])
def test_parse_port_rejects_out_of_range_and_malformed(spec):
    with pytest.raises(ValueError):
        parse_port(spec)


def test_parse_env_spec_key_value():
    assert parse_env_spec("FOO=bar") == ("FOO", "bar")


def test_parse_env_spec_value_keeps_later_equals():
    assert parse_env_spec("A=b=c") == ("A", "b=c")


def test_parse_env_spec_empty_value_allowed():
    assert parse_env_spec("EMPTY=") == ("EMPTY", "")


@pytest.mark.parametrize("spec", ["NOEQUALS", "=value", ""])
def test_parse_env_spec_rejects(spec):
    assert parse_env_spec(spec) is None


def test_microvm_label_default():
    assert microvm_label(None) == "default"


def test_microvm_label_named():
    assert microvm_label("web") == "web"


def test_truncate_short_text_unchanged():
    assert truncate("alpine", 18) == "alpine"


def test_truncate_exact_length_unchanged():
    text = "x" * 18
    assert truncate(text, 18) == text


def test_truncate_long_text():
    text = "docker.io/library/ubuntu:22.04"
    result = truncate(text, 23)
    assert len(result) == 23
    assert result.endswith("...")
    assert text.startswith(result[:-3])


def test_truncate_limit_too_small():
    with pytest.raises(ValueError):
        truncate("abcdef", 2)