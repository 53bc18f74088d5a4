import pytest

from size_target.units import parse_size


@pytest.mark.parametrize("text, expected", [
    ("500KB", 500_000),
    ("1MB", 1_000_000),
    ("1.5 MB", 1_500_000),
    ("2KiB", 2048),
    ("1mib", 1024 ** 2),
    ("123", 123),
    ("10b", 10),
    ("1k", 1000),
    ("4.35KB", 4350),
    (" 2 GB ", 2_000_000_000),
])
def test_parse_size(text, expected):
    assert parse_size(text) == expected


@pytest.mark.parametrize("text", ["", "abc", "5XB", "0KB", "-5KB", "0.0001KB", "KB"])
def test_parse_size_rejects(text):
    with pytest.raises(ValueError):
        parse_size(text)
