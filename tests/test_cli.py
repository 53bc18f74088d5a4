import pytest

import compress_to_size
from compress_to_size import (
    EXIT_INVALID_INPUT,
    EXIT_OK,
    EXIT_UNATTAINABLE,
    EXIT_UNSUPPORTED_FORMAT,
    main,
)


def test_success(png_file, tmp_path, capsys):
    output = tmp_path / "small.jpg"
    code = main([str(png_file), str(output), "--ms", "40KB"])

    assert code == EXIT_OK
    assert output.stat().st_size <= 40_000
    assert "Size:" in capsys.readouterr().out


def test_explicit_format(png_file, tmp_path):
    output = tmp_path / "small.img"
    code = main([str(png_file), str(output), "--ms", "60KB", "--format", "webp"])

    assert code == EXIT_OK
    assert output.read_bytes()[8:12] == b"WEBP"


@pytest.mark.parametrize("flag, suffix, magic", [
    ("AUTO", "o.jpg", b"\xff\xd8"),
    ("Auto", "o.png", b"\x89PNG"),
    ("JPEG", "o.img", b"\xff\xd8"),
])
def test_format_flag_is_case_insensitive(png_file, tmp_path, flag, suffix, magic):
    output = tmp_path / suffix
    code = main([str(png_file), str(output), "--ms", "1MB", "--format", flag])

    assert code == EXIT_OK
    assert output.read_bytes().startswith(magic)


@pytest.mark.parametrize("size", ["abc", "0KB", "5XB"])
def test_bad_size(png_file, tmp_path, size):
    assert main([str(png_file), str(tmp_path / "o.jpg"), "--ms", size]) == EXIT_INVALID_INPUT


def test_missing_input(tmp_path):
    code = main([str(tmp_path / "missing.png"), str(tmp_path / "o.jpg"), "--ms", "1MB"])
    assert code == EXIT_INVALID_INPUT


def test_undecodable_input(tmp_path):
    bogus = tmp_path / "bogus.png"
    bogus.write_text("not an image")
    assert main([str(bogus), str(tmp_path / "o.jpg"), "--ms", "1MB"]) == EXIT_INVALID_INPUT


def test_unknown_extension(png_file, tmp_path):
    code = main([str(png_file), str(tmp_path / "o.gif"), "--ms", "1MB"])
    assert code == EXIT_UNSUPPORTED_FORMAT


def test_unknown_format_flag(png_file, tmp_path):
    code = main([str(png_file), str(tmp_path / "o.jpg"), "--ms", "1MB", "--format", "bmp"])
    assert code == EXIT_UNSUPPORTED_FORMAT


def test_unattainable_writes_nothing(png_file, tmp_path, capsys):
    output = tmp_path / "o.jpg"
    code = main([str(png_file), str(output), "--ms", "10B"])

    assert code == EXIT_UNATTAINABLE
    assert not output.exists()
    assert "closest" in capsys.readouterr().err


def test_invalid_search_settings(png_file, tmp_path):
    code = main([str(png_file), str(tmp_path / "o.jpg"), "--ms", "1MB", "--tolerance", "2"])
    assert code == EXIT_INVALID_INPUT


def test_search_settings_reach_config(png_file, tmp_path, monkeypatch):
    seen = {}

    def fake_compress_file(input_path, output_path, budget, fmt, config):
        seen.update(budget=budget, fmt=fmt, config=config)
        raise compress_to_size.BudgetUnattainable(budget)

    monkeypatch.setattr(compress_to_size, "compress_file", fake_compress_file)
    code = main([
        str(png_file), str(tmp_path / "o.png"), "--ms", "1.5KiB",
        "--max-iterations", "4", "--max-rounds", "2", "--scale-decay", "0.5",
        "--min-scale", "0.25", "--tolerance", "0.1",
    ])

    assert code == EXIT_UNATTAINABLE
    assert seen["budget"] == 1536
    assert seen["fmt"] == "png"
    config = seen["config"]
    assert (config.max_iterations, config.max_fallback_rounds) == (4, 2)
    assert (config.scale_decay, config.min_scale, config.tolerance) == (0.5, 0.25, 0.1)
