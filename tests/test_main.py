"""Tests for the throttled copy CLI."""

from __future__ import annotations

from pathlib import Path

import pytest

from tokenbucket import main as cli


def test_main_copies_file(tmp_path: Path) -> None:
    source = tmp_path / "in.bin"
    target = tmp_path / "out.bin"
    source.write_bytes(b"payload" * 100)

    code = cli.main(
        ["--rate", "1e9", "--capacity", "1000000", "--input", str(source), "--output", str(target), "--stats"]
    )

    assert code == 0
    assert target.read_bytes() == b"payload" * 100


@pytest.mark.parametrize(
    "extra",
    [["--rate", "0"], ["--capacity", "0"], ["--chunk-size", "0"]],
)
def test_main_rejects_invalid_arguments(tmp_path: Path, extra: list[str]) -> None:
    source = tmp_path / "in.bin"
    source.write_bytes(b"x")

    code = cli.main(["--input", str(source), "--output", str(tmp_path / "out.bin"), *extra])

    assert code == 2


def test_main_stops_on_invalid_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("TOKENBUCKET_CHUNK_SIZE", "lots")
    source = tmp_path / "in.bin"
    source.write_bytes(b"x")
    target = tmp_path / "out.bin"

    assert cli.main(["--input", str(source), "--output", str(target)]) == 2
    assert not target.exists()


def test_main_reports_missing_input(tmp_path: Path) -> None:
    target = tmp_path / "out.bin"

    code = cli.main(["--input", str(tmp_path / "missing.bin"), "--output", str(target)])

    assert code == 1
    assert not target.exists()


def test_main_closes_input_when_output_cannot_be_opened(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    source = tmp_path / "in.bin"
    source.write_bytes(b"x")
    opened = []
    real_open = open

    def tracking_open(path, mode="r", *args, **kwargs):
        handle = real_open(path, mode, *args, **kwargs)
        opened.append(handle)
        return handle

    monkeypatch.setattr("builtins.open", tracking_open)

    # A directory cannot be opened for writing.
    code = cli.main(["--input", str(source), "--output", str(tmp_path)])

    assert code == 1
    assert len(opened) == 1
    assert opened[0].closed is True


def test_main_rejects_unrepresentable_rate(tmp_path: Path) -> None:
    source = tmp_path / "in.bin"
    source.write_bytes(b"x")

    code = cli.main(["--rate", "1e-300", "--input", str(source), "--output", str(tmp_path / "out.bin")])

    assert code == 2
