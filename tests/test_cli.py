import json
from pathlib import Path

import pytest

from bindforge.cli import build_parser, main, module_from_args


def test_build_with_inprocess_toolchain_writes_report(
    project: Path,
    tmp_path: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    report_path = tmp_path / "report.json"
    log_path = tmp_path / "build.jsonl"

    code = main(
        [
            "build",
            "Acme.Widget",
            "--root",
            str(project),
            "--platform",
            "linux",
            "--toolchain",
            "inprocess",
            "--report",
            str(report_path),
            "--log",
            str(log_path),
        ],
    )

    assert code == 0
    report = json.loads(report_path.read_text(encoding="utf-8"))
    assert [stage["status"] for stage in report["stages"]] == ["executed"] * 7
    assert log_path.read_text(encoding="utf-8").strip()
    assert "Widget.so" in capsys.readouterr().out


def test_second_build_reports_nothing_to_do(
    project: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    argv = ["build", "Acme.Widget", "--root", str(project), "--toolchain", "inprocess"]
    assert main([*argv, "--platform", "linux"]) == 0
    capsys.readouterr()

    assert main([*argv, "--platform", "linux"]) == 0

    assert "nothing to do" in capsys.readouterr().out


def test_errors_exit_nonzero_with_code(
    project: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    (project / "core" / "Broken.idl").write_text("class Broken {\n", encoding="utf-8")

    code = main(["build", "Acme.Widget", "--root", str(project), "--toolchain", "inprocess"])

    assert code == 1
    assert "error [E_PARSE]" in capsys.readouterr().err


def test_invalid_module_name_is_reported(capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["clean", "not-a-module"]) == 1
    assert "E_VALIDATION" in capsys.readouterr().err


def test_clean_removes_build_outputs(project: Path, capsys: pytest.CaptureFixture[str]) -> None:
    common = ["Acme.Widget", "--root", str(project), "--platform", "linux"]
    assert main(["build", *common, "--toolchain", "inprocess"]) == 0

    assert main(["clean", *common]) == 0

    assert "Removed" in capsys.readouterr().out
    assert not (project / "autogen").exists()
    assert not (project / "blib").joinpath("arch", "auto", "Acme", "Widget", "Widget.so").exists()
    assert (project / "core" / "Acme" / "Widget.idl").is_file()


def test_flag_options_feed_build_config(tmp_path: Path) -> None:
    header = tmp_path / "banner.txt"
    header.write_text("/* generated */\n", encoding="utf-8")
    args = build_parser().parse_args(
        [
            "build",
            "Acme.Widget",
            "--cflags=-O2 -g",
            "--cflags=-Wall",
            "--ldflags=-lm",
            "-L",
            "/opt/acme/lib",
            "-l",
            "acme",
            "--header-file",
            str(header),
        ],
    )

    config = module_from_args(args).config

    assert config.extra_compiler_flags == ("-O2", "-g", "-Wall")
    assert config.extra_linker_flags == ("-lm",)
    assert config.library_dirs == (Path("/opt/acme/lib"),)
    assert config.libraries == ("acme",)
    assert config.autogen_header == "/* generated */\n"
    assert config.autogen_footer == ""


def test_header_file_lands_in_generated_sources(project: Path, tmp_path: Path) -> None:
    header = tmp_path / "banner.txt"
    header.write_text("/* acme generated */\n", encoding="utf-8")
    argv = ["build", "Acme.Widget", "--root", str(project), "--toolchain", "inprocess"]

    assert main([*argv, "--platform", "linux", "--header-file", str(header)]) == 0

    generated = project / "autogen" / "include" / "Acme_Widget.h"
    assert generated.read_text(encoding="utf-8").startswith("/* acme generated */\n")


def test_missing_header_file_is_reported(
    project: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    argv = ["build", "Acme.Widget", "--root", str(project), "--header-file", "nope.txt"]

    assert main(argv) == 1
    assert "E_MISSING_INPUT" in capsys.readouterr().err
