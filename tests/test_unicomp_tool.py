"""Tests for scripts/unicomp_tool.py."""
from __future__ import annotations

import importlib.util
import json
import os
import subprocess
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
SCRIPT = ROOT / "scripts" / "unicomp_tool.py"


def _load_tool_module() -> object:
    spec = importlib.util.spec_from_file_location("unicomp_tool", SCRIPT)
    assert spec is not None
    module = importlib.util.module_from_spec(spec)
    assert spec.loader is not None
    spec.loader.exec_module(module)
    return module


def _run(*args: str, stdin: str | None = None, **env_overrides: str) -> subprocess.CompletedProcess[str]:
    env = os.environ.copy()
    env["PYTHONPATH"] = str(ROOT / "src")
    env["PYTHONIOENCODING"] = "utf-8"
    env.update(env_overrides)
    return subprocess.run(
        [sys.executable, str(SCRIPT), *args],
        input=stdin,
        capture_output=True,
        text=True,
        encoding="utf-8",
        env=env,
        check=False,
    )


class TestStripFileHeader:
    def test_header_removed(self) -> None:
        mod = _load_tool_module()
        content = "# UNICOMP v1.0\n# exported 2024-01-01\n(5):F0-0\n(5):G1-1\n"
        assert mod.strip_file_header(content) == "(5):F0-0\n(5):G1-1"

    def test_without_marker_untouched(self) -> None:
        mod = _load_tool_module()
        content = "# just a comment\n(5):F0-0\n"
        assert mod.strip_file_header(content) == content

    def test_export_header_round_trips(self) -> None:
        mod = _load_tool_module()
        assert mod.strip_file_header(mod.FILE_HEADER + "(5):F0-0") == "(5):F0-0"


class TestResolveLimits:
    def test_cli_flags_override_environment(self, monkeypatch) -> None:  # type: ignore[no-untyped-def]
        mod = _load_tool_module()
        monkeypatch.setenv("UNICOMP_TIMEOUT_MS", "300")
        monkeypatch.setenv("UNICOMP_MAX_SYMBOLS", "7")
        args = mod.build_parser().parse_args(["--timeout-ms", "50", "format", "(5):F0-0"])
        limits = mod.resolve_limits(args)
        assert (limits.timeout_ms, limits.max_symbols) == (50, 7)


class TestCommands:
    def test_check_valid_document(self, tmp_path: Path) -> None:
        doc = tmp_path / "rules.txt"
        doc.write_text("# title\n(5):F0-0\n\n(8x4):A15-17\n", encoding="utf-8")
        proc = _run("check", str(doc))
        assert proc.returncode == 0, proc.stderr
        payload = json.loads(proc.stdout)
        assert payload["ok"] is True
        assert payload["validCount"] == 2
        assert [b["lineNumber"] for b in payload["blocks"]] == [2, 4]

    def test_check_reports_errors(self, tmp_path: Path) -> None:
        doc = tmp_path / "rules.txt"
        doc.write_text("(5):F0-0\n(5):F0-99\n", encoding="utf-8")
        proc = _run("check", str(doc))
        assert proc.returncode == 1
        payload = json.loads(proc.stdout)
        assert payload["errorCount"] == 1
        assert payload["errorLines"][0]["lineNumber"] == 2
        assert "line 2" in proc.stderr

    def test_check_strips_header_from_stdin(self) -> None:
        proc = _run("check", "-", stdin="# UNICOMP v1.0\n# note\n(5):F0-0\n")
        assert proc.returncode == 0, proc.stderr
        payload = json.loads(proc.stdout)
        assert payload["blocks"][0]["lineNumber"] == 1
        assert payload["totalLines"] == 1

    def test_format(self) -> None:
        proc = _run("format", "(8 x 4):A[n=top;c=red]15-17")
        assert proc.returncode == 0, proc.stderr
        assert proc.stdout.strip() == '(8×4):A[c="red";n="top"]15-17'

    def test_format_invalid_rule(self) -> None:
        proc = _run("format", "(5):F[c=nope]0-0")
        assert proc.returncode == 1
        payload = json.loads(proc.stdout)
        assert payload["code"] == "invalid_value"
        assert payload["column"] == 9

    def test_resize(self) -> None:
        proc = _run("resize", "(10):A15-17", "--width", "20", "--height", "20")
        assert proc.returncode == 0, proc.stderr
        assert proc.stdout.strip() == "(20):A25-27"

    def test_resize_to_invalid_size(self) -> None:
        proc = _run("resize", "(10):A0-0", "--width", "1", "--height", "1")
        assert proc.returncode == 1
        payload = json.loads(proc.stdout)
        assert payload["ok"] is False
        assert payload["error"]["code"] == "grid_size"

    def test_max_symbols_flag(self) -> None:
        proc = _run("--max-symbols", "1", "format", "(5):A0-0;B1-1")
        assert proc.returncode == 1
        assert json.loads(proc.stdout)["code"] == "too_many_symbols"

    def test_bad_environment_limit_is_usage_error(self) -> None:
        proc = _run("format", "(5):F0-0", UNICOMP_TIMEOUT_MS="soon")
        assert proc.returncode == 2
        assert "UNICOMP_TIMEOUT_MS" in proc.stderr

    def test_export_writes_header(self, tmp_path: Path) -> None:
        src = tmp_path / "rules.txt"
        src.write_text("(5):F0-0\n(5):G1-1", encoding="utf-8")
        out = tmp_path / "out" / "composition.unicomp"
        proc = _run("export", str(src), "--output", str(out))
        assert proc.returncode == 0, proc.stderr
        assert out.read_text(encoding="utf-8") == "# UNICOMP v1.0\n(5):F0-0\n(5):G1-1"

        again = _run("check", str(out))
        assert again.returncode == 0, again.stderr
        assert json.loads(again.stdout)["validCount"] == 2

    def test_export_refuses_invalid_document(self, tmp_path: Path) -> None:
        src = tmp_path / "rules.txt"
        src.write_text("(5):F0-99\n", encoding="utf-8")
        out = tmp_path / "composition.unicomp"
        proc = _run("export", str(src), "--output", str(out))
        assert proc.returncode == 1
        assert not out.exists()
