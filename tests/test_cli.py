"""Tests for the uniteditor command line."""

import pytest

from unit_editor import cli, git_utils

MAIN_GO = """\
package main

func main() {}
"""


@pytest.fixture
def project(tmp_path, monkeypatch):
    for key in ("OR_TOKEN", "OR_LOW", "OR_HIGH", "EDITOR_DIR", "LOG_DIR"):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.chdir(tmp_path)
    (tmp_path / "main.go").write_text(MAIN_GO, encoding="utf-8")
    return tmp_path


class TestCli:
    def test_split_and_unsplit(self, project):
        assert cli.main(["--split"]) == 0
        assert (project / "editor" / "main" / "manifest.json").is_file()

        (project / "editor" / "main" / "main.gopart").write_text(
            "func main() {\n\tprintln(1)\n}", encoding="utf-8")
        assert cli.main(["--unsplit"]) == 0
        assert (project / "main.go").read_text(encoding="utf-8") == (
            "package main\n\nfunc main() {\n\tprintln(1)\n}\n")

    def test_split_and_unsplit_chosen_files(self, project):
        (project / "sub").mkdir()
        (project / "sub" / "util.go").write_text(
            "package sub\n\nfunc Util() {}\n", encoding="utf-8")

        assert cli.main(["--split", "sub/util.go"]) == 0
        assert (project / "editor" / "sub" / "util" / "Util.gopart").is_file()
        assert not (project / "editor" / "main").exists()

        (project / "editor" / "sub" / "util" / "Util.gopart").write_text(
            "func Util() int { return 1 }", encoding="utf-8")
        assert cli.main(["--unsplit", "sub/util.go"]) == 0
        assert (project / "sub" / "util.go").read_text(encoding="utf-8") == (
            "package sub\n\nfunc Util() int { return 1 }\n")
        assert (project / "main.go").read_text(encoding="utf-8") == MAIN_GO

    def test_split_file_list(self, project):
        (project / "extra.go").write_text("package main\n\nfunc extra() {}\n",
                                          encoding="utf-8")
        assert cli.main(["--split", "main.go, extra.go"]) == 0
        assert (project / "editor" / "main" / "manifest.json").is_file()
        assert (project / "editor" / "extra" / "extra.gopart").is_file()

    def test_split_missing_file(self, project, capsys):
        assert cli.main(["--split", "nope.go"]) == 1
        assert "nope.go" in capsys.readouterr().out

    def test_unsplit_without_split_fails(self, project, capsys):
        assert cli.main(["--unsplit"]) == 1
        assert "split first" in capsys.readouterr().out

    def test_bad_source_reports_error(self, project, capsys):
        (project / "broken.go").write_text("package main\n\nfunc (", encoding="utf-8")
        assert cli.main(["--split"]) == 1
        assert "syntax error" in capsys.readouterr().out

    def test_missing_settings(self, project, capsys):
        assert cli.main(["--prompt", "add logging"]) == 2
        assert "OR_TOKEN" in capsys.readouterr().out

    def test_rm(self, project, monkeypatch, capsys):
        monkeypatch.setattr(git_utils, "get_current_branch", lambda: "feat")
        monkeypatch.setattr(git_utils, "remove_and_cleanup",
                            lambda branch, main: (True, f"Branch {branch} deleted"))
        assert cli.main(["--rm"]) == 0
        assert "Branch feat deleted" in capsys.readouterr().out

    def test_overrides(self, project):
        args = cli._build_parser().parse_args(
            ["--no-stream", "--max-continuations", "1", "--changesprompt", "c.txt"])
        cfg = cli.Config()
        cli._apply_overrides(cfg, args)
        assert cfg.STREAM_RESPONSES is False
        assert cfg.MAX_CONTINUATIONS == 1
        assert cfg.PROMPT_FILES["changes"] == "c.txt"
