from pathlib import Path
from typing import Sequence

import pytest

from initcpp import cli, toolchain
from initcpp.github_client import RemoteRepo
from initcpp.shell import CommandError


class FakeRunner:
    """Records commands instead of running them; `fail` maps a command prefix to a failure."""

    def __init__(self, fail: Sequence[Sequence[str]] = ()) -> None:
        self.calls: list[tuple[list[str], Path | None]] = []
        self.fail = [list(f) for f in fail]

    def __call__(self, cmd: Sequence[str], *, cwd=None, display=None, verbose=False) -> str:
        cmd = list(display or cmd)
        self.calls.append((cmd, Path(cwd) if cwd is not None else None))
        if any(cmd[: len(f)] == f for f in self.fail):
            raise CommandError(cmd, 1, "simulated failure")
        return ""

    @property
    def commands(self) -> list[list[str]]:
        return [c for c, _ in self.calls]


@pytest.fixture
def runner(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> FakeRunner:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    monkeypatch.delenv("INITCPP_CONFIG", raising=False)
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)
    monkeypatch.setattr(cli, "detect_generator", lambda: "Ninja")
    monkeypatch.setattr(cli, "has_tool", lambda name: True)
    fake = FakeRunner()
    monkeypatch.setattr(cli, "run", fake)
    return fake


def test_scaffolds_project(runner: FakeRunner, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert cli.main(["demo"]) == 0

    root = tmp_path / "demo"
    for name in ("include", "src", "build", "tests"):
        assert (root / name).is_dir()
    assert (root / "CMakeLists.txt").is_file()
    assert (root / ".gitignore").is_file()
    assert not (root / ".github").exists()

    assert runner.commands == [
        ["git", "init"],
        ["git", "add", "."],
        ["git", "commit", "-m", "Initial project structure"],
        ["cmake", "..", "-GNinja"],
    ]
    assert runner.calls[-1][1] == Path("demo") / "build"

    out = capsys.readouterr().out
    assert "Project 'demo' initialized successfully!" in out
    assert "C++ Standard: C++20" in out
    assert "./build/demo" in out
    assert "4. cd build && ctest" in out
    assert "Build configuration successful!" in out


def test_short_options(runner: FakeRunner, tmp_path: Path) -> None:
    assert cli.main(["-p", "work/app", "-c", "17", "-x", "17", "--no-configure", "app"]) == 0

    cmake = (tmp_path / "work" / "app" / "CMakeLists.txt").read_text(encoding="utf-8")
    assert "project(app C CXX)" in cmake
    assert "set(CMAKE_CXX_STANDARD 17)" in cmake
    assert "set(CMAKE_C_STANDARD 17)" in cmake
    assert ["cmake", "..", "-GNinja"] not in runner.commands


def test_config_file_is_applied(runner: FakeRunner, tmp_path: Path) -> None:
    config = tmp_path / "initcpp.yaml"
    config.write_text("cxx_standard: 14\ngenerator: Unix Makefiles\nci: true\n", encoding="utf-8")

    assert cli.main(["--config", str(config), "demo"]) == 0

    assert "set(CMAKE_CXX_STANDARD 14)" in (tmp_path / "demo" / "CMakeLists.txt").read_text(encoding="utf-8")
    assert (tmp_path / "demo" / ".github" / "workflows" / "ci.yml").is_file()
    assert runner.commands[-1] == ["cmake", "..", "-GUnix Makefiles"]


def test_missing_project_name(runner: FakeRunner, capsys: pytest.CaptureFixture[str]) -> None:
    assert cli.main([]) == 1
    err = capsys.readouterr().err
    assert "Error: Project name is required." in err
    assert "usage: initcpp" in err
    assert runner.calls == []


def test_unknown_option_exits_with_1(runner: FakeRunner, capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as exc:
        cli.main(["-z", "demo"])
    assert exc.value.code == 1
    assert "usage: initcpp" in capsys.readouterr().err


def test_invalid_name(runner: FakeRunner, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert cli.main(["my app"]) == 1
    assert "cannot contain spaces" in capsys.readouterr().err
    assert not (tmp_path / "my app").exists()


def test_bad_standard(runner: FakeRunner, capsys: pytest.CaptureFixture[str]) -> None:
    assert cli.main(["-x", "21", "demo"]) == 1
    assert "Unsupported C++ standard" in capsys.readouterr().err


def test_leading_digit_warns_but_continues(runner: FakeRunner, caplog: pytest.LogCaptureFixture) -> None:
    assert cli.main(["--no-configure", "9lives"]) == 0
    assert "should start with a letter or underscore" in caplog.text


def test_non_empty_directory_is_refused_even_with_force(
    runner: FakeRunner, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    (tmp_path / "demo").mkdir()
    (tmp_path / "demo" / "keep.txt").write_text("x", encoding="utf-8")

    assert cli.main(["-f", "demo"]) == 1
    assert "Directory 'demo' is not empty." in capsys.readouterr().err
    assert runner.calls == []


def test_empty_existing_directory_is_used(runner: FakeRunner, tmp_path: Path) -> None:
    (tmp_path / "demo").mkdir()
    assert cli.main(["--no-configure", "demo"]) == 0
    assert (tmp_path / "demo" / "src" / "main.cpp").is_file()


def test_failing_step_aborts_without_force(runner: FakeRunner, capsys: pytest.CaptureFixture[str]) -> None:
    runner.fail = [["git", "init"]]
    assert cli.main(["demo"]) == 1
    assert "Command failed: git init" in capsys.readouterr().err
    assert runner.commands == [["git", "init"]]


def test_failing_step_continues_with_force(runner: FakeRunner, tmp_path: Path) -> None:
    runner.fail = [["git", "init"]]
    assert cli.main(["-f", "demo"]) == 0
    assert (tmp_path / "demo" / "CMakeLists.txt").is_file()
    assert runner.commands[-1] == ["cmake", "..", "-GNinja"]


def test_failed_commit_is_not_fatal(runner: FakeRunner) -> None:
    runner.fail = [["git", "commit"]]
    assert cli.main(["demo"]) == 0


def test_cmake_failure_exits_with_1(runner: FakeRunner, capsys: pytest.CaptureFixture[str]) -> None:
    runner.fail = [["cmake"]]
    assert cli.main(["-f", "demo"]) == 1
    assert "Build configuration failed" in capsys.readouterr().out


def test_debug_traces_commands(runner: FakeRunner, caplog: pytest.LogCaptureFixture) -> None:
    assert cli.main(["-d", "--no-configure", "demo"]) == 0
    assert "Wrote 7 file(s), skipped 0 existing file(s)" in caplog.text


def test_install_deps_exits_after_installing(runner: FakeRunner, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    calls: list[str] = []
    monkeypatch.setattr(cli, "install_dependencies", lambda: calls.append("installed"))

    assert cli.main(["-i", "demo"]) == 0
    assert calls == ["installed"]
    assert not (tmp_path / "demo").exists()


def test_install_deps_without_package_manager(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    monkeypatch.setattr(toolchain.shutil, "which", lambda name: None)
    assert cli.main(["-i"]) == 1
    assert "No supported package manager found" in capsys.readouterr().err


def test_github_requires_token(runner: FakeRunner, capsys: pytest.CaptureFixture[str]) -> None:
    assert cli.main(["--no-configure", "--github-owner", "acme", "demo"]) == 1
    assert "GitHub token is required" in capsys.readouterr().err


def test_github_remote_and_push(runner: FakeRunner, monkeypatch: pytest.MonkeyPatch) -> None:
    seen: dict[str, object] = {}

    class FakeClient:
        def __init__(self, token: str) -> None:
            seen["token"] = token

        def ensure_repo(self, *, owner: str, name: str, private: bool, description: str = "") -> RemoteRepo:
            seen.update(owner=owner, name=name, private=private)
            return RemoteRepo(owner, name, f"https://github.com/{owner}/{name}", f"https://github.com/{owner}/{name}.git", "main")

    monkeypatch.setattr(cli, "GitHubClient", FakeClient)
    monkeypatch.setenv("GITHUB_TOKEN", "s3cret")

    assert cli.main(["--no-configure", "--github-owner", "acme", "--public", "--push", "demo"]) == 0

    assert seen == {"token": "s3cret", "owner": "acme", "name": "demo", "private": False}
    assert ["git", "remote", "add", "origin", "https://github.com/acme/demo.git"] in runner.commands
    push = runner.commands[-1]
    assert push[-4:] == ["push", "-u", "origin", "HEAD:main"]
    assert "s3cret" not in " ".join(push)


def test_summary_omits_ctest_when_missing(
    runner: FakeRunner, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.setattr(cli, "has_tool", lambda name: name != "ctest")
    assert cli.main(["--no-configure", "demo"]) == 0
    out = capsys.readouterr().out
    assert "3. ./build/demo" in out
    assert "ctest" not in out


def test_no_tests_and_no_sanitizers_flags(runner: FakeRunner, tmp_path: Path) -> None:
    assert cli.main(["--no-configure", "--no-tests", "--no-sanitizers", "demo"]) == 0
    cmake = (tmp_path / "demo" / "CMakeLists.txt").read_text(encoding="utf-8")
    assert 'option(ENABLE_TESTS "Enable tests" OFF)' in cmake
    assert 'option(ENABLE_SANITIZERS "Enable sanitizers" OFF)' in cmake


@pytest.mark.parametrize("flag, private", [("--private", True), ("--public", False)])
def test_visibility_flags_override_config(
    runner: FakeRunner, monkeypatch: pytest.MonkeyPatch, tmp_path: Path, flag: str, private: bool
) -> None:
    config = tmp_path / "initcpp.yaml"
    config.write_text(f"github:\n  owner: acme\n  private: {str(not private).lower()}\n", encoding="utf-8")
    seen: dict[str, object] = {}

    class FakeClient:
        def __init__(self, token: str) -> None:
            pass

        def ensure_repo(self, *, owner: str, name: str, private: bool, description: str = "") -> RemoteRepo:
            seen["private"] = private
            return RemoteRepo(owner, name, f"https://github.com/{owner}/{name}", f"https://github.com/{owner}/{name}.git", "main")

    monkeypatch.setattr(cli, "GitHubClient", FakeClient)
    monkeypatch.setenv("GITHUB_TOKEN", "tok")

    assert cli.main(["--no-configure", "--config", str(config), flag, "demo"]) == 0
    assert seen == {"private": private}


def test_project_dir_is_a_file(runner: FakeRunner, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    (tmp_path / "taken").write_text("x", encoding="utf-8")
    assert cli.main(["-p", "taken", "demo"]) == 1
    assert "'taken' exists and is not a directory." in capsys.readouterr().err
    assert runner.calls == []


def test_push_without_owner_warns(runner: FakeRunner, caplog: pytest.LogCaptureFixture) -> None:
    assert cli.main(["--no-configure", "--push", "demo"]) == 0
    assert "--push has no effect without --github-owner" in caplog.text
    assert all(cmd[:2] != ["git", "remote"] for cmd in runner.commands)


def test_trailing_newline_in_name_is_rejected(runner: FakeRunner, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert cli.main(["--no-configure", "demo\n"]) == 1
    assert "can only contain letters" in capsys.readouterr().err
    assert list(tmp_path.iterdir()) == []


def test_config_with_non_string_keys_is_an_error(
    runner: FakeRunner, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    config = tmp_path / "initcpp.yaml"
    config.write_text("1: a\nfoo: b\n", encoding="utf-8")
    assert cli.main(["--config", str(config), "demo"]) == 1
    assert "Error: Unknown config keys: 1, foo" in capsys.readouterr().err
