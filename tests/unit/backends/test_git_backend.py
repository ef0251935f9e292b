"""Unit tests for GitBackend commands and lookups."""

import pytest

from vcs_blame.backends.git_backend import GitBackend


@pytest.fixture
def backend(config, git_runner, store):
    return GitBackend(config=config, runner=git_runner, store=store)


class TestGitAnnotateCommand:
    """The ``git blame`` invocation."""

    def test_blames_saved_file(self, backend):
        assert backend.annotate_command("/repo/src/app.py", use_stdin=False) == [
            "git",
            "--no-pager",
            "blame",
            "-b",
            "-p",
            "-w",
            "--",
            "/repo/src/app.py",
        ]

    def test_blames_stdin_contents(self, backend):
        command = backend.annotate_command("/repo/src/app.py", use_stdin=True)

        assert command[-4:] == ["--contents", "-", "--", "/repo/src/app.py"]

    @pytest.mark.asyncio
    async def test_unsaved_contents_are_piped(self, backend, git_runner, repo_file):
        contents = repo_file.read_text() + "new line\n"

        await backend.load_blames(str(repo_file), contents=contents)

        blame_call = git_runner.calls_with("blame")[0]
        assert "--contents" in blame_call.args
        assert blame_call.input_text == contents
        assert blame_call.cwd == repo_file.parent


class TestGitLookups:
    """Plumbing commands, each reporting the first stdout line."""

    @pytest.mark.asyncio
    async def test_lookups(self, backend, tmp_path, repo_file):
        file_path = str(repo_file)

        assert await backend.get_repo_root(file_path) == str(tmp_path)
        assert await backend.get_remote_url(file_path) == "git@github.com:acme/widgets.git"
        assert await backend.get_latest_sha(file_path) == "89e6c98d92887913cadf06b2adb97f26cde4849b"
        assert await backend.find_current_author(file_path) == "Alice"
        assert await backend.get_current_branch(file_path) == "main"

    @pytest.mark.asyncio
    async def test_lookup_failure_gives_empty_string(self, config, fake_runner, store):
        backend = GitBackend(config=config, runner=fake_runner, store=store)

        assert await backend.get_repo_root("/elsewhere/file.txt") == ""
        assert await backend.get_remote_url("/elsewhere/file.txt") == ""

    @pytest.mark.asyncio
    async def test_lookups_run_in_file_directory(self, backend, git_runner, repo_file):
        await backend.get_current_branch(str(repo_file))

        assert git_runner.calls[-1].cwd == repo_file.parent

    @pytest.mark.asyncio
    @pytest.mark.parametrize("returncode,expected", [(0, True), (1, False), (128, True)])
    async def test_check_is_ignored_by_exit_code(
        self, backend, git_runner, repo_file, returncode, expected
    ):
        git_runner.respond(["git", "check-ignore"], [], returncode=returncode)

        assert await backend.check_is_ignored(str(repo_file)) is expected
