from __future__ import annotations

from pathlib import Path

from gw.git import parse_worktree_porcelain, ref_exists, remote_url, run_git

PORCELAIN = """\
worktree /ws/core/tools
bare

worktree /ws/tree/tools/feat/login
HEAD 4b825dc642cb6eb9a060e54bf8d69288fbee4904
branch refs/heads/feat/login

worktree /ws/tree/tools/scratch
HEAD 4b825dc642cb6eb9a060e54bf8d69288fbee4904
detached

worktree /ws/tree/tools/old
HEAD 4b825dc642cb6eb9a060e54bf8d69288fbee4904
branch refs/heads/old
locked moving disks
prunable gitdir file points to non-existent location
"""


def test_parse_worktree_porcelain():
    records = parse_worktree_porcelain(PORCELAIN)

    assert [r.path for r in records] == [
        Path("/ws/core/tools"),
        Path("/ws/tree/tools/feat/login"),
        Path("/ws/tree/tools/scratch"),
        Path("/ws/tree/tools/old"),
    ]
    bare, login, scratch, old = records
    assert bare.bare is True
    assert bare.branch is None
    assert login.branch == "feat/login"
    assert login.head == "4b825dc642cb6eb9a060e54bf8d69288fbee4904"
    assert scratch.detached is True
    assert scratch.branch is None
    assert old.locked is True
    assert old.prunable is True
    assert old.branch == "old"


def test_parse_worktree_porcelain_empty():
    assert parse_worktree_porcelain("") == []


def test_parse_ignores_lines_before_first_block():
    records = parse_worktree_porcelain("HEAD abc\nworktree /a\nbranch refs/heads/x\n")
    assert len(records) == 1
    assert records[0].branch == "x"


def test_ref_exists_and_remote_url(tools, upstream):
    assert ref_exists(tools.bare_path, "refs/heads/main")
    assert ref_exists(tools.bare_path, "refs/heads/existing")
    assert not ref_exists(tools.bare_path, "refs/heads/nope")
    assert remote_url(tools.bare_path) == str(upstream)
    assert remote_url(tools.bare_path, remote="missing") is None


def test_run_git_does_not_raise(tmp_path):
    result = run_git(["rev-parse", "HEAD"], repo=tmp_path)
    assert result.returncode != 0
