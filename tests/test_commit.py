import pytest

from commit import commit_create, commit_read
from errors import DanglingReference, MalformedDigest, WrongObjectType
from objects import Blob, object_decode, object_write
from repository import DEFAULT_IDENTITY
from store import object_get
from tree import tree_build


def payload_of(repo, sha):
    object_type, payload = object_decode(object_get(repo, sha))
    assert object_type == b'commit'
    return payload

def test_root_commit_layout(repo):
    tree = tree_build(repo)
    sha = commit_create(repo, tree, message="init", timestamp=1700000000)

    lines = payload_of(repo, sha).decode().split('\n')
    assert lines[0] == f"tree {tree}"
    assert not any(line.startswith("parent ") for line in lines)
    assert lines[1] == f"author {DEFAULT_IDENTITY} 1700000000 +0000"
    assert lines[2] == f"committer {DEFAULT_IDENTITY} 1700000000 +0000"
    assert lines[3:] == ["", "init", ""]

def test_parent_line(repo):
    tree = tree_build(repo)
    first = commit_create(repo, tree, message="one", timestamp=1)
    second = commit_create(repo, tree, parent=first, message="two", timestamp=2)

    commit = commit_read(repo, second)
    assert commit.kvlm[b'parent'] == first.encode()
    assert commit.kvlm[None] == b"two\n"
    assert payload_of(repo, second).split(b'\n')[1] == b'parent ' + first.encode()

def test_commit_is_deterministic(repo):
    tree = tree_build(repo)
    args = dict(message="same", author="A <a@example.com>", timestamp=42, tz_offset="+0200")
    assert commit_create(repo, tree, **args) == commit_create(repo, tree, **args)

def test_every_field_changes_the_digest(repo):
    tree = tree_build(repo)
    base = dict(message="m", author="A <a@example.com>", timestamp=42)
    sha = commit_create(repo, tree, **base)

    assert commit_create(repo, tree, **{**base, "timestamp": 43}) != sha
    assert commit_create(repo, tree, **{**base, "message": "n"}) != sha
    assert commit_create(repo, tree, **{**base, "author": "B <b@example.com>"}) != sha
    assert commit_create(repo, tree, parent=sha, **base) != sha

def test_identity_from_config(repo):
    repo.conf.add_section("user")
    repo.conf.set("user", "name", "Ada")
    repo.conf.set("user", "email", "ada@example.com")

    sha = commit_create(repo, tree_build(repo), message="hi", timestamp=1)
    assert commit_read(repo, sha).kvlm[b'author'] == b"Ada <ada@example.com> 1 +0000"

def test_message_keeps_one_trailing_newline(repo):
    sha = commit_create(repo, tree_build(repo), message="already\n", timestamp=1)
    assert payload_of(repo, sha).endswith(b"\n\nalready\n")

def test_dangling_tree(repo):
    with pytest.raises(DanglingReference):
        commit_create(repo, 'a' * 40, message="x")

def test_dangling_parent(repo):
    with pytest.raises(DanglingReference):
        commit_create(repo, tree_build(repo), parent='b' * 40, message="x")

def test_verify_can_be_skipped(repo):
    sha = commit_create(repo, 'a' * 40, parent='b' * 40, message="x", verify=False)
    assert commit_read(repo, sha).kvlm[b'tree'] == b'a' * 40

def test_malformed_tree_digest(repo):
    with pytest.raises(MalformedDigest):
        commit_create(repo, 'not-a-sha', message="x")

def test_commit_read_wrong_type(repo):
    sha = object_write(Blob(b'blob'), repo)
    with pytest.raises(WrongObjectType):
        commit_read(repo, sha)

@pytest.mark.parametrize("tree,parent", [
    ('not-a-sha', None),
    ('a' * 40, 'b' * 39),
    ('a' * 40, 'z' * 40),
])
def test_malformed_digest_without_verify(repo, tree, parent):
    with pytest.raises(MalformedDigest):
        commit_create(repo, tree, parent=parent, message="x", verify=False)
