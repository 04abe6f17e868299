import os
import zlib

import pytest

from digest import sha_hex
from errors import MalformedDigest, MalformedObject, ObjectNotFound
from objects import object_encode
from store import CHUNK_SIZE, object_exists, object_get, object_path, object_put


def stored_files(repo):
    objects_dir = os.path.join(repo.gitdir, "objects")
    return sorted(os.path.join(root, name)
                  for root, _, files in os.walk(objects_dir)
                  for name in files)

def test_layout_is_two_level(repo):
    data = object_encode(b'blob', b'world')
    sha = sha_hex(data)
    path = object_put(repo, sha, data)

    assert path == os.path.join(repo.gitdir, "objects", sha[:2], sha[2:])
    assert object_path(repo, sha) == path
    assert stored_files(repo) == [path]

def test_stored_file_is_zlib_of_encoded_bytes(repo):
    data = object_encode(b'blob', b'world')
    path = object_put(repo, sha_hex(data), data)

    with open(path, 'rb') as fp:
        assert zlib.decompress(fp.read()) == data

def test_get_returns_put_bytes(repo):
    data = object_encode(b'blob', os.urandom(3 * CHUNK_SIZE + 17))
    sha = sha_hex(data)
    object_put(repo, sha, data)

    assert object_exists(repo, sha)
    assert object_get(repo, sha) == data

def test_put_is_idempotent(repo):
    data = object_encode(b'blob', b'same content')
    sha = sha_hex(data)

    first = object_put(repo, sha, data)
    mtime = os.stat(first).st_mtime_ns
    second = object_put(repo, sha, data)

    assert first == second
    assert stored_files(repo) == [first]
    assert os.stat(second).st_mtime_ns == mtime

def test_reads_objects_compressed_elsewhere(repo):
    # another tool may pick a different compression level
    data = object_encode(b'blob', b'hello world\n')
    sha = sha_hex(data)
    assert sha == '3b18e512dba79e4c8300dd08aeb37f8e728b8dad'

    path = object_path(repo, sha)
    os.makedirs(os.path.dirname(path))
    with open(path, 'wb') as fp:
        fp.write(zlib.compress(data, 9))

    assert object_get(repo, sha) == data

def test_get_missing_object(repo):
    with pytest.raises(ObjectNotFound):
        object_get(repo, 'a' * 40)
    assert not object_exists(repo, 'a' * 40)

def test_get_corrupt_object(repo):
    sha = 'c' * 40
    path = object_path(repo, sha)
    os.makedirs(os.path.dirname(path))
    with open(path, 'wb') as fp:
        fp.write(b'definitely not zlib')

    with pytest.raises(MalformedObject):
        object_get(repo, sha)

def test_get_truncated_object(repo):
    data = object_encode(b'blob', b'x' * 1000)
    sha = sha_hex(data)
    path = object_path(repo, sha)
    os.makedirs(os.path.dirname(path))
    with open(path, 'wb') as fp:
        fp.write(zlib.compress(data)[:-8])

    with pytest.raises(MalformedObject):
        object_get(repo, sha)

def test_bad_digest_never_touches_disk(repo):
    with pytest.raises(MalformedDigest):
        object_put(repo, '../../escape', b'')
    with pytest.raises(MalformedDigest):
        object_get(repo, 'xyz')
    assert stored_files(repo) == []
