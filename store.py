"""
Loose object storage.

Each object lives in its own zlib-compressed file at `.git/objects/<sha[:2]>/<sha[2:]>`,
the layout git itself reads. The store is append-only: an object that already exists
is never rewritten, so putting the same bytes twice is a no-op and two processes racing
on a new object both produce the same file.

Objects are compressed and decompressed as streams, a chunk at a time, so large blobs
don't need a second full copy in memory just for zlib.
"""

import logging
import os
import tempfile
import zlib

from digest import from_hex
from errors import MalformedObject, ObjectNotFound, StoreIOError
from repository import Repository, repo_path

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


def object_path(repo: Repository, sha):
    # validates the name before it is turned into a path
    from_hex(sha)
    sha = sha.lower()
    return repo_path(repo, "objects", sha[:2], sha[2:])

def object_exists(repo: Repository, sha):
    return os.path.isfile(object_path(repo, sha))

def object_put(repo: Repository, sha, data):
    """
    Store the encoded object `data` under `sha`, unless it is already there.
    """
    path = object_path(repo, sha)

    if os.path.exists(path):
        logger.debug("object %s already stored", sha)
        return path

    shard = os.path.dirname(path)
    try:
        os.makedirs(shard, exist_ok=True)

        # write next to the final name and rename into place, so a crash never
        # leaves a partial object behind a valid name
        fd, tmp_path = tempfile.mkstemp(dir=shard, prefix="tmp_obj_")
        try:
            with os.fdopen(fd, 'wb') as fp:
                compressor = zlib.compressobj()
                view = memoryview(data)
                for start in range(0, len(view), CHUNK_SIZE):
                    fp.write(compressor.compress(view[start:start + CHUNK_SIZE]))
                fp.write(compressor.flush())
            # loose objects are read-only, like the ones git writes
            os.chmod(tmp_path, 0o444)
            os.replace(tmp_path, path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise
    except OSError as e:
        raise StoreIOError(f"Cannot write object {sha}: {e}") from e

    logger.debug("wrote object %s (%d bytes)", sha, len(data))
    return path

def object_get(repo: Repository, sha):
    """
    Return the exact encoded bytes stored under `sha`.
    """
    path = object_path(repo, sha)

    if not os.path.isfile(path):
        raise ObjectNotFound(f"Object {sha} not found")

    chunks = []
    decompressor = zlib.decompressobj()
    try:
        with open(path, 'rb') as fp:
            while True:
                block = fp.read(CHUNK_SIZE)
                if not block:
                    break
                chunks.append(decompressor.decompress(block))
        chunks.append(decompressor.flush())
    except zlib.error as e:
        raise MalformedObject(f"Object {sha} is corrupt: {e}") from e
    except OSError as e:
        raise StoreIOError(f"Cannot read object {sha}: {e}") from e

    if not decompressor.eof:
        raise MalformedObject(f"Object {sha} is corrupt: truncated zlib stream")

    return b''.join(chunks)
