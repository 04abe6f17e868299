import collections
import logging
import time

from digest import from_hex
from errors import DanglingReference, WrongObjectType
from objects import Commit, object_read, object_write
from repository import Repository
from store import object_exists

logger = logging.getLogger(__name__)

DEFAULT_TZ_OFFSET = "+0000"


def commit_create(repo: Repository, tree, parent=None, message="", author=None,
                  timestamp=None, tz_offset=None, verify=True):
    """
    Create a commit object pointing at `tree` (and `parent`, if given), store it and
    return its sha.

    The same identity and time are used for author and committer. With `verify`, the
    tree and parent must already be in the store.
    """
    # the format is always checked, only the existence check is optional
    for sha in (tree, parent):
        if sha is not None:
            from_hex(sha)

    if verify:
        for label, sha in (("tree", tree), ("parent", parent)):
            if sha is not None and not object_exists(repo, sha):
                raise DanglingReference(f"Commit {label} {sha} is not in the object store")

    if author is None:
        author = repo.identity
    if timestamp is None:
        timestamp = int(time.time())
    if tz_offset is None:
        tz_offset = DEFAULT_TZ_OFFSET

    if not message.endswith("\n"):
        message += "\n"

    signature = f"{author} {int(timestamp)} {tz_offset}".encode()

    commit = Commit()
    commit.kvlm = collections.OrderedDict()
    commit.kvlm[b'tree'] = tree.lower().encode('ascii')
    if parent is not None:
        commit.kvlm[b'parent'] = parent.lower().encode('ascii')
    commit.kvlm[b'author'] = signature
    commit.kvlm[b'committer'] = signature
    commit.kvlm[None] = message.encode()

    sha = object_write(commit, repo)
    logger.debug("commit %s on tree %s (parent %s)", sha, tree, parent)
    return sha

def commit_read(repo: Repository, sha):
    obj = object_read(repo, sha)
    if obj.object_type != b'commit':
        raise WrongObjectType(f"Object {sha} is a {obj.object_type.decode('ascii')}, not a commit")
    return obj
