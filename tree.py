"""
Snapshotting a directory into tree and blob objects, and reading trees back.
"""

import logging
import os

from errors import StoreIOError, WrongObjectType
from objects import (FILE_MODE, TREE_MODE, Blob, Tree, TreeLeaf, object_decode,
                     object_write, tree_parse)
from repository import GITDIR_NAME, Repository
from store import object_get

logger = logging.getLogger(__name__)


def tree_read(repo: Repository, sha):
    """
    Entries of the tree `sha`, in stored order: a list of TreeLeaf(mode, name, sha).
    """
    object_type, payload = object_decode(object_get(repo, sha))
    if object_type != b'tree':
        raise WrongObjectType(f"Object {sha} is a {object_type.decode('ascii', 'replace')}, not a tree")
    return tree_parse(payload)

def _scan_dir(path):
    """
    Immediate children worth snapshotting: (name, full path, is_dir). The metadata directory,
    symlinks and anything that is not a regular file or a directory are left out.
    """
    children = list()
    with os.scandir(path) as it:
        for entry in it:
            if entry.name == GITDIR_NAME:
                continue
            if entry.is_dir(follow_symlinks=False):
                children.append((entry.name, entry.path, True))
            elif entry.is_file(follow_symlinks=False):
                children.append((entry.name, entry.path, False))
            else:
                logger.debug("skipping %s: not a regular file or directory", entry.path)
    return children

def _blob_write(repo, path):
    with open(path, 'rb') as fp:
        return object_write(Blob(fp.read()), repo)

def tree_build(repo: Repository, path=None):
    """
    Store every file under `path` (the worktree by default) as a blob and every directory
    as a tree, and return the sha of the root tree.

    The walk uses an explicit stack instead of recursion. Directories are discovered
    parent-first, then hashed in the reverse order, so a subdirectory's tree sha is always
    known by the time its parent is encoded.
    """
    if path is None:
        path = repo.worktree
    root = os.path.realpath(path)

    # pending directories, and the children of each one in discovery order
    stack = [root]
    discovered = list()

    try:
        while stack:
            current = stack.pop()
            children = _scan_dir(current)
            discovered.append((current, children))
            for _, child_path, is_dir in children:
                if is_dir:
                    stack.append(child_path)

        tree_shas = dict()
        for current, children in reversed(discovered):
            tree = Tree()
            for name, child_path, is_dir in children:
                if is_dir:
                    tree.items.append(TreeLeaf(TREE_MODE, name, tree_shas.pop(child_path)))
                else:
                    tree.items.append(TreeLeaf(FILE_MODE, name, _blob_write(repo, child_path)))

            tree_shas[current] = object_write(tree, repo)
            logger.debug("tree %s for %s (%d entries)", tree_shas[current], current, len(tree.items))
    except OSError as e:
        raise StoreIOError(f"Cannot snapshot {path}: {e}") from e

    return tree_shas[root]
