"""
Cloning is handed to dulwich, a complete git implementation in Python. The result is an
ordinary repository whose loose objects this package reads like any other.
"""

import io
import logging

from dulwich import porcelain
from dulwich.errors import GitProtocolError, HangupException, NotGitRepository

from errors import CloneError
from repository import Repository

logger = logging.getLogger(__name__)


def fetch_into(url, destination, depth=None):
    """
    Clone `url` into `destination` (worktree and object store) and return the new
    repository.
    """
    logger.info("cloning %s into %s", url, destination)

    errstream = io.BytesIO()
    try:
        cloned = porcelain.clone(url, destination, depth=depth, errstream=errstream)
    except (GitProtocolError, HangupException, NotGitRepository, OSError) as e:
        raise CloneError(f"Cannot clone {url}: {e}") from e

    cloned.close()
    progress = errstream.getvalue().decode('utf-8', 'replace').strip()
    if progress:
        logger.debug("remote: %s", progress)

    return Repository(destination)
