import os
import configparser # parses microsoft INI file format

from errors import RepositoryError

GITDIR_NAME = ".git"

DEFAULT_IDENTITY = "Author Name <author@example.com>"


class Repository():
    """
    Handle on one repository. Every store operation takes one of these, so several
    repositories can be open side by side in the same process.
    """

    # force is used to create a new repository from a repository object
    def __init__(self, path, force=False):
        # this is where the files checked into the version control live
        self.worktree = os.path.realpath(path)
        # this is where git stores all its data, typically worktree/.git
        self.gitdir = os.path.join(self.worktree, GITDIR_NAME)

        if not (force or os.path.isdir(self.gitdir)):
            raise RepositoryError(f"Not a git repository {path}")

        # the git conf --> an INI file. Scaffolding from other tools may not write one.
        self.conf = configparser.ConfigParser()
        config_file_path = os.path.join(self.gitdir, "config")

        if os.path.isfile(config_file_path):
            self.conf.read([config_file_path])

        if not force and self.conf.has_option("core", "repositoryformatversion"):
            version = int(self.conf.get("core", "repositoryformatversion"))
            if version != 0:
                raise RepositoryError(f"Unsupported repositoryformatversion {version}")

    @property
    def identity(self):
        """
        Author and committer string for new commits: `user.name <user.email>` from the
        config when both are set.
        """
        name = self.conf.get("user", "name", fallback=None)
        email = self.conf.get("user", "email", fallback=None)
        if name and email:
            return f"{name} <{email}>"
        return DEFAULT_IDENTITY


def repo_path(repo: Repository, *path):
    """
    Util function to get path under the git directory
    """
    return os.path.join(repo.gitdir, *path)

def repo_file(repo: Repository, *path, mkdir=False):
    """
    * Util function to get or create the path to a file
    * Raise exception if directory name for the file is already used by another file
    """
    # check for existence of or create parent directory
    if repo_dir(repo, *path[:-1], mkdir=mkdir):
        return repo_path(repo, *path)

def repo_dir(repo: Repository, *path, mkdir=False):
    """
    * Util function to get or create the path to a directory under the git directory.
    * Raise exception if path is not a directory
    """
    path = repo_path(repo, *path)

    if os.path.exists(path):
        if os.path.isdir(path):
            return path
        else:
            raise RepositoryError(f"Not a directory {path}")

    if mkdir:
        os.makedirs(path, exist_ok=True)
        return path

def repo_default_config():
    ret = configparser.ConfigParser()

    ret.add_section("core")

    # version of the gitdir format. 0 means initial, 1 is the same with some extensions. git panics on > 1
    ret.set("core", "repositoryformatversion", "0")
    # disable tracking of file modes (permissions) changes in the worktree
    ret.set("core", "filemode", "false")
    # indicates that this repository has a worktree
    ret.set("core", "bare", "false")

    return ret

def create_repo(path, branch="main"):
    """
    Create a git repository inside the specified directory
    """
    repo = Repository(path, force=True)

    if os.path.exists(repo.worktree):
        if not os.path.isdir(repo.worktree):
            raise RepositoryError(f"{repo.worktree} is not a directory!")
        if os.path.exists(repo.gitdir) and os.listdir(repo.gitdir):
            raise RepositoryError(f"{path} already has a gitdir!")
    else:
        os.makedirs(repo.worktree)

    # create essential directories
    for parts in (("refs", "tags"), ("refs", "heads"), ("objects",)):
        if not repo_dir(repo, *parts, mkdir=True):
            raise RepositoryError(f"Cannot create {repo_path(repo, *parts)}")

    # create essential files

    # free form description for humans to read, rarely used
    with open(repo_file(repo, "description"), 'w') as fp:
        fp.write("Unnamed repository; edit this file 'description' to name the repository.\n")

    # reference to the current head
    with open(repo_file(repo, "HEAD"), 'w') as fp:
        fp.write(f"ref: refs/heads/{branch}\n")

    # gitconfig
    with open(repo_file(repo, "config"), 'w') as fp:
        config = repo_default_config()
        config.write(fp)
        repo.conf = config

    return repo

def repo_find(path=".", required=True):
    """
    Find the repository that contains `path`, looking in `path` and then its parents.
    """
    path = os.path.realpath(path)

    if os.path.isdir(os.path.join(path, GITDIR_NAME)):
        return Repository(path)

    parent = os.path.realpath(os.path.join(path, ".."))

    # os.path.join("/", "..") == "/"
    if parent == path:
        if required:
            raise RepositoryError("Not a git repository (or any of the parent directories)")
        return None

    return repo_find(parent, required)

def head_read(repo: Repository):
    """
    Returns (target, symbolic). HEAD is the only reference this tool manages:
    normally `ref: refs/heads/<branch>`, or a bare digest when detached.
    """
    path = repo_file(repo, "HEAD")
    if not path or not os.path.isfile(path):
        raise RepositoryError(f"HEAD is missing in {repo.gitdir}")

    with open(path, 'r') as fp:
        head = fp.read().strip('\n')

    if head.startswith("ref: "):
        return head[5:].strip(), True
    return head.strip(), False
