import argparse, logging, os, sys

from clone import fetch_into
from commit import commit_create
from errors import MinigitError
from objects import object_decode, object_hash, tree_leaf_sort_key, tree_parse
from repository import create_repo, repo_find
from store import object_get
from tree import tree_build, tree_read

def cmd_init(args):
    repo = create_repo(args.path)
    print(f"Initialized empty repository in {repo.gitdir}")

def cmd_cat_file(args):
    """
    Blob and commit payloads are printed as stored, trees one entry per line.
    """
    repo = repo_find()
    object_type, payload = object_decode(object_get(repo, args.object))

    if args.show_type or args.show_size:
        print(object_type.decode('ascii') if args.show_type else len(payload))
        return

    if object_type == b'tree':
        for item in tree_parse(payload):
            print_tree_leaf(item)
    else:
        write_stdout(payload)

def cmd_hash_object(args):
    """
    Only "loose objects" are written; there are no packfiles here.
    """
    repo = repo_find() if args.write else None

    with open(args.path, 'rb') as fp:
        sha = object_hash(fp, args.type.encode(), repo)
    print(sha)

def cmd_ls_tree(args):
    repo = repo_find()
    ls_tree(repo, args.tree, args.recursive, args.name_only)

def cmd_write_tree(args):
    repo = repo_find()
    print(tree_build(repo))

def cmd_commit_tree(args):
    repo = repo_find()
    sha = commit_create(repo, args.tree, parent=args.parent, message=args.message,
                        verify=args.verify)
    print(sha)

def cmd_clone(args):
    fetch_into(args.url, args.path)
    print(f"Cloned into '{args.path}'")

def write_stdout(data):
    # names are raw filesystem bytes and may not be valid text
    sys.stdout.buffer.write(data)
    sys.stdout.buffer.flush()

def print_tree_leaf(item, prefix=""):
    leaf_type = "tree" if item.is_tree else "blob"
    header = f"{item.mode.rjust(6, '0')} {leaf_type} {item.sha}\t".encode('ascii')
    write_stdout(header + os.fsencode(os.path.join(prefix, item.name)) + b'\n')

def ls_tree(repo, sha, recursive=False, name_only=False, prefix=""):
    items = tree_read(repo, sha)
    # names only: sorted, like the original listing
    if name_only:
        items = sorted(items, key=tree_leaf_sort_key)

    for item in items:
        if recursive and item.is_tree:
            ls_tree(repo, item.sha, recursive, name_only, os.path.join(prefix, item.name))
        elif name_only:
            write_stdout(os.fsencode(os.path.join(prefix, item.name)) + b'\n')
        else:
            print_tree_leaf(item, prefix)


argparser = argparse.ArgumentParser(prog="minigit", description="A content-addressed object store that speaks git's loose object format")
argparser.add_argument("-v", "--verbose", action="store_true", help="Log what the object store is doing")

# enforce that `minigit` must be called with a command --> `minigit COMMAND`
argsubparsers = argparser.add_subparsers(title="Available commands", dest="command")
argsubparsers.required = True

init_cmd = argsubparsers.add_parser("init", help="Initialize a new, empty repository.")
init_cmd.add_argument("path", metavar="directory", nargs="?", default=".", help="Where to create the repository?")

cat_file_cmd = argsubparsers.add_parser("cat-file", help="Provide content of repository objects.")
cat_file_mode = cat_file_cmd.add_mutually_exclusive_group(required=True)
cat_file_mode.add_argument("-p", dest="pretty", action="store_true", help="Pretty-print the object's content")
cat_file_mode.add_argument("-t", dest="show_type", action="store_true", help="Show the object type")
cat_file_mode.add_argument("-s", dest="show_size", action="store_true", help="Show the payload size")
cat_file_cmd.add_argument("object", metavar="object", help="The object to display")

hash_object_cmd = argsubparsers.add_parser("hash-object", help="Compute object hash/ID and optionally create a blob from a file.")
hash_object_cmd.add_argument("-t", metavar="type", dest="type",
                              choices=["blob", "commit", "tree"],
                              default="blob",
                              help="Specify the type")
hash_object_cmd.add_argument("-w", dest="write", action="store_true", help="Actually write the object in the git repository")
hash_object_cmd.add_argument("path", help="Path to the object file")

ls_tree_cmd = argsubparsers.add_parser("ls-tree", help="Pretty print a tree object")
ls_tree_cmd.add_argument("--name-only", dest="name_only", action="store_true", help="List entry names only, sorted")
ls_tree_cmd.add_argument("-r", dest="recursive", action="store_true", help="Recurse into sub trees and get final objects.")
ls_tree_cmd.add_argument("tree", help="A tree sha")

write_tree_cmd = argsubparsers.add_parser("write-tree", help="Store the worktree as tree and blob objects")

commit_tree_cmd = argsubparsers.add_parser("commit-tree", help="Create a commit object from a tree")
commit_tree_cmd.add_argument("tree", help="The tree the commit snapshots")
commit_tree_cmd.add_argument("-p", dest="parent", default=None, help="The parent commit")
commit_tree_cmd.add_argument("-m", dest="message", required=True, help="The commit message")
commit_tree_cmd.add_argument("--no-verify", dest="verify", action="store_false", help="Don't check that tree and parent exist")

clone_cmd = argsubparsers.add_parser("clone", help="Clone a repository into a new directory")
clone_cmd.add_argument("url", help="The repository to clone")
clone_cmd.add_argument("path", metavar="directory", help="Where to clone it")


# entrypoint
def main(argv=None):
    args = argparser.parse_args(sys.argv[1:] if argv is None else argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format="%(name)s: %(message)s")

    try:
        match args.command:
            case "cat-file"     : cmd_cat_file(args)
            case "clone"        : cmd_clone(args)
            case "commit-tree"  : cmd_commit_tree(args)
            case "hash-object"  : cmd_hash_object(args)
            case "init"         : cmd_init(args)
            case "ls-tree"      : cmd_ls_tree(args)
            case "write-tree"   : cmd_write_tree(args)
    except MinigitError as e:
        print(f"fatal: {e}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"fatal: {e}", file=sys.stderr)
        return 1

    return 0

if __name__ == "__main__":
    sys.exit(main())
