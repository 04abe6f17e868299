"""
At its core, git is a content-addressed file system: the name of an object is the SHA-1 of
its own bytes. You don't modify an object, you write a new one under a new name.

Object encoding:
* The type (blob, tree or commit), an ASCII space (0x20), the payload size in bytes as an
ASCII decimal number, a null byte (0x00), then the payload itself.
* The digest is always taken over header + payload, never the payload alone.

Objects are compressed with zlib before storing (see store.py).
"""

import collections
import os

from digest import DIGEST_SIZE, from_hex, sha_hex, to_hex
from errors import MalformedObject, TruncatedTree
from store import object_get, object_put

OBJECT_TYPES = (b'blob', b'tree', b'commit')


def object_encode(object_type, payload):
    """
    Build the canonical `<type> <len>\\0<payload>` buffer.
    """
    if object_type not in OBJECT_TYPES:
        raise ValueError(f"Unknown object type {object_type!r}")
    return object_type + b' ' + str(len(payload)).encode('ascii') + b'\x00' + payload

def object_decode(raw):
    """
    Split an encoded object into (type, payload). The type is not checked against the
    known types here; callers know what they expect to be reading.
    """
    null_index = raw.find(b'\x00')
    if null_index < 0:
        raise MalformedObject("Malformed object: missing header terminator")

    header = raw[:null_index]
    space_index = header.find(b' ')
    if space_index < 0:
        raise MalformedObject(f"Malformed object header {header!r}")

    object_type = header[:space_index]
    size = header[space_index+1:]
    if not size.isdigit():
        raise MalformedObject(f"Malformed object header {header!r}: bad length")

    payload = raw[null_index+1:]
    if int(size) != len(payload):
        raise MalformedObject(f"Malformed object: header says {int(size)} bytes, payload has {len(payload)}")

    return object_type, payload


class Object():

    object_type = None

    def __init__(self, data=None):
        if data is not None:
            self.deserialize(data)
        else:
            self.init()

    def serialize(self):
        """
        MUST be implemented by subclasses.
        Turn the object's fields into its payload bytes.
        """
        raise NotImplementedError

    def deserialize(self, data):
        raise NotImplementedError

    def init(self):
        pass

    def encode(self):
        return object_encode(self.object_type, self.serialize())


class Blob(Object):
    """
    Blobs are user data. The content of every file is stored verbatim as a blob.
    """

    object_type = b'blob'

    def serialize(self):
        return self.blobdata

    def deserialize(self, data):
        self.blobdata = data

    def init(self):
        self.blobdata = b''


# Wrapper for a single record in the tree
class TreeLeaf(object):
    def __init__(self, mode, name, sha):
        # "100644" for a regular file, "40000" for a directory
        self.mode = mode
        self.name = name
        self.sha = sha

    def __eq__(self, other):
        if not isinstance(other, TreeLeaf):
            return NotImplemented
        return (self.mode, self.name, self.sha) == (other.mode, other.name, other.sha)

    def __repr__(self):
        return f"TreeLeaf({self.mode!r}, {self.name!r}, {self.sha!r})"

    @property
    def is_tree(self):
        return self.mode == TREE_MODE


FILE_MODE = "100644"
TREE_MODE = "40000"


def tree_parse_one_record(raw, start=0):
    null_terminator = raw.find(b'\x00', start)
    if null_terminator < 0:
        raise TruncatedTree(f"Truncated tree: no name terminator after offset {start}")

    # the mode never contains a space, names may
    mode, space, name = raw[start:null_terminator].partition(b' ')
    if not space or not mode:
        raise MalformedObject(f"Malformed tree entry {raw[start:null_terminator]!r}")

    end = null_terminator + 1 + DIGEST_SIZE
    if end > len(raw):
        raise TruncatedTree(f"Truncated tree: entry {name!r} has {len(raw) - null_terminator - 1} of {DIGEST_SIZE} digest bytes")

    sha = to_hex(raw[null_terminator+1:end])
    return end, TreeLeaf(mode.decode('ascii'), os.fsdecode(name), sha)

def tree_parse(raw):
    curr = 0
    max = len(raw)
    all_tuples = list()

    while curr < max:
        curr, data = tree_parse_one_record(raw, curr)
        all_tuples.append(data)

    return all_tuples

def tree_leaf_sort_key(leaf: TreeLeaf):
    """
    Entries are ordered by their raw name bytes.
    """
    return os.fsencode(leaf.name)

def tree_serialize(items):
    serialized_tree = b''

    for leaf in sorted(items, key=tree_leaf_sort_key):
        serialized_tree += leaf.mode.encode('ascii')
        serialized_tree += b' '
        serialized_tree += os.fsencode(leaf.name)
        serialized_tree += b'\x00'
        serialized_tree += from_hex(leaf.sha)

    return serialized_tree


class Tree(Object):
    """
    Tree describes the contents of a directory: (mode, name, sha) entries where the sha
    refers to either a blob or another tree.
    Format: [mode] space [name] 0x00 [raw 20 byte sha]
    """
    object_type = b'tree'

    def serialize(self):
        return tree_serialize(self.items)

    def deserialize(self, data):
        self.items = tree_parse(data)

    def init(self):
        self.items = list()


# key -> value list message
def kvlm_parse(raw_data, start=0, dct=None):
    if dct is None:
        dct = collections.OrderedDict()

    next_spc = raw_data.find(b' ', start)
    next_nwline = raw_data.find(b'\n', start)

    if next_nwline < 0:
        raise MalformedObject("Malformed commit: headers are not terminated by a blank line")

    if next_spc < 0 or (next_spc > next_nwline):
        # This means that we have already parsed all the key value pairs, and we are now onto
        # the message
        if next_nwline != start:
            raise MalformedObject(f"Malformed commit header {raw_data[start:next_nwline]!r}")
        dct[None] = raw_data[start+1:]
        return dct

    # else, we are still parsing key value pairs.
    key = raw_data[start:next_spc]

    # the value can be multiline; each continuation line starts with a space. Loop until
    # we find a '\n' not followed by a space.
    end = start
    while True:
        end = raw_data.find(b'\n', end+1)
        if end < 0:
            raise MalformedObject("Malformed commit: headers are not terminated by a blank line")
        if raw_data[end+1:end+2] != b' ':
            break

    value = raw_data[next_spc+1:end].replace(b'\n ', b'\n')

    # don't override existing key contents
    if key in dct:
        if type(dct[key]) == list:
            dct[key].append(value)
        else:
            dct[key] = [dct[key], value]
    else:
        dct[key] = value

    return kvlm_parse(raw_data, start=end+1, dct=dct)

def kvlm_serialize(kvlm):
    output = b''

    for key in kvlm.keys():
        if key is None: continue

        # normalize value to list
        val = kvlm[key]
        if type(val) != list:
            val = [val]

        for v in val:
            output += key + b' ' + (v.replace(b'\n', b'\n ')) + b'\n'

    # append message, which carries its own trailing newline
    output += b'\n' + kvlm.get(None, b'')
    return output


class Commit(Object):
    """
    A commit payload is a list of `key value` lines followed by a blank line and the message:
    * tree: the root tree of the snapshot.
    * parent: zero or one previous commit.
    * author / committer: identity, unix seconds and timezone offset.
    Subsequent lines of a multiline value start with a space that the parser drops.
    """
    object_type = b'commit'

    def deserialize(self, data):
        self.kvlm = kvlm_parse(data)

    def serialize(self):
        return kvlm_serialize(self.kvlm)

    def init(self):
        self.kvlm = collections.OrderedDict()


def object_class(object_type):
    match object_type:
        case b'commit': return Commit
        case b'tree': return Tree
        case b'blob': return Blob
        case _:
            raise MalformedObject(f"Unknown type {object_type.decode('ascii', 'replace')}")

def object_read(repo, sha):
    """
    Read object from a git repository given its sha hash
    """
    object_type, payload = object_decode(object_get(repo, sha))

    # Call constructor to build object
    return object_class(object_type)(payload)

def object_write(obj, repo=None):
    """
    Name the object, and store it when a repository is given. Returns the hex sha.
    """
    data = obj.encode()
    sha = sha_hex(data)

    if repo:
        object_put(repo, sha, data)

    return sha

def object_hash(fp, type, repo=None):
    """
    Hash object, write it to repo if not None.
    """
    data = fp.read()

    # parse only to reject malformed input; the name is taken over the bytes as given
    object_class(type)(data)
    encoded = object_encode(type, data)
    sha = sha_hex(encoded)

    if repo:
        object_put(repo, sha, encoded)

    return sha
