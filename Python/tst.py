from typing import Iterable, Optional, Tuple

from lzwerrors import DictionaryLookupError

UNUSED = -1


class TSTNode:
    """One byte of a key. Keys end on nodes whose code_value is set."""
    __slots__ = ['character', 'smaller_child', 'equal_child', 'larger_child', 'code_value']

    def __init__(self, character: int):
        self.character = character
        self.smaller_child: Optional['TSTNode'] = None
        self.equal_child: Optional['TSTNode'] = None
        self.larger_child: Optional['TSTNode'] = None
        self.code_value = UNUSED


class TernarySearchTree:
    """
    Ternary search tree from byte strings to integer codes.

    Only insertion is supported; stored keys are never removed or changed.
    All walks are iterative so long keys do not hit the recursion limit.
    """

    def __init__(self):
        self.root: Optional[TSTNode] = None
        self.size = 0

    def __len__(self) -> int:
        return self.size

    def __contains__(self, key: bytes) -> bool:
        node = self._find_node(key)
        return node is not None and node.code_value != UNUSED

    def insert(self, key: bytes, code: int) -> bool:
        """Store key -> code. Returns False and keeps the old code if key exists."""
        if not key:
            raise ValueError("Cannot insert an empty key")

        if self.root is None:
            self.root = TSTNode(key[0])

        node = self.root
        position = 0
        last = len(key) - 1
        while True:
            character = key[position]
            if character < node.character:
                if node.smaller_child is None:
                    node.smaller_child = TSTNode(character)
                node = node.smaller_child
            elif character > node.character:
                if node.larger_child is None:
                    node.larger_child = TSTNode(character)
                node = node.larger_child
            elif position < last:
                position += 1
                if node.equal_child is None:
                    node.equal_child = TSTNode(key[position])
                node = node.equal_child
            else:
                break

        if node.code_value != UNUSED:
            return False
        node.code_value = code
        self.size += 1
        return True

    def insert_balanced(self, items: Iterable[Tuple[bytes, int]]):
        """
        Insert a batch of (key, code) pairs median first.

        Feeding keys in sorted order through insert() would chain every
        sibling off larger_child; splitting on the median keeps the
        siblings at depth log2(n).
        """
        ordered = sorted(items)
        pending = [(0, len(ordered))]
        while pending:
            low, high = pending.pop()
            if low >= high:
                continue
            middle = (low + high) // 2
            key, code = ordered[middle]
            self.insert(key, code)
            pending.append((middle + 1, high))
            pending.append((low, middle))

    def lookup(self, key: bytes) -> int:
        node = self._find_node(key)
        if node is None or node.code_value == UNUSED:
            raise DictionaryLookupError(f"No code stored for {bytes(key)!r}")
        return node.code_value

    def longest_prefix_from(self, buffer: bytes, start: int) -> bytes:
        """
        Return the longest stored key that buffer has at position start.

        Raises DictionaryLookupError if not even the single byte at start
        is stored.
        """
        node = self.root
        position = start
        end = len(buffer)
        matched = start
        while node is not None and position < end:
            character = buffer[position]
            if character < node.character:
                node = node.smaller_child
            elif character > node.character:
                node = node.larger_child
            else:
                position += 1
                if node.code_value != UNUSED:
                    matched = position
                node = node.equal_child

        if matched == start:
            if start >= end:
                raise DictionaryLookupError(f"No input left at offset {start}")
            raise DictionaryLookupError(
                f"No stored prefix for byte 0x{buffer[start]:02X} at offset {start}")
        return bytes(buffer[start:matched])

    def _find_node(self, key: bytes) -> Optional[TSTNode]:
        if not key:
            return None
        node = self.root
        position = 0
        last = len(key) - 1
        while node is not None:
            character = key[position]
            if character < node.character:
                node = node.smaller_child
            elif character > node.character:
                node = node.larger_child
            elif position < last:
                position += 1
                node = node.equal_child
            else:
                return node
        return None
