# SPDX-FileCopyrightText: 2021 Rose Davidson <rose@metaclassical.com>
#
# SPDX-License-Identifier: GPL-3.0-or-later
from __future__ import annotations

import collections.abc

import pygtrie


class CombinationTable:
    """Which characters can start a combination, and which can finish one.

    Mappings are order-sensitive: "jk" does not imply "kj".
    """

    def __init__(self, mappings: collections.abc.Iterable[str] = ()):
        self._trie = pygtrie.CharTrie()
        for mapping in mappings:
            if len(mapping) != 2:
                raise ValueError(f"Combination {mapping!r} must be exactly two characters")
            self._trie[mapping] = True

    def starts_combination(self, char: str) -> bool:
        return len(char) == 1 and bool(self._trie.has_subtrie(char))

    def completes(self, first_char: str, second_char: str) -> bool:
        return len(first_char) == 1 and len(second_char) == 1 and self._trie.has_key(first_char + second_char)

    def __iter__(self):
        return iter(sorted(self._trie.iterkeys()))

    def __len__(self):
        return len(self._trie)

    def __contains__(self, mapping: str):
        return len(mapping) == 2 and self._trie.has_key(mapping)
