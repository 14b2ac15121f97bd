"""Keyed substitution transform used to obfuscate export strings.

This is a tampering deterrent, not encryption: a monoalphabetic substitution
falls to frequency analysis and the permutation is recoverable by anyone who
can read the secret from memory.
"""

from __future__ import annotations

import random
import string
from dataclasses import dataclass
from enum import Enum

from slotkeep.engine.models import CipherMode

BASE64_ALPHABET = string.ascii_uppercase + string.ascii_lowercase + string.digits + "+/="


class Direction(str, Enum):
    ENCODE = "encode"
    DECODE = "decode"


def permute_alphabet(secret: str, alphabet: str = BASE64_ALPHABET) -> str:
    # random.Random seeds str values through sha512, so this is stable across runs
    rng = random.Random(secret)
    chars = list(alphabet)
    rng.shuffle(chars)
    return "".join(chars)


def build_table(secret: str, direction: Direction, alphabet: str = BASE64_ALPHABET) -> dict[int, str]:
    if len(set(alphabet)) != len(alphabet):
        raise ValueError("alphabet must not contain duplicate characters")
    permuted = permute_alphabet(secret, alphabet)
    if direction == Direction.ENCODE:
        source, target = alphabet, permuted
    else:
        source, target = permuted, alphabet
    return {ord(src): dst for src, dst in zip(source, target)}


def transform(
    text: str,
    mode: CipherMode | str,
    secret: str,
    direction: Direction | str,
    alphabet: str = BASE64_ALPHABET,
) -> str:
    mode = CipherMode(mode)
    direction = Direction(direction)
    if not secret or mode == CipherMode.NONE:
        return text
    return text.translate(build_table(secret, direction, alphabet))


@dataclass(frozen=True)
class KeyedTransform:
    mode: CipherMode = CipherMode.NONE
    secret: str = ""
    alphabet: str = BASE64_ALPHABET

    @property
    def is_identity(self) -> bool:
        return not self.secret or self.mode == CipherMode.NONE

    def encode(self, text: str) -> str:
        return transform(text, self.mode, self.secret, Direction.ENCODE, self.alphabet)

    def decode(self, text: str) -> str:
        return transform(text, self.mode, self.secret, Direction.DECODE, self.alphabet)
