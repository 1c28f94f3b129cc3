import io
import os
import sys
from dataclasses import dataclass
from typing import List, Optional

from bitio import CompressorBitio
from lzwerrors import ConfigurationError, DecodeError, UnsupportedByteError
from tst import TernarySearchTree

COMPRESSION_NAME = "LZW Fixed Width Text Encoder"
USAGE = "- | + [bits] < in-file > out-file\n\n"

IDENTITY_LIMIT = 0x80
END_OF_STREAM = 0x80
FIRST_CODE = 0x81
DEFAULT_BITS = 8
MIN_BITS = 8
MAX_BITS = 24

DEBUG = bool(int(os.environ.get("LZW_DEBUG", 0)))


def debug(*args, **kwargs):
    if DEBUG:
        print(*args, **kwargs, file=sys.stderr)


@dataclass(frozen=True)
class CodeSpace:
    """Code width for one run, and the limits that follow from it."""
    bits: int = DEFAULT_BITS

    def __post_init__(self):
        if not isinstance(self.bits, int) or isinstance(self.bits, bool):
            raise ConfigurationError(f"Code width must be an integer, got {self.bits!r}")
        if not MIN_BITS <= self.bits <= MAX_BITS:
            raise ConfigurationError(
                f"Code width {self.bits} is outside {MIN_BITS}..{MAX_BITS} bits")

    @property
    def max_code(self) -> int:
        return 1 << self.bits

    @property
    def capacity(self) -> int:
        return self.max_code - FIRST_CODE


class CodeTable:
    """Decoder side dictionary: one slot per code, filled from FIRST_CODE up."""

    def __init__(self, code_space: CodeSpace):
        self.code_space = code_space
        self.entries: List[Optional[bytes]] = [None] * code_space.max_code
        self.next_code = FIRST_CODE

    def __len__(self) -> int:
        return self.next_code - FIRST_CODE

    def __contains__(self, code: int) -> bool:
        if 0 <= code < IDENTITY_LIMIT:
            return True
        return FIRST_CODE <= code < self.next_code

    def is_full(self) -> bool:
        return self.next_code >= self.code_space.max_code

    def expand(self, code: int) -> bytes:
        if 0 <= code < IDENTITY_LIMIT:
            return bytes([code])
        if code == END_OF_STREAM:
            raise DecodeError("End of stream code used as data")
        if code not in self:
            raise DecodeError(f"Code 0x{code:X} was never registered (next code is 0x{self.next_code:X})")
        return self.entries[code]

    def add(self, string: bytes) -> Optional[int]:
        if self.is_full():
            return None
        code = self.next_code
        self.entries[code] = string
        self.next_code += 1
        if self.is_full():
            debug(f"Code table full at {len(self)} entries")
        return code


class TextCompressor:
    def __init__(self, code_space: Optional[CodeSpace] = None):
        self.code_space = code_space if code_space is not None else CodeSpace()
        self.next_code = FIRST_CODE
        self.code_count = 0
        self.dictionary: Optional[TernarySearchTree] = None
        self.code_table: Optional[CodeTable] = None

    @staticmethod
    def build_dictionary() -> TernarySearchTree:
        tst = TernarySearchTree()
        tst.insert_balanced((bytes([i]), i) for i in range(IDENTITY_LIMIT))
        return tst

    @staticmethod
    def check_alphabet(text: bytes):
        if text.isascii():
            return
        for offset, value in enumerate(text):
            if value >= IDENTITY_LIMIT:
                raise UnsupportedByteError(offset, value)

    def compress_file(self, input_bit_file: 'CompressorBitio.BitFile', output: 'CompressorBitio.BitFile'):
        bits = self.code_space.bits
        max_code = self.code_space.max_code

        text = input_bit_file.read_byte_stream()
        self.check_alphabet(text)

        tst = self.build_dictionary()
        self.dictionary = tst
        self.next_code = FIRST_CODE
        self.code_count = 0

        index = 0
        length = len(text)
        while index < length:
            match = tst.longest_prefix_from(text, index)
            index += len(match)

            if index < length and self.next_code < max_code:
                tst.insert(match + text[index:index + 1], self.next_code)
                self.next_code += 1
                if self.next_code == max_code:
                    debug(f"Dictionary full at offset {index}")

            output.output_bits(tst.lookup(match), bits)
            self.code_count += 1

        output.output_bits(END_OF_STREAM, bits)
        output.flush_bits()
        debug(f"Compressed {length} bytes into {self.code_count} codes, "
              f"{self.next_code - FIRST_CODE} entries learned")

    def expand_file(self, input_bit_file: 'CompressorBitio.BitFile', output: 'CompressorBitio.BitFile'):
        bits = self.code_space.bits
        table = CodeTable(self.code_space)
        self.code_table = table
        self.code_count = 0
        self.next_code = FIRST_CODE

        if input_bit_file.is_exhausted(bits):
            output.flush_bits()
            return

        code = input_bit_file.input_bits(bits)
        if code == END_OF_STREAM:
            output.flush_bits()
            return

        while True:
            lookahead = input_bit_file.input_bits(bits)

            codestring = table.expand(code)
            output.output_bytes(codestring)
            self.code_count += 1

            if lookahead == END_OF_STREAM:
                break

            if lookahead in table:
                lookaheadstring = table.expand(lookahead)
            elif lookahead == table.next_code:
                # Encoder used the entry it had just created.
                lookaheadstring = codestring + codestring[:1]
            else:
                raise DecodeError(
                    f"Code 0x{lookahead:X} is ahead of the next code 0x{table.next_code:X}")

            table.add(codestring + lookaheadstring[:1])
            code = lookahead

        self.next_code = table.next_code
        output.flush_bits()
        debug(f"Expanded {self.code_count} codes, {len(table)} entries learned")


def compress_bytes(data: bytes, bits: int = DEFAULT_BITS) -> bytes:
    compressor = TextCompressor(CodeSpace(bits))
    output_stream = io.BytesIO()
    with CompressorBitio.BitFile.from_stream(io.BytesIO(data), True) as input_file, \
            CompressorBitio.BitFile.from_stream(output_stream, False) as output_file:
        compressor.compress_file(input_file, output_file)
    return output_stream.getvalue()


def expand_bytes(data: bytes, bits: int = DEFAULT_BITS) -> bytes:
    compressor = TextCompressor(CodeSpace(bits))
    output_stream = io.BytesIO()
    with CompressorBitio.BitFile.from_stream(io.BytesIO(data), True) as input_file, \
            CompressorBitio.BitFile.from_stream(output_stream, False) as output_file:
        compressor.expand_file(input_file, output_file)
    return output_stream.getvalue()
