import sys
from typing import BinaryIO, Optional, TextIO

from lzwerrors import StreamExhaustionError


class CompressorBitio:
    PACIFIER_COUNT = 2047

    class BitFile:
        """
        MSB-first bit stream over a binary file.

        Output packs bits into rack starting at mask 0x80 and writes the
        byte once mask runs off the end. Input mirrors it. Bytes read ahead
        by is_exhausted() wait in _lookahead until input_bits() wants them.
        """

        def __init__(self, stream: BinaryIO, input_mode: bool, owns_stream: bool = True,
                     pacifier: Optional[TextIO] = None):
            self.is_input = input_mode
            self.file_stream = stream
            self.owns_stream = owns_stream
            self.pacifier = pacifier
            self.rack: int = 0
            self.mask: int = 0x80
            self.pacifier_counter: int = 0
            self._lookahead = bytearray()

        @staticmethod
        def open_output_bit_file(name: str, pacifier: Optional[TextIO] = None) -> 'CompressorBitio.BitFile':
            return CompressorBitio.BitFile(open(name, "wb"), False, pacifier=pacifier)

        @staticmethod
        def open_input_bit_file(name: str, pacifier: Optional[TextIO] = None) -> 'CompressorBitio.BitFile':
            return CompressorBitio.BitFile(open(name, "rb"), True, pacifier=pacifier)

        @staticmethod
        def from_stream(stream: BinaryIO, input_mode: bool,
                        pacifier: Optional[TextIO] = None) -> 'CompressorBitio.BitFile':
            """Wrap a stream the caller keeps ownership of (stdin, stdout, BytesIO)."""
            return CompressorBitio.BitFile(stream, input_mode, owns_stream=False, pacifier=pacifier)

        def __enter__(self) -> 'CompressorBitio.BitFile':
            return self

        def __exit__(self, exc_type, exc_value, traceback):
            self.close_bit_file()

        @property
        def byte_count(self) -> int:
            return self.pacifier_counter

        def close_bit_file(self):
            if not self.is_input:
                self.flush_bits()
            if self.owns_stream:
                self.file_stream.close()
            elif not self.is_input:
                self.file_stream.flush()

        def _count_bytes(self, count: int):
            before = self.pacifier_counter
            self.pacifier_counter += count
            if self.pacifier is None:
                return
            interval = CompressorBitio.PACIFIER_COUNT + 1
            dots = self.pacifier_counter // interval - before // interval
            if dots > 0:
                self.pacifier.write("." * dots)
                self.pacifier.flush()

        def _write(self, data: bytes):
            try:
                self.file_stream.write(data)
            except OSError as e:
                raise OSError(f"Fatal error in OutputBits! {e}") from e
            self._count_bytes(len(data))

        def _write_rack(self):
            self._write(bytes([self.rack]))
            self.rack = 0
            self.mask = 0x80

        def output_bits(self, code: int, count: int):
            mask_code: int = 1 << (count - 1)
            while mask_code != 0:
                if (mask_code & code) != 0:
                    self.rack |= self.mask
                self.mask >>= 1
                if self.mask == 0:
                    self._write_rack()
                mask_code >>= 1

        def output_byte(self, value: int):
            self.output_bits(value, 8)

        def output_bytes(self, data: bytes):
            if self.mask != 0x80:
                for value in data:
                    self.output_bits(value, 8)
                return
            if data:
                self._write(data)

        def flush_bits(self):
            """Write out a partial byte, zero padded on the right."""
            if self.mask != 0x80:
                self._write_rack()

        def _read_byte(self) -> Optional[int]:
            if self._lookahead:
                value = self._lookahead.pop(0)
            else:
                read = self.file_stream.read(1)
                if not read:
                    return None
                value = read[0]
            self._count_bytes(1)
            return value

        def input_bits(self, bit_count: int) -> int:
            mask_code: int = 1 << (bit_count - 1)
            return_value: int = 0
            while mask_code != 0:
                if self.mask == 0x80:
                    value = self._read_byte()
                    if value is None:
                        raise StreamExhaustionError(
                            f"End of stream reached while reading a {bit_count}-bit code")
                    self.rack = value
                if (self.rack & self.mask) != 0:
                    return_value |= mask_code
                mask_code >>= 1
                self.mask >>= 1
                if self.mask == 0:
                    self.mask = 0x80
            return return_value

        def is_exhausted(self, bit_count: int = 1) -> bool:
            """True if fewer than bit_count bits are left. Consumes nothing."""
            available = 0 if self.mask == 0x80 else self.mask.bit_length()
            if available >= bit_count:
                return False
            needed = (bit_count - available + 7) // 8
            while len(self._lookahead) < needed:
                read = self.file_stream.read(needed - len(self._lookahead))
                if not read:
                    break
                self._lookahead.extend(read)
            return available + 8 * len(self._lookahead) < bit_count

        def read_byte_stream(self) -> bytes:
            """Everything left in the stream, as bytes."""
            if self.mask != 0x80:
                data = bytearray()
                while not self.is_exhausted(8):
                    data.append(self.input_bits(8))
                return bytes(data)
            data = bytes(self._lookahead) + self.file_stream.read()
            self._lookahead.clear()
            self._count_bytes(len(data))
            return data


def stderr_pacifier(enabled: bool) -> Optional[TextIO]:
    return sys.stderr if enabled else None
