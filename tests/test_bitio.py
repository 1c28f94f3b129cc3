import io

import pytest

from bitio import CompressorBitio
from lzwerrors import StreamExhaustionError

BitFile = CompressorBitio.BitFile


def test_output_bits_msb_first_with_zero_padding():
    stream = io.BytesIO()
    with BitFile.from_stream(stream, False) as output:
        output.output_bits(0x41, 9)
        output.output_bits(0x80, 9)
    assert stream.getvalue() == bytes([0x20, 0xA0, 0x00])


def test_input_bits_reads_back_codes():
    bit_file = BitFile.from_stream(io.BytesIO(bytes([0x20, 0xA0, 0x00])), True)
    assert bit_file.input_bits(9) == 0x41
    assert bit_file.input_bits(9) == 0x80
    assert bit_file.is_exhausted(9)
    assert not bit_file.is_exhausted(6)


def test_input_bits_at_end_of_stream():
    bit_file = BitFile.from_stream(io.BytesIO(b""), True)
    with pytest.raises(StreamExhaustionError):
        bit_file.input_bits(8)
    with pytest.raises(EOFError):
        bit_file.input_bits(8)


def test_input_bits_truncated_mid_code():
    bit_file = BitFile.from_stream(io.BytesIO(b"\xff"), True)
    with pytest.raises(StreamExhaustionError):
        bit_file.input_bits(12)


def test_is_exhausted_does_not_consume():
    bit_file = BitFile.from_stream(io.BytesIO(b"\xab\xcd"), True)
    assert not bit_file.is_exhausted(16)
    assert bit_file.input_bits(8) == 0xAB
    assert bit_file.input_bits(8) == 0xCD
    assert bit_file.is_exhausted(1)


def test_read_byte_stream_after_peek():
    bit_file = BitFile.from_stream(io.BytesIO(b"hello"), True)
    assert not bit_file.is_exhausted(16)
    assert bit_file.read_byte_stream() == b"hello"
    assert bit_file.byte_count == 5
    assert bit_file.is_exhausted(1)


def test_read_byte_stream_unaligned():
    bit_file = BitFile.from_stream(io.BytesIO(b"\x0f\xf0"), True)
    assert bit_file.input_bits(4) == 0
    assert bit_file.read_byte_stream() == b"\xff"


def test_output_bytes_unaligned():
    stream = io.BytesIO()
    output = BitFile.from_stream(stream, False)
    output.output_bits(1, 1)
    output.output_bytes(b"\xff")
    output.close_bit_file()
    assert stream.getvalue() == b"\xff\x80"
    assert output.byte_count == 2


def test_borrowed_stream_left_open():
    stream = io.BytesIO()
    output = BitFile.from_stream(stream, False)
    output.output_byte(0x41)
    output.close_bit_file()
    assert not stream.closed
    assert stream.getvalue() == b"A"


def test_named_files_round_trip(tmp_path):
    name = str(tmp_path / "bits.bin")
    output = BitFile.open_output_bit_file(name)
    for code in (1, 200, 511):
        output.output_bits(code, 9)
    output.close_bit_file()
    assert output.file_stream.closed

    with BitFile.open_input_bit_file(name) as bit_file:
        assert [bit_file.input_bits(9) for _ in range(3)] == [1, 200, 511]


def test_pacifier_dots():
    dots = io.StringIO()
    output = BitFile.from_stream(io.BytesIO(), False, pacifier=dots)
    output.output_bytes(b"x" * 4096)
    assert dots.getvalue() == ".."


def test_pacifier_interval_follows_pacifier_count(monkeypatch):
    monkeypatch.setattr(CompressorBitio, "PACIFIER_COUNT", 3)
    dots = io.StringIO()
    output = BitFile.from_stream(io.BytesIO(), False, pacifier=dots)
    output.output_bytes(b"abc")
    assert dots.getvalue() == ""
    output.output_byte(0x41)
    assert dots.getvalue() == "."


class FailingStream(io.RawIOBase):
    def writable(self):
        return True

    def write(self, data):
        raise BrokenPipeError(32, "Broken pipe")


@pytest.mark.parametrize("write", [
    lambda output: output.output_bits(0x41, 8),
    lambda output: output.output_bytes(b"hello"),
])
def test_write_failures_are_reported(write):
    output = BitFile.from_stream(FailingStream(), False)
    with pytest.raises(OSError, match="Fatal error in OutputBits!"):
        write(output)
