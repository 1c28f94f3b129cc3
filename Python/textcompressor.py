import os
import sys
import time
import tracemalloc
from typing import List, Optional, Tuple

import psutil

from bitio import CompressorBitio, stderr_pacifier
from lzw_text import COMPRESSION_NAME, USAGE, CodeSpace, TextCompressor
from lzwerrors import ConfigurationError, LZWError

COMPRESS = "-"
EXPAND = "+"

STATS = bool(int(os.environ.get("LZW_STATS", 0)))

_printed_header = False


def track_performance(name, func, *args, **kwargs):
    global _printed_header

    if not STATS:
        return func(*args, **kwargs)

    process = psutil.Process(os.getpid())
    start_time = time.time()
    start_cpu = process.cpu_times().user
    tracemalloc.start()
    start_mem = tracemalloc.get_traced_memory()[0]

    try:
        result = func(*args, **kwargs)
    finally:
        end_mem = tracemalloc.get_traced_memory()[1]
        tracemalloc.stop()
    end_cpu = process.cpu_times().user
    end_time = time.time()

    wall_time_ms = (end_time - start_time) * 1000
    cpu_time_ms = (end_cpu - start_cpu) * 1000
    mem_used_kb = (end_mem - start_mem) / 1024

    if not _printed_header:
        print(f"{'Function':<20} {'Wall Time (ms)':>15} {'CPU Time (ms)':>15} {'Memory Used (KB)':>20}",
              file=sys.stderr)
        _printed_header = True

    print(f"{name:<20} {wall_time_ms:15.2f} {cpu_time_ms:15.2f} {mem_used_kb:20.2f}", file=sys.stderr)

    return result


def print_ratios(input_size: int, output_size: int):
    ratio = 100 - int((output_size * 100) / max(input_size, 1))

    print(f"\nInput bytes:             {input_size}", file=sys.stderr)
    print(f"Output bytes:            {output_size}", file=sys.stderr)
    print(f"Compression ratio:       {ratio}%", file=sys.stderr)


def short_name(prog_name: str) -> str:
    name = os.path.basename(prog_name)
    extension = name.rfind('.')
    if extension > 0:
        name = name[:extension]
    return name


def parse_arguments(arguments: List[str]) -> Tuple[str, CodeSpace]:
    if not arguments:
        raise ConfigurationError("Missing mode argument")

    mode = arguments[0]
    if mode not in (COMPRESS, EXPAND):
        raise ConfigurationError(f"Illegal command line argument: {mode}")

    if len(arguments) < 2:
        return mode, CodeSpace()

    try:
        bits = int(arguments[1])
    except ValueError:
        raise ConfigurationError(f"Code width must be an integer, got {arguments[1]!r}") from None

    for extra in arguments[2:]:
        print(f"Unknown argument: {extra}", file=sys.stderr)

    return mode, CodeSpace(bits)


def run(mode: str, code_space: CodeSpace, input_stream, output_stream):
    compressor = TextCompressor(code_space)
    pacifier = stderr_pacifier(STATS)
    input_file = CompressorBitio.BitFile.from_stream(input_stream, True, pacifier=pacifier)
    output_file = CompressorBitio.BitFile.from_stream(output_stream, False)

    try:
        if mode == COMPRESS:
            track_performance("CompressFile", compressor.compress_file, input_file, output_file)
        else:
            track_performance("ExpandFile", compressor.expand_file, input_file, output_file)
    finally:
        track_performance("CloseBitFile", output_file.close_bit_file)

    if STATS:
        action = "Compressing" if mode == COMPRESS else "Expanding"
        print(f"\n{action} with {COMPRESSION_NAME}, {code_space.bits} bit codes", file=sys.stderr)
        print_ratios(input_file.byte_count, output_file.byte_count)


def main(argv: Optional[List[str]] = None) -> int:
    arguments = sys.argv if argv is None else [sys.argv[0]] + list(argv)

    try:
        mode, code_space = parse_arguments(arguments[1:])
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        print(f"\nUsage:  {short_name(arguments[0])} {USAGE}", file=sys.stderr)
        return 2

    try:
        run(mode, code_space, sys.stdin.buffer, sys.stdout.buffer)
    except (LZWError, OSError) as e:
        print(f"An error occurred: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
