import os
import sys
from datetime import datetime
from pathlib import Path

from lzw_text import compress_bytes, expand_bytes, CodeSpace, DEFAULT_BITS, IDENTITY_LIMIT
from lzwerrors import ConfigurationError, LZWError


class ChurnProgram:
    """Round-trips every file under a directory and logs the results."""

    def __init__(self, bits: int = DEFAULT_BITS, log_name: str = "CHURN.LOG"):
        self.code_space = CodeSpace(bits)
        self.log_name = log_name
        self.total_files = 0
        self.total_passed = 0
        self.total_failed = 0
        self.total_skipped = 0
        self.log_file = None

    def main(self, args) -> int:
        try:
            root_dir, bits, log_name = self.parse_arguments(args)
            self.code_space = CodeSpace(bits)
        except ConfigurationError as e:
            print(f"Error: {e}", file=sys.stderr)
            self.usage()
            return 2
        self.log_name = log_name
        return self.run(root_dir)

    @staticmethod
    def parse_arguments(args):
        args = list(args)
        log_name = "CHURN.LOG"
        if "--log" in args:
            position = args.index("--log")
            if position + 1 >= len(args):
                raise ConfigurationError("--log needs a file name")
            log_name = args[position + 1]
            del args[position:position + 2]

        if not 1 <= len(args) <= 2:
            raise ConfigurationError("Expected a root directory and an optional code width")

        bits = DEFAULT_BITS
        if len(args) == 2:
            try:
                bits = int(args[1])
            except ValueError:
                raise ConfigurationError(f"Code width must be an integer, got {args[1]!r}") from None
        return args[0], bits, log_name

    def run(self, root_dir) -> int:
        with open(self.log_name, "w", encoding="utf-8") as self.log_file:
            self.write_log_header()

            start_time = datetime.now()
            self.churn_files(root_dir)
            stop_time = datetime.now()

            self.write_log_summary(start_time, stop_time)
        self.log_file = None
        return 1 if self.total_failed else 0

    def churn_files(self, path):
        try:
            entries = sorted(os.scandir(path), key=lambda entry: entry.name)
        except PermissionError as ex:
            print(f"Access denied to {path}: {ex}", file=sys.stderr)
            return

        for entry in entries:
            if entry.is_dir(follow_symlinks=False):
                self.churn_files(entry.path)
            elif entry.is_file(follow_symlinks=False):
                if os.path.abspath(entry.path) == os.path.abspath(self.log_name):
                    continue
                if not self.file_is_already_compressed(entry.path):
                    print(f"Testing {entry.path}", file=sys.stderr)
                    if not self.compress(entry.path):
                        print("Comparison failed!", file=sys.stderr)

    @staticmethod
    def file_is_already_compressed(name):
        compressed_extensions = {".zip", ".ice", ".lzh", ".arc", ".gif", ".pak", ".arj", ".gz", ".lzw"}
        extension = Path(name).suffix.lower()
        return extension in compressed_extensions

    def compress(self, file_name) -> bool:
        self.log_file.write(f"{file_name:<40} ")
        try:
            with open(file_name, "rb") as f:
                original = f.read()
        except OSError as ex:
            self.total_failed += 1
            self.log_file.write(f"Failed: {ex}\n")
            return False

        if any(value >= IDENTITY_LIMIT for value in original):
            self.total_skipped += 1
            self.log_file.write(f" {len(original):8} {'':8} {'':5}  Skipped\n")
            return True

        self.total_files += 1
        try:
            packed = compress_bytes(original, self.code_space.bits)
            expanded = expand_bytes(packed, self.code_space.bits)
        except LZWError as ex:
            self.total_failed += 1
            self.log_file.write(f"Failed: {ex}\n")
            return False

        old_size = len(original)
        new_size = len(packed)
        self.log_file.write(f" {old_size:8} {new_size:8} ")
        ratio = 100 - (new_size * 100 // max(old_size, 1))
        self.log_file.write(f"{ratio:4}%  ")

        if expanded != original:
            self.log_file.write("Failed\n")
            self.total_failed += 1
            return False

        self.log_file.write("Passed\n")
        self.total_passed += 1
        return True

    def write_log_header(self):
        self.log_file.write(f"Code width: {self.code_space.bits} bits\n\n")
        self.log_file.write("                                          Original   Packed\n")
        self.log_file.write("            File Name                     Size      Size   Ratio  Result\n")
        self.log_file.write("-------------------------------------     --------  --------  ----  ------\n")

    def write_log_summary(self, start_time, stop_time):
        elapsed_time = (stop_time - start_time).total_seconds()
        self.log_file.write(f"\nTotal elapsed time: {elapsed_time:.2f} seconds\n")
        self.log_file.write(f"Total files:   {self.total_files}\n")
        self.log_file.write(f"Total passed:  {self.total_passed}\n")
        self.log_file.write(f"Total failed:  {self.total_failed}\n")
        self.log_file.write(f"Total skipped: {self.total_skipped}\n")

    @staticmethod
    def usage():
        usage = """
CHURN 1.0. Usage: CHURN root-dir [bits] [--log FILE]

CHURN tests the compressor by compressing and expanding all files in a directory.

Example:
  CHURN ./texts 12 --log CHURN.LOG
"""
        print(usage, file=sys.stderr)


def main(argv=None) -> int:
    churn = ChurnProgram()
    return churn.main(sys.argv[1:] if argv is None else argv)


if __name__ == "__main__":
    sys.exit(main())
