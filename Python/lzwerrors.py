class LZWError(Exception):
    """Base class for every fatal condition raised by the compressor."""


class ConfigurationError(LZWError, ValueError):
    """Bad command line mode or a code width the code space cannot use."""


class UnsupportedByteError(LZWError, ValueError):
    """Input holds a byte outside the 7-bit identity range."""

    def __init__(self, offset: int, value: int):
        super().__init__(f"Byte 0x{value:02X} at offset {offset} is outside the 7-bit alphabet")
        self.offset = offset
        self.value = value


class DictionaryLookupError(LZWError, LookupError):
    """Encoder asked the prefix dictionary for a string it never stored."""


class DecodeError(LZWError):
    """Compressed stream references a code the decoder never registered."""


class StreamExhaustionError(LZWError, EOFError):
    """Input ended before a whole code could be read."""
