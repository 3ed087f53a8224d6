from .envelope import (
    FormatType,
    FORMAT_PLAIN,
    FORMAT_ZLIB,
    parse_format,
    read_format,
    serialize,
    deserialize,
)

__all__ = ["FormatType", "FORMAT_PLAIN", "FORMAT_ZLIB", "parse_format", "read_format",
           "serialize", "deserialize"]
