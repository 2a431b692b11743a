"""Byte sources a workbook can be read from."""

from sheetstream.sources.base import StreamSource
from sheetstream.sources.http import HTTPSource
from sheetstream.sources.local import LocalFileSource
from sheetstream.sources.memory import MemorySource
from sheetstream.sources.s3 import S3Source

__all__ = [
    "HTTPSource",
    "LocalFileSource",
    "MemorySource",
    "S3Source",
    "StreamSource",
]
