# s3_keys.py
from dataclasses import dataclass
from typing import Dict

from ingest_errors import ParseError, ParseErrorKind


@dataclass(frozen=True)
class ParsedRecord:
    prefix: str
    identifier: str
    source_key: str

    def as_row(self, bucket_name: str) -> Dict[str, str]:
        return {
            "video_id": self.identifier,
            "bucket_name": bucket_name,
            "prefix": self.prefix,
            "s3_key": self.source_key,
        }


def parse_s3_key(key: str, offset: int = 1) -> ParsedRecord:
    """
    Split an S3 key into (prefix, video id).

    The first `offset` segments form the prefix, the segment after them
    holds the id, cut at its first dot:
        aa2019/abc.mp4      offset=1 -> ("aa2019", "abc")
        aa2019/abc/abc.mp4  offset=2 -> ("aa2019/abc", "abc")
    A segment without a dot is taken whole.
    """
    if offset < 0:
        raise ValueError(f"offset must be >= 0, got {offset}")

    trimmed = (key or "").strip()
    if not trimmed:
        raise ParseError(ParseErrorKind.EMPTY_KEY, key, "S3Key is length 0")

    words = trimmed.split("/")
    if len(words) < offset + 1:
        raise ParseError(ParseErrorKind.MALFORMED_PREFIX, key, f"prefix format error {key}")

    prefix = "/".join(words[:offset])
    id_parts = words[offset].split(".")
    if not id_parts:
        raise ParseError(ParseErrorKind.MALFORMED_IDENTIFIER, key, f"videoID format error {key}")

    return ParsedRecord(prefix=prefix, identifier=id_parts[0], source_key=key)
