import re
from dataclasses import dataclass

from flix.features.streaming.errors import MalformedRange, RangeNotSatisfiable

# Une seule plage : "bytes=<start>-" ou "bytes=<start>-<end>"
_RANGE_RE = re.compile(r"^\s*bytes\s*=\s*(\d+)\s*-\s*(\d*)\s*$", re.IGNORECASE)


@dataclass(frozen=True)
class ByteRange:
    start: int
    end: int  # inclus

    @property
    def length(self) -> int:
        return self.end - self.start + 1

    def content_range(self, total_length: int) -> str:
        return f"bytes {self.start}-{self.end}/{total_length}"


def parse_range_header(value: str, total_length: int) -> ByteRange:
    """
    Parse un en-tête Range contre la taille réelle de l'objet.

    - syntaxe invalide (multi-plages, suffixe "bytes=-N", non numérique) -> MalformedRange
    - fin absente -> total_length - 1
    - hors de 0 <= start <= end < total_length -> RangeNotSatisfiable
    """
    match = _RANGE_RE.match(value or "")
    if not match:
        raise MalformedRange(f"Invalid range header: {value!r}")

    start = int(match.group(1))
    end = int(match.group(2)) if match.group(2) else total_length - 1

    if start >= total_length or end >= total_length or start > end:
        raise RangeNotSatisfiable(total_length)
    return ByteRange(start=start, end=end)
