"""Table-driven stand-ins for the decoder and hasher capabilities."""

from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Tuple

from imgcluster.dedup.hash import DecodeError, ImageRecord
from imgcluster.sources import enumerate_images


class FakeDecoder:
    """Decodes a path to a value looked up by file name."""

    def __init__(self, values: Mapping[str, Any], unreadable: Iterable[str] = ()) -> None:
        self.values = dict(values)
        self.unreadable = set(unreadable)

    def decode(self, path: Path) -> Any:
        name = Path(path).name
        if name in self.unreadable or name not in self.values:
            raise DecodeError(f"cannot decode {name}")
        return self.values[name]


class NumberHasher:
    """Fingerprints are numbers on a line; distance is their absolute difference."""

    def compute(self, image: Any) -> Any:
        return image

    def compare(self, a: float, b: float) -> float:
        return float(abs(a - b))


class TableHasher:
    """Fingerprints are labels; distances come from an explicit table."""

    def __init__(self, distances: Dict[Tuple[str, str], float], default: float = 100.0) -> None:
        self.distances = {frozenset(pair): value for pair, value in distances.items()}
        self.default = default

    def compute(self, image: Any) -> Any:
        return image

    def compare(self, a: str, b: str) -> float:
        if a == b:
            return 0.0
        return self.distances.get(frozenset((a, b)), self.default)


def records_for(names: Iterable[str]) -> List[ImageRecord]:
    return enumerate_images(Path(name) for name in names)
