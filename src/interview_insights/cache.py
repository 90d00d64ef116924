"""File-backed JSON cache."""
import os
import tempfile
from pathlib import Path
from typing import Callable, Generic, Iterator, TypeVar

T = TypeVar('T')


class FileCache(Generic[T]):
    """Key/value cache stored as one `<key>.json` document per key.

    Values pass through `serializer` on the way in and `loader` on the way
    out. A write goes to a temp file in the same directory which is then
    moved over the target.
    """

    suffix = ".json"

    def __init__(
        self,
        cache_dir: Path,
        loader: Callable[[str], T],
        serializer: Callable[[T], str],
    ):
        self.cache_dir = Path(cache_dir)
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        self.loader = loader
        self.serializer = serializer

    def _path(self, key: str) -> Path:
        return self.cache_dir / f"{key}{self.suffix}"

    def __contains__(self, key: str) -> bool:
        return self._path(key).is_file()

    def get(self, key: str) -> T | None:
        try:
            text = self._path(key).read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        return self.loader(text)

    def put(self, key: str, value: T) -> None:
        fd, tmp = tempfile.mkstemp(dir=self.cache_dir, prefix=f".{key}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(self.serializer(value))
            os.replace(tmp, self._path(key))
        finally:
            Path(tmp).unlink(missing_ok=True)

    def discard(self, key: str) -> bool:
        """Drop a key; False if nothing was cached under it."""
        try:
            self._path(key).unlink()
        except FileNotFoundError:
            return False
        return True

    def keys(self) -> Iterator[str]:
        for path in sorted(self.cache_dir.glob(f"*{self.suffix}")):
            yield path.stem

    def items(self) -> Iterator[tuple[str, T]]:
        for key in self.keys():
            value = self.get(key)
            # Skip keys discarded between listing and reading
            if value is not None:
                yield key, value
