"""Streaming JSON reader using ijson for token-based parsing."""

from typing import Iterator, Dict, Any, Optional, Union
import ijson
from pathlib import Path


class StreamingJSONReader:
    """True streaming JSON reader using ijson for token-based parsing."""

    def __init__(self, input_path: Union[str, Path]) -> None:
        """
        Initialize streaming JSON reader.

        Args:
            input_path: Input file path
        """
        self.input_path: Path = Path(input_path)
        self.file: Optional[Any] = None

    def __enter__(self) -> 'StreamingJSONReader':
        self.file = open(self.input_path, 'rb')  # Open in binary mode for ijson
        return self

    def __exit__(self, exc_type: Optional[type], exc_val: Optional[Exception], exc_tb: Optional[Any]) -> None:
        if self.file:
            self.file.close()
            self.file = None

    def read_items(self) -> Iterator[Any]:
        """Read items from the 'data' array using ijson."""
        if self.file:
            self.file.seek(0)

            # use_float avoids Decimal values in landmark arrays
            for item in ijson.items(self.file, 'data.item', use_float=True):
                yield item

    def get_metadata(self) -> Dict[str, Any]:
        """
        Get top-level metadata from the file using ijson.

        Scalars are returned as-is (numbers as float); top-level arrays of
        scalars (e.g. eye model names) are returned as lists. Parsing stops at
        the 'data' array.
        """
        if self.file:
            self.file.seek(0)

            metadata: Dict[str, Any] = {}

            parser = ijson.parse(self.file, use_float=True)
            for prefix, event, value in parser:
                if prefix == 'data' and event == 'start_array':
                    break
                if event in ('string', 'number', 'boolean', 'null'):
                    if '.' not in prefix:
                        metadata[prefix] = float(value) if event == 'number' else value
                    elif prefix.endswith('.item') and prefix.count('.') == 1:
                        key = prefix.split('.')[0]
                        metadata.setdefault(key, []).append(value)
                elif event == 'start_array' and '.' not in prefix:
                    metadata[prefix] = []

            return metadata
        return {}
