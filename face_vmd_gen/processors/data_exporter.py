"""Streaming JSON exporter for keyframe sequences."""

from typing import Dict, Any, Optional, TextIO, Iterable, Union
import json
from pathlib import Path

from ..core.types import FrameOutput


class KeyframeExporter:
    """Streaming JSON exporter for FrameOutput records."""

    def __init__(self, output_path: Union[str, Path], metadata: Optional[Dict[str, Any]] = None) -> None:
        """Initialize keyframe exporter.

        Args:
            output_path: Output file path
            metadata: Optional metadata to include (e.g. fps)
        """
        self.output_path: Path = Path(output_path)
        self.file: Optional[TextIO] = None
        self.metadata: Dict[str, Any] = metadata or {}
        self.first_item: bool = True
        self.frame_count: int = 0
        self.frame_count_position: int = 0

    def __enter__(self) -> 'KeyframeExporter':
        self.output_path.parent.mkdir(parents=True, exist_ok=True)
        self.file = open(self.output_path, 'w', encoding='utf-8')
        self.file.write('{\n')

        # frame_count is written last, once known
        for key, value in self.metadata.items():
            if key != 'frame_count':
                self.file.write(f'  "{key}": {json.dumps(value, ensure_ascii=False)},\n')

        # Fixed-width placeholder so the final count can overwrite it in place
        self.frame_count_position = self.file.tell()
        self.file.write(f'  "frame_count": {"null":<12},\n')

        self.file.write('  "data": [\n')
        return self

    def __exit__(self, exc_type: Optional[type], exc_val: Optional[Exception], exc_tb: Optional[Any]) -> None:
        if self.file:
            self.file.write('\n  ]\n}\n')
            self._update_frame_count()
            self.file.close()
            self.file = None

    def write_frame(self, frame_output: FrameOutput) -> None:
        """Write the keyframes of one frame."""
        self.write_item(frame_output.to_dict())

    def write_item(self, item: Any) -> None:
        """Write a single item to the stream."""
        if self.file is None:
            raise RuntimeError("Exporter is not open. Use it as a context manager.")

        if not self.first_item:
            self.file.write(',\n')
        else:
            self.first_item = False

        item_json: str = json.dumps(item, indent=2, ensure_ascii=False)
        indented: str = '\n'.join('    ' + line for line in item_json.split('\n'))
        self.file.write(indented)

        self.frame_count += 1
        self.file.flush()

    def _update_frame_count(self) -> None:
        """Overwrite the frame_count placeholder with the actual count."""
        if self.file:
            current_pos: int = self.file.tell()
            self.file.seek(self.frame_count_position)
            self.file.write(f'  "frame_count": {self.frame_count:<12}')
            self.file.seek(current_pos)

    @staticmethod
    def export(frames: Iterable[FrameOutput],
               output_path: Union[str, Path],
               fps: float) -> int:
        """
        Export a FrameOutput list or stream to a JSON file.

        Args:
            frames: Keyframes per frame
            output_path: Output file path
            fps: Frame rate of the source

        Returns:
            Number of frames written
        """
        with KeyframeExporter(output_path, {'fps': fps}) as exporter:
            for frame_output in frames:
                exporter.write_frame(frame_output)
            return exporter.frame_count
