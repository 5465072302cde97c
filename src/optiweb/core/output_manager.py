"""输出目录管理与文件写入。"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from optiweb.core.exceptions import OutputRootError, PerFileError

LOGGER = logging.getLogger(__name__)


class ImageWriteError(PerFileError):
    """输出写入失败。"""


class OutputManager:
    """负责输出目录镜像、已存在检查与文件写入。"""

    def __init__(self, output_dir: Path) -> None:
        self.output_dir = output_dir.resolve()
        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise OutputRootError(f"无法创建输出目录: {self.output_dir}") from exc

    def resolve(self, relative: Path) -> Path:
        return self.output_dir / relative

    def exists(self, relative: Path) -> bool:
        return self.resolve(relative).exists()

    def all_exist(self, relatives: list[Path]) -> bool:
        return bool(relatives) and all(self.exists(relative) for relative in relatives)

    def ensure_parent(self, relative: Path) -> Path:
        """创建目标文件所在目录（已存在时直接返回）。"""

        destination = self.resolve(relative)
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise ImageWriteError(f"无法创建输出目录: {destination.parent}") from exc
        return destination

    def write_bytes(self, relative: Path, payload: bytes) -> int:
        """写入编码后的数据，返回写入的字节数。"""

        destination = self.ensure_parent(relative)
        try:
            destination.write_bytes(payload)
        except OSError as exc:
            raise ImageWriteError(f"写入文件失败: {destination}") from exc
        return len(payload)

    def copy_file(self, source: Path, relative: Path) -> int:
        """原样复制文件，返回目标文件大小。"""

        destination = self.ensure_parent(relative)
        try:
            shutil.copy2(source, destination)
            return destination.stat().st_size
        except OSError as exc:
            raise ImageWriteError(f"复制文件失败: {source} -> {destination}") from exc
