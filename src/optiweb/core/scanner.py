"""文件扫描：递归列出输入目录并构建候选文件与 WebP 影子集合。"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Iterator

from optiweb.core.exceptions import ScanError
from optiweb.core.models import WEBP_EXTENSION, CandidateFile

LOGGER = logging.getLogger(__name__)


def _iter_files(root: Path) -> Iterator[Path]:
    """遍历目录下的所有文件（包括隐藏文件）。"""

    for candidate in root.rglob("*"):
        if candidate.is_file():
            yield candidate


def _extension_of(name: str) -> str:
    index = name.rfind(".")
    return name[index:].lower() if index != -1 else ""


def list_all(root: Path) -> list[Path]:
    """返回 ``root`` 下所有文件的相对路径，顺序在目录未变时保持稳定。"""

    try:
        relative = [path.relative_to(root) for path in _iter_files(root)]
    except OSError as exc:
        raise ScanError(f"扫描目录失败: {root}: {exc}") from exc

    relative.sort(key=lambda p: (p.as_posix().lower(), p.as_posix()))
    return relative


def collect_candidates(root: Path) -> list[CandidateFile]:
    """扫描输入目录，返回带扩展名与大小的候选文件列表。"""

    collected: list[CandidateFile] = []
    for relative in list_all(root):
        try:
            size = (root / relative).stat().st_size
        except OSError as exc:
            raise ScanError(f"无法读取文件信息: {relative}: {exc}") from exc
        collected.append(
            CandidateFile(
                relative_path=relative,
                extension=_extension_of(relative.name),
                size=size,
            )
        )
    LOGGER.debug("扫描到 %d 个文件: %s", len(collected), root)
    return collected


def build_webp_shadow_set(candidates: Iterable[CandidateFile]) -> frozenset[str]:
    """收集所有 .webp 文件的基础名（去掉扩展名，不含目录）。"""

    return frozenset(candidate.stem for candidate in candidates if candidate.extension == WEBP_EXTENSION)
