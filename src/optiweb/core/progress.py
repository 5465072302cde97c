"""流水线事件：核心逻辑只发出事件，显示由调用方负责。"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Union

from optiweb.core.models import FileOutcome, RunStatistics


@dataclass(slots=True)
class FileStarted:
    """开始处理第 ``index`` 个文件（从 1 开始）。"""

    index: int
    total: int
    relative_path: Path


@dataclass(slots=True)
class FileCompleted:
    """单个文件处理完成，附带其全部结果。"""

    index: int
    total: int
    relative_path: Path
    outcomes: list[FileOutcome]


@dataclass(slots=True)
class RunFinished:
    statistics: RunStatistics


PipelineEvent = Union[FileStarted, FileCompleted, RunFinished]
EventCallback = Optional[Callable[[PipelineEvent], None]]
