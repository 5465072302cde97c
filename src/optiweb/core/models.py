"""核心数据模型定义。"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional, Tuple

from optiweb.core.config import ResizeSpec

IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png"}
WEBP_EXTENSION = ".webp"


@dataclass(slots=True, frozen=True)
class CandidateFile:
    """扫描阶段得到的输入文件信息。"""

    relative_path: Path
    extension: str
    size: int

    @property
    def posix_path(self) -> str:
        return self.relative_path.as_posix()

    @property
    def stem(self) -> str:
        name = self.relative_path.name
        return name[: len(name) - len(self.extension)]

    @property
    def is_image(self) -> bool:
        return self.extension in IMAGE_EXTENSIONS

    @property
    def is_webp(self) -> bool:
        return self.extension == WEBP_EXTENSION


class SkipDecision(str, Enum):
    PROCEED = "proceed"
    IGNORED = "ignored"
    EXISTING_SKIPPED = "existing-skipped"
    SHADOWED_BY_WEBP = "shadowed-by-webp"


class TaskKind(str, Enum):
    COPY = "copy"
    OPTIMIZE_ONLY = "optimize-only"
    RESIZE_OPTIMIZE = "resize-optimize"
    MULTI_SIZE_FANOUT = "multi-size-fanout"


class OutcomeKind(str, Enum):
    COPIED = "copied"
    OPTIMIZED = "optimized"
    RESIZED = "resized"
    MULTI_SIZED = "multi-sized"
    SKIPPED_IGNORED = "skipped-ignored"
    SKIPPED_EXISTING = "skipped-existing"
    SKIPPED_SHADOWED = "skipped-shadowed"
    FAILED = "failed"


@dataclass(slots=True, frozen=True)
class QualityOptions:
    """编码参数；lossless/near_lossless 仅对 WebP 生效。"""

    quality: int
    lossless: bool = False
    near_lossless: bool = False


@dataclass(slots=True, frozen=True)
class TaskOutput:
    """单个输出文件：相对路径，多尺寸时附带目标宽度。"""

    relative_path: Path
    width: Optional[int] = None


@dataclass(slots=True, frozen=True)
class TransformTask:
    """规划阶段为单个文件生成的处理任务。"""

    kind: TaskKind
    candidate: CandidateFile
    source_path: Path
    outputs: Tuple[TaskOutput, ...]
    target_format: Optional[str] = None  # JPEG | PNG | WEBP，复制任务为 None
    quality: Optional[QualityOptions] = None
    resize: Optional[ResizeSpec] = None
    only_resize: bool = False


@dataclass(slots=True)
class FileOutcome:
    """记录单个文件（或单个尺寸输出）的处理结果。"""

    relative_path: Path
    kind: OutcomeKind
    input_size: int = 0
    output_size: Optional[int] = None
    output_path: Optional[Path] = None
    width: Optional[int] = None
    message: Optional[str] = None

    @property
    def is_variant(self) -> bool:
        """多尺寸任务中某一尺寸的输出，而非文件级结果。"""

        return self.width is not None

    @property
    def delta(self) -> int:
        if self.output_size is None:
            return 0
        return self.input_size - self.output_size

    @property
    def saved(self) -> int:
        return max(0, self.delta)


@dataclass(slots=True)
class RunStatistics:
    """整次运行的统计结果，仅由 BatchAccountant 写入。"""

    total_files: int = 0
    optimized: int = 0
    resized: int = 0
    multi_sized: int = 0
    copied: int = 0
    skipped_existing: int = 0
    shadowed: int = 0
    ignored: int = 0
    failed: int = 0
    total_size: int = 0
    total_saved: int = 0
    errors: list[tuple[str, str]] = field(default_factory=list)
    outcomes: list[FileOutcome] = field(default_factory=list)

    @property
    def reduction_ratio(self) -> float:
        if self.total_size <= 0:
            return 0.0
        return self.total_saved / self.total_size

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)
