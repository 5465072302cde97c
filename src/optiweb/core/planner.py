"""处理任务规划：根据扩展名与选项决定单个文件的处理方式。"""

from __future__ import annotations

from pathlib import Path

from optiweb.core.config import FixedSize, MaxBound, MultiSize, RunOptions
from optiweb.core.models import CandidateFile, QualityOptions, TaskKind, TaskOutput, TransformTask
from optiweb.core.naming import destination_paths

SOURCE_FORMATS = {
    ".jpg": "JPEG",
    ".jpeg": "JPEG",
    ".png": "PNG",
}


def target_format(extension: str, convert_webp: bool) -> str:
    if convert_webp:
        return "WEBP"
    return SOURCE_FORMATS[extension]


def quality_for(extension: str, options: RunOptions) -> QualityOptions:
    """WebP 转换时 PNG 源使用 PNG 质量，其余使用 JPG 质量。"""

    quality = options.png_quality if extension == ".png" else options.jpg_quality
    if not options.convert_webp:
        return QualityOptions(quality=quality)
    return QualityOptions(
        quality=quality,
        lossless=options.webp_lossless,
        near_lossless=options.webp_near_lossless,
    )


def plan(candidate: CandidateFile, options: RunOptions, source_root: Path) -> TransformTask:
    """为单个候选文件生成处理任务。"""

    destinations = destination_paths(candidate.relative_path, options)
    source_path = source_root / candidate.relative_path

    if not candidate.is_image:
        return TransformTask(
            kind=TaskKind.COPY,
            candidate=candidate,
            source_path=source_path,
            outputs=(TaskOutput(relative_path=destinations[0]),),
        )

    fmt = target_format(candidate.extension, options.convert_webp)
    quality = quality_for(candidate.extension, options)
    resize = options.resize

    if isinstance(resize, MultiSize):
        kind = TaskKind.MULTI_SIZE_FANOUT
        outputs = tuple(
            TaskOutput(relative_path=path, width=size) for path, size in zip(destinations, resize.sizes)
        )
    else:
        kind = TaskKind.RESIZE_OPTIMIZE if isinstance(resize, (FixedSize, MaxBound)) else TaskKind.OPTIMIZE_ONLY
        outputs = (TaskOutput(relative_path=destinations[0]),)

    return TransformTask(
        kind=kind,
        candidate=candidate,
        source_path=source_path,
        outputs=outputs,
        target_format=fmt,
        quality=quality,
        resize=resize,
        only_resize=options.only_resize,
    )
