"""单个处理任务的执行单元。"""

from __future__ import annotations

import logging
from typing import Optional

from PIL import Image

from optiweb.core.exceptions import PerFileError
from optiweb.core.models import FileOutcome, OutcomeKind, TaskKind, TaskOutput, TransformTask
from optiweb.core.output_manager import OutputManager
from optiweb.processing.encoder import encode_image
from optiweb.processing.image_loader import load_image
from optiweb.processing.resize import resize_image, resize_to_width

LOGGER = logging.getLogger(__name__)


def run_task(task: TransformTask, output_manager: OutputManager) -> list[FileOutcome]:
    """执行单个任务；任一步骤失败只影响当前文件，返回 FAILED 结果。"""

    try:
        if task.kind is TaskKind.COPY:
            return [_copy(task, output_manager)]

        image = load_image(task.source_path)
        try:
            if task.kind is TaskKind.MULTI_SIZE_FANOUT:
                return _run_fanout(task, image, output_manager)
            return [_run_single(task, image, output_manager)]
        finally:
            image.close()
    except PerFileError as exc:
        LOGGER.debug("处理失败 %s: %s", task.candidate.posix_path, exc)
        return [
            FileOutcome(
                relative_path=task.candidate.relative_path,
                kind=OutcomeKind.FAILED,
                input_size=task.candidate.size,
                message=str(exc),
            )
        ]


def _copy(task: TransformTask, output_manager: OutputManager) -> FileOutcome:
    output = task.outputs[0]
    copied_size = output_manager.copy_file(task.source_path, output.relative_path)
    return FileOutcome(
        relative_path=task.candidate.relative_path,
        kind=OutcomeKind.COPIED,
        input_size=task.candidate.size,
        output_size=copied_size,
        output_path=output.relative_path,
    )


def _encode_and_write(
    task: TransformTask,
    image: Image.Image,
    output: TaskOutput,
    output_manager: OutputManager,
) -> int:
    quality = None if task.only_resize else task.quality
    payload = encode_image(image, task.target_format, quality)
    return output_manager.write_bytes(output.relative_path, payload)


def _run_single(task: TransformTask, image: Image.Image, output_manager: OutputManager) -> FileOutcome:
    output = task.outputs[0]
    processed: Optional[Image.Image] = None
    kind = OutcomeKind.OPTIMIZED
    try:
        if task.kind is TaskKind.RESIZE_OPTIMIZE:
            processed = resize_image(image, task.resize)
            kind = OutcomeKind.RESIZED
        written = _encode_and_write(task, image if processed is None else processed, output, output_manager)
    finally:
        if processed is not None:
            processed.close()

    return FileOutcome(
        relative_path=task.candidate.relative_path,
        kind=kind,
        input_size=task.candidate.size,
        output_size=written,
        output_path=output.relative_path,
    )


def _run_fanout(task: TransformTask, image: Image.Image, output_manager: OutputManager) -> list[FileOutcome]:
    """每个尺寸都从同一份解码结果重新缩放，不在缩放结果上继续缩放。"""

    outcomes: list[FileOutcome] = []
    for output in task.outputs:
        assert output.width is not None
        resized = resize_to_width(image, output.width)
        try:
            written = _encode_and_write(task, resized, output, output_manager)
            actual_width = resized.width
        finally:
            resized.close()

        LOGGER.debug("  -> %s: %dpx, %d 字节", output.relative_path.as_posix(), actual_width, written)
        outcomes.append(
            FileOutcome(
                relative_path=task.candidate.relative_path,
                kind=OutcomeKind.RESIZED,
                input_size=task.candidate.size,
                output_size=written,
                output_path=output.relative_path,
                width=output.width,
            )
        )

    widths = ", ".join(str(output.width) for output in task.outputs)
    outcomes.append(
        FileOutcome(
            relative_path=task.candidate.relative_path,
            kind=OutcomeKind.MULTI_SIZED,
            input_size=task.candidate.size,
            message=f"尺寸: {widths}",
        )
    )
    return outcomes
