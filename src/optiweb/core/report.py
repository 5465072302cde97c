"""报告生成工具：结果描述、汇总文本与 CSV 报告。"""

from __future__ import annotations

import csv
from pathlib import Path
from typing import Iterable

from optiweb.core.models import FileOutcome, OutcomeKind, RunStatistics

HEADER = ["relative_path", "output_path", "kind", "width", "input_size", "output_size", "saved", "message"]

_UNITS = ["Bytes", "KB", "MB", "GB", "TB"]


def format_bytes(value: int, decimals: int = 2) -> str:
    """将字节数格式化为可读字符串，例如 ``1536 -> "1.5 KB"``。"""

    if value == 0:
        return "0 Bytes"
    index = 0
    scaled = float(value)
    while abs(scaled) >= 1024 and index < len(_UNITS) - 1:
        scaled /= 1024
        index += 1
    text = f"{scaled:.{max(decimals, 0)}f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return f"{text} {_UNITS[index]}"


def _reduction(outcome: FileOutcome) -> str:
    if outcome.input_size <= 0:
        return "-0.00%"
    return f"-{outcome.saved / outcome.input_size * 100:.2f}%"


def describe_outcome(outcome: FileOutcome) -> str:
    """生成单条结果的说明文字，用于详细输出与日志。"""

    path = outcome.relative_path.as_posix()
    kind = outcome.kind
    if outcome.is_variant:
        assert outcome.output_path is not None and outcome.output_size is not None
        return f"  → {outcome.output_path.name}: {format_bytes(outcome.output_size)} ({_reduction(outcome)})"
    if kind is OutcomeKind.COPIED:
        return f"已复制: {path}"
    if kind is OutcomeKind.OPTIMIZED:
        return f"已优化: {path} ({_reduction(outcome)})"
    if kind is OutcomeKind.RESIZED:
        return f"已缩放并优化: {path} ({_reduction(outcome)})"
    if kind is OutcomeKind.MULTI_SIZED:
        return f"多尺寸处理: {path} ({outcome.message})"
    if kind is OutcomeKind.SKIPPED_IGNORED:
        return f"已忽略: {path}"
    if kind is OutcomeKind.SKIPPED_EXISTING:
        return f"跳过（输出已存在）: {path}"
    if kind is OutcomeKind.SKIPPED_SHADOWED:
        return f"跳过（存在 WebP 版本）: {path}"
    return f"错误: {path} - {outcome.message}"


def format_summary(stats: RunStatistics) -> list[str]:
    """生成运行汇总的文本行。"""

    lines = [
        f"处理的文件数: {stats.total_files}",
        f"优化的图片数: {stats.optimized}",
    ]
    if stats.resized:
        lines.append(f"缩放的图片数: {stats.resized}")
    if stats.multi_sized:
        lines.append(f"多尺寸处理的图片数: {stats.multi_sized}")
    if stats.shadowed:
        lines.append(f"因存在 WebP 版本而跳过的图片数: {stats.shadowed}")
    if stats.skipped_existing:
        lines.append(f"因输出已存在而跳过的文件数: {stats.skipped_existing}")
    if stats.ignored:
        lines.append(f"忽略的文件数: {stats.ignored}")
    lines.append(f"复制的其他文件数: {stats.copied}")
    lines.append(f"输入总大小: {format_bytes(stats.total_size)}")
    if stats.total_saved > 0:
        lines.append(f"共节省空间: {stats.total_saved / (1024 * 1024):.2f} MB")
        lines.append(f"总体缩减比例: {stats.reduction_ratio * 100:.2f}%")
    return lines


def write_csv_report(outcomes: Iterable[FileOutcome], output_dir: Path, filename: str) -> Path:
    """将处理结果写入 CSV 报告。"""

    report_path = output_dir / filename
    with report_path.open("w", newline="", encoding="utf-8") as handle:
        writer = csv.writer(handle)
        writer.writerow(HEADER)
        for record in outcomes:
            writer.writerow(
                [
                    record.relative_path.as_posix(),
                    record.output_path.as_posix() if record.output_path else "",
                    record.kind.value,
                    record.width if record.width is not None else "",
                    record.input_size,
                    record.output_size if record.output_size is not None else "",
                    record.saved,
                    record.message or "",
                ]
            )
    return report_path
