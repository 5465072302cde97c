"""命令行入口。"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.markup import escape
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
)

from optiweb.core.config import (
    DEFAULT_QUALITY,
    DEFAULT_SUFFIX_PATTERN,
    RunOptions,
    ResizeSpec,
    build_resize_spec,
    build_run_options,
)
from optiweb.core.exceptions import OptiwebError
from optiweb.core.models import OutcomeKind, RunStatistics
from optiweb.core.progress import FileCompleted, FileStarted, PipelineEvent
from optiweb.core.report import describe_outcome, format_summary, write_csv_report
from optiweb.processing.pipeline import process_directory
from optiweb.utils.logging import setup_logging

app = typer.Typer(help="符合 PageSpeed 标准的批量图片优化工具：压缩 JPG/PNG、转换 WebP、生成多尺寸图片。")

LOGGER = logging.getLogger(__name__)


def _build_event_callback(progress: Progress, verbose: bool):
    task_id: Optional[int] = None

    def callback(event: PipelineEvent) -> None:
        nonlocal task_id
        if isinstance(event, FileStarted):
            if task_id is None:
                task_id = progress.add_task("处理文件", total=event.total)
            progress.update(
                task_id,
                description=escape(f"处理中: {event.relative_path.as_posix()} ({event.index}/{event.total})"),
            )
        elif isinstance(event, FileCompleted):
            for outcome in event.outcomes:
                if outcome.kind is OutcomeKind.FAILED:
                    progress.log(f"[yellow]{escape(describe_outcome(outcome))}[/yellow]")
                elif verbose:
                    progress.log(escape(describe_outcome(outcome)))
            if task_id is not None:
                progress.update(task_id, completed=event.index)

    return callback


def _echo_settings(input_dir: Path, output_dir: Path, options: RunOptions, resize: Optional[ResizeSpec]) -> None:
    def yes_no(flag: bool) -> str:
        return "是" if flag else "否"

    lines = [
        f"输入目录: {input_dir}",
        f"输出目录: {output_dir}",
        f"WebP 转换: {yes_no(options.convert_webp)}",
        f"JPG 质量: {options.jpg_quality}",
        f"PNG 质量: {options.png_quality}",
        f"跳过已存在文件: {yes_no(options.skip_existing)}",
        f"仅缩放: {yes_no(options.only_resize)}",
    ]
    if options.ignore_patterns:
        lines.append(f"忽略模式: {', '.join(options.ignore_patterns)}")
    if resize is not None:
        lines.append(f"缩放配置: {resize}")
    for line in lines:
        typer.secho(line, dim=True)


def _echo_summary(stats: RunStatistics) -> None:
    if stats.has_errors:
        typer.secho(f"\n处理完成，但有 {len(stats.errors)} 个错误。", fg=typer.colors.YELLOW)
    else:
        typer.secho("\n优化完成！", fg=typer.colors.GREEN)
    for line in format_summary(stats):
        typer.echo(line)
    for path, message in stats.errors:
        typer.secho(f"  {path}: {message}", fg=typer.colors.YELLOW)


@app.command("run")
def run_cli(  # noqa: PLR0913
    input_dir: Path = typer.Option(..., "--input", "-i", help="输入目录（必填）"),
    output_dir: Path = typer.Option(..., "--output", "-o", help="输出目录（必填）"),
    webp: bool = typer.Option(False, "--webp", "-w", help="转换为 WebP 格式"),
    quality: int = typer.Option(DEFAULT_QUALITY, "--quality", "-q", help="通用质量 (0-100)"),
    jpg_quality: Optional[int] = typer.Option(None, "--jpg-quality", help="JPG 质量 (0-100)，默认同 --quality"),
    png_quality: Optional[int] = typer.Option(None, "--png-quality", help="PNG 质量 (0-100)，默认同 --quality"),
    skip_existing: bool = typer.Option(False, "--skip-existing", "-s", help="跳过输出已存在的文件"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="详细输出"),
    ignore: str = typer.Option("", "--ignore", help="忽略的文件/目录 glob 模式，逗号分隔"),
    resize: Optional[str] = typer.Option(None, "--resize", help="缩放到固定尺寸，例如 800x600"),
    resize_mode: str = typer.Option("cover", "--resize-mode", help="适配模式 cover/contain/fill/inside/outside"),
    max_width: Optional[int] = typer.Option(None, "--max-width", help="最大宽度，等比例缩小"),
    max_height: Optional[int] = typer.Option(None, "--max-height", help="最大高度，等比例缩小"),
    sizes: Optional[str] = typer.Option(None, "--sizes", help="多尺寸宽度列表，逗号分隔，例如 180,300,500"),
    suffix_pattern: str = typer.Option(DEFAULT_SUFFIX_PATTERN, "--suffix-pattern", help="多尺寸文件名后缀模式"),
    only_resize: bool = typer.Option(False, "--only-resize", help="只缩放，不做压缩优化"),
    slug: bool = typer.Option(False, "--slug", help="将输出文件名转换为 slug 形式"),
    webp_lossless: bool = typer.Option(False, "--webp-lossless", help="WebP 使用无损模式"),
    webp_near_lossless: bool = typer.Option(False, "--webp-near-lossless", help="WebP 使用近无损模式"),
    report: Optional[str] = typer.Option(None, "--report", help="在输出目录写入 CSV 报告，例如 report.csv"),
) -> None:
    """批量优化目录中的图片，并将目录结构镜像到输出目录。"""

    setup_logging(logging.INFO if verbose else logging.WARNING)
    LOGGER.debug("CLI 参数解析完成")

    source = input_dir.expanduser().resolve()
    destination = output_dir.expanduser().resolve()

    try:
        resize_spec = build_resize_spec(
            sizes=sizes,
            resize=resize,
            max_width=max_width,
            max_height=max_height,
            mode=resize_mode,
            suffix_pattern=suffix_pattern,
        )
        options = build_run_options(
            quality=quality,
            jpg_quality=jpg_quality,
            png_quality=png_quality,
            ignore=ignore,
            convert_webp=webp,
            webp_lossless=webp_lossless,
            webp_near_lossless=webp_near_lossless,
            skip_existing=skip_existing,
            verbose=verbose,
            slug=slug,
            only_resize=only_resize,
            resize=resize_spec,
        )
    except OptiwebError as exc:
        typer.secho(f"错误: {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from exc

    typer.secho("optiweb 启动中...", fg=typer.colors.BLUE)
    _echo_settings(source, destination, options, resize_spec)

    progress = Progress(
        SpinnerColumn(),
        TextColumn("[bold blue]{task.description}"),
        BarColumn(),
        TimeElapsedColumn(),
    )

    try:
        with progress:
            stats = process_directory(
                source,
                destination,
                options,
                event_callback=_build_event_callback(progress, verbose),
            )
    except OptiwebError as exc:
        typer.secho(f"错误: {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from exc

    _echo_summary(stats)

    if report:
        try:
            report_path = write_csv_report(stats.outcomes, destination, report)
        except OSError as exc:
            LOGGER.error("写入报告失败：%s", exc)
        else:
            typer.echo(f"报告文件：{report_path}")


if __name__ == "__main__":
    app()
