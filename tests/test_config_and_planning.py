"""配置校验、跳过判定、任务规划与统计累计测试。"""

from __future__ import annotations

from pathlib import Path

import pytest

from optiweb.core.accountant import BatchAccountant
from optiweb.core.config import (
    FixedSize,
    MaxBound,
    MultiSize,
    RunOptions,
    build_resize_spec,
    build_run_options,
    parse_dimensions,
    parse_sizes,
    split_patterns,
)
from optiweb.core.exceptions import InvalidConfigurationError, StatisticsNotReadyError
from optiweb.core.models import CandidateFile, FileOutcome, OutcomeKind, SkipDecision, TaskKind
from optiweb.core.planner import plan
from optiweb.core.scanner import build_webp_shadow_set
from optiweb.core.skip import classify


def make_candidate(path: str, size: int = 1000) -> CandidateFile:
    relative = Path(path)
    suffix = relative.name[relative.name.rfind(".") :].lower() if "." in relative.name else ""
    return CandidateFile(relative_path=relative, extension=suffix, size=size)


# --- 配置 ---------------------------------------------------------------


@pytest.mark.parametrize("kwargs", [{"quality": 150}, {"jpg_quality": -1}, {"png_quality": 101}])
def test_quality_out_of_range_is_rejected(kwargs: dict) -> None:
    with pytest.raises(InvalidConfigurationError):
        build_run_options(**kwargs)


def test_quality_fallback_to_general_quality() -> None:
    options = build_run_options(quality=70, png_quality=40)
    assert options.jpg_quality == 70
    assert options.png_quality == 40


def test_resize_precedence_sizes_over_resize_over_max() -> None:
    spec = build_resize_spec(sizes="200,400", resize="800x600", max_width=100)
    assert isinstance(spec, MultiSize)
    assert spec.sizes == (200, 400)

    spec = build_resize_spec(resize="800x600", max_width=100, mode="contain")
    assert spec == FixedSize(width=800, height=600, mode="contain")

    spec = build_resize_spec(max_height=300)
    assert spec == MaxBound(max_height=300)

    assert build_resize_spec() is None


@pytest.mark.parametrize("value", ["800", "800x", "axb", "800x600x2", ""])
def test_malformed_dimensions(value: str) -> None:
    with pytest.raises(InvalidConfigurationError):
        parse_dimensions(value)


def test_parse_sizes_keeps_order_and_drops_duplicates() -> None:
    assert parse_sizes("800, 200,400,200") == (800, 200, 400)
    with pytest.raises(InvalidConfigurationError):
        parse_sizes("200,0")
    with pytest.raises(InvalidConfigurationError):
        parse_sizes("200,abc")


def test_invalid_resize_specs() -> None:
    with pytest.raises(InvalidConfigurationError):
        FixedSize(width=0, height=100)
    with pytest.raises(InvalidConfigurationError):
        FixedSize(width=100, height=100, mode="stretch")
    with pytest.raises(InvalidConfigurationError):
        MaxBound()
    with pytest.raises(InvalidConfigurationError):
        MaxBound(max_width=-5)
    with pytest.raises(InvalidConfigurationError):
        MultiSize(sizes=())


def test_suffix_pattern_without_width_token_is_rejected() -> None:
    # 与原工具不同：缺少 {width} 会导致各尺寸互相覆盖，因此在配置阶段直接拒绝。
    with pytest.raises(InvalidConfigurationError):
        MultiSize(sizes=(200, 400), suffix_pattern="-small")


def test_split_patterns_respects_braces() -> None:
    assert split_patterns("drafts/**, *.{psd,ai},tmp/*") == ("drafts/**", "*.{psd,ai}", "tmp/*")
    assert split_patterns("") == ()
    assert split_patterns(None) == ()


# --- 跳过判定 -------------------------------------------------------------


def test_webp_shadows_jpg_and_png() -> None:
    candidates = [make_candidate("logo.jpg"), make_candidate("logo.webp"), make_candidate("icon.png")]
    shadow = build_webp_shadow_set(candidates)
    assert shadow == frozenset({"logo"})

    assert classify(candidates[0], shadow, (), False) is SkipDecision.SHADOWED_BY_WEBP
    assert classify(candidates[1], shadow, (), False) is SkipDecision.PROCEED
    assert classify(candidates[2], shadow, (), False) is SkipDecision.PROCEED


def test_non_image_never_shadowed() -> None:
    shadow = frozenset({"notes"})
    assert classify(make_candidate("notes.txt"), shadow, (), False) is SkipDecision.PROCEED


def test_ignore_wins_over_skip_existing_and_shadow() -> None:
    candidate = make_candidate("drafts/logo.jpg")
    shadow = frozenset({"logo"})
    assert classify(candidate, shadow, ("drafts/**",), True) is SkipDecision.IGNORED
    assert classify(candidate, shadow, (), True) is SkipDecision.EXISTING_SKIPPED
    assert classify(candidate, shadow, (), False) is SkipDecision.SHADOWED_BY_WEBP


# --- 规划 ---------------------------------------------------------------


def test_plan_task_kinds() -> None:
    root = Path("/in")
    assert plan(make_candidate("a.txt"), RunOptions(), root).kind is TaskKind.COPY
    assert plan(make_candidate("a.webp"), RunOptions(convert_webp=True), root).kind is TaskKind.COPY
    assert plan(make_candidate("a.jpg"), RunOptions(), root).kind is TaskKind.OPTIMIZE_ONLY

    resized = plan(make_candidate("a.jpg"), RunOptions(resize=MaxBound(max_width=100)), root)
    assert resized.kind is TaskKind.RESIZE_OPTIMIZE

    only_resize = plan(make_candidate("a.jpg"), RunOptions(resize=FixedSize(10, 10), only_resize=True), root)
    assert only_resize.kind is TaskKind.RESIZE_OPTIMIZE
    assert only_resize.only_resize is True


def test_plan_multi_size_fanout_outputs_and_format() -> None:
    options = RunOptions(convert_webp=True, png_quality=60, resize=MultiSize(sizes=(800, 200)))
    task = plan(make_candidate("img/hero.png"), options, Path("/in"))

    assert task.kind is TaskKind.MULTI_SIZE_FANOUT
    assert [(o.relative_path.as_posix(), o.width) for o in task.outputs] == [
        ("img/hero-800.webp", 800),
        ("img/hero-200.webp", 200),
    ]
    assert task.target_format == "WEBP"
    assert task.quality is not None and task.quality.quality == 60
    assert task.source_path == Path("/in/img/hero.png")


def test_plan_uses_jpg_quality_for_jpeg_sources() -> None:
    options = RunOptions(jpg_quality=72, png_quality=30)
    task = plan(make_candidate("photo.JPG"), options, Path("/in"))
    assert task.target_format == "JPEG"
    assert task.quality is not None and task.quality.quality == 72
    assert task.outputs[0].relative_path == Path("photo.JPG")


# --- 统计 ---------------------------------------------------------------


def test_accountant_clamps_negative_deltas() -> None:
    accountant = BatchAccountant(expected_files=2)
    accountant.record(FileOutcome(Path("grew.png"), OutcomeKind.OPTIMIZED, input_size=100, output_size=150))
    accountant.record(FileOutcome(Path("shrank.png"), OutcomeKind.OPTIMIZED, input_size=100, output_size=40))

    stats = accountant.finalize()

    assert stats.total_saved == 60
    assert stats.total_size == 200
    assert stats.optimized == 2
    assert stats.total_saved <= stats.total_size


def test_accountant_counts_and_errors_in_order() -> None:
    accountant = BatchAccountant(expected_files=4)
    accountant.record(FileOutcome(Path("ignored.png"), OutcomeKind.SKIPPED_IGNORED, input_size=10))
    accountant.record(FileOutcome(Path("b.png"), OutcomeKind.FAILED, input_size=10, message="boom"))
    accountant.record(FileOutcome(Path("h.png"), OutcomeKind.RESIZED, input_size=100, output_size=80, width=200))
    accountant.record(FileOutcome(Path("h.png"), OutcomeKind.MULTI_SIZED, input_size=100))
    accountant.record(FileOutcome(Path("a.png"), OutcomeKind.FAILED, input_size=10, message="bad"))

    stats = accountant.finalize()

    assert stats.total_files == 3
    assert stats.ignored == 1
    assert stats.failed == 2
    assert stats.multi_sized == 1
    assert stats.optimized == 1
    assert stats.total_saved == 20
    assert stats.errors == [("b.png", "boom"), ("a.png", "bad")]


def test_accountant_finalize_before_all_files_is_programming_error() -> None:
    accountant = BatchAccountant(expected_files=2)
    accountant.record(FileOutcome(Path("a.txt"), OutcomeKind.COPIED, input_size=5, output_size=5))

    with pytest.raises(StatisticsNotReadyError):
        accountant.finalize()
