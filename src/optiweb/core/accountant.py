"""运行统计的累计与汇总。"""

from __future__ import annotations

import logging

from optiweb.core.exceptions import StatisticsNotReadyError
from optiweb.core.models import FileOutcome, OutcomeKind, RunStatistics

LOGGER = logging.getLogger(__name__)

_COUNTERS = {
    OutcomeKind.COPIED: "copied",
    OutcomeKind.MULTI_SIZED: "multi_sized",
    OutcomeKind.SKIPPED_IGNORED: "ignored",
    OutcomeKind.SKIPPED_EXISTING: "skipped_existing",
    OutcomeKind.SKIPPED_SHADOWED: "shadowed",
    OutcomeKind.FAILED: "failed",
}


class BatchAccountant:
    """按处理顺序记录每个结果，并在全部文件处理完后给出统计。

    ``expected_files`` 为本次运行的候选文件数；每个文件恰好产生一条文件级结果
    （多尺寸任务另有若干尺寸级结果）。
    """

    def __init__(self, expected_files: int) -> None:
        self._expected = expected_files
        self._recorded_files = 0
        self._finalized = False
        self._stats = RunStatistics()

    @property
    def pending(self) -> int:
        return self._expected - self._recorded_files

    def record(self, outcome: FileOutcome) -> None:
        if self._finalized:
            raise StatisticsNotReadyError("统计已完成汇总，不能继续记录结果")

        stats = self._stats
        stats.outcomes.append(outcome)
        stats.total_saved += outcome.saved

        if outcome.is_variant:
            # 每个尺寸输出都计为一张已写出的图片
            stats.optimized += 1
            return

        self._recorded_files += 1
        if outcome.kind is OutcomeKind.SKIPPED_IGNORED:
            stats.ignored += 1
            return

        stats.total_files += 1
        stats.total_size += outcome.input_size

        if outcome.kind is OutcomeKind.OPTIMIZED:
            stats.optimized += 1
        elif outcome.kind is OutcomeKind.RESIZED:
            stats.optimized += 1
            stats.resized += 1
        else:
            counter = _COUNTERS[outcome.kind]
            setattr(stats, counter, getattr(stats, counter) + 1)

        if outcome.kind is OutcomeKind.FAILED:
            stats.errors.append((outcome.relative_path.as_posix(), outcome.message or ""))

    def finalize(self) -> RunStatistics:
        """返回统计快照；仍有文件未记录时属于调用方错误。"""

        if self.pending != 0:
            raise StatisticsNotReadyError(
                f"仍有 {self.pending} 个文件未记录结果（预期 {self._expected}，已记录 {self._recorded_files}）"
            )
        self._finalized = True
        LOGGER.debug("统计汇总完成: %d 个文件，节省 %d 字节", self._stats.total_files, self._stats.total_saved)
        return self._stats
