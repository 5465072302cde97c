"""处理流水线：校验、扫描、逐个文件判定/规划/执行，并汇总统计。"""

from __future__ import annotations

import logging
import os
from enum import Enum
from pathlib import Path
from typing import Optional

from optiweb.core.accountant import BatchAccountant
from optiweb.core.config import RunOptions
from optiweb.core.exceptions import InvalidConfigurationError, OptiwebError
from optiweb.core.models import CandidateFile, FileOutcome, OutcomeKind, RunStatistics, SkipDecision
from optiweb.core.naming import destination_paths
from optiweb.core.output_manager import OutputManager
from optiweb.core.patterns import match_any
from optiweb.core.planner import plan
from optiweb.core.progress import EventCallback, FileCompleted, FileStarted, PipelineEvent, RunFinished
from optiweb.core.scanner import build_webp_shadow_set, collect_candidates
from optiweb.core.skip import classify
from optiweb.processing.executor import run_task

LOGGER = logging.getLogger(__name__)

_SKIP_OUTCOMES = {
    SkipDecision.IGNORED: OutcomeKind.SKIPPED_IGNORED,
    SkipDecision.EXISTING_SKIPPED: OutcomeKind.SKIPPED_EXISTING,
    SkipDecision.SHADOWED_BY_WEBP: OutcomeKind.SKIPPED_SHADOWED,
}


class PipelineState(str, Enum):
    INITIALIZING = "initializing"
    ENUMERATING = "enumerating"
    PROCESSING_FILES = "processing-files"
    FINALIZING = "finalizing"
    DONE = "done"
    ABORTED_FATAL = "aborted-fatal"


class PipelineDriver:
    """单次运行的编排者，按枚举顺序逐个处理文件。"""

    def __init__(
        self,
        input_dir: Path,
        output_dir: Path,
        options: RunOptions,
        event_callback: EventCallback = None,
    ) -> None:
        self.input_dir = input_dir
        self.output_dir = output_dir
        self.options = options
        self.state = PipelineState.INITIALIZING
        self._event_callback = event_callback
        self._output_manager: Optional[OutputManager] = None
        self._shadow_set: frozenset[str] = frozenset()

    def run(self) -> RunStatistics:
        """执行完整流程并返回统计结果；配置或扫描错误会中止运行。"""

        if self.state is not PipelineState.INITIALIZING:
            raise RuntimeError(f"流水线只能运行一次，当前状态: {self.state.value}")

        try:
            self._initialize()
            self.state = PipelineState.ENUMERATING
            candidates = self._enumerate()
        except OptiwebError:
            self.state = PipelineState.ABORTED_FATAL
            raise

        self.state = PipelineState.PROCESSING_FILES
        accountant = BatchAccountant(expected_files=len(candidates))
        total = len(candidates)
        for index, candidate in enumerate(candidates, start=1):
            self._emit(FileStarted(index=index, total=total, relative_path=candidate.relative_path))
            outcomes = self._process_candidate(candidate)
            for outcome in outcomes:
                accountant.record(outcome)
            self._emit(
                FileCompleted(index=index, total=total, relative_path=candidate.relative_path, outcomes=outcomes)
            )

        self.state = PipelineState.FINALIZING
        statistics = accountant.finalize()
        if statistics.errors:
            LOGGER.warning("处理完成，共 %d 个错误", len(statistics.errors))
        else:
            LOGGER.info("全部文件处理成功")

        self.state = PipelineState.DONE
        self._emit(RunFinished(statistics=statistics))
        return statistics

    def _initialize(self) -> None:
        root = self.input_dir
        if not root.is_dir():
            raise InvalidConfigurationError(f"输入目录不存在: {root}")
        if not os.access(root, os.R_OK | os.X_OK):
            raise InvalidConfigurationError(f"输入目录不可读: {root}")
        self.options.validate()

    def _enumerate(self) -> list[CandidateFile]:
        LOGGER.info("开始扫描输入目录: %s", self.input_dir)
        candidates = collect_candidates(self.input_dir)

        ignore = self.options.ignore_patterns
        visible = [c for c in candidates if not (ignore and match_any(c.posix_path, ignore))]
        self._shadow_set = build_webp_shadow_set(visible)
        self._output_manager = OutputManager(self.output_dir)

        LOGGER.info(
            "发现 %d 个文件（忽略 %d 个，WebP 文件 %d 个）",
            len(candidates),
            len(candidates) - len(visible),
            len(self._shadow_set),
        )
        return candidates

    def _process_candidate(self, candidate: CandidateFile) -> list[FileOutcome]:
        assert self._output_manager is not None
        options = self.options

        output_exists = False
        if options.skip_existing:
            output_exists = self._output_manager.all_exist(destination_paths(candidate.relative_path, options))

        decision = classify(candidate, self._shadow_set, options.ignore_patterns, output_exists)
        if decision is not SkipDecision.PROCEED:
            LOGGER.debug("跳过 %s: %s", candidate.posix_path, decision.value)
            return [
                FileOutcome(
                    relative_path=candidate.relative_path,
                    kind=_SKIP_OUTCOMES[decision],
                    input_size=candidate.size,
                )
            ]

        task = plan(candidate, options, self.input_dir)
        if options.slug and task.outputs[0].relative_path.name != candidate.relative_path.name:
            LOGGER.debug("重命名: %s -> %s", candidate.relative_path.name, task.outputs[0].relative_path.name)
        outcomes = run_task(task, self._output_manager)

        failure_level = logging.INFO if options.verbose else logging.DEBUG
        for outcome in outcomes:
            if outcome.kind is OutcomeKind.FAILED:
                LOGGER.log(failure_level, "文件处理失败 %s: %s", candidate.posix_path, outcome.message)
        return outcomes

    def _emit(self, event: PipelineEvent) -> None:
        if self._event_callback is not None:
            self._event_callback(event)


def process_directory(
    input_dir: Path,
    output_dir: Path,
    options: RunOptions,
    event_callback: EventCallback = None,
) -> RunStatistics:
    """批量处理入口：优化输入目录下的全部图片并镜像到输出目录。"""

    driver = PipelineDriver(input_dir, output_dir, options, event_callback=event_callback)
    return driver.run()
