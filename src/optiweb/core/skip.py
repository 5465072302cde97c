"""跳过判定：忽略模式、已存在输出与 WebP 影子规则。"""

from __future__ import annotations

from typing import AbstractSet, Sequence

from optiweb.core.models import CandidateFile, SkipDecision
from optiweb.core.patterns import match_any


def classify(
    candidate: CandidateFile,
    webp_shadow_set: AbstractSet[str],
    ignore_patterns: Sequence[str],
    output_exists: bool,
) -> SkipDecision:
    """按固定优先级判定候选文件是否需要处理，先命中的规则生效。

    1. 相对路径命中忽略模式 -> ``IGNORED``
    2. 目标输出已存在（调用方仅在启用 skip-existing 时传入 True）-> ``EXISTING_SKIPPED``
    3. JPG/PNG 存在同名 .webp 文件 -> ``SHADOWED_BY_WEBP``
    4. 其他情况 -> ``PROCEED``
    """

    if ignore_patterns and match_any(candidate.posix_path, ignore_patterns):
        return SkipDecision.IGNORED
    if output_exists:
        return SkipDecision.EXISTING_SKIPPED
    if candidate.is_image and candidate.stem in webp_shadow_set:
        return SkipDecision.SHADOWED_BY_WEBP
    return SkipDecision.PROCEED
