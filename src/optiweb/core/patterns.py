"""忽略列表使用的 glob 匹配：支持 ``*``、``**``、``?``、``[...]`` 与 ``{a,b}``。

路径统一使用 ``/`` 分隔的相对路径，匹配区分大小写。``*`` 与 ``?`` 不跨越目录，
``**`` 匹配任意层级（包括零层）。
"""

from __future__ import annotations

import re
from functools import lru_cache
from typing import Iterable, Pattern


def expand_braces(pattern: str) -> list[str]:
    """展开花括号集合，例如 ``*.{jpg,png}`` -> ``["*.jpg", "*.png"]``。"""

    start = pattern.find("{")
    while start != -1:
        depth = 0
        options: list[str] = []
        piece_start = start + 1
        end = -1
        for idx in range(start, len(pattern)):
            ch = pattern[idx]
            if ch == "{":
                depth += 1
            elif ch == "}":
                depth -= 1
                if depth == 0:
                    options.append(pattern[piece_start:idx])
                    end = idx
                    break
            elif ch == "," and depth == 1:
                options.append(pattern[piece_start:idx])
                piece_start = idx + 1
        if end == -1:
            # 括号不配对，按字面量处理
            return [pattern]
        if len(options) > 1:
            prefix, suffix = pattern[:start], pattern[end + 1 :]
            expanded: list[str] = []
            for option in options:
                expanded.extend(expand_braces(prefix + option + suffix))
            return expanded
        start = pattern.find("{", end + 1)
    return [pattern]


def _translate(pattern: str) -> str:
    parts: list[str] = []
    i = 0
    length = len(pattern)
    while i < length:
        ch = pattern[i]
        if ch == "*":
            if pattern.startswith("**", i):
                at_segment_start = i == 0 or pattern[i - 1] == "/"
                if at_segment_start and pattern.startswith("**/", i):
                    parts.append("(?:.*/)?")
                    i += 3
                    continue
                if at_segment_start and i + 2 == length:
                    parts.append(".*")
                    i += 2
                    continue
            parts.append("[^/]*")
            while i < length and pattern[i] == "*":
                i += 1
            continue
        if ch == "?":
            parts.append("[^/]")
        elif ch == "[":
            close = pattern.find("]", i + 2 if pattern.startswith("[!", i) or pattern.startswith("[^", i) else i + 1)
            if close == -1:
                parts.append(re.escape(ch))
            else:
                body = pattern[i + 1 : close]
                if body[:1] in ("!", "^"):
                    body = "^" + body[1:]
                parts.append("[" + body.replace("\\", "\\\\") + "]")
                i = close + 1
                continue
        else:
            parts.append(re.escape(ch))
        i += 1
    return "".join(parts)


@lru_cache(maxsize=256)
def compile_pattern(pattern: str) -> Pattern[str]:
    alternatives = [_translate(expanded) for expanded in expand_braces(pattern)]
    return re.compile("(?:" + "|".join(alternatives) + r")\Z")


def match_any(path: str, patterns: Iterable[str]) -> bool:
    """判断相对路径是否命中任意一个模式。"""

    normalized = path.replace("\\", "/")
    return any(compile_pattern(pattern).match(normalized) for pattern in patterns)
