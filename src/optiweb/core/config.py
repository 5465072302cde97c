"""处理任务的配置模型与参数解析。"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Optional, Sequence, Tuple, Union

from optiweb.core.exceptions import InvalidConfigurationError

FitMode = str  # cover | contain | fill | inside | outside

VALID_FIT_MODES = ("cover", "contain", "fill", "inside", "outside")
WIDTH_TOKEN = "{width}"
DEFAULT_QUALITY = 85
DEFAULT_SUFFIX_PATTERN = "-{width}"

_DIMENSIONS_RE = re.compile(r"^\s*(\d+)\s*[xX]\s*(\d+)\s*$")


def _check_fit_mode(mode: str) -> None:
    if mode not in VALID_FIT_MODES:
        raise InvalidConfigurationError(f"未知的尺寸模式: {mode}（可选 {', '.join(VALID_FIT_MODES)}）")


def _check_quality(name: str, value: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= 100:
        raise InvalidConfigurationError(f"{name} 必须是 0-100 之间的整数: {value!r}")


@dataclass(slots=True, frozen=True)
class FixedSize:
    """固定宽高缩放。"""

    width: int
    height: int
    mode: FitMode = "cover"

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise InvalidConfigurationError(f"缩放尺寸必须大于 0: {self.width}x{self.height}")
        _check_fit_mode(self.mode)


@dataclass(slots=True, frozen=True)
class MaxBound:
    """按最大宽/高等比例缩小，不放大。"""

    max_width: Optional[int] = None
    max_height: Optional[int] = None

    def __post_init__(self) -> None:
        if self.max_width is None and self.max_height is None:
            raise InvalidConfigurationError("最大宽度与最大高度至少需要指定一个")
        for name, value in (("最大宽度", self.max_width), ("最大高度", self.max_height)):
            if value is not None and value <= 0:
                raise InvalidConfigurationError(f"{name}必须为正整数: {value}")


@dataclass(slots=True, frozen=True)
class MultiSize:
    """多尺寸输出：每个宽度生成一个文件。"""

    sizes: Tuple[int, ...]
    suffix_pattern: str = DEFAULT_SUFFIX_PATTERN
    mode: FitMode = "cover"

    def __post_init__(self) -> None:
        object.__setattr__(self, "sizes", tuple(self.sizes))
        if not self.sizes:
            raise InvalidConfigurationError("多尺寸列表不能为空")
        for size in self.sizes:
            if size <= 0:
                raise InvalidConfigurationError(f"无效的尺寸值: {size}")
        if len(set(self.sizes)) != len(self.sizes):
            raise InvalidConfigurationError(f"多尺寸列表存在重复值: {list(self.sizes)}")
        # 缺少占位符时所有尺寸会写到同一个文件名。
        if WIDTH_TOKEN not in self.suffix_pattern:
            raise InvalidConfigurationError(f"后缀模式必须包含 {WIDTH_TOKEN}: {self.suffix_pattern!r}")
        _check_fit_mode(self.mode)


ResizeSpec = Union[FixedSize, MaxBound, MultiSize]


@dataclass(slots=True, frozen=True)
class RunOptions:
    """单次运行的全部选项，构造时完成校验，之后只读。"""

    convert_webp: bool = False
    jpg_quality: int = DEFAULT_QUALITY
    png_quality: int = DEFAULT_QUALITY
    webp_lossless: bool = False
    webp_near_lossless: bool = False
    skip_existing: bool = False
    verbose: bool = False
    slug: bool = False
    only_resize: bool = False
    ignore_patterns: Tuple[str, ...] = field(default_factory=tuple)
    resize: Optional[ResizeSpec] = None

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        """校验选项组合，不合法时抛出 InvalidConfigurationError。"""

        _check_quality("JPG 质量", self.jpg_quality)
        _check_quality("PNG 质量", self.png_quality)
        if self.resize is not None and not isinstance(self.resize, (FixedSize, MaxBound, MultiSize)):
            raise InvalidConfigurationError(f"未知的缩放配置: {self.resize!r}")
        if isinstance(self.ignore_patterns, str):
            raise InvalidConfigurationError("ignore_patterns 必须是模式序列而不是字符串")
        object.__setattr__(self, "ignore_patterns", tuple(self.ignore_patterns))


def split_patterns(value: Optional[str]) -> Tuple[str, ...]:
    """按逗号拆分 glob 模式列表，花括号内部的逗号不作为分隔符。"""

    if not value:
        return ()

    patterns: list[str] = []
    depth = 0
    current: list[str] = []
    for ch in value:
        if ch == "{":
            depth += 1
        elif ch == "}" and depth > 0:
            depth -= 1
        elif ch == "," and depth == 0:
            patterns.append("".join(current))
            current = []
            continue
        current.append(ch)
    patterns.append("".join(current))
    return tuple(p.strip() for p in patterns if p.strip())


def parse_dimensions(value: str) -> Tuple[int, int]:
    """解析 ``WIDTHxHEIGHT`` 形式的尺寸字符串。"""

    match = _DIMENSIONS_RE.match(value or "")
    if not match:
        raise InvalidConfigurationError(f"尺寸格式无效: {value!r}，正确格式为 WIDTHxHEIGHT（例如 800x600）")
    return int(match.group(1)), int(match.group(2))


def parse_sizes(value: str) -> Tuple[int, ...]:
    """解析逗号分隔的宽度列表，保持声明顺序并去除重复值。"""

    sizes: list[int] = []
    for part in value.split(","):
        text = part.strip()
        try:
            size = int(text)
        except ValueError as exc:
            raise InvalidConfigurationError(f"无效的尺寸值: {text!r}") from exc
        if size <= 0:
            raise InvalidConfigurationError(f"无效的尺寸值: {text!r}")
        if size not in sizes:
            sizes.append(size)
    return tuple(sizes)


def build_resize_spec(
    *,
    sizes: Optional[str] = None,
    resize: Optional[str] = None,
    max_width: Optional[int] = None,
    max_height: Optional[int] = None,
    mode: FitMode = "cover",
    suffix_pattern: str = DEFAULT_SUFFIX_PATTERN,
) -> Optional[ResizeSpec]:
    """根据命令行参数构造缩放配置。

    同时给出多个缩放参数时只生效一个，优先级为
    ``sizes`` > ``resize`` > ``max_width``/``max_height``。
    """

    if sizes:
        return MultiSize(sizes=parse_sizes(sizes), suffix_pattern=suffix_pattern, mode=mode)
    if resize:
        width, height = parse_dimensions(resize)
        return FixedSize(width=width, height=height, mode=mode)
    if max_width is not None or max_height is not None:
        return MaxBound(max_width=max_width, max_height=max_height)
    return None


def build_run_options(
    *,
    quality: int = DEFAULT_QUALITY,
    jpg_quality: Optional[int] = None,
    png_quality: Optional[int] = None,
    ignore: Optional[str] = None,
    ignore_patterns: Sequence[str] = (),
    **kwargs,
) -> RunOptions:
    """构造 RunOptions；未单独指定的 JPG/PNG 质量沿用通用质量。"""

    _check_quality("通用质量", quality)
    patterns = tuple(ignore_patterns) + split_patterns(ignore)
    return RunOptions(
        jpg_quality=quality if jpg_quality is None else jpg_quality,
        png_quality=quality if png_quality is None else png_quality,
        ignore_patterns=patterns,
        **kwargs,
    )
