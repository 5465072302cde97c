"""尺寸调整：固定尺寸的五种适配模式、最大边界缩小与按宽度缩放。"""

from __future__ import annotations

from PIL import Image, ImageOps

from optiweb.core.config import FixedSize, MaxBound, ResizeSpec
from optiweb.core.exceptions import InvalidConfigurationError, PerFileError

_RESAMPLING = getattr(Image, "Resampling", Image)


class ImageProcessingError(PerFileError):
    """缩放或编码过程失败。"""


def _scaled(size: tuple[int, int], scale: float) -> tuple[int, int]:
    width, height = size
    return max(1, round(width * scale)), max(1, round(height * scale))


def fixed_size_dimensions(source: tuple[int, int], spec: FixedSize) -> tuple[int, int]:
    """计算固定尺寸模式下缩放后的图像尺寸（contain/cover 为补边/裁剪前的尺寸）。"""

    width, height = source
    scale_w = spec.width / width
    scale_h = spec.height / height
    if spec.mode == "fill":
        return spec.width, spec.height
    if spec.mode in ("cover", "outside"):
        return _scaled(source, max(scale_w, scale_h))
    if spec.mode in ("contain", "inside"):
        return _scaled(source, min(scale_w, scale_h))
    raise InvalidConfigurationError(f"未知的尺寸模式: {spec.mode}")


def max_bound_dimensions(source: tuple[int, int], spec: MaxBound) -> tuple[int, int]:
    """等比例缩小到最大边界以内，不放大。"""

    scales = [1.0]
    if spec.max_width is not None:
        scales.append(spec.max_width / source[0])
    if spec.max_height is not None:
        scales.append(spec.max_height / source[1])
    scale = min(scales)
    if scale >= 1.0:
        return source
    return _scaled(source, scale)


def width_dimensions(source: tuple[int, int], width: int) -> tuple[int, int]:
    """按目标宽度等比例缩放，宽度不超过原图。"""

    if width >= source[0]:
        return source
    return _scaled(source, width / source[0])


def _resample(image: Image.Image, size: tuple[int, int]) -> Image.Image:
    if image.size == size:
        return image.copy()
    return image.resize(size, _RESAMPLING.LANCZOS)


def _apply_fixed(image: Image.Image, spec: FixedSize) -> Image.Image:
    target = (spec.width, spec.height)
    if spec.mode == "cover":
        return ImageOps.fit(image, target, _RESAMPLING.LANCZOS, centering=(0.5, 0.5))

    resized = _resample(image, fixed_size_dimensions(image.size, spec))
    if spec.mode != "contain" or resized.size == target:
        return resized

    # contain：居中放置在黑色画布上
    canvas_mode = "RGBA" if "A" in resized.getbands() else "RGB"
    if resized.mode != canvas_mode:
        resized = resized.convert(canvas_mode)
    fill = (0, 0, 0, 255) if canvas_mode == "RGBA" else (0, 0, 0)
    canvas = Image.new(canvas_mode, target, fill)
    offset = ((target[0] - resized.width) // 2, (target[1] - resized.height) // 2)
    canvas.paste(resized, offset)
    return canvas


def resize_image(image: Image.Image, spec: ResizeSpec) -> Image.Image:
    """按缩放配置返回新的图像，不修改传入的图像。"""

    try:
        if isinstance(spec, FixedSize):
            return _apply_fixed(image, spec)
        if isinstance(spec, MaxBound):
            return _resample(image, max_bound_dimensions(image.size, spec))
    except (OSError, ValueError) as exc:
        raise ImageProcessingError(f"缩放失败: {exc}") from exc
    raise InvalidConfigurationError(f"不支持的缩放配置: {spec!r}")


def resize_to_width(image: Image.Image, width: int) -> Image.Image:
    """多尺寸输出：按宽度等比例缩放，不放大。"""

    try:
        return _resample(image, width_dimensions(image.size, width))
    except (OSError, ValueError) as exc:
        raise ImageProcessingError(f"缩放到宽度 {width} 失败: {exc}") from exc
