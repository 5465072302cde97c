"""命名规则与忽略模式匹配测试。"""

from __future__ import annotations

from pathlib import Path

import pytest

from optiweb.core.config import MultiSize, RunOptions
from optiweb.core.naming import apply_suffix, destination_paths, output_extension, slugify
from optiweb.core.patterns import expand_braces, match_any


@pytest.mark.parametrize(
    ("filename", "expected"),
    [
        ("My Photo.PNG", "my-photo.PNG"),
        ("Hello   World!!.jpg", "hello-world.jpg"),
        ("--Já vu--.png", "j-vu.png"),
        ("already-slug.webp", "already-slug.webp"),
        ("README", "readme"),
        ("a - b.txt", "a-b.txt"),
        ("snake_case Name.jpeg", "snake_case-name.jpeg"),
    ],
)
def test_slugify_examples(filename: str, expected: str) -> None:
    assert slugify(filename) == expected


@pytest.mark.parametrize(
    "filename",
    ["My Photo.PNG", "  spaced  out .jpg", "x. Y", "#$%.png", "Ünïcödé Fïlé.gif", "a.b.c d.tar.gz", "-a-", ""],
)
def test_slugify_is_idempotent(filename: str) -> None:
    once = slugify(filename)
    assert slugify(once) == once


def test_slugify_keeps_extension_untouched() -> None:
    result = slugify("Summer Trip.JPEG")
    assert result.endswith(".JPEG")
    assert result == "summer-trip.JPEG"


def test_apply_suffix_substitutes_width_once() -> None:
    assert apply_suffix("hero", "-{width}", 400) == "hero-400"
    assert apply_suffix("hero", "@{width}w", 800) == "hero@800w"


def test_output_extension() -> None:
    assert output_extension(".png", True) == ".webp"
    assert output_extension(".JPG", False) == ".JPG"


def test_destination_paths_for_multi_size_keep_declared_order() -> None:
    options = RunOptions(resize=MultiSize(sizes=(200, 400, 800)))
    paths = destination_paths(Path("img/hero.png"), options)
    assert [p.as_posix() for p in paths] == ["img/hero-200.png", "img/hero-400.png", "img/hero-800.png"]

    webp_options = RunOptions(convert_webp=True, resize=MultiSize(sizes=(200, 400, 800)))
    webp_paths = destination_paths(Path("hero.png"), webp_options)
    assert [p.name for p in webp_paths] == ["hero-200.webp", "hero-400.webp", "hero-800.webp"]


def test_destination_paths_slug_only_renames_file_name() -> None:
    options = RunOptions(slug=True, convert_webp=True)
    assert destination_paths(Path("My Dir/Team Photo.jpg"), options) == [Path("My Dir/team-photo.webp")]
    # 非图片文件同样 slug，但扩展名不变
    assert destination_paths(Path("Docs/Read Me.TXT"), options) == [Path("Docs/read-me.TXT")]


def test_expand_braces() -> None:
    assert expand_braces("*.{jpg,png}") == ["*.jpg", "*.png"]
    assert expand_braces("{a,{b,c}}/x") == ["a/x", "b/x", "c/x"]
    assert expand_braces("name-{width}") == ["name-{width}"]
    assert expand_braces("broken{a,b") == ["broken{a,b"]


@pytest.mark.parametrize(
    ("path", "pattern", "expected"),
    [
        ("a.png", "*.png", True),
        ("sub/a.png", "*.png", False),
        ("sub/a.png", "**/*.png", True),
        ("a.png", "**/*.png", True),
        ("drafts/x/y/z.jpg", "drafts/**", True),
        ("drafts.jpg", "drafts/**", False),
        ("a/b/c.txt", "a/**/c.txt", True),
        ("a/c.txt", "a/**/c.txt", True),
        ("img1.jpg", "img?.jpg", True),
        ("img10.jpg", "img?.jpg", False),
        ("logo.svg", "*.{svg,ico}", True),
        ("Logo.PNG", "*.png", False),
        ("x1.png", "x[0-9].png", True),
        ("xa.png", "x[!0-9].png", True),
    ],
)
def test_match_any_glob_semantics(path: str, pattern: str, expected: bool) -> None:
    assert match_any(path, [pattern]) is expected


def test_match_any_with_no_patterns() -> None:
    assert match_any("anything.png", []) is False
