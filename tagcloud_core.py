"""Core utilities for counting words and rendering the HTML tag cloud."""
from __future__ import annotations

import collections
import html
import io
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Counter, FrozenSet, Iterable, Iterator, List, Mapping, Optional, Sequence, TextIO, Tuple

import numpy as np

logger = logging.getLogger(__name__)

MIN_FONT_SIZE = 11
MAX_FONT_SIZE = 48

SEPARATOR_CHARS = "\t\n\r,:;.?!-—()[]{}'\"/*&$#@^_+=<>|`~\\ "
SEPARATORS: FrozenSet[str] = frozenset(SEPARATOR_CHARS)

STYLESHEET_URL = (
    "http://web.cse.ohio-state.edu/software/2231/web-sw2/assignments/"
    "projects/tag-cloud-generator/data/tagcloud.css"
)
LOCAL_STYLESHEET = "tagcloud.css"
DEFAULT_ENCODING = "utf-8"

EMPTY_WORDS_MESSAGE = "ERROR: EMPTY words"

WordEntry = Tuple[str, int]


class TagCloudError(Exception):
    """Base class for failures that end a tag cloud run."""


class InvalidWordCount(TagCloudError, ValueError):
    def __init__(self, n_words: object = None) -> None:
        super().__init__(EMPTY_WORDS_MESSAGE)
        self.n_words = n_words


class InputReadError(TagCloudError):
    def __init__(self, path: Path | str, cause: BaseException) -> None:
        super().__init__(f"ERROR: File not read - {cause}")
        self.path = path
        self.cause = cause


class OutputWriteError(TagCloudError):
    def __init__(self, path: Path | str, cause: BaseException) -> None:
        super().__init__(f"ERROR: File cannot be written - {cause}")
        self.path = path
        self.cause = cause


@dataclass
class TagCloudConfig:
    """Configuration for tag cloud generation."""

    separators: FrozenSet[str] = SEPARATORS
    min_font_size: int = MIN_FONT_SIZE
    max_font_size: int = MAX_FONT_SIZE
    encoding: str = DEFAULT_ENCODING
    stylesheet_url: str = STYLESHEET_URL
    local_stylesheet: str = LOCAL_STYLESHEET


@dataclass
class TagCloudResult:
    title: str
    n_words: int
    counts: Counter[str]
    words: List[WordEntry]
    sizes: List[int] = field(default_factory=list)
    html: str = ""

    def as_payload(self) -> List[dict]:
        return [
            {"text": word, "count": count, "size": size}
            for (word, count), size in zip(self.words, self.sizes)
        ]


def validate_word_count(n_words: object) -> int:
    """Return ``n_words`` as a positive int or raise :class:`InvalidWordCount`."""
    if isinstance(n_words, bool):
        raise InvalidWordCount(n_words)
    if isinstance(n_words, float) and not n_words.is_integer():
        raise InvalidWordCount(n_words)
    try:
        value = int(n_words)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        raise InvalidWordCount(n_words) from None
    if value <= 0:
        raise InvalidWordCount(n_words)
    return value


def next_word_or_separator(text: str, position: int, separators: FrozenSet[str] = SEPARATORS) -> str:
    """Return the maximal word or separator run of ``text`` starting at ``position``.

    The class of the run (separator or not) is decided by ``text[position]``.
    Raises ``IndexError`` when ``position`` is outside ``[0, len(text))``.
    """
    if not 0 <= position < len(text):
        raise IndexError(f"position {position} out of range for text of length {len(text)}")

    is_separator = text[position] in separators
    end = position + 1
    while end < len(text) and (text[end] in separators) == is_separator:
        end += 1
    return text[position:end]


def iter_tokens(text: str, separators: FrozenSet[str] = SEPARATORS) -> Iterator[str]:
    position = 0
    while position < len(text):
        token = next_word_or_separator(text, position, separators)
        yield token
        position += len(token)


def count_words(
    lines: Iterable[str],
    separators: FrozenSet[str] = SEPARATORS,
    counts: Optional[Counter[str]] = None,
) -> Counter[str]:
    """Fold every word of ``lines`` into a lowercase word -> count mapping."""
    if counts is None:
        counts = collections.Counter()
    for line in lines:
        for token in iter_tokens(line, separators):
            if token[0] not in separators:
                counts[token.lower()] += 1
    return counts


def strip_line_endings(lines: Iterable[str]) -> Iterator[str]:
    for line in lines:
        yield line.rstrip("\n")


def count_words_in_file(path: Path | str, *, config: TagCloudConfig) -> Counter[str]:
    target = Path(path)
    try:
        with target.open("r", encoding=config.encoding) as infile:
            counts = count_words(strip_line_endings(infile), config.separators)
    except (OSError, UnicodeDecodeError, LookupError) as exc:
        raise InputReadError(target, exc) from exc
    logger.debug("Counted %d distinct words in %s", len(counts), target)
    return counts


def select_top_words(counts: Mapping[str, int], n_words: int) -> List[WordEntry]:
    """Pick the ``n_words`` most frequent words and return them alphabetically.

    Equal counts are broken alphabetically so the cut at the N-th entry is
    deterministic. Truncation happens on count order, before the alphabetical
    re-sort.
    """
    if n_words <= 0:
        raise InvalidWordCount(n_words)
    by_count = sorted(counts.items(), key=lambda pair: (-pair[1], pair[0].lower(), pair[0]))
    selected = by_count[:n_words]
    selected.sort(key=lambda pair: pair[0].lower())
    return selected


def _round_half_up(value: float) -> int:
    return int(np.floor(value + 0.5))


def compute_font_size(
    count: int,
    min_count: int,
    max_count: int,
    *,
    min_font: int = MIN_FONT_SIZE,
    max_font: int = MAX_FONT_SIZE,
) -> int:
    if max_count == min_count:
        return (min_font + max_font) // 2
    scale = (count - min_count) / (max_count - min_count)
    return min_font + _round_half_up(scale * (max_font - min_font))


def compute_font_sizes(
    counts: Sequence[int],
    *,
    min_font: int = MIN_FONT_SIZE,
    max_font: int = MAX_FONT_SIZE,
) -> np.ndarray:
    """Vectorised :func:`compute_font_size` over a whole selection."""
    values = np.asarray(counts, dtype=np.float64)
    if values.size == 0:
        return np.zeros(0, dtype=int)
    low = values.min()
    high = values.max()
    if low == high:
        return np.full(values.size, (min_font + max_font) // 2, dtype=int)
    scale = (values - low) / (high - low)
    return min_font + np.floor(scale * (max_font - min_font) + 0.5).astype(int)


def page_title(input_path: Path | str, n_words: int) -> str:
    return f"Top {n_words} Words in {input_path}"


def render_header(input_path: Path | str, n_words: int, *, config: TagCloudConfig) -> str:
    title = html.escape(page_title(input_path, n_words), quote=False)
    lines = [
        "<html>",
        "<head>",
        '<meta charset="utf-8" />',
        f"<title>{title}</title>",
        f'<link href="{config.stylesheet_url}" rel="stylesheet" type="text/css">',
        f'<link href="{config.local_stylesheet}" rel="stylesheet" type="text/css">',
        "</head>",
        "<body>",
        f"<h2>{title}</h2>",
        "<hr>",
        '<div class="cdiv">',
        '<p class="cbox">',
    ]
    return "\n".join(lines) + "\n"


def render_tag_cloud(words: Sequence[WordEntry], sizes: Sequence[int]) -> str:
    spans = [
        f'<span style="cursor:default" class="f{size}" title="count: {count}">{word}</span>\n'
        for (word, count), size in zip(words, sizes)
    ]
    return "".join(spans)


def render_footer() -> str:
    return "</p>\n</div>\n</body>\n</html>\n"


def render_html(
    input_path: Path | str,
    n_words: int,
    words: Sequence[WordEntry],
    *,
    config: Optional[TagCloudConfig] = None,
    sizes: Optional[Sequence[int]] = None,
) -> str:
    config = config or TagCloudConfig()
    if sizes is None:
        sizes = compute_font_sizes(
            [count for _, count in words],
            min_font=config.min_font_size,
            max_font=config.max_font_size,
        ).tolist()
    return render_header(input_path, n_words, config=config) + render_tag_cloud(words, sizes) + render_footer()


def write_index_page(
    out: TextIO,
    input_path: Path | str,
    n_words: int,
    words: Sequence[WordEntry],
    *,
    config: Optional[TagCloudConfig] = None,
) -> None:
    out.write(render_html(input_path, n_words, words, config=config))


def render_stylesheet(min_font: int = MIN_FONT_SIZE, max_font: int = MAX_FONT_SIZE) -> str:
    rules = [
        ".cdiv { width: 80%; margin: 0 auto; }",
        ".cbox { line-height: 1.6; text-align: center; }",
        ".cbox span { margin: 0 6px; white-space: nowrap; }",
    ]
    rules.extend(f".f{size} {{ font-size: {size}px; }}" for size in range(min_font, max_font + 1))
    return "\n".join(rules) + "\n"


def build_result(
    counts: Counter[str],
    title_path: Path | str,
    n_words: int,
    *,
    config: TagCloudConfig,
) -> TagCloudResult:
    words = select_top_words(counts, n_words)
    sizes = compute_font_sizes(
        [count for _, count in words],
        min_font=config.min_font_size,
        max_font=config.max_font_size,
    ).tolist()
    logger.debug("Selected %d of %d distinct words", len(words), len(counts))
    return TagCloudResult(
        title=page_title(title_path, n_words),
        n_words=n_words,
        counts=counts,
        words=words,
        sizes=sizes,
        html=render_html(title_path, n_words, words, config=config, sizes=sizes),
    )


def generate_tag_cloud_from_text(
    text: str,
    n_words: int,
    *,
    title_path: Path | str = "<text>",
    config: Optional[TagCloudConfig] = None,
) -> TagCloudResult:
    config = config or TagCloudConfig()
    n_words = validate_word_count(n_words)
    lines = strip_line_endings(io.StringIO(text, newline=None))
    counts = count_words(lines, config.separators)
    return build_result(counts, title_path, n_words, config=config)


def generate_tag_cloud(
    path: Path | str,
    n_words: int,
    *,
    title_path: Optional[Path | str] = None,
    config: Optional[TagCloudConfig] = None,
) -> TagCloudResult:
    config = config or TagCloudConfig()
    n_words = validate_word_count(n_words)
    counts = count_words_in_file(path, config=config)
    return build_result(counts, path if title_path is None else title_path, n_words, config=config)


def write_tag_cloud(result: TagCloudResult, output_path: Path | str) -> Path:
    target = Path(output_path)
    try:
        with target.open("w", encoding="utf-8") as outfile:
            outfile.write(result.html)
    except OSError as exc:
        raise OutputWriteError(target, exc) from exc
    logger.debug("Wrote tag cloud with %d words to %s", len(result.words), target)
    return target


def write_stylesheet(directory: Path | str, *, config: TagCloudConfig) -> Path:
    target = Path(directory) / config.local_stylesheet
    try:
        target.write_text(render_stylesheet(config.min_font_size, config.max_font_size), encoding="utf-8")
    except OSError as exc:
        raise OutputWriteError(target, exc) from exc
    return target
