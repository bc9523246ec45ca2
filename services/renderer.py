"""Minimal Markdown/MDX preview renderer.

Two passes: parse_blocks() classifies lines into block nodes (headings, list
items grouped into lists, fenced code, blockquotes, tables, plain lines) and
tokenize_inline() splits text into span nodes. to_html() emits the fragment.

Prose is emitted unescaped, so raw HTML in a post body (including <script>)
reaches the preview as-is. Only code content is escaped.
"""

import html
import re
from dataclasses import dataclass, field

# ── Node types ───────────────────────────────────────────────────────────────


@dataclass
class Text:
    value: str


@dataclass
class InlineCode:
    value: str


@dataclass
class Image:
    alt: str
    src: str


@dataclass
class Link:
    href: str
    children: list = field(default_factory=list)


@dataclass
class Strong:
    children: list = field(default_factory=list)


@dataclass
class Emphasis:
    children: list = field(default_factory=list)


@dataclass
class Heading:
    level: int
    children: list = field(default_factory=list)


@dataclass
class ListBlock:
    ordered: bool
    items: list = field(default_factory=list)  # list of inline-node lists


@dataclass
class CodeBlock:
    code: str
    language: str = ""


@dataclass
class Blockquote:
    children: list = field(default_factory=list)


@dataclass
class Table:
    header: list | None = None  # list of cells, each an inline-node list
    rows: list = field(default_factory=list)


@dataclass
class Line:
    children: list = field(default_factory=list)


# ── Inline tokenizer ─────────────────────────────────────────────────────────

# Alternation order is precedence: code spans, images, links, bold, italic.
_INLINE_RE = re.compile(
    r"`(?P<code>[^`]+)`"
    r"|!\[(?P<alt>[^\]]*)\]\((?P<src>[^)\s]+)\)"
    r"|\[(?P<text>[^\]]+)\]\((?P<href>[^)\s]+)\)"
    r"|\*\*(?P<strong>.+?)\*\*"
    r"|\*(?P<em>[^*\s](?:[^*]*[^*\s])?)\*"
)


def tokenize_inline(text: str) -> list:
    """Split a line of text into inline nodes."""
    nodes = []
    pos = 0
    for m in _INLINE_RE.finditer(text):
        if m.start() > pos:
            nodes.append(Text(text[pos : m.start()]))
        if m.group("code") is not None:
            nodes.append(InlineCode(m.group("code")))
        elif m.group("src") is not None:
            nodes.append(Image(alt=m.group("alt"), src=m.group("src")))
        elif m.group("href") is not None:
            nodes.append(Link(href=m.group("href"), children=tokenize_inline(m.group("text"))))
        elif m.group("strong") is not None:
            nodes.append(Strong(tokenize_inline(m.group("strong"))))
        else:
            nodes.append(Emphasis(tokenize_inline(m.group("em"))))
        pos = m.end()
    if pos < len(text):
        nodes.append(Text(text[pos:]))
    return nodes


# ── Block parser ─────────────────────────────────────────────────────────────

_HEADING_RE = re.compile(r"^(#{1,3}) (.*)$")
_UL_RE = re.compile(r"^[*-] (.*)$")
_OL_RE = re.compile(r"^\d+\. (.*)$")
_QUOTE_RE = re.compile(r"^> ?(.*)$")
_FENCE_RE = re.compile(r"^```\s*([\w+-]*)\s*$")
_SEPARATOR_CELL_RE = re.compile(r"^:?-{3,}:?$")


def _split_row(line: str) -> list[str]:
    cells = line.strip()
    if cells.startswith("|"):
        cells = cells[1:]
    if cells.endswith("|"):
        cells = cells[:-1]
    return [c.strip() for c in cells.split("|")]


def _is_pipe_row(line: str) -> bool:
    return line.strip().startswith("|") and line.count("|") >= 2


def _is_separator(cells: list[str]) -> bool:
    return bool(cells) and all(_SEPARATOR_CELL_RE.match(c) for c in cells)


def _parse_tables(rows: list[list[str]]) -> list[Table]:
    """Group a run of pipe rows into tables; a separator promotes the row above it."""
    tables = []
    current = None
    for i, cells in enumerate(rows):
        if _is_separator(cells):
            if i == 0:
                continue
            header = rows[i - 1]
            if current is not None and current.rows and current.rows[-1] is header:
                current.rows.pop()
                if current.rows or current.header is not None:
                    tables.append(current)
            current = Table(header=header)
            continue
        if current is None:
            current = Table()
        current.rows.append(cells)
    if current is not None and (current.rows or current.header is not None):
        tables.append(current)

    for table in tables:
        if table.header is not None:
            table.header = [tokenize_inline(c) for c in table.header]
        table.rows = [[tokenize_inline(c) for c in row] for row in table.rows]
    return tables


def parse_blocks(body: str) -> list:
    """Classify the body line by line into block nodes."""
    lines = body.split("\n")
    blocks = []
    i = 0
    while i < len(lines):
        line = lines[i]

        fence = _FENCE_RE.match(line)
        if fence:
            code_lines = []
            i += 1
            while i < len(lines) and lines[i].strip() != "```":
                code_lines.append(lines[i])
                i += 1
            blocks.append(CodeBlock(code="\n".join(code_lines), language=fence.group(1)))
            i += 1  # closing fence (or past the end when unclosed)
            continue

        if _is_pipe_row(line):
            rows = []
            while i < len(lines) and _is_pipe_row(lines[i]):
                rows.append(_split_row(lines[i]))
                i += 1
            blocks.extend(_parse_tables(rows))
            continue

        heading = _HEADING_RE.match(line)
        if heading:
            blocks.append(Heading(len(heading.group(1)), tokenize_inline(heading.group(2))))
            i += 1
            continue

        ul = _UL_RE.match(line)
        ol = _OL_RE.match(line)
        if ul or ol:
            ordered = ol is not None
            item = (ol or ul).group(1)
            if blocks and isinstance(blocks[-1], ListBlock) and blocks[-1].ordered == ordered:
                blocks[-1].items.append(tokenize_inline(item))
            else:
                blocks.append(ListBlock(ordered=ordered, items=[tokenize_inline(item)]))
            i += 1
            continue

        quote = _QUOTE_RE.match(line)
        if quote:
            blocks.append(Blockquote(tokenize_inline(quote.group(1))))
            i += 1
            continue

        blocks.append(Line(tokenize_inline(line)))
        i += 1
    return blocks


# ── HTML emission ────────────────────────────────────────────────────────────


def _inline_html(nodes: list) -> str:
    out = []
    for node in nodes:
        if isinstance(node, Text):
            out.append(node.value)
        elif isinstance(node, InlineCode):
            out.append(f"<code>{html.escape(node.value)}</code>")
        elif isinstance(node, Image):
            out.append(f'<img src="{node.src}" alt="{node.alt}" />')
        elif isinstance(node, Link):
            out.append(f'<a href="{node.href}">{_inline_html(node.children)}</a>')
        elif isinstance(node, Strong):
            out.append(f"<strong>{_inline_html(node.children)}</strong>")
        elif isinstance(node, Emphasis):
            out.append(f"<em>{_inline_html(node.children)}</em>")
    return "".join(out)


def _table_html(table: Table) -> str:
    parts = ["<table>"]
    if table.header is not None:
        cells = "".join(f"<th>{_inline_html(c)}</th>" for c in table.header)
        parts.append(f"<thead><tr>{cells}</tr></thead>")
    if table.rows:
        parts.append("<tbody>")
        for row in table.rows:
            cells = "".join(f"<td>{_inline_html(c)}</td>" for c in row)
            parts.append(f"<tr>{cells}</tr>")
        parts.append("</tbody>")
    parts.append("</table>")
    return "".join(parts)


def to_html(blocks: list) -> str:
    out = []
    for block in blocks:
        if isinstance(block, Heading):
            out.append(f"<h{block.level}>{_inline_html(block.children)}</h{block.level}>")
        elif isinstance(block, ListBlock):
            tag = "ol" if block.ordered else "ul"
            items = "".join(f"<li>{_inline_html(item)}</li>" for item in block.items)
            out.append(f"<{tag}>{items}</{tag}>")
        elif isinstance(block, CodeBlock):
            cls = f' class="language-{block.language}"' if block.language else ""
            out.append(f"<pre><code{cls}>{html.escape(block.code)}</code></pre>")
        elif isinstance(block, Blockquote):
            out.append(f"<blockquote>{_inline_html(block.children)}</blockquote>")
        elif isinstance(block, Table):
            out.append(_table_html(block))
        elif isinstance(block, Line):
            out.append(_inline_html(block.children))
    return "\n".join(out)


def render(body: str) -> str:
    """Markdown/MDX body to an HTML fragment for the preview pane."""
    return to_html(parse_blocks(body))
