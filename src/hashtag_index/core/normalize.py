"""タグ正規化（入力文字列 → インデックスのキー）.

`#hashtag` / `@mention` を、インデックスで扱う正規化済みキーに変換するための関数群です。

設計方針:
    - キーは小文字に統一する（大文字小文字の揺れは同一タグとして扱う）
    - 先頭の記号（sigil）は保持し、無ければ補う
    - 並び順は「記号を除いた本体」を第一キーにする（#foo と @foo が隣り合う）
"""

from __future__ import annotations

MARK_HASH = "#"
MARK_MENTION = "@"
SIGILS: tuple[str, ...] = (MARK_HASH, MARK_MENTION)


def _is_line_safe(s: str) -> bool:
    """`[tag]` 見出し1行に収まるか（`]` と改行文字を含まない）."""
    return "]" not in s and s.splitlines() == [s]


def normalize_tag(raw: str, sigil: str) -> str:
    """入力タグをインデックスのキーに変換する.

    Args:
        raw: 入力タグ（例: " Foo", "#Bar", "baz"）
        sigil: 先頭記号（`#` または `@`）

    Returns:
        正規化済みキー。前後空白を除いて空になる場合、
        または `]`・改行文字を含む場合（テキスト形式の見出しに書けない）は空文字列

    Examples:
        >>> normalize_tag(" Foo ", "#")
        '#foo'
        >>> normalize_tag("@Henry", "@")
        '@henry'
        >>> normalize_tag("   ", "#")
        ''
        >>> normalize_tag("foo]bar", "#")
        ''
    """
    s = raw.strip().lower()
    if not s or not _is_line_safe(s):
        return ""

    if s[0] != sigil:
        s = sigil + s
    return s


def tag_body(tag: str) -> str:
    """先頭記号を除いたタグ本体を返す."""
    if tag and tag[0] in SIGILS:
        return tag[1:]
    return tag


def tag_sort_key(tag: str) -> tuple[str, str]:
    """正規順（canonical order）用のソートキー.

    本体で比較し、`#foo` / `@foo` のような同一本体はタグ全体で決定的に並べる。
    """
    return (tag_body(tag), tag)


def is_valid_key(tag: str) -> bool:
    """インデックスのキーとして妥当か（空でなく記号で始まり、1行の見出しに書ける）."""
    return len(tag) > 1 and tag[0] in SIGILS and _is_line_safe(tag)
