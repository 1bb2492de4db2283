"""テキストからの #hashtag / @mention 抽出.

正規表現で候補を拾い、順序付きの除外ルール（述語）で誤検出を落とします。

除外ルール（評価順、どれか1つでも真なら候補を捨てる）:
    1. URL フラグメント: `#` の直後が `"` で、マッチ先頭が `"` でない（`page#frag"`）
    2. Markdown リンク末尾: 直後が `)`（`[text](url#frag)`）
    3. ハイフン終端: 候補がハイフンで終わる（`#-text-`）
    4. HTML 数値実体参照: `#<数字>;`（`&#39;`）
    5. ハイフン連続: `#` の本体に `--` を含む（`#----`, `#--text--`）
    6. メールアドレス: `@` の直後が `.`（`writer@example.com`）
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterator
from dataclasses import dataclass

from loguru import logger

from .normalize import MARK_HASH, MARK_MENTION, normalize_tag
from .tag_map import TagMap

# 先頭: 非単語文字（任意）/ 本体: 文字・数字・_ ・ - ・ ' ・ ’ ・ §  / 末尾: 非単語文字 or 行末
TAG_PATTERN = re.compile(
    r"(?P<lead>[^\w])?(?P<tag>[@#][\w'’§-]+)(?P<trail>[^\w]|$)",
    re.MULTILINE,
)
_ENTITY = re.compile(r"#\d+")


@dataclass(frozen=True, slots=True)
class TagCandidate:
    """正規表現でマッチしたタグ候補.

    Attributes:
        tag: 候補（末尾の `_` は除去済み、大文字小文字はそのまま）
        lead: 直前の1文字（無ければ空文字列）
        trail: 直後の1文字（行末なら空文字列）
    """

    tag: str
    lead: str = ""
    trail: str = ""

    @property
    def sigil(self) -> str:
        return self.tag[0]

    @property
    def body(self) -> str:
        return self.tag[1:]

    @property
    def is_hashtag(self) -> bool:
        return self.sigil == MARK_HASH

    @property
    def is_mention(self) -> bool:
        return self.sigil == MARK_MENTION


RejectRule = Callable[[TagCandidate], bool]


def rejects_url_fragment(c: TagCandidate) -> bool:
    return c.is_hashtag and c.trail == '"' and c.lead != '"'


def rejects_markdown_link_end(c: TagCandidate) -> bool:
    return c.trail == ")"


def rejects_hyphen_terminated(c: TagCandidate) -> bool:
    return c.trail == "-" or c.tag.endswith("-")


def rejects_html_entity(c: TagCandidate) -> bool:
    return c.trail == ";" and _ENTITY.fullmatch(c.tag) is not None


def rejects_hyphen_run(c: TagCandidate) -> bool:
    return c.is_hashtag and "--" in c.body


def rejects_email_fragment(c: TagCandidate) -> bool:
    return c.is_mention and c.trail == "."


REJECT_RULES: tuple[RejectRule, ...] = (
    rejects_url_fragment,
    rejects_markdown_link_end,
    rejects_hyphen_terminated,
    rejects_html_entity,
    rejects_hyphen_run,
    rejects_email_fragment,
)


def iter_candidates(text: str) -> Iterator[TagCandidate]:
    """テキスト中のタグ候補を出現順に返す（除外ルールは未適用）."""
    for m in TAG_PATTERN.finditer(text):
        tag = m.group("tag")
        # `_` はタグの一部にも斜体マークアップにもなり得るので末尾の1つは落とす
        if tag.endswith("_"):
            tag = tag[:-1]
        if len(tag) < 2:
            continue
        yield TagCandidate(tag=tag, lead=m.group("lead") or "", trail=m.group("trail"))


def first_rejecting_rule(candidate: TagCandidate) -> RejectRule | None:
    for rule in REJECT_RULES:
        if rule(candidate):
            return rule
    return None


def is_accepted(candidate: TagCandidate) -> bool:
    return first_rejecting_rule(candidate) is None


def extract_tags(text: str) -> list[str]:
    """採用されたタグを正規化して出現順（重複なし）で返す.

    Examples:
        >>> extract_tags("1blabla #HÄSCH1 blabla #hash3. Blabla")
        ['#häsch1', '#hash3']
    """
    result: list[str] = []
    for candidate in iter_candidates(text):
        if not is_accepted(candidate):
            continue
        tag = normalize_tag(candidate.tag, candidate.sigil)
        if tag not in result:
            result.append(tag)
    return result


def parse_text(tag_map: TagMap, id_: int, text: str) -> bool:
    """テキストから抽出したタグを `id_` に関連付ける.

    Args:
        tag_map: 追加先のマップ
        id_: ドキュメント ID
        text: 解析対象テキスト（空なら何もしない）

    Returns:
        新しい関連付けを1つでも作った場合 True
    """
    if not text:
        return False

    changed = False
    for candidate in iter_candidates(text):
        rule = first_rejecting_rule(candidate)
        if rule is not None:
            logger.debug(f"Rejected {candidate.tag!r} (id={id_}) by {rule.__name__}")
            continue
        if tag_map.insert(candidate.sigil, candidate.tag, id_):
            changed = True
    return changed
