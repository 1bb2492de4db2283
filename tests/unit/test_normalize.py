"""Unit tests for normalize utilities."""

from hashtag_index.core.normalize import (
    MARK_HASH,
    MARK_MENTION,
    is_valid_key,
    normalize_tag,
    tag_body,
    tag_sort_key,
)


class TestNormalizeTag:
    def test_lowercase_conversion(self) -> None:
        assert normalize_tag("Witch", MARK_HASH) == "#witch"
        assert normalize_tag("#HÄSCH1", MARK_HASH) == "#häsch1"

    def test_prefix_sigil_when_missing(self) -> None:
        assert normalize_tag("foo", MARK_HASH) == "#foo"
        assert normalize_tag("henry", MARK_MENTION) == "@henry"

    def test_keep_existing_sigil(self) -> None:
        assert normalize_tag("#foo", MARK_HASH) == "#foo"
        assert normalize_tag("@Henry", MARK_MENTION) == "@henry"

    def test_strip_whitespace(self) -> None:
        assert normalize_tag("  Foo  ", MARK_HASH) == "#foo"

    def test_empty_input(self) -> None:
        """空・空白のみの入力は空文字列になること."""
        assert normalize_tag("", MARK_HASH) == ""
        assert normalize_tag("   ", MARK_MENTION) == ""

    def test_reject_header_breaking_characters(self) -> None:
        """`]` や改行文字を含むタグは空文字列（登録不可）になること."""
        assert normalize_tag("foo]bar", MARK_HASH) == ""
        assert normalize_tag("foo\nbar", MARK_HASH) == ""
        assert normalize_tag("foo\rbar", MARK_MENTION) == ""
        assert normalize_tag("foo\u2028bar", MARK_HASH) == ""
        assert normalize_tag("foo[bar", MARK_HASH) == "#foo[bar"

    def test_other_sigil_is_prefixed(self) -> None:
        """別の記号で始まる入力は本体の一部として扱われること."""
        assert normalize_tag("@foo", MARK_HASH) == "#@foo"


class TestTagBody:
    def test_strip_sigil(self) -> None:
        assert tag_body("#foo") == "foo"
        assert tag_body("@foo") == "foo"

    def test_without_sigil(self) -> None:
        assert tag_body("foo") == "foo"
        assert tag_body("") == ""


class TestTagSortKey:
    def test_body_first(self) -> None:
        """記号ではなく本体で並ぶこと."""
        tags = ["@zeta", "#beta", "@alpha"]
        assert sorted(tags, key=tag_sort_key) == ["@alpha", "#beta", "@zeta"]

    def test_same_body_is_deterministic(self) -> None:
        assert sorted(["@foo", "#foo"], key=tag_sort_key) == ["#foo", "@foo"]


class TestIsValidKey:
    def test_valid(self) -> None:
        assert is_valid_key("#a") is True
        assert is_valid_key("@henry") is True

    def test_invalid(self) -> None:
        assert is_valid_key("") is False
        assert is_valid_key("#") is False
        assert is_valid_key("foo") is False
        assert is_valid_key("#a]b") is False
        assert is_valid_key("#a\nb") is False
