"""Tests for filing markup normalization and number parsing."""

from treasurylens.treasury.text import (
    normalize_html_text,
    parse_int,
    parse_number,
    parse_usd_amount,
)


class TestNormalizeHtmlText:
    def test_strips_tags_and_collapses_whitespace(self) -> None:
        html = "<div>\n  <p>Hello</p>\n\n<p>world</p>\t</div>"
        assert normalize_html_text(html) == "Hello world"

    def test_drops_script_and_style_blocks(self) -> None:
        html = (
            "<style>.a { color: red }</style>"
            "<script type='text/javascript'>var x = 'held 999 BTC';</script>"
            "<p>Visible</p>"
        )
        assert normalize_html_text(html) == "Visible"

    def test_decodes_currency_and_space_entities(self) -> None:
        html = "average&nbsp;price&#160;of&#xA0;&#36;36,821 &amp; &lt;more&gt; &quot;x&quot; &#39;y&#39;"
        assert normalize_html_text(html) == "average price of $36,821 & <more> \"x\" 'y'"

    def test_hex_dollar_entities(self) -> None:
        assert normalize_html_text("&#x24;1 &#x0024;2") == "$1 $2"

    def test_plain_text_passthrough(self) -> None:
        assert normalize_html_text("  plain   text  ") == "plain text"


class TestParseNumber:
    def test_thousands_separators(self) -> None:
        assert parse_number("36,821.50") == 36821.5

    def test_trailing_period(self) -> None:
        assert parse_number("7.53.") == 7.53

    def test_invalid(self) -> None:
        assert parse_number("") is None
        assert parse_number("1.2.3") is None


class TestParseInt:
    def test_thousands_separators(self) -> None:
        assert parse_int("252,220") == 252220

    def test_rejects_non_integers(self) -> None:
        assert parse_int("12.5") is None
        assert parse_int("") is None

    def test_rejects_overlong_digit_runs(self) -> None:
        assert parse_int("1" * 5000) is None
        assert parse_int("1" * 16) is None
        assert parse_int("1" * 15) == int("1" * 15)


class TestParseUsdAmount:
    def test_billion(self) -> None:
        assert parse_usd_amount("4.2", "billion") == 4_200_000_000

    def test_million_case_insensitive(self) -> None:
        assert parse_usd_amount("821.7", "Million") == 821_700_000

    def test_no_unit(self) -> None:
        assert parse_usd_amount("1,250,000", None) == 1_250_000

    def test_invalid_number(self) -> None:
        assert parse_usd_amount("n/a", "billion") is None
