import unittest

from sgmlish import Fragment, MarkedSection, MarkedSectionKind, StartTag, Text, parse, to_sgml
from sgmlish.serialize import serialize_start_tag


class TestSerialize(unittest.TestCase):
    def test_str_renders_markup(self):
        source = '<A b c="x">1 &#60; 2</A>'
        assert str(parse(source)) == source

    def test_plain_text_escapes_ampersands(self):
        assert to_sgml(parse("a & b")) == "a &#38; b"

    def test_rcdata_is_written_as_is(self):
        assert str(parse("x &amp; y &#38; z")) == "x &amp; y &#38; z"

    def test_attribute_quote_choice(self):
        assert serialize_start_tag("A", [("t", 'say "hi"')]) == "<A t='say \"hi\"'>"
        assert serialize_start_tag("A", [("t", "both \"'")]) == '<A t="both &#34;\'">'

    def test_marked_sections_and_declarations(self):
        source = "<!DOCTYPE x><![CDATA[<raw>]]><?pi?>"
        assert str(parse(source)) == source

    def test_reparse_gives_same_fragment(self):
        fragments = [
            parse('<A t="&lt;" u=a&b v=\'"\'>x &amp; < y</A>'),
            Fragment([StartTag("A", (("t", "1 & 2"),)), Text("<&>"), MarkedSection(MarkedSectionKind.RCDATA, "&x;")]),
        ]
        for fragment in fragments:
            assert parse(str(fragment)) == fragment
