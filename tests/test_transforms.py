import unittest

from sgmlish import (
    DuplicateAttributeError,
    EndTag,
    Fragment,
    MarkedSection,
    MarkedSectionKind,
    MarkupDeclaration,
    ParserConfig,
    ProcessingInstruction,
    StartTag,
    Text,
    TokenizationError,
    TransformError,
    UnexpectedEndOfInputError,
    UnknownEntityError,
    UnmatchedEndTagError,
    apply_transforms,
    expand_entities,
    expand_marked_sections,
    lowercase_identifiers,
    normalize_end_tags,
    parse,
    trim_spaces,
    uppercase_identifiers,
)
from sgmlish.transforms import reindent


class TestTrimSpaces(unittest.TestCase):
    def test_whitespace_between_tags_is_removed(self):
        fragment = parse("<A>\n  <B> hi </B>\n</A>\n")
        assert trim_spaces(fragment) == [
            StartTag("A"),
            StartTag("B"),
            Text("hi"),
            EndTag("B"),
            EndTag("A"),
        ]

    def test_inner_whitespace_is_kept(self):
        fragment = parse("<A>hello world</A>")
        assert trim_spaces(fragment) is fragment

    def test_only_sides_touching_tags_are_trimmed(self):
        fragment = Fragment([StartTag("A"), Text(" x "), MarkupDeclaration("<!X>"), Text(" y "), EndTag("A")])
        assert trim_spaces(fragment) == [
            StartTag("A"),
            Text("x "),
            MarkupDeclaration("<!X>"),
            Text(" y"),
            EndTag("A"),
        ]

    def test_marked_sections_are_untouched(self):
        fragment = parse("<A> <![CDATA[ x ]]> </A>")
        assert trim_spaces(fragment) == [
            StartTag("A"),
            MarkedSection(MarkedSectionKind.CDATA, " x "),
            EndTag("A"),
        ]

    def test_rcdata_flag_survives(self):
        fragment = parse("<A> &amp; </A>")
        assert trim_spaces(fragment) == [StartTag("A"), Text("&amp;", rcdata=True), EndTag("A")]

    def test_input_is_not_modified(self):
        fragment = parse("<A> x </A>")
        trim_spaces(fragment)
        assert fragment[1] == Text(" x ")


class TestLowercaseIdentifiers(unittest.TestCase):
    def test_lowercases_tags_and_attributes(self):
        fragment = parse('<A HREF="X" t="&Amp;">Text</A>')
        assert lowercase_identifiers(fragment) == [
            StartTag("a", (("href", "X"), ("t", "&Amp;")), frozenset({"t"})),
            Text("Text"),
            EndTag("a"),
        ]

    def test_idempotent(self):
        once = lowercase_identifiers(parse("<A>x</A>"))
        assert lowercase_identifiers(once) is once

    def test_collision(self):
        fragment = Fragment([StartTag("A", (("x", "1"), ("X", "2")))])
        with self.assertRaises(DuplicateAttributeError) as ctx:
            lowercase_identifiers(fragment)
        assert isinstance(ctx.exception, TransformError)
        assert ctx.exception.name == "x"

    def test_only_ascii_letters_change(self):
        fragment = Fragment([StartTag("İX"), EndTag("İX")])
        assert lowercase_identifiers(fragment) == [StartTag("İx"), EndTag("İx")]


class TestUppercaseIdentifiers(unittest.TestCase):
    def test_uppercases_tags_and_attributes(self):
        fragment = parse('<html lang="en"><body>Text</body></html>')
        assert uppercase_identifiers(fragment) == [
            StartTag("HTML", (("LANG", "en"),)),
            StartTag("BODY"),
            Text("Text"),
            EndTag("BODY"),
            EndTag("HTML"),
        ]

    def test_method_form_is_idempotent(self):
        once = parse("<a>x</a>").uppercase_identifiers()
        assert once == [StartTag("A"), Text("x"), EndTag("A")]
        assert once.uppercase_identifiers() is once

    def test_only_ascii_letters_change(self):
        fragment = Fragment([StartTag("straße"), EndTag("straße")])
        assert uppercase_identifiers(fragment) == [StartTag("STRAßE"), EndTag("STRAßE")]

    def test_collision(self):
        with self.assertRaises(DuplicateAttributeError):
            uppercase_identifiers(Fragment([StartTag("A", (("x", "1"), ("X", "2")))]))


class TestNormalizeEndTags(unittest.TestCase):
    def test_omitted_end_tags(self):
        fragment = parse("<CRATE><NAME>sgmlish<VERSION>0.2</CRATE>")
        assert normalize_end_tags(fragment) == [
            StartTag("CRATE"),
            StartTag("NAME"),
            Text("sgmlish"),
            EndTag("NAME"),
            StartTag("VERSION"),
            Text("0.2"),
            EndTag("VERSION"),
            EndTag("CRATE"),
        ]

    def test_balanced_input_is_unchanged(self):
        fragment = parse("<root><foo>hello</foo><bar>world<!-- -->!</bar></root>")
        assert normalize_end_tags(fragment) is fragment

    def test_idempotent(self):
        once = normalize_end_tags(parse("<OFX><CODE>0<SEVERITY>INFO</OFX>"))
        assert normalize_end_tags(once) is once

    def test_end_tag_goes_before_trailing_whitespace(self):
        fragment = Fragment(
            [StartTag("r"), StartTag("a"), Text("x"), Text("\n  "), StartTag("b"), Text("y"), EndTag("r")]
        )
        assert normalize_end_tags(fragment) == [
            StartTag("r"),
            StartTag("a"),
            Text("x"),
            EndTag("a"),
            Text("\n  "),
            StartTag("b"),
            Text("y"),
            EndTag("b"),
            EndTag("r"),
        ]

    def test_explicitly_closed_element_may_hold_mixed_content(self):
        fragment = parse("<A>text<B>x</B>more</A>")
        assert normalize_end_tags(fragment) is fragment

    def test_element_without_text_takes_children(self):
        fragment = parse("<LIST><ITEM>a<ITEM>b</LIST>")
        assert normalize_end_tags(fragment) == [
            StartTag("LIST"),
            StartTag("ITEM"),
            Text("a"),
            EndTag("ITEM"),
            StartTag("ITEM"),
            Text("b"),
            EndTag("ITEM"),
            EndTag("LIST"),
        ]

    def test_leaf_closed_at_end_of_input(self):
        assert normalize_end_tags(parse("<A>x")) == [StartTag("A"), Text("x"), EndTag("A")]

    def test_cdata_section_counts_as_text(self):
        fragment = parse("<A><![CDATA[x]]><B>y</B>")
        result = normalize_end_tags(fragment)
        assert result[2] == EndTag("A")

    def test_unmatched_end_tag(self):
        with self.assertRaises(UnmatchedEndTagError) as ctx:
            normalize_end_tags(parse("<A><B></C></A>"))
        assert ctx.exception.name == "C"
        assert str(ctx.exception) == "unmatched-end-tag - unpaired end tag: </C>"

    def test_unexpected_end_of_input(self):
        with self.assertRaises(UnexpectedEndOfInputError) as ctx:
            normalize_end_tags(parse("<A><B>"))
        assert ctx.exception.name == "B"

    def test_open_container_at_end_of_input(self):
        with self.assertRaises(UnexpectedEndOfInputError) as ctx:
            normalize_end_tags(parse("<CRATE><NAME>x"))
        assert ctx.exception.name == "CRATE"


class TestExpandEntities(unittest.TestCase):
    def test_text(self):
        fragment = parse("<A>&lt;tag&gt; &#38;</A>")
        assert expand_entities(fragment, {"lt": "<", "gt": ">"}) == [
            StartTag("A"),
            Text("<tag> &"),
            EndTag("A"),
        ]

    def test_method_form(self):
        assert parse("&x;").expand_entities(lambda name: "y") == [Text("y")]

    def test_nothing_to_expand(self):
        fragment = parse("<A>&#38;</A>")
        assert expand_entities(fragment, {}) is fragment

    def test_unknown_entity(self):
        with self.assertRaises(UnknownEntityError) as ctx:
            expand_entities(parse("&nope;"), {"lt": "<"})
        assert ctx.exception.name == "nope"

    def test_attributes(self):
        fragment = parse('<A t="&lt;" u="&#60;">')
        assert expand_entities(fragment, {"lt": "<"}) == [StartTag("A", (("t", "<"), ("u", "<")))]


class TestExpandMarkedSections(unittest.TestCase):
    def test_ignore_section_disappears(self):
        fragment = parse("<A><![IGNORE[ dropped text ]]>kept</A>")
        assert expand_marked_sections(fragment) == [StartTag("A"), Text("kept"), EndTag("A")]

    def test_cdata_becomes_text(self):
        assert expand_marked_sections(parse("a<![CDATA[<b>&x;]]>c")) == [Text("a<b>&x;c")]

    def test_rcdata_defers_entities(self):
        fragment = parse("<![RCDATA[x &amp; y]]>")
        assert expand_marked_sections(fragment) == [Text("x &amp; y", rcdata=True)]

    def test_rcdata_resolved_with_config(self):
        config = ParserConfig(entity_resolver={"amp": "&"})
        assert expand_marked_sections(parse("<![RCDATA[x &amp; y]]>"), config) == [Text("x & y")]

    def test_rcdata_merges_with_plain_text(self):
        fragment = parse("a & b<![RCDATA[&c;]]>")
        assert expand_marked_sections(fragment) == [Text("a &#38; b&c;", rcdata=True)]

    def test_include_is_parsed(self):
        fragment = parse("<A><![INCLUDE[<B>x</B>]]></A>")
        assert expand_marked_sections(fragment) == [
            StartTag("A"),
            StartTag("B"),
            Text("x"),
            EndTag("B"),
            EndTag("A"),
        ]

    def test_include_uses_config(self):
        config = ParserConfig(lowercase_names=True)
        assert parse("<![TEMP[<B>]]>").expand_marked_sections(config) == [StartTag("b")]

    def test_no_sections(self):
        fragment = parse("<A>")
        assert expand_marked_sections(fragment) is fragment

    def test_error_in_include_points_into_document(self):
        fragment = parse("<R>\n\n<![INCLUDE[<A x=>]]></R>")
        with self.assertRaises(TokenizationError) as ctx:
            fragment.expand_marked_sections()
        error = ctx.exception
        assert error.code == "missing-attribute-value"
        assert error.offset == 21
        assert (error.line, error.column) == (3, 17)

    def test_error_on_later_line_of_rcdata_section(self):
        fragment = parse("<R><![RCDATA[\nx &#1114112;]]></R>")
        with self.assertRaises(TokenizationError) as ctx:
            expand_marked_sections(fragment)
        assert ctx.exception.offset == 16
        assert (ctx.exception.line, ctx.exception.column) == (2, 3)

    def test_cdata_trimmed_with_config(self):
        config = ParserConfig(trim_whitespace=True)
        assert expand_marked_sections(parse("<A><![CDATA[ x ]]></A>"), config) == [
            StartTag("A"),
            Text("x"),
            EndTag("A"),
        ]


CONDITIONAL_SAMPLE = (
    "<!DOCTYPE test>\n"
    "<TEST>\n"
    "  <ONE>one</ONE>\n"
    "  <![%cond[ two <FOO> three\n"
    "    <?page break>\n"
    "  ]]>\n"
    "  <SEVEN>seven</SEVEN>\n"
    "  <![IGNORE[ eight <QUUX> nine ]]>\n"
    "  <![TEMP RCDATA[ <XYZZY> ten ]]>\n"
    "  </FOO>\n"
    "</TEST>\n"
)


class TestConditionalSections(unittest.TestCase):
    def test_include_trim_whitespace(self):
        config = ParserConfig(trim_whitespace=True, parameter_entity_resolver={"cond": "INCLUDE"})
        fragment = parse(CONDITIONAL_SAMPLE, config)
        assert fragment == [
            MarkupDeclaration("<!DOCTYPE test>"),
            StartTag("TEST"),
            StartTag("ONE"),
            Text("one"),
            EndTag("ONE"),
            MarkedSection(MarkedSectionKind.INCLUDE, " two <FOO> three\n    <?page break>\n  "),
            StartTag("SEVEN"),
            Text("seven"),
            EndTag("SEVEN"),
            MarkedSection(MarkedSectionKind.IGNORE, " eight <QUUX> nine "),
            MarkedSection(MarkedSectionKind.RCDATA, " <XYZZY> ten "),
            EndTag("FOO"),
            EndTag("TEST"),
        ]
        expanded = expand_marked_sections(fragment, config)
        assert expanded == [
            MarkupDeclaration("<!DOCTYPE test>"),
            StartTag("TEST"),
            StartTag("ONE"),
            Text("one"),
            EndTag("ONE"),
            Text("two"),
            StartTag("FOO"),
            Text("three"),
            ProcessingInstruction("<?page break>"),
            StartTag("SEVEN"),
            Text("seven"),
            EndTag("SEVEN"),
            Text("<XYZZY> ten"),
            EndTag("FOO"),
            EndTag("TEST"),
        ]
        assert expanded.validate() is expanded

    def test_include_keep_whitespace(self):
        config = ParserConfig(parameter_entity_resolver={"cond": "INCLUDE"})
        expanded = parse(CONDITIONAL_SAMPLE, config).expand_marked_sections(config)
        assert expanded == [
            MarkupDeclaration("<!DOCTYPE test>"),
            Text("\n"),
            StartTag("TEST"),
            Text("\n  "),
            StartTag("ONE"),
            Text("one"),
            EndTag("ONE"),
            Text("\n   two "),
            StartTag("FOO"),
            Text(" three\n    "),
            ProcessingInstruction("<?page break>"),
            Text("\n  \n  "),
            StartTag("SEVEN"),
            Text("seven"),
            EndTag("SEVEN"),
            Text("\n  \n   <XYZZY> ten \n  "),
            EndTag("FOO"),
            Text("\n"),
            EndTag("TEST"),
            Text("\n"),
        ]

    def test_ignore_trim_whitespace(self):
        config = ParserConfig(trim_whitespace=True, parameter_entity_resolver={"cond": "IGNORE"})
        expanded = parse(CONDITIONAL_SAMPLE, config).expand_marked_sections(config)
        assert expanded == [
            MarkupDeclaration("<!DOCTYPE test>"),
            StartTag("TEST"),
            StartTag("ONE"),
            Text("one"),
            EndTag("ONE"),
            StartTag("SEVEN"),
            Text("seven"),
            EndTag("SEVEN"),
            Text("<XYZZY> ten"),
            EndTag("FOO"),
            EndTag("TEST"),
        ]


class TestComposition(unittest.TestCase):
    def test_apply_transforms(self):
        fragment = parse("<OFX>\n<CODE>0\n<SEVERITY>info\n</OFX>\n")
        result = apply_transforms(fragment, [trim_spaces, lowercase_identifiers, normalize_end_tags])
        assert result == [
            StartTag("ofx"),
            StartTag("code"),
            Text("0"),
            EndTag("code"),
            StartTag("severity"),
            Text("info"),
            EndTag("severity"),
            EndTag("ofx"),
        ]
        assert result.validate() is result

    def test_reindent(self):
        fragment = parse("<A><B>x</B><C></C></A>")
        assert str(reindent(fragment)) == "<A>\n  <B>\n    x\n  </B>\n  <C></C>\n</A>"
