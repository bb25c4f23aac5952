class Token:
    """Base class for lexical tokens.

    Every token remembers the `start` and `end` character offsets it was read
    from. Tokens compare equal when they have the same type, fields and offsets.
    """

    __slots__ = ("end", "start")

    fields = ()

    def __init__(self, start=0, end=0):
        self.start = start
        self.end = end

    def _values(self):
        return tuple(getattr(self, name) for name in self.fields)

    def __eq__(self, other):
        if type(other) is not type(self):
            return NotImplemented
        return self._values() == other._values() and self.start == other.start and self.end == other.end

    def __hash__(self):
        return hash((type(self).__name__, self._values(), self.start, self.end))

    def __repr__(self):
        values = ", ".join(f"{name}={getattr(self, name)!r}" for name in self.fields)
        return f"<{type(self).__name__} {values} {self.start}..{self.end}>"


class TagOpen(Token):
    """`<NAME` opening a start tag."""

    __slots__ = ("name",)

    fields = ("name",)

    def __init__(self, name, start=0, end=0):
        super().__init__(start, end)
        self.name = name


class TagEnd(Token):
    """`>` closing a start tag."""

    __slots__ = ()


class TagClose(Token):
    """A complete end tag, `</NAME>`."""

    __slots__ = ("name",)

    fields = ("name",)

    def __init__(self, name, start=0, end=0):
        super().__init__(start, end)
        self.name = name


class AttributeName(Token):
    __slots__ = ("name",)

    fields = ("name",)

    def __init__(self, name, start=0, end=0):
        super().__init__(start, end)
        self.name = name


class AttributeValue(Token):
    __slots__ = ("quoted", "raw")

    fields = ("raw", "quoted")

    def __init__(self, raw, quoted=False, start=0, end=0):
        super().__init__(start, end)
        self.raw = raw
        self.quoted = bool(quoted)


class Text(Token):
    __slots__ = ("raw",)

    fields = ("raw",)

    def __init__(self, raw, start=0, end=0):
        super().__init__(start, end)
        self.raw = raw


class MarkedSectionStart(Token):
    """`<![KEYWORDS[`; `keywords` holds the raw status keyword text."""

    __slots__ = ("keywords",)

    fields = ("keywords",)

    def __init__(self, keywords, start=0, end=0):
        super().__init__(start, end)
        self.keywords = keywords


class MarkedSectionEnd(Token):
    __slots__ = ()


class EntityRef(Token):
    __slots__ = ("name",)

    fields = ("name",)

    def __init__(self, name, start=0, end=0):
        super().__init__(start, end)
        self.name = name


class CharRef(Token):
    __slots__ = ("codepoint",)

    fields = ("codepoint",)

    def __init__(self, codepoint, start=0, end=0):
        super().__init__(start, end)
        self.codepoint = codepoint

    @property
    def char(self):
        return chr(self.codepoint)


class Comment(Token):
    __slots__ = ("raw",)

    fields = ("raw",)

    def __init__(self, raw, start=0, end=0):
        super().__init__(start, end)
        self.raw = raw


class MarkupDeclaration(Token):
    """A declaration such as `<!DOCTYPE ...>`, kept verbatim."""

    __slots__ = ("raw",)

    fields = ("raw",)

    def __init__(self, raw, start=0, end=0):
        super().__init__(start, end)
        self.raw = raw


class ProcessingInstruction(Token):
    __slots__ = ("raw",)

    fields = ("raw",)

    def __init__(self, raw, start=0, end=0):
        super().__init__(start, end)
        self.raw = raw
