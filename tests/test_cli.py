import io
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout
from pathlib import Path

from sgmlish.__main__ import run


class TestCli(unittest.TestCase):
    def run_cli(self, source, *args):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "input.sgml"
            path.write_text(source, encoding="utf-8")
            out, err = io.StringIO(), io.StringIO()
            with redirect_stdout(out), redirect_stderr(err):
                code = run([str(path), *args])
        return code, out.getvalue(), err.getvalue()

    def test_fills_in_end_tags(self):
        code, out, _ = self.run_cli("<CRATE><NAME>sgmlish<VERSION>0.2</CRATE>")
        assert code == 0
        assert "Events:" in out
        assert "End tags filled in:\n<CRATE><NAME>sgmlish</NAME><VERSION>0.2</VERSION></CRATE>" in out
        assert "Pretty-printed:" in out

    def test_lowercase_and_entities(self):
        code, out, _ = self.run_cli("<A>caf&eacute; &amp; co</A>", "--lowercase", "--html-entities")
        assert code == 0
        assert "<a>café &#38; co</a>" in out

    def test_no_normalize(self):
        code, out, _ = self.run_cli("<A>x", "--no-normalize")
        assert code == 0
        assert "End tags filled in" not in out

    def test_error_exit_code(self):
        code, _, err = self.run_cli("<A><B></C></A>")
        assert code == 1
        assert "unmatched-end-tag" in err
