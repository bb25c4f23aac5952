#!/usr/bin/env python3
"""Profile sgmlish to find performance bottlenecks."""

import cProfile
import io
import pstats

from sgmlish import ParserConfig, parse

# Sample OFX-style statement, end tags of data elements omitted
sgml = """
OFXHEADER:100
<OFX>
<SIGNONMSGSRSV1><SONRS>
<STATUS><CODE>0<SEVERITY>INFO</STATUS>
<DTSERVER>20210101120000<LANGUAGE>ENG
</SONRS></SIGNONMSGSRSV1>
<BANKMSGSRSV1><STMTTRNRS><TRNUID>1
<STMTRS><CURDEF>USD
<BANKTRANLIST>
<STMTTRN><TRNTYPE>DEBIT<DTPOSTED>20210102<TRNAMT>-12.50<FITID>1<NAME>Caf&eacute; &amp; Bar</STMTTRN>
<STMTTRN><TRNTYPE>CREDIT<DTPOSTED>20210103<TRNAMT>100.00<FITID>2<NAME>Salary</STMTTRN>
<![CDATA[ raw <data> ]]>
</BANKTRANLIST>
</STMTRS></STMTTRNRS></BANKMSGSRSV1>
</OFX>
""" * 100  # Repeat for more meaningful results

config = ParserConfig(entity_resolver={"eacute": "é", "amp": "&"})

# Profile
pr = cProfile.Profile()
pr.enable()

for _ in range(10):
    fragment = parse(sgml, config)
    fragment = fragment.expand_marked_sections(config).trim_spaces()

pr.disable()

# Print stats
s = io.StringIO()
ps = pstats.Stats(pr, stream=s).sort_stats("cumulative")
ps.print_stats(50)  # Top 50 functions
print(s.getvalue())
