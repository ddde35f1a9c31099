"""Shared hypothesis strategies for dtl property-based testing.

Provides strategies at three levels:

- **Lexer**: Plain text and template fragments with valid delimiters
- **Values**: Context values, including ones that need escaping
- **Paths**: Dotted variable paths that resolve nowhere

Individual test modules compose them into property-specific strategies.
"""

from __future__ import annotations

from hypothesis import strategies as st

# ---------------------------------------------------------------------------
# Lexer strategies
# ---------------------------------------------------------------------------

# Plain text with no delimiter sequences ({{, {%, {#)
plain_text = st.text(
    alphabet=st.characters(blacklist_categories=("Cs",)),
    min_size=0,
    max_size=200,
).filter(lambda s: "{{" not in s and "{%" not in s and "{#" not in s and not s.endswith("{"))

_identifier = st.from_regex(r"[a-z][a-z0-9_]{0,12}", fullmatch=True)
dtl_variable = _identifier.map(lambda name: f"{{{{ {name} }}}}")

_comment_body = st.from_regex(r"[a-zA-Z0-9_ ]{0,30}", fullmatch=True)
dtl_comment = _comment_body.map(lambda body: f"{{# {body} #}}")

# Fragments: safe text interleaved with variables and comments
template_fragment = st.lists(
    st.one_of(
        st.from_regex(r"[a-zA-Z0-9 .,<>&\n]{0,20}", fullmatch=True),
        dtl_variable,
        dtl_comment,
    ),
    min_size=1,
    max_size=6,
).map("".join)

# Arbitrary input to stress the lexer
arbitrary_template_source = st.text(
    alphabet=st.characters(blacklist_categories=("Cs",)),
    min_size=0,
    max_size=300,
)

# ---------------------------------------------------------------------------
# Value strategies
# ---------------------------------------------------------------------------

html_text = st.text(
    alphabet=st.sampled_from(list("abc <>&\"'/=xyz")),
    min_size=0,
    max_size=40,
)

short_words = st.text(
    alphabet=st.characters(whitelist_categories=("Ll", "Lu", "Nd")),
    min_size=0,
    max_size=30,
)

# ---------------------------------------------------------------------------
# Path strategies
# ---------------------------------------------------------------------------

# Bare operator words cannot stand alone as an if operand
_OPERATOR_WORDS = frozenset({"and", "or", "not", "in", "is"})

_segment = st.one_of(
    st.from_regex(r"[a-z][a-z0-9_]{0,8}", fullmatch=True),
    st.integers(min_value=0, max_value=20).map(str),
)

dotted_path = st.tuples(
    st.from_regex(r"[a-z][a-z0-9_]{0,8}", fullmatch=True),
    st.lists(_segment, min_size=0, max_size=5),
).map(lambda parts: ".".join([parts[0], *parts[1]])).filter(lambda path: path not in _OPERATOR_WORDS)
