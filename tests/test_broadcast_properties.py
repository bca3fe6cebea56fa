"""Property-based tests for the RSS broadcast encoder."""

import xml.etree.ElementTree as ET
from datetime import UTC, datetime

from hypothesis import given
from hypothesis import strategies as st

from pulse_reader.broadcast import encode_broadcast, escape_xml
from pulse_reader.models import Article

NOW = datetime(2024, 3, 9, 12, 30, 0, tzinfo=UTC)

ESCAPES = {"<": "&lt;", ">": "&gt;", "&": "&amp;", "'": "&apos;", '"': "&quot;"}

# Printable text salted with the XML-significant characters
markup_text = st.text(
    alphabet=st.one_of(
        st.sampled_from("<>&'\""),
        st.characters(
            min_codepoint=0x20,
            max_codepoint=0xFFFD,
            exclude_categories=("Cs",),
        ),
    ),
    min_size=1,
    max_size=60,
).filter(lambda s: s.strip())

articles = st.lists(
    st.builds(
        Article,
        id=markup_text,
        feed_id=st.just("1"),
        title=markup_text,
        link=markup_text,
        pub_date=st.just("Sat, 09 Mar 2024 10:00:00 GMT"),
        content=markup_text,
    ),
    min_size=1,
    max_size=5,
)


class TestBroadcastProperties:
    """Property-based tests for encode_broadcast."""

    @given(st.one_of(st.none(), markup_text), articles)
    def test_output_is_well_formed_and_escaped(self, digest, items):
        """
        Any title/content carrying < > & ' " still produces parseable XML,
        and no raw markup character leaks into text nodes.
        """
        xml = encode_broadcast(digest, items, NOW)

        root = ET.fromstring(xml.encode("utf-8"))
        parsed_items = root.findall("channel/item")
        assert len(parsed_items) == len(items) + (1 if digest else 0)

        offset = 1 if digest else 0
        for article, node in zip(items, parsed_items[offset:]):
            assert node.findtext("title") == article.title
            assert node.findtext("description") == article.content
            assert node.findtext("guid") == article.id

        for article in items:
            escaped = f"<title>{escape_xml(article.title)}</title>"
            assert escaped in xml
            for raw, entity in ESCAPES.items():
                if raw in article.title:
                    assert entity in escaped
