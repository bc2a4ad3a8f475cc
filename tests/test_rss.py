from unittest.mock import patch

import httpx
import pytest
import respx
from httpx import Response

from curator.models import FeedSource
from curator.rss import FeedError, fetch_batches, fetch_source, parse_feed_entries

BBC = FeedSource("bbc", "BBC World", "https://feeds.example.com/bbc.xml")
CNN = FeedSource("cnn", "CNN", "https://feeds.example.com/cnn.xml")

RSS_XML = """
<rss version="2.0" xmlns:media="http://search.yahoo.com/mrss/">
  <channel>
    <item>
      <title>Rocket reaches orbit</title>
      <link>https://example.com/rocket</link>
      <guid>rocket-123</guid>
      <pubDate>Mon, 02 Feb 2026 12:00:00 GMT</pubDate>
      <category>Space</category>
      <category>Science</category>
      <media:thumbnail url="https://img.example.com/rocket.jpg"/>
      <description><![CDATA[<p>The <b>rocket</b> made it.</p>]]></description>
    </item>
    <item>
      <title>No guid here</title>
      <link>https://example.com/no-guid</link>
      <pubDate>Mon, 02 Feb 2026 13:00:00 GMT</pubDate>
    </item>
    <item>
      <title>Missing link</title>
      <pubDate>Mon, 02 Feb 2026 13:00:00 GMT</pubDate>
    </item>
    <item>
      <link>https://example.com/missing-title</link>
      <pubDate>Mon, 02 Feb 2026 13:00:00 GMT</pubDate>
    </item>
  </channel>
</rss>
"""


def test_parse_rss_entries():
    stories = parse_feed_entries(RSS_XML, BBC)

    assert [s.title for s in stories] == ["Rocket reaches orbit", "No guid here"]
    story = stories[0]
    assert story.id == "rocket-123"
    assert story.url == "https://example.com/rocket"
    assert story.source == "BBC World"
    assert story.published_at == 1770033600.0
    assert story.excerpt == "The rocket made it."
    assert story.topics == ("Space", "Science")
    assert story.image == "https://img.example.com/rocket.jpg"


def test_parse_rss_id_falls_back_to_link():
    stories = parse_feed_entries(RSS_XML, BBC)
    assert stories[1].id == "https://example.com/no-guid"
    assert stories[1].excerpt is None
    assert stories[1].topics == ()


def test_excerpt_is_truncated():
    long_text = "word " * 100
    xml = f"""
    <rss version="2.0"><channel><item>
      <title>Long</title>
      <link>https://example.com/long</link>
      <pubDate>Mon, 02 Feb 2026 12:00:00 GMT</pubDate>
      <description>{long_text}</description>
    </item></channel></rss>
    """
    story = parse_feed_entries(xml, BBC)[0]
    assert story.excerpt is not None
    assert story.excerpt.endswith("...")
    assert len(story.excerpt) <= 153


def test_parse_atom_entries():
    xml = """
    <feed xmlns="http://www.w3.org/2005/Atom">
      <entry>
        <title>Atom Post</title>
        <id>urn:uuid:1234</id>
        <link rel="alternate" href="https://example.com/atom" />
        <updated>2026-02-01T12:34:56Z</updated>
        <category term="Tech" />
        <summary>Atom summary</summary>
      </entry>
    </feed>
    """
    stories = parse_feed_entries(xml, CNN)
    assert len(stories) == 1
    story = stories[0]
    assert story.id == "urn:uuid:1234"
    assert story.url == "https://example.com/atom"
    assert story.topics == ("Tech",)
    assert story.excerpt == "Atom summary"


def test_max_items_respected():
    stories = parse_feed_entries(RSS_XML, BBC, max_items=1)
    assert len(stories) == 1


def test_unparseable_feed_raises():
    with pytest.raises(FeedError):
        parse_feed_entries("<<< definitely not xml", BBC)


@pytest.mark.asyncio
@respx.mock
async def test_fetch_source_success():
    respx.get(BBC.rss_url).mock(return_value=Response(200, text=RSS_XML))
    async with httpx.AsyncClient() as client:
        batch = await fetch_source(client, BBC)
    assert batch.ok
    assert batch.source_key == "bbc"
    assert len(batch.stories) == 2


@pytest.mark.asyncio
@respx.mock
async def test_fetch_source_http_error_is_empty_batch():
    respx.get(BBC.rss_url).mock(return_value=Response(503))
    async with httpx.AsyncClient() as client:
        batch = await fetch_source(client, BBC)
    assert not batch.ok
    assert batch.stories == []
    assert "503" in (batch.error or "")


@pytest.mark.asyncio
@respx.mock
async def test_fetch_batches_isolates_failures():
    respx.get(BBC.rss_url).mock(return_value=Response(200, text=RSS_XML))
    respx.get(CNN.rss_url).mock(side_effect=httpx.ConnectTimeout("timed out"))

    batches = await fetch_batches([BBC, CNN])

    assert [b.source_key for b in batches] == ["bbc", "cnn"]
    assert batches[0].ok and len(batches[0].stories) == 2
    assert not batches[1].ok and batches[1].stories == []


@pytest.mark.asyncio
@respx.mock
async def test_fetch_batches_isolates_parser_crash():
    respx.get(BBC.rss_url).mock(return_value=Response(200, text=RSS_XML))
    respx.get(CNN.rss_url).mock(return_value=Response(200, text=RSS_XML))
    real_parse = parse_feed_entries

    def parse(feed_xml, source, max_items):
        if source.key == "cnn":
            raise RuntimeError("parser blew up")
        return real_parse(feed_xml, source, max_items)

    with patch("curator.rss.parse_feed_entries", side_effect=parse):
        batches = await fetch_batches([BBC, CNN])

    assert batches[0].ok and len(batches[0].stories) == 2
    assert not batches[1].ok
    assert batches[1].error == "parser blew up"


@pytest.mark.asyncio
async def test_fetch_batches_no_sources():
    assert await fetch_batches([]) == []
