from linkcrawl.parser import extract_links

BASE = "https://go.dev/doc/"


def test_relative_links_resolved_against_base():
    html = '<a href="tutorial/">Tutorial</a><a href="/blog">Blog</a>'
    assert extract_links(html, BASE) == [
        "https://go.dev/doc/tutorial/",
        "https://go.dev/blog",
    ]


def test_non_http_links_and_fragments_dropped():
    html = """
    <a href="#install">Install</a>
    <a href="mailto:golang@example.com">Mail</a>
    <a href="javascript:void(0)">JS</a>
    <a href="ftp://ftp.example.com/file">FTP</a>
    <a href="/ref/mem#Types">Memory model</a>
    """
    assert extract_links(html, BASE) == ["https://go.dev/ref/mem"]


def test_repeated_links_returned_once_in_order():
    html = '<a href="/a">1</a><a href="/b">2</a><a href="/a#x">3</a>'
    assert extract_links(html, BASE) == ["https://go.dev/a", "https://go.dev/b"]


def test_anchors_without_href_ignored():
    assert extract_links("<a name='top'>Top</a><p>No links</p>", BASE) == []
