"""Page text cleaning used by stagehand_extract without an instruction."""

from mcp_stagehand.cleaners import (
    clean_text_lines,
    extract_page_text,
    html_to_text,
)


def test_clean_text_lines_drops_blank_and_css_lines():
    raw = """
        Welcome

        .header { display: none }
        @keyframes spin
        margin: 10px;
        Price: 10 EUR
    """
    assert clean_text_lines(raw) == ["Welcome", "Price: 10 EUR"]


def test_clean_text_lines_decodes_unicode_escapes():
    assert clean_text_lines("Stra\\u00dfe") == ["Straße"]


def test_clean_text_lines_empty_input():
    assert clean_text_lines("") == []
    assert clean_text_lines(None) == []


def test_html_to_text_strips_non_visible_content():
    html = """
    <html>
        <head><title>Ignored</title><style>.a { color: red; }</style></head>
        <body>
            <!-- hidden comment -->
            <script>alert('x');</script>
            <noscript>Enable JS</noscript>
            <h1>Hello World</h1>
            <p>This is a test.</p>
        </body>
    </html>
    """
    text = html_to_text(html)

    assert "Hello World" in text
    assert "This is a test." in text
    assert "alert" not in text
    assert "hidden comment" not in text
    assert "Enable JS" not in text
    assert "Ignored" not in text


def test_extract_page_text():
    html = "<body><div>Line one</div><div>  </div><div>Line two</div></body>"
    assert extract_page_text(html) == "Line one\nLine two"


def test_extract_page_text_without_body():
    assert extract_page_text("<p>fragment</p>") == "fragment"
