"""
Tests for heading-based segmentation.
"""

from narrator.segmenter import collapse_whitespace, extract_text, iter_text_runs, segment


def test_sections_follow_headings():
    """Each heading opens a section holding the text up to the next heading."""
    html = """
    <html><head><title>ignored</title></head><body>
      <p>This article explains how narration works.</p>
      <h1>Overview</h1>
      <p>First   paragraph.</p>
      <p>Second
         paragraph.</p>
      <h2>Details</h2>
      <ul><li>One</li><li>Two</li></ul>
    </body></html>
    """
    sections = segment(html)

    assert [s.id for s in sections] == ["section-0", "section-1", "section-2"]
    assert sections[0].heading == "introduction"
    assert sections[0].heading_level == 0
    assert sections[0].text_content == "This article explains how narration works."
    assert sections[1].heading == "Overview"
    assert sections[1].heading_level == 1
    assert sections[1].text_content == "First paragraph. Second paragraph."
    assert sections[2].heading == "Details"
    assert sections[2].heading_level == 2
    assert sections[2].text_content == "One Two"


def test_short_leading_text_is_discarded():
    """Ten characters or fewer before the first heading are treated as noise."""
    sections = segment("<p>Menu</p><h2>Start</h2><p>Content here.</p>")

    assert len(sections) == 1
    assert sections[0].id == "section-0"
    assert sections[0].heading == "Start"


def test_no_headings_gives_single_section():
    sections = segment("<div><p>Just   some</p><p>text.</p></div>")

    assert len(sections) == 1
    assert sections[0].id == "section-0"
    assert sections[0].heading_level == 0
    assert sections[0].heading == "introduction"
    assert sections[0].text_content == "Just some text."


def test_empty_document_gives_no_sections():
    assert segment("") == []
    assert segment("<div>   </div>") == []


def test_heading_without_body_is_kept():
    sections = segment("<h1>Title</h1><h2>Part</h2><p>Body.</p>")

    assert [(s.heading, s.text_content) for s in sections] == [("Title", ""), ("Part", "Body.")]


def test_heading_markup_stays_out_of_body():
    sections = segment("<h2>Hello <em>World</em></h2><p>Para</p>")

    assert sections[0].heading == "Hello World"
    assert sections[0].text_content == "Para"


def test_nested_headings_are_found():
    html = "<article><section><h3>Deep</h3><div><p>inner text</p></div></section></article>"
    sections = segment(html)

    assert sections[0].heading_level == 3
    assert sections[0].text_content == "inner text"


def test_scripts_styles_and_comments_are_invisible():
    html = (
        "<h1>T</h1><style>p { color: red; }</style><script>var x = 1;</script>"
        "<!-- note --><p>Visible</p>"
    )
    sections = segment(html)

    assert sections[0].text_content == "Visible"


def test_segmentation_reconstructs_visible_text():
    """Headings and bodies, in order, cover every visible word."""
    html = (
        "<p>Leading paragraph that is long enough.</p>"
        "<h1>A</h1><p>alpha <b>beta</b></p>"
        "<h2>B</h2><p>gamma</p><h3>C</h3>"
    )
    sections = segment(html)
    rebuilt = " ".join(
        part
        for s in sections
        for part in ((s.heading, s.text_content) if s.heading_level else (s.text_content,))
        if part
    )

    assert collapse_whitespace(rebuilt) == extract_text(html)


def test_text_runs_mark_headings():
    runs = list(iter_text_runs("<p>x</p><h4>y</h4><p>z</p>"))

    assert [(r.text, r.heading_level) for r in runs] == [("x", 0), ("y", 4), ("z", 0)]
    assert [r.position for r in runs] == [0, 1, 2]
