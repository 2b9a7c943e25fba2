from __future__ import annotations

import base64
from urllib.parse import urlsplit
import zlib

from bs4 import BeautifulSoup
import markdown
from pymdownx import arithmatex, tasklist

from prettymd.extensions.anchors import AnchorExtension, heading_slug
from prettymd.extensions.diagrams import (
    DiagramExtension,
    diagram_fences,
    plantuml_image,
    plantuml_url,
)
from prettymd.extensions.highlight import CODE_WRAPPER, code_fences_extension
from prettymd.extensions.images import rewrite_html_images
from prettymd.extensions.toc import TableOfContentsExtension


def _convert(source: str, *extensions) -> BeautifulSoup:
    return BeautifulSoup(_html(source, *extensions), "html.parser")


def _html(source: str, *extensions) -> str:
    return markdown.markdown(source, extensions=list(extensions), output_format="html")


def _math():
    return arithmatex.makeExtension(generic=True)


def _decode_plantuml(encoded: str) -> str:
    plantuml = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz-_"
    standard = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789+/"
    raw = base64.b64decode(encoded.translate(str.maketrans(plantuml, standard)))
    return zlib.decompressobj(-15).decompress(raw).decode("utf-8")


def test_task_list_items_become_disabled_checkboxes() -> None:
    soup = _convert("- [ ] todo\n- [x] done\n- plain\n", tasklist.makeExtension())

    items = soup.find("ul").find_all("li")
    assert "task-list-item" in items[0]["class"]
    assert "task-list-item" in items[1]["class"]
    assert items[2].get("class") is None

    boxes = soup.find_all("input")
    assert len(boxes) == 2
    assert all(box.get("type") == "checkbox" and box.has_attr("disabled") for box in boxes)
    assert not boxes[0].has_attr("checked")
    assert boxes[1].has_attr("checked")
    assert items[1].get_text().strip() == "done"


def test_loose_task_list_items_are_converted() -> None:
    soup = _convert("- [X] first\n\n- [ ] second\n", tasklist.makeExtension())

    boxes = soup.find_all("input")
    assert len(boxes) == 2
    assert boxes[0].has_attr("checked")
    assert not boxes[1].has_attr("checked")


def test_brackets_in_the_middle_are_not_tasks() -> None:
    soup = _convert("- see [x] later\n", tasklist.makeExtension())

    assert soup.find("input") is None


def test_inline_math_is_wrapped_for_the_client_renderer() -> None:
    soup = _convert("Euler: $e^{i\\pi} + 1 = 0$.\n", _math())

    span = soup.find("span", class_="arithmatex")
    assert span.get_text() == "\\(e^{i\\pi} + 1 = 0\\)"


def test_prices_are_not_math() -> None:
    soup = _convert("It costs $5 and $10.\n", _math())

    assert soup.find("span") is None


def test_math_inside_code_is_left_alone() -> None:
    soup = _convert("Use `$x$` literally.\n", _math())

    assert soup.find("span") is None
    assert soup.find("code").get_text() == "$x$"


def test_block_math_is_kept_verbatim() -> None:
    soup = _convert("Before\n\n$$\na < b_1 *c*\n$$\n\nAfter\n", _math())

    text = soup.find("div", class_="arithmatex").get_text().strip()
    assert text.startswith("\\[")
    assert text.endswith("\\]")
    assert "a < b_1 *c*" in text
    assert soup.find("em") is None


def test_dollars_inside_fenced_code_are_not_math() -> None:
    soup = _convert("```sh\necho $HOME $$\n$$\n```\n", code_fences_extension(), _math())

    assert soup.find(class_="arithmatex") is None
    assert "$HOME" in soup.find("pre").get_text()


def test_fence_without_language_is_escaped() -> None:
    html = _html("```\n<x> & y\n```\n", code_fences_extension())

    assert CODE_WRAPPER.format(body="&lt;x&gt; &amp; y\n") in html


def test_tilde_fence_is_highlighted() -> None:
    soup = _convert("~~~python\nx = 1\n~~~\n", code_fences_extension())

    block = soup.select_one("pre.hljs > code > div")
    assert block.find("span") is not None
    assert block.get_text() == "x = 1\n"


def test_mermaid_fence_becomes_client_side_block() -> None:
    soup = _convert(
        "```mermaid\ngraph TD;\n  A-->B;\n```\n", code_fences_extension(diagram_fences())
    )

    block = soup.find("pre", class_="mermaid")
    assert block.get_text() == "graph TD;\n  A-->B;"
    assert soup.find("pre", class_="hljs") is None


def test_plantuml_fence_links_to_the_server() -> None:
    soup = _convert(
        "```plantuml\nAlice -> Bob: hi\n```\n",
        code_fences_extension(diagram_fences("http://localhost:8080/")),
    )

    image = soup.find("img")
    assert image["alt"] == "uml diagram"
    url = urlsplit(image["src"])
    assert f"{url.scheme}://{url.netloc}" == "http://localhost:8080"
    encoded = url.path.removeprefix("/svg/")
    assert _decode_plantuml(encoded) == "@startuml\nAlice -> Bob: hi\n@enduml"


def test_bare_startuml_block_is_rendered() -> None:
    source = "Text\n\n@startuml\nA -> B\n@enduml\n\nMore\n"

    soup = _convert(source, DiagramExtension())

    image = soup.find("img")
    assert image is not None
    assert _decode_plantuml(image["src"].rsplit("/", 1)[1]) == "@startuml\nA -> B\n@enduml"
    assert "More" in soup.get_text()


def test_startuml_inside_a_code_fence_stays_code() -> None:
    source = "```text\n@startuml\nA -> B\n@enduml\n```\n"

    soup = _convert(source, DiagramExtension(), code_fences_extension(diagram_fences()))

    assert soup.find("img") is None
    assert "@startuml" in soup.select_one("pre.hljs").get_text()


def test_unclosed_startuml_is_left_as_text() -> None:
    soup = _convert("@startuml\nA -> B\n", DiagramExtension())

    assert soup.find("img") is None
    assert "A -> B" in soup.get_text()


def test_plantuml_url_uses_url_safe_alphabet() -> None:
    url = plantuml_url("@startuml\n" + "A -> B: ~!?\n" * 20 + "@enduml", "https://uml.example/")

    assert url.startswith("https://uml.example/svg/")
    encoded = url.removeprefix("https://uml.example/svg/")
    assert set(encoded) <= set("0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz-_")


def test_plantuml_image_keeps_existing_markers() -> None:
    html = plantuml_image("@startuml\nA -> B\n@enduml\n", "https://uml.example")

    encoded = BeautifulSoup(html, "html.parser").find("img")["src"].rsplit("/", 1)[1]
    assert _decode_plantuml(encoded) == "@startuml\nA -> B\n@enduml"


def test_toc_marker_inside_code_fence_is_untouched() -> None:
    html = _html(
        "# Intro\n\n```text\n[toc]\n```\n", code_fences_extension(), TableOfContentsExtension()
    )

    soup = BeautifulSoup(html, "html.parser")
    assert len(soup.select("div.toc")) == 1
    assert soup.select_one("pre.hljs").get_text() == "[toc]\n"


def test_heading_slugs_are_unique() -> None:
    used: set[str] = set()

    slugs = [heading_slug(text, used) for text in ("Intro", "Intro", "Intro", "", "Ça va?")]

    assert slugs == ["intro", "intro-1", "intro-2", "section", "ca-va"]


def test_anchor_extension_slugs_headings_uniquely() -> None:
    soup = _convert(
        '# Setup\n\n<h2 id="custom">Raw</h2>\n\n## Setup\n\n### *Fancy* title\n',
        AnchorExtension(),
    )

    ids = [heading.get("id") for heading in soup.find_all(["h1", "h2", "h3"])]
    assert ids == ["setup", "custom", "setup-1", "fancy-title"]


def test_rewrite_html_images_only_touches_img_sources() -> None:
    fragment = '<p><a href="a.png">link</a><img src="a.png"><img alt="no source"></p>'

    result = rewrite_html_images(fragment, lambda src: f"file:///root/{src}")

    soup = BeautifulSoup(result, "html.parser")
    assert soup.find("a")["href"] == "a.png"
    assert soup.find_all("img")[0]["src"] == "file:///root/a.png"
    assert not soup.find_all("img")[1].has_attr("src")


def test_rewrite_html_images_returns_fragment_without_images_unchanged() -> None:
    fragment = "<div>no images &amp; here</div>"

    assert rewrite_html_images(fragment, str.upper) is fragment
