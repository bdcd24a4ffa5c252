import pytest

from wp_convex_migrator.parsers.markdown_parser import (
    convert_html_to_markdown,
    extract_image_urls,
    transform_content,
)
from wp_convex_migrator.utils.errors import ContentConversionError


def test_extract_image_urls_is_distinct_and_ordered():
    html = (
        '<p><img src="https://a.com/1.png" alt="x"></p>'
        "<img class='wide' src='https://a.com/2.png'/>"
        '<img src="https://a.com/1.png">'
    )
    assert extract_image_urls(html) == ["https://a.com/1.png", "https://a.com/2.png"]


def test_extract_image_urls_ignores_text_without_img_tags():
    assert extract_image_urls('<a href="https://a.com/1.png">link</a>') == []
    assert extract_image_urls("") == []


def test_headings_are_atx_and_captions_removed():
    html = '[caption id="attachment_1"]<h2>Title</h2>[/caption]<p>Body <strong>bold</strong></p>'
    md = convert_html_to_markdown(html)
    assert md.startswith("## Title")
    assert "**bold**" in md
    assert "caption" not in md


def test_scripts_are_dropped():
    md = convert_html_to_markdown("<p>Keep</p><script>alert(1)</script>")
    assert md == "Keep"


def test_empty_html_converts_to_empty_string():
    assert convert_html_to_markdown("") == ""
    assert convert_html_to_markdown("   ") == ""


def test_converter_errors_are_raised_not_swallowed(monkeypatch):
    import wp_convex_migrator.parsers.markdown_parser as mp

    def boom(*args, **kwargs):
        raise RuntimeError("converter exploded")

    monkeypatch.setattr(mp, "markdownify", boom)
    with pytest.raises(ContentConversionError):
        convert_html_to_markdown("<p>x</p>")


def test_transform_rewrites_every_occurrence_of_a_migrated_url():
    html = '<p><img src="https://old.com/a.png"></p><p><a href="https://old.com/a.png">full</a></p>'
    calls = []

    def migrator(url, alt):
        calls.append((url, alt))
        return "https://cdn.example/a/large"

    result = transform_content(html, alt="My Post", image_migrator=migrator)
    assert calls == [("https://old.com/a.png", "My Post")]
    assert result.image_failures == 0
    assert "https://old.com/a.png" not in result.markdown
    assert result.markdown.count("https://cdn.example/a/large") == 2


def test_failed_image_keeps_original_url_and_counts():
    html = '<p><img src="https://old.com/ok.png"><img src="https://old.com/broken.png"></p>'

    def migrator(url, alt):
        return None if "broken" in url else "https://cdn.example/ok/large"

    result = transform_content(html, image_migrator=migrator)
    assert result.image_failures == 1
    assert "https://old.com/broken.png" in result.markdown
    assert "https://cdn.example/ok/large" in result.markdown
    assert result.image_map == {"https://old.com/ok.png": "https://cdn.example/ok/large"}


def test_without_migrator_images_are_untouched():
    result = transform_content('<img src="https://old.com/a.png">')
    assert result.image_failures == 0
    assert "https://old.com/a.png" in result.markdown


def test_failed_resized_variant_keeps_its_url_next_to_a_migrated_original():
    original = "https://old.com/a.png"
    resized = original + "?resize=300"
    html = f'<p><img src="{original}"></p><p><img src="{resized}"></p>'

    def migrator(url, alt):
        return None if url == resized else "https://imagedelivery.net/H/id1/large"

    result = transform_content(html, image_migrator=migrator)
    assert result.image_failures == 1
    assert resized in result.markdown
    assert "https://imagedelivery.net/H/id1/large?resize=300" not in result.markdown
    assert result.markdown.count("https://imagedelivery.net/H/id1/large") == 1


def test_urls_sharing_a_prefix_each_get_their_own_replacement():
    html = '<img src="https://old.com/a.png"><img src="https://old.com/a.png?w=300">'
    new_urls = {
        "https://old.com/a.png": "https://cdn/A/large",
        "https://old.com/a.png?w=300": "https://cdn/B/large",
    }

    result = transform_content(html, image_migrator=lambda url, alt: new_urls[url])
    assert "![](https://cdn/A/large)" in result.markdown
    assert "![](https://cdn/B/large)" in result.markdown
    assert "https://cdn/A/large?w=300" not in result.markdown


def test_entity_encoded_src_is_decoded_before_upload():
    html = '<img src="https://old.com/a.png?w=300&amp;h=200">'
    calls = []

    def migrator(url, alt):
        calls.append(url)
        return "https://cdn/C/large"

    result = transform_content(html, image_migrator=migrator)
    assert calls == ["https://old.com/a.png?w=300&h=200"]
    assert "![](https://cdn/C/large)" in result.markdown
    assert "a.png?w=300" not in result.markdown
