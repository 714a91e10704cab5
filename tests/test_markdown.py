import unittest

from vault_sync.markdown import (
    compose_document,
    escape_braces,
    replace_external_embeds,
    replace_image_links,
    replace_local_embeds,
    transform_content,
)
from vault_sync.models import OutputDocument

ALIAS = "@assets"


class ImagePassTests(unittest.TestCase):
    def test_local_embed_points_at_post_assets(self):
        self.assertEqual(
            replace_local_embeds("See ![[photo.jpg]] here", "trip", ALIAS),
            "See ![photo.jpg](@assets/blog/trip/photo.jpg) here",
        )

    def test_local_embed_with_spaces_uses_angle_brackets(self):
        self.assertEqual(
            replace_local_embeds("![[Pasted image 1.png]]", "trip", ALIAS),
            "![Pasted image 1.png](<@assets/blog/trip/Pasted image 1.png>)",
        )

    def test_non_image_embeds_are_left_alone(self):
        text = "![[Other Note]] and ![[folder/pic.jpg]]"
        self.assertEqual(replace_local_embeds(text, "trip", ALIAS), text)

    def test_downloaded_external_embed(self):
        url = "https://cdn.example.com/pics/tokyo_tower.png"
        result = replace_external_embeds(
            f"![[{url}]]", "trip", {url: "tokyo_tower-1a2b3c4d.png"}, ALIAS
        )
        self.assertEqual(result, "![tokyo tower](@assets/blog/trip/tokyo_tower-1a2b3c4d.png)")

    def test_failed_external_embed_keeps_remote_url(self):
        url = "https://cdn.example.com/pics/tokyo-tower.png"
        result = replace_external_embeds(f"![[{url}]]", "trip", {}, ALIAS)
        self.assertEqual(result, f"![tokyo tower]({url})")

    def test_standard_remote_image_rewritten_when_downloaded(self):
        url = "https://example.com/a.png"
        text = f'![Alt]({url} "Caption") and ![Other](https://example.com/b.png)'
        result = replace_image_links(text, "post", {url: "a-12345678.png"}, ALIAS)
        self.assertEqual(
            result,
            '![Alt](@assets/blog/post/a-12345678.png "Caption") and ![Other](https://example.com/b.png)',
        )


class EscapeBracesTests(unittest.TestCase):
    def test_prose_braces_are_escaped(self):
        self.assertEqual(escape_braces("Use {braces} in code"), "Use \\{braces\\} in code")

    def test_inline_code_is_untouched(self):
        self.assertEqual(
            escape_braces("Use `{braces}` in {prose}"),
            "Use `{braces}` in \\{prose\\}",
        )

    def test_fenced_block_is_untouched(self):
        text = "```js\nUse `{braces}` in code\nconst a = {b: 1};\n```\nAfter {x}"
        self.assertEqual(
            escape_braces(text),
            "```js\nUse `{braces}` in code\nconst a = {b: 1};\n```\nAfter \\{x\\}",
        )


class TransformContentTests(unittest.TestCase):
    def test_passes_run_in_order_and_trim(self):
        url = "https://example.com/x/My Pic.png"
        body = (
            "\n\n![[photo.jpg]]\n"
            f"![[{url}]]\n"
            "Object {a} and `{b}`\n\n"
        )
        result = transform_content(body, "trip", {url: "My-Pic-0badf00d.png"}, ALIAS)
        self.assertEqual(
            result,
            "![photo.jpg](@assets/blog/trip/photo.jpg)\n"
            "![My Pic](@assets/blog/trip/My-Pic-0badf00d.png)\n"
            "Object \\{a\\} and `{b}`",
        )


class ComposeDocumentTests(unittest.TestCase):
    def test_field_order_and_quoting(self):
        doc = OutputDocument(
            title='Say "hi"',
            description="A \\ path",
            pub_date="2024-01-02",
            updated_date="2024-02-03",
            hero_image="@assets/blog/s/hero.jpg",
            hero_alt="hero",
            category="tech",
            tags=["Tech", "Café"],
            featured=True,
            draft=False,
            slug="s",
        )
        text = compose_document(doc, "\nBody\n")
        self.assertEqual(
            text,
            "---\n"
            'title: "Say \\"hi\\""\n'
            'description: "A \\\\ path"\n'
            "pubDate: 2024-01-02\n"
            "updatedDate: 2024-02-03\n"
            'heroImage: "@assets/blog/s/hero.jpg"\n'
            'heroAlt: "hero"\n'
            'category: "tech"\n'
            'tags: ["Tech", "Café"]\n'
            "featured: true\n"
            "draft: false\n"
            "---\n"
            "\n"
            "Body\n",
        )

    def test_optional_fields_are_omitted(self):
        doc = OutputDocument(
            title="T",
            description="D",
            pub_date="2024-01-02",
            hero_alt="T",
            category="books",
            slug="t",
        )
        text = compose_document(doc, "Body")
        self.assertNotIn("heroImage", text)
        self.assertNotIn("updatedDate", text)
        self.assertNotIn("tags", text)
