import datetime as dt
import unittest

from vault_sync.frontmatter import (
    dump_front_matter,
    merge_legacy,
    parse_document,
    split_front_matter,
)


class SplitFrontMatterTests(unittest.TestCase):
    def test_block_at_offset_zero_is_parsed(self):
        data, body = split_front_matter("---\ntitle: Hello\ntags: [a, b]\n---\nBody\n")
        self.assertEqual(data, {"title": "Hello", "tags": ["a", "b"]})
        self.assertEqual(body, "Body\n")

    def test_no_block_returns_none_and_text(self):
        data, body = split_front_matter("Just text\n---\nnot: frontmatter\n---\n")
        self.assertIsNone(data)
        self.assertEqual(body, "Just text\n---\nnot: frontmatter\n---\n")

    def test_empty_block_yields_empty_mapping(self):
        data, body = split_front_matter("---\n---\nBody")
        self.assertEqual(data, {})
        self.assertEqual(body, "Body")

    def test_malformed_yaml_yields_empty_mapping_and_strips_block(self):
        with self.assertLogs("vault_sync", level="WARNING"):
            data, body = split_front_matter("---\ntitle: [unclosed\n---\nBody")
        self.assertEqual(data, {})
        self.assertEqual(body, "Body")

    def test_scalar_block_is_ignored(self):
        with self.assertLogs("vault_sync", level="WARNING"):
            data, _ = split_front_matter("---\njust a string\n---\nBody")
        self.assertEqual(data, {})


class ParseDocumentTests(unittest.TestCase):
    def test_heading_before_frontmatter(self):
        parsed = parse_document("# My Trip\n---\ntags: [Travel]\n---\n![[photo.jpg]]\nBody text.")
        self.assertEqual(parsed.title, "My Trip")
        self.assertEqual(parsed.frontmatter, {"tags": ["Travel"]})
        self.assertEqual(parsed.body, "![[photo.jpg]]\nBody text.")

    def test_heading_after_frontmatter_is_title_and_removed(self):
        parsed = parse_document("---\ndate: 2024-03-01\n---\n\n# Standard Title\n\nIntro paragraph.\n")
        self.assertEqual(parsed.title, "Standard Title")
        self.assertEqual(parsed.frontmatter, {"date": dt.date(2024, 3, 1)})
        self.assertEqual(parsed.body, "Intro paragraph.\n")

    def test_document_without_heading_or_block_is_verbatim(self):
        text = "Plain note.\n\nSecond paragraph with {braces}.\n"
        parsed = parse_document(text)
        self.assertEqual(parsed.title, "")
        self.assertEqual(parsed.frontmatter, {})
        self.assertEqual(parsed.body, text)

    def test_duplicated_heading_is_stripped(self):
        parsed = parse_document("# Title\n---\ntitle: Title\n---\n# Title\n\nBody")
        self.assertEqual(parsed.title, "Title")
        self.assertEqual(parsed.body, "Body")

    def test_heading_inside_code_fence_is_not_a_title(self):
        text = "```bash\n# install deps\npip install x\n```\n\n# Real Title\nText"
        parsed = parse_document(text)
        self.assertEqual(parsed.title, "Real Title")
        self.assertEqual(parsed.body, text)

    def test_section_heading_after_prose_is_title_but_kept(self):
        text = "Intro paragraph.\n\n# Section\nMore text.\n"
        parsed = parse_document(text)
        self.assertEqual(parsed.title, "Section")
        self.assertEqual(parsed.body, text)

    def test_heading_opening_the_body_is_removed(self):
        parsed = parse_document("\n\n# Opening\n\nMore text.\n")
        self.assertEqual(parsed.title, "Opening")
        self.assertEqual(parsed.body, "More text.\n")

    def test_subheadings_are_not_titles(self):
        parsed = parse_document("## Section\nText")
        self.assertEqual(parsed.title, "")
        self.assertEqual(parsed.body, "## Section\nText")

    def test_crlf_line_endings(self):
        parsed = parse_document("# Title\r\n---\r\ntags: [Tech]\r\n---\r\nBody\r\n")
        self.assertEqual(parsed.title, "Title")
        self.assertEqual(parsed.frontmatter, {"tags": ["Tech"]})
        self.assertEqual(parsed.body, "Body\n")

    def test_legacy_block_after_duplicated_heading_is_merged(self):
        text = (
            "---\n"
            "title: New Title\n"
            "description: ''\n"
            "tags: []\n"
            "---\n"
            "# New Title\n"
            "---\n"
            "date: 2022-01-02\n"
            "tags: [Books]\n"
            "summary: Old summary\n"
            "slug: old-slug\n"
            "---\n"
            "Body\n"
        )
        parsed = parse_document(text)
        self.assertEqual(parsed.title, "New Title")
        self.assertEqual(parsed.frontmatter["title"], "New Title")
        self.assertEqual(parsed.frontmatter["tags"], ["Books"])
        self.assertEqual(parsed.frontmatter["summary"], "Old summary")
        self.assertEqual(parsed.frontmatter["slug"], "old-slug")
        self.assertEqual(parsed.frontmatter["date"], dt.date(2022, 1, 2))
        self.assertEqual(parsed.body, "Body\n")

    def test_horizontal_rules_in_body_are_kept_without_heading(self):
        text = "---\ntitle: T\n---\nIntro\n\n---\n\nOutro\n"
        parsed = parse_document(text)
        self.assertEqual(parsed.body, "Intro\n\n---\n\nOutro\n")


class MergeLegacyTests(unittest.TestCase):
    def test_primary_values_win(self):
        merged = merge_legacy({"tags": ["Tech"], "summary": ""}, {"tags": ["Books"], "summary": "s"})
        self.assertEqual(merged, {"tags": ["Tech"], "summary": "s"})


class DumpFrontMatterTests(unittest.TestCase):
    def test_dump_keeps_key_order(self):
        block = dump_front_matter({"title": "T", "tags": ["a"], "draft": False})
        self.assertEqual(block, "---\ntitle: T\ntags:\n- a\ndraft: false\n---\n")
