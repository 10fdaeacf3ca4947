import unittest

from application.services.context_format import (
    UNKNOWN_FILE,
    format_snippets,
    parse_context,
    resolve_file_path,
    snippet_from_payload,
)
from domain.entities import ContextSnippet


class TestContextFormat(unittest.TestCase):
    def test_format_record_shape(self):
        blob = format_snippets([ContextSnippet(file_path="src/pay.ts", content="export function pay() {}")])
        self.assertEqual(blob, "File: src/pay.ts\n```\nexport function pay() {}\n```\n---\n")

    def test_empty_sequence_gives_empty_blob(self):
        self.assertEqual(format_snippets([]), "")
        self.assertEqual(parse_context(""), [])

    def test_round_trip(self):
        snippets = [
            ContextSnippet(file_path="src/a.py", content="def a():\n    return 1"),
            ContextSnippet(file_path="docs/readme.md", content="  indented text  \n\nwith blank line"),
            ContextSnippet(file_path="src/empty.py", content=""),
            ContextSnippet(file_path="src/fence.md", content="```python\nprint('x')\n```"),
        ]
        self.assertEqual(parse_context(format_snippets(snippets)), snippets)

    def test_unparsable_text_gives_no_snippets(self):
        self.assertEqual(parse_context("plain answer text"), [])

    def test_resolve_file_path_order(self):
        self.assertEqual(resolve_file_path({"source": "a.py", "metadata": {"filePath": "b.py"}}), "a.py")
        self.assertEqual(resolve_file_path({"metadata": {"filePath": "b.py", "file_path": "c.py"}}), "b.py")
        self.assertEqual(resolve_file_path({"metadata": {"file_path": "c.py"}}), "c.py")
        self.assertEqual(resolve_file_path({"metadata": {"source": "d.py"}}), "d.py")
        self.assertEqual(resolve_file_path({}), UNKNOWN_FILE)

    def test_snippet_content_prefers_text(self):
        self.assertEqual(snippet_from_payload({"source": "a.py", "text": "t", "content": "c"}).content, "t")
        self.assertEqual(snippet_from_payload({"source": "a.py", "content": "c"}).content, "c")
        self.assertEqual(snippet_from_payload({"source": "a.py"}).content, "")


if __name__ == "__main__":
    unittest.main()
