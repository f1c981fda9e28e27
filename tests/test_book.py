import unittest

from legacydoc.book import ParsedBook, escape_html, parse_doc, render_paragraphs
from legacydoc.exceptions import DocFormatError, TextExtractionError

from doc_builder import build_word_document


class ParseDocTest(unittest.TestCase):
    def test_unicode_document(self) -> None:
        book = parse_doc(build_word_document("Hello World"), "greeting.doc")
        self.assertIsInstance(book, ParsedBook)
        self.assertEqual("greeting", book.title)
        self.assertEqual("", book.author)
        self.assertEqual(1, len(book.chapters))
        chapter = book.chapters[0]
        self.assertEqual("chapter_1", chapter.id)
        self.assertEqual("greeting", chapter.title)
        self.assertIn("<p>Hello World</p>", chapter.html)

    def test_compressed_document(self) -> None:
        book = parse_doc(build_word_document("Simple ASCII text", compressed=True), "simple.doc")
        self.assertIn("Simple ASCII text", book.chapters[0].html)

    def test_chapter_layout(self) -> None:
        text = "First paragraph\rSecond <b> & more\r\rThird\x0bline"
        book = parse_doc(build_word_document(text), "Tom & Jerry.DOC")
        self.assertEqual("Tom & Jerry", book.title)
        self.assertEqual(
            "<article>\n<h2>Tom &amp; Jerry</h2>\n"
            "<p>First paragraph<br>Second &lt;b&gt; &amp; more</p>\n"
            "<p>Third<br>line</p>\n</article>",
            book.chapters[0].html,
        )

    def test_footnotes_excluded(self) -> None:
        data = build_word_document("Body only\r", trailing="A footnote\r")
        html = parse_doc(data, "notes.doc").chapters[0].html
        self.assertIn("Body only", html)
        self.assertNotIn("A footnote", html)

    def test_fallback_for_raw_utf16(self) -> None:
        sentence = "This is a test document with enough characters to be extracted from DOC"
        book = parse_doc(sentence.encode("utf-16le"), "raw.doc")
        self.assertIn("<p>%s</p>" % sentence, book.chapters[0].html)

    def test_empty_buffer_raises(self) -> None:
        with self.assertRaises(TextExtractionError) as ctx:
            parse_doc(b"\x00" * 10, "empty.doc")
        self.assertEqual("could not extract text from DOC", str(ctx.exception))
        self.assertEqual("empty.doc", ctx.exception.file_name)
        self.assertIsInstance(ctx.exception, DocFormatError)

    def test_error_defaults(self) -> None:
        error = TextExtractionError()
        self.assertIsNone(error.file_name)
        self.assertEqual("could not extract text from DOC", str(error))

    def test_to_dict(self) -> None:
        book = parse_doc(build_word_document("Dict form"), "d.doc")
        self.assertEqual(
            {
                "title": "d",
                "author": "",
                "chapters": [{"id": "chapter_1", "title": "d", "html": book.chapters[0].html}],
            },
            book.to_dict(),
        )


class HtmlTest(unittest.TestCase):
    def test_escape(self) -> None:
        self.assertEqual("&lt;a href=&quot;x&quot;&gt;&amp;&#39;", escape_html("<a href=\"x\">&'"))

    def test_blank_paragraphs_dropped(self) -> None:
        self.assertEqual("<p>a</p>\n<p>b</p>", render_paragraphs("a\n \n\n\t\nb\n"))


if __name__ == "__main__":
    unittest.main()
