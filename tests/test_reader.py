import io
import os
import tempfile
import unittest

from legacydoc.reader import DocReader, extract_doc_text, extract_structured_text

from doc_builder import CompoundFileBuilder, build_clx, build_fib, build_word_document


class StructuredTextTest(unittest.TestCase):
    def test_unicode_piece(self) -> None:
        self.assertEqual("Hello World", extract_structured_text(build_word_document("Hello World")))

    def test_compressed_piece(self) -> None:
        data = build_word_document("Simple ASCII text", compressed=True)
        self.assertEqual("Simple ASCII text", extract_structured_text(data))

    def test_streams_in_regular_sectors(self) -> None:
        data = build_word_document("Big document body", use_mini_stream=False, pad_to=6000)
        self.assertEqual("Big document body", extract_structured_text(data))

    def test_subtext_after_main_text_is_excluded(self) -> None:
        data = build_word_document("Body text\r", trailing="Footnote text\r")
        self.assertEqual("Body text", extract_structured_text(data))

    def test_one_table_selected(self) -> None:
        data = build_word_document("From the live table", which_table=True)
        self.assertEqual("From the live table", extract_structured_text(data))

    def test_stale_table_is_ignored(self) -> None:
        text = "Current revision"
        clx = build_clx([(0, len(text), 0x800)])
        word = build_fib(len(text), 0, len(clx), which_table=True)
        word += b"\x00" * (0x800 - len(word)) + text.encode("utf-16le")
        builder = CompoundFileBuilder()
        builder.add_stream("WordDocument", word)
        builder.add_stream("0Table", b"\x07" * len(clx))
        builder.add_stream("1Table", clx)
        self.assertEqual(text, extract_structured_text(builder.build()))

    def test_missing_table_stream(self) -> None:
        builder = CompoundFileBuilder()
        builder.add_stream("WordDocument", build_fib(5, 0, 16) + b"\x00" * 64)
        self.assertIsNone(extract_structured_text(builder.build()))

    def test_missing_word_document(self) -> None:
        builder = CompoundFileBuilder().add_stream("Workbook", b"\x09\x08" * 100)
        self.assertIsNone(extract_structured_text(builder.build()))

    def test_not_ole2(self) -> None:
        self.assertIsNone(extract_structured_text(b"plain text, not a compound file" * 20))

    def test_encrypted_document_uses_fallback(self) -> None:
        data = build_word_document("Secret", encrypted=True)
        self.assertIsNone(extract_structured_text(data))
        self.assertNotIn("Secret", extract_doc_text(data))


class DocReaderTest(unittest.TestCase):
    def test_reads_bytes(self) -> None:
        with DocReader(build_word_document("From bytes")) as reader:
            self.assertEqual("From bytes", reader.read_text())
            self.assertEqual(["WordDocument", "0Table"], reader.container().stream_names())

    def test_reads_file_object(self) -> None:
        stream = io.BytesIO(build_word_document("From a file object"))
        stream.seek(100)
        with DocReader(stream) as reader:
            self.assertEqual("From a file object", reader.read_structured_text())
        self.assertFalse(stream.closed)

    def test_reads_path(self) -> None:
        fd, path = tempfile.mkstemp(suffix=".doc")
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(build_word_document("From a path"))
            with DocReader(path) as reader:
                self.assertEqual("From a path", reader.read_text())
        finally:
            os.remove(path)

    def test_falls_back_for_raw_utf16(self) -> None:
        sentence = "A plain UTF-16 sentence that is comfortably longer than forty characters."
        with DocReader(sentence.encode("utf-16le")) as reader:
            self.assertIsNone(reader.read_structured_text())
            self.assertEqual(sentence, reader.read_text())

    def test_rejects_unknown_source(self) -> None:
        with self.assertRaises(TypeError):
            DocReader(42)


if __name__ == "__main__":
    unittest.main()
