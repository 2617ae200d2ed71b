import os
import unittest

from services.temp_storage import TempFileStore, sanitize_filename
from utils.filenames import ascii_fallback, content_disposition, output_filename


class FilenamesUnitTests(unittest.TestCase):
    def test_output_filename_swaps_extension(self):
        self.assertEqual(output_filename("report.docx", "pdf"), "report.pdf")
        self.assertEqual(output_filename("archive.tar.gz", ".zip"), "archive.tar.zip")
        self.assertEqual(output_filename("", "png", default_stem="image"), "image.png")
        self.assertEqual(output_filename("/some/dir/photo.JPG", "webp"), "photo.webp")

    def test_ascii_content_disposition_is_plain(self):
        self.assertEqual(content_disposition("report.pdf"), 'attachment; filename="report.pdf"')

    def test_unicode_content_disposition_has_utf8_variant(self):
        header = content_disposition("résumé.pdf")
        self.assertIn('filename="resume.pdf"', header)
        self.assertIn("filename*=UTF-8''r%C3%A9sum%C3%A9.pdf", header)

    def test_ascii_fallback_strips_quotes(self):
        self.assertEqual(ascii_fallback('bad"name.pdf'), "badname.pdf")
        self.assertEqual(ascii_fallback("日本語"), "download")


class TempStorageUnitTests(unittest.TestCase):
    def test_sanitize_filename(self):
        self.assertEqual(sanitize_filename("../../etc/passwd"), "passwd")
        self.assertEqual(sanitize_filename("my report (v2).docx"), "my_report_v2_.docx")
        self.assertEqual(sanitize_filename(""), "upload.bin")
        self.assertEqual(sanitize_filename("C:\\Users\\me\\notes.txt"), "notes.txt")

    def test_scoped_file_is_removed_after_block(self):
        store = TempFileStore(root=None)
        with store.scoped_file(b"payload", "a.txt") as path:
            self.assertTrue(os.path.exists(path))
            with open(path, "rb") as handle:
                self.assertEqual(handle.read(), b"payload")
            directory = os.path.dirname(path)
        self.assertFalse(os.path.exists(directory))

    def test_scoped_file_is_removed_on_error(self):
        store = TempFileStore(root=None)
        captured = {}
        with self.assertRaises(RuntimeError):
            with store.scoped_file(b"payload", "a.txt") as path:
                captured["dir"] = os.path.dirname(path)
                raise RuntimeError("boom")
        self.assertFalse(os.path.exists(captured["dir"]))


if __name__ == "__main__":
    unittest.main()
