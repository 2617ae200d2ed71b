import unittest

from schemas.conversion_contract import (
    CONVERSION_STAGES,
    DEFAULT_MIME_TYPE,
    DOCUMENT_FORMATS,
    IMAGE_FORMATS,
    PILLOW_FORMAT_NAMES,
    mime_for,
)
from utils.status_machine import is_allowed_transition, is_terminal, observe_transition


class ConversionContractUnitTests(unittest.TestCase):
    def test_document_allow_list(self):
        self.assertEqual(
            set(DOCUMENT_FORMATS),
            {"pdf", "docx", "txt", "html", "odt", "pptx", "jpg", "png"},
        )

    def test_mime_lookup_with_default(self):
        self.assertEqual(mime_for("PDF"), "application/pdf")
        self.assertEqual(mime_for("jpg"), "image/jpeg")
        self.assertEqual(mime_for("xyz"), DEFAULT_MIME_TYPE)
        self.assertEqual(mime_for(None), DEFAULT_MIME_TYPE)
        self.assertEqual(mime_for("webp", IMAGE_FORMATS), "image/webp")

    def test_tables_are_read_only(self):
        with self.assertRaises(TypeError):
            DOCUMENT_FORMATS["exe"] = None

    def test_animation_capable_image_formats(self):
        animated = {tag for tag, d in IMAGE_FORMATS.items() if d.animated}
        self.assertEqual(animated, {"gif", "webp", "avif"})
        self.assertEqual(set(PILLOW_FORMAT_NAMES), set(IMAGE_FORMATS))

    def test_failure_stages(self):
        self.assertEqual(
            CONVERSION_STAGES,
            ("job-creation", "upload", "remote-processing", "export-missing", "download"),
        )


class RemoteStatusMachineUnitTests(unittest.TestCase):
    def test_terminal_statuses(self):
        self.assertTrue(is_terminal("finished"))
        self.assertTrue(is_terminal("ERROR"))
        self.assertFalse(is_terminal("processing"))
        self.assertFalse(is_terminal(None))

    def test_transitions(self):
        self.assertTrue(is_allowed_transition(None, "waiting"))
        self.assertTrue(is_allowed_transition("waiting", "processing"))
        self.assertTrue(is_allowed_transition("processing", "finished"))
        self.assertFalse(is_allowed_transition("finished", "processing"))
        self.assertFalse(is_allowed_transition("processing", "waiting"))

    def test_unexpected_transition_is_logged_not_raised(self):
        with self.assertLogs("api.status_machine", level="WARNING"):
            ok = observe_transition(job_id="job-1", previous="finished", current="processing", context="TEST")
        self.assertFalse(ok)


if __name__ == "__main__":
    unittest.main()
