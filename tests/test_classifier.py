import base64
import random
import unittest

from ws_printer_server.jobs.classifier import classify, is_base64_image, is_pdf_url
from ws_printer_server.jobs.models import PayloadKind


class TestClassifier(unittest.TestCase):

    def test_plain_text(self):
        self.assertEqual(classify("Hello printer"), PayloadKind.TEXT)

    def test_pdf_urls(self):
        for url in ("https://example.com/file.pdf",
                    "http://localhost:9000/doc",
                    "  HTTPS://example.com/a.pdf?x=1 \n"):
            with self.subTest(url=url):
                self.assertEqual(classify(url), PayloadKind.PDF_URL)

    def test_non_http_or_relative_urls_are_text(self):
        for payload in ("ftp://example.com/file.pdf",
                        "https://",
                        "see https://example.com/file.pdf",
                        "http://[::1",
                        "example.com/file.pdf"):
            with self.subTest(payload=payload):
                self.assertFalse(is_pdf_url(payload))
                self.assertEqual(classify(payload), PayloadKind.TEXT)

    def test_data_uri_image(self):
        self.assertEqual(classify("data:image/png;base64,iVBORw0KG..."), PayloadKind.IMAGE)

    def test_raw_base64_image(self):
        self.assertEqual(classify("iVBORw0KGgo="), PayloadKind.IMAGE)

    def test_base64_needs_length_multiple_of_four(self):
        self.assertFalse(is_base64_image("abcde"))
        self.assertEqual(classify("abc"), PayloadKind.TEXT)

    def test_base64_padding_limit(self):
        self.assertFalse(is_base64_image("ab==="))
        self.assertFalse(is_base64_image("a=bc"))

    def test_any_base64_string_is_image(self):
        rng = random.Random(1234)
        for n in range(1, 60):
            blob = base64.b64encode(bytes(rng.getrandbits(8) for _ in range(n))).decode()
            with self.subTest(n=n):
                self.assertEqual(classify(blob), PayloadKind.IMAGE)

    def test_url_checked_before_base64(self):
        url = "https://example.com/QUJDRA=="
        self.assertEqual(classify(url), PayloadKind.PDF_URL)

    def test_total_and_deterministic(self):
        samples = ["", " ", "\n\t", "data:", "data:image/", "😀", "a b c d",
                   "https://example.com", "////", "====", "\x00\x01"]
        for payload in samples:
            with self.subTest(payload=payload):
                kind = classify(payload)
                self.assertIsInstance(kind, PayloadKind)
                self.assertIs(classify(payload), kind)


if __name__ == '__main__':
    unittest.main()
