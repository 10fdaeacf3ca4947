import unittest

from nltk.stem import PorterStemmer

from application.services.token_processor import STOP_WORDS, TokenPolicy, is_noise, process_text

_STEMMER = PorterStemmer()


def stems(*words: str) -> list[str]:
    return [_STEMMER.stem(word) for word in words]


class TestTokenProcessor(unittest.TestCase):
    def test_empty_text(self):
        self.assertEqual(process_text(""), [])

    def test_splits_camel_case(self):
        self.assertEqual(process_text("fooBarBaz"), stems("foo", "bar", "baz"))

    def test_splits_snake_and_kebab_case(self):
        self.assertEqual(process_text("process_payment"), stems("process", "payment"))
        self.assertEqual(process_text("order-total"), stems("order", "total"))

    def test_splits_acronym_boundary(self):
        self.assertEqual(process_text("HTTPServer"), stems("http", "server"))

    def test_drops_numbers_single_characters_and_stop_words(self):
        self.assertEqual(process_text("123 a x 42 return the"), [])

    def test_drops_noise_fragments(self):
        text = 'class="btn <div> ./utils 12px; payment'
        self.assertEqual(process_text(text), stems("payment"))

    def test_preserves_duplicates_and_order(self):
        self.assertEqual(process_text("payment invoice payment"), stems("payment", "invoice", "payment"))

    def test_newlines_are_separators(self):
        self.assertEqual(process_text("invoice\r\npayment\ncustomer"), stems("invoice", "payment", "customer"))

    def test_decodes_unicode_escapes(self):
        self.assertEqual(process_text("\\u0063ustomer"), stems("customer"))

    def test_reprocessing_is_stable(self):
        self.assertEqual(process_text("foo bar"), ["foo", "bar"])
        self.assertEqual(process_text(" ".join(process_text("foo bar"))), ["foo", "bar"])

        first = process_text("processPayment handles customerInvoices")
        second = process_text(" ".join(first))
        for token in first + second:
            self.assertGreater(len(token), 2)
            self.assertNotIn(token, STOP_WORDS)

    def test_policy_can_disable_stemming(self):
        policy = TokenPolicy(stem=False)
        self.assertEqual(process_text("processPayment", policy), ["process", "payment"])

    def test_policy_can_keep_identifiers_whole(self):
        policy = TokenPolicy(split_identifiers=False, stem=False)
        self.assertEqual(process_text("processPayment", policy), ["processpayment"])

    def test_is_noise(self):
        self.assertTrue(is_noise("<span>"))
        self.assertTrue(is_noise("foo("))
        self.assertTrue(is_noise('"someVeryLongJsonKey":'))
        self.assertFalse(is_noise("=>"))
        self.assertFalse(is_noise("payment"))


if __name__ == "__main__":
    unittest.main()
