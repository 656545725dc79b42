import unittest

from podcraft.transcript.tokens import (
    count_words, estimate_tokens, split_words, tokens_to_chars, tokens_to_words
)


class TestTokenEstimation(unittest.TestCase):
    def test_empty_text_is_zero(self):
        self.assertEqual(estimate_tokens(""), 0)
        self.assertEqual(estimate_tokens(None), 0)
        self.assertEqual(estimate_tokens("   \n\t "), 0)

    def test_rounds_up(self):
        # 3 words * 1.3 = 3.9
        self.assertEqual(estimate_tokens("one two three"), 4)

    def test_any_whitespace_separates_words(self):
        self.assertEqual(split_words("  alpha\n\tbeta   gamma "), ["alpha", "beta", "gamma"])
        self.assertEqual(count_words("alpha\n\nbeta"), 2)

    def test_thousand_words(self):
        text = " ".join(["word"] * 1000)
        self.assertEqual(estimate_tokens(text), 1300)

    def test_tokens_to_words(self):
        self.assertEqual(tokens_to_words(1000), 769)
        self.assertEqual(tokens_to_words(0), 0)
        self.assertEqual(tokens_to_words(-10), 0)

    def test_tokens_to_chars(self):
        self.assertEqual(tokens_to_chars(100), 400)
        self.assertEqual(tokens_to_chars(-1), 0)


if __name__ == '__main__':
    unittest.main()
