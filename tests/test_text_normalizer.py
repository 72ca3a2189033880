"""
tests/test_text_normalizer.py — Tests for free-text normalization.
"""

from text_normalizer import join_fields, normalize


class TestNormalizedText:

    def test_lowercase_and_trim(self):
        assert normalize('  Full Sun  ').text == 'full sun'

    def test_none_is_empty(self):
        assert normalize(None).text == ''
        assert not normalize(None)
        assert not normalize('   ')

    def test_contains_is_case_insensitive(self):
        text = normalize('Loamy, Well-Drained')
        assert text.contains('well-drained')
        assert text.contains('WELL-DRAINED')
        assert not text.contains('clay')

    def test_contains_any(self):
        text = normalize('8+ hours')
        assert text.contains_any('full sun', '6-8', '8+')
        assert not text.contains_any('partial', 'shade')


class TestFirstInteger:

    def test_first_run_of_digits(self):
        assert normalize('Warm, 75-85°F').first_integer() == 75

    def test_minus_sign_ignored(self):
        assert normalize('Frost down to -5').first_integer() == 5

    def test_no_digits(self):
        assert normalize('mild').first_integer() is None
        assert normalize('').first_integer() is None


def test_join_fields_skips_empty():
    joined = join_fields('Full sun', None, '', 'Sow in SPRING')
    assert joined.text == 'full sun sow in spring'
