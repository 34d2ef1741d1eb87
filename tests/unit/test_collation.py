import random
import unicodedata

from rankboard.ranking.collation import korean_sort_key


class TestKoreanSortKey:
    def test_korean_locale_order(self):
        expected = ["1", "가", "나", "a", "B", "Z"]
        shuffled = list(reversed(expected))
        assert sorted(shuffled, key=korean_sort_key) == expected

    def test_hangul_before_latin(self):
        assert korean_sort_key("나의 아저씨") < korean_sort_key("Beta")
        assert korean_sort_key("흑백요리사") < korean_sort_key("Apple")

    def test_hangul_dictionary_order(self):
        titles = ["하이퍼나이프", "가족계획", "오징어 게임", "나의 아저씨", "더 글로리"]
        assert sorted(titles, key=korean_sort_key) == [
            "가족계획",
            "나의 아저씨",
            "더 글로리",
            "오징어 게임",
            "하이퍼나이프",
        ]

    def test_case_is_secondary_to_letters(self):
        assert korean_sort_key("apple") < korean_sort_key("Banana")
        assert korean_sort_key("apple") < korean_sort_key("Apple")

    def test_decomposed_hangul_sorts_like_composed(self):
        composed = "한국"
        decomposed = unicodedata.normalize("NFD", composed)
        assert decomposed != composed
        assert korean_sort_key(decomposed) == korean_sort_key(composed)

    def test_order_independent_of_input(self):
        titles = ["Squid Game", "오징어 게임", "Ad Vitam", "가족계획", "2521"]
        first = sorted(titles, key=korean_sort_key)
        random.Random(7).shuffle(titles)
        assert sorted(titles, key=korean_sort_key) == first
        assert first == ["2521", "가족계획", "오징어 게임", "Ad Vitam", "Squid Game"]
