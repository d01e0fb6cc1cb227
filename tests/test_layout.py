"""
Layout tests: line clustering, highlight block merging, reading order.
"""

from menuscan.layout.blocks import merge_blocks
from menuscan.layout.lines import LineClusterer, cluster_lines
from menuscan.layout.reading_order import ReadingOrderResolver
from menuscan.models.schema import Category

from conftest import make_word


def _partition(lines):
    return [[w.id for w in line.words] for line in lines]


class TestLineClusterer:
    def test_words_on_one_band_share_a_line(self):
        words = [
            make_word("450", 300, 12, 350, 38),
            make_word("PIZZA", 10, 10, 100, 40),
        ]
        lines = cluster_lines(words)
        assert len(lines) == 1
        assert [w.text for w in lines[0].words] == ["PIZZA", "450"]
        assert lines[0].text == "PIZZA 450"

    def test_separate_bands(self):
        words = [
            make_word("fresh basil", 10, 50, 150, 70),
            make_word("PIZZA", 10, 10, 100, 40),
        ]
        lines = cluster_lines(words)
        assert [l.text for l in lines] == ["PIZZA", "fresh basil"]
        assert [l.index for l in lines] == [0, 1]

    def test_line_extent_and_font_size(self):
        words = [
            make_word("A", 0, 10, 10, 40, font_size=30),
            make_word("B", 20, 12, 30, 38, font_size=26),
        ]
        line = cluster_lines(words)[0]
        assert line.min_y == 10
        assert line.max_y == 40
        assert line.avg_font_size == 28

    def test_each_word_in_exactly_one_line(self):
        words = [
            make_word(f"w{i}", (i % 3) * 100, (i // 3) * 50, (i % 3) * 100 + 80, (i // 3) * 50 + 30)
            for i in range(9)
        ]
        lines = cluster_lines(words)
        ids = [wid for line in _partition(lines) for wid in line]
        assert sorted(ids) == sorted(w.id for w in words)
        assert len(lines) == 3

    def test_idempotent(self):
        words = [
            make_word("ZUCCHINI", 10, 100, 200, 130),
            make_word("980", 400, 104, 450, 128),
            make_word("SALMON", 10, 140, 200, 170),
            make_word("zucchini, salmon", 10, 180, 220, 195),
        ]
        first = cluster_lines(words)
        again = cluster_lines([w for line in first for w in line.words])
        assert _partition(first) == _partition(again)
        assert _partition(cluster_lines(words)) == _partition(first)

    def test_zero_height_boxes(self):
        words = [
            make_word("A", 0, 100, 10, 100),
            make_word("B", 20, 100, 30, 100),
            make_word("C", 0, 105, 10, 105),
        ]
        lines = LineClusterer().cluster(words)
        assert _partition(lines) == [[words[0].id, words[1].id], [words[2].id]]

    def test_normalized_coordinates(self):
        words = [
            make_word("TITLE", 0.1, 0.10, 0.5, 0.13),
            make_word("299", 0.6, 0.105, 0.7, 0.125),
            make_word("text", 0.1, 0.20, 0.5, 0.23),
        ]
        assert len(cluster_lines(words)) == 2

    def test_empty(self):
        assert cluster_lines([]) == []


class TestMergeBlocks:
    def _classified(self, *specs):
        return [make_word(text, x0, y0, x1, y1, category=cat) for text, cat, x0, y0, x1, y1 in specs]

    def test_adjacent_titles_merge(self):
        words = self._classified(
            ("MARGHERITA", "title", 10, 10, 100, 40),
            ("PIZZA", "title", 110, 10, 170, 40),
        )
        blocks = merge_blocks(cluster_lines(words), words)
        assert len(blocks) == 1
        block = blocks[0]
        assert block.category is Category.TITLE
        assert block.text == "MARGHERITA PIZZA"
        assert block.word_ids == [w.id for w in words]
        assert (block.bbox.x0, block.bbox.x1) == (10, 170)

    def test_prices_never_merge(self):
        words = self._classified(
            ("930", "price", 300, 10, 350, 40),
            ("1190", "price", 380, 10, 440, 40),
        )
        blocks = merge_blocks(cluster_lines(words), words)
        assert [b.text for b in blocks] == ["930", "1190"]

    def test_runs_split_on_category_change(self):
        words = self._classified(
            ("SOUP", "title", 10, 10, 60, 40),
            ("300", "price", 70, 10, 100, 40),
            ("DAY", "title", 110, 10, 150, 40),
        )
        blocks = merge_blocks(cluster_lines(words), words)
        assert [b.category for b in blocks] == [Category.TITLE, Category.PRICE, Category.TITLE]

    def test_blocks_stay_within_a_line(self):
        words = self._classified(
            ("fresh", "description", 10, 10, 60, 30),
            ("basil", "description", 10, 50, 60, 70),
        )
        blocks = merge_blocks(cluster_lines(words), words)
        assert len(blocks) == 2
        assert [b.line_index for b in blocks] == [0, 1]

    def test_modifiers_merge(self):
        words = self._classified(
            ("DOUBLE", "price_modifier", 200, 10, 260, 30),
            ("TRIPLE", "price_modifier", 280, 10, 340, 30),
        )
        blocks = merge_blocks(cluster_lines(words), words)
        assert len(blocks) == 1
        assert blocks[0].category is Category.PRICE_MODIFIER


class TestReadingOrder:
    def test_same_band_orders_by_x(self):
        words = [
            make_word("B", 200, 105, 250, 130),
            make_word("A", 10, 100, 60, 130),
            make_word("C", 10, 200, 60, 230),
        ]
        ordered = ReadingOrderResolver().resolve(words)
        assert [w.text for w in ordered] == ["A", "B", "C"]

    def test_outside_epsilon_orders_by_y(self):
        words = [
            make_word("B", 10, 112, 60, 130),
            make_word("A", 200, 100, 250, 130),
        ]
        ordered = ReadingOrderResolver(epsilon=10).resolve(words)
        assert [w.text for w in ordered] == ["A", "B"]

    def test_epsilon_for_coordinates(self):
        assert ReadingOrderResolver.for_coordinates(True).epsilon == 0.01
        assert ReadingOrderResolver.for_coordinates(False).epsilon == 10
