"""
Tests for the Structure Builder
Tests src/question_bank/builder.py
"""
import pytest

from src.question_bank.builder import QuestionBankBuilder, coerce_non_negative, parse_count
from src.question_bank.errors import ValidationError


def _snos(category):
    return [q.sno for q in category.questions]


@pytest.mark.unit
class TestInitModules:
    """Tests for init_modules"""

    @pytest.mark.parametrize("count", [1, 2, 5, 10, "3", 4.0])
    def test_creates_numbered_empty_modules(self, builder, count):
        modules = builder.init_modules(count)

        expected = int(count)
        assert len(modules) == expected
        assert [m.module_number for m in modules] == list(range(1, expected + 1))
        assert all(m.categories == [] for m in modules)
        assert builder.tree.modules_confirmed is True

    @pytest.mark.parametrize("count,message", [
        (0, "at least 1"),
        (11, "at most 10"),
        (-3, "at least 1"),
        ("abc", "whole number"),
        ("", "whole number"),
        (None, "whole number"),
        (2.5, "whole number"),
        (True, "whole number"),
    ])
    def test_rejects_out_of_range(self, builder, count, message):
        with pytest.raises(ValidationError) as exc_info:
            builder.init_modules(count)

        assert message in exc_info.value.message
        assert builder.tree.modules == []
        assert builder.tree.modules_confirmed is False

    def test_failure_leaves_prior_tree_unchanged(self, builder):
        original = builder.init_modules(3)
        ids = [m.id for m in original]

        with pytest.raises(ValidationError):
            builder.init_modules(42)

        assert [m.id for m in builder.tree.modules] == ids

    def test_reinit_is_a_fresh_reset(self, confirmed_category, builder):
        builder.init_modules(1)

        assert len(builder.tree.modules) == 1
        assert builder.tree.modules[0].categories == []


@pytest.mark.unit
class TestCategories:
    """Tests for add_categories / set_category_field / confirm_category"""

    def test_add_categories_requires_modules(self, builder):
        with pytest.raises(ValidationError):
            builder.add_categories("mod-missing", 1)

    def test_add_categories_unknown_module(self, builder):
        builder.init_modules(1)

        with pytest.raises(ValidationError):
            builder.add_categories("mod-missing", 1)

    def test_add_categories_numbering_continues(self, builder):
        module = builder.init_modules(1)[0]
        builder.add_categories(module.id, 2)
        builder.add_categories(module.id, 3)

        assert [c.category_number for c in module.categories] == [1, 2, 3, 4, 5]
        assert all(not c.confirmed and c.questions == [] for c in module.categories)
        assert all(c.marks == 0 and c.question_count == 0 for c in module.categories)

    @pytest.mark.parametrize("count", [0, 11, "x"])
    def test_add_categories_bad_count(self, builder, count):
        module = builder.init_modules(1)[0]

        with pytest.raises(ValidationError):
            builder.add_categories(module.id, count)
        assert module.categories == []

    @pytest.mark.parametrize("value,expected", [
        ("5", 5), (7, 7), ("-2", 0), ("abc", 0), ("", 0), (None, 0), ("12abc", 12), (3.9, 3),
    ])
    def test_set_category_field_coerces(self, builder, value, expected):
        module = builder.init_modules(1)[0]
        category = builder.add_categories(module.id, 1)[0]

        builder.set_category_field(module.id, category.id, "marks", value)

        assert category.marks == expected

    @pytest.mark.parametrize("field_name", ["questionCount", "numberOfQuestions", "question_count"])
    def test_question_count_aliases(self, builder, field_name):
        module = builder.init_modules(1)[0]
        category = builder.add_categories(module.id, 1)[0]

        builder.set_category_field(module.id, category.id, field_name, "4")

        assert category.question_count == 4

    def test_unknown_field_rejected(self, builder):
        module = builder.init_modules(1)[0]
        category = builder.add_categories(module.id, 1)[0]

        with pytest.raises(ValidationError):
            builder.set_category_field(module.id, category.id, "difficulty", 3)

    def test_set_field_stale_category_is_noop(self, builder):
        module = builder.init_modules(1)[0]

        assert builder.set_category_field(module.id, "cat-gone", "marks", 5) is None

    def test_confirmed_category_is_frozen(self, confirmed_category, builder):
        module, category = confirmed_category

        builder.set_category_field(module.id, category.id, "marks", 99)
        builder.set_category_field(module.id, category.id, "questionCount", 1)

        assert category.marks == 5
        assert category.question_count == 3
        assert len(category.questions) == 3

    def test_confirm_materializes_questions(self, confirmed_category):
        _, category = confirmed_category

        assert category.confirmed is True
        assert _snos(category) == [1, 2, 3]
        for question in category.questions:
            assert len(question.blocks) == 1
            assert question.blocks[0].content == ""
            assert question.blocks[0].image_urls == []

    @pytest.mark.parametrize("marks,count", [(0, 3), (5, 0), (0, 0)])
    def test_confirm_requires_positive_values(self, builder, marks, count):
        module = builder.init_modules(1)[0]
        category = builder.add_categories(module.id, 1)[0]
        builder.set_category_field(module.id, category.id, "marks", marks)
        builder.set_category_field(module.id, category.id, "questionCount", count)

        with pytest.raises(ValidationError):
            builder.confirm_category(module.id, category.id)

        assert category.confirmed is False
        assert category.questions == []

    def test_reconfirm_is_noop(self, confirmed_category, builder):
        module, category = confirmed_category
        ids = [q.id for q in category.questions]

        builder.confirm_category(module.id, category.id)

        assert [q.id for q in category.questions] == ids

    def test_confirm_category_in_other_module_is_stale(self, builder):
        modules = builder.init_modules(2)
        category = builder.add_categories(modules[0].id, 1)[0]

        assert builder.confirm_category(modules[1].id, category.id) is None


@pytest.mark.unit
class TestQuestions:
    """Tests for add_question / delete_question"""

    def test_add_question_appends_next_number(self, confirmed_category, builder):
        _, category = confirmed_category

        question = builder.add_question(category.id)

        assert question.sno == 4
        assert _snos(category) == [1, 2, 3, 4]
        assert category.question_count == 3
        assert len(question.blocks) == 1

    def test_add_question_unconfirmed_rejected(self, builder):
        module = builder.init_modules(1)[0]
        category = builder.add_categories(module.id, 1)[0]

        with pytest.raises(ValidationError):
            builder.add_question(category.id)

    def test_add_question_stale_is_noop(self, builder):
        builder.init_modules(1)

        assert builder.add_question("cat-gone") is None

    @pytest.mark.parametrize("index", [0, 1, 2, 3])
    def test_delete_renumbers_contiguously(self, confirmed_category, builder, index):
        _, category = confirmed_category
        builder.add_question(category.id)
        before = [q.id for q in category.questions]

        assert builder.delete_question(before[index]) is True

        expected = before[:index] + before[index + 1:]
        assert [q.id for q in category.questions] == expected
        assert _snos(category) == [1, 2, 3]

    def test_delete_missing_question_is_noop(self, confirmed_category, builder):
        _, category = confirmed_category

        assert builder.delete_question("q-gone") is False
        assert _snos(category) == [1, 2, 3]

    def test_ids_are_never_reused(self, confirmed_category, builder):
        _, category = confirmed_category
        deleted = category.questions[-1].id
        builder.delete_question(deleted)

        added = builder.add_question(category.id)

        assert added.id != deleted

    def test_set_question_outcome(self, confirmed_category, builder):
        _, category = confirmed_category
        question = category.questions[0]

        builder.set_question_outcome(question.id, "2")

        assert question.course_outcome == 2
        assert builder.set_question_outcome("q-gone", 1) is None


@pytest.mark.unit
class TestBlocks:
    """Tests for block content, metadata and images"""

    def test_add_block_and_update_content(self, confirmed_category, builder):
        _, category = confirmed_category
        question = category.questions[0]

        block = builder.add_block(question.id)
        builder.update_block_content(question.id, block.id, "Evaluate $x^2$")

        assert len(question.blocks) == 2
        assert question.blocks[1].content == "Evaluate $x^2$"

    def test_update_block_meta(self, confirmed_category, builder):
        _, category = confirmed_category
        question = category.questions[0]
        block = question.blocks[0]

        builder.update_block_meta(question.id, block.id, marks="3", bloom_level=2)
        builder.update_block_meta(question.id, block.id, bloom_level="-1")

        assert block.marks == 3
        assert block.bloom_level == 0

    def test_add_then_remove_image_restores_list(self, confirmed_category, builder):
        _, category = confirmed_category
        question = category.questions[0]
        block = question.blocks[0]

        builder.add_block_image(question.id, block.id, "https://img.example/a.png")
        removed = builder.remove_block_image(question.id, block.id, 0)

        assert removed == "https://img.example/a.png"
        assert block.image_urls == []

    def test_remove_unknown_index_is_noop(self, confirmed_category, builder):
        _, category = confirmed_category
        question = category.questions[0]
        block = builder.add_block(question.id)

        assert builder.remove_block_image(question.id, block.id, 0) is None
        assert builder.remove_block_image(question.id, block.id, -1) is None
        assert block.image_urls == []

    def test_images_keep_append_order(self, confirmed_category, builder):
        _, category = confirmed_category
        question = category.questions[0]
        block = question.blocks[0]

        for name in ("a", "b", "c"):
            builder.add_block_image(question.id, block.id, name)
        builder.remove_block_image(question.id, block.id, 1)

        assert block.image_urls == ["a", "c"]

    @pytest.mark.parametrize("operation", [
        lambda b: b.add_block("q-gone"),
        lambda b: b.update_block_content("q-gone", "blk-gone", "text"),
        lambda b: b.update_block_meta("q-gone", "blk-gone", marks=2),
        lambda b: b.add_block_image("q-gone", "blk-gone", "url"),
        lambda b: b.remove_block_image("q-gone", "blk-gone", 0),
    ])
    def test_stale_block_operations_are_noops(self, confirmed_category, builder, operation):
        before = builder.tree.to_dict()
        recorded = len(builder.operations)

        assert operation(builder) is None

        assert builder.tree.to_dict() == before
        assert len(builder.operations) == recorded

    def test_stale_block_on_existing_question(self, confirmed_category, builder):
        _, category = confirmed_category
        question = category.questions[0]

        assert builder.update_block_content(question.id, "blk-gone", "text") is None
        assert question.blocks[0].content == ""


@pytest.mark.unit
class TestOperationLog:
    """Tests for the operation log"""

    def test_successful_mutations_are_recorded(self, confirmed_category, builder):
        names = [op.name for op in builder.operations]

        assert names == [
            "init_modules",
            "add_categories",
            "set_category_field",
            "set_category_field",
            "confirm_category",
        ]
        assert builder.operations[0].params == {"count": 2}

    def test_failed_operations_not_recorded(self, builder):
        with pytest.raises(ValidationError):
            builder.init_modules(0)

        assert builder.operations == []


@pytest.mark.unit
class TestScenarios:
    """End-to-end builder scenarios"""

    def test_manual_build_then_delete(self, confirmed_category, builder):
        module, category = confirmed_category

        assert len(builder.tree.modules) == 2
        assert category.marks == 5 and category.question_count == 3

        builder.delete_question(category.questions[1].id)

        assert _snos(category) == [1, 2]

    def test_bounds_come_from_settings(self):
        from config.settings import Settings

        custom = QuestionBankBuilder(settings=Settings(module_count_max=3))

        with pytest.raises(ValidationError):
            custom.init_modules(4)
        assert len(custom.init_modules(3)) == 3


@pytest.mark.unit
class TestCoercion:
    """Tests for parse_count and coerce_non_negative"""

    def test_parse_count_strips_whitespace(self):
        assert parse_count(" 7 ", "modules", 1, 10) == 7

    def test_coerce_non_negative_handles_infinity(self):
        assert coerce_non_negative(float("inf")) == 0
        assert coerce_non_negative(False) == 0
