"""
Tests for the Rule Loader
Tests src/question_bank/rule_loader.py
"""
import asyncio

import pytest

from src.question_bank.errors import ConfigurationError, ValidationError
from src.question_bank.models import BankSelection
from src.question_bank.rule_loader import RuleLoader, parse_selection
from src.question_bank.validator import validate_for_submission


@pytest.mark.unit
class TestParseSelection:
    """Tests for parse_selection"""

    def test_numeric_strings_accepted(self):
        selection = parse_selection("1", 2, " 3 ", 4)

        assert selection == BankSelection(department_id=1, course_id=2, program_id=3, regulation_id=4)

    @pytest.mark.parametrize("values", [
        ("", "", 1, 1),
        (None, 1, 1, 1),
        (1, 1, 1, "  "),
    ])
    def test_missing_values(self, values):
        with pytest.raises(ValidationError) as exc_info:
            parse_selection(*values)

        assert "Missing selection" in exc_info.value.message

    def test_non_numeric(self):
        with pytest.raises(ValidationError):
            parse_selection("cse", 1, 1, 1)


@pytest.mark.unit
class TestLoadFromConfiguration:
    """Tests for RuleLoader.load"""

    @pytest.mark.asyncio
    async def test_builds_confirmed_tree(self, builder, fake_provider):
        tree = await RuleLoader(fake_provider).load(builder, 1, 1, 1, 1)

        assert builder.tree is tree
        assert [m.module_number for m in tree.modules] == [1, 2]
        for module in tree.modules:
            assert [c.category_number for c in module.categories] == [1, 2]
            assert [c.section_name for c in module.categories] == ["A", "B"]
            assert [c.marks for c in module.categories] == [2, 10]
            assert [len(c.questions) for c in module.categories] == [5, 2]
            assert all(c.confirmed for c in module.categories)
        assert tree.modules_confirmed is True
        assert tree.selection == BankSelection(1, 1, 1, 1)

    @pytest.mark.asyncio
    async def test_loaded_tree_passes_validation(self, builder, fake_provider):
        tree = await RuleLoader(fake_provider).load(builder, 1, 1, 1, 1)

        validate_for_submission(tree)

    @pytest.mark.asyncio
    async def test_module_numbers_follow_response(self, builder, make_provider):
        provider = make_provider(payload={
            "modules_info": [{"module_no": 3}, {"module_no": 5, "module_name": "Graphs"}],
            "sections_rules": [{"section_name": "A", "marks": 2, "min_questions_count": 1}],
        })

        tree = await RuleLoader(provider).load(builder, 1, 1, 1, 1)

        assert [m.module_number for m in tree.modules] == [3, 5]

    @pytest.mark.asyncio
    async def test_missing_selection_makes_no_request(self, builder, fake_provider):
        with pytest.raises(ValidationError):
            await RuleLoader(fake_provider).load(builder, "", "", 2, 1)

        assert fake_provider.requests == []

    @pytest.mark.asyncio
    async def test_request_carries_integer_ids(self, builder, fake_provider):
        await RuleLoader(fake_provider).load(builder, "4", "3", "2", "1")

        assert fake_provider.requests == [BankSelection(4, 3, 2, 1)]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload", [
        None,
        [],
        {},
        {"modules_info": [], "sections_rules": [{"section_name": "A", "marks": 2, "min_questions_count": 1}]},
        {"modules_info": [{"module_no": 1}], "sections_rules": []},
        {"modules_info": [{"module_no": 1}]},
        {"modules_info": [{"module_no": 1}], "sections_rules": [{"section_name": "A", "marks": 0, "min_questions_count": 1}]},
        {"modules_info": [{"module_no": 1}, {"module_no": 1}], "sections_rules": [{"section_name": "A", "marks": 2, "min_questions_count": 1}]},
        {"modules_info": [{"module_no": "one"}], "sections_rules": [{"section_name": "A", "marks": 2, "min_questions_count": 1}]},
    ])
    async def test_invalid_payload(self, builder, make_provider, payload):
        builder.init_modules(2)
        before = builder.tree.to_dict()

        with pytest.raises(ConfigurationError) as exc_info:
            await RuleLoader(make_provider(payload=payload)).load(builder, 1, 1, 1, 1)

        assert exc_info.value.message == "Invalid configuration response"
        assert builder.tree.to_dict() == before

    @pytest.mark.asyncio
    async def test_provider_failure_leaves_tree(self, builder, make_provider):
        builder.init_modules(1)
        before = builder.tree.to_dict()
        provider = make_provider(error=ConfigurationError("Regulation not found"))

        with pytest.raises(ConfigurationError) as exc_info:
            await RuleLoader(provider).load(builder, 1, 1, 1, 1)

        assert exc_info.value.message == "Regulation not found"
        assert builder.tree.to_dict() == before

    @pytest.mark.asyncio
    async def test_late_configuration_after_close_is_discarded(self, builder, fake_provider):
        fake_provider.gate = asyncio.Event()
        load = asyncio.create_task(RuleLoader(fake_provider).load(builder, 1, 1, 1, 1))
        await asyncio.sleep(0)

        builder.close()
        fake_provider.gate.set()

        assert await load is None
        assert builder.tree.modules == []
        assert builder.operations == []

    @pytest.mark.asyncio
    async def test_session_discarded_during_fetch(self, fake_provider, fake_image_host):
        from api.sessions import SessionStore

        store = SessionStore(ttl_seconds=60, max_size=5)
        session = store.create(owner="faculty-1", host=fake_image_host)
        fake_provider.gate = asyncio.Event()
        load = asyncio.create_task(RuleLoader(fake_provider).load(session.builder, 1, 1, 1, 1))
        await asyncio.sleep(0)

        store.discard(session.id)
        fake_provider.gate.set()
        await load

        assert session.builder.closed
        assert session.builder.tree.modules == []
        assert [op.name for op in session.builder.operations] == []

    @pytest.mark.asyncio
    async def test_load_is_recorded(self, builder, fake_provider):
        await RuleLoader(fake_provider).load(builder, 1, 1, 1, 1)

        assert builder.operations[-1].name == "load_tree"
        assert builder.operations[-1].params["modules"] == 2
