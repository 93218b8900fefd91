import base64
import time

import pytest

from html_extractor import BatchRunner, Defaults, InvalidRuleError, MissingInputError, RuleExtractor


RULES = [{"varName": "title", "selector": "h1", "valueType": "text"}]


class TestBatchRunner:
    """Test suite for batch extraction over input records."""

    @pytest.mark.asyncio
    async def test_one_record_per_document(self):
        """Test that every document of a record gets its own output record."""
        runner = BatchRunner(Defaults(threads=2))
        items = [
            {"data": "<h1>one</h1>"},
            {"data": ["<h1>two</h1>", "<h1>three</h1>"]},
        ]

        records = await runner.run(items, RULES)

        assert [record.json for record in records] == [
            {"title": "one"},
            {"title": "two"},
            {"title": "three"},
        ]
        assert [record.paired_item for record in records] == [0, 1, 1]

        stats = runner.get_stats()
        assert stats.total == 2
        assert stats.documents == 3
        assert stats.success == 3
        assert stats.failed == 0

    @pytest.mark.asyncio
    async def test_order_is_preserved_across_workers(self):
        """Test that output order follows input order with several workers."""
        runner = BatchRunner(Defaults(threads=4))
        items = [{"data": f"<h1>{i}</h1>"} for i in range(25)]

        records = await runner.run(items, RULES)

        assert [record.json["title"] for record in records] == [str(i) for i in range(25)]

    @pytest.mark.asyncio
    async def test_markup_strings_are_used_directly(self):
        """Test that plain markup strings are used as records."""
        runner = BatchRunner(Defaults())

        records = await runner.run(["<h1>a</h1>", "<p>none</p>"], RULES)

        assert [record.json for record in records] == [{"title": "a"}, {}]

    @pytest.mark.asyncio
    async def test_nested_property_path(self):
        """Test reading markup from a nested property path."""
        runner = BatchRunner(Defaults(dataPropertyName="page.body"))

        records = await runner.run([{"page": {"body": "<h1>deep</h1>"}}], RULES)

        assert records[0].json == {"title": "deep"}

    @pytest.mark.asyncio
    async def test_binary_source(self):
        """Test binary sources given as bytes and as base64 text."""
        runner = BatchRunner(Defaults(sourceType="binary"))
        encoded = base64.b64encode("<h1>zażółć</h1>".encode("utf-8")).decode("ascii")
        items = [
            {"data": "<h1>raw</h1>".encode("utf-8")},
            {"data": encoded},
        ]

        records = await runner.run(items, RULES)

        assert [record.json for record in records] == [{"title": "raw"}, {"title": "zażółć"}]

    @pytest.mark.asyncio
    async def test_missing_property_aborts_batch(self):
        """Test that a missing property aborts the batch."""
        runner = BatchRunner(Defaults())

        with pytest.raises(MissingInputError) as exc_info:
            await runner.run([{"data": "<h1>a</h1>"}, {"other": "<h1>b</h1>"}], RULES)

        assert exc_info.value.property_name == "data"
        assert str(exc_info.value) == 'No property named "data" exists!'

    @pytest.mark.asyncio
    async def test_missing_property_with_continue_on_fail(self):
        """Test that a missing property becomes an error record."""
        runner = BatchRunner(Defaults(continueOnFail=True))
        items = [{"data": "<h1>a</h1>"}, {"other": "<h1>b</h1>"}, {"data": "<h1>c</h1>"}]

        records = await runner.run(items, RULES)

        assert [record.json for record in records] == [
            {"title": "a"},
            {"error": 'No property named "data" exists!'},
            {"title": "c"},
        ]
        assert [record.paired_item for record in records] == [0, 1, 2]
        assert runner.get_stats().failed == 1
        assert runner.get_stats().success == 2

    @pytest.mark.asyncio
    async def test_invalid_rule_aborts_batch(self):
        """Test that an invalid rule aborts the batch."""
        runner = BatchRunner(Defaults())
        rules = [{"varName": "broken", "selector": "h1", "valueType": "bogus"}]

        with pytest.raises(InvalidRuleError):
            await runner.run([{"data": "<h1>a</h1>"}], rules)

    @pytest.mark.asyncio
    async def test_invalid_rule_with_continue_on_fail(self):
        """Test that an invalid rule becomes an error record per failing document."""
        runner = BatchRunner(Defaults(continueOnFail=True))
        rules = [{"varName": "broken", "selector": "h1", "valueType": "bogus"}]
        items = [{"data": ["<h1>a</h1>", "<p>no heading</p>"]}]

        records = await runner.run(items, rules)

        # the rule is only reached where a heading matches
        assert [record.json for record in records] == [
            {"error": "broken: invalid valueType: bogus"},
            {},
        ]
        assert [record.paired_item for record in records] == [0, 0]

    @pytest.mark.asyncio
    async def test_invalid_payload_with_continue_on_fail(self):
        """Test that an invalid rule payload fails every record."""
        runner = BatchRunner(Defaults(continueOnFail=True))

        records = await runner.run([{"data": "<h1>a</h1>"}, {"data": "<h1>b</h1>"}], "{oops")

        assert len(records) == 2
        assert all(record.error for record in records)
        assert records[1].json["error"].startswith("Rules are invalid")

    @pytest.mark.asyncio
    async def test_non_string_document_fails(self):
        """Test that a non-string document becomes an error record."""
        runner = BatchRunner(Defaults(continueOnFail=True))

        records = await runner.run([{"data": 42}], RULES)

        assert "must be a string" in records[0].json["error"]

    @pytest.mark.asyncio
    async def test_empty_batch(self):
        """Test running an empty batch."""
        runner = BatchRunner(Defaults())

        assert await runner.run([], RULES) == []
        assert runner.get_stats().total == 0

    @pytest.mark.asyncio
    async def test_undecodable_rules_with_continue_on_fail(self):
        """Test that a rule payload that is not UTF-8 fails every record instead of the batch."""
        runner = BatchRunner(Defaults(continueOnFail=True))

        records = await runner.run([{"data": "<p>a</p>"}, {"data": "<p>b</p>"}], b"\xff\xfe")

        assert [record.paired_item for record in records] == [0, 1]
        assert all(record.json["error"].startswith("Rules are invalid") for record in records)

    @pytest.mark.asyncio
    async def test_earliest_failure_in_input_order_is_raised(self):
        """Test that the failure of the earliest item wins even when a later item fails sooner."""
        def find(node, selector):
            if "slow" in node.get_text():
                time.sleep(0.2)
                raise ValueError("first item failed")
            return node.select(selector)

        runner = BatchRunner(Defaults(threads=4), extractor=RuleExtractor(find=find))
        items = [{"data": "<h1>slow</h1>"}, {"data": "<h1>ok</h1>"}, {"other": "<h1>fast</h1>"}]

        with pytest.raises(ValueError, match="first item failed"):
            await runner.run(items, RULES)
