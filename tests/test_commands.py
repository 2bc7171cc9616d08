import pytest

from adpilot.commands import DENIED, USAGE, CommandDispatcher, split_product_budget
from adpilot.config import Config
from adpilot.messages import ImageMessage, text_of
from adpilot.router import CommandName, parse_command
from adpilot.workflows.base import StepResult

USER = "u1"


def _text(result: StepResult) -> str:
    return "\n".join(result.texts)


def _joined(messages) -> str:
    return "\n".join(text_of(m) for m in messages)


class TestSplitProductBudget:
    def test_trailing_amount(self):
        assert split_product_budget(("moringa", "shampoo", "$40")) == ("moringa shampoo", 40.0)

    def test_without_amount_uses_default(self):
        assert split_product_budget(("shampoo",)) == ("shampoo", 50.0)

    def test_single_number_is_a_product(self):
        assert split_product_budget(("40",)) == ("40", 50.0)


class TestReadCommands:
    @pytest.mark.asyncio
    async def test_products(self, dispatcher):
        result = await dispatcher.dispatch(USER, parse_command("/products"))
        assert "📦 *Available Products:*" in _text(result)
        assert "6. Argan Curl Cream - $20" in _text(result)

    @pytest.mark.asyncio
    async def test_product_details(self, dispatcher):
        result = await dispatcher.dispatch(USER, parse_command("/product argan oil"))
        assert "📦 *Argan Oil Serum*" in _text(result)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("command", ["/product", "/image", "/video"])
    async def test_usage_without_args(self, dispatcher, command):
        parsed = parse_command(command)
        result = await dispatcher.dispatch(USER, parsed)
        assert _text(result) == USAGE[parsed.name]

    @pytest.mark.asyncio
    async def test_image(self, dispatcher, media):
        result = await dispatcher.dispatch(USER, parse_command("/image shampoo"))
        assert result.messages == [ImageMessage(data=b"image", mime_type="image/png", caption="✅ Shampoo")]
        assert media.calls[0][1].product.name == "Shampoo"

    @pytest.mark.asyncio
    async def test_campaigns_empty(self, dispatcher):
        result = await dispatcher.dispatch(USER, parse_command("/campaigns"))
        assert _text(result) == "📊 No campaigns found."

    @pytest.mark.asyncio
    async def test_unknown(self, dispatcher):
        result = await dispatcher.dispatch(USER, parse_command("/launch rockets"))
        assert "Unknown command /launch" in _text(result)

    @pytest.mark.asyncio
    async def test_collaborator_failure_is_reported(self, dispatcher, ads):
        ads.fail = True
        result = await dispatcher.dispatch(USER, parse_command("/campaigns"))
        assert _text(result) == "⚠️ ad account disabled"


class TestPrivilegedCommands:
    @pytest.mark.asyncio
    async def test_pause_requires_confirmation(self, assistant, ads):
        replies = await assistant.handle(USER, "/pause cmp_1")
        assert _joined(replies) == "⚠️ Reply YES to confirm /pause cmp_1. Anything else cancels."
        assert ads.status_calls == []

        replies = await assistant.handle(USER, "yes")
        assert _joined(replies) == "⏸️ Campaign cmp_1 paused."
        assert ads.status_calls == [("cmp_1", "PAUSED")]

    @pytest.mark.asyncio
    async def test_any_other_reply_cancels(self, assistant, ads, gate):
        await assistant.handle(USER, "/resume cmp_1")
        replies = await assistant.handle(USER, "menu")
        assert _joined(replies) == "❌ /resume cancelled."
        assert ads.status_calls == []
        assert await gate.pending(USER) is None

    @pytest.mark.asyncio
    async def test_budget(self, assistant, ads):
        replies = await assistant.handle(USER, "/budget cmp_1 abc")
        assert _joined(replies) == USAGE[CommandName.BUDGET]

        await assistant.handle(USER, "/budget cmp_1 $30")
        replies = await assistant.handle(USER, "YES")
        assert ads.budget_calls == [("cmp_1", 30.0)]
        assert "$30/day" in _joined(replies)

    @pytest.mark.asyncio
    async def test_createad(self, assistant, ads):
        await assistant.handle(USER, "/createad moringa shampoo $40")
        replies = await assistant.handle(USER, "yes")

        spec = ads.created[0]
        assert spec.name == "Moringa Shampoo - Sales"
        assert spec.daily_budget == 40
        assert spec.objective == "CONVERSIONS"
        assert "cmp_1" in _joined(replies)

        replies = await assistant.handle(USER, "/campaigns")
        assert "Moringa Shampoo - Sales (cmp_1) PAUSED - $40/day" in _joined(replies)

    @pytest.mark.asyncio
    async def test_confirmed_failure_is_reported(self, assistant, ads):
        await assistant.handle(USER, "/pause cmp_1")
        ads.fail = True
        replies = await assistant.handle(USER, "yes")
        assert _joined(replies) == "❌ /pause failed: ad account disabled"

    @pytest.mark.asyncio
    async def test_non_admin_is_denied(self, deps, gate, ads):
        dispatcher = CommandDispatcher(deps, gate, Config(_env_file=None, admin_user_ids=["admin"]))

        result = await dispatcher.dispatch("intruder", parse_command("/pause cmp_1"))
        assert _text(result) == DENIED
        assert await gate.pending("intruder") is None

        result = await dispatcher.dispatch("admin", parse_command("/pause cmp_1"))
        assert "Reply YES" in _text(result)

    @pytest.mark.asyncio
    async def test_second_request_displaces_first(self, dispatcher, gate):
        await dispatcher.dispatch(USER, parse_command("/pause cmp_1"))
        result = await dispatcher.dispatch(USER, parse_command("/resume cmp_2"))

        assert "earlier request /pause cmp_1 was discarded" in _text(result)
        assert (await gate.pending(USER)).describe() == "/resume cmp_2"


class TestAdminConfig:
    def test_admin_ids_from_comma_string(self):
        config = Config(_env_file=None, admin_user_ids="a, b")
        assert config.admin_user_ids == ["a", "b"]
        assert config.is_admin("b")
        assert not config.is_admin("c")

    def test_empty_allowlist_trusts_everyone(self, config):
        assert config.is_admin("anyone")
