from typing import assert_never

from adpilot.config import Config
from adpilot.constants import DEFAULT_DAILY_BUDGET
from adpilot.conversation.confirmation import ConfirmationGate, Confirmed
from adpilot.errors import CollaboratorError, Unauthorized
from adpilot.events import CampaignCreated
from adpilot.integrations.models import AdCopy, CampaignSpec, MediaKind, MediaRequest
from adpilot.logging import get_logger
from adpilot.messages import format_money
from adpilot.router import CommandName, ParsedCommand
from adpilot.workflows import prompts
from adpilot.workflows.base import StepResult, WorkflowDeps
from adpilot.workflows.content import asset_messages, generate_media
from adpilot.workflows.parsing import DEFAULT_OBJECTIVE, parse_amount
from adpilot.workflows.selection import list_catalog, select_product

_logger = get_logger(__name__)

DENIED = "⛔ You are not allowed to run that command."

USAGE = {
    CommandName.PRODUCT: "Usage: /product <name>",
    CommandName.IMAGE: "Usage: /image <product>",
    CommandName.VIDEO: "Usage: /video <product>",
    CommandName.CREATE_AD: "Usage: /createad <product> <budget>",
    CommandName.PAUSE: "Usage: /pause <campaign id>",
    CommandName.RESUME: "Usage: /resume <campaign id>",
    CommandName.BUDGET: "Usage: /budget <campaign id> <amount>",
}


def split_product_budget(args: tuple[str, ...]) -> tuple[str, float]:
    """``/createad moringa shampoo $40`` -> ("moringa shampoo", 40.0)."""
    if len(args) > 1 and (amount := parse_amount(args[-1])) is not None:
        return " ".join(args[:-1]), amount
    return " ".join(args), DEFAULT_DAILY_BUDGET


class CommandDispatcher:
    """Runs one-shot slash commands.

    Privileged commands are admin-only and go through the confirmation gate;
    they run from ``execute_confirmed`` once the user accepts.
    """

    def __init__(self, deps: WorkflowDeps, gate: ConfirmationGate, config: Config):
        self.deps = deps
        self.gate = gate
        self.config = config

    def _require_admin(self, user_id: str, command: CommandName) -> None:
        if not self.config.is_admin(user_id):
            raise Unauthorized(user_id, command.value)

    async def dispatch(self, user_id: str, command: ParsedCommand) -> StepResult:
        try:
            return await self._dispatch(user_id, command)
        except Unauthorized as e:
            _logger.warning("Denied %s", e)
            return StepResult().say(DENIED)
        except CollaboratorError as e:
            _logger.warning("/%s failed for %s: %s", command.raw_name, user_id, e)
            return StepResult().say(f"⚠️ {e}")

    async def _dispatch(self, user_id: str, command: ParsedCommand) -> StepResult:
        name = command.name
        match name:
            case CommandName.CREATE_AD | CommandName.PAUSE | CommandName.RESUME | CommandName.BUDGET:
                self._require_admin(user_id, name)
                if error := self._validate(command):
                    return StepResult().say(error)
                return await self._request_confirmation(user_id, command)
            case CommandName.PRODUCTS:
                _, reply = await list_catalog(self.deps, user_id)
                return StepResult().say(reply)
            case CommandName.PRODUCT:
                if not command.args:
                    return StepResult().say(USAGE[name])
                selection = await select_product(self.deps, user_id, command.arg_text)
                if selection.product is None:
                    return StepResult().say(selection.reply)
                return StepResult().say(prompts.product_details(selection.product))
            case CommandName.IMAGE | CommandName.VIDEO:
                if not command.args:
                    return StepResult().say(USAGE[name])
                kind = MediaKind.VIDEO if name is CommandName.VIDEO else MediaKind.IMAGE
                return await self._generate(user_id, command.arg_text, kind)
            case CommandName.CAMPAIGNS:
                campaigns = await self.deps.ads.list_campaigns()
                if not campaigns:
                    return StepResult().say("📊 No campaigns found.")
                lines = "\n".join(f"• {c.summary_line()}" for c in campaigns)
                return StepResult().say(f"📊 *Campaigns:*\n\n{lines}")
            case CommandName.UNKNOWN:
                return StepResult().say(f"❓ Unknown command /{command.raw_name}. Say 'menu' for options.")
            case _:
                assert_never(name)

    def _validate(self, command: ParsedCommand) -> str | None:
        args = command.args
        match command.name:
            case CommandName.CREATE_AD:
                ok = bool(args) and bool(split_product_budget(args)[0])
            case CommandName.PAUSE | CommandName.RESUME:
                ok = len(args) == 1
            case CommandName.BUDGET:
                ok = len(args) == 2 and parse_amount(args[1]) is not None
            case _:
                ok = True
        return None if ok else USAGE[command.name]

    async def _request_confirmation(self, user_id: str, command: ParsedCommand) -> StepResult:
        displaced = await self.gate.request_confirmation(user_id, command.name.value, command.args)
        result = StepResult()
        if displaced is not None:
            result.say(f"⚠️ Your earlier request {displaced.describe()} was discarded.")
        action = " ".join([f"/{command.name.value}", *command.args])
        return result.say(f"⚠️ Reply {self.gate.accept_token} to confirm {action}. Anything else cancels.")

    async def _generate(self, user_id: str, product_text: str, kind: MediaKind) -> StepResult:
        selection = await select_product(self.deps, user_id, product_text)
        if selection.product is None:
            return StepResult().say(selection.reply)
        product = selection.product
        try:
            asset = await generate_media(self.deps, user_id, kind, MediaRequest(product=product))
        except CollaboratorError as e:
            return StepResult().say(f"⚠️ Media generation failed: {e}")
        return StepResult(messages=asset_messages(asset, f"✅ {product.name}"))

    async def execute_confirmed(self, user_id: str, confirmed: Confirmed) -> StepResult:
        try:
            name = CommandName(confirmed.command)
            self._require_admin(user_id, name)
            return await self._execute(user_id, name, tuple(confirmed.args))
        except Unauthorized as e:
            _logger.warning("Denied %s", e)
            return StepResult().say(DENIED)
        except CollaboratorError as e:
            _logger.warning("/%s failed for %s: %s", confirmed.command, user_id, e)
            return StepResult().say(f"❌ /{confirmed.command} failed: {e}")

    async def _execute(self, user_id: str, name: CommandName, args: tuple[str, ...]) -> StepResult:
        match name:
            case CommandName.PAUSE:
                await self.deps.ads.set_status(args[0], "PAUSED")
                return StepResult().say(f"⏸️ Campaign {args[0]} paused.")
            case CommandName.RESUME:
                await self.deps.ads.set_status(args[0], "ACTIVE")
                return StepResult().say(f"▶️ Campaign {args[0]} is active.")
            case CommandName.BUDGET:
                amount = parse_amount(args[1])
                await self.deps.ads.set_daily_budget(args[0], amount)
                return StepResult().say(f"💰 Campaign {args[0]} budget set to {format_money(amount)}/day.")
            case CommandName.CREATE_AD:
                return await self._create_ad(user_id, *split_product_budget(args))
            case _:
                return StepResult().say(f"❓ /{name.value} does not need confirmation.")

    async def _create_ad(self, user_id: str, product_text: str, budget: float) -> StepResult:
        selection = await select_product(self.deps, user_id, product_text)
        if selection.product is None:
            return StepResult().say(selection.reply)
        product = selection.product
        spec = CampaignSpec(
            name=f"{product.name} - Sales",
            objective=DEFAULT_OBJECTIVE.api_value,
            daily_budget=budget,
            product=product,
            ad_copy=AdCopy.default_for(product),
        )
        result = await self.deps.ads.create_campaign(spec)
        self.deps.channel.publish(
            CampaignCreated(user_id=user_id, campaign_id=result.campaign_id, name=spec.name, daily_budget=budget)
        )
        return StepResult().say(
            f"✅ Campaign {result.campaign_id} created for {product.name} at {format_money(budget)}/day (PAUSED)."
        )
