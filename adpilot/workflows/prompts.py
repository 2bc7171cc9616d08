from collections.abc import Sequence

from adpilot.catalog.models import Product
from adpilot.integrations.models import Audience, GeneratedAsset, MediaRequest
from adpilot.messages import format_money
from adpilot.workflows.models import CampaignDraft
from adpilot.workflows.parsing import DEFAULT_OBJECTIVE, OBJECTIVES

MAIN_MENU = """👋 *Hello! I'm your Campaign Assistant.*

*What would you like to do today?*

1️⃣ *CREATE CAMPAIGN* - generate media, create campaign, launch
2️⃣ *GENERATE MEDIA* - images/videos for your products
3️⃣ *MANAGE CAMPAIGNS* - view, pause, change budgets
4️⃣ *ANALYZE PERFORMANCE* - stats and recommendations
5️⃣ *MANAGE PRODUCTS* - browse the catalog
6️⃣ *QUICK ACTIONS* - common shortcuts

Reply with the number (1-6) or describe what you want to do!"""

MENU_RETRY = "⚠️ Please reply with a number (1-6) or say 'menu' to see options again."

QUICK_ACTIONS = """⚡ *QUICK ACTIONS*

• "create campaign for shampoo $50/day"
• "generate image"
• "list products"
• "image: beach flat lay | find=\"moringa shampoo\" | ar=16:9"
• "video: slow pour close-up | product=12 | dur=6"

Or use commands:
• /campaigns
• /products
• /product <name>
• /image <product>
• /video <product>
• /createad <product> <budget>"""

MANAGE_CAMPAIGNS_HINT = """📊 *MANAGE CAMPAIGNS*

Use /campaigns to list all campaigns.
/pause <id>, /resume <id> and /budget <id> <amount> change a campaign (you'll be asked to confirm)."""

ANALYZE_PERFORMANCE_HINT = """📈 *ANALYZE PERFORMANCE*

Performance reports live in Meta Ads Manager.
Use /campaigns to see what is running and its daily budget."""

CANT_GO_BACK = "⚠️ Can't go back further. Say 'menu' to return to main menu."
GOING_BACK = "⬅️ Going back..."
CANCELLED = "❌ Cancelled. Say 'menu' to start over."

PRODUCT_EXAMPLES = 'Examples:\n• "shampoo"\n• "moringa conditioner"\n• "list products"'

MEDIA_OPTIONS = """*Options:*
1️⃣ Generate image pack (Square + Portrait + Story)
2️⃣ Generate single image
3️⃣ Generate video
4️⃣ Skip (use existing media)

Reply 1-4 or describe what you want"""

EDIT_OPTIONS = """What would you like to edit?

• "product" - Change product
• "media" - Regenerate media
• "objective" - Change objective
• "budget" - Change budget"""


def product_list(products: Sequence[Product]) -> str:
    lines = [f"{i}. {p.summary_line()}" for i, p in enumerate(products, 1)]
    return "📦 *Available Products:*\n\n" + "\n".join(lines) + "\n\nType the product name or number to select."


def disambiguation(query: str, products: Sequence[Product]) -> str:
    lines = [f"{i}. {p.summary_line()}" for i, p in enumerate(products, 1)]
    return f'🤔 Several products match "{query}":\n\n' + "\n".join(lines) + "\n\nReply with the number."


def product_not_found(query: str) -> str:
    return f'❌ Product not found: "{query}"\n\nSay "list products" to see all products, or try a different name.'


def product_details(product: Product) -> str:
    lines = [f"📦 *{product.name}*"]
    if product.price:
        lines.append(f"💰 Price: ${product.price}")
    if product.sku:
        lines.append(f"🏷️ SKU: {product.sku}")
    if product.description:
        lines.append(f"\n{product.description}")
    if product.permalink:
        lines.append(f"\n🔗 {product.permalink}")
    return "\n".join(lines)


def product_selected(product: Product) -> str:
    msg = f"✅ *Product: {product.name}*"
    if product.price:
        msg += f"\n💰 Price: ${product.price}"
    return msg


def campaign_product_step(draft: CampaignDraft) -> str:
    msg = "🚀 *CREATE CAMPAIGN*\n\n*Step 1/5: Which product are you promoting?*\n"
    msg += '📦 Type product name or say "list products"\n\n'
    if draft.product_query:
        msg += f'Detected: "{draft.product_query}"\n\n'
        msg += 'Is this correct? Reply "yes" to continue, or type a different product name.'
    else:
        msg += PRODUCT_EXAMPLES
    return msg


def campaign_media_step(draft: CampaignDraft) -> str:
    name = draft.product.name if draft.product else "your product"
    return f"*Step 2/5: Generate media for {name}?*\n🎨 I can create images/videos for this product\n\n{MEDIA_OPTIONS}"


def objective_step() -> str:
    options = "\n".join(f"{o.number}️⃣ {o.label}" for o in OBJECTIVES)
    return f"*Step 3/5: Campaign objective?*\nWhat's your goal?\n\n{options}\n\nReply 1-4 or describe your goal"


def budget_step(draft: CampaignDraft) -> str:
    msg = "*Step 4/5: Budget & Schedule*\n"
    if draft.budget:
        msg += f"💰 Daily budget: {format_money(draft.budget)} (detected)\n"
    else:
        msg += "💰 Daily budget: $___\n"
    msg += '📅 Duration: dd/mm/yyyy to dd/mm/yyyy, or "ongoing"\n\n'
    msg += 'Reply with budget and dates, or say "use defaults"'
    return msg


def _media_line(draft: CampaignDraft) -> str:
    if draft.media is None:
        return "• Media: None (will need to add later)"
    return f"• Media: {draft.media.describe()} ✅"


def review_step(draft: CampaignDraft, default_budget: float) -> str:
    budget = format_money(draft.budget or default_budget)
    audience = draft.audience or Audience()
    lines = [
        "*Step 5/5: Review & Create*",
        "📋 *Campaign Summary:*",
        "",
        f"• Product: {draft.product.name if draft.product else 'N/A'}",
        _media_line(draft),
        f"• Objective: {draft.objective_label or DEFAULT_OBJECTIVE.label}",
        f"• Budget: {budget}/day",
        f"• Duration: {draft.duration or 'ongoing'}",
        f"• Audience: AI-generated ({audience.describe()})",
    ]
    if draft.ad_copy:
        lines.append(f"• Headline: {draft.ad_copy.headline}")
    lines += [
        "",
        "Ready to create?",
        "1️⃣ Yes, create campaign (paused)",
        "2️⃣ Edit something",
        "3️⃣ Cancel",
        "",
        "Reply 1-3",
    ]
    return "\n".join(lines)


def media_product_step() -> str:
    return f'🎨 *GENERATE MEDIA*\n\n*Step 1/2: Which product?*\n📦 Type product name or say "list products"\n\n{PRODUCT_EXAMPLES}'


def media_kind_step(product: Product | None) -> str:
    name = product.name if product else "your product"
    return (
        f"*Step 2/2: What should I create for {name}?*\n\n"
        "1️⃣ Image pack (Square + Portrait + Story)\n"
        "2️⃣ Single image\n"
        "3️⃣ Video\n\n"
        "Reply 1-3"
    )


def media_failed(error: Exception) -> str:
    return f'⚠️ Media generation failed: {error}\n\nSay "skip" to continue without media, or try again.'


NO_RECENT_MEDIA = "❌ No recent media found. Generate an image or video first!"

EDIT_UNSUPPORTED = """✏️ Editing an existing image isn't supported. Describe the image you want instead:

image: <prompt> | product=<id> | ar=1:1"""

CONTENT_USAGE = 'Try: image: <prompt> | product=123 or video: <prompt> | find="product name"'


def content_caption(asset: GeneratedAsset, request: MediaRequest) -> str:
    lines = [f"✨ {'Video' if asset.is_video else 'Image'} generated!"]
    if product := request.product:
        lines.append(f"📦 {product.name} - {product.permalink}" if product.permalink else f"📦 {product.name}")
    if request.aspect_ratio:
        lines.append(f"📐 {request.aspect_ratio}")
    lines += ["", "💡 Reply with:", '• "use" - Use in campaign']
    if not asset.is_video:
        lines.append('• "make video" - Create video version')
    lines.append('• "regenerate" - Create another')
    return "\n".join(lines)


def content_failed(error: Exception) -> str:
    return f"❌ Error: {error}\n\n{CONTENT_USAGE}"


def content_ambiguous(query: str, products: Sequence[Product]) -> str:
    lines = "\n".join(f"• {p.name} (product={p.id})" for p in products)
    return f'🤔 Several products match "{query}":\n\n{lines}\n\nRepeat the request with product=<id>.'


def media_reused(asset: GeneratedAsset) -> str:
    return f"✅ Using your latest media ({asset.describe()}) for a new campaign."


def media_kept(asset: GeneratedAsset) -> str:
    return f'🎨 Using your generated media ({asset.describe()}). Say "media" at review to change it.'


def media_ready(product: Product) -> str:
    return f'Want to advertise {product.name}? Reply "use" to start a campaign with this media, or say "menu".'
