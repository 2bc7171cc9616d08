import re
from dataclasses import dataclass
from datetime import datetime

from adpilot.constants import DEFAULT_DAILY_BUDGET

_LEADING_DIGIT_RE = re.compile(r"^\s*(\d)")
# "40", "12.50" or "1,500"
AMOUNT_PATTERN = r"(?:\d{1,3}(?:,\d{3})+|\d+)(?:\.\d+)?"
_AMOUNT_RE = re.compile(rf"\$?({AMOUNT_PATTERN})")
_DATE_RE = re.compile(r"\b\d{1,2}/\d{1,2}/\d{4}\b")

DATE_FORMAT = "%d/%m/%Y"
ONGOING = "ongoing"


def to_amount(text: str) -> float:
    return float(text.replace(",", ""))


def leading_number(text: str) -> int | None:
    """Menu choice from the first character, so "2 please" and "2." both pick 2."""
    m = _LEADING_DIGIT_RE.match(text)
    return int(m.group(1)) if m else None


@dataclass(frozen=True)
class ObjectiveOption:
    number: int
    api_value: str
    label: str
    keywords: tuple[str, ...]


OBJECTIVES = (
    ObjectiveOption(1, "CONVERSIONS", "Sales (Conversions)", ("sales", "sale", "conversion", "purchase")),
    ObjectiveOption(2, "LINK_CLICKS", "Traffic (Website visits)", ("traffic", "website", "visits", "clicks")),
    ObjectiveOption(3, "REACH", "Awareness (Brand reach)", ("awareness", "reach", "brand")),
    ObjectiveOption(4, "POST_ENGAGEMENT", "Engagement (Likes, comments)", ("engagement", "likes", "comments")),
)
DEFAULT_OBJECTIVE = OBJECTIVES[0]


def parse_objective(text: str) -> ObjectiveOption:
    number = leading_number(text)
    lower = text.lower()
    for option in OBJECTIVES:
        if number == option.number or any(k in lower for k in option.keywords):
            return option
    return DEFAULT_OBJECTIVE


@dataclass(frozen=True)
class BudgetSchedule:
    budget: float
    duration: str
    start_date: str | None = None
    end_date: str | None = None


def _parse_date(text: str) -> datetime | None:
    try:
        return datetime.strptime(text, DATE_FORMAT)
    except ValueError:
        return None


def parse_budget_schedule(text: str, default_budget: float | None = None) -> BudgetSchedule:
    """Daily budget plus an optional ``dd/mm/yyyy`` range.

    Anything unreadable falls back: the budget to ``default_budget`` (or the
    global default), the schedule to ongoing.
    """
    fallback = default_budget or DEFAULT_DAILY_BUDGET
    lower = text.lower()
    dates = _DATE_RE.findall(text)

    budget = fallback
    if m := _AMOUNT_RE.search(_DATE_RE.sub(" ", text)):
        amount = to_amount(m.group(1))
        if amount > 0:
            budget = amount

    if ONGOING in lower or "default" in lower or len(dates) < 2:
        return BudgetSchedule(budget=budget, duration=ONGOING)

    start, end = _parse_date(dates[0]), _parse_date(dates[1])
    if start is None or end is None or end < start:
        return BudgetSchedule(budget=budget, duration=ONGOING)
    return BudgetSchedule(
        budget=budget,
        duration=f"{dates[0]} to {dates[1]}",
        start_date=start.date().isoformat(),
        end_date=end.date().isoformat(),
    )


_STANDALONE_AMOUNT_RE = re.compile(rf"^\$?({AMOUNT_PATTERN})(?:\s*/\s*day)?$", re.IGNORECASE)


def parse_amount(text: str) -> float | None:
    """A lone positive amount such as "40", "$40" or "$40/day"."""
    m = _STANDALONE_AMOUNT_RE.match(text.strip())
    if not m:
        return None
    amount = to_amount(m.group(1))
    return amount if amount > 0 else None
