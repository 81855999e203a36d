"""Domain types for expenses and per-user budget profiles.

Expense documents arrive from the record store as loose mappings.  They are
turned into :class:`ExpenseRecord` instances here so the rest of the package
can rely on a single notion of a *well-formed* record: one carrying a truthy
amount, timestamp and category.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union


class Category(str, Enum):
    """The closed set of spending categories."""

    FOOD = 'Food'
    TRANSPORT = 'Transport'
    ENTERTAINMENT = 'Entertainment'
    BILLS = 'Bills'
    OTHER = 'Other'

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, value: Any) -> Union['Category', str, None]:
        """Return the matching member, the literal text for unknown labels, or None."""
        if value is None:
            return None
        if isinstance(value, cls):
            return value
        text = str(value)
        if not text:
            return None
        try:
            return cls(text)
        except ValueError:
            return text


CATEGORIES: tuple = tuple(Category)


def _as_amount(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        amount = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(amount):
        return None
    return amount


def _as_timestamp(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        ts = int(value)
    except (TypeError, ValueError):
        return None
    return ts


@dataclass(frozen=True)
class ExpenseRecord:
    """A single logged expense.

    ``timestamp`` is milliseconds since the epoch.  ``category`` is a
    :class:`Category` member, or the raw label when the store holds a value
    outside the fixed set.
    """

    id: Optional[str]
    name: str
    amount: Optional[float]
    category: Union[Category, str, None]
    timestamp: Optional[int]

    @property
    def is_well_formed(self) -> bool:
        return bool(self.amount) and bool(self.timestamp) and bool(self.category)

    @property
    def is_exportable(self) -> bool:
        return self.is_well_formed and bool(self.name)

    @classmethod
    def from_document(cls, doc: Mapping[str, Any], record_id: Optional[str] = None) -> 'ExpenseRecord':
        return cls(
            id=record_id if record_id is not None else doc.get('id'),
            name=str(doc.get('name') or ''),
            amount=_as_amount(doc.get('amount')),
            category=Category.parse(doc.get('category')),
            timestamp=_as_timestamp(doc.get('timestamp')),
        )

    def to_document(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'amount': self.amount,
            'category': str(self.category) if self.category is not None else None,
            'timestamp': self.timestamp,
        }


RecordLike = Union[ExpenseRecord, Mapping[str, Any]]


def coerce_record(item: RecordLike) -> ExpenseRecord:
    if isinstance(item, ExpenseRecord):
        return item
    return ExpenseRecord.from_document(item)


def well_formed(records: Iterable[RecordLike]) -> List[ExpenseRecord]:
    """Drop records missing an amount, timestamp or category."""
    return [r for r in map(coerce_record, records) if r.is_well_formed]


def budget_value(budget: Any) -> Optional[float]:
    """Interpret a stored or entered budget; ``None`` means "not set".

    Zero, negative, non-numeric and non-finite values all count as unset.
    """
    amount = _as_amount(budget)
    if amount is None or amount <= 0:
        return None
    return amount


@dataclass
class UserBudgetProfile:
    """Per-user budget document.

    ``last_budget_month`` is the calendar month (1-12) in which ``budget`` was
    last confirmed.  ``None`` means the profile has never been through a
    rollover check.
    """

    budget: float = 0.0
    last_budget_month: Optional[int] = None
    previous_budget: float = 0.0
    email: str = ''
    username: str = ''
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_document(cls, doc: Optional[Mapping[str, Any]]) -> Optional['UserBudgetProfile']:
        if doc is None:
            return None
        known = {'budget', 'lastBudgetMonth', 'previousBudget', 'email', 'username'}
        last_month = doc.get('lastBudgetMonth')
        return cls(
            budget=_as_amount(doc.get('budget')) or 0.0,
            last_budget_month=int(last_month) if last_month is not None else None,
            previous_budget=_as_amount(doc.get('previousBudget')) or 0.0,
            email=str(doc.get('email') or ''),
            username=str(doc.get('username') or ''),
            extra={k: v for k, v in doc.items() if k not in known},
        )

    def to_document(self) -> Dict[str, Any]:
        doc = dict(self.extra)
        doc.update({
            'budget': self.budget,
            'lastBudgetMonth': self.last_budget_month,
            'previousBudget': self.previous_budget,
            'email': self.email,
            'username': self.username,
        })
        return doc

    def evolve(self, **changes: Any) -> 'UserBudgetProfile':
        return replace(self, **changes)
