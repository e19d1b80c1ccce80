"""
Category Vocabulary

The closed lists of category labels shown to the model in every
extraction prompt.

CRITICAL: These names are a wire format. Prompts embed them verbatim and
downstream consumers match on them by exact string equality, so they must
not be translated, re-cased or re-ordered.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Category(BaseModel):
    """A single category label with its display emoji."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)
    emoji: str = Field(..., min_length=1)


FALLBACK_CATEGORY = "Autre"


EXPENSE_CATEGORIES: tuple[Category, ...] = (
    Category(name="Alimentation", emoji="🍔"),
    Category(name="Transport", emoji="🚗"),
    Category(name="Logement", emoji="🏠"),
    Category(name="Factures", emoji="🧾"),
    Category(name="Santé", emoji="💊"),
    Category(name="Divertissement", emoji="🎬"),
    Category(name="Shopping", emoji="🛍️"),
    Category(name="Éducation", emoji="🎓"),
    Category(name="Famille", emoji="👨‍👩‍👧‍👦"),
    Category(name="Animaux", emoji="🐾"),
    Category(name=FALLBACK_CATEGORY, emoji="➕"),
)

INCOME_CATEGORIES: tuple[Category, ...] = (
    Category(name="Salaire", emoji="💰"),
    Category(name="Vente", emoji="📈"),
    Category(name="Bonus", emoji="🎁"),
    Category(name="Cadeau", emoji="🎉"),
    Category(name="Remboursement", emoji="💸"),
    Category(name=FALLBACK_CATEGORY, emoji="➕"),
)


class CategoryVocabulary(BaseModel):
    """
    Expense and income vocabularies used as prompt context.

    Each list is closed and scoped to its kind: an expense is checked
    against the expense list only, an income against the income list only.
    The model is instructed, not forced, to stay within these lists.
    """

    model_config = ConfigDict(frozen=True)

    expense: tuple[Category, ...] = EXPENSE_CATEGORIES
    income: tuple[Category, ...] = INCOME_CATEGORIES
    fallback: str = FALLBACK_CATEGORY

    @property
    def expense_names(self) -> list[str]:
        return [c.name for c in self.expense]

    @property
    def income_names(self) -> list[str]:
        return [c.name for c in self.income]

    def prompt_list(self, kind: str) -> str:
        """Comma-separated names for interpolation into a prompt."""
        return ", ".join(self.names_for(kind))

    def names_for(self, kind: str) -> list[str]:
        if kind == "expense":
            return self.expense_names
        if kind == "income":
            return self.income_names
        raise ValueError(f"Unknown category kind: {kind}")

    def contains(self, kind: str, name: str) -> bool:
        return name in self.names_for(kind)

    def emoji_for(self, name: str) -> Optional[str]:
        for category in (*self.expense, *self.income):
            if category.name == name:
                return category.emoji
        return None


DEFAULT_VOCABULARY = CategoryVocabulary()
