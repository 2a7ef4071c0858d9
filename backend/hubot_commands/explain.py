"""
Explanations of products and concepts backed by a Google spreadsheet.

The spreadsheet holds an ``Explain`` sheet laid out as::

    | Explain | Alias      | Definition                        | PM          | Team | Contact | Link            |
    | ------- | ---------- | --------------------------------- | ----------- | ---- | ------- | --------------- |
    | MAAS    | metal,maas | MAAS is a fast provisioning tool. | Anton Smith | ...  | ~MAAS   | https://maas.io |

and a ``Why`` sheet with a single ``why`` column.
"""
from __future__ import annotations

from typing import Iterable, List, Optional, Tuple
import logging
import random
import re

import anyio
from jinja2 import Template

from .errors import BackendUnavailableError, WhyNotFoundError
from .sheets import SheetRow, SheetSource

logger = logging.getLogger(__name__)

EXPLAIN_SHEET = "Explain"
WHY_SHEET = "Why"
WHY_QUERY = "why"

EXPLAIN_USAGE = (
    "Format: `/explain <concept>` eg. `/explain MAAS`. Add your own "
    "[here](https://docs.google.com/spreadsheets/d/1nNk4typDnOfDEYRzlEjtd58zk-aOd3_NNp6eufthZHM/edit#gid=2064544629)"
)
WHY_NOT_FOUND = "There is no why to share yet. Add one to the Why sheet of the explain spreadsheet."
EXPLAIN_BACKEND_FAILURE = "Sorry, the explain spreadsheet can't be reached right now. Please try again later."

HELP_PATTERN = re.compile(r"^(-)*h(elp)?$", re.IGNORECASE)

# (column, label) pairs shown under the definition when filled in
OPTIONAL_FIELDS: Tuple[Tuple[str, str], ...] = (
    ("PM", "PM"),
    ("Team", "Team"),
    ("Contact", "Contact channel"),
    ("Link", "Read more"),
)

TABLE_TEMPLATE = Template(
    "| Title | Description |\n"
    "|--|--|\n"
    "{% for label, value in rows %}"
    "| {{ label }} | {{ value }} |{% if not loop.last %}\n{% endif %}"
    "{% endfor %}"
)


def normalize_query(query: Optional[str]) -> str:
    return (query or "").strip().lower()


def is_help_query(text: Optional[str]) -> bool:
    """True for an empty query and for h, help, -h, --help and the like."""
    if not text or not text.strip():
        return True
    return bool(HELP_PATTERN.match(text.strip()))


def sanitize_value(value: Optional[str]) -> str:
    return re.sub(r"[\r\n]", "", value or "").strip()


def value_is_empty(value: Optional[str]) -> bool:
    return not value or value.strip().lower() in ("", "n/a")


def _alias_keywords(alias: str) -> List[str]:
    return [keyword.strip().lower() for keyword in alias.split(",")]


def row_matches(row: SheetRow, query: str) -> bool:
    if not query:
        return False
    if normalize_query(row.get("Explain")) == query:
        return True
    return query in _alias_keywords(row.get("Alias"))


def find_explanation(rows: Iterable[SheetRow], query: str) -> Optional[SheetRow]:
    """Return the first row whose Explain value or one of whose aliases equals
    ``query``, or None when nothing matches.
    """
    search_query = normalize_query(query)
    return next((row for row in rows if row_matches(row, search_query)), None)


def format_row_as_table(row: SheetRow) -> str:
    table_rows = [(row.get("Explain"), row.get("Definition"))]
    for column, label in OPTIONAL_FIELDS:
        if not value_is_empty(row.get(column)):
            table_rows.append((label, row.get(column)))
    return TABLE_TEMPLATE.render(
        rows=[(sanitize_value(label), sanitize_value(value)) for label, value in table_rows]
    )


def pick_why(rows: List[SheetRow], rng: random.Random) -> SheetRow:
    if not rows:
        raise WhyNotFoundError("The Why sheet has no rows")
    return rows[rng.randrange(len(rows))]


class ExplainService:
    """Answers explain queries from the spreadsheet behind ``source``."""

    def __init__(self, source: SheetSource, rng: Optional[random.Random] = None):
        self.source = source
        self.rng = rng or random.Random()

    async def _load_rows(self, title: str) -> List[SheetRow]:
        return await anyio.to_thread.run_sync(self.source.get_rows, title)

    async def fetch_why(self) -> str:
        rows = await self._load_rows(WHY_SHEET)
        try:
            row = pick_why(rows, self.rng)
        except WhyNotFoundError:
            logger.warning("No row to pick from the %s sheet", WHY_SHEET)
            return WHY_NOT_FOUND
        why = row.get("why")
        if not why.strip():
            logger.warning("Row %s of the %s sheet has no why", row.row_index, WHY_SHEET)
            return WHY_NOT_FOUND
        return why

    async def fetch_explanation(self, query: str) -> str:
        """
        Explain a product or concept.

        Returns the markdown table for the matching row, a random entry of
        the Why sheet for "why", or the usage text when nothing matches.
        Raises BackendUnavailableError when the spreadsheet can't be read.
        """
        search_query = normalize_query(query)
        if not search_query:
            return EXPLAIN_USAGE
        if search_query == WHY_QUERY:
            return await self.fetch_why()

        rows = await self._load_rows(EXPLAIN_SHEET)
        row = find_explanation(rows, search_query)
        if row is None:
            return EXPLAIN_USAGE
        return format_row_as_table(row)

    async def answer(self, query: str) -> str:
        """fetch_explanation, with backend failures turned into a chat reply."""
        try:
            return await self.fetch_explanation(query)
        except BackendUnavailableError as exc:
            logger.error("Explain lookup for %r failed: %s", query, exc)
            return EXPLAIN_BACKEND_FAILURE
