import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path

from cardpick.domain.models import CardOffer, MerchantRule, SearchFilters
from cardpick.engine.normalizer import LIKE_ESCAPE, NormalizedQuery, escape_like
from cardpick.repository.catalog_store import CatalogSnapshot

logger = logging.getLogger(__name__)

_CARD_ORDER = "ORDER BY c.reward_rate DESC, c.annual_fee ASC, c.id ASC"
_ESCAPE = f"ESCAPE '{LIKE_ESCAPE}'"


class SqliteCatalogStore:
    """Catalog store persisted in SQLite.

    The database is seeded from a snapshot once and re-seeded only when the
    stored ``user_version`` is older than the snapshot's schema version.
    """

    def __init__(self, snapshot: CatalogSnapshot, path: str = "cardpick.db") -> None:
        self.path = Path(path)
        self.snapshot = snapshot
        self._migrate_if_needed()

    @contextmanager
    def connect(self):
        conn = sqlite3.connect(self.path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        finally:
            conn.close()

    def schema_version(self) -> int:
        with self.connect() as conn:
            return conn.execute("PRAGMA user_version").fetchone()[0]

    def _migrate_if_needed(self) -> None:
        current = self.schema_version()
        target = self.snapshot.schema_version
        if current >= target:
            logger.debug("Catalog database %s already at v%s", self.path, current)
            return

        with self.connect() as conn:
            conn.executescript(
                """
                DROP TABLE IF EXISTS merchant_rules;
                DROP TABLE IF EXISTS card_offers;

                CREATE TABLE card_offers (
                    id INTEGER PRIMARY KEY,
                    name TEXT NOT NULL,
                    issuer TEXT NOT NULL,
                    category TEXT NOT NULL,
                    reward_type TEXT NOT NULL,
                    reward_rate REAL NOT NULL,
                    annual_fee INTEGER NOT NULL,
                    signup_bonus TEXT NOT NULL,
                    best_for TEXT NOT NULL,
                    created_at TEXT NOT NULL
                );

                CREATE INDEX idx_card_offers_category ON card_offers(category);
                CREATE INDEX idx_card_offers_reward_type ON card_offers(reward_type);
                CREATE INDEX idx_card_offers_annual_fee ON card_offers(annual_fee);
                CREATE INDEX idx_card_offers_issuer ON card_offers(issuer);

                CREATE TABLE merchant_rules (
                    id INTEGER PRIMARY KEY,
                    merchant TEXT NOT NULL COLLATE NOCASE,
                    card_id INTEGER NOT NULL,
                    reward_value REAL NOT NULL,
                    reward_unit TEXT NOT NULL DEFAULT '%',
                    notes TEXT,
                    effective_yield REAL,
                    created_at TEXT NOT NULL,
                    FOREIGN KEY(card_id) REFERENCES card_offers(id)
                );

                CREATE INDEX idx_merchant_rules_merchant ON merchant_rules(merchant);
                CREATE INDEX idx_merchant_rules_card_id ON merchant_rules(card_id);
                """
            )
            self._seed(conn)
            conn.execute(f"PRAGMA user_version = {int(target)}")
        logger.info("Seeded catalog database %s from v%s to v%s", self.path, current, target)

    def _seed(self, conn: sqlite3.Connection) -> None:
        conn.executemany(
            """
            INSERT INTO card_offers(
                id, name, issuer, category, reward_type, reward_rate,
                annual_fee, signup_bonus, best_for, created_at
            )
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            [
                (
                    c.id,
                    c.name,
                    c.issuer,
                    c.category,
                    c.reward_type,
                    c.reward_rate,
                    c.annual_fee,
                    c.signup_bonus,
                    c.best_for,
                    c.created_at.isoformat(),
                )
                for c in self.snapshot.cards
            ],
        )
        conn.executemany(
            """
            INSERT INTO merchant_rules(
                id, merchant, card_id, reward_value, reward_unit, notes,
                effective_yield, created_at
            )
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            [
                (
                    r.id,
                    r.merchant,
                    r.card_id,
                    r.reward_value,
                    r.reward_unit,
                    r.notes,
                    r.effective_yield,
                    r.created_at.isoformat(),
                )
                for r in self.snapshot.rules
            ],
        )

    def list_cards(self, query: NormalizedQuery, filters: SearchFilters) -> list[CardOffer]:
        conditions: list[str] = []
        params: list[object] = []

        if not query.is_empty:
            conditions.append(
                f"(c.name LIKE ? {_ESCAPE} OR c.issuer LIKE ? {_ESCAPE} "
                f"OR c.best_for LIKE ? {_ESCAPE} OR c.signup_bonus LIKE ? {_ESCAPE})"
            )
            params.extend([query.like_pattern] * 4)
        if filters.category:
            conditions.append("c.category = ?")
            params.append(filters.category)
        if filters.reward_type:
            conditions.append("c.reward_type = ?")
            params.append(filters.reward_type)
        if filters.max_annual_fee is not None:
            conditions.append("c.annual_fee <= ?")
            params.append(filters.max_annual_fee)
        if filters.min_reward_rate is not None:
            conditions.append("c.reward_rate >= ?")
            params.append(filters.min_reward_rate)

        where = f"WHERE {' AND '.join(conditions)}" if conditions else ""
        sql = f"SELECT c.* FROM card_offers c {where} {_CARD_ORDER}"
        with self.connect() as conn:
            rows = conn.execute(sql, params).fetchall()
        return [CardOffer.model_validate(dict(row)) for row in rows]

    def list_merchant_matches(self, query: NormalizedQuery) -> list[tuple[MerchantRule, CardOffer]]:
        if query.is_empty:
            return []
        with self.connect() as conn:
            rows = conn.execute(
                f"""
                SELECT
                    m.id AS rule_id,
                    m.merchant,
                    m.card_id,
                    m.reward_value,
                    m.reward_unit,
                    m.notes,
                    m.effective_yield,
                    m.created_at AS rule_created_at,
                    c.*
                FROM merchant_rules m
                JOIN card_offers c ON c.id = m.card_id
                WHERE m.merchant LIKE ? {_ESCAPE}
                ORDER BY m.id ASC
                """,
                (query.like_pattern,),
            ).fetchall()

        matches = []
        for row in rows:
            rule = MerchantRule(
                id=row["rule_id"],
                merchant=row["merchant"],
                card_id=row["card_id"],
                reward_value=row["reward_value"],
                reward_unit=row["reward_unit"],
                notes=row["notes"],
                effective_yield=row["effective_yield"],
                created_at=row["rule_created_at"],
            )
            card = CardOffer.model_validate(
                {key: row[key] for key in CardOffer.model_fields}
            )
            matches.append((rule, card))
        return matches

    def list_best_for_matches(self, query: NormalizedQuery) -> list[CardOffer]:
        if query.is_empty:
            return []
        with self.connect() as conn:
            rows = conn.execute(
                f"SELECT c.* FROM card_offers c WHERE c.best_for LIKE ? {_ESCAPE} {_CARD_ORDER}",
                (query.like_pattern,),
            ).fetchall()
        return [CardOffer.model_validate(dict(row)) for row in rows]

    def list_best_for_category(self, category: str, limit: int) -> list[CardOffer]:
        with self.connect() as conn:
            rows = conn.execute(
                f"""
                SELECT c.* FROM card_offers c
                WHERE c.category = ? OR c.best_for LIKE ? {_ESCAPE}
                {_CARD_ORDER}
                LIMIT ?
                """,
                (category, f"%{escape_like(category)}%", limit),
            ).fetchall()
        return [CardOffer.model_validate(dict(row)) for row in rows]

    def list_categories(self) -> list[str]:
        with self.connect() as conn:
            rows = conn.execute("SELECT DISTINCT category FROM card_offers ORDER BY category").fetchall()
        return [row["category"] for row in rows]
