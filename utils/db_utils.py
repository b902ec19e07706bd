import json
import logging
import os
import uuid
from contextlib import contextmanager
from typing import Any, Dict, Generator, List, Optional

from dotenv import load_dotenv
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

load_dotenv()

logger = logging.getLogger(__name__)

SCHEMA = [
    """
    CREATE TABLE IF NOT EXISTS categories (
        id VARCHAR(32) PRIMARY KEY,
        name VARCHAR(255) NOT NULL,
        status VARCHAR(32) NOT NULL DEFAULT 'active'
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS products (
        id VARCHAR(32) PRIMARY KEY,
        name VARCHAR(255) NOT NULL,
        slug VARCHAR(255),
        description TEXT,
        category_id VARCHAR(32) REFERENCES categories (id) ON DELETE SET NULL,
        price NUMERIC(12, 2) NOT NULL DEFAULT 0,
        compare_at_price NUMERIC(12, 2),
        sku VARCHAR(64),
        quantity INTEGER NOT NULL DEFAULT 0,
        moq INTEGER NOT NULL DEFAULT 1,
        status VARCHAR(32) NOT NULL DEFAULT 'active',
        featured BOOLEAN NOT NULL DEFAULT FALSE,
        seo_title VARCHAR(255),
        seo_description TEXT,
        tags TEXT,
        metadata TEXT
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS product_images (
        id VARCHAR(32) PRIMARY KEY,
        product_id VARCHAR(32) NOT NULL REFERENCES products (id) ON DELETE CASCADE,
        url TEXT NOT NULL,
        position INTEGER NOT NULL DEFAULT 0,
        alt_text VARCHAR(255)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS product_variants (
        id VARCHAR(32) PRIMARY KEY,
        product_id VARCHAR(32) NOT NULL REFERENCES products (id) ON DELETE CASCADE,
        name VARCHAR(255),
        sku VARCHAR(64),
        price NUMERIC(12, 2) NOT NULL DEFAULT 0,
        quantity INTEGER NOT NULL DEFAULT 0,
        option1 VARCHAR(255),
        option2 VARCHAR(255),
        option3 VARCHAR(255),
        metadata TEXT
    )
    """,
]

PRODUCT_COLUMNS = [
    "name",
    "slug",
    "description",
    "category_id",
    "price",
    "compare_at_price",
    "sku",
    "quantity",
    "moq",
    "status",
    "featured",
    "seo_title",
    "seo_description",
    "tags",
    "metadata",
]
VARIANT_COLUMNS = [
    "product_id",
    "name",
    "sku",
    "price",
    "quantity",
    "option1",
    "option2",
    "option3",
    "metadata",
]
JSON_COLUMNS = ("tags", "metadata")


def new_id() -> str:
    return uuid.uuid4().hex


class PostgresClient:
    """Utility class for PostgreSQL database operations"""

    def __init__(self):
        """Initialize database connection"""
        load_dotenv()

        url = os.getenv("POSTGRES_URL")

        # Ensure URL uses correct dialect
        if url and url.startswith("postgres://"):
            url = url.replace("postgres://", "postgresql://", 1)

        self.connection_url = url
        if not self.connection_url:
            raise ValueError(
                "Database connection URL not found in environment variables"
            )

        self.engine = self._create_engine()

    def _create_engine(self) -> Engine:
        """Create SQLAlchemy engine with proper configuration"""
        return create_engine(
            self.connection_url,
            pool_pre_ping=True,
            pool_size=5,
            max_overflow=10,
            pool_timeout=30,
            pool_recycle=1800,
        )


def _encode(record: Dict[str, Any]) -> Dict[str, Any]:
    data = dict(record)
    for column in JSON_COLUMNS:
        if column in data and not isinstance(data[column], str):
            data[column] = json.dumps(data[column])
    return data


def _decode(row: Dict[str, Any]) -> Dict[str, Any]:
    for column in JSON_COLUMNS:
        if isinstance(row.get(column), str):
            row[column] = json.loads(row[column])
    if "featured" in row:
        row["featured"] = bool(row["featured"])
    return row


class ProductStore:
    """
    Product, image and variant rows.

    Every public method runs in its own session; a save that spans several
    calls is not atomic.
    """

    def __init__(self, engine: Engine):
        self.engine = engine
        self.SessionLocal = sessionmaker(
            autocommit=False, autoflush=False, bind=self.engine
        )

    @contextmanager
    def get_session(self) -> Generator:
        """
        Get database session with automatic cleanup

        Yields:
            Session: Database session
        """
        session = self.SessionLocal()
        try:
            yield session
            session.commit()
        except Exception as e:
            session.rollback()
            raise e
        finally:
            session.close()

    def execute_query(self, query: str, params: dict = None) -> list[dict[str, Any]]:
        """
        Execute a raw SQL query

        Args:
            query (str): SQL query string
            params (dict, optional): Query parameters

        Returns:
            list[dict[str, Any]]: Query results
        """
        try:
            with self.get_session() as session:
                result = session.execute(text(query), params or {})
                return [_decode(dict(row._mapping)) for row in result]
        except SQLAlchemyError as e:
            logger.error(f"Database error: {e}")
            raise

    def create_tables(self) -> None:
        with self.get_session() as session:
            for statement in SCHEMA:
                session.execute(text(statement))

    def health_check(self) -> bool:
        with self.engine.connect() as connection:
            connection.execute(text("SELECT 1"))
        return True

    def add_category(self, name: str, status: str = "active") -> str:
        category_id = new_id()
        with self.get_session() as session:
            session.execute(
                text(
                    "INSERT INTO categories (id, name, status) "
                    "VALUES (:id, :name, :status)"
                ),
                {"id": category_id, "name": name, "status": status},
            )
        return category_id

    def list_active_categories(self) -> list[dict[str, Any]]:
        return self.execute_query(
            "SELECT id, name FROM categories WHERE status = 'active' ORDER BY name"
        )

    def insert_product(self, record: Dict[str, Any]) -> str:
        product_id = new_id()
        columns = ["id"] + PRODUCT_COLUMNS
        statement = text(
            f"INSERT INTO products ({', '.join(columns)}) "
            f"VALUES ({', '.join(':' + c for c in columns)})"
        )
        data = _encode({c: record.get(c) for c in PRODUCT_COLUMNS})
        data["id"] = product_id

        with self.get_session() as session:
            session.execute(statement, data)
        logger.info(f"Inserted product {product_id}")
        return product_id

    def update_product(self, product_id: str, record: Dict[str, Any]) -> bool:
        columns = [c for c in PRODUCT_COLUMNS if c in record]
        statement = text(
            f"UPDATE products SET {', '.join(f'{c} = :{c}' for c in columns)} "
            "WHERE id = :id"
        )
        data = _encode({c: record[c] for c in columns})
        data["id"] = product_id

        with self.get_session() as session:
            result = session.execute(statement, data)
            return result.rowcount > 0

    def get_product(self, product_id: str) -> Optional[Dict[str, Any]]:
        rows = self.execute_query(
            "SELECT * FROM products WHERE id = :id", {"id": product_id}
        )
        return rows[0] if rows else None

    def list_products(self) -> list[dict[str, Any]]:
        return self.execute_query(
            "SELECT id, name, sku, price, quantity, status FROM products ORDER BY name"
        )

    def get_images(self, product_id: str) -> list[dict[str, Any]]:
        return self.execute_query(
            "SELECT * FROM product_images WHERE product_id = :id ORDER BY position",
            {"id": product_id},
        )

    def get_variants(self, product_id: str) -> list[dict[str, Any]]:
        # Unordered: rows are matched to combinations by their option values
        return self.execute_query(
            "SELECT * FROM product_variants WHERE product_id = :id",
            {"id": product_id},
        )

    def replace_images(self, product_id: str, records: List[Dict[str, Any]]) -> int:
        with self.get_session() as session:
            session.execute(
                text("DELETE FROM product_images WHERE product_id = :id"),
                {"id": product_id},
            )
            for record in records:
                session.execute(
                    text(
                        "INSERT INTO product_images "
                        "(id, product_id, url, position, alt_text) "
                        "VALUES (:id, :product_id, :url, :position, :alt_text)"
                    ),
                    {**record, "id": new_id(), "product_id": product_id},
                )
        return len(records)

    def replace_variants(self, product_id: str, records: List[Dict[str, Any]]) -> int:
        """Drop every variant of the product and insert the given rows."""
        columns = ["id"] + VARIANT_COLUMNS
        statement = text(
            f"INSERT INTO product_variants ({', '.join(columns)}) "
            f"VALUES ({', '.join(':' + c for c in columns)})"
        )
        with self.get_session() as session:
            session.execute(
                text("DELETE FROM product_variants WHERE product_id = :id"),
                {"id": product_id},
            )
            for record in records:
                data = _encode({c: record.get(c) for c in VARIANT_COLUMNS})
                data["id"] = new_id()
                data["product_id"] = product_id
                session.execute(statement, data)
        return len(records)

    def delete_product(self, product_id: str) -> bool:
        with self.get_session() as session:
            for table in ("product_variants", "product_images"):
                session.execute(
                    text(f"DELETE FROM {table} WHERE product_id = :id"),
                    {"id": product_id},
                )
            result = session.execute(
                text("DELETE FROM products WHERE id = :id"), {"id": product_id}
            )
            return result.rowcount > 0
