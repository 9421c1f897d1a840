"""
Shared test fixtures.

Sets up an isolated SQLite database so tests never touch the
real one. Tables are created before each test and dropped after,
and every test gets a fresh session.
"""

from datetime import date

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from waqf_ledger.main import app
from waqf_ledger.models.base import Base, get_db, enable_sqlite_savepoints
from waqf_ledger.models.enums import AccountType
from waqf_ledger.schemas.account import AccountCreate
from waqf_ledger.schemas.fiscal_year import FiscalYearCreate
from waqf_ledger.services.chart_of_accounts_service import ChartOfAccountsService
from waqf_ledger.services.fiscal_year_service import FiscalYearService


TEST_DATABASE_URL = "sqlite:///./test.db"

engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
)
# Journal and reconciliation writes run in savepoints
enable_sqlite_savepoints(engine)

TestSessionLocal = sessionmaker(
    bind=engine,
    autocommit=False,
    autoflush=False,
)


@pytest.fixture(autouse=True)
def setup_database():
    """Create all tables before each test, drop them after."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session():
    """Provide a database session for direct service testing."""
    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def client(db_session):
    """
    Provide a test client bound to the test session.

    get_db is overridden so the app and the test share one
    session and see the same data.
    """
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


# --- Ledger fixtures ---

# code, Arabic name, type, header, parent code
CHART = [
    ("1", "الأصول", AccountType.ASSET, True, None),
    ("1.1", "الأصول المتداولة", AccountType.ASSET, True, "1"),
    ("1.1.1", "الصندوق", AccountType.ASSET, False, "1.1"),
    ("1.1.2", "البنك", AccountType.ASSET, False, "1.1"),
    ("1.2", "الأصول الثابتة", AccountType.ASSET, True, "1"),
    ("1.2.1", "العقارات", AccountType.ASSET, False, "1.2"),
    ("2", "الخصوم", AccountType.LIABILITY, True, None),
    ("2.1", "الخصوم المتداولة", AccountType.LIABILITY, True, "2"),
    ("2.1.1", "الدائنون", AccountType.LIABILITY, False, "2.1"),
    ("3", "حقوق الملكية", AccountType.EQUITY, True, None),
    ("3.1", "رأس مال الوقف", AccountType.EQUITY, True, "3"),
    ("3.1.1", "رأس المال", AccountType.EQUITY, False, "3.1"),
    ("4", "الإيرادات", AccountType.REVENUE, True, None),
    ("4.1", "إيرادات العقارات", AccountType.REVENUE, True, "4"),
    ("4.1.1", "إيرادات الإيجار", AccountType.REVENUE, False, "4.1"),
    ("5", "المصروفات", AccountType.EXPENSE, True, None),
    ("5.1", "المصروفات الإدارية", AccountType.EXPENSE, True, "5"),
    ("5.1.1", "الرواتب", AccountType.EXPENSE, False, "5.1"),
    ("5.3", "توزيعات المستحقين", AccountType.EXPENSE, True, "5"),
    ("5.3.1", "صرف المستحقين", AccountType.EXPENSE, False, "5.3"),
]


@pytest.fixture
def fiscal_year(db_session):
    """The active 2025 fiscal year."""
    year = FiscalYearService(db_session).create_fiscal_year(FiscalYearCreate(
        name="2025",
        start_date=date(2025, 1, 1),
        end_date=date(2025, 12, 31),
        is_active=True,
    ))
    db_session.commit()
    return year


@pytest.fixture
def chart(db_session):
    """A small waqf chart of accounts, keyed by code."""
    service = ChartOfAccountsService(db_session)
    accounts = {}
    for code, name, account_type, is_header, parent_code in CHART:
        accounts[code] = service.create_account(AccountCreate(
            code=code,
            name_ar=name,
            account_type=account_type,
            is_header=is_header,
            parent_id=accounts[parent_code].id if parent_code else None,
        ))
    db_session.commit()
    return accounts
