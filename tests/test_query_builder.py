"""Query builder and kline store tests."""

import pytest
from sqlalchemy.dialects import sqlite

from klinepro.db import (
    Eq,
    Gt,
    Gte,
    In,
    IsNull,
    KlineStore,
    Like,
    Lt,
    Lte,
    Ne,
    NotIn,
    QueryBuilder,
    SortDirection,
    TableNotFoundError,
    create_db_engine,
    kline_table,
)
from klinepro.db.query import to_expression

from tests.conftest import make_bars, wave


def _sql(stmt) -> str:
    return str(
        stmt.compile(dialect=sqlite.dialect(), compile_kwargs={"literal_binds": True})
    )


@pytest.fixture
def table():
    return kline_table("ETHUSDT_1h")


# =============================================================================
# CONDITIONS / BUILDER
# =============================================================================


@pytest.mark.parametrize(
    "condition, fragment",
    [
        (Eq(5), '"ETHUSDT_1h".open_time = 5'),
        (Ne(5), '"ETHUSDT_1h".open_time != 5'),
        (Gt(5), '"ETHUSDT_1h".open_time > 5'),
        (Gte(5), '"ETHUSDT_1h".open_time >= 5'),
        (Lt(5), '"ETHUSDT_1h".open_time < 5'),
        (Lte(5), '"ETHUSDT_1h".open_time <= 5'),
        (In([1, 2]), '"ETHUSDT_1h".open_time IN (1, 2)'),
        (NotIn([1, 2]), '"ETHUSDT_1h".open_time NOT IN (1, 2)'),
        (IsNull(), '"ETHUSDT_1h".open_time IS NULL'),
        (IsNull(False), '"ETHUSDT_1h".open_time IS NOT NULL'),
    ],
)
def test_condition_translation(table, condition, fragment):
    sql = _sql(QueryBuilder(table).where(open_time=condition).build())
    assert fragment in sql


def test_like_condition(table):
    sql = _sql(QueryBuilder(table).where(ignore=Like("0%")).build())
    assert "ignore" in sql
    assert "LIKE '0%'" in sql


def test_like_on_numeric_column_is_type_error(table):
    with pytest.raises(TypeError):
        QueryBuilder(table).where(open_time=Like("17%"))


def test_unknown_condition_is_type_error(table):
    with pytest.raises(TypeError):
        to_expression(table.c.open_time, {"$gt": 5})


def test_bare_value_means_eq(table):
    assert _sql(QueryBuilder(table).where(open_time=7).build()) == _sql(
        QueryBuilder(table).where(open_time=Eq(7)).build()
    )


def test_full_query(table):
    stmt = (
        QueryBuilder(table)
        .select("open_time", "close")
        .where(open_time=Gte(100), close=Gt(0))
        .order_by("open_time", SortDirection.DESC)
        .limit(74)
        .offset(10)
        .build()
    )
    sql = _sql(stmt)
    assert sql.startswith('SELECT "ETHUSDT_1h".open_time, ')
    assert "volume" not in sql
    assert '"ETHUSDT_1h".open_time >= 100 AND ' in sql
    assert 'ORDER BY "ETHUSDT_1h".open_time DESC' in sql
    assert "LIMIT 74 OFFSET 10" in sql


def test_values_are_bound_parameters(table):
    stmt = QueryBuilder(table).where(open_time=Eq("1; DROP TABLE x")).build()
    assert "DROP" not in str(stmt.compile(dialect=sqlite.dialect()))


def test_unknown_column_raises(table):
    with pytest.raises(ValueError):
        QueryBuilder(table).where(nope=1)
    with pytest.raises(ValueError):
        QueryBuilder(table).select("nope")
    with pytest.raises(ValueError):
        QueryBuilder(table).order_by("nope")


def test_negative_limit_and_offset_raise(table):
    with pytest.raises(ValueError):
        QueryBuilder(table).limit(-1)
    with pytest.raises(ValueError):
        QueryBuilder(table).offset(-1)


@pytest.mark.parametrize("name", ["", "bad-name", "x; DROP TABLE y", "a" * 65])
def test_invalid_table_name(name):
    with pytest.raises(ValueError):
        kline_table(name)


def test_kline_table_is_cached():
    assert kline_table("BTCUSDT_12h") is kline_table("BTCUSDT_12h")


# =============================================================================
# STORE
# =============================================================================


@pytest.fixture
async def store():
    engine = create_db_engine("sqlite+aiosqlite:///:memory:")
    yield KlineStore(engine)
    await engine.dispose()


async def test_insert_and_load_round_trip(store):
    bars = make_bars(wave(10))
    inserted = await store.insert_bars("BTCUSDT_1h", bars)
    assert inserted == 10

    loaded = await store.load_bars("BTCUSDT_1h")
    assert [b.open_time for b in loaded] == [b.open_time for b in bars]
    assert loaded[3].close == pytest.approx(bars[3].close)


async def test_insert_skips_existing_open_times(store):
    bars = make_bars(wave(10))
    await store.insert_bars("BTCUSDT_1h", bars[:6])
    inserted = await store.insert_bars("BTCUSDT_1h", bars)
    assert inserted == 4
    assert len(await store.load_bars("BTCUSDT_1h")) == 10


async def test_load_most_recent_in_ascending_order(store):
    bars = make_bars(wave(10))
    await store.insert_bars("BTCUSDT_1h", bars)

    loaded = await store.load_bars("BTCUSDT_1h", limit=3)
    assert [b.open_time for b in loaded] == [b.open_time for b in bars[-3:]]


async def test_load_missing_table(store):
    assert await store.table_exists("NOPE_1h") is False
    with pytest.raises(TableNotFoundError):
        await store.load_bars("NOPE_1h")


async def test_query_through_store(store):
    bars = make_bars(wave(10))
    await store.insert_bars("BTCUSDT_1h", bars)

    builder = (
        store.query("BTCUSDT_1h")
        .select("open_time")
        .where(open_time=In([bars[2].open_time, bars[5].open_time]))
        .order_by("open_time")
    )
    rows = await store.fetch(builder)
    assert rows == [{"open_time": bars[2].open_time}, {"open_time": bars[5].open_time}]

    async with store.engine.connect() as conn:
        first = await store.query("BTCUSDT_1h").order_by("open_time", "DESC").first(conn)
    assert first["open_time"] == bars[-1].open_time


async def test_engine_creates_sqlite_directory(tmp_path):
    path = tmp_path / "nested" / "klines.db"
    engine = create_db_engine(f"sqlite+aiosqlite:///{path}")
    try:
        assert path.parent.is_dir()
        store = KlineStore(engine)
        await store.insert_bars("BTCUSDT_1d", make_bars(wave(3)))
        assert await store.table_exists("BTCUSDT_1d")
    finally:
        await engine.dispose()
