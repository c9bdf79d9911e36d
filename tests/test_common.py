"""Tests for common utilities — filters, search, sorting and pagination."""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.common.constants import UserRole
from hrms.common.filters import _get_column, apply_filters, apply_search, apply_sorting
from hrms.common.pagination import PaginationParams, build_meta, paginate
from hrms.users.models import Department, User
from hrms.users.schemas import DepartmentResponse
from tests.conftest import make_department, make_user


def _params(page: int = 1, page_size: int = 20, sort=None) -> PaginationParams:
    return PaginationParams(page=page, page_size=page_size, sort=sort)


async def _usernames(db: AsyncSession, query) -> list[str]:
    return [u.username for u in (await db.execute(query)).scalars().all()]


# ═════════════════════════════════════════════════════════════════════
# FILTER TESTS
# ═════════════════════════════════════════════════════════════════════


class TestApplyFilters:
    async def test_filter_by_equality(self, db: AsyncSession):
        await make_user(db, username="alice")
        await make_user(db, username="bob", role=UserRole.manager)

        query = apply_filters(select(User), User, {"role": "manager"})

        assert await _usernames(db, query) == ["bob"]

    async def test_none_values_skipped(self, db: AsyncSession):
        await make_user(db, username="alice")
        await make_user(db, username="gone", is_active=False)

        query = apply_filters(select(User), User, {"role": None, "is_active": True})

        assert await _usernames(db, query) == ["alice"]

    async def test_ilike(self, db: AsyncSession):
        await make_user(db, username="alexander")
        await make_user(db, username="bobby")

        query = apply_filters(select(User), User, {"username__ilike": "ALEX"})

        assert await _usernames(db, query) == ["alexander"]

    async def test_from_to_range(self, db: AsyncSession):
        await make_user(db, username="low", base_salary=Decimal("1000"))
        await make_user(db, username="mid", base_salary=Decimal("2500"))
        await make_user(db, username="high", base_salary=Decimal("9000"))

        query = apply_filters(
            select(User), User, {"base_salary__from": Decimal("2000"), "base_salary__to": Decimal("5000")},
        )

        assert await _usernames(db, query) == ["mid"]

    async def test_in(self, db: AsyncSession):
        for name in ("alice", "bob", "carol"):
            await make_user(db, username=name)

        query = apply_filters(select(User), User, {"username__in": ["alice", "carol"]}).order_by(User.username)

        assert await _usernames(db, query) == ["alice", "carol"]

    async def test_unknown_column_ignored(self, db: AsyncSession):
        await make_user(db, username="alice")

        query = apply_filters(select(User), User, {"nonexistent": "x", "_sa_instance_state": "y"})

        assert await _usernames(db, query) == ["alice"]


class TestApplySearch:
    async def test_matches_any_column(self, db: AsyncSession):
        await make_user(db, username="jdoe")
        await make_user(db, username="other")

        by_username = apply_search(select(User), User, "JDO", ["username", "email"])
        by_email = apply_search(select(User), User, "other@", ["username", "email"])

        assert await _usernames(db, by_username) == ["jdoe"]
        assert await _usernames(db, by_email) == ["other"]

    async def test_blank_search_is_noop(self, db: AsyncSession):
        await make_user(db, username="alice")
        await make_user(db, username="bob")

        query = apply_search(select(User), User, "   ", ["username"])

        assert len(await _usernames(db, query)) == 2


class TestApplySorting:
    async def test_ascending_and_descending(self, db: AsyncSession):
        for name in ("bravo", "alpha", "charlie"):
            await make_user(db, username=name)

        asc = apply_sorting(select(User), User, "username")
        desc = apply_sorting(select(User), User, "-username")

        assert await _usernames(db, asc) == ["alpha", "bravo", "charlie"]
        assert await _usernames(db, desc) == ["charlie", "bravo", "alpha"]

    async def test_sort_replaces_existing_order(self, db: AsyncSession):
        for name in ("bravo", "alpha"):
            await make_user(db, username=name)

        query = apply_sorting(select(User).order_by(User.username.desc()), User, "username")

        assert await _usernames(db, query) == ["alpha", "bravo"]

    def test_unknown_sort_leaves_query(self):
        query = select(User).order_by(User.username)

        assert apply_sorting(query, User, "-bogus") is query
        assert apply_sorting(query, User, None) is query


class TestGetColumn:
    def test_existing_column(self):
        assert _get_column(User, "username") is not None

    def test_missing_or_private(self):
        assert _get_column(User, "nope") is None
        assert _get_column(User, "_private") is None


# ═════════════════════════════════════════════════════════════════════
# PAGINATION TESTS
# ═════════════════════════════════════════════════════════════════════


class TestBuildMeta:
    def test_middle_page(self):
        meta = build_meta(total=45, page=2, page_size=20)

        assert meta.total_pages == 3
        assert meta.has_next is True
        assert meta.has_prev is True

    def test_empty(self):
        meta = build_meta(total=0, page=1, page_size=20)

        assert meta.total_pages == 0
        assert meta.has_next is False
        assert meta.has_prev is False


class TestPaginate:
    async def test_slices_and_counts(self, db: AsyncSession):
        for i in range(5):
            await make_department(db, name=f"Dept {i}")

        query = select(Department).order_by(Department.name)
        result = await paginate(db, query, _params(page=2, page_size=2))

        assert [d.name for d in result.data] == ["Dept 2", "Dept 3"]
        assert result.meta.total == 5
        assert result.meta.total_pages == 3

    async def test_sort_param_and_schema(self, db: AsyncSession):
        for name in ("Alpha", "Charlie", "Bravo"):
            await make_department(db, name=name)

        result = await paginate(
            db, select(Department), _params(sort="-name"), model=Department, schema=DepartmentResponse,
        )

        assert all(isinstance(d, DepartmentResponse) for d in result.data)
        assert [d.name for d in result.data] == ["Charlie", "Bravo", "Alpha"]

    async def test_page_beyond_end_is_empty(self, db: AsyncSession):
        await make_department(db)

        result = await paginate(db, select(Department), _params(page=3, page_size=10))

        assert result.data == []
        assert result.meta.total == 1
        assert result.meta.has_prev is True

    def test_offset(self):
        assert _params(page=3, page_size=25).offset == 50
