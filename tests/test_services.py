"""
@PURPOSE: 服务层测试, 直接使用数据库会话调用业务逻辑
@OUTLINE:
  - AuthService: 注册/登录/唯一约束冲突/重复检查顺序
  - ProfileService: 批量关注查询, 并发重复关注
  - ArticleService: slug 分配 (含保留 slug)、标签复用、并发重复收藏
  - TagService: 热门标签
@DEPENDENCIES:
  - 内部: conduit.auth / profiles / articles / tags 服务
  - 外部: pytest, sqlalchemy
"""

from __future__ import annotations

import pytest
from sqlalchemy import func, insert, select

from conduit.articles.schemas import ArticleCreate, ArticleUpdate
from conduit.articles.service import ArticleService
from conduit.auth.schemas import UserRegister
from conduit.auth.service import EMAIL_TAKEN, INVALID_CREDENTIALS, USERNAME_TAKEN, AuthService
from conduit.core.exceptions import NotFoundError, PermissionDeniedError, UnprocessableError
from conduit.core.security import verify_password
from conduit.models import Favorite, Follow, Tag, User
from conduit.profiles.service import ProfileService
from conduit.tags.service import TagService


def _register_data(username: str) -> UserRegister:
    return UserRegister(username=username, email=f"{username}@example.com", password="password123")


@pytest.mark.asyncio
async def test_register_hashes_password(session_maker):
    async with session_maker() as session:
        user, token = await AuthService(session).register(_register_data("jake"))

        assert user.id is not None
        assert user.password_hash != "password123"
        assert verify_password("password123", user.password_hash)
        assert token


@pytest.mark.asyncio
async def test_register_integrity_error_becomes_unprocessable(session_maker):
    async with session_maker() as session:
        service = AuthService(session)
        await service.register(_register_data("jake"))

        # 绕过预检查, 直接触发唯一约束
        session.add(User(username="other", email="jake@example.com", password_hash="x"))
        with pytest.raises(UnprocessableError):
            await service._commit_unique()

        count = await session.scalar(select(func.count()).select_from(User))
        assert count == 1


@pytest.mark.asyncio
async def test_register_duplicate_email(session_maker):
    async with session_maker() as session:
        service = AuthService(session)
        await service.register(_register_data("jake"))

        with pytest.raises(UnprocessableError) as exc_info:
            await service.register(
                UserRegister(username="jacob", email="jake@example.com", password="password123")
            )
        assert exc_info.value.message == EMAIL_TAKEN
        assert exc_info.value.status_code == 422


@pytest.mark.asyncio
async def test_login_failure_message(session_maker):
    async with session_maker() as session:
        service = AuthService(session)
        await service.register(_register_data("jake"))

        with pytest.raises(UnprocessableError) as exc_info:
            await service.login("jake@example.com", "wrong-password")
        assert exc_info.value.errors == {"body": [INVALID_CREDENTIALS]}


@pytest.mark.asyncio
async def test_following_ids(session_maker):
    async with session_maker() as session:
        auth = AuthService(session)
        jake, _ = await auth.register(_register_data("jake"))
        jane, _ = await auth.register(_register_data("jane"))
        bob, _ = await auth.register(_register_data("bob"))

        profiles = ProfileService(session)
        await profiles.follow(jane, "jake")

        assert await profiles.following_ids(jane, [jake.id, bob.id]) == {jake.id}
        assert await profiles.following_ids(None, [jake.id]) == set()
        assert await profiles.following_ids(jane, []) == set()


@pytest.mark.asyncio
async def test_article_tags_are_reused(session_maker):
    async with session_maker() as session:
        jake, _ = await AuthService(session).register(_register_data("jake"))
        articles = ArticleService(session)

        await articles.create_article(
            jake, ArticleCreate(title="One", description="d", body="b", tag_list=["shared"])
        )
        await articles.create_article(
            jake, ArticleCreate(title="Two", description="d", body="b", tag_list=["shared", "new"])
        )

        tag_count = await session.scalar(select(func.count()).select_from(Tag))
        assert tag_count == 2
        assert await TagService(session).popular_tags() == ["shared", "new"]


@pytest.mark.asyncio
async def test_retitle_to_taken_slug_gets_suffix(session_maker):
    async with session_maker() as session:
        jake, _ = await AuthService(session).register(_register_data("jake"))
        articles = ArticleService(session)

        await articles.create_article(jake, ArticleCreate(title="Taken", description="d", body="b"))
        second = await articles.create_article(
            jake, ArticleCreate(title="Other", description="d", body="b")
        )

        updated = await articles.update_article(jake, second.slug, ArticleUpdate(title="Taken"))
        assert updated.slug == "taken-1"


@pytest.mark.asyncio
async def test_article_permissions_and_missing(session_maker):
    async with session_maker() as session:
        auth = AuthService(session)
        jake, _ = await auth.register(_register_data("jake"))
        jane, _ = await auth.register(_register_data("jane"))
        articles = ArticleService(session)

        created = await articles.create_article(
            jake, ArticleCreate(title="Mine", description="d", body="b")
        )

        with pytest.raises(PermissionDeniedError):
            await articles.delete_article(jane, created.slug)
        with pytest.raises(NotFoundError):
            await articles.get_article("missing")


@pytest.mark.asyncio
async def test_register_reports_username_when_clashing_with_two_users(session_maker):
    async with session_maker() as session:
        service = AuthService(session)
        await service.register(_register_data("alice"))
        await service.register(_register_data("bob"))

        with pytest.raises(UnprocessableError) as exc_info:
            await service.register(
                UserRegister(username="bob", email="alice@example.com", password="password123")
            )
        assert exc_info.value.message == USERNAME_TAKEN


@pytest.mark.asyncio
async def test_feed_title_does_not_take_feed_slug(session_maker):
    async with session_maker() as session:
        jake, _ = await AuthService(session).register(_register_data("jake"))
        articles = ArticleService(session)

        created = await articles.create_article(
            jake, ArticleCreate(title="Feed", description="d", body="b")
        )
        assert created.slug == "feed-1"

        other = await articles.create_article(
            jake, ArticleCreate(title="Other", description="d", body="b")
        )
        updated = await articles.update_article(jake, other.slug, ArticleUpdate(title="FEED"))
        assert updated.slug == "feed-2"


@pytest.mark.asyncio
async def test_follow_when_row_inserted_concurrently(session_maker, monkeypatch):
    async with session_maker() as session:
        auth = AuthService(session)
        jake, _ = await auth.register(_register_data("jake"))
        jane, _ = await auth.register(_register_data("jane"))

        # 另一请求在存在性检查之后写入了同一行
        await session.execute(insert(Follow).values(follower_id=jane.id, following_id=jake.id))
        await session.commit()

        profiles = ProfileService(session)

        async def not_following(*_args) -> bool:
            return False

        monkeypatch.setattr(profiles, "is_following", not_following)

        profile = await profiles.follow(jane, "jake")

        assert profile.username == "jake"
        assert profile.following is True
        assert await session.scalar(select(func.count()).select_from(Follow)) == 1


@pytest.mark.asyncio
async def test_favorite_when_row_inserted_concurrently(session_maker, monkeypatch):
    async with session_maker() as session:
        jake, _ = await AuthService(session).register(_register_data("jake"))
        articles = ArticleService(session)
        created = await articles.create_article(
            jake, ArticleCreate(title="Race", description="d", body="b", tag_list=["async"])
        )
        article = await articles.get_article_model(created.slug)

        await session.execute(insert(Favorite).values(user_id=jake.id, article_id=article.id))
        await session.commit()

        async def not_favorited(*_args) -> bool:
            return False

        monkeypatch.setattr(articles, "is_favorited", not_favorited)

        result = await articles.favorite(jake, created.slug)

        assert result.favorited is True
        assert result.favorites_count == 1
        assert result.tag_list == ["async"]
        assert await session.scalar(select(func.count()).select_from(Favorite)) == 1
