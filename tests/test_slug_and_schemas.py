"""
@PURPOSE: slug 生成与请求/响应模型测试
@OUTLINE:
  - TestSlugify: 标题 → slug 规则
  - TestUniqueTagNames: 标签去重
  - TestTimestamp: 时间序列化格式
  - TestRequestSchemas: 注册/更新/文章请求校验
@DEPENDENCIES:
  - 内部: conduit.articles, conduit.auth.schemas, conduit.core.schemas
  - 外部: pytest, pydantic
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from conduit.articles.schemas import ArticleCreate, ArticleUpdate
from conduit.articles.service import slugify, unique_tag_names
from conduit.auth.schemas import UserRegister, UserUpdate
from conduit.core.schemas import format_timestamp


class TestSlugify:
    @pytest.mark.parametrize(
        "title,expected",
        [
            ("How to train your dragon", "how-to-train-your-dragon"),
            ("  Hello,   World!  ", "hello-world"),
            ("Crème brûlée", "creme-brulee"),
            ("C++ & Rust -- 2024", "c-rust-2024"),
            ("---", "article"),
            ("你好", "article"),
            ("already-a-slug", "already-a-slug"),
        ],
    )
    def test_slugify(self, title: str, expected: str) -> None:
        assert slugify(title) == expected

    def test_slug_matches_path_pattern(self) -> None:
        slug = slugify("Ünïcödé Títle with_underscores & CAPS")
        assert slug == "unicode-title-with-underscores-caps"


class TestUniqueTagNames:
    def test_keeps_first_occurrence_order(self) -> None:
        assert unique_tag_names(["b", "a", "b", "c", "a"]) == ["b", "a", "c"]

    def test_empty(self) -> None:
        assert unique_tag_names([]) == []


class TestTimestamp:
    def test_utc_with_milliseconds(self) -> None:
        value = datetime(2016, 2, 18, 3, 22, 56, 637123, tzinfo=UTC)
        assert format_timestamp(value) == "2016-02-18T03:22:56.637Z"

    def test_naive_is_treated_as_utc(self) -> None:
        assert format_timestamp(datetime(2020, 1, 1, 0, 0, 0)) == "2020-01-01T00:00:00.000Z"

    def test_other_timezone_is_converted(self) -> None:
        value = datetime(2020, 1, 1, 8, 0, 0, tzinfo=timezone(timedelta(hours=8)))
        assert format_timestamp(value) == "2020-01-01T00:00:00.000Z"


class TestRequestSchemas:
    def test_register_valid(self) -> None:
        user = UserRegister(username="jake_1-x", email="jake@example.com", password="password123")
        assert user.username == "jake_1-x"

    @pytest.mark.parametrize(
        "field,value",
        [
            ("username", "ab"),
            ("username", "a" * 21),
            ("username", "bad name"),
            ("email", "not-an-email"),
            ("password", "short"),
        ],
    )
    def test_register_invalid(self, field: str, value: str) -> None:
        data = {"username": "jake", "email": "jake@example.com", "password": "password123"}
        data[field] = value

        with pytest.raises(ValidationError) as exc_info:
            UserRegister(**data)
        assert exc_info.value.errors()[0]["loc"] == (field,)

    def test_update_image_must_be_url(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            UserUpdate(image="not a url")
        assert "image must be a valid URL" in str(exc_info.value)

    @pytest.mark.parametrize("image", ["", "https://example.com/avatar.png", None])
    def test_update_image_accepts_url_or_empty(self, image: str | None) -> None:
        assert UserUpdate(image=image).image == image

    def test_update_bio_max_length(self) -> None:
        with pytest.raises(ValidationError):
            UserUpdate(bio="x" * 501)

    def test_article_accepts_camel_case_tag_list(self) -> None:
        article = ArticleCreate.model_validate(
            {"title": "T", "description": "D", "body": "B", "tagList": ["dragons", "training"]}
        )
        assert article.tag_list == ["dragons", "training"]

    def test_article_tag_list_defaults_to_empty(self) -> None:
        article = ArticleCreate.model_validate({"title": "T", "description": "D", "body": "B"})
        assert article.tag_list == []

    @pytest.mark.parametrize("tag", ["", "has space", "x" * 101])
    def test_article_rejects_invalid_tag(self, tag: str) -> None:
        with pytest.raises(ValidationError):
            ArticleCreate.model_validate(
                {"title": "T", "description": "D", "body": "B", "tagList": [tag]}
            )

    def test_update_distinguishes_missing_tag_list(self) -> None:
        assert ArticleUpdate.model_validate({"body": "new"}).tag_list is None
        assert ArticleUpdate.model_validate({"tagList": []}).tag_list == []
