"""
@PURPOSE: 数据库模型包, 导入即把全部表注册到 Base.metadata
@OUTLINE:
  - User, Follow: 用户与关注
  - Article, Tag, ArticleTag, Favorite: 文章、标签与收藏
  - Comment: 评论
"""

from .article import Article, ArticleTag, Favorite, Tag
from .comment import Comment
from .user import Follow, User

__all__ = [
    "Article",
    "ArticleTag",
    "Comment",
    "Favorite",
    "Follow",
    "Tag",
    "User",
]
