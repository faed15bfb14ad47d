"""
Models package for Social Feed API
"""
from app.db.base import Base, BaseModel
from app.models.user import User
from app.models.post import Post, PostImage
from app.models.comment import Comment, CommentLike
from app.models.reaction import Reaction, Favorite

__all__ = [
    'Base',
    'BaseModel',
    'User',
    'Post',
    'PostImage',
    'Comment',
    'CommentLike',
    'Reaction',
    'Favorite',
]
