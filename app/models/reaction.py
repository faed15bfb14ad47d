from sqlalchemy import Column, String, Integer, ForeignKey, CheckConstraint, Index, UniqueConstraint
from sqlalchemy.orm import relationship
from app.db.base import BaseModel

class Reaction(BaseModel):
    __tablename__ = "reactions"

    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    post_id = Column(Integer, ForeignKey("posts.id", ondelete="CASCADE"), nullable=False)
    kind = Column(String(10), nullable=False)  # 'like', 'dislike'

    post = relationship("Post", back_populates="reactions")

    # One reaction per user and post; switching kind updates in place
    __table_args__ = (
        UniqueConstraint('user_id', 'post_id', name='unique_reaction'),
        CheckConstraint("kind IN ('like', 'dislike')", name='check_reaction_kind'),
        Index('ix_reactions_post_kind', 'post_id', 'kind'),
    )

class Favorite(BaseModel):
    __tablename__ = "favorites"

    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    post_id = Column(Integer, ForeignKey("posts.id", ondelete="CASCADE"), nullable=False)

    post = relationship("Post", back_populates="favorites")

    __table_args__ = (
        UniqueConstraint('user_id', 'post_id', name='unique_favorite'),
        Index('ix_favorites_post_id', 'post_id'),
        Index('ix_favorites_created_at', 'created_at'),
    )
