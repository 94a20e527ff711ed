"""
Forum Models
Categories, threads and posts
"""

from sqlalchemy import Column, String, Text, Boolean, Integer, ForeignKey, Index
from sqlalchemy.orm import relationship

from forum_api.models.base import BaseModel


class Category(BaseModel):
    __tablename__ = "categories"

    name = Column(String(255), nullable=False)
    slug = Column(String(255), nullable=False, unique=True)
    description = Column(Text, nullable=True)
    sort_order = Column(Integer, default=0, nullable=False)

    def __repr__(self):
        return f"<Category(id={self.id}, slug='{self.slug}')>"


class Thread(BaseModel):
    __tablename__ = "threads"

    category_id = Column(Integer, ForeignKey("categories.id", ondelete="CASCADE"), nullable=False, index=True)
    author_id = Column(String(64), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    is_locked = Column(Boolean, default=False, nullable=False)

    category = relationship("Category")

    __table_args__ = (
        Index("ix_thread_category_author", "category_id", "author_id"),
    )

    def __repr__(self):
        return f"<Thread(id={self.id}, category_id={self.category_id})>"


class Post(BaseModel):
    __tablename__ = "posts"

    thread_id = Column(Integer, ForeignKey("threads.id", ondelete="CASCADE"), nullable=False, index=True)
    author_id = Column(String(64), nullable=False, index=True)
    content = Column(Text, nullable=False)

    thread = relationship("Thread")

    def __repr__(self):
        return f"<Post(id={self.id}, thread_id={self.thread_id})>"
